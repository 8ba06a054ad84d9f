"""Per-request generation flow with an optional clarification round.

States::

    idle -> drafting -> clarification_pending -> finalizing -> done
    idle -> drafting -> finalizing -> done

Any failure after ``idle`` moves the flow to ``failed``.
"""

import logging
from enum import Enum
from typing import List, Optional

from contracts import (
    ClarificationAnswer,
    ClarifyingQuestionSet,
    FeatureInput,
    GenerationMode,
    GenerationResult,
    ResolvedContext,
)
from context import ProjectContextService
from errors import InvalidFlowTransition

from .ambiguity import needs_clarification
from .completion import CompletionOrchestrator

logger = logging.getLogger(__name__)


class FlowState(str, Enum):
    IDLE = "idle"
    DRAFTING = "drafting"
    CLARIFICATION_PENDING = "clarification_pending"
    FINALIZING = "finalizing"
    DONE = "done"
    FAILED = "failed"


class GenerationFlow:
    """Drives one feature from submission to a finished specification.

    Usage:
        flow = GenerationFlow(orchestrator, context_service)
        state = await flow.start(feature)
        if state == FlowState.CLARIFICATION_PENDING:
            await flow.answer(answers)   # or: await flow.skip()
        flow.result
    """

    def __init__(
        self,
        orchestrator: CompletionOrchestrator,
        context_service: ProjectContextService,
        threshold: Optional[float] = None,
    ):
        self.orchestrator = orchestrator
        self.context_service = context_service
        self.threshold = threshold

        self.state = FlowState.IDLE
        self.feature: Optional[FeatureInput] = None
        self.resolved_context: Optional[ResolvedContext] = None
        self.ambiguity_score: Optional[float] = None
        self.questions: Optional[ClarifyingQuestionSet] = None
        self.result: Optional[GenerationResult] = None
        self.error: Optional[Exception] = None

    def _require(self, expected: FlowState, action: str) -> None:
        if self.state != expected:
            raise InvalidFlowTransition(self.state.value, action)

    def _transition(self, state: FlowState) -> None:
        logger.debug("Flow %s -> %s", self.state.value, state.value)
        self.state = state

    def _fail(self, error: Exception) -> None:
        self.error = error
        self._transition(FlowState.FAILED)

    async def start(
        self,
        feature: FeatureInput,
        mode: GenerationMode = GenerationMode.FINAL,
    ) -> FlowState:
        """Resolve context and score the feature, then ask or generate.

        Returns:
            CLARIFICATION_PENDING if questions were generated, otherwise DONE
        """
        self._require(FlowState.IDLE, "start")
        self.feature = feature
        self._transition(FlowState.DRAFTING)
        try:
            self.resolved_context = await self.context_service.resolve(feature.project_id, feature.context)
            self.ambiguity_score = self.orchestrator.calculate_ambiguity_score(feature)
            logger.info("Ambiguity score for '%s': %.2f", feature.title, self.ambiguity_score)

            if needs_clarification(self.ambiguity_score, self.threshold):
                self.questions = await self.orchestrator.generate_clarifying_questions(
                    feature, self.resolved_context
                )
                self._transition(FlowState.CLARIFICATION_PENDING)
                return self.state

            self._transition(FlowState.FINALIZING)
            self.result = await self.orchestrator.generate_spec(feature, self.resolved_context, mode)
        except Exception as e:
            self._fail(e)
            raise
        self._transition(FlowState.DONE)
        return self.state

    async def answer(self, answers: List[ClarificationAnswer]) -> GenerationResult:
        """Generate a final spec, refine it with the answers and merge the changes."""
        self._require(FlowState.CLARIFICATION_PENDING, "answer")
        self._transition(FlowState.FINALIZING)
        try:
            generated = await self.orchestrator.generate_spec(
                self.feature, self.resolved_context, GenerationMode.FINAL
            )
            partial = await self.orchestrator.refine_spec(generated.output, answers)
        except Exception as e:
            self._fail(e)
            raise
        merged = self.orchestrator.merge_refinement(generated.output, partial)
        self.result = generated.model_copy(update={"output": merged})
        self._transition(FlowState.DONE)
        return self.result

    async def skip(self) -> GenerationResult:
        """Skip the questions and generate a final spec directly."""
        self._require(FlowState.CLARIFICATION_PENDING, "skip")
        self._transition(FlowState.FINALIZING)
        try:
            self.result = await self.orchestrator.generate_spec(
                self.feature, self.resolved_context, GenerationMode.FINAL
            )
        except Exception as e:
            self._fail(e)
            raise
        self._transition(FlowState.DONE)
        return self.result
