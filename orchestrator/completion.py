"""Completion Orchestrator - turns feature input into validated specs.

Each operation renders a prompt, sends it to the active adapter, then parses
and validates the response. Any failure along the way is raised as
SpecGenerationFailed with the original exception kept on ``cause``.
"""

import logging
from typing import List, Optional, Tuple

from contracts import (
    ClarificationAnswer,
    ClarifyingQuestionSet,
    FeatureInput,
    GenerationMode,
    GenerationResult,
    ModelInfo,
    PartialSpecOutput,
    ResolvedContext,
    SpecOutput,
)
from errors import SpecGenerationFailed
from prompts import TemplateEngine, TemplateNames, template_engine
from providers import ConfigurationManager, LLMMessage, LLMRequestOptions, LLMResponse

from .ambiguity import calculate_ambiguity_score
from .response_parser import parse_structured_response

logger = logging.getLogger(__name__)

JSON_SYSTEM_MESSAGE = "You are a helpful assistant that generates structured JSON responses."

PREVIEW_CHARS = 500


def format_answers(answers: List[ClarificationAnswer]) -> str:
    return "\n\n".join(f"Q: {a.question}\nA: {a.answer}" for a in answers)


def merge_refinement(original: SpecOutput, partial: PartialSpecOutput) -> SpecOutput:
    """Replace each top-level field the refinement set; keep everything else."""
    return original.model_copy(update=partial.changed_fields())


class CompletionOrchestrator:
    """Drives spec generation, clarifying questions and refinement."""

    def __init__(
        self,
        config_manager: ConfigurationManager,
        engine: Optional[TemplateEngine] = None,
    ):
        """Initialize the orchestrator.

        Args:
            config_manager: Source of the active LLM adapter
            engine: Prompt renderer (defaults to the shared instance)
        """
        self.config_manager = config_manager
        self.engine = engine or template_engine

    async def _complete(self, prompt: str, options: Optional[LLMRequestOptions]) -> Tuple[str, LLMResponse]:
        """Send a prompt to the active adapter; returns (provider name, response)."""
        adapter = await self.config_manager.get_adapter()
        messages = [
            LLMMessage(role="system", content=JSON_SYSTEM_MESSAGE),
            LLMMessage(role="user", content=prompt),
        ]
        logger.debug("Sending %d-char prompt to %s", len(prompt), adapter.name)
        response = await adapter.generate_completion(messages, options or LLMRequestOptions())
        logger.debug(
            "Received %d chars from %s (finish_reason=%s): %s",
            len(response.content),
            response.model,
            response.finish_reason,
            response.content[:PREVIEW_CHARS],
        )
        return adapter.name, response

    async def generate_spec(
        self,
        feature: FeatureInput,
        resolved_context: ResolvedContext,
        mode: GenerationMode = GenerationMode.DRAFT,
        options: Optional[LLMRequestOptions] = None,
    ) -> GenerationResult:
        """Generate a full specification.

        Args:
            feature: The submitted feature
            resolved_context: Context already merged for this feature
            mode: draft or final
            options: Per-call overrides of the request defaults

        Returns:
            GenerationResult with summary, validated SpecOutput and model info

        Raises:
            SpecGenerationFailed: On any adapter, parse or validation failure
        """
        try:
            prompt = self.engine.render(TemplateNames.SPEC_GENERATION, {
                "system_prompt": self.engine.render(TemplateNames.SYSTEM),
                "resolved_context": resolved_context.model_dump(mode="json"),
                "input": feature.model_dump(mode="json"),
                "mode": GenerationMode(mode).value,
            })
            provider, response = await self._complete(prompt, options)
            summary, output = parse_structured_response(response.content, SpecOutput)
        except Exception as e:
            logger.error("Spec generation failed for '%s': %s", feature.title, e)
            raise SpecGenerationFailed("generate", e) from e

        return GenerationResult(
            summary=summary,
            output=output,
            model_info=ModelInfo(
                model=response.model,
                provider=provider,
                tokens_used=response.usage.total_tokens if response.usage else None,
            ),
        )

    async def generate_clarifying_questions(
        self,
        feature: FeatureInput,
        resolved_context: ResolvedContext,
        options: Optional[LLMRequestOptions] = None,
    ) -> ClarifyingQuestionSet:
        """Ask the model for the questions that would most reduce ambiguity."""
        try:
            prompt = self.engine.render(TemplateNames.CLARIFYING_QUESTIONS, {
                "resolved_context": resolved_context.model_dump(mode="json"),
                "input": feature.model_dump(mode="json"),
            })
            _, response = await self._complete(prompt, options)
            _, questions = parse_structured_response(response.content, ClarifyingQuestionSet)
        except Exception as e:
            logger.error("Clarifying questions failed for '%s': %s", feature.title, e)
            raise SpecGenerationFailed("clarify", e) from e
        return questions

    async def refine_spec(
        self,
        original_spec: SpecOutput,
        answers: List[ClarificationAnswer],
        options: Optional[LLMRequestOptions] = None,
    ) -> PartialSpecOutput:
        """Ask the model to update only the sections affected by the answers."""
        try:
            prompt = self.engine.render(TemplateNames.REFINE_SPEC, {
                "system_prompt": self.engine.render(TemplateNames.SYSTEM),
                "original_spec": original_spec.model_dump(mode="json"),
                "answers_formatted": format_answers(answers),
            })
            _, response = await self._complete(prompt, options)
            _, partial = parse_structured_response(response.content, PartialSpecOutput)
        except Exception as e:
            logger.error("Spec refinement failed: %s", e)
            raise SpecGenerationFailed("refine", e) from e
        logger.info("Refinement changed fields: %s", sorted(partial.model_fields_set))
        return partial

    def merge_refinement(self, original: SpecOutput, partial: PartialSpecOutput) -> SpecOutput:
        return merge_refinement(original, partial)

    def calculate_ambiguity_score(self, feature: FeatureInput) -> float:
        return calculate_ambiguity_score(feature)
