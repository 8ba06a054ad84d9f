"""Shared fixtures for the test suite."""

import json
from typing import List, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest

from contracts import FeatureInput, InputContext, ResolvedContext, Stakeholder
from providers.base import LLMAdapter, LLMMessage, LLMModelInfo, LLMRequestOptions, LLMResponse, LLMUsage


class ScriptedAdapter(LLMAdapter):
    """Adapter that replays canned response texts and records what it was sent."""

    def __init__(self, replies: List[str], model: str = "scripted-model"):
        super().__init__(config=None)
        self.replies = list(replies)
        self.model = model
        self.calls: List[List[LLMMessage]] = []

    @property
    def name(self) -> str:
        return "scripted"

    def get_model_info(self) -> LLMModelInfo:
        return LLMModelInfo(id=self.model, name=self.model, provider=self.name, context_length=4096)

    async def generate_completion(
        self,
        messages: List[LLMMessage],
        options: Optional[LLMRequestOptions] = None,
    ) -> LLMResponse:
        self.calls.append(messages)
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return LLMResponse(
            content=reply,
            model=self.model,
            usage=LLMUsage.from_counts(100, 50),
            finish_reason="stop",
        )


def manager_for(adapter: LLMAdapter) -> MagicMock:
    """A stand-in ConfigurationManager that always hands out ``adapter``."""
    manager = MagicMock()
    manager.get_adapter = AsyncMock(return_value=adapter)
    return manager


@pytest.fixture
def clear_feature():
    """A feature that scores 0.0: long, has digits, no vague words or pronouns."""
    description = (
        "Add a saved carts page listing up to 20 carts per customer account, "
        "sorted by last update, with totals shown in the store currency and a "
        "restore button next to each entry for checkout reuse. Totals refresh within 2 seconds."
    )
    assert len(description) >= 200
    return FeatureInput(
        project_id="shop",
        title="Saved carts",
        description=description,
        context=InputContext(stakeholders=["Product Owner"], constraints=["Ship by Q3"]),
    )


@pytest.fixture
def vague_feature():
    return FeatureInput(project_id="shop", title="Carts", description="short")


@pytest.fixture
def project_context():
    return ResolvedContext(
        glossary={"SKU": "Stock keeping unit"},
        stakeholders=[Stakeholder(name="Product Owner", role="PO", interests=["Conversion"])],
        constraints=["Budget: $10k"],
        non_functional=["p95 < 300ms"],
    )


@pytest.fixture
def spec_payload(clear_feature, project_context):
    """A complete spec document as a model would return it."""
    return {
        "input": clear_feature.model_dump(mode="json"),
        "resolved_context": project_context.model_dump(mode="json"),
        "story": {
            "as_a": "returning customer",
            "i_want": "to restore a saved cart",
            "so_that": "I can check out faster",
            "acceptance_criteria": ["Given a saved cart", "When I restore it", "Then items are in my cart"],
        },
        "needs_clarification": [],
        "assumptions": ["Carts expire after 30 days"],
        "dependencies": [],
        "edge_cases": ["Item out of stock"],
        "functional_requirements": [{"id": "FR-20240101-001", "statement": "System lists saved carts"}],
        "tasks": [
            {
                "id": "T-20240101-001",
                "title": "Saved carts page",
                "area": "FE",
                "details": "List view",
                "prereqs": [],
                "artifacts": [],
            }
        ],
        "estimation": {"confidence": 0.7, "complexity": "M", "drivers": ["New UI"], "notes": "Standard"},
        "risks": [{"risk": "Stale prices", "mitigation": "Reprice on restore"}],
    }


@pytest.fixture
def spec_json(spec_payload):
    return json.dumps(spec_payload)


@pytest.fixture
def questions_json():
    return json.dumps({
        "questions": [
            {"topic": "Scope", "question": "Which carts count as saved?", "why_it_matters": "Defines the list"},
            {"topic": "Retention", "question": "How long are carts kept?", "why_it_matters": "Storage cost"},
        ],
        "estimated_confidence": 0.4,
    })
