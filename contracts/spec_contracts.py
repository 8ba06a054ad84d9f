"""Specification output contracts.

SpecOutput is the structured artifact produced by a generation call. The
refinement call returns a PartialSpecOutput whose set fields replace the
original's fields wholesale.
"""

from datetime import datetime
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .context_contracts import ResolvedContext
from .input_contracts import FeatureInput


class GenerationMode(str, Enum):
    """Requested maturity of a generated specification."""
    DRAFT = "draft"
    FINAL = "final"


class TaskArea(str, Enum):
    """Fixed set of areas a task may belong to."""
    FE = "FE"
    BE = "BE"
    INFRA = "Infra"
    QA = "QA"
    DOCS = "Docs"


class Complexity(str, Enum):
    """Five-point complexity tier."""
    XS = "XS"
    S = "S"
    M = "M"
    L = "L"
    XL = "XL"


class UserStory(BaseModel):
    as_a: str
    i_want: str
    so_that: str
    acceptance_criteria: List[str]


class Clarification(BaseModel):
    """A single question that would reduce ambiguity in the specification."""
    topic: str
    question: str
    why_it_matters: str


class FunctionalRequirement(BaseModel):
    id: str = Field(..., description="Stable id, e.g. FR-20240101-001")
    statement: str


class Task(BaseModel):
    """An implementation task in the breakdown."""
    id: str = Field(..., description="Stable id, e.g. T-20240101-001")
    title: str
    area: TaskArea
    details: str
    prereqs: List[str] = Field(default_factory=list)
    artifacts: List[str] = Field(default_factory=list)


class Estimation(BaseModel):
    confidence: float = Field(..., ge=0.0, le=1.0)
    complexity: Complexity
    drivers: List[str]
    notes: str


class Risk(BaseModel):
    risk: str
    mitigation: str


class SpecOutput(BaseModel):
    """The full structured specification."""

    input: FeatureInput
    resolved_context: ResolvedContext
    story: UserStory
    needs_clarification: List[Clarification] = Field(default_factory=list)
    assumptions: List[str] = Field(default_factory=list)
    dependencies: List[str] = Field(default_factory=list)
    edge_cases: List[str] = Field(default_factory=list)
    functional_requirements: List[FunctionalRequirement] = Field(default_factory=list)
    tasks: List[Task] = Field(default_factory=list)
    estimation: Estimation
    risks: List[Risk] = Field(default_factory=list)


class PartialSpecOutput(BaseModel):
    """Refinement result: only the top-level fields the model chose to change.

    Absent fields stay unset (see ``model_fields_set``); an explicit null is
    rejected rather than treated as a change.
    """

    input: Optional[FeatureInput] = None
    resolved_context: Optional[ResolvedContext] = None
    story: Optional[UserStory] = None
    needs_clarification: Optional[List[Clarification]] = None
    assumptions: Optional[List[str]] = None
    dependencies: Optional[List[str]] = None
    edge_cases: Optional[List[str]] = None
    functional_requirements: Optional[List[FunctionalRequirement]] = None
    tasks: Optional[List[Task]] = None
    estimation: Optional[Estimation] = None
    risks: Optional[List[Risk]] = None

    @field_validator("*", mode="before")
    @classmethod
    def reject_null(cls, v: Any) -> Any:
        if v is None:
            raise ValueError("field may be omitted but not null")
        return v

    def changed_fields(self) -> dict:
        """Return the explicitly provided fields as a name -> value mapping."""
        return {name: getattr(self, name) for name in self.model_fields_set}


class ClarifyingQuestionSet(BaseModel):
    """Questions asked before drafting when the input is too ambiguous."""

    questions: List[Clarification]
    estimated_confidence: float = Field(..., ge=0.0, le=1.0)


class ClarificationAnswer(BaseModel):
    question: str
    answer: str


class ModelInfo(BaseModel):
    """Which backend produced a result."""

    model: str
    provider: str
    timestamp: datetime = Field(default_factory=datetime.now)
    tokens_used: Optional[int] = None


class GenerationResult(BaseModel):
    """A validated specification with its human-readable summary."""

    model_config = ConfigDict(protected_namespaces=())

    summary: str
    output: SpecOutput
    model_info: ModelInfo
