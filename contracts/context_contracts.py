"""Project context contracts.

ResolvedContext is the canonical merged context handed to the model. Project
contexts are versioned: each change creates a new ProjectContextVersion.
"""

import uuid
from datetime import datetime
from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field


DEFAULT_ENVS = ["local", "dev", "test", "prod"]


class Stakeholder(BaseModel):
    """A person or group with an interest in the project."""

    model_config = ConfigDict(frozen=True)

    name: str
    role: str
    interests: List[str]


class ApiEndpoint(BaseModel):
    """An existing API the feature may integrate with."""

    model_config = ConfigDict(
        frozen=True,
        validate_by_name=True,
        validate_by_alias=True,
        serialize_by_alias=True,
    )

    name: str
    base_url: str = Field(alias="baseUrl")
    endpoints: List[str]


class DataModelField(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    type: str


class DataModel(BaseModel):
    """An entity in the project's data-model catalog."""

    model_config = ConfigDict(frozen=True)

    entity: str
    fields: List[DataModelField]


class ResolvedContext(BaseModel):
    """Merged project + feature context passed to the model."""

    model_config = ConfigDict(frozen=True)

    glossary: Dict[str, str] = Field(default_factory=dict, description="Term -> definition")
    stakeholders: List[Stakeholder] = Field(default_factory=list)
    constraints: List[str] = Field(default_factory=list)
    non_functional: List[str] = Field(default_factory=list)
    api_catalog: List[ApiEndpoint] = Field(default_factory=list)
    data_models: List[DataModel] = Field(default_factory=list)
    envs: List[str] = Field(default_factory=lambda: list(DEFAULT_ENVS))
    labels: Dict[str, str] = Field(default_factory=dict)


# Returned for projects that have no stored context yet
DEFAULT_PROJECT_CONTEXT = ResolvedContext()


class ProjectContextVersion(BaseModel):
    """One immutable version of a project's default context."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    project_id: str
    context: ResolvedContext
    version: int = Field(..., ge=1)
    is_active: bool = False
    created_at: datetime = Field(default_factory=datetime.now)


class FieldDiff(BaseModel):
    """Before/after values of one context field."""

    previous: Any = None
    current: Any = None


class ContextHistoryEntry(BaseModel):
    """A context version annotated with its diff against the previous version."""

    version: ProjectContextVersion
    diff: Dict[str, FieldDiff] = Field(default_factory=dict)
    is_current: bool = False


class ContextValidationReport(BaseModel):
    """Completeness check of a resolved context."""

    is_valid: bool
    warnings: List[str] = Field(default_factory=list)
    suggestions: List[str] = Field(default_factory=list)


class ContextPreview(BaseModel):
    """Resolved context together with where its parts came from."""

    resolved: ResolvedContext
    inherited_from_project: ResolvedContext
    feature_overrides: Dict[str, Any] = Field(default_factory=dict)
