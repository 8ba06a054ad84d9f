"""Pydantic contracts for Spec Copilot.

Every value handed between pipeline stages is typed through these contracts.
"""

from .input_contracts import (
    InputContext,
    FeatureInput,
)

from .context_contracts import (
    DEFAULT_ENVS,
    DEFAULT_PROJECT_CONTEXT,
    Stakeholder,
    ApiEndpoint,
    DataModelField,
    DataModel,
    ResolvedContext,
    ProjectContextVersion,
    FieldDiff,
    ContextHistoryEntry,
    ContextValidationReport,
    ContextPreview,
)

from .spec_contracts import (
    GenerationMode,
    TaskArea,
    Complexity,
    UserStory,
    Clarification,
    FunctionalRequirement,
    Task,
    Estimation,
    Risk,
    SpecOutput,
    PartialSpecOutput,
    ClarifyingQuestionSet,
    ClarificationAnswer,
    ModelInfo,
    GenerationResult,
)

from .provider_contracts import (
    OpenAIConfig,
    AnthropicConfig,
    LMStudioConfig,
    OllamaConfig,
    ProviderConfig,
    PROVIDER_CONFIG_ADAPTER,
    ConfigRecord,
    ConfigSummary,
    ConfigValidation,
)

__all__ = [
    # Input
    "InputContext",
    "FeatureInput",
    # Context
    "DEFAULT_ENVS",
    "DEFAULT_PROJECT_CONTEXT",
    "Stakeholder",
    "ApiEndpoint",
    "DataModelField",
    "DataModel",
    "ResolvedContext",
    "ProjectContextVersion",
    "FieldDiff",
    "ContextHistoryEntry",
    "ContextValidationReport",
    "ContextPreview",
    # Spec
    "GenerationMode",
    "TaskArea",
    "Complexity",
    "UserStory",
    "Clarification",
    "FunctionalRequirement",
    "Task",
    "Estimation",
    "Risk",
    "SpecOutput",
    "PartialSpecOutput",
    "ClarifyingQuestionSet",
    "ClarificationAnswer",
    "ModelInfo",
    "GenerationResult",
    # Providers
    "OpenAIConfig",
    "AnthropicConfig",
    "LMStudioConfig",
    "OllamaConfig",
    "ProviderConfig",
    "PROVIDER_CONFIG_ADAPTER",
    "ConfigRecord",
    "ConfigSummary",
    "ConfigValidation",
]
