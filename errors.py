"""Exception taxonomy for Spec Copilot.

Adapter-level errors propagate unchanged to the orchestrator, which wraps them
in SpecGenerationFailed while keeping the original exception on ``cause``.
"""

from typing import Any, Dict, List, Optional


class SpecCopilotError(Exception):
    """Base class for all Spec Copilot errors."""


class ConfigurationNotFound(SpecCopilotError):
    """Raised when a provider configuration id is unknown."""

    def __init__(self, config_id: str):
        self.config_id = config_id
        super().__init__(f"Configuration {config_id} not found")


class NoActiveConfiguration(SpecCopilotError):
    """Raised when an adapter is requested but no configuration is active."""

    def __init__(self):
        super().__init__("No active LLM configuration")


class InvalidConfiguration(SpecCopilotError):
    """Raised when a configuration does not match its provider schema."""

    def __init__(self, errors: List[str]):
        self.errors = errors
        super().__init__(f"Invalid configuration: {'; '.join(errors)}")


class RequestTimeout(SpecCopilotError):
    """Raised when a completion call exceeds its timeout."""

    def __init__(self, timeout_ms: int, provider: Optional[str] = None):
        self.timeout_ms = timeout_ms
        self.provider = provider
        label = f"{provider} request" if provider else "Request"
        super().__init__(f"{label} timed out after {timeout_ms} ms")


class ProviderError(SpecCopilotError):
    """Raised when a backend answers with a non-2xx status or cannot be reached.

    ``status`` is None when no HTTP response was received.
    """

    def __init__(self, status: Optional[int], body: str, provider: Optional[str] = None):
        self.status = status
        self.body = body
        self.provider = provider
        label = f"{provider} API error" if provider else "API error"
        if status is None:
            super().__init__(f"{label}: {body}")
        else:
            super().__init__(f"{label}: {status} - {body}")


class NoStructuredOutput(SpecCopilotError):
    """Raised when no JSON object can be recovered from a model response."""

    def __init__(self, raw: str, reason: str = "No valid JSON found in LLM response"):
        self.raw = raw
        super().__init__(reason)


class SchemaValidationFailed(SpecCopilotError):
    """Raised when parsed JSON does not match the expected schema."""

    def __init__(self, violations: List[Dict[str, Any]]):
        self.violations = violations
        fields = ", ".join(v["field"] for v in violations) or "<root>"
        super().__init__(f"Schema validation failed for: {fields}")


class ContextNotFound(SpecCopilotError):
    """Raised when a project has no active context, or a version id is unknown."""

    def __init__(self, project_id: Optional[str] = None, version_id: Optional[str] = None):
        self.project_id = project_id
        self.version_id = version_id
        if version_id is not None:
            super().__init__(f"Context version {version_id} not found")
        else:
            super().__init__(f"No active context found for project {project_id}")


class TemplateNotFound(SpecCopilotError):
    """Raised when rendering an unknown prompt template."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Template '{name}' not found")


class SpecGenerationFailed(SpecCopilotError):
    """Wraps any failure of a generate/clarify/refine operation."""

    MESSAGES = {
        "generate": "Failed to generate specification",
        "clarify": "Failed to generate clarifying questions",
        "refine": "Failed to refine specification",
    }

    def __init__(self, operation: str, cause: BaseException):
        self.operation = operation
        self.cause = cause
        prefix = self.MESSAGES.get(operation, f"Failed to {operation}")
        super().__init__(f"{prefix}: {cause}")


class InvalidFlowTransition(SpecCopilotError):
    """Raised when a generation flow is driven from the wrong state."""

    def __init__(self, state: str, action: str):
        self.state = state
        self.action = action
        super().__init__(f"Cannot {action} while flow is {state}")


def violations_from(error: Any) -> List[Dict[str, Any]]:
    """Flatten a pydantic ValidationError into ``{field, message}`` records."""
    return [
        {
            "field": ".".join(str(part) for part in err["loc"]) or "<root>",
            "message": err["msg"],
        }
        for err in error.errors()
    ]
