"""Configuration settings for Spec Copilot."""

# Load .env into os.environ so the SDKs can fall back to OPENAI_API_KEY etc.
from dotenv import load_dotenv
load_dotenv()

from pydantic_settings import BaseSettings
from pydantic import Field
from pathlib import Path


class Settings(BaseSettings):
    """Global settings for Spec Copilot.

    Settings can be overridden via environment variables with SPEC_COPILOT_ prefix.
    Example: SPEC_COPILOT_AMBIGUITY_THRESHOLD=0.5
    """

    # Completion request defaults
    default_temperature: float = Field(
        default=0.1,
        ge=0.0,
        le=2.0,
        description="Sampling temperature used when the caller does not set one"
    )
    default_max_tokens: int = Field(
        default=4000,
        description="Token budget used when the caller does not set one"
    )
    default_timeout_ms: int = Field(
        default=60000,
        description="Per-call timeout in milliseconds"
    )

    # Clarification gate
    ambiguity_threshold: float = Field(
        default=0.4,
        ge=0.0,
        le=1.0,
        description="Ambiguity score above which clarifying questions are asked first"
    )

    # Default local backend (used when no configuration exists yet)
    local_base_url: str = Field(
        default="http://localhost:1234",
        description="Base URL of the default local OpenAI-compatible server"
    )
    local_model: str = Field(
        default="local-model",
        description="Model identifier for the default local server"
    )

    # Paths
    workspace_dir: str = Field(
        default="./workspace",
        description="Directory for the JSON-file context and configuration stores"
    )
    output_dir: str = Field(
        default="./outputs",
        description="Generated specification output directory"
    )

    # API settings (env: SPEC_COPILOT_<KEY>)
    anthropic_api_key: str = Field(
        default="",
        description="Anthropic API key used by CLI-created configs (env: SPEC_COPILOT_ANTHROPIC_API_KEY)",
    )
    openai_api_key: str = Field(
        default="",
        description="OpenAI API key used by CLI-created configs (env: SPEC_COPILOT_OPENAI_API_KEY)",
    )

    model_config = {
        "env_prefix": "SPEC_COPILOT_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",  # ignore extra env vars (e.g. OPENAI_API_KEY) not in schema
    }

    def get_workspace_path(self) -> Path:
        """Get workspace path as Path object."""
        return Path(self.workspace_dir)

    def get_output_path(self) -> Path:
        """Get output path as Path object."""
        return Path(self.output_dir)

    @property
    def default_timeout_seconds(self) -> float:
        return self.default_timeout_ms / 1000


# Create singleton instance
settings = Settings()
