"""Provider configuration contracts.

ProviderConfig is a discriminated union on ``provider``; each variant carries
exactly the fields its backend needs.
"""

from datetime import datetime
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter


class OpenAIConfig(BaseModel):
    """OpenAI or any OpenAI-compatible cloud endpoint."""
    provider: Literal["openai"] = "openai"
    api_key: str
    model: str
    base_url: Optional[str] = None
    organization_id: Optional[str] = None


class AnthropicConfig(BaseModel):
    """Anthropic Messages API."""
    provider: Literal["anthropic"] = "anthropic"
    api_key: str
    model: str
    base_url: Optional[str] = None


class LMStudioConfig(BaseModel):
    """Local OpenAI-compatible inference server (LM Studio)."""
    provider: Literal["lmstudio"] = "lmstudio"
    base_url: str
    model: Optional[str] = None


class OllamaConfig(BaseModel):
    """Local server exposing a single-prompt generate endpoint (Ollama)."""
    provider: Literal["ollama"] = "ollama"
    base_url: str
    model: str


ProviderConfig = Annotated[
    Union[OpenAIConfig, AnthropicConfig, LMStudioConfig, OllamaConfig],
    Field(discriminator="provider"),
]

PROVIDER_CONFIG_ADAPTER: TypeAdapter = TypeAdapter(ProviderConfig)


class ConfigRecord(BaseModel):
    """Stored form of a provider configuration.

    ``config`` is kept as raw JSON so that records written by an older or
    broken client can still be listed and skipped.
    """

    id: str
    config: dict
    is_active: bool = False
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)


class ConfigSummary(BaseModel):
    """Display row for a known configuration."""
    id: str
    name: str
    provider: str
    model: str


class ConfigValidation(BaseModel):
    """Offline validation result for one configuration."""
    id: str
    valid: bool
    errors: List[str] = Field(default_factory=list)
