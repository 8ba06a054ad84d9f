"""Factory for creating LLM adapters from provider configurations."""

from typing import Any, Dict, Type, Union

from pydantic import ValidationError

from contracts import PROVIDER_CONFIG_ADAPTER, ProviderConfig
from errors import InvalidConfiguration

from .base import LLMAdapter
from .anthropic_provider import AnthropicAdapter
from .openai_provider import OpenAIAdapter, LMStudioAdapter
from .ollama_provider import OllamaAdapter


# Registry of adapters keyed by the config's provider tag
ADAPTERS: Dict[str, Type[LLMAdapter]] = {
    "openai": OpenAIAdapter,
    "anthropic": AnthropicAdapter,
    "lmstudio": LMStudioAdapter,
    "ollama": OllamaAdapter,
}

# Cloud-hosted providers that cannot work without a credential
CREDENTIAL_PROVIDERS = {"openai", "anthropic"}


def parse_config(data: Union[ProviderConfig, Dict[str, Any]]) -> ProviderConfig:
    """Validate raw config data against its provider-specific schema.

    Raises:
        InvalidConfiguration: If the data matches no provider schema
    """
    if not isinstance(data, dict):
        data = data.model_dump()
    try:
        return PROVIDER_CONFIG_ADAPTER.validate_python(data)
    except ValidationError as e:
        errors = [
            f"{'.'.join(str(p) for p in err['loc']) or 'config'}: {err['msg']}"
            for err in e.errors()
        ]
        raise InvalidConfiguration(errors) from e


def create_adapter(config: ProviderConfig) -> LLMAdapter:
    """Build the adapter for a configuration.

    Examples:
        create_adapter(OpenAIConfig(api_key="sk-...", model="gpt-4o"))
        create_adapter(OllamaConfig(base_url="http://localhost:11434", model="llama3"))
    """
    adapter_class = ADAPTERS.get(config.provider)
    if adapter_class is None:
        raise ValueError(
            f"Unsupported LLM provider: {config.provider}. "
            f"Available: {list(ADAPTERS.keys())}"
        )
    return adapter_class(config)


def requires_credential(config: ProviderConfig) -> bool:
    """True for cloud-hosted providers that need an API key."""
    return config.provider in CREDENTIAL_PROVIDERS
