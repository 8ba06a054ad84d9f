"""LLM adapter layer for multi-backend support."""

from .base import LLMAdapter, LLMMessage, LLMModelInfo, LLMRequestOptions, LLMResponse, LLMUsage
from .factory import create_adapter, parse_config, requires_credential
from .config_manager import ConfigurationManager, PREDEFINED_CONFIGS, DEFAULT_CONFIG_ID

__all__ = [
    "LLMAdapter",
    "LLMMessage",
    "LLMModelInfo",
    "LLMRequestOptions",
    "LLMResponse",
    "LLMUsage",
    "create_adapter",
    "parse_config",
    "requires_credential",
    "ConfigurationManager",
    "PREDEFINED_CONFIGS",
    "DEFAULT_CONFIG_ID",
]
