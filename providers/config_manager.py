"""Configuration manager for LLM backends.

Owns the known provider configurations, the id of the active one, and a lazy
per-configuration adapter cache. State is loaded from a ConfigurationStore on
first use; concurrent first calls share one in-flight initialization.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional, Tuple, Union

from config import settings
from contracts import (
    AnthropicConfig,
    ConfigRecord,
    ConfigSummary,
    ConfigValidation,
    LMStudioConfig,
    OllamaConfig,
    OpenAIConfig,
    ProviderConfig,
)
from errors import ConfigurationNotFound, InvalidConfiguration, NoActiveConfiguration
from stores import ConfigurationStore

from .base import LLMAdapter
from .factory import create_adapter, parse_config, requires_credential

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_ID = "lmstudio-local"


# Predefined configurations for common backends
PREDEFINED_CONFIGS: Dict[str, ProviderConfig] = {
    "anthropic-claude-sonnet-4": AnthropicConfig(
        model="claude-sonnet-4-20250514",
        api_key="",  # To be filled by user
    ),
    "openai-gpt-4o": OpenAIConfig(
        model="gpt-4o",
        api_key="",  # To be filled by user
    ),
    DEFAULT_CONFIG_ID: LMStudioConfig(
        base_url=settings.local_base_url,
        model=settings.local_model,
    ),
    "ollama-llama3": OllamaConfig(
        base_url="http://localhost:11434",
        model="llama3",
    ),
}


def display_name(config_id: str, config: ProviderConfig) -> str:
    """Human-readable label for a configuration."""
    if config.provider == "openai":
        return f"OpenAI {config.model}"
    if config.provider == "anthropic":
        return f"Anthropic {config.model}"
    if config.provider == "lmstudio":
        return f"LM Studio ({config.model or 'local'})"
    if config.provider == "ollama":
        return f"Ollama {config.model}"
    return config_id


class ConfigurationManager:
    """Tracks provider configurations, the active one, and cached adapters.

    Construct one per process and pass it to the orchestrator; every public
    coroutine awaits ``initialize()`` first.
    """

    def __init__(self, store: ConfigurationStore):
        """Initialize the manager.

        Args:
            store: Backing store the configurations are loaded from and mirrored to
        """
        self.store = store
        self._configs: Dict[str, ProviderConfig] = {}
        self._adapters: Dict[str, LLMAdapter] = {}
        self._active_id: Optional[str] = None
        self._initialized = False
        self._init_task: Optional[asyncio.Task] = None

    @property
    def active_id(self) -> Optional[str]:
        return self._active_id

    async def initialize(self) -> None:
        """Load configurations once; late callers await the same in-flight load."""
        if self._initialized:
            return
        if self._init_task is None:
            self._init_task = asyncio.ensure_future(self._load_configurations())
        try:
            await asyncio.shield(self._init_task)
        except Exception:
            # Let the next caller try again
            self._init_task = None
            raise
        self._initialized = True

    async def _load_configurations(self) -> None:
        try:
            records = await self.store.list_configs()
        except Exception as e:
            logger.warning("Failed to load LLM configurations from store: %s", e)
            records = []

        for record in records:
            try:
                config = parse_config(record.config)
            except InvalidConfiguration as e:
                logger.warning("Invalid configuration for %s: %s", record.id, e)
                continue
            self._configs[record.id] = config
            if record.is_active:
                self._active_id = record.id

        if not self._configs:
            await self._add_default_configuration()

    async def _add_default_configuration(self) -> None:
        default = PREDEFINED_CONFIGS[DEFAULT_CONFIG_ID]
        self._configs[DEFAULT_CONFIG_ID] = default
        self._active_id = DEFAULT_CONFIG_ID
        logger.info("No LLM configurations found; using default %s", DEFAULT_CONFIG_ID)
        try:
            await self.store.upsert_config(
                DEFAULT_CONFIG_ID,
                ConfigRecord(id=DEFAULT_CONFIG_ID, config=default.model_dump(), is_active=True),
            )
        except Exception as e:
            logger.error("Failed to persist default LLM configuration: %s", e)

    async def _save_record(self, config_id: str, config: ProviderConfig, is_active: bool) -> None:
        await self.store.upsert_config(
            config_id,
            ConfigRecord(id=config_id, config=config.model_dump(), is_active=is_active),
        )

    async def add_configuration(
        self,
        config_id: str,
        config: Union[ProviderConfig, Dict[str, Any]],
    ) -> ProviderConfig:
        """Validate and store a configuration, replacing any with the same id.

        Raises:
            InvalidConfiguration: If the config does not match its provider schema
        """
        await self.initialize()
        validated = parse_config(config)
        self._configs[config_id] = validated
        await self._evict_adapter(config_id)
        await self._save_record(config_id, validated, is_active=config_id == self._active_id)
        return validated

    async def remove_configuration(self, config_id: str) -> None:
        """Remove a configuration; the active one is replaced by the first remaining."""
        await self.initialize()
        self._configs.pop(config_id, None)
        await self._evict_adapter(config_id)
        await self.store.delete_config(config_id)

        if self._active_id == config_id:
            remaining = next(iter(self._configs), None)
            if remaining is not None:
                await self.set_active(remaining)
            else:
                self._active_id = None

    async def _evict_adapter(self, config_id: str) -> None:
        adapter = self._adapters.pop(config_id, None)
        if adapter is not None:
            await adapter.close()

    async def aclose(self) -> None:
        """Close every cached adapter. The manager stays usable; adapters are rebuilt on demand."""
        for config_id in list(self._adapters):
            await self._evict_adapter(config_id)

    async def get_all_configurations(self) -> List[ConfigSummary]:
        await self.initialize()
        return [
            ConfigSummary(
                id=config_id,
                name=display_name(config_id, config),
                provider=config.provider,
                model=config.model or "default",
            )
            for config_id, config in self._configs.items()
        ]

    async def get_configuration(self, config_id: str) -> Optional[ProviderConfig]:
        await self.initialize()
        return self._configs.get(config_id)

    async def set_active(self, config_id: str) -> None:
        """Make ``config_id`` the only active configuration.

        The store is updated first (others deactivated, then the target
        activated); the in-memory pointer moves last.

        Raises:
            ConfigurationNotFound: If the id is unknown; the active id is unchanged
        """
        await self.initialize()
        if config_id not in self._configs:
            raise ConfigurationNotFound(config_id)

        for record in await self.store.list_configs():
            if record.is_active and record.id != config_id:
                await self.store.upsert_config(
                    record.id, record.model_copy(update={"is_active": False})
                )
        await self._save_record(config_id, self._configs[config_id], is_active=True)
        self._active_id = config_id
        logger.info("Active LLM configuration: %s", config_id)

    async def get_active_configuration(self) -> Optional[Tuple[str, ProviderConfig]]:
        await self.initialize()
        if not self._active_id or self._active_id not in self._configs:
            return None
        return self._active_id, self._configs[self._active_id]

    async def get_adapter(self, config_id: Optional[str] = None) -> LLMAdapter:
        """Return the cached adapter for a configuration (active one by default).

        Raises:
            NoActiveConfiguration: If no id is given and none is active
            ConfigurationNotFound: If the id is unknown
        """
        await self.initialize()
        target = config_id or self._active_id
        if not target:
            raise NoActiveConfiguration()
        config = self._configs.get(target)
        if config is None:
            raise ConfigurationNotFound(target)

        adapter = self._adapters.get(target)
        if adapter is None:
            adapter = create_adapter(config)
            self._adapters[target] = adapter
        return adapter

    async def test_configuration(self, config_id: str) -> Dict[str, Any]:
        """Run an adapter connection test; never raises."""
        try:
            adapter = await self.get_adapter(config_id)
            return {"success": await adapter.test_connection()}
        except Exception as e:
            return {"success": False, "error": str(e)}

    def create_from_template(self, template_id: str, **customizations: Any) -> ProviderConfig:
        """Build a configuration from a predefined template.

        Raises:
            KeyError: If the template id is unknown
            InvalidConfiguration: If the customized config is invalid
        """
        template = PREDEFINED_CONFIGS.get(template_id)
        if template is None:
            raise KeyError(f"Template {template_id} not found")
        return parse_config({**template.model_dump(), **customizations})

    async def import_configuration(self, config_id: str, data: Dict[str, Any]) -> ProviderConfig:
        return await self.add_configuration(config_id, data)

    def export_configuration(self, config_id: str) -> Optional[ProviderConfig]:
        return self._configs.get(config_id)

    def requires_credential(self, config: ProviderConfig) -> bool:
        return requires_credential(config)

    def get_configurations_requiring_credentials(self) -> List[str]:
        return [cid for cid, config in self._configs.items() if requires_credential(config)]

    def validate_all(self) -> List[ConfigValidation]:
        """Check every configuration offline: schema shape and required credentials."""
        results = []
        for config_id, config in self._configs.items():
            try:
                parse_config(config.model_dump())
            except InvalidConfiguration:
                results.append(ConfigValidation(id=config_id, valid=False, errors=["Invalid configuration format"]))
                continue
            errors = []
            if requires_credential(config) and not getattr(config, "api_key", ""):
                errors.append("API key is required")
            results.append(ConfigValidation(id=config_id, valid=not errors, errors=errors))
        return results
