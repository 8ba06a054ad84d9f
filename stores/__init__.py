"""Context and configuration store collaborators."""

from .base import ContextStore, ConfigurationStore
from .memory import InMemoryContextStore, InMemoryConfigurationStore
from .json_file import JsonFileContextStore, JsonFileConfigurationStore

__all__ = [
    "ContextStore",
    "ConfigurationStore",
    "InMemoryContextStore",
    "InMemoryConfigurationStore",
    "JsonFileContextStore",
    "JsonFileConfigurationStore",
]
