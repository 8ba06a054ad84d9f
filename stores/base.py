"""Store collaborator interfaces.

The pipeline only talks to storage through these two abstract stores. Every
method is a coroutine: store access is a suspension point.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from contracts import ConfigRecord, ProjectContextVersion


class ContextStore(ABC):
    """Append-only storage of project context versions."""

    @abstractmethod
    async def get_active_context(self, project_id: str) -> Optional[ProjectContextVersion]:
        """Return the active version for a project, or None."""
        pass

    @abstractmethod
    async def list_versions(self, project_id: str) -> List[ProjectContextVersion]:
        pass

    @abstractmethod
    async def create_version(self, version: ProjectContextVersion) -> ProjectContextVersion:
        """Append a version.

        If ``version.is_active`` is set, every other version of the project is
        deactivated before the new one is written.
        """
        pass

    @abstractmethod
    async def activate_version(self, version_id: str) -> ProjectContextVersion:
        """Deactivate the project's other versions, then activate this one.

        Raises:
            ContextNotFound: If the version id is unknown
        """
        pass


class ConfigurationStore(ABC):
    """Key-value storage of provider configuration records."""

    @abstractmethod
    async def list_configs(self) -> List[ConfigRecord]:
        pass

    @abstractmethod
    async def get_config(self, config_id: str) -> Optional[ConfigRecord]:
        pass

    @abstractmethod
    async def upsert_config(self, config_id: str, record: ConfigRecord) -> None:
        pass

    @abstractmethod
    async def delete_config(self, config_id: str) -> None:
        pass
