"""In-memory store implementations (tests and single-process use)."""

import asyncio
from datetime import datetime
from typing import Dict, List, Optional

from contracts import ConfigRecord, ProjectContextVersion
from errors import ContextNotFound

from .base import ConfigurationStore, ContextStore


class InMemoryContextStore(ContextStore):
    """Context versions kept in a dict keyed by version id."""

    def __init__(self):
        self._versions: Dict[str, ProjectContextVersion] = {}
        self._lock = asyncio.Lock()

    def _project_versions(self, project_id: str) -> List[ProjectContextVersion]:
        return [v for v in self._versions.values() if v.project_id == project_id]

    def _deactivate_project(self, project_id: str) -> None:
        for v in self._project_versions(project_id):
            if v.is_active:
                self._versions[v.id] = v.model_copy(update={"is_active": False})

    async def get_active_context(self, project_id: str) -> Optional[ProjectContextVersion]:
        for v in self._project_versions(project_id):
            if v.is_active:
                return v
        return None

    async def list_versions(self, project_id: str) -> List[ProjectContextVersion]:
        return sorted(self._project_versions(project_id), key=lambda v: v.version)

    async def create_version(self, version: ProjectContextVersion) -> ProjectContextVersion:
        async with self._lock:
            if version.is_active:
                self._deactivate_project(version.project_id)
            self._versions[version.id] = version
        return version

    async def activate_version(self, version_id: str) -> ProjectContextVersion:
        async with self._lock:
            target = self._versions.get(version_id)
            if target is None:
                raise ContextNotFound(version_id=version_id)
            self._deactivate_project(target.project_id)
            activated = target.model_copy(update={"is_active": True})
            self._versions[version_id] = activated
        return activated


class InMemoryConfigurationStore(ConfigurationStore):
    """Configuration records kept in an insertion-ordered dict."""

    def __init__(self, records: Optional[List[ConfigRecord]] = None):
        self._records: Dict[str, ConfigRecord] = {r.id: r for r in records or []}

    async def list_configs(self) -> List[ConfigRecord]:
        return list(self._records.values())

    async def get_config(self, config_id: str) -> Optional[ConfigRecord]:
        return self._records.get(config_id)

    async def upsert_config(self, config_id: str, record: ConfigRecord) -> None:
        existing = self._records.get(config_id)
        if existing is not None:
            record = record.model_copy(
                update={"created_at": existing.created_at, "updated_at": datetime.now()}
            )
        self._records[config_id] = record

    async def delete_config(self, config_id: str) -> None:
        self._records.pop(config_id, None)
