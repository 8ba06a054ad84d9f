"""JSON-file store implementations.

Each store keeps one JSON document under the workspace directory and rewrites
it on every change. Writes go through a temp file and an atomic rename.

These stores are single-process only. The asyncio lock serializes writers
within one event loop; nothing coordinates separate processes sharing a
workspace. File I/O is synchronous and briefly blocks the loop, which suits
the CLI.
"""

import asyncio
import logging
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Union

from pydantic import TypeAdapter

from config import settings
from contracts import ConfigRecord, ProjectContextVersion
from errors import ContextNotFound

from .base import ConfigurationStore, ContextStore

logger = logging.getLogger(__name__)

_VERSIONS = TypeAdapter(List[ProjectContextVersion])
_RECORDS = TypeAdapter(List[ConfigRecord])


def _atomic_write(path: Path, payload: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + ".tmp")
    tmp.write_bytes(payload)
    tmp.replace(path)


class JsonFileContextStore(ContextStore):
    """Context versions persisted to ``<workspace>/project_contexts.json``."""

    def __init__(self, path: Optional[Union[str, Path]] = None):
        self.path = Path(path) if path else settings.get_workspace_path() / "project_contexts.json"
        self._lock = asyncio.Lock()

    def _load(self) -> List[ProjectContextVersion]:
        if not self.path.exists():
            return []
        return _VERSIONS.validate_json(self.path.read_bytes())

    def _save(self, versions: List[ProjectContextVersion]) -> None:
        _atomic_write(self.path, _VERSIONS.dump_json(versions, indent=2))

    async def get_active_context(self, project_id: str) -> Optional[ProjectContextVersion]:
        for v in self._load():
            if v.project_id == project_id and v.is_active:
                return v
        return None

    async def list_versions(self, project_id: str) -> List[ProjectContextVersion]:
        versions = [v for v in self._load() if v.project_id == project_id]
        return sorted(versions, key=lambda v: v.version)

    async def create_version(self, version: ProjectContextVersion) -> ProjectContextVersion:
        async with self._lock:
            versions = self._load()
            if version.is_active:
                versions = [
                    v.model_copy(update={"is_active": False}) if v.project_id == version.project_id else v
                    for v in versions
                ]
            versions.append(version)
            self._save(versions)
        logger.debug("Stored context v%d for project %s", version.version, version.project_id)
        return version

    async def activate_version(self, version_id: str) -> ProjectContextVersion:
        async with self._lock:
            versions = self._load()
            target = next((v for v in versions if v.id == version_id), None)
            if target is None:
                raise ContextNotFound(version_id=version_id)
            updated = []
            for v in versions:
                if v.project_id == target.project_id:
                    v = v.model_copy(update={"is_active": v.id == version_id})
                updated.append(v)
            self._save(updated)
        return target.model_copy(update={"is_active": True})


class JsonFileConfigurationStore(ConfigurationStore):
    """Configuration records persisted to ``<workspace>/llm_configs.json``."""

    def __init__(self, path: Optional[Union[str, Path]] = None):
        self.path = Path(path) if path else settings.get_workspace_path() / "llm_configs.json"
        self._lock = asyncio.Lock()

    def _load(self) -> List[ConfigRecord]:
        if not self.path.exists():
            return []
        return _RECORDS.validate_json(self.path.read_bytes())

    def _save(self, records: List[ConfigRecord]) -> None:
        _atomic_write(self.path, _RECORDS.dump_json(records, indent=2))

    async def list_configs(self) -> List[ConfigRecord]:
        return self._load()

    async def get_config(self, config_id: str) -> Optional[ConfigRecord]:
        return next((r for r in self._load() if r.id == config_id), None)

    async def upsert_config(self, config_id: str, record: ConfigRecord) -> None:
        async with self._lock:
            records = self._load()
            for i, existing in enumerate(records):
                if existing.id == config_id:
                    records[i] = record.model_copy(
                        update={"created_at": existing.created_at, "updated_at": datetime.now()}
                    )
                    break
            else:
                records.append(record)
            self._save(records)

    async def delete_config(self, config_id: str) -> None:
        async with self._lock:
            records = [r for r in self._load() if r.id != config_id]
            self._save(records)
