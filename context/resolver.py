"""Project context resolution and versioning.

A project carries a versioned default context. A feature's own context is
merged over the active version at generation time:

1. feature stakeholder names missing from the project are appended with a
   placeholder role
2. constraints and non-functional requirements are unioned, first-seen order
3. explicit ``overrides`` are deep-merged last and win every conflict
"""

import asyncio
import json
import logging
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from contracts import (
    DEFAULT_PROJECT_CONTEXT,
    ContextHistoryEntry,
    ContextPreview,
    ContextValidationReport,
    FieldDiff,
    InputContext,
    ProjectContextVersion,
    ResolvedContext,
)
from errors import ContextNotFound, SchemaValidationFailed, violations_from
from stores import ContextStore

logger = logging.getLogger(__name__)

PLACEHOLDER_ROLE = "Stakeholder"


def deep_merge(target: Dict[str, Any], source: Dict[str, Any]) -> Dict[str, Any]:
    """Merge ``source`` into a copy of ``target``.

    Lists replace wholesale, dicts merge key by key, scalars replace. None
    values in ``source`` are ignored.
    """
    result = dict(target)
    for key, value in source.items():
        if value is None:
            continue
        if isinstance(value, dict):
            existing = result.get(key)
            result[key] = deep_merge(existing if isinstance(existing, dict) else {}, value)
        elif isinstance(value, list):
            result[key] = list(value)
        else:
            result[key] = value
    return result


def ordered_union(*lists: List[str]) -> List[str]:
    """Exact-match set union that keeps first-seen order."""
    seen = set()
    merged = []
    for items in lists:
        for item in items:
            if item not in seen:
                seen.add(item)
                merged.append(item)
    return merged


def calculate_diff(previous: ResolvedContext, current: ResolvedContext) -> Dict[str, FieldDiff]:
    """Field-level diff; a field differs when its serialized value differs."""
    before = previous.model_dump(mode="json")
    after = current.model_dump(mode="json")
    diff = {}
    for key in after:
        if json.dumps(before.get(key), sort_keys=True) != json.dumps(after[key], sort_keys=True):
            diff[key] = FieldDiff(previous=before.get(key), current=after[key])
    return diff


def _validate_context(data: Dict[str, Any]) -> ResolvedContext:
    try:
        return ResolvedContext.model_validate(data)
    except ValidationError as e:
        raise SchemaValidationFailed(violations_from(e)) from e


class ProjectContextService:
    """Resolves and versions project contexts over a ContextStore."""

    def __init__(self, store: ContextStore):
        self.store = store
        self._write_lock = asyncio.Lock()

    async def get_project_defaults(self, project_id: str) -> ResolvedContext:
        """Active context of a project, or the empty default if none is stored."""
        active = await self.store.get_active_context(project_id)
        if active is None:
            logger.debug("Project %s has no context yet; using defaults", project_id)
            return DEFAULT_PROJECT_CONTEXT
        return active.context

    async def resolve(
        self,
        project_id: str,
        feature_context: Optional[InputContext] = None,
    ) -> ResolvedContext:
        """Merge the project's active context with a feature context.

        Args:
            project_id: Project whose active context is the base
            feature_context: Feature-level context; ignored when absent or
                when ``inherit_from_project`` is false

        Returns:
            A new ResolvedContext; the stored version is never modified

        Raises:
            SchemaValidationFailed: If the overrides produce an invalid context
        """
        defaults = await self.get_project_defaults(project_id)
        if feature_context is None or not feature_context.inherit_from_project:
            return defaults

        data = defaults.model_dump()

        if feature_context.stakeholders:
            known = {s["name"] for s in data["stakeholders"]}
            for name in feature_context.stakeholders:
                if name not in known:
                    known.add(name)
                    data["stakeholders"].append({"name": name, "role": PLACEHOLDER_ROLE, "interests": []})

        if feature_context.constraints:
            data["constraints"] = ordered_union(data["constraints"], feature_context.constraints)

        if feature_context.non_functional:
            data["non_functional"] = ordered_union(data["non_functional"], feature_context.non_functional)

        if feature_context.overrides:
            data = deep_merge(data, feature_context.overrides)

        return _validate_context(data)

    async def create_version(
        self,
        project_id: str,
        context: ResolvedContext,
        activate: bool = False,
    ) -> ProjectContextVersion:
        """Append version max+1 (or 1); activating deactivates all others first."""
        async with self._write_lock:
            existing = await self.store.list_versions(project_id)
            next_version = max((v.version for v in existing), default=0) + 1
            created = await self.store.create_version(
                ProjectContextVersion(
                    project_id=project_id,
                    context=context,
                    version=next_version,
                    is_active=activate,
                )
            )
        logger.info("Created context v%d for project %s (active=%s)", next_version, project_id, activate)
        return created

    async def update_context(self, project_id: str, updates: Dict[str, Any]) -> ProjectContextVersion:
        """Deep-merge updates over the active context as a new active version.

        Raises:
            ContextNotFound: If the project has no active context
        """
        active = await self.store.get_active_context(project_id)
        if active is None:
            raise ContextNotFound(project_id)
        merged = _validate_context(deep_merge(active.context.model_dump(), updates))
        return await self.create_version(project_id, merged, activate=True)

    async def activate_version(self, version_id: str) -> ProjectContextVersion:
        return await self.store.activate_version(version_id)

    async def history(self, project_id: str) -> List[ContextHistoryEntry]:
        """Versions in ascending order, each diffed against its predecessor."""
        versions = sorted(await self.store.list_versions(project_id), key=lambda v: v.version)
        entries = []
        previous: Optional[ProjectContextVersion] = None
        for version in versions:
            diff = calculate_diff(previous.context, version.context) if previous else {}
            entries.append(ContextHistoryEntry(version=version, diff=diff, is_current=version.is_active))
            previous = version
        return entries

    async def preview(self, project_id: str, feature_context: InputContext) -> ContextPreview:
        """Resolve without saving, showing what was inherited and what was overridden."""
        defaults = await self.get_project_defaults(project_id)
        resolved = await self.resolve(project_id, feature_context)
        return ContextPreview(
            resolved=resolved,
            inherited_from_project=defaults,
            feature_overrides=dict(feature_context.overrides),
        )

    def validate_context(self, context: ResolvedContext) -> ContextValidationReport:
        """Report missing pieces of a context; valid iff there are no warnings."""
        warnings = []
        suggestions = []

        if not context.glossary:
            suggestions.append("Consider adding domain terms to the glossary")
        if not context.stakeholders:
            warnings.append("No stakeholders defined - this may lead to unclear requirements")
        if not context.constraints:
            suggestions.append("Consider adding technical or business constraints")
        if not context.non_functional:
            suggestions.append("Consider adding non-functional requirements (performance, security, etc.)")
        if not context.api_catalog:
            suggestions.append("Consider documenting existing APIs and services")

        incomplete = [s for s in context.stakeholders if not s.role or not s.interests]
        if incomplete:
            warnings.append(f"{len(incomplete)} stakeholder(s) missing role or interests")

        return ContextValidationReport(is_valid=not warnings, warnings=warnings, suggestions=suggestions)

    async def import_context(self, project_id: str, source: str, data: Any) -> ResolvedContext:
        """Import a context from an external source as a new inactive version.

        Only ``json`` is supported; ``jira`` and ``confluence`` are not implemented.
        """
        if source == "json":
            context = _validate_context(data if isinstance(data, dict) else json.loads(data))
            created = await self.create_version(project_id, context, activate=False)
            return created.context
        if source in ("jira", "confluence"):
            raise NotImplementedError(f"{source.capitalize()} import not yet implemented")
        raise ValueError(f"Unknown import source: {source}")
