"""Lightweight template engine for LLM prompts.

Supports ``{{variable}}``, dotted paths (``{{input.title}}``, ``{{items.0}}``),
the computed ``today_id`` / ``today_date`` variables and
``{{JSON.stringify(var)}}``. Placeholders whose variable is missing are left
in the output verbatim; the validation helpers render with partial contexts
and rely on that.
"""

import json
import logging
import re
from collections import OrderedDict
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from pydantic import BaseModel
from pydantic_core import to_jsonable_python

from errors import TemplateNotFound

from .templates import TEMPLATES

logger = logging.getLogger(__name__)

TemplateContext = Dict[str, Any]

PLACEHOLDER = re.compile(r"\{\{([^}]+)\}\}")
JSON_STRINGIFY = re.compile(r"^JSON\.stringify\((.+)\)$")

_MISSING = object()

# Rendered prompts kept per engine, least recently used evicted first
CACHE_SIZE = 128


def _utc_today() -> date:
    return datetime.now(timezone.utc).date()


def get_nested_value(obj: Any, path: str) -> Any:
    """Resolve a dotted path through dicts, lists and pydantic models."""
    current = obj
    for key in path.split("."):
        if current is None or current is _MISSING:
            return _MISSING
        if isinstance(current, (list, tuple)) and key.isdigit():
            index = int(key)
            current = current[index] if index < len(current) else _MISSING
        elif isinstance(current, dict):
            current = current.get(key, _MISSING)
        elif isinstance(current, BaseModel):
            current = getattr(current, key, _MISSING)
        else:
            return _MISSING
    return current


def _to_text(value: Any) -> str:
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (BaseModel, dict, list)):
        return json.dumps(to_jsonable_python(value), ensure_ascii=False)
    return str(value)


class TemplateEngine:
    """Renders the named prompt templates."""

    def __init__(
        self,
        templates: Optional[Dict[str, str]] = None,
        today: Optional[Callable[[], date]] = None,
    ):
        """Initialize the engine.

        Args:
            templates: Name -> template text; defaults to the built-in four
            today: Clock for the computed date variables (UTC date by default)
        """
        self._templates: Dict[str, str] = dict(templates or TEMPLATES)
        self._today = today or _utc_today
        self._cache: "OrderedDict[str, str]" = OrderedDict()

    def available_templates(self) -> List[str]:
        return list(self._templates.keys())

    def get_template(self, name: str) -> str:
        if name not in self._templates:
            raise TemplateNotFound(name)
        return self._templates[name]

    def render(self, name: str, context: Optional[TemplateContext] = None) -> str:
        """Render a template with the given context.

        Raises:
            TemplateNotFound: If no template has that name
        """
        template = self.get_template(name)
        context = context or {}
        today = self._today()

        cache_key = self._cache_key(name, context, today)
        if cache_key is not None and cache_key in self._cache:
            self._cache.move_to_end(cache_key)
            return self._cache[cache_key]

        rendered = self.interpolate(template, context, today)
        if cache_key is not None:
            self._cache[cache_key] = rendered
            if len(self._cache) > CACHE_SIZE:
                self._cache.popitem(last=False)
        return rendered

    @staticmethod
    def _cache_key(name: str, context: TemplateContext, today: date) -> Optional[str]:
        try:
            payload = json.dumps(to_jsonable_python(context), sort_keys=True)
        except (TypeError, ValueError):
            return None
        return f"{name}:{today.isoformat()}:{payload}"

    def interpolate(self, template: str, context: TemplateContext, today: Optional[date] = None) -> str:
        today = today or self._today()

        def replace(match: re.Match) -> str:
            expression = match.group(1).strip()

            stringify = JSON_STRINGIFY.match(expression)
            if stringify:
                value = get_nested_value(context, stringify.group(1).strip())
                if value is _MISSING:
                    logger.debug("Template variable '%s' not found in context", expression)
                    return match.group(0)
                return json.dumps(to_jsonable_python(value), indent=2, ensure_ascii=False)

            if expression == "today_id":
                return today.strftime("%Y%m%d")
            if expression == "today_date":
                return today.isoformat()

            value = get_nested_value(context, expression)
            if value is _MISSING or value is None:
                logger.debug("Template variable '%s' not found in context", expression)
                return match.group(0)
            return _to_text(value)

        return PLACEHOLDER.sub(replace, template)

    def clear_cache(self) -> None:
        self._cache.clear()

    def validate_template(self, name: str, sample_context: TemplateContext) -> Dict[str, Any]:
        """Check that a template renders; returns ``{"valid": bool, "error"?: str}``."""
        try:
            self.render(name, sample_context)
            return {"valid": True}
        except Exception as e:
            return {"valid": False, "error": str(e)}


# Default instance
template_engine = TemplateEngine()
