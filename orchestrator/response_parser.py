"""Extraction of structured JSON from raw LLM text."""

import json
import logging
from typing import Any, Tuple, Type, TypeVar

from pydantic import BaseModel, ValidationError

from errors import NoStructuredOutput, SchemaValidationFailed, violations_from

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)

DEFAULT_SUMMARY = "Generated specification"


def extract_json(text: str) -> Tuple[str, Any]:
    """Split a response into (summary, parsed JSON payload).

    The whole trimmed response is tried first. Failing that, the span from the
    first ``{`` to the last ``}`` is parsed and whatever text precedes it
    becomes the summary.

    Raises:
        NoStructuredOutput: If no braces are present or the span is not JSON
    """
    trimmed = text.strip()
    try:
        return DEFAULT_SUMMARY, json.loads(trimmed)
    except json.JSONDecodeError:
        pass

    start = trimmed.find("{")
    end = trimmed.rfind("}")
    if start == -1 or end < start:
        logger.error("No JSON object found in response (%d chars)", len(trimmed))
        raise NoStructuredOutput(trimmed)

    summary = trimmed[:start].strip() or DEFAULT_SUMMARY
    try:
        payload = json.loads(trimmed[start:end + 1])
    except json.JSONDecodeError as e:
        logger.error("Extracted JSON block failed to parse: %s", e)
        raise NoStructuredOutput(trimmed, reason=f"Failed to parse extracted JSON: {e}") from e
    return summary, payload


def parse_structured_response(text: str, schema: Type[T]) -> Tuple[str, T]:
    """Extract JSON from a response and validate it against ``schema``.

    Raises:
        NoStructuredOutput: If no JSON can be extracted
        SchemaValidationFailed: If the payload does not satisfy the schema
    """
    summary, payload = extract_json(text)
    try:
        return summary, schema.model_validate(payload)
    except ValidationError as e:
        violations = violations_from(e)
        logger.warning("%s failed validation with %d violation(s)", schema.__name__, len(violations))
        raise SchemaValidationFailed(violations) from e
