"""Project context resolution and versioning."""

from .resolver import (
    ProjectContextService,
    PLACEHOLDER_ROLE,
    calculate_diff,
    deep_merge,
    ordered_union,
)

__all__ = [
    "ProjectContextService",
    "PLACEHOLDER_ROLE",
    "calculate_diff",
    "deep_merge",
    "ordered_union",
]
