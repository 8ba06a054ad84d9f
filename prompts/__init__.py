"""Prompt templates, the template engine and its validation helpers."""

from .engine import TemplateEngine, TemplateContext, template_engine, get_nested_value
from .validation import (
    SAMPLE_CONTEXTS,
    extract_template_variables,
    validate_template_context,
    validate_all_templates,
    test_template_render,
)


class TemplateNames:
    """Names of the built-in templates."""
    SYSTEM = "system"
    SPEC_GENERATION = "spec-generation"
    CLARIFYING_QUESTIONS = "clarifying-questions"
    REFINE_SPEC = "refine-spec"


__all__ = [
    "TemplateEngine",
    "TemplateContext",
    "TemplateNames",
    "template_engine",
    "get_nested_value",
    "SAMPLE_CONTEXTS",
    "extract_template_variables",
    "validate_template_context",
    "validate_all_templates",
    "test_template_render",
]
