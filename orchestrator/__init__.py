"""Orchestrator module for spec generation control."""

from .ambiguity import calculate_ambiguity_score, needs_clarification
from .response_parser import DEFAULT_SUMMARY, extract_json, parse_structured_response
from .completion import CompletionOrchestrator, merge_refinement, format_answers
from .flow import FlowState, GenerationFlow

__all__ = [
    "calculate_ambiguity_score",
    "needs_clarification",
    "DEFAULT_SUMMARY",
    "extract_json",
    "parse_structured_response",
    "CompletionOrchestrator",
    "merge_refinement",
    "format_answers",
    "FlowState",
    "GenerationFlow",
]
