"""Tests for JSON extraction from raw model output."""

import pytest

from contracts import ClarifyingQuestionSet, SpecOutput
from errors import NoStructuredOutput, SchemaValidationFailed
from orchestrator import DEFAULT_SUMMARY, extract_json, parse_structured_response


class TestExtractJson:
    """Test the two-step JSON recovery."""

    def test_whole_text_is_json(self):
        assert extract_json('  {"a": 1}\n') == (DEFAULT_SUMMARY, {"a": 1})

    def test_leading_text_becomes_summary(self):
        summary, payload = extract_json('Here is the spec:\n{"a": {"b": 2}}\nThanks!')
        assert summary == "Here is the spec:"
        assert payload == {"a": {"b": 2}}

    def test_fenced_block(self):
        summary, payload = extract_json('```json\n{"a": 1}\n```')
        assert summary == "```json"
        assert payload == {"a": 1}

    def test_no_braces(self):
        with pytest.raises(NoStructuredOutput) as exc_info:
            extract_json("I cannot help with that.")
        assert str(exc_info.value) == "No valid JSON found in LLM response"
        assert exc_info.value.raw == "I cannot help with that."

    def test_unparseable_span(self):
        with pytest.raises(NoStructuredOutput) as exc_info:
            extract_json("Summary {not: json}")
        assert str(exc_info.value).startswith("Failed to parse extracted JSON")

    def test_closing_brace_before_opening(self):
        with pytest.raises(NoStructuredOutput):
            extract_json("} nothing here {")


class TestParseStructuredResponse:
    """Test extraction plus schema validation."""

    def test_round_trip(self, spec_payload, spec_json):
        summary, spec = parse_structured_response(spec_json, SpecOutput)
        assert summary == DEFAULT_SUMMARY
        assert spec == SpecOutput.model_validate(spec_payload)

    def test_summary_with_valid_spec(self, spec_json):
        summary, spec = parse_structured_response(f"Saved carts spec\n{spec_json}", SpecOutput)
        assert summary == "Saved carts spec"
        assert spec.story.as_a == "returning customer"

    def test_schema_violations_listed(self, spec_payload):
        import json

        spec_payload["tasks"][0]["area"] = "Mobile"
        del spec_payload["estimation"]
        with pytest.raises(SchemaValidationFailed) as exc_info:
            parse_structured_response(json.dumps(spec_payload), SpecOutput)

        fields = {v["field"] for v in exc_info.value.violations}
        assert fields == {"tasks.0.area", "estimation"}
        assert all(v["message"] for v in exc_info.value.violations)

    def test_questions(self, questions_json):
        _, questions = parse_structured_response(questions_json, ClarifyingQuestionSet)
        assert questions.questions[1].topic == "Retention"
