"""Tests for the prompt template engine and its validation helpers."""

import json
from datetime import date

import pytest

from contracts import GenerationMode
from errors import TemplateNotFound
from prompts.engine import CACHE_SIZE
from prompts import (
    SAMPLE_CONTEXTS,
    TemplateEngine,
    TemplateNames,
    extract_template_variables,
    get_nested_value,
    test_template_render as render_sample,
    validate_all_templates,
    validate_template_context,
)

FIXED_DAY = date(2024, 3, 9)


@pytest.fixture
def engine():
    return TemplateEngine(
        templates={
            "greeting": "Hello {{name}}, today is {{today_date}} ({{today_id}})",
            "nested": "{{input.title}} / {{items.1}} / {{flag}} / {{mode}}",
            "json": "DATA: {{JSON.stringify(payload)}}",
            "missing": "Keep {{unknown}} and {{JSON.stringify(absent)}}",
        },
        today=lambda: FIXED_DAY,
    )


class TestInterpolation:
    """Test placeholder substitution."""

    def test_simple_variables_and_dates(self, engine):
        assert engine.render("greeting", {"name": "Ada"}) == "Hello Ada, today is 2024-03-09 (20240309)"

    def test_nested_paths_and_scalars(self, engine):
        rendered = engine.render("nested", {
            "input": {"title": "Carts"},
            "items": ["a", "b"],
            "flag": True,
            "mode": GenerationMode.DRAFT,
        })
        assert rendered == "Carts / b / true / draft"

    def test_json_stringify_is_pretty_printed(self, engine):
        rendered = engine.render("json", {"payload": {"a": 1}})
        assert rendered == 'DATA: {\n  "a": 1\n}'

    def test_unknown_placeholders_left_literal(self, engine):
        assert engine.render("missing", {}) == "Keep {{unknown}} and {{JSON.stringify(absent)}}"

    def test_unknown_template(self, engine):
        with pytest.raises(TemplateNotFound):
            engine.render("nope")

    def test_render_is_cached_per_context(self, engine):
        first = engine.render("greeting", {"name": "Ada"})
        assert engine.render("greeting", {"name": "Ada"}) is first
        assert engine.render("greeting", {"name": "Bob"}) != first
        engine.clear_cache()
        assert engine.render("greeting", {"name": "Ada"}) == first

    def test_cache_stays_bounded_across_requests(self):
        engine = TemplateEngine(today=lambda: FIXED_DAY)
        for i in range(CACHE_SIZE + 100):
            engine.render(TemplateNames.CLARIFYING_QUESTIONS, {"input": {"title": f"Feature {i}"}})
        assert len(engine._cache) == CACHE_SIZE

    def test_cache_evicts_least_recently_used(self, engine):
        first = engine.render("greeting", {"name": "Ada"})
        for i in range(CACHE_SIZE - 1):
            engine.render("greeting", {"name": f"user-{i}"})

        assert engine.render("greeting", {"name": "Ada"}) is first
        engine.render("greeting", {"name": "overflow"})

        assert len(engine._cache) == CACHE_SIZE
        assert engine.render("greeting", {"name": "Ada"}) is first
        assert not any("user-0\"" in key for key in engine._cache)

    def test_date_change_is_not_served_from_cache(self):
        days = iter([date(2024, 1, 1), date(2024, 1, 2)])
        engine = TemplateEngine(templates={"d": "{{today_id}}"}, today=lambda: next(days))
        assert engine.render("d") == "20240101"
        assert engine.render("d") == "20240102"

    def test_get_nested_value_out_of_range(self):
        from prompts.engine import _MISSING
        assert get_nested_value({"items": []}, "items.3") is _MISSING
        assert get_nested_value({"a": {"b": 2}}, "a.b") == 2


class TestBuiltInTemplates:
    """The four built-in templates render with their sample contexts."""

    def test_available_templates(self):
        engine = TemplateEngine()
        assert set(engine.available_templates()) == {
            TemplateNames.SYSTEM,
            TemplateNames.SPEC_GENERATION,
            TemplateNames.CLARIFYING_QUESTIONS,
            TemplateNames.REFINE_SPEC,
        }

    def test_spec_generation_embeds_context_and_ids(self):
        engine = TemplateEngine(today=lambda: FIXED_DAY)
        rendered = engine.render(TemplateNames.SPEC_GENERATION, SAMPLE_CONTEXTS["spec-generation"])
        assert "Generate a draft specification" in rendered
        assert "FR-20240309-001" in rendered
        assert '"title": "Test Feature"' in rendered
        assert "{{" not in rendered

    def test_validate_all_templates(self):
        results = validate_all_templates(TemplateEngine())
        assert [r["template"] for r in results] == list(SAMPLE_CONTEXTS)
        assert all(r["valid"] for r in results)

    def test_validate_template_method(self):
        engine = TemplateEngine()
        assert engine.validate_template("refine-spec", SAMPLE_CONTEXTS["refine-spec"]) == {"valid": True}
        assert engine.validate_template("nope", {})["valid"] is False


class TestTemplateValidation:
    """Test variable extraction and context checks."""

    def test_extract_variables(self):
        template = "{{a}} {{JSON.stringify(b)}} {{today_id}} {{a}} {{c.d}}"
        assert extract_template_variables(template) == ["a", "b", "c.d"]

    def test_validate_template_context_reports_missing_and_extra(self):
        result = validate_template_context(
            "clarifying-questions",
            {"input": {}, "unused": 1},
            TemplateEngine(),
        )
        assert result["valid"] is False
        assert result["missing_variables"] == ["resolved_context"]
        assert result["extra_variables"] == ["unused"]

    def test_validate_template_context_complete(self):
        result = validate_template_context(
            "spec-generation",
            SAMPLE_CONTEXTS["spec-generation"],
            TemplateEngine(),
        )
        assert result == {"valid": True, "missing_variables": [], "extra_variables": []}

    def test_validate_unknown_template(self):
        result = validate_template_context("nope", {}, TemplateEngine())
        assert result["valid"] is False

    def test_render_sample(self):
        outcome = render_sample("system")
        assert outcome["success"] is True
        assert "copilot" in outcome["result"]
        assert render_sample("nope")["success"] is False

    def test_sample_contexts_are_json_serializable(self):
        json.dumps(SAMPLE_CONTEXTS)
