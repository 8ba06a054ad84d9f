"""Tests for all Pydantic contracts.

Verifies that every contract can be instantiated with valid data
and that validation works correctly.
"""

import pytest
from pydantic import ValidationError

from contracts import (
    # Input
    InputContext,
    FeatureInput,
    # Context
    DEFAULT_PROJECT_CONTEXT,
    ApiEndpoint,
    DataModel,
    ResolvedContext,
    ProjectContextVersion,
    # Spec
    Complexity,
    Estimation,
    PartialSpecOutput,
    SpecOutput,
    Task,
    TaskArea,
    ClarifyingQuestionSet,
    GenerationResult,
    ModelInfo,
    # Providers
    PROVIDER_CONFIG_ADAPTER,
    AnthropicConfig,
    LMStudioConfig,
    OllamaConfig,
    OpenAIConfig,
)


class TestInputContracts:
    """Test feature input contracts."""

    def test_input_context_defaults(self):
        ctx = InputContext()
        assert ctx.stakeholders == []
        assert ctx.constraints == []
        assert ctx.inherit_from_project is True
        assert ctx.overrides == {}

    def test_invalid_link_rejected(self):
        with pytest.raises(ValidationError):
            InputContext(links=["not a url"])

    def test_valid_link_accepted(self):
        ctx = InputContext(links=["https://wiki.example.com/carts"])
        assert ctx.links == ["https://wiki.example.com/carts"]

    def test_feature_input_is_frozen(self):
        feature = FeatureInput(project_id="p", title="t", description="d")
        with pytest.raises(ValidationError):
            feature.title = "changed"


class TestContextContracts:
    """Test resolved context and versioning contracts."""

    def test_default_project_context(self):
        assert DEFAULT_PROJECT_CONTEXT.glossary == {}
        assert DEFAULT_PROJECT_CONTEXT.stakeholders == []
        assert DEFAULT_PROJECT_CONTEXT.api_catalog == []
        assert DEFAULT_PROJECT_CONTEXT.envs == ["local", "dev", "test", "prod"]
        assert DEFAULT_PROJECT_CONTEXT.labels == {}

    def test_api_endpoint_accepts_camel_case_base_url(self):
        endpoint = ApiEndpoint.model_validate(
            {"name": "Orders", "baseUrl": "https://api.example.com", "endpoints": ["/orders"]}
        )
        assert endpoint.base_url == "https://api.example.com"
        assert endpoint.model_dump()["baseUrl"] == "https://api.example.com"

    def test_api_endpoint_accepts_field_name(self):
        endpoint = ApiEndpoint(name="Orders", base_url="https://api.example.com", endpoints=[])
        assert endpoint.base_url == "https://api.example.com"

    def test_data_model_fields(self):
        model = DataModel.model_validate(
            {"entity": "Cart", "fields": [{"name": "id", "type": "uuid"}]}
        )
        assert model.fields[0].type == "uuid"

    def test_version_must_be_positive(self):
        with pytest.raises(ValidationError):
            ProjectContextVersion(project_id="p", context=ResolvedContext(), version=0)

    def test_version_ids_are_unique(self):
        a = ProjectContextVersion(project_id="p", context=ResolvedContext(), version=1)
        b = ProjectContextVersion(project_id="p", context=ResolvedContext(), version=2)
        assert a.id != b.id


class TestSpecContracts:
    """Test specification output contracts."""

    def test_spec_output_valid(self, spec_payload):
        spec = SpecOutput.model_validate(spec_payload)
        assert spec.tasks[0].area == TaskArea.FE
        assert spec.estimation.complexity == Complexity.M

    def test_task_area_outside_enum_rejected(self):
        with pytest.raises(ValidationError):
            Task(id="T-1", title="x", area="Mobile", details="x")

    def test_infra_area_value(self):
        task = Task(id="T-1", title="x", area="Infra", details="x")
        assert task.area == TaskArea.INFRA
        assert task.prereqs == []

    def test_estimation_confidence_bounds(self):
        with pytest.raises(ValidationError):
            Estimation(confidence=1.5, complexity="M", drivers=[], notes="")
        with pytest.raises(ValidationError):
            Estimation(confidence=-0.1, complexity="M", drivers=[], notes="")

    def test_spec_output_requires_story(self, spec_payload):
        del spec_payload["story"]
        with pytest.raises(ValidationError):
            SpecOutput.model_validate(spec_payload)

    def test_partial_spec_tracks_changed_fields(self):
        partial = PartialSpecOutput.model_validate({"assumptions": ["A1"], "risks": []})
        assert set(partial.changed_fields()) == {"assumptions", "risks"}
        assert partial.changed_fields()["assumptions"] == ["A1"]

    def test_partial_spec_rejects_explicit_null(self):
        with pytest.raises(ValidationError):
            PartialSpecOutput.model_validate({"assumptions": None})

    def test_empty_partial_changes_nothing(self):
        assert PartialSpecOutput().changed_fields() == {}

    def test_clarifying_question_set(self, questions_json):
        questions = ClarifyingQuestionSet.model_validate_json(questions_json)
        assert len(questions.questions) == 2
        assert questions.estimated_confidence == 0.4

    def test_generation_result(self, spec_payload):
        result = GenerationResult(
            summary="Generated specification",
            output=SpecOutput.model_validate(spec_payload),
            model_info=ModelInfo(model="gpt-4o", provider="openai", tokens_used=150),
        )
        assert result.model_info.tokens_used == 150


class TestProviderContracts:
    """Test provider configuration contracts."""

    def test_discriminated_union_picks_schema(self):
        config = PROVIDER_CONFIG_ADAPTER.validate_python(
            {"provider": "ollama", "base_url": "http://localhost:11434", "model": "llama3"}
        )
        assert isinstance(config, OllamaConfig)

    def test_unknown_provider_rejected(self):
        with pytest.raises(ValidationError):
            PROVIDER_CONFIG_ADAPTER.validate_python({"provider": "gemini", "model": "x"})

    def test_lmstudio_model_optional(self):
        config = LMStudioConfig(base_url="http://localhost:1234")
        assert config.model is None

    def test_cloud_configs_require_key(self):
        with pytest.raises(ValidationError):
            OpenAIConfig(model="gpt-4o")
        with pytest.raises(ValidationError):
            AnthropicConfig(model="claude-sonnet-4-20250514")
