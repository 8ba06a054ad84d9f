"""Tests for ambiguity scoring and the clarification gate."""

import pytest

from contracts import FeatureInput, InputContext
from orchestrator import calculate_ambiguity_score, needs_clarification

FULL_CONTEXT = InputContext(stakeholders=["PO"], constraints=["Budget"])


def feature(description: str, context: InputContext = FULL_CONTEXT) -> FeatureInput:
    return FeatureInput(project_id="p", title="t", description=description, context=context)


def padded(text: str, length: int = 220) -> str:
    """Pad ``text`` with a neutral filler word up to ``length`` characters."""
    filler = " item 1"
    while len(text) < length:
        text += filler
    return text


class TestAmbiguityWeights:
    """Each signal adds its fixed weight."""

    def test_clear_feature_scores_zero(self, clear_feature):
        assert calculate_ambiguity_score(clear_feature) == 0.0

    def test_short_description_scenario(self, vague_feature):
        # 0.3 short + 0.2 no digit + 0.1 no stakeholders + 0.1 no constraints
        assert calculate_ambiguity_score(vague_feature) == pytest.approx(0.7)
        assert needs_clarification(calculate_ambiguity_score(vague_feature))

    def test_short_description_weight(self):
        assert calculate_ambiguity_score(feature("Export 2 reports")) == pytest.approx(0.3)

    def test_medium_description_weight(self):
        text = padded("Export 2 reports", 150)
        assert 100 <= len(text) < 200
        assert calculate_ambiguity_score(feature(text)) == pytest.approx(0.1)

    def test_missing_digit_weight(self):
        text = padded("Export reports", 220).replace("1", "x")
        assert calculate_ambiguity_score(feature(text)) == pytest.approx(0.2)

    def test_vague_word_counts_once_per_distinct_word(self):
        once = padded("maybe export 2 reports")
        twice = padded("maybe maybe maybe export 2 reports")
        assert calculate_ambiguity_score(feature(once)) == pytest.approx(0.1)
        assert calculate_ambiguity_score(feature(twice)) == pytest.approx(0.1)

    def test_vague_words_match_as_substrings(self):
        # "handsome" contains "some"
        text = padded("A handsome export of 2 reports")
        assert calculate_ambiguity_score(feature(text)) == pytest.approx(0.1)

    def test_vague_words_case_insensitive(self):
        text = padded("PERHAPS export 2 reports")
        assert calculate_ambiguity_score(feature(text)) == pytest.approx(0.1)

    def test_pronoun_weight_per_distinct_token(self):
        text = padded("Export it and them and it again for 2 reports")
        assert calculate_ambiguity_score(feature(text)) == pytest.approx(0.1)

    def test_pronoun_must_be_whole_token(self):
        # "items" and "iterate" contain "it" but are not the token "it"
        text = padded("Iterate items for 2 reports")
        assert calculate_ambiguity_score(feature(text)) == pytest.approx(0.0)

    def test_pronoun_case_insensitive(self):
        text = padded("This export covers 2 reports")
        assert calculate_ambiguity_score(feature(text)) == pytest.approx(0.05)

    def test_missing_stakeholders_and_constraints(self):
        text = padded("Export 2 reports")
        assert calculate_ambiguity_score(feature(text, InputContext())) == pytest.approx(0.2)
        assert calculate_ambiguity_score(
            feature(text, InputContext(stakeholders=["PO"]))
        ) == pytest.approx(0.1)


class TestAmbiguityBounds:
    """Score stays within [0, 1] and never drops when vagueness is added."""

    def test_clamped_to_one(self):
        text = "some maybe possibly could might perhaps probably it this that they them"
        assert calculate_ambiguity_score(feature(text, InputContext())) == 1.0

    @pytest.mark.parametrize("word", ["some", "maybe", "possibly", "could", "might", "perhaps", "probably"])
    def test_appending_vague_word_never_decreases(self, clear_feature, word):
        before = calculate_ambiguity_score(clear_feature)
        after = calculate_ambiguity_score(
            clear_feature.model_copy(update={"description": f"{clear_feature.description} {word}"})
        )
        assert after >= before
        assert 0.0 <= after <= 1.0

    def test_deterministic(self, vague_feature):
        assert calculate_ambiguity_score(vague_feature) == calculate_ambiguity_score(vague_feature)


class TestClarificationGate:
    """The gate fires strictly above the threshold."""

    def test_default_threshold(self):
        assert needs_clarification(0.41)
        assert not needs_clarification(0.4)
        assert not needs_clarification(0.0)

    def test_custom_threshold(self):
        assert needs_clarification(0.3, threshold=0.2)
        assert not needs_clarification(0.3, threshold=0.5)
