"""Tests for Pydantic schema coercion and validation."""

import pytest
from pydantic import ValidationError

from lca.schemas.cards import CardContent, KnowledgeCard
from lca.schemas.comparison import ABTestConfig, ABTestModelConfig, ComparisonAnalysis
from lca.schemas.deep_dive import DeepDiveQuestion
from lca.schemas.learning import LearningPreferences
from lca.schemas.portrait import LearningPortrait
from lca.schemas.tags import CustomTag, TagParameter


class TestLearningPortrait:
    def test_flattens_lists_and_objects(self) -> None:
        portrait = LearningPortrait(
            strengths=["Asks why", "Persistent"],
            pacing={"speed": "steady", "sessions": "short"},
            challenges=None,
        )
        assert portrait.strengths == "Asks why; Persistent"
        assert portrait.pacing == "speed: steady; sessions: short"
        assert portrait.challenges == ""

    def test_next_questions_coercion(self) -> None:
        assert LearningPortrait(next_questions=None).next_questions == []
        assert LearningPortrait(next_questions="Why?").next_questions == ["Why?"]
        assert LearningPortrait(next_questions="  ").next_questions == []

    def test_rejects_unknown_mastery(self) -> None:
        with pytest.raises(ValidationError):
            LearningPortrait(knowledge_topics=[{"topic": "x", "mastery_level": "expert"}])


class TestCards:
    def test_content_lists_coerced(self) -> None:
        content = CardContent(key_points="One point", examples=None, memory_tips="")
        assert content.key_points == ["One point"]
        assert content.examples == []
        assert content.memory_tips == []

    def test_card_id_format(self) -> None:
        card = KnowledgeCard(user_id="u", title="T", content=CardContent())
        prefix, millis, suffix = card.id.split("_")
        assert prefix == "card"
        assert millis.isdigit()
        assert len(suffix) == 9


class TestComparison:
    BASE = dict(
        summary="s", key_differences=[], strengths={}, weaknesses={}, recommendation="r",
    )

    @pytest.mark.parametrize("confidence", [1.5, -0.1, "high", True, None])
    def test_bad_confidence_defaults(self, confidence: object) -> None:
        assert ComparisonAnalysis(**self.BASE, confidence=confidence).confidence == 0.8

    def test_requires_text(self) -> None:
        with pytest.raises(ValidationError):
            ComparisonAnalysis(**{**self.BASE, "summary": ""})
        with pytest.raises(ValidationError):
            ComparisonAnalysis(summary="s", recommendation="r")

    def test_ab_config_needs_two_models(self) -> None:
        with pytest.raises(ValidationError, match="two models"):
            ABTestConfig(name="n", test_prompt="p", models=[ABTestModelConfig(model_id="m")])

    def test_ab_config_drops_blank_criteria(self) -> None:
        config = ABTestConfig(
            name="n",
            test_prompt="p",
            models=[ABTestModelConfig(model_id="a"), ABTestModelConfig(model_id="b")],
            comparison_criteria=["clarity", " ", ""],
        )
        assert config.comparison_criteria == ["clarity"]


def test_deep_dive_question_id() -> None:
    assert DeepDiveQuestion(id=3, question="q").id == "3"
    assert DeepDiveQuestion(id=None, question="q").id == ""


def test_tag_parameter_nulls() -> None:
    param = TagParameter(name="lang", required=None, order_index=None)
    assert param.required is False
    assert param.order_index == 0
    assert CustomTag(name="t", parameters=None).parameters == []


def test_preferences_defaults() -> None:
    prefs = LearningPreferences(learning_goals=None)
    assert prefs.learning_goals == []
    assert (prefs.educational_level, prefs.preferred_style) == ("high-school", "detailed")
    with pytest.raises(ValidationError):
        LearningPreferences(preferred_style="loud")


def test_preferences_null_columns_fall_back() -> None:
    prefs = LearningPreferences(educational_level=None, complexity_level=None, preferred_examples=None)
    assert prefs.educational_level == "high-school"
    assert prefs.complexity_level == "intermediate"
    assert prefs.preferred_examples == "mixed"
