"""Tests for the heuristic aggregator."""

import pytest

from skill_rating import Confidence, EngineConfig, RatingSource, load_catalog
from skill_rating.rating import HeuristicAggregator


# ============================================================================
# Test Fixtures
# ============================================================================


@pytest.fixture(scope="module")
def catalog():
    return load_catalog("pickleball")


@pytest.fixture
def aggregator(catalog) -> HeuristicAggregator:
    return HeuristicAggregator(catalog, EngineConfig())


def extreme_answers(catalog, pick) -> dict:
    """Answer every category and sub-rating with its min or max weighted option."""
    responses = {}
    for key, category in catalog.categories.items():
        responses[key] = pick(category.weights, key=category.weights.get)
    for key, composite in catalog.composites.items():
        for sub_key, table in composite.weights.items():
            responses[f"{key}_{sub_key}"] = pick(table, key=table.get)
    return responses


# ============================================================================
# Aggregation Tests
# ============================================================================


class TestAggregate:
    """Tests for HeuristicAggregator.aggregate()."""

    def test_nothing_answered(self, aggregator):
        assert aggregator.aggregate({}) is None
        assert aggregator.aggregate({"has_dupr": "No", "experience": ""}) is None

    def test_single_positive_answer(self, aggregator):
        result = aggregator.aggregate({"experience": "1-2 years"})
        assert result.source == RatingSource.HEURISTIC
        assert result.singles_rating == 1650
        assert result.doubles_rating == 1650
        assert result.rating_adjustment == pytest.approx(150)
        assert result.confidence_ratio == pytest.approx(0.5)
        assert result.confidence == Confidence.MEDIUM
        assert result.rating_deviation == 250

    def test_neutral_answer_is_low_confidence(self, aggregator):
        result = aggregator.aggregate({"frequency": "1-2 times a month"})
        assert result.singles_rating == result.doubles_rating == 1500
        assert result.confidence == Confidence.LOW
        assert result.rating_deviation == 350

    def test_negative_delta_gets_doubles_bonus(self, aggregator):
        result = aggregator.aggregate({"experience": "3-6 months"})
        assert result.singles_rating == 1380
        assert result.doubles_rating == 1430

    def test_unknown_answer_weighs_zero(self, aggregator, caplog):
        result = aggregator.aggregate({"experience": "Since forever"})
        assert result.singles_rating == 1500
        assert result.confidence_ratio == 0.0
        assert "Unknown answer for 'experience'" in caplog.text

    def test_all_most_positive(self, aggregator, catalog):
        result = aggregator.aggregate(extreme_answers(catalog, max))
        # 300 + 280 + 150 + 200 + 224 + 160 + 0.8 * 320
        assert result.singles_rating == 3070
        assert result.doubles_rating == 3070
        assert result.confidence_ratio == pytest.approx(9.44 / 9.8)
        assert result.confidence == Confidence.HIGH
        assert result.rating_deviation == 150

    def test_all_most_negative_is_clamped(self, aggregator, catalog):
        result = aggregator.aggregate(extreme_answers(catalog, min))
        assert result.singles_rating == 1000
        assert result.doubles_rating == 1000
        assert result.rating_adjustment == pytest.approx(-1057.2)

    def test_breakdown_per_category(self, aggregator):
        result = aggregator.aggregate(
            {"experience": "More than 2 years", "skills_serving": "Intermediate (can place serves)"}
        )
        assert result.confidence_breakdown == pytest.approx({"experience": 2.0, "skills": 0.54})

    def test_ratio_capped_at_one(self, catalog):
        config = EngineConfig(high_confidence_threshold=1.0, medium_confidence_threshold=1.0)
        result = HeuristicAggregator(catalog, config).aggregate({"experience": "More than 2 years"})
        assert result.confidence_ratio == 1.0
        assert result.confidence == Confidence.HIGH


class TestComposite:
    """Tests for composite sub-answer collection."""

    def test_averaged_as_one_category(self, aggregator):
        result = aggregator.aggregate(
            {
                "skills_serving": "Advanced (variety of controlled serves)",
                "skills_dinking": "Beginner (learning to dink)",
            }
        )
        # (0.8 - 0.7) / 2 * 320
        assert result.rating_adjustment == pytest.approx(16)
        assert list(result.confidence_breakdown) == ["skills"]

    def test_nested_map(self, aggregator):
        answers = aggregator.composite_answers(
            "skills", {"skills": {"serving": "Beginner (learning basic serves)", "lobs": "x"}}
        )
        assert answers == {"serving": "Beginner (learning basic serves)"}

    def test_expanded_key_wins_over_nested(self, aggregator):
        responses = {
            "skills": {"serving": "Beginner (learning basic serves)"},
            "skills_serving": "Advanced (variety of controlled serves)",
        }
        result = aggregator.aggregate(responses)
        assert result.singles_rating == 1756

    def test_unknown_sub_answer_warns(self, aggregator, caplog):
        result = aggregator.aggregate({"skills_volleys": "Wall of steel"})
        assert result.rating_adjustment == pytest.approx(0)
        assert result.confidence_ratio == 0.0
        assert "Unknown answer for 'skills_volleys'" in caplog.text

    def test_blank_sub_answers_ignored(self, aggregator):
        assert aggregator.aggregate({"skills_serving": "", "skills": {"dinking": None}}) is None


class TestMonotonicity:
    """A more positive answer never lowers the rating."""

    def test_each_category(self, aggregator, catalog):
        for key, category in catalog.categories.items():
            ordered = sorted(category.weights, key=category.weights.get)
            ratings = [aggregator.aggregate({key: answer}).singles_rating for answer in ordered]
            assert ratings == sorted(ratings), key

    def test_strong_answer_raises_confidence(self, aggregator):
        weak = aggregator.aggregate({"frequency": "Once a week"})
        stronger = aggregator.aggregate(
            {"frequency": "Once a week", "experience": "More than 2 years"}
        )
        assert weak.confidence == Confidence.LOW
        assert stronger.confidence.rank >= weak.confidence.rank
        assert stronger.confidence == Confidence.HIGH
