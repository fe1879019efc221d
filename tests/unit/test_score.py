"""
Unit tests for the ScoreEstimator.
"""

import pytest

from src.engine.score import ScoreCategory, ScoreEstimator


@pytest.fixture
def estimator():
    return ScoreEstimator()


class TestEstimate:
    def test_reference_scenario(self, estimator):
        # 145 + 3 (mastery) + 4 (accuracy) + 3 (speed) + 2 (deep)
        score = estimator.estimate(
            mastered_count=99,
            total_count=500,
            accuracy=0.85,
            avg_response_time=4.0,
            deep_learned_count=50,
        )
        assert score == 157

    def test_baseline(self, estimator):
        assert estimator.estimate(0, 0, 0.7) == 145

    def test_moderate_speed_bonus(self, estimator):
        # 145 + 0 + round(1.25) + 1
        assert estimator.estimate(0, 100, 0.75, avg_response_time=6.0) == 147

    def test_accuracy_penalty_is_capped(self, estimator):
        assert estimator.estimate(0, 100, 0.0) == 140

    def test_maximum(self, estimator):
        assert estimator.estimate(5000, 5000, 1.0, avg_response_time=1.0, deep_learned_count=500) == 170

    def test_bonuses_are_capped(self, estimator):
        assert estimator.estimate(1000, 1000, 0.7, deep_learned_count=1000) == 145 + 15 + 2

    def test_clamp(self, estimator):
        assert estimator.clamp(120) == 130
        assert estimator.clamp(180) == 170

    def test_from_stats_assumes_baseline_accuracy(self, estimator):
        assert estimator.estimate_from_stats(0, 0, 100, total_studied=0, total_correct=0) == 145

    def test_from_stats_uses_accuracy(self, estimator):
        score = estimator.estimate_from_stats(
            99, 50, 500, total_studied=20, total_correct=17, avg_response_time=4.0
        )
        assert score == 157


class TestInsights:
    @pytest.mark.parametrize(
        "score,expected",
        [(170, 99), (157, 73), (140, 8), (175, 99), (135, 5), (125, 1)],
    )
    def test_percentile(self, estimator, score, expected):
        assert estimator.percentile(score) == expected

    @pytest.mark.parametrize(
        "score,expected",
        [
            (170, "Perfect! Top 1% of test takers"),
            (157, "Good! Above average"),
            (145, "Below average - keep practicing!"),
            (130, "Keep studying to improve!"),
        ],
    )
    def test_describe(self, estimator, score, expected):
        assert estimator.describe(score) == expected

    def test_category_against_target(self, estimator):
        assert estimator.category(160, target=160) == ScoreCategory.SUCCESS
        assert estimator.category(156, target=160) == ScoreCategory.WARNING
        assert estimator.category(150, target=160) == ScoreCategory.NEEDS_WORK

    def test_category_without_target(self, estimator):
        assert estimator.category(162) == ScoreCategory.SUCCESS
        assert estimator.category(152) == ScoreCategory.WARNING
        assert estimator.category(140) == ScoreCategory.NEEDS_WORK

    def test_study_recommendation(self, estimator):
        assert estimator.study_recommendation(165, 160) == "You're on track to meet your goal!"
        assert estimator.study_recommendation(160, 165) == "Master 165 more words to reach 165"
        assert estimator.study_recommendation(160, 165, 30) == "Study 5 more words/day to reach 165"
        assert estimator.study_recommendation(150, 165, 10) == "Study 49 more words/day to reach 165"


class TestReadinessAndProjection:
    def test_readiness_blend(self, estimator):
        assert estimator.readiness(250, 500, 155, 165) == pytest.approx(0.5)

    def test_readiness_capped(self, estimator):
        assert estimator.readiness(900, 500, 170, 160) == 1.0

    def test_readiness_floor(self, estimator):
        assert estimator.readiness(0, 500, 130, 160) == 0.0

    def test_readiness_low_target(self, estimator):
        assert estimator.readiness(0, 10, 150, 140) == pytest.approx(0.5)
        assert estimator.readiness(0, 10, 130, 140) == pytest.approx(0.25)

    def test_projection(self, estimator):
        assert estimator.project(150, 10.0, 33) == 160
        assert estimator.project(165, 50.0, 100) == 170
