"""
Unit tests for the LearningPathPlanner.

Tests cover:
- Preview / quiz / deep-learn queue ordering
- Aggregate statistics
- Recommendation priority
- Daily session building and backfill
"""

import random
from datetime import timedelta

import pytest

from src.engine.items import FrequencyTier, LearningStage, WordStatus
from src.engine.planner import (
    LearningPathPlanner,
    LearningPathStats,
    RecommendationKind,
    SessionConfig,
)


@pytest.fixture
def planner(clock, rng):
    return LearningPathPlanner(clock=clock, rng=rng)


@pytest.fixture
def due_review(make_item, clock):
    """A passed item whose spaced quiz is overdue."""

    def _make(term: str, **overrides):
        fields = {
            "learning_stage": LearningStage.QUIZ_PASSED,
            "quiz_pass_count": 1,
            "next_quiz_due": clock.now - timedelta(days=1),
        }
        fields.update(overrides)
        return make_item(term, **fields)

    return _make


class TestQueues:
    def test_preview_queue_by_frequency(self, planner, make_item):
        items = [
            make_item("rare", frequency=FrequencyTier.RARE),
            make_item("common1"),
            make_item("essential", frequency=FrequencyTier.ESSENTIAL),
            make_item("common2"),
            make_item("seen", learning_stage=LearningStage.PREVIEWED),
        ]
        queue = planner.preview_queue(items)
        assert [item.term for item in queue] == ["essential", "common1", "common2", "rare"]
        assert len(planner.preview_queue(items, limit=2)) == 2

    def test_quiz_queue_reviews_first(self, planner, make_item, due_review, clock):
        items = [
            make_item("first", learning_stage=LearningStage.PREVIEWED),
            due_review("review"),
            due_review("later", next_quiz_due=clock.now + timedelta(days=2)),
            make_item("ready", learning_stage=LearningStage.QUIZ_READY),
            make_item("unseen"),
        ]
        assert [item.term for item in planner.quiz_queue(items)] == ["review", "first", "ready"]

    def test_deep_learn_queue_most_failed_first(self, planner, make_item):
        items = [
            make_item("once", learning_stage=LearningStage.QUIZ_PASSED, times_quiz_failed=1),
            make_item("often", times_quiz_failed=4),
            make_item("twice", times_quiz_failed=2),
            make_item("fine"),
        ]
        assert [item.term for item in planner.deep_learn_queue(items)] == ["often", "twice", "once"]

    def test_struggling_items(self, planner, make_item):
        items = [make_item("a", times_quiz_failed=2), make_item("b", times_quiz_failed=1)]
        assert [item.term for item in planner.struggling_items(items)] == ["a"]

    def test_feynman_queue_prefers_deep_learning(self, planner, make_item):
        items = [
            make_item("fine"),
            make_item("often", times_quiz_failed=3),
            make_item("twice", times_quiz_failed=2),
        ]
        assert [item.term for item in planner.feynman_queue(items)] == ["often", "twice"]

    def test_feynman_queue_falls_back_to_unsure_words(self, planner, make_item):
        items = [
            make_item("solid", feynman_confidence=5),
            make_item("fuzzy", feynman_confidence=2),
            make_item("new"),
        ]
        assert [item.term for item in planner.feynman_queue(items)] == ["fuzzy", "new"]

    def test_feynman_queue_when_everything_is_confident(self, planner, make_item):
        items = [make_item(f"w{n}", feynman_confidence=4) for n in range(7)]
        assert [item.term for item in planner.feynman_queue(items)] == ["w0", "w1", "w2", "w3", "w4"]


class TestStats:
    def test_counts(self, planner, make_item, due_review):
        items = [
            make_item("u1"),
            make_item("u2"),
            make_item("p", learning_stage=LearningStage.PREVIEWED),
            due_review("q"),
            make_item(
                "d",
                learning_stage=LearningStage.DEEP_LEARNED,
                feynman_confidence=5,
                status=WordStatus.MASTERED,
            ),
        ]
        stats = planner.stats(items)

        assert stats.total == 5
        assert stats.unseen == 2
        assert stats.previewed == 1
        assert stats.quiz_passed == 1
        assert stats.deep_learned == 1
        assert stats.mastered == 1
        assert stats.ready_for_quiz == 2
        assert stats.needs_deep_learn == 1
        assert stats.struggling == 0
        assert stats.in_progress == 2
        assert stats.completion_percentage == pytest.approx(20.0)
        assert stats.learning_percentage == pytest.approx(40.0)

    def test_empty_deck_percentages(self):
        stats = LearningPathStats(0, 0, 0, 0, 0, 0, 0, 0, 0, 0)
        assert stats.completion_percentage == 0.0
        assert stats.learning_percentage == 0.0


class TestRecommendation:
    def test_struggling_first(self, planner, make_item, due_review):
        items = [due_review("r"), make_item("s", times_quiz_failed=2), make_item("u")]
        recommendation = planner.recommendation(items)

        assert recommendation.kind == RecommendationKind.DEEP_LEARN
        assert recommendation.count == 1
        assert recommendation.reason == "These words need extra attention"

    def test_due_reviews(self, planner, make_item, due_review):
        recommendation = planner.recommendation([due_review("r"), make_item("u")])

        assert recommendation.kind == RecommendationKind.QUIZ
        assert recommendation.reason == "Keep your memory fresh"
        assert recommendation.title == "Quiz Yourself"

    def test_previewed_words(self, planner, make_item):
        items = [make_item("p", learning_stage=LearningStage.PREVIEWED), make_item("u")]
        recommendation = planner.recommendation(items)

        assert recommendation.kind == RecommendationKind.QUIZ
        assert recommendation.reason == "Prove you know these words"

    def test_needs_deep_learning(self, planner, due_review, clock):
        items = [due_review("q", next_quiz_due=clock.now + timedelta(days=3))]
        recommendation = planner.recommendation(items)

        assert recommendation.kind == RecommendationKind.DEEP_LEARN
        assert recommendation.reason == "Lock in your knowledge"

    def test_preview_count_capped(self, planner, make_item):
        recommendation = planner.recommendation([make_item() for _ in range(25)])

        assert recommendation.kind == RecommendationKind.PREVIEW
        assert recommendation.count == 20

    def test_all_caught_up(self, planner):
        recommendation = planner.recommendation([])

        assert recommendation.kind == RecommendationKind.ALL_CAUGHT_UP
        assert recommendation.count == 0
        assert recommendation.reason == "Great work! Come back tomorrow."


class TestBuildSession:
    def test_backfills_quiz_from_preview(self, planner, make_item, due_review):
        review = due_review("review")
        items = [make_item("new1"), make_item("new2"), review]

        config = planner.build_session(items, preview_count=3, quiz_goal=6)

        assert [item.term for item in config.preview_items] == ["new1", "new2"]
        assert len(config.quiz_items) == 3
        assert {item.term for item in config.quiz_items} == {"review", "new1", "new2"}
        assert config.deep_learn_item == review

    def test_reviews_capped_at_half_the_goal(self, planner, make_item, due_review, clock):
        items = [
            *(due_review(f"r{i}", feynman_confidence=5) for i in range(5)),
            *(make_item(f"p{i}", learning_stage=LearningStage.PREVIEWED) for i in range(5)),
        ]
        config = planner.build_session(items, preview_count=3, quiz_goal=6)
        terms = [item.term for item in config.quiz_items]

        assert len(terms) == 6
        assert sum(term.startswith("r") for term in terms) == 3
        assert config.preview_items == ()
        assert config.deep_learn_item is None

    def test_reviews_fill_when_nothing_else(self, planner, due_review):
        items = [due_review(f"r{i}", feynman_confidence=5) for i in range(5)]
        config = planner.build_session(items, quiz_goal=6)
        assert len(config.quiz_items) == 3

    def test_same_seed_same_order(self, clock, make_item):
        items = [make_item(f"p{i}", learning_stage=LearningStage.PREVIEWED) for i in range(6)]
        first = LearningPathPlanner(clock, random.Random(3)).build_session(items)
        second = LearningPathPlanner(clock, random.Random(3)).build_session(items)
        assert first.quiz_items == second.quiz_items

    def test_empty_deck(self, planner):
        config = planner.build_session([])

        assert config.is_empty
        assert planner.has_session_content([]) is False
        assert planner.session_summary([]) == {"preview": 0, "quiz": 0, "deep_learn": False}

    def test_session_summary(self, planner, make_item):
        items = [make_item(f"u{i}") for i in range(5)]
        assert planner.has_session_content(items) is True
        assert planner.session_summary(items) == {"preview": 3, "quiz": 3, "deep_learn": False}


class TestSessionConfig:
    def test_phase_flags(self, make_item):
        item = make_item()
        config = SessionConfig(quiz_items=(item,), deep_learn_item=item)

        assert config.total_items == 2
        assert not config.has_preview_phase
        assert config.has_quiz_phase
        assert config.has_deep_moment_phase
        assert config.session_id
