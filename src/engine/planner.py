"""
Learning Path Planner.

Pure queries over an item collection:
- Preview / quiz / deep-learn queues
- Aggregate statistics
- A single next-action recommendation
- Daily session builder (SessionConfig)

Key principles:
1. Struggling words are handled before anything else
2. Due quiz reviews come before first-time quizzes
3. New words fill the remaining quota, most frequent first
"""

from __future__ import annotations

import random
import uuid
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from loguru import logger

from .items import (
    FIRST_QUIZ_STAGES,
    REVIEW_QUIZ_STAGES,
    Clock,
    Item,
    LearningStage,
    WordStatus,
)
from .stages import DEEP_LEARN_CONFIDENCE

PREVIEW_RECOMMENDATION_CAP = 20
UNBOUNDED = 1000
FEYNMAN_BATCH = 5


# =============================================================================
# Data Classes
# =============================================================================


@dataclass(frozen=True)
class SessionConfig:
    """Item selection for one daily session. Fixed once the session starts."""

    preview_items: tuple[Item, ...] = ()
    quiz_items: tuple[Item, ...] = ()
    deep_learn_item: Item | None = None
    session_id: str = field(default_factory=lambda: uuid.uuid4().hex[:8])

    @property
    def total_items(self) -> int:
        return len(self.preview_items) + len(self.quiz_items) + (1 if self.deep_learn_item else 0)

    @property
    def is_empty(self) -> bool:
        return self.total_items == 0

    @property
    def has_preview_phase(self) -> bool:
        return bool(self.preview_items)

    @property
    def has_quiz_phase(self) -> bool:
        return bool(self.quiz_items)

    @property
    def has_deep_moment_phase(self) -> bool:
        return self.deep_learn_item is not None


@dataclass(frozen=True)
class LearningPathStats:
    """Learning path statistics for a set of items."""

    total: int
    unseen: int
    previewed: int
    quiz_ready: int
    quiz_passed: int
    deep_learned: int
    mastered: int
    ready_for_quiz: int
    needs_deep_learn: int
    struggling: int

    @property
    def in_progress(self) -> int:
        return self.previewed + self.quiz_ready + self.quiz_passed

    @property
    def completion_percentage(self) -> float:
        if self.total == 0:
            return 0.0
        return self.mastered / self.total * 100

    @property
    def learning_percentage(self) -> float:
        if self.total == 0:
            return 0.0
        return (self.deep_learned + self.quiz_passed) / self.total * 100


class RecommendationKind(str, Enum):
    PREVIEW = "preview"
    QUIZ = "quiz"
    DEEP_LEARN = "deep_learn"
    ALL_CAUGHT_UP = "all_caught_up"

    @property
    def title(self) -> str:
        return {
            RecommendationKind.PREVIEW: "Preview New Words",
            RecommendationKind.QUIZ: "Quiz Yourself",
            RecommendationKind.DEEP_LEARN: "Deep Practice",
            RecommendationKind.ALL_CAUGHT_UP: "All Caught Up!",
        }[self]


@dataclass(frozen=True)
class Recommendation:
    kind: RecommendationKind
    count: int
    reason: str

    @property
    def title(self) -> str:
        return self.kind.title


ALL_CAUGHT_UP = Recommendation(
    kind=RecommendationKind.ALL_CAUGHT_UP,
    count=0,
    reason="Great work! Come back tomorrow.",
)


# =============================================================================
# Planner
# =============================================================================


class LearningPathPlanner:
    """
    Selects what to study next.

    Nothing here mutates items; the clock decides which quizzes are due
    and the RNG shuffles the daily quiz list.
    """

    def __init__(self, clock: Clock | None = None, rng: random.Random | None = None):
        self.clock = clock or datetime.now
        self.rng = rng or random.Random()

    # -------------------------------------------------------------------------
    # Queues
    # -------------------------------------------------------------------------

    def preview_queue(self, items: Sequence[Item], limit: int = 20) -> list[Item]:
        """Unseen items, most frequent first."""
        unseen = [item for item in items if item.learning_stage == LearningStage.UNSEEN]
        unseen.sort(key=lambda item: item.frequency.priority, reverse=True)
        return unseen[:limit]

    def due_reviews(self, items: Sequence[Item]) -> list[Item]:
        """Passed items whose spaced quiz is due."""
        now = self.clock()
        return [
            item for item in items
            if item.learning_stage in REVIEW_QUIZ_STAGES and item.is_due_for_quiz(now)
        ]

    def first_quiz_ready(self, items: Sequence[Item]) -> list[Item]:
        """Previewed items waiting for their first quiz."""
        return [item for item in items if item.learning_stage in FIRST_QUIZ_STAGES]

    def quiz_queue(self, items: Sequence[Item], limit: int = 20) -> list[Item]:
        """Due reviews first, then first-time quizzes."""
        return (self.due_reviews(items) + self.first_quiz_ready(items))[:limit]

    def deep_learn_queue(self, items: Sequence[Item], limit: int = 10) -> list[Item]:
        """Items needing deep learning, most-failed first."""
        needing = [item for item in items if item.needs_deep_learning]
        needing.sort(key=lambda item: item.times_quiz_failed, reverse=True)
        return needing[:limit]

    def struggling_items(self, items: Sequence[Item]) -> list[Item]:
        return [item for item in items if item.is_struggling]

    def feynman_queue(self, items: Sequence[Item], limit: int = FEYNMAN_BATCH) -> list[Item]:
        """
        Words to explain in your own words.

        The deep-learn queue when it has anything, otherwise words rated
        below confident, otherwise the first words of the deck.
        """
        queue = self.deep_learn_queue(items, limit)
        if queue:
            return queue
        unsure = [item for item in items if item.feynman_confidence < DEEP_LEARN_CONFIDENCE]
        return (unsure or list(items))[:limit]

    # -------------------------------------------------------------------------
    # Statistics
    # -------------------------------------------------------------------------

    def stats(self, items: Sequence[Item]) -> LearningPathStats:
        stage_counts = {stage: 0 for stage in LearningStage}
        for item in items:
            stage_counts[item.learning_stage] += 1

        return LearningPathStats(
            total=len(items),
            unseen=stage_counts[LearningStage.UNSEEN],
            previewed=stage_counts[LearningStage.PREVIEWED],
            quiz_ready=stage_counts[LearningStage.QUIZ_READY],
            quiz_passed=stage_counts[LearningStage.QUIZ_PASSED],
            deep_learned=stage_counts[LearningStage.DEEP_LEARNED],
            mastered=sum(1 for item in items if item.status == WordStatus.MASTERED),
            ready_for_quiz=len(self.quiz_queue(items, limit=UNBOUNDED)),
            needs_deep_learn=len(self.deep_learn_queue(items, limit=UNBOUNDED)),
            struggling=len(self.struggling_items(items)),
        )

    # -------------------------------------------------------------------------
    # Recommendations
    # -------------------------------------------------------------------------

    def recommendation(self, items: Sequence[Item]) -> Recommendation:
        """Get the single most important next action."""
        stats = self.stats(items)

        if stats.struggling > 0:
            return Recommendation(
                RecommendationKind.DEEP_LEARN, stats.struggling, "These words need extra attention"
            )

        due_for_review = len(self.due_reviews(items))
        if due_for_review > 0:
            return Recommendation(RecommendationKind.QUIZ, due_for_review, "Keep your memory fresh")

        if stats.previewed > 0:
            return Recommendation(
                RecommendationKind.QUIZ, stats.previewed, "Prove you know these words"
            )

        if stats.needs_deep_learn > 0:
            return Recommendation(
                RecommendationKind.DEEP_LEARN, stats.needs_deep_learn, "Lock in your knowledge"
            )

        if stats.unseen > 0:
            return Recommendation(
                RecommendationKind.PREVIEW,
                min(PREVIEW_RECOMMENDATION_CAP, stats.unseen),
                "Learn new words",
            )

        return ALL_CAUGHT_UP

    # -------------------------------------------------------------------------
    # Daily Session Builder
    # -------------------------------------------------------------------------

    def build_session(
        self,
        items: Sequence[Item],
        preview_count: int = 3,
        quiz_goal: int = 6,
    ) -> SessionConfig:
        """
        Build a daily session.

        Args:
            items: All available items
            preview_count: New words to preview
            quiz_goal: Total quiz questions

        Returns:
            SessionConfig with preview, quiz and (optional) deep-learn items
        """
        preview_items = self.preview_queue(items, limit=preview_count)

        # At most half the quiz goes to reviews so new words still get quizzed
        quiz_candidates = self.due_reviews(items)[: quiz_goal // 2]
        remaining_slots = quiz_goal - len(quiz_candidates)
        quiz_candidates += self.first_quiz_ready(items)[:remaining_slots]

        # Words previewed in this session can be quizzed in it too
        if len(quiz_candidates) < quiz_goal:
            quiz_candidates += preview_items[: quiz_goal - len(quiz_candidates)]

        self.rng.shuffle(quiz_candidates)

        deep = self.deep_learn_queue(items, limit=1)
        config = SessionConfig(
            preview_items=tuple(preview_items),
            quiz_items=tuple(quiz_candidates[:quiz_goal]),
            deep_learn_item=deep[0] if deep else None,
        )
        logger.debug(
            f"Session {config.session_id}: preview={len(config.preview_items)} "
            f"quiz={len(config.quiz_items)} deep={config.has_deep_moment_phase}"
        )
        return config

    def has_session_content(self, items: Sequence[Item]) -> bool:
        return not self.build_session(items).is_empty

    def session_summary(self, items: Sequence[Item]) -> dict[str, int | bool]:
        """What a default daily session would contain."""
        config = self.build_session(items)
        return {
            "preview": len(config.preview_items),
            "quiz": len(config.quiz_items),
            "deep_learn": config.has_deep_moment_phase,
        }
