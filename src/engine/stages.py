"""
Learning Stage Machine.

Five-stage path per item: unseen -> previewed -> quizReady -> quizPassed -> deepLearned.

Transitions are looked up in STAGE_TRANSITIONS keyed by (stage, event).
A missing entry means the event leaves the stage where it is, which is how
quiz failures and repeated previews stay harmless.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timedelta
from enum import Enum

from loguru import logger

from .items import Clock, Item, LearningStage, WordStatus

# Days until the next quiz, indexed by min(quiz_pass_count - 1, 5)
QUIZ_INTERVALS_DAYS = (1, 3, 7, 14, 30, 60)
QUIZ_RETRY_DAYS = 1

MASTERY_QUIZ_PASSES = 3
DEEP_LEARN_CONFIDENCE = 4


class StageEvent(str, Enum):
    """Events that can move an item along the learning path."""

    PREVIEW = "preview"
    QUIZ_PASSED = "quiz_passed"
    QUIZ_FAILED = "quiz_failed"
    DEEP_LEARNED = "deep_learned"


STAGE_TRANSITIONS: dict[tuple[LearningStage, StageEvent], LearningStage] = {
    (LearningStage.UNSEEN, StageEvent.PREVIEW): LearningStage.PREVIEWED,
    (LearningStage.UNSEEN, StageEvent.QUIZ_PASSED): LearningStage.QUIZ_PASSED,
    (LearningStage.PREVIEWED, StageEvent.QUIZ_PASSED): LearningStage.QUIZ_PASSED,
    (LearningStage.QUIZ_READY, StageEvent.QUIZ_PASSED): LearningStage.QUIZ_PASSED,
    (LearningStage.UNSEEN, StageEvent.DEEP_LEARNED): LearningStage.DEEP_LEARNED,
    (LearningStage.PREVIEWED, StageEvent.DEEP_LEARNED): LearningStage.DEEP_LEARNED,
    (LearningStage.QUIZ_READY, StageEvent.DEEP_LEARNED): LearningStage.DEEP_LEARNED,
    (LearningStage.QUIZ_PASSED, StageEvent.DEEP_LEARNED): LearningStage.DEEP_LEARNED,
}


def next_stage(stage: LearningStage, event: StageEvent) -> LearningStage:
    """Resolve a transition; events without an entry keep the current stage."""
    return STAGE_TRANSITIONS.get((stage, event), stage)


def derive_status(item: Item) -> WordStatus:
    """
    Coarse status implied by learning-path progress.

    Mastery requires three quiz passes plus a confident deep learn.
    """
    has_passed_quiz = item.quiz_pass_count >= 1
    has_deep_learned = (
        item.learning_stage == LearningStage.DEEP_LEARNED
        and item.feynman_confidence >= DEEP_LEARN_CONFIDENCE
    )
    has_retention = item.quiz_pass_count >= MASTERY_QUIZ_PASSES

    if has_passed_quiz and has_deep_learned and has_retention:
        return WordStatus.MASTERED
    if has_passed_quiz or item.learning_stage != LearningStage.UNSEEN:
        return WordStatus.LEARNING
    return item.status


class LearningStageMachine:
    """
    Records learning-path events on item snapshots.

    Every method returns a new Item; the input is never modified.
    """

    def __init__(self, clock: Clock | None = None):
        self.clock = clock or datetime.now

    def update_mastery_status(self, item: Item) -> Item:
        status = derive_status(item)
        if status == item.status:
            return item
        return replace(item, status=status)

    def mark_previewed(self, item: Item) -> Item:
        """Mark an unseen item as previewed. Already-previewed items come back unchanged."""
        stage = next_stage(item.learning_stage, StageEvent.PREVIEW)
        if stage == item.learning_stage:
            return item

        status = WordStatus.LEARNING if item.status == WordStatus.NEW else item.status
        updated = replace(item, learning_stage=stage, previewed_date=self.clock(), status=status)
        return self.update_mastery_status(updated)

    def record_quiz_attempt(self, item: Item, passed: bool) -> Item:
        """
        Record a quiz result.

        Passing advances to quizPassed (never backwards) and schedules the
        next quiz on the escalating interval table. Failing counts the miss
        and retries tomorrow without touching the stage.
        """
        now = self.clock()

        if passed:
            pass_count = item.quiz_pass_count + 1
            interval_index = min(pass_count - 1, len(QUIZ_INTERVALS_DAYS) - 1)
            updated = replace(
                item,
                learning_stage=next_stage(item.learning_stage, StageEvent.QUIZ_PASSED),
                quiz_pass_count=pass_count,
                last_quiz_date=now,
                next_quiz_due=now + timedelta(days=QUIZ_INTERVALS_DAYS[interval_index]),
            )
        else:
            updated = replace(
                item,
                learning_stage=next_stage(item.learning_stage, StageEvent.QUIZ_FAILED),
                times_quiz_failed=item.times_quiz_failed + 1,
                last_quiz_date=now,
                next_quiz_due=now + timedelta(days=QUIZ_RETRY_DAYS),
            )

        logger.debug(
            f"Quiz {'pass' if passed else 'fail'} {item.term!r}: "
            f"{item.learning_stage.value}->{updated.learning_stage.value}, "
            f"next due {updated.next_quiz_due:%Y-%m-%d}"
        )
        return self.update_mastery_status(updated)

    def mark_deep_learned(self, item: Item, confidence: int) -> Item:
        """
        Record a Feynman self-rating.

        Confidence is always stored; only 4+ moves the item to deepLearned.
        """
        if not 1 <= confidence <= 5:
            raise ValueError(f"Confidence must be between 1 and 5, got {confidence}")

        stage = item.learning_stage
        if confidence >= DEEP_LEARN_CONFIDENCE:
            stage = next_stage(stage, StageEvent.DEEP_LEARNED)

        updated = replace(
            item,
            feynman_confidence=confidence,
            deep_learn_date=self.clock(),
            learning_stage=stage,
        )
        return self.update_mastery_status(updated)

    def record_feynman(
        self,
        item: Item,
        confidence: int,
        explanation: str | None = None,
        example: str | None = None,
    ) -> Item:
        """
        Save the learner's own explanation and example, then rate it.

        Blank text keeps whatever was written before. The rating goes
        through mark_deep_learned, so only 4+ reaches deepLearned.
        """
        explanation = explanation.strip() if explanation else ""
        example = example.strip() if example else ""
        written = replace(
            item,
            user_explanation=explanation or item.user_explanation,
            user_example=example or item.user_example,
        )
        return self.mark_deep_learned(written, confidence)

    # -------------------------------------------------------------------------
    # Predicates (clock-aware wrappers around Item)
    # -------------------------------------------------------------------------

    def is_due_for_review(self, item: Item) -> bool:
        return item.is_due_for_review(self.clock())

    def is_due_for_quiz(self, item: Item) -> bool:
        return item.is_due_for_quiz(self.clock())

    def needs_deep_learning(self, item: Item) -> bool:
        return item.needs_deep_learning
