"""
SM-2 Spaced Repetition Scheduler.

Implements:
- SM-2 algorithm for review intervals and ease factors
- Swipe ("knew it" / "didn't know it") shortcut
- Due-item selection and days-to-mastery estimate

SM-2 Grade Scale:
0 - Complete blackout, wrong response
1 - Incorrect, but upon seeing answer remembered
2 - Incorrect, but answer seemed easy to recall
3 - Correct, but with significant difficulty
4 - Correct, with some hesitation
5 - Correct, with perfect recall
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from enum import IntEnum

from loguru import logger

from .items import MIN_EASE_FACTOR, Clock, Item, WordStatus

# Answer time that separates "hesitant" from "slow" when grading timed recall
EXPECTED_RESPONSE_MS = 10_000

# =============================================================================
# SM-2 Algorithm
# =============================================================================


class ResponseQuality(IntEnum):
    """SM-2 recall quality."""

    COMPLETE_BLACKOUT = 0
    INCORRECT = 1
    INCORRECT_EASY_RECALL = 2
    CORRECT_DIFFICULT = 3
    CORRECT_HESITATION = 4
    PERFECT_RESPONSE = 5

    @classmethod
    def from_swipe(cls, knew_it: bool) -> ResponseQuality:
        return cls.CORRECT_HESITATION if knew_it else cls.INCORRECT


@dataclass
class SM2Config:
    """Configuration for SM-2 algorithm."""

    minimum_easiness: float = MIN_EASE_FACTOR
    first_interval: int = 1  # Days for first review
    second_interval: int = 6  # Days for second review
    mastery_repetitions: int = 5  # Consecutive recalls that count as mastered


def next_ease_factor(ease_factor: float, quality: int, minimum: float = MIN_EASE_FACTOR) -> float:
    """EF' = EF + (0.1 - (5 - q) * (0.08 + (5 - q) * 0.02)), floored at the minimum."""
    ef_delta = 0.1 - (5 - quality) * (0.08 + (5 - quality) * 0.02)
    return max(minimum, ease_factor + ef_delta)


class ReviewScheduler:
    """
    Implements the SM-2 spaced repetition algorithm over Item snapshots.

    The SuperMemo 2 algorithm calculates review intervals based on
    performance history. Each item has:
    - Easiness Factor (EF): How easy the item is (2.5 default, min 1.3)
    - Interval: Days until next review
    - Repetitions: Consecutive correct recalls
    """

    def __init__(self, config: SM2Config | None = None, clock: Clock | None = None):
        """
        Initialize SM-2 scheduler.

        Args:
            config: Custom configuration (uses defaults if None)
            clock: Time source (datetime.now if None)
        """
        self.config = config or SM2Config()
        self.clock = clock or datetime.now

    def apply_response(self, item: Item, quality: int) -> Item:
        """
        Calculate the next review schedule for a response.

        Args:
            item: Current item snapshot
            quality: Recall quality (0-5)

        Returns:
            New Item with updated ease factor, interval, dates and status
        """
        if not 0 <= quality <= 5:
            raise ValueError(f"Quality must be between 0 and 5, got {quality}")

        now = self.clock()
        new_ef = next_ease_factor(item.ease_factor, quality, self.config.minimum_easiness)

        if quality < 3:
            # Failed - reset to beginning
            new_repetitions = 0
            new_interval = self.config.first_interval
        else:
            new_repetitions = item.repetitions + 1

            if new_repetitions == 1:
                new_interval = self.config.first_interval
            elif new_repetitions == 2:
                new_interval = self.config.second_interval
            else:
                new_interval = round(item.interval * new_ef)

        if new_repetitions >= self.config.mastery_repetitions:
            status = WordStatus.MASTERED
        elif new_repetitions > 0:
            status = WordStatus.LEARNING
        else:
            status = WordStatus.NEW

        logger.debug(
            f"SM-2 {item.term!r}: q={quality} ef {item.ease_factor:.2f}->{new_ef:.2f} "
            f"interval {item.interval}->{new_interval}d reps={new_repetitions}"
        )

        return replace(
            item,
            ease_factor=new_ef,
            interval=new_interval,
            repetitions=new_repetitions,
            status=status,
            last_review_date=now,
            next_review_date=now + timedelta(days=new_interval),
        )

    def apply_swipe(self, item: Item, knew_it: bool) -> Item:
        """Process a simple "knew it" or "didn't know it" response."""
        return self.apply_response(item, ResponseQuality.from_swipe(knew_it))

    def estimated_days_to_mastery(self, item: Item) -> int:
        """Sum the intervals of the successful reviews still needed for mastery."""
        remaining = max(0, self.config.mastery_repetitions - item.repetitions)
        total_days = 0
        interval = item.interval

        for i in range(remaining):
            reps_so_far = item.repetitions + i
            if reps_so_far == 0:
                interval = self.config.first_interval
            elif reps_so_far == 1:
                interval = self.config.second_interval
            else:
                interval = round(interval * item.ease_factor)
            total_days += interval

        return total_days

    def due_items(self, items: Iterable[Item], limit: int = 20) -> list[Item]:
        """
        Get items due for SM-2 review, sorted by priority.

        New items (no repetitions) come first, then the earliest
        scheduled review date.
        """
        now = self.clock()
        due = [item for item in items if item.is_due_for_review(now)]
        due.sort(
            key=lambda item: (
                item.repetitions > 0,
                item.next_review_date or datetime.min,
            )
        )
        return due[:limit]

    def grade_from_response(
        self,
        is_correct: bool,
        response_ms: int,
        expected_ms: int = EXPECTED_RESPONSE_MS,
    ) -> ResponseQuality:
        """
        Grade a timed answer.

        Quick answers (under half the expected time) earn the top grade of
        their band; answers slower than expected earn the bottom one. A quick
        miss still counts as "almost knew it".
        """
        if response_ms < expected_ms * 0.5:
            slowness = 0
        elif response_ms < expected_ms:
            slowness = 1
        else:
            slowness = 2

        best = ResponseQuality.PERFECT_RESPONSE if is_correct else ResponseQuality.INCORRECT_EASY_RECALL
        return ResponseQuality(best - slowness)
