"""
Exam Score Estimator.

Maps learning progress onto the 130-170 verbal score scale.

Signals:
- Words mastered (every 33 words = +1 point, max +15)
- Quiz accuracy relative to a 70% baseline (-5 to +5)
- Response speed when accuracy is also high (0 to +3)
- Deep-learned words (every 25 words = +1 point, max +2)
"""

from __future__ import annotations

from enum import Enum


class ScoreCategory(str, Enum):
    SUCCESS = "success"
    WARNING = "warning"
    NEEDS_WORK = "needs_work"


# Approximate percentile per score
PERCENTILES: dict[int, int] = {
    170: 99, 169: 99, 168: 98, 167: 97, 166: 96,
    165: 95, 164: 93, 163: 91, 162: 88, 161: 86,
    160: 83, 159: 80, 158: 77, 157: 73, 156: 69,
    155: 65, 154: 61, 153: 56, 152: 52, 151: 47,
    150: 43, 149: 38, 148: 34, 147: 30, 146: 26,
    145: 22, 144: 19, 143: 16, 142: 13, 141: 10,
    140: 8,
}

# (lowest score in band, description)
SCORE_DESCRIPTIONS: list[tuple[int, str]] = [
    (170, "Perfect! Top 1% of test takers"),
    (165, "Excellent! Top 5% of test takers"),
    (160, "Great! Top 15% of test takers"),
    (155, "Good! Above average"),
    (150, "Average performance"),
    (145, "Below average - keep practicing!"),
    (140, "Needs improvement"),
]


class ScoreEstimator:
    """
    Estimates an exam score from learning statistics.

    All methods are pure; the estimator holds only its constants.
    """

    BASE_SCORE = 145
    MIN_SCORE = 130
    MAX_SCORE = 170

    WORDS_PER_POINT = 33
    MAX_MASTERY_BONUS = 15

    BASELINE_ACCURACY = 0.7
    ACCURACY_SCALE = 25
    MAX_ACCURACY_BONUS = 5

    DEEP_LEARNED_PER_POINT = 25
    MAX_DEEP_LEARN_BONUS = 2

    MIN_WORDS_PER_DAY = 5

    # -------------------------------------------------------------------------
    # Estimation
    # -------------------------------------------------------------------------

    def estimate(
        self,
        mastered_count: int,
        total_count: int,
        accuracy: float,
        avg_response_time: float = 10.0,
        deep_learned_count: int = 0,
    ) -> int:
        """
        Estimate the verbal score.

        Args:
            mastered_count: Items with status mastered
            total_count: Items in the deck (kept for callers; not weighted)
            accuracy: Overall quiz accuracy (0.0 - 1.0)
            avg_response_time: Mean response time in seconds
            deep_learned_count: Items that reached deepLearned

        Returns:
            Score clamped to 130-170
        """
        mastery_bonus = min(self.MAX_MASTERY_BONUS, mastered_count // self.WORDS_PER_POINT)

        accuracy_bonus = round((accuracy - self.BASELINE_ACCURACY) * self.ACCURACY_SCALE)
        accuracy_bonus = max(-self.MAX_ACCURACY_BONUS, min(self.MAX_ACCURACY_BONUS, accuracy_bonus))

        if avg_response_time < 5.0 and accuracy > 0.8:
            speed_bonus = 3
        elif avg_response_time < 8.0 and accuracy > 0.7:
            speed_bonus = 1
        else:
            speed_bonus = 0

        deep_learn_bonus = min(
            self.MAX_DEEP_LEARN_BONUS, deep_learned_count // self.DEEP_LEARNED_PER_POINT
        )

        score = self.BASE_SCORE + mastery_bonus + accuracy_bonus + speed_bonus + deep_learn_bonus
        return self.clamp(score)

    def estimate_from_stats(
        self,
        mastered_count: int,
        deep_learned_count: int,
        total_count: int,
        total_studied: int,
        total_correct: int,
        avg_response_time: float = 10.0,
    ) -> int:
        """Estimate from raw counters. With nothing studied, accuracy is assumed to be 70%."""
        if total_studied > 0:
            accuracy = total_correct / total_studied
        else:
            accuracy = self.BASELINE_ACCURACY

        return self.estimate(
            mastered_count=mastered_count,
            total_count=total_count,
            accuracy=accuracy,
            avg_response_time=avg_response_time,
            deep_learned_count=deep_learned_count,
        )

    def clamp(self, score: int) -> int:
        return min(self.MAX_SCORE, max(self.MIN_SCORE, score))

    # -------------------------------------------------------------------------
    # Insights
    # -------------------------------------------------------------------------

    def percentile(self, score: int) -> int:
        if score in PERCENTILES:
            return PERCENTILES[score]
        if score > self.MAX_SCORE:
            return 99
        return max(1, score - self.MIN_SCORE)

    def describe(self, score: int) -> str:
        for floor, description in SCORE_DESCRIPTIONS:
            if score >= floor:
                return description
        return "Keep studying to improve!"

    def category(self, score: int, target: int | None = None) -> ScoreCategory:
        """Bucket a score for display, relative to a target when one is set."""
        if target is not None:
            if score >= target:
                return ScoreCategory.SUCCESS
            if score >= target - 5:
                return ScoreCategory.WARNING
            return ScoreCategory.NEEDS_WORK

        if score >= 160:
            return ScoreCategory.SUCCESS
        if score >= 150:
            return ScoreCategory.WARNING
        return ScoreCategory.NEEDS_WORK

    def study_recommendation(
        self,
        current_score: int,
        target_score: int,
        days_remaining: int | None = None,
    ) -> str:
        points_needed = target_score - current_score
        if points_needed <= 0:
            return "You're on track to meet your goal!"

        words_needed = points_needed * self.WORDS_PER_POINT
        if days_remaining is not None and days_remaining > 0:
            words_per_day = max(self.MIN_WORDS_PER_DAY, words_needed // days_remaining)
            return f"Study {words_per_day} more words/day to reach {target_score}"

        return f"Master {words_needed} more words to reach {target_score}"

    # -------------------------------------------------------------------------
    # Readiness & Projection
    # -------------------------------------------------------------------------

    def readiness(
        self,
        mastered_count: int,
        total_count: int,
        current_score: int,
        target_score: int,
    ) -> float:
        """Blend of word mastery and score progress toward the target (0.0 to 1.0)."""
        word_readiness = min(1.0, mastered_count / max(1, total_count))

        if target_score > self.BASE_SCORE:
            score_progress = (current_score - self.BASE_SCORE) / (target_score - self.BASE_SCORE)
        else:
            score_progress = 1.0 if current_score >= target_score else 0.5

        overall = word_readiness * 0.5 + min(1.0, score_progress) * 0.5
        return min(1.0, max(0.0, overall))

    def project(self, current_score: int, words_per_day: float, days_remaining: int) -> int:
        """Project the score after studying at a steady rate."""
        projected_words = int(words_per_day * days_remaining)
        return min(self.MAX_SCORE, current_score + projected_words // self.WORDS_PER_POINT)
