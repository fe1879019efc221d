"""
Vocabulary items and their learning state.

An Item is an immutable snapshot: every engine operation returns a new
Item via dataclasses.replace() instead of mutating the one it was given.

Contents:
- Enums: Difficulty, FrequencyTier, WordStatus, LearningStage
- Item: content fields + SM-2 state + learning-path state
- Serialisation helpers used by the persistence collaborator
- Content validation for bulk imports
"""

from __future__ import annotations

import uuid
from collections.abc import Callable
from dataclasses import dataclass, field, fields, replace
from datetime import datetime
from enum import Enum
from typing import Any

# Injected time source. Services default to datetime.now.
Clock = Callable[[], datetime]

MIN_EASE_FACTOR = 1.3
DEFAULT_EASE_FACTOR = 2.5

MAX_TERM_LENGTH = 100
MAX_DEFINITION_LENGTH = 500


# =============================================================================
# Enums
# =============================================================================


class Difficulty(str, Enum):
    """Difficulty tier of the word pack an item came from."""

    COMMON = "common"
    ADVANCED = "advanced"
    EXPERT = "expert"


class FrequencyTier(str, Enum):
    """How often a word shows up on the exam."""

    ESSENTIAL = "essential"
    COMMON = "common"
    UNCOMMON = "uncommon"
    RARE = "rare"

    @property
    def priority(self) -> int:
        return {
            FrequencyTier.ESSENTIAL: 4,
            FrequencyTier.COMMON: 3,
            FrequencyTier.UNCOMMON: 2,
            FrequencyTier.RARE: 1,
        }[self]


class WordStatus(str, Enum):
    """Coarse display status."""

    NEW = "new"
    LEARNING = "learning"
    MASTERED = "mastered"


class LearningStage(str, Enum):
    """Where an item sits on the Preview -> Quiz -> DeepLearn path."""

    UNSEEN = "unseen"
    PREVIEWED = "previewed"
    QUIZ_READY = "quizReady"
    QUIZ_PASSED = "quizPassed"
    DEEP_LEARNED = "deepLearned"

    @property
    def rank(self) -> int:
        return _STAGE_ORDER.index(self)

    @property
    def display_name(self) -> str:
        return {
            LearningStage.UNSEEN: "New",
            LearningStage.PREVIEWED: "Previewed",
            LearningStage.QUIZ_READY: "Quiz Ready",
            LearningStage.QUIZ_PASSED: "Quiz Passed",
            LearningStage.DEEP_LEARNED: "Deep Learned",
        }[self]

    @property
    def path_progress(self) -> float:
        """Progress through the learning path (0.0 to 1.0)."""
        return {
            LearningStage.UNSEEN: 0.0,
            LearningStage.PREVIEWED: 0.2,
            LearningStage.QUIZ_READY: 0.3,
            LearningStage.QUIZ_PASSED: 0.6,
            LearningStage.DEEP_LEARNED: 1.0,
        }[self]


_STAGE_ORDER = [
    LearningStage.UNSEEN,
    LearningStage.PREVIEWED,
    LearningStage.QUIZ_READY,
    LearningStage.QUIZ_PASSED,
    LearningStage.DEEP_LEARNED,
]

FIRST_QUIZ_STAGES = frozenset({LearningStage.PREVIEWED, LearningStage.QUIZ_READY})
REVIEW_QUIZ_STAGES = frozenset({LearningStage.QUIZ_PASSED, LearningStage.DEEP_LEARNED})


class ItemValidationError(ValueError):
    """Raised when item content fails validation."""


# =============================================================================
# Item
# =============================================================================


def _new_item_id() -> str:
    return uuid.uuid4().hex[:12]


@dataclass(frozen=True)
class Item:
    """
    A vocabulary entry.

    Content fields never change after import. The remaining fields hold
    SM-2 state (repetitions, ease_factor, interval), the learning-path
    stage and the counters the planner uses for prioritisation.
    """

    term: str
    definition: str
    part_of_speech: str = ""
    example_sentence: str = ""
    difficulty: Difficulty = Difficulty.COMMON
    synonyms: tuple[str, ...] = ()
    antonyms: tuple[str, ...] = ()
    mnemonic_hint: str | None = None
    root_word: str | None = None
    root_meaning: str | None = None
    related_words: tuple[str, ...] = ()
    usage_notes: str | None = None
    frequency: FrequencyTier = FrequencyTier.COMMON
    source: str = "custom"
    item_id: str = field(default_factory=_new_item_id)

    # SM-2 state
    status: WordStatus = WordStatus.NEW
    repetitions: int = 0
    ease_factor: float = DEFAULT_EASE_FACTOR
    interval: int = 1
    last_review_date: datetime | None = None
    next_review_date: datetime | None = None

    # Review analytics
    times_reviewed: int = 0
    times_correct: int = 0
    last_correct_date: datetime | None = None
    average_response_time: float = 0.0  # seconds

    # Feynman (deep learn) fields
    user_explanation: str | None = None
    user_example: str | None = None
    feynman_confidence: int = 0  # 0 = never rated, else 1-5

    # Learning path
    learning_stage: LearningStage = LearningStage.UNSEEN
    previewed_date: datetime | None = None
    quiz_pass_count: int = 0
    last_quiz_date: datetime | None = None
    next_quiz_due: datetime | None = None
    deep_learn_date: datetime | None = None
    times_quiz_failed: int = 0

    # -------------------------------------------------------------------------
    # Derived predicates
    # -------------------------------------------------------------------------

    def is_due_for_review(self, now: datetime) -> bool:
        """SM-2 review is due when the date has passed or was never set."""
        if self.next_review_date is None:
            return True
        return now >= self.next_review_date

    def is_due_for_quiz(self, now: datetime) -> bool:
        """
        Check if the item is due for a (spaced) quiz.

        Items never passed, or passed without a schedule, are due as soon
        as they have been previewed.
        """
        if self.quiz_pass_count == 0 or self.next_quiz_due is None:
            return self.learning_stage in (
                LearningStage.PREVIEWED,
                LearningStage.QUIZ_READY,
                LearningStage.QUIZ_PASSED,
            )
        return now >= self.next_quiz_due

    @property
    def needs_deep_learning(self) -> bool:
        return self.times_quiz_failed >= 2 or (
            self.learning_stage == LearningStage.QUIZ_PASSED and self.feynman_confidence < 4
        )

    @property
    def is_struggling(self) -> bool:
        return self.times_quiz_failed >= 2

    @property
    def mastery_score(self) -> float:
        """Composite 0-100 score: 40% accuracy, 40% repetitions, 20% Feynman."""
        if self.times_reviewed == 0:
            return 0.0
        accuracy_score = self.times_correct / self.times_reviewed
        repetition_score = min(1.0, self.repetitions / 5.0)
        feynman_score = self.feynman_confidence / 5.0
        return (accuracy_score * 0.4 + repetition_score * 0.4 + feynman_score * 0.2) * 100

    @property
    def learning_path_progress(self) -> float:
        return self.learning_stage.path_progress

    @property
    def has_feynman_data(self) -> bool:
        return self.user_explanation is not None or self.user_example is not None

    # -------------------------------------------------------------------------
    # Analytics update
    # -------------------------------------------------------------------------

    def record_review(self, correct: bool, response_time: float, now: datetime) -> Item:
        """Return a copy with review counters and running mean response time updated."""
        times_reviewed = self.times_reviewed + 1
        if self.average_response_time == 0:
            average = response_time
        else:
            average = (
                self.average_response_time * (times_reviewed - 1) + response_time
            ) / times_reviewed

        return replace(
            self,
            times_reviewed=times_reviewed,
            times_correct=self.times_correct + (1 if correct else 0),
            last_correct_date=now if correct else self.last_correct_date,
            average_response_time=average,
        )

    # -------------------------------------------------------------------------
    # Serialisation
    # -------------------------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-ready dictionary."""
        data: dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, Enum):
                value = value.value
            elif isinstance(value, datetime):
                value = value.isoformat()
            elif isinstance(value, tuple):
                value = list(value)
            data[f.name] = value
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Item:
        """
        Create an Item from a dictionary (JSON).

        Unknown keys are ignored; missing learning-state keys take their
        defaults so hand-written decks only need term and definition.
        """
        known = {f.name for f in fields(cls)}
        kwargs = {k: v for k, v in data.items() if k in known and v is not None}

        for key in ("synonyms", "antonyms", "related_words"):
            if key in kwargs:
                kwargs[key] = tuple(kwargs[key])
        for key, enum_cls in _ENUM_FIELDS.items():
            if key in kwargs:
                kwargs[key] = enum_cls(kwargs[key])
        for key in _DATETIME_FIELDS:
            if key in kwargs and isinstance(kwargs[key], str):
                kwargs[key] = datetime.fromisoformat(kwargs[key])

        return cls(**kwargs)


_ENUM_FIELDS: dict[str, type[Enum]] = {
    "difficulty": Difficulty,
    "frequency": FrequencyTier,
    "status": WordStatus,
    "learning_stage": LearningStage,
}

_DATETIME_FIELDS = (
    "last_review_date",
    "next_review_date",
    "last_correct_date",
    "previewed_date",
    "last_quiz_date",
    "next_quiz_due",
    "deep_learn_date",
)


def validate_item_content(term: str, definition: str) -> None:
    """
    Validate word content before it is imported.

    Raises:
        ItemValidationError: blank or over-long term/definition
    """
    if not term.strip():
        raise ItemValidationError("Term cannot be empty")
    if not definition.strip():
        raise ItemValidationError("Definition cannot be empty")
    if len(term) > MAX_TERM_LENGTH:
        raise ItemValidationError(f"Term is too long (max {MAX_TERM_LENGTH} characters)")
    if len(definition) > MAX_DEFINITION_LENGTH:
        raise ItemValidationError(
            f"Definition is too long (max {MAX_DEFINITION_LENGTH} characters)"
        )
