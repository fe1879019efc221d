"""
Active-recall question generation and answer checking.

Six question types, each with its own builder registered in BUILDERS:
- definition_recall: free text, keyword-scored
- sentence_completion / synonym_selection / antonym_selection /
  definition_match / word_from_definition: four-option multiple choice

Builders whose prerequisite data is missing fall back to definition_recall.
"""

from __future__ import annotations

import random
import re
import string
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from enum import Enum

from loguru import logger

from .items import Item

DISTRACTOR_COUNT = 3
OPTION_IDS = "abcdefgh"
BLANK = "_____"
MAX_ANSWER_LENGTH = 200

CORRECT_THRESHOLD = 0.6
PARTIAL_THRESHOLD = 0.3

STOP_WORDS = frozenset({
    "a", "an", "the", "is", "are", "was", "were", "be", "been", "being",
    "to", "of", "in", "for", "on", "with", "at", "by", "from", "or", "and",
})


class QuestionType(str, Enum):
    """Supported active-recall question types."""

    DEFINITION_RECALL = "definition_recall"
    SENTENCE_COMPLETION = "sentence_completion"
    SYNONYM_SELECTION = "synonym_selection"
    ANTONYM_SELECTION = "antonym_selection"
    DEFINITION_MATCH = "definition_match"
    WORD_FROM_DEFINITION = "word_from_definition"

    @property
    def description(self) -> str:
        return {
            QuestionType.DEFINITION_RECALL: "Type the definition from memory",
            QuestionType.SENTENCE_COMPLETION: "Fill in the blank with the correct word",
            QuestionType.SYNONYM_SELECTION: "Choose the word with similar meaning",
            QuestionType.ANTONYM_SELECTION: "Choose the word with opposite meaning",
            QuestionType.DEFINITION_MATCH: "Match the word to its definition",
            QuestionType.WORD_FROM_DEFINITION: "Identify the word from its definition",
        }[self]

    def is_available(self, item: Item) -> bool:
        """Check if this question type can be built for an item."""
        if self is QuestionType.SYNONYM_SELECTION:
            return bool(item.synonyms)
        if self is QuestionType.ANTONYM_SELECTION:
            return bool(item.antonyms)
        return True


def available_types(item: Item) -> list[QuestionType]:
    return [qt for qt in QuestionType if qt.is_available(item)]


# =============================================================================
# Data Classes
# =============================================================================


@dataclass(frozen=True)
class QuestionOption:
    option_id: str
    text: str
    is_correct: bool


@dataclass(frozen=True)
class Question:
    """A question built for one presentation. Never persisted."""

    item: Item
    question_type: QuestionType
    prompt: str
    correct_answer: str
    options: tuple[QuestionOption, ...] | None = None
    hint: str | None = None

    @property
    def is_free_text(self) -> bool:
        return self.options is None

    def get_option(self, option_id: str) -> QuestionOption | None:
        for option in self.options or ():
            if option.option_id == option_id:
                return option
        return None


@dataclass(frozen=True)
class AnswerResult:
    """Result of checking an answer."""

    is_correct: bool
    score: int  # 0-100
    feedback: str


# =============================================================================
# Answer checking
# =============================================================================


def sanitize_answer(text: str, max_length: int = MAX_ANSWER_LENGTH) -> str:
    """Trim whitespace and cap the length of free-text input."""
    return text.strip()[:max_length]


def extract_keywords(text: str) -> list[str]:
    """Content words of a definition: longer than two letters and not a stop word."""
    words = (word.strip(string.punctuation).lower() for word in text.split())
    return [word for word in words if len(word) > 2 and word not in STOP_WORDS]


def validate_text_answer(
    user_input: str,
    correct_answer: str,
    question_type: QuestionType,
) -> AnswerResult:
    """
    Score a free-text answer.

    Exact (case-insensitive) matches score 100. Definition recall also
    accepts answers that mention enough of the definition's keywords.
    """
    normalized_input = user_input.strip().lower()
    normalized_answer = correct_answer.strip().lower()

    if not normalized_input:
        return AnswerResult(is_correct=False, score=0, feedback="Please enter an answer")

    if normalized_input == normalized_answer:
        return AnswerResult(is_correct=True, score=100, feedback="Perfect!")

    if question_type == QuestionType.DEFINITION_RECALL:
        keywords = extract_keywords(normalized_answer)
        matched = [keyword for keyword in keywords if keyword in normalized_input]
        match_ratio = len(matched) / max(len(keywords), 1)

        if match_ratio >= CORRECT_THRESHOLD:
            return AnswerResult(
                is_correct=True,
                score=int(match_ratio * 100),
                feedback="Good recall! You captured the key concepts.",
            )
        if match_ratio >= PARTIAL_THRESHOLD:
            return AnswerResult(
                is_correct=False,
                score=int(match_ratio * 100),
                feedback="Partial understanding. Review the full definition.",
            )

    return AnswerResult(is_correct=False, score=0, feedback="Not quite. Keep practicing!")


def check_option(question: Question, option_id: str) -> AnswerResult | None:
    """Score a multiple-choice pick. Unknown option ids return None."""
    option = question.get_option(option_id)
    if option is None:
        logger.warning(f"Unknown option {option_id!r} for {question.item.term!r}")
        return None
    if option.is_correct:
        return AnswerResult(is_correct=True, score=100, feedback="Excellent!")
    return AnswerResult(is_correct=False, score=0, feedback="Not quite right.")


# =============================================================================
# Question Generator
# =============================================================================

Builder = Callable[["QuestionGenerator", Item, Sequence[Item]], Question]

# Builder registry - populated by @register decorator
BUILDERS: dict[QuestionType, Builder] = {}


def register(question_type: QuestionType):
    """Decorator to register a question builder."""
    def decorator(func: Builder) -> Builder:
        BUILDERS[question_type] = func
        return func
    return decorator


class QuestionGenerator:
    """
    Builds active-recall questions from an item and a distractor pool.

    The RNG is injected so option order and type choice are reproducible
    in tests.
    """

    def __init__(self, rng: random.Random | None = None):
        self.rng = rng or random.Random()

    def generate(self, item: Item, question_type: QuestionType, pool: Sequence[Item]) -> Question:
        """Build a question of a specific type."""
        if not question_type.is_available(item):
            logger.debug(
                f"{question_type.value} unavailable for {item.term!r}; using definition recall"
            )
            question_type = QuestionType.DEFINITION_RECALL
        return BUILDERS[question_type](self, item, pool)

    def generate_random(self, item: Item, pool: Sequence[Item]) -> Question:
        """Build a question of a random type the item supports."""
        types = available_types(item)
        question_type = self.rng.choice(types) if types else QuestionType.DEFINITION_RECALL
        return self.generate(item, question_type, pool)

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _others(self, item: Item, pool: Sequence[Item]) -> list[Item]:
        return [
            other for other in pool
            if other.item_id != item.item_id and other.term != item.term
        ]

    def _pick(self, candidates: Sequence[str], count: int, exclude: set[str]) -> list[str]:
        """Sample distinct texts without replacement, skipping excluded ones (case-insensitive)."""
        seen = {text.lower() for text in exclude}
        unique: list[str] = []
        for text in candidates:
            if text and text.lower() not in seen:
                seen.add(text.lower())
                unique.append(text)
        return self.rng.sample(unique, min(count, len(unique)))

    def _options(self, wrong: Sequence[str], correct: str) -> tuple[QuestionOption, ...]:
        entries = [(text, False) for text in wrong] + [(correct, True)]
        self.rng.shuffle(entries)
        return tuple(
            QuestionOption(option_id=OPTION_IDS[i], text=text, is_correct=is_correct)
            for i, (text, is_correct) in enumerate(entries)
        )

    # -------------------------------------------------------------------------
    # Builders
    # -------------------------------------------------------------------------

    @register(QuestionType.DEFINITION_RECALL)
    def _definition_recall(self, item: Item, pool: Sequence[Item]) -> Question:
        return Question(
            item=item,
            question_type=QuestionType.DEFINITION_RECALL,
            prompt=f'What is the definition of "{item.term}"?',
            correct_answer=item.definition,
            hint=item.mnemonic_hint,
        )

    @register(QuestionType.SENTENCE_COMPLETION)
    def _sentence_completion(self, item: Item, pool: Sequence[Item]) -> Question:
        blanked = re.sub(re.escape(item.term), BLANK, item.example_sentence, flags=re.IGNORECASE)
        others = self._others(item, pool)

        same_pos = [o.term for o in others if o.part_of_speech == item.part_of_speech]
        wrong = self._pick(same_pos, DISTRACTOR_COUNT, {item.term})
        if len(wrong) < DISTRACTOR_COUNT:
            # Not enough words share the part of speech; borrow from the rest
            rest = [o.term for o in others if o.part_of_speech != item.part_of_speech]
            wrong += self._pick(rest, DISTRACTOR_COUNT - len(wrong), {item.term, *wrong})

        return Question(
            item=item,
            question_type=QuestionType.SENTENCE_COMPLETION,
            prompt=blanked,
            correct_answer=item.term,
            options=self._options(wrong, item.term),
            hint=f"Part of speech: {item.part_of_speech}",
        )

    @register(QuestionType.SYNONYM_SELECTION)
    def _synonym_selection(self, item: Item, pool: Sequence[Item]) -> Question:
        correct = self.rng.choice(item.synonyms)
        synonyms = {s.lower() for s in item.synonyms}
        candidates = [o.term for o in self._others(item, pool) if o.term.lower() not in synonyms]
        wrong = self._pick(candidates, DISTRACTOR_COUNT, {item.term, correct})

        return Question(
            item=item,
            question_type=QuestionType.SYNONYM_SELECTION,
            prompt=f'Which word is a synonym of "{item.term}"?',
            correct_answer=correct,
            options=self._options(wrong, correct),
            hint=item.definition,
        )

    @register(QuestionType.ANTONYM_SELECTION)
    def _antonym_selection(self, item: Item, pool: Sequence[Item]) -> Question:
        correct = self.rng.choice(item.antonyms)

        # Synonyms make the most convincing decoys for an antonym question
        wrong = [s for s in item.synonyms[:2] if s.lower() != correct.lower()]
        antonyms = {a.lower() for a in item.antonyms}
        candidates = [o.term for o in self._others(item, pool) if o.term.lower() not in antonyms]
        wrong += self._pick(candidates, DISTRACTOR_COUNT - len(wrong), {item.term, correct, *wrong})

        return Question(
            item=item,
            question_type=QuestionType.ANTONYM_SELECTION,
            prompt=f'Which word is an antonym of "{item.term}"?',
            correct_answer=correct,
            options=self._options(wrong[:DISTRACTOR_COUNT], correct),
            hint=item.definition,
        )

    @register(QuestionType.DEFINITION_MATCH)
    def _definition_match(self, item: Item, pool: Sequence[Item]) -> Question:
        candidates = [o.definition for o in self._others(item, pool)]
        wrong = self._pick(candidates, DISTRACTOR_COUNT, {item.definition})

        return Question(
            item=item,
            question_type=QuestionType.DEFINITION_MATCH,
            prompt=f'Select the correct definition of "{item.term}":',
            correct_answer=item.definition,
            options=self._options(wrong, item.definition),
            hint=item.example_sentence or None,
        )

    @register(QuestionType.WORD_FROM_DEFINITION)
    def _word_from_definition(self, item: Item, pool: Sequence[Item]) -> Question:
        candidates = [o.term for o in self._others(item, pool)]
        wrong = self._pick(candidates, DISTRACTOR_COUNT, {item.term})

        return Question(
            item=item,
            question_type=QuestionType.WORD_FROM_DEFINITION,
            prompt=item.definition,
            correct_answer=item.term,
            options=self._options(wrong, item.term),
            hint=f"Part of speech: {item.part_of_speech}",
        )
