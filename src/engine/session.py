"""
Daily Session Orchestrator.

Walks one SessionConfig through its phases:

    preview -> quiz -> deep_moment -> complete

Empty phases are skipped. The orchestrator owns the session statistics
and the latest snapshot of every item it touched; item updates and the
final stats are written through an optional repository on a best-effort
basis (a failing write is logged and remembered, never raised).

Front ends observe state through subscribe(), which delivers an immutable
SessionSnapshot after every change.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import asdict, dataclass, replace
from enum import Enum
from typing import TYPE_CHECKING, Any

from loguru import logger

from .items import Item, LearningStage
from .planner import SessionConfig
from .questions import (
    MAX_ANSWER_LENGTH,
    AnswerResult,
    Question,
    QuestionGenerator,
    check_option,
    sanitize_answer,
    validate_text_answer,
)
from .remediation import DeepMomentQuestion, DeepRemediationGenerator
from .stages import DEEP_LEARN_CONFIDENCE, LearningStageMachine

if TYPE_CHECKING:
    from src.storage.item_store import ItemRepository


class SessionPhase(str, Enum):
    PREVIEW = "preview"
    QUIZ = "quiz"
    DEEP_MOMENT = "deep_moment"
    COMPLETE = "complete"

    @property
    def progress_start(self) -> float:
        """Where this phase begins on the overall progress bar."""
        return {
            SessionPhase.PREVIEW: 0.0,
            SessionPhase.QUIZ: 0.2,
            SessionPhase.DEEP_MOMENT: 0.8,
            SessionPhase.COMPLETE: 1.0,
        }[self]

    @property
    def display_name(self) -> str:
        return {
            SessionPhase.PREVIEW: "Preview",
            SessionPhase.QUIZ: "Quiz",
            SessionPhase.DEEP_MOMENT: "Deep Moment",
            SessionPhase.COMPLETE: "Complete",
        }[self]


PREVIEW_WEIGHT = 0.2
QUIZ_WEIGHT = 0.6
DEEP_PROGRESS_BEFORE_ANSWER = 0.85
DEEP_PROGRESS_AFTER_ANSWER = 0.95

SKIPPED_RESULT = AnswerResult(is_correct=False, score=0, feedback="Review the answer to learn.")


# =============================================================================
# Session State
# =============================================================================


@dataclass
class SessionStats:
    """Running totals for one session."""

    words_previewed: int = 0
    quiz_correct: int = 0
    quiz_incorrect: int = 0
    deep_moment_completed: bool = False
    deep_moment_correct: bool = False

    @property
    def total_questions(self) -> int:
        return self.quiz_correct + self.quiz_incorrect

    @property
    def accuracy(self) -> float:
        """Quiz accuracy as a percentage (0-100)."""
        if self.total_questions == 0:
            return 0.0
        return self.quiz_correct / self.total_questions * 100

    @property
    def total_words_learned(self) -> int:
        return self.words_previewed + self.quiz_correct + (1 if self.deep_moment_correct else 0)

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["total_questions"] = self.total_questions
        data["accuracy"] = round(self.accuracy, 1)
        data["total_words_learned"] = self.total_words_learned
        return data


@dataclass(frozen=True)
class SessionSnapshot:
    """Point-in-time view of the orchestrator handed to listeners."""

    session_id: str
    phase: SessionPhase
    overall_progress: float
    phase_progress: float
    preview_index: int
    quiz_index: int
    stats: SessionStats

    @property
    def is_complete(self) -> bool:
        return self.phase == SessionPhase.COMPLETE


SessionListener = Callable[[SessionSnapshot], None]


# =============================================================================
# Orchestrator
# =============================================================================


class DailySessionOrchestrator:
    """
    Session-level state machine over a fixed SessionConfig.

    Operations called outside their phase are logged no-ops. Operations
    whose phase has run out of content move the session onward.
    """

    def __init__(
        self,
        config: SessionConfig,
        question_generator: QuestionGenerator | None = None,
        remediation_generator: DeepRemediationGenerator | None = None,
        stage_machine: LearningStageMachine | None = None,
        repository: ItemRepository | None = None,
        max_answer_length: int = MAX_ANSWER_LENGTH,
    ):
        self.config = config
        self.question_generator = question_generator or QuestionGenerator()
        self.remediation_generator = remediation_generator or DeepRemediationGenerator()
        self.stage_machine = stage_machine or LearningStageMachine()
        self.repository = repository
        self.max_answer_length = max_answer_length

        self.failed_writes: list[str] = []
        self._listeners: list[SessionListener] = []
        self._latest: dict[str, Item] = {}

        self.start()

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def start(self) -> None:
        """Reset all session state and enter the first phase with content."""
        self.stats = SessionStats()
        self.preview_index = 0
        self.quiz_index = 0
        self._reset_quiz_state()
        self._reset_deep_state()

        if self.config.has_preview_phase:
            self.phase = SessionPhase.PREVIEW
        elif self.config.has_quiz_phase:
            self.phase = SessionPhase.QUIZ
            self._load_quiz_question()
        elif self.config.has_deep_moment_phase:
            self.phase = SessionPhase.DEEP_MOMENT
            self._load_deep_question()
        else:
            self._complete()

        logger.debug(f"Session {self.config.session_id} started in {self.phase.value}")
        self._notify()

    @property
    def is_complete(self) -> bool:
        return self.phase == SessionPhase.COMPLETE

    # -------------------------------------------------------------------------
    # Current items
    # -------------------------------------------------------------------------

    def current_snapshot_of(self, item: Item) -> Item:
        """Latest version of an item as changed by this session."""
        return self._latest.get(item.item_id, item)

    @property
    def current_preview_item(self) -> Item | None:
        if self.preview_index >= len(self.config.preview_items):
            return None
        return self.current_snapshot_of(self.config.preview_items[self.preview_index])

    @property
    def current_quiz_item(self) -> Item | None:
        if self.quiz_index >= len(self.config.quiz_items):
            return None
        return self.current_snapshot_of(self.config.quiz_items[self.quiz_index])

    @property
    def deep_learn_item(self) -> Item | None:
        if self.config.deep_learn_item is None:
            return None
        return self.current_snapshot_of(self.config.deep_learn_item)

    def updated_items(self) -> list[Item]:
        return list(self._latest.values())

    # -------------------------------------------------------------------------
    # Preview Phase
    # -------------------------------------------------------------------------

    def advance_preview(self) -> None:
        """Mark the current preview item as seen and move to the next one."""
        if not self._in_phase(SessionPhase.PREVIEW, "advance_preview"):
            return

        item = self.current_preview_item
        if item is not None and item.learning_stage == LearningStage.UNSEEN:
            self._store(self.stage_machine.mark_previewed(item))
            self.stats.words_previewed += 1

        self.preview_index += 1
        if self.preview_index >= len(self.config.preview_items):
            self._transition()
        self._notify()

    def previous_preview(self) -> None:
        """Step back one preview card. Nothing is recorded."""
        if not self._in_phase(SessionPhase.PREVIEW, "previous_preview"):
            return
        if self.preview_index == 0:
            return
        self.preview_index -= 1
        self._notify()

    # -------------------------------------------------------------------------
    # Quiz Phase
    # -------------------------------------------------------------------------

    def load_quiz_question(self) -> Question | None:
        """(Re)build the question for the current quiz item."""
        if not self._in_phase(SessionPhase.QUIZ, "load_quiz_question"):
            return None
        question = self._load_quiz_question()
        self._notify()
        return question

    def submit_text_answer(self, text: str) -> AnswerResult | None:
        question = self.current_question
        if not self._in_phase(SessionPhase.QUIZ, "submit_text_answer") or question is None:
            return None

        # Never cut an answer shorter than the text it is checked against
        limit = max(self.max_answer_length, len(question.correct_answer))
        answer = sanitize_answer(text, limit)
        self.quiz_result = validate_text_answer(
            answer, question.correct_answer, question.question_type
        )
        self._notify()
        return self.quiz_result

    def submit_option(self, option_id: str) -> AnswerResult | None:
        question = self.current_question
        if not self._in_phase(SessionPhase.QUIZ, "submit_option") or question is None:
            return None

        result = check_option(question, option_id)
        if result is None:
            return None
        self.quiz_result = result
        self._notify()
        return result

    def skip_quiz_question(self) -> AnswerResult | None:
        if not self._in_phase(SessionPhase.QUIZ, "skip_quiz_question"):
            return None
        self.quiz_result = SKIPPED_RESULT
        self._notify()
        return self.quiz_result

    def proceed_quiz(self, recorded_as_correct: bool | None = None) -> None:
        """
        Record the current quiz item and move on.

        Args:
            recorded_as_correct: Override for the scored result (e.g. the
                learner marks a near-miss as correct). Defaults to the
                scored result, or incorrect when nothing was submitted.
        """
        if not self._in_phase(SessionPhase.QUIZ, "proceed_quiz"):
            return

        if recorded_as_correct is None:
            passed = self.quiz_result is not None and self.quiz_result.is_correct
        else:
            passed = recorded_as_correct

        if passed:
            self.stats.quiz_correct += 1
        else:
            self.stats.quiz_incorrect += 1

        item = self.current_quiz_item
        if item is not None:
            self._store(self.stage_machine.record_quiz_attempt(item, passed))

        self.quiz_index += 1
        if self.quiz_index >= len(self.config.quiz_items):
            self._transition()
        else:
            self._load_quiz_question()
        self._notify()

    # -------------------------------------------------------------------------
    # Deep Moment Phase
    # -------------------------------------------------------------------------

    def load_deep_question(self) -> DeepMomentQuestion | None:
        if not self._in_phase(SessionPhase.DEEP_MOMENT, "load_deep_question"):
            return None
        question = self._load_deep_question()
        self._notify()
        return question

    def submit_deep_option(self, option_id: str) -> bool | None:
        """
        Answer the deep-moment question once.

        Returns:
            Whether the chosen explanation was correct, or None when the
            submission was ignored
        """
        question = self.deep_question
        if not self._in_phase(SessionPhase.DEEP_MOMENT, "submit_deep_option") or question is None:
            return None
        if self.deep_answered:
            logger.debug("Deep moment already answered; ignoring resubmission")
            return None

        option = question.get_option(option_id)
        if option is None:
            logger.warning(f"Unknown deep moment option {option_id!r}")
            return None

        self.deep_answered = True
        self.deep_correct = option.is_correct
        self.stats.deep_moment_completed = True
        self.stats.deep_moment_correct = option.is_correct

        item = self.deep_learn_item
        if option.is_correct and item is not None:
            self._store(self.stage_machine.mark_deep_learned(item, DEEP_LEARN_CONFIDENCE))

        self._notify()
        return option.is_correct

    def finish_deep_moment(self) -> None:
        if not self._in_phase(SessionPhase.DEEP_MOMENT, "finish_deep_moment"):
            return
        self._transition()
        self._notify()

    def skip_deep_moment(self) -> None:
        if not self._in_phase(SessionPhase.DEEP_MOMENT, "skip_deep_moment"):
            return
        self.stats.deep_moment_completed = True
        self._transition()
        self._notify()

    # -------------------------------------------------------------------------
    # Progress
    # -------------------------------------------------------------------------

    @property
    def overall_progress(self) -> float:
        """Weighted progress through the whole session (0.0 to 1.0)."""
        if self.phase == SessionPhase.PREVIEW:
            return self._fraction(self.preview_index, len(self.config.preview_items)) * PREVIEW_WEIGHT
        if self.phase == SessionPhase.QUIZ:
            fraction = self._fraction(self.quiz_index, len(self.config.quiz_items))
            return SessionPhase.QUIZ.progress_start + fraction * QUIZ_WEIGHT
        if self.phase == SessionPhase.DEEP_MOMENT:
            return DEEP_PROGRESS_AFTER_ANSWER if self.deep_answered else DEEP_PROGRESS_BEFORE_ANSWER
        return 1.0

    @property
    def phase_progress(self) -> float:
        """Progress within the current phase (0.0 to 1.0)."""
        if self.phase == SessionPhase.PREVIEW:
            if not self.config.preview_items:
                return 1.0
            return self.preview_index / len(self.config.preview_items)
        if self.phase == SessionPhase.QUIZ:
            if not self.config.quiz_items:
                return 1.0
            return self.quiz_index / len(self.config.quiz_items)
        if self.phase == SessionPhase.DEEP_MOMENT:
            return 1.0 if self.deep_answered else 0.0
        return 1.0

    @property
    def active_phases(self) -> list[SessionPhase]:
        phases = []
        if self.config.has_preview_phase:
            phases.append(SessionPhase.PREVIEW)
        if self.config.has_quiz_phase:
            phases.append(SessionPhase.QUIZ)
        if self.config.has_deep_moment_phase:
            phases.append(SessionPhase.DEEP_MOMENT)
        return phases

    @staticmethod
    def _fraction(index: int, total: int) -> float:
        return index / total if total else 0.0

    # -------------------------------------------------------------------------
    # Observers
    # -------------------------------------------------------------------------

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            session_id=self.config.session_id,
            phase=self.phase,
            overall_progress=self.overall_progress,
            phase_progress=self.phase_progress,
            preview_index=self.preview_index,
            quiz_index=self.quiz_index,
            stats=replace(self.stats),
        )

    def subscribe(self, listener: SessionListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: SessionListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self) -> None:
        if not self._listeners:
            return
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            listener(snapshot)

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _in_phase(self, phase: SessionPhase, operation: str) -> bool:
        if self.phase != phase:
            logger.debug(f"{operation} ignored in phase {self.phase.value}")
            return False
        return True

    def _reset_quiz_state(self) -> None:
        self.current_question: Question | None = None
        self.quiz_result: AnswerResult | None = None

    def _reset_deep_state(self) -> None:
        self.deep_question: DeepMomentQuestion | None = None
        self.deep_answered = False
        self.deep_correct = False

    def _load_quiz_question(self) -> Question | None:
        self._reset_quiz_state()
        item = self.current_quiz_item
        if item is None:
            self._transition()
            return None

        pool = [self.current_snapshot_of(quiz_item) for quiz_item in self.config.quiz_items]
        self.current_question = self.question_generator.generate_random(item, pool)
        return self.current_question

    def _load_deep_question(self) -> DeepMomentQuestion | None:
        self._reset_deep_state()
        item = self.deep_learn_item
        if item is None:
            self._transition()
            return None

        self.deep_question = self.remediation_generator.generate(item)
        return self.deep_question

    def _transition(self) -> None:
        """Move to the next phase that has content."""
        previous = self.phase

        if self.phase == SessionPhase.PREVIEW and self.quiz_index < len(self.config.quiz_items):
            self.phase = SessionPhase.QUIZ
            self._load_quiz_question()
        elif (
            self.phase in (SessionPhase.PREVIEW, SessionPhase.QUIZ)
            and self.config.has_deep_moment_phase
        ):
            self.phase = SessionPhase.DEEP_MOMENT
            self._load_deep_question()
        elif self.phase != SessionPhase.COMPLETE:
            self._complete()

        logger.debug(f"Session {self.config.session_id}: {previous.value} -> {self.phase.value}")

    def _complete(self) -> None:
        self.phase = SessionPhase.COMPLETE
        self._reset_quiz_state()
        self._persist_stats()

    def _store(self, item: Item) -> None:
        self._latest[item.item_id] = item
        if self.repository is None:
            return
        try:
            self.repository.save_items([item])
        except Exception as e:
            logger.warning(f"Could not save {item.term!r}: {e}")
            self.failed_writes.append(item.item_id)

    def _persist_stats(self) -> None:
        if self.repository is None:
            return
        try:
            self.repository.save_session_stats(self.config.session_id, self.stats.to_dict())
        except Exception as e:
            logger.warning(f"Could not save stats for session {self.config.session_id}: {e}")
            self.failed_writes.append(f"session:{self.config.session_id}")
