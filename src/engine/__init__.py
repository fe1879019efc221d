"""
WordPath learning engine.

Pure, synchronous services over immutable vocabulary items.

Components:
- Item: vocabulary entry with SM-2 and learning-path state
- ReviewScheduler: SM-2 spaced repetition
- LearningStageMachine: unseen -> previewed -> quizPassed -> deepLearned
- QuestionGenerator: six active-recall question types
- DeepRemediationGenerator: remediation question for struggling words
- LearningPathPlanner: queues, stats, recommendation, daily session builder
- DailySessionOrchestrator: preview -> quiz -> deep moment -> complete
- ScoreEstimator: 130-170 score estimate, percentile, readiness
"""

from .items import (
    Difficulty,
    FrequencyTier,
    Item,
    ItemValidationError,
    LearningStage,
    WordStatus,
    validate_item_content,
)
from .planner import (
    LearningPathPlanner,
    LearningPathStats,
    Recommendation,
    RecommendationKind,
    SessionConfig,
)
from .questions import (
    AnswerResult,
    Question,
    QuestionGenerator,
    QuestionOption,
    QuestionType,
    validate_text_answer,
)
from .remediation import DeepMomentOption, DeepMomentQuestion, DeepRemediationGenerator
from .scheduler import ResponseQuality, ReviewScheduler, SM2Config
from .score import ScoreCategory, ScoreEstimator
from .session import DailySessionOrchestrator, SessionPhase, SessionSnapshot, SessionStats
from .stages import LearningStageMachine, StageEvent

__all__ = [
    # Items
    "Item",
    "Difficulty",
    "FrequencyTier",
    "WordStatus",
    "LearningStage",
    "ItemValidationError",
    "validate_item_content",
    # Scheduling
    "ReviewScheduler",
    "ResponseQuality",
    "SM2Config",
    "LearningStageMachine",
    "StageEvent",
    # Questions
    "QuestionGenerator",
    "QuestionType",
    "Question",
    "QuestionOption",
    "AnswerResult",
    "validate_text_answer",
    "DeepRemediationGenerator",
    "DeepMomentQuestion",
    "DeepMomentOption",
    # Planning
    "LearningPathPlanner",
    "LearningPathStats",
    "Recommendation",
    "RecommendationKind",
    "SessionConfig",
    # Sessions
    "DailySessionOrchestrator",
    "SessionPhase",
    "SessionStats",
    "SessionSnapshot",
    # Scoring
    "ScoreEstimator",
    "ScoreCategory",
]
