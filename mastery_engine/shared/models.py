"""Base models and common types used across modules."""

from enum import Enum

from pydantic import BaseModel, ConfigDict


class BaseSchema(BaseModel):
    """Base schema with common configuration."""

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
    )


# Common enums and types


class LearningStyle(str, Enum):
    """How a learner prefers to take in new material."""

    VISUAL = "visual"
    AUDITORY = "auditory"
    KINESTHETIC = "kinesthetic"
    READING = "reading"


class PacePreference(str, Enum):
    """Preferred speed of progression."""

    SLOW = "slow"
    MEDIUM = "medium"
    FAST = "fast"


class DifficultyPreference(str, Enum):
    """How difficulty should ramp across a module's steps."""

    GRADUAL = "gradual"
    CHALLENGE = "challenge"
    ADAPTIVE = "adaptive"


class ComfortPreference(str, Enum):
    """How far outside their comfort zone a learner wants to be pushed.

    Independent of DifficultyPreference; only consulted by recommendations.
    """

    CHALLENGING = "challenging"
    BALANCED = "balanced"
    COMFORTABLE = "comfortable"


class DifficultyTier(str, Enum):
    """Coarse difficulty tier of a module instance."""

    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"
    EXPERT = "expert"


class ContentType(str, Enum):
    """Delivery format of a lesson step."""

    VIDEO = "video"
    INTERACTIVE = "interactive"
    TEXT = "text"
    SIMULATION = "simulation"
    QUIZ = "quiz"


class StepType(str, Enum):
    """Kind of step in a module's progression."""

    CONTENT = "content"
    ASSESSMENT = "assessment"
    INTERACTIVE = "interactive"
    SCENARIOS = "scenarios"
    FINAL_ASSESSMENT = "final_assessment"

    @property
    def is_assessment(self) -> bool:
        return self in (StepType.ASSESSMENT, StepType.FINAL_ASSESSMENT)


class StepStatus(str, Enum):
    """Progression status of a single step."""

    LOCKED = "locked"
    CURRENT = "current"
    COMPLETED = "completed"


class EventType(str, Enum):
    """Types of raw performance events."""

    LESSON_COMPLETE = "lesson_complete"
    QUIZ_ATTEMPT = "quiz_attempt"
    TIME_LOG = "time_log"
    NOTE_CREATED = "note_created"
    BOOKMARK_CREATED = "bookmark_created"


class AchievementCategory(str, Enum):
    """Grouping of achievements for display."""

    LEARNING = "learning"
    QUIZ = "quiz"
    PROGRESS = "progress"
    TIME = "time"
    SOCIAL = "social"
    SPECIAL = "special"


class Rarity(str, Enum):
    """Achievement rarity."""

    COMMON = "common"
    RARE = "rare"
    EPIC = "epic"
    LEGENDARY = "legendary"


class RequirementType(str, Enum):
    """Cumulative statistic an achievement requirement is measured against."""

    MODULES_COMPLETED = "modules_completed"
    QUIZ_PERFECT = "quiz_perfect"
    QUIZZES_PASSED = "quizzes_passed"
    STREAK_DAYS = "streak_days"
    TOTAL_TIME = "total_time"
    FIRST_MODULE = "first_module"
    ALL_MODULES = "all_modules"
    SPEED_QUIZ = "speed_quiz"
    NOTE_TAKER = "note_taker"
    BOOKMARKS = "bookmarks"


class NotificationType(str, Enum):
    """Events published to the notification sink."""

    ACHIEVEMENT_UNLOCKED = "achievement_unlocked"
    STEP_ADVANCED = "step_advanced"
    MODULE_COMPLETED = "module_completed"


class RecommendationType(str, Enum):
    """Kinds of learning recommendations."""

    REVIEW = "review"
    PRACTICE = "practice"
    ADVANCE = "advance"
    CHALLENGE = "challenge"


class Priority(str, Enum):
    """Recommendation priority."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        return {"high": 0, "medium": 1, "low": 2}[self.value]
