"""Engine-wide constants.

This module centralizes the magic numbers of the adaptation, progression
and achievement rules. Values that need to be configurable at runtime
should go in config.py instead.
"""

# ===================
# Profile Bounds
# ===================

MIN_ENGAGEMENT_LEVEL = 0
MAX_ENGAGEMENT_LEVEL = 100
DEFAULT_ENGAGEMENT_LEVEL = 50

MIN_MASTERY_LEVEL = 0.0
MAX_MASTERY_LEVEL = 100.0

# Mastery gained per assessment step = score / MASTERY_SCORE_DIVISOR
MASTERY_SCORE_DIVISOR = 10

# Assessment scores are percentages
MIN_SCORE = 0.0
MAX_SCORE = 100.0


# ===================
# Engagement Adjustment
# ===================

# actual / expected duration above this means the learner stalled
STALL_RATIO = 1.5
STALL_PENALTY = 10

# actual / expected duration below this means the learner rushed through
RUSH_RATIO = 0.8
RUSH_BONUS = 5


# ===================
# Topic Classification
# ===================

# Topics at or above this accuracy are strengths, below it gaps
STRENGTH_ACCURACY_THRESHOLD = 0.7


# ===================
# Adaptation Selector
# ===================

MIN_DIFFICULTY_LEVEL = 1.0
MAX_DIFFICULTY_LEVEL = 10.0

# base difficulty = min(mastery / DIFFICULTY_MASTERY_DIVISOR, MAX_BASE_DIFFICULTY)
DIFFICULTY_MASTERY_DIVISOR = 20
MAX_BASE_DIFFICULTY = 5.0

GRADUAL_STEP_INCREMENT = 0.5
CHALLENGE_BASE_OFFSET = 2.0
CHALLENGE_STEP_INCREMENT = 0.8
ADAPTIVE_STEP_INCREMENT = 0.6

BASE_STEP_MINUTES = 15
STEP_MINUTES_INCREMENT = 5
MIN_STEP_MINUTES = 1


# ===================
# Metrics
# ===================

# Quizzes finished faster than this count towards the speed achievement
SPEED_QUIZ_MAX_MINUTES = 5


# ===================
# Difficulty Tier
# ===================

TIER_UP_MIN_ACCURACY = 90
TIER_UP_MAX_SPEED = 1.2
TIER_UP_MIN_CONFIDENCE = 80
TIER_DOWN_MAX_ACCURACY = 70
TIER_DOWN_MAX_ATTEMPTS = 2


# ===================
# Recommendations
# ===================

REVIEW_ACCURACY_THRESHOLD = 75
PRACTICE_SPEED_THRESHOLD = 1.5
ADVANCE_ACCURACY_THRESHOLD = 85
CHALLENGE_ACCURACY_THRESHOLD = 90


# ===================
# Progression
# ===================

DEFAULT_MASTERY_PASSING_SCORE = 85
