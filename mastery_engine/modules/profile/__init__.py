"""Profile Module - Learner profile model."""

from mastery_engine.modules.profile.interface import (
    IProfileModel,
    LearnerProfile,
    PerformanceSnapshot,
    StepOutcome,
    TopicAccuracy,
)
from mastery_engine.modules.profile.service import ProfileModel, get_profile_model

__all__ = [
    "IProfileModel",
    "LearnerProfile",
    "PerformanceSnapshot",
    "StepOutcome",
    "TopicAccuracy",
    "ProfileModel",
    "get_profile_model",
]
