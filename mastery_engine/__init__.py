"""Mastery engine: adaptive learner profiles, step progression and achievements."""

__version__ = "0.1.0"
