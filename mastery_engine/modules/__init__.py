"""Domain modules of the mastery engine."""
