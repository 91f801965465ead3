"""CLI Module - Command-line interface for the mastery engine.

This module provides a CLI built with Typer and Rich.

Usage:
    mastery-engine --help                         Show all commands
    mastery-engine replay events.jsonl            Replay recorded events
    mastery-engine achievements                   List the achievement catalog
    mastery-engine plan application-process       Show an adapted step plan
"""

from mastery_engine.cli.main import app, main

__all__ = ["app", "main"]
