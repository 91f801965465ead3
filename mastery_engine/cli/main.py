"""CLI Entry Point - Main command interface.

Commands:
    mastery-engine replay EVENTS_FILE   Feed JSON-lines events through the engine
    mastery-engine achievements         List the achievement catalog
    mastery-engine modules              List the catalog's modules
    mastery-engine plan MODULE_ID       Show the adapted step plan for a module
"""

import asyncio
import json
from pathlib import Path
from uuid import UUID, uuid4

import typer
from rich.console import Console

from mastery_engine.cli.display import (
    display_achievement_progress,
    display_catalog,
    display_modules,
    display_notifications,
    display_plan,
    display_stats,
)
from mastery_engine.shared.exceptions import MasteryEngineError
from mastery_engine.shared.logging_config import setup_logging
from mastery_engine.shared.models import DifficultyPreference, DifficultyTier, LearningStyle

# Main application
app = typer.Typer(
    name="mastery-engine",
    help="Mastery Engine - adaptive learner profiles, step progression and achievements",
    no_args_is_help=True,
)
console = Console()


def run_async(coro):
    """Helper to run async functions in sync context."""
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Configure logging before any command runs."""
    setup_logging("DEBUG" if verbose else None)


# =============================================================================
# Commands
# =============================================================================


@app.command("replay")
def replay(
    events_file: Path = typer.Argument(
        ...,
        exists=True,
        dir_okay=False,
        readable=True,
        help="JSON-lines file with one performance event per line",
    ),
    module_id: str = typer.Option(
        None,
        "--enroll",
        "-e",
        help="Enroll every learner in this module before replaying",
    ),
    strict: bool = typer.Option(
        False,
        "--strict",
        help="Stop at the first rejected event",
    ),
) -> None:
    """Replay recorded events and show the resulting stats and achievements."""
    from mastery_engine.modules.engine import MasteryEngine
    from mastery_engine.modules.notifications import InMemoryNotificationSink
    from mastery_engine.shared.database import init_db, shutdown
    from mastery_engine.shared.feature_flags import is_database_persistence_enabled

    lines = events_file.read_text(encoding="utf-8").splitlines()
    sink = InMemoryNotificationSink()

    async def _replay() -> tuple[list, int, int]:
        if is_database_persistence_enabled():
            await init_db()
        engine = MasteryEngine(sink=sink)
        learners: list[UUID] = []
        accepted = rejected = 0
        try:
            for number, line in enumerate(lines, start=1):
                if not line.strip():
                    continue
                try:
                    raw = json.loads(line)
                    if module_id and isinstance(raw, dict):
                        learner = UUID(str(raw.get("learner_id")))
                        if learner not in learners:
                            await engine.enroll(learner, module_id)
                    outcome = await engine.handle_event(raw)
                except (json.JSONDecodeError, ValueError, MasteryEngineError) as e:
                    rejected += 1
                    console.print(f"[red]Line {number} rejected:[/red] {e}")
                    if strict:
                        raise typer.Exit(1)
                    continue

                accepted += 1
                if outcome.event.learner_id not in learners:
                    learners.append(outcome.event.learner_id)

            results = []
            for learner in learners:
                results.append((
                    await engine.get_stats(learner),
                    await engine.get_achievements(learner),
                ))
        finally:
            await shutdown()
        return results, accepted, rejected

    results, accepted, rejected = run_async(_replay())

    console.print(f"\n[bold]Events:[/bold] {accepted} accepted, {rejected} rejected\n")
    display_notifications(sink.published)
    for stats, achievements in results:
        console.print()
        display_stats(stats)
        display_achievement_progress(achievements)


@app.command("achievements")
def achievements() -> None:
    """List the achievement catalog."""
    from mastery_engine.shared.service_registry import get_catalog_provider

    try:
        catalog = get_catalog_provider()
    except MasteryEngineError as e:
        console.print(f"[red]{e.message}[/red]")
        raise typer.Exit(1)

    display_catalog(catalog.get_achievement_templates())


@app.command("modules")
def modules() -> None:
    """List the modules of the catalog."""
    from mastery_engine.shared.service_registry import get_catalog_provider

    try:
        catalog = get_catalog_provider()
    except MasteryEngineError as e:
        console.print(f"[red]{e.message}[/red]")
        raise typer.Exit(1)

    display_modules(catalog.list_modules())


@app.command("plan")
def plan(
    module_id: str = typer.Argument(..., help="Module id from the catalog"),
    style: LearningStyle = typer.Option(
        LearningStyle.VISUAL, "--style", "-s", help="Learning style",
    ),
    mastery: float = typer.Option(
        0.0, "--mastery", "-m", min=0, max=100, help="Mastery level (0-100)",
    ),
    engagement: int = typer.Option(
        50, "--engagement", min=0, max=100, help="Engagement level (0-100)",
    ),
    mode: DifficultyPreference = typer.Option(
        DifficultyPreference.ADAPTIVE, "--mode", help="Difficulty ramp",
    ),
    tier: DifficultyTier = typer.Option(
        DifficultyTier.BEGINNER, "--tier", "-t", help="Difficulty tier",
    ),
) -> None:
    """Show the adapted step plan a learner profile would get for a module."""
    from mastery_engine.modules.profile import LearnerProfile
    from mastery_engine.modules.progression import generate_steps
    from mastery_engine.shared.service_registry import get_catalog_provider

    try:
        module = get_catalog_provider().get_module(module_id)
    except MasteryEngineError as e:
        console.print(f"[red]{e.message}[/red]")
        raise typer.Exit(1)

    profile = LearnerProfile(
        learner_id=uuid4(),
        module_id=module.id,
        learning_style=style,
        difficulty_preference=mode,
        engagement_level=engagement,
        mastery_level=mastery,
        difficulty_tier=tier,
    )
    display_plan(generate_steps(module, profile))


def main() -> None:
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
