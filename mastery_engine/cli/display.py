"""Display Utilities - Rich output formatting."""

from typing import Iterable

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from mastery_engine.modules.achievements.interface import AchievementTemplate, EvaluationResult
from mastery_engine.modules.catalog.interface import ModuleDefinition
from mastery_engine.modules.metrics.interface import CumulativeStats
from mastery_engine.modules.notifications.interface import Notification
from mastery_engine.modules.progression.interface import ModuleProgress
from mastery_engine.shared.models import NotificationType, StepStatus

console = Console()

RARITY_STYLES = {
    "common": "white",
    "rare": "blue",
    "epic": "magenta",
    "legendary": "yellow",
}

STATUS_ICONS = {
    StepStatus.COMPLETED: "[green]done[/green]",
    StepStatus.CURRENT: "[cyan]now[/cyan]",
    StepStatus.LOCKED: "[dim]locked[/dim]",
}


def display_stats(stats: CumulativeStats) -> None:
    """Display a learner's cumulative statistics."""
    console.print(Panel.fit(
        f"[bold cyan]Learner {stats.learner_id}[/bold cyan]",
        border_style="cyan",
    ))

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Statistic", min_width=20)
    table.add_column("Value", justify="right")

    rows = [
        ("Modules completed", stats.modules_completed),
        ("Quizzes passed", stats.quizzes_passed),
        ("Perfect quizzes", stats.perfect_quizzes),
        ("Speed quizzes", stats.speed_quizzes),
        ("Current streak", f"{stats.streak_days} days"),
        ("Longest streak", f"{stats.longest_streak_days} days"),
        ("Time spent", f"{stats.total_time_spent_minutes} min"),
        ("Notes", stats.notes_count),
        ("Bookmarks", stats.bookmarks_count),
    ]
    for label, value in rows:
        table.add_row(label, str(value))

    console.print(table)


def display_achievement_progress(result: EvaluationResult) -> None:
    """Display every achievement with its progress."""
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Achievement", min_width=18)
    table.add_column("Rarity", width=10)
    table.add_column("Points", justify="right", width=7)
    table.add_column("Progress", justify="right", width=9)
    table.add_column("Status", width=10)

    for instance in result.instances:
        rarity = instance.template.rarity.value
        style = RARITY_STYLES.get(rarity, "white")
        status = "[green]unlocked[/green]" if instance.is_unlocked else "[dim]locked[/dim]"
        table.add_row(
            instance.template.title,
            f"[{style}]{rarity}[/{style}]",
            str(instance.template.points),
            f"{instance.progress_percent:.0f}%",
            status,
        )

    console.print(table)
    console.print(f"[bold]Total points:[/bold] {result.total_points}")


def display_catalog(templates: Iterable[AchievementTemplate]) -> None:
    """Display the achievement catalog."""
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Id", style="dim", min_width=16)
    table.add_column("Title", min_width=16)
    table.add_column("Category", width=10)
    table.add_column("Rarity", width=10)
    table.add_column("Points", justify="right", width=7)
    table.add_column("Requirement", min_width=25)

    for template in templates:
        rarity = template.rarity.value
        style = RARITY_STYLES.get(rarity, "white")
        table.add_row(
            template.id,
            template.title,
            template.category.value,
            f"[{style}]{rarity}[/{style}]",
            str(template.points),
            template.requirement.description or template.description,
        )

    console.print(table)


def display_modules(modules: Iterable[ModuleDefinition]) -> None:
    """Display the modules of the catalog."""
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Id", style="dim", min_width=20)
    table.add_column("Title", min_width=20)
    table.add_column("Duration", justify="right", width=9)

    for module in modules:
        table.add_row(module.id, module.title, f"{module.base_duration_minutes} min")

    console.print(table)


def display_plan(progress: ModuleProgress) -> None:
    """Display a module's adapted step plan."""
    console.print(Panel.fit(
        f"[bold cyan]{progress.module_id}[/bold cyan]\n"
        f"Tier: {progress.difficulty_tier.value} | Steps: {len(progress.steps)}",
        border_style="cyan",
    ))

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("#", style="dim", width=3)
    table.add_column("Step", min_width=22)
    table.add_column("Type", width=16)
    table.add_column("Content", width=12)
    table.add_column("Difficulty", justify="right", width=10)
    table.add_column("Time", justify="right", width=8)
    table.add_column("Status", width=8)

    for index, step in enumerate(progress.steps):
        adaptation = step.payload.get("adaptation", {})
        table.add_row(
            str(index + 1),
            step.title,
            step.type.value,
            adaptation.get("content_type", "-"),
            f"{adaptation.get('difficulty_level', 0):.1f}",
            f"{adaptation.get('estimated_minutes', 0)} min",
            STATUS_ICONS[step.status],
        )

    console.print(table)


def display_notifications(notifications: Iterable[Notification]) -> None:
    """Display achievement unlocks from a batch of notifications."""
    for notification in notifications:
        if notification.type == NotificationType.ACHIEVEMENT_UNLOCKED:
            console.print(
                f"[yellow]Achievement unlocked:[/yellow] {notification.achievement_id} "
                f"(+{notification.points} points)"
            )
