"""Catalog Module - Achievement templates and module definitions."""

from dataclasses import dataclass, field
from typing import Protocol

from mastery_engine.modules.achievements.interface import AchievementTemplate
from mastery_engine.shared.constants import DEFAULT_MASTERY_PASSING_SCORE


@dataclass(frozen=True)
class ModuleDefinition:
    """A learning module as published in the catalog."""

    id: str
    title: str
    description: str = ""
    topic: str | None = None  # Lesson template key; defaults to the title
    learning_objectives: tuple[str, ...] = field(default_factory=tuple)
    base_duration_minutes: int = 60
    mastery_threshold: int = DEFAULT_MASTERY_PASSING_SCORE

    @property
    def topic_key(self) -> str:
        return self.topic or self.title


class ICatalogProvider(Protocol):
    """Interface for the catalog provider."""

    def get_achievement_templates(self) -> tuple[AchievementTemplate, ...]:
        """All achievement templates, in display order."""
        ...

    def get_module(self, module_id: str) -> ModuleDefinition:
        """Look up a module.

        Raises:
            ModuleNotFoundInCatalogError: If the id is not in the catalog
        """
        ...

    def list_modules(self) -> tuple[ModuleDefinition, ...]:
        """All modules, in catalog order."""
        ...

    def total_modules(self) -> int:
        """Number of modules in the catalog."""
        ...
