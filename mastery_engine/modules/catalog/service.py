"""Catalog providers: the built-in catalog and JSON catalog files."""

import json
from pathlib import Path
from typing import Iterable
import logging

from pydantic import ValidationError as PydanticValidationError

from mastery_engine.modules.achievements.interface import AchievementTemplate, Requirement
from mastery_engine.modules.catalog.interface import ICatalogProvider, ModuleDefinition
from mastery_engine.modules.catalog.schemas import CatalogSchema
from mastery_engine.shared.exceptions import InvalidCatalogError, ModuleNotFoundInCatalogError
from mastery_engine.shared.models import AchievementCategory, Rarity, RequirementType

logger = logging.getLogger(__name__)


def _achievement(
    id: str,
    title: str,
    description: str,
    category: AchievementCategory,
    rarity: Rarity,
    points: int,
    requirement_type: RequirementType,
    threshold: int,
    requirement_description: str | None = None,
) -> AchievementTemplate:
    return AchievementTemplate(
        id=id,
        title=title,
        description=description,
        category=category,
        rarity=rarity,
        points=points,
        requirement=Requirement(
            type=requirement_type,
            threshold=threshold,
            description=requirement_description or description,
        ),
    )


DEFAULT_ACHIEVEMENTS: tuple[AchievementTemplate, ...] = (
    _achievement(
        "first_steps", "First Steps", "Complete your first module",
        AchievementCategory.LEARNING, Rarity.COMMON, 50,
        RequirementType.MODULES_COMPLETED, 1, "Complete 1 module",
    ),
    _achievement(
        "scholar", "Scholar", "Complete 5 modules",
        AchievementCategory.LEARNING, Rarity.RARE, 200,
        RequirementType.MODULES_COMPLETED, 5,
    ),
    _achievement(
        "master_learner", "Master Learner", "Complete all available modules",
        AchievementCategory.LEARNING, Rarity.LEGENDARY, 1000,
        RequirementType.ALL_MODULES, 1, "Complete all modules",
    ),
    _achievement(
        "perfect_score", "Perfect Score", "Score 100% on a quiz",
        AchievementCategory.QUIZ, Rarity.RARE, 150,
        RequirementType.QUIZ_PERFECT, 1, "Score 100% on any quiz",
    ),
    _achievement(
        "quiz_master", "Quiz Master", "Score 100% on 5 quizzes",
        AchievementCategory.QUIZ, Rarity.EPIC, 500,
        RequirementType.QUIZ_PERFECT, 5,
    ),
    _achievement(
        "speed_demon", "Speed Demon", "Complete a quiz in under 5 minutes",
        AchievementCategory.QUIZ, Rarity.RARE, 200,
        RequirementType.SPEED_QUIZ, 1,
    ),
    _achievement(
        "streak_starter", "Streak Starter", "Learn for 3 consecutive days",
        AchievementCategory.TIME, Rarity.COMMON, 100,
        RequirementType.STREAK_DAYS, 3,
    ),
    _achievement(
        "on_fire", "On Fire!", "Learn for 7 consecutive days",
        AchievementCategory.TIME, Rarity.RARE, 300,
        RequirementType.STREAK_DAYS, 7,
    ),
    _achievement(
        "unstoppable", "Unstoppable", "Learn for 30 consecutive days",
        AchievementCategory.TIME, Rarity.LEGENDARY, 1500,
        RequirementType.STREAK_DAYS, 30,
    ),
    _achievement(
        "dedicated_learner", "Dedicated Learner", "Spend 10 hours learning",
        AchievementCategory.TIME, Rarity.RARE, 250,
        RequirementType.TOTAL_TIME, 600,
    ),
    _achievement(
        "note_taker", "Note Taker", "Create 20 study notes",
        AchievementCategory.LEARNING, Rarity.COMMON, 100,
        RequirementType.NOTE_TAKER, 20,
    ),
    _achievement(
        "bookmark_collector", "Bookmark Collector", "Save 50 bookmarks",
        AchievementCategory.LEARNING, Rarity.COMMON, 75,
        RequirementType.BOOKMARKS, 50,
    ),
)

DEFAULT_MODULES: tuple[ModuleDefinition, ...] = (
    ModuleDefinition(
        id="sba-express-fundamentals",
        title="SBA Express Loan Fundamentals",
        description="Program basics, benefits and limitations of SBA Express loans",
        base_duration_minutes=45,
    ),
    ModuleDefinition(
        id="application-process",
        title="Application Process",
        description="The application workflow from intake to decision",
        base_duration_minutes=60,
    ),
    ModuleDefinition(
        id="documentation-requirements",
        title="Documentation Requirements",
        description="Required documents and common documentation errors",
        base_duration_minutes=50,
    ),
    ModuleDefinition(
        id="underwriting-criteria",
        title="Underwriting Criteria",
        description="How lenders assess credit, collateral and capacity",
        base_duration_minutes=75,
    ),
    ModuleDefinition(
        id="approval-process",
        title="Approval Process",
        description="Credit decisions and SBA authorization",
        base_duration_minutes=45,
    ),
    ModuleDefinition(
        id="loan-servicing",
        title="Loan Servicing",
        description="Managing loans after disbursement",
        base_duration_minutes=60,
    ),
    ModuleDefinition(
        id="compliance-requirements",
        title="Compliance Requirements",
        description="Regulatory obligations across the loan lifecycle",
        base_duration_minutes=60,
    ),
)


class StaticCatalogProvider(ICatalogProvider):
    """Catalog held in memory.

    Defaults to the built-in achievements and modules.
    """

    def __init__(
        self,
        achievements: Iterable[AchievementTemplate] | None = None,
        modules: Iterable[ModuleDefinition] | None = None,
    ) -> None:
        self._achievements = tuple(DEFAULT_ACHIEVEMENTS if achievements is None else achievements)
        self._modules = tuple(DEFAULT_MODULES if modules is None else modules)
        self._modules_by_id = {m.id: m for m in self._modules}

    def get_achievement_templates(self) -> tuple[AchievementTemplate, ...]:
        return self._achievements

    def get_module(self, module_id: str) -> ModuleDefinition:
        module = self._modules_by_id.get(module_id)
        if module is None:
            raise ModuleNotFoundInCatalogError(module_id)
        return module

    def list_modules(self) -> tuple[ModuleDefinition, ...]:
        return self._modules

    def total_modules(self) -> int:
        return len(self._modules)

    def __repr__(self) -> str:
        return (
            f"StaticCatalogProvider(achievements={len(self._achievements)}, "
            f"modules={len(self._modules)})"
        )


def load_catalog_file(path: str | Path) -> StaticCatalogProvider:
    """Load a catalog from a JSON file.

    The file holds ``{"achievements": [...], "modules": [...]}``; a missing
    section falls back to the built-in entries.

    Raises:
        InvalidCatalogError: If the file cannot be read or fails validation
    """
    source = str(path)
    try:
        raw = json.loads(Path(path).read_text(encoding="utf-8"))
    except OSError as e:
        raise InvalidCatalogError(source, f"cannot read file: {e}")
    except json.JSONDecodeError as e:
        raise InvalidCatalogError(source, f"invalid JSON: {e}")

    if not isinstance(raw, dict):
        raise InvalidCatalogError(source, "top level must be an object")

    try:
        catalog = CatalogSchema.model_validate(raw)
    except PydanticValidationError as e:
        raise InvalidCatalogError(source, str(e))

    achievements = (
        [a.to_template() for a in catalog.achievements] if "achievements" in raw else None
    )
    modules = [m.to_definition() for m in catalog.modules] if "modules" in raw else None

    provider = StaticCatalogProvider(achievements=achievements, modules=modules)
    logger.info(f"Loaded catalog from {source}: {provider!r}")
    return provider
