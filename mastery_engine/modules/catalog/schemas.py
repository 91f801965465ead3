"""Pydantic schemas for JSON catalog files."""

from pydantic import Field, model_validator

from mastery_engine.modules.achievements.interface import AchievementTemplate, Requirement
from mastery_engine.modules.catalog.interface import ModuleDefinition
from mastery_engine.shared.constants import DEFAULT_MASTERY_PASSING_SCORE
from mastery_engine.shared.models import (
    AchievementCategory,
    BaseSchema,
    Rarity,
    RequirementType,
)


class RequirementSchema(BaseSchema):
    """Achievement requirement."""

    type: RequirementType
    threshold: int = Field(default=1, ge=0, alias="value")
    description: str = ""


class AchievementTemplateSchema(BaseSchema):
    """Achievement template entry."""

    id: str = Field(min_length=1)
    title: str
    description: str = ""
    category: AchievementCategory
    rarity: Rarity
    points: int = Field(ge=0)
    requirement: RequirementSchema

    @model_validator(mode="after")
    def check_threshold(self) -> "AchievementTemplateSchema":
        if self.requirement.type != RequirementType.ALL_MODULES and self.requirement.threshold < 1:
            raise ValueError(f"Achievement {self.id} needs a threshold of at least 1")
        return self

    def to_template(self) -> AchievementTemplate:
        return AchievementTemplate(
            id=self.id,
            title=self.title,
            description=self.description,
            category=self.category,
            rarity=self.rarity,
            points=self.points,
            requirement=Requirement(
                type=self.requirement.type,
                threshold=self.requirement.threshold,
                description=self.requirement.description,
            ),
        )


class ModuleSchema(BaseSchema):
    """Module entry."""

    id: str = Field(min_length=1)
    title: str
    description: str = ""
    topic: str | None = None
    learning_objectives: list[str] = Field(default_factory=list)
    base_duration_minutes: int = Field(default=60, ge=1)
    mastery_threshold: int = Field(default=DEFAULT_MASTERY_PASSING_SCORE, ge=0, le=100)

    def to_definition(self) -> ModuleDefinition:
        return ModuleDefinition(
            id=self.id,
            title=self.title,
            description=self.description,
            topic=self.topic,
            learning_objectives=tuple(self.learning_objectives),
            base_duration_minutes=self.base_duration_minutes,
            mastery_threshold=self.mastery_threshold,
        )


class CatalogSchema(BaseSchema):
    """A complete catalog file."""

    achievements: list[AchievementTemplateSchema] = Field(default_factory=list)
    modules: list[ModuleSchema] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_unique_ids(self) -> "CatalogSchema":
        for kind, ids in (
            ("achievement", [a.id for a in self.achievements]),
            ("module", [m.id for m in self.modules]),
        ):
            duplicates = sorted({i for i in ids if ids.count(i) > 1})
            if duplicates:
                raise ValueError(f"Duplicate {kind} ids: {', '.join(duplicates)}")
        return self
