"""Tests for the catalog providers."""

import json

import pytest

from mastery_engine.modules.catalog import (
    DEFAULT_ACHIEVEMENTS,
    DEFAULT_MODULES,
    StaticCatalogProvider,
    load_catalog_file,
)
from mastery_engine.shared.exceptions import (
    InvalidCatalogError,
    ModuleNotFoundInCatalogError,
    ResourceNotFoundError,
)
from mastery_engine.shared.models import Rarity, RequirementType


@pytest.fixture
def write_catalog(tmp_path):
    """Write a catalog dictionary to a JSON file and return its path."""

    def _write(data) -> str:
        path = tmp_path / "catalog.json"
        path.write_text(json.dumps(data), encoding="utf-8")
        return str(path)

    return _write


class TestStaticCatalogProvider:
    """Tests for the built-in catalog."""

    def test_defaults(self, catalog):
        """Test the built-in catalog has 12 achievements and 7 modules."""
        assert len(catalog.get_achievement_templates()) == 12
        assert catalog.total_modules() == 7
        assert catalog.list_modules() == DEFAULT_MODULES

    def test_achievement_ids_unique(self):
        """Test built-in achievement ids are unique."""
        ids = [a.id for a in DEFAULT_ACHIEVEMENTS]
        assert len(ids) == len(set(ids))

    def test_get_module(self, catalog):
        """Test looking up a module by id."""
        module = catalog.get_module("documentation-requirements")

        assert module.title == "Documentation Requirements"
        assert module.topic_key == "Documentation Requirements"

    def test_unknown_module(self, catalog):
        """Test unknown ids raise ModuleNotFoundInCatalogError."""
        with pytest.raises(ModuleNotFoundInCatalogError) as exc_info:
            catalog.get_module("nope")

        assert isinstance(exc_info.value, ResourceNotFoundError)
        assert exc_info.value.details["resource_id"] == "nope"

    def test_custom_entries(self):
        """Test an empty module list gives a zero-size catalog."""
        catalog = StaticCatalogProvider(modules=[])

        assert catalog.total_modules() == 0
        assert len(catalog.get_achievement_templates()) == 12


class TestLoadCatalogFile:
    """Tests for load_catalog_file."""

    def test_valid_file(self, write_catalog):
        """Test a complete catalog file replaces both sections."""
        path = write_catalog({
            "achievements": [{
                "id": "first",
                "title": "First",
                "category": "learning",
                "rarity": "epic",
                "points": 40,
                "requirement": {"type": "modules_completed", "value": 1},
            }],
            "modules": [{
                "id": "intro",
                "title": "Intro",
                "topic": "Application Process",
                "learning_objectives": ["Read the guide"],
            }],
        })

        catalog = load_catalog_file(path)

        [achievement] = catalog.get_achievement_templates()
        assert achievement.rarity == Rarity.EPIC
        assert achievement.requirement.type == RequirementType.MODULES_COMPLETED
        assert achievement.requirement.threshold == 1
        module = catalog.get_module("intro")
        assert module.topic_key == "Application Process"
        assert module.learning_objectives == ("Read the guide",)
        assert module.mastery_threshold == 85

    def test_missing_section_uses_defaults(self, write_catalog):
        """Test a file with only modules keeps the built-in achievements."""
        catalog = load_catalog_file(write_catalog({"modules": [{"id": "a", "title": "A"}]}))

        assert catalog.total_modules() == 1
        assert catalog.get_achievement_templates() == DEFAULT_ACHIEVEMENTS

    def test_duplicate_ids_rejected(self, write_catalog):
        """Test duplicate module ids are rejected."""
        path = write_catalog({"modules": [{"id": "a", "title": "A"}, {"id": "a", "title": "B"}]})

        with pytest.raises(InvalidCatalogError) as exc_info:
            load_catalog_file(path)

        assert "Duplicate module ids" in exc_info.value.message

    def test_unknown_requirement_type_rejected(self, write_catalog):
        """Test unknown requirement types are rejected."""
        path = write_catalog({"achievements": [{
            "id": "x",
            "title": "X",
            "category": "quiz",
            "rarity": "rare",
            "points": 5,
            "requirement": {"type": "lines_of_code", "value": 3},
        }]})

        with pytest.raises(InvalidCatalogError):
            load_catalog_file(path)

    def test_zero_threshold_rejected(self, write_catalog):
        """Test thresholds below 1 are rejected except for all_modules."""
        path = write_catalog({"achievements": [{
            "id": "x",
            "title": "X",
            "category": "quiz",
            "rarity": "rare",
            "points": 5,
            "requirement": {"type": "quizzes_passed", "value": 0},
        }]})

        with pytest.raises(InvalidCatalogError):
            load_catalog_file(path)

    def test_invalid_json(self, tmp_path):
        """Test unreadable JSON is rejected."""
        path = tmp_path / "broken.json"
        path.write_text("{", encoding="utf-8")

        with pytest.raises(InvalidCatalogError) as exc_info:
            load_catalog_file(path)

        assert exc_info.value.details["source"] == str(path)

    def test_missing_file(self, tmp_path):
        """Test a missing file is rejected."""
        with pytest.raises(InvalidCatalogError):
            load_catalog_file(tmp_path / "absent.json")

    def test_top_level_must_be_object(self, write_catalog):
        """Test a JSON list is rejected."""
        with pytest.raises(InvalidCatalogError):
            load_catalog_file(write_catalog([1, 2, 3]))
