"""Catalog Module - Achievement templates and module definitions."""

from mastery_engine.modules.catalog.interface import ICatalogProvider, ModuleDefinition
from mastery_engine.modules.catalog.service import (
    DEFAULT_ACHIEVEMENTS,
    DEFAULT_MODULES,
    StaticCatalogProvider,
    load_catalog_file,
)

__all__ = [
    "ICatalogProvider",
    "ModuleDefinition",
    "DEFAULT_ACHIEVEMENTS",
    "DEFAULT_MODULES",
    "StaticCatalogProvider",
    "load_catalog_file",
]
