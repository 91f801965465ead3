"""Test configuration and fixtures."""

import sys
from datetime import datetime, timezone
from pathlib import Path

# Load environment variables before any imports that need them
from dotenv import load_dotenv
project_root = Path(__file__).parent.parent
load_dotenv(project_root / ".env")

# Give Rich a wide terminal so CLI tables are not truncated under CliRunner
import os
os.environ.setdefault("COLUMNS", "200")

# Ensure the package is importable without installation
sys.path.insert(0, str(project_root))

from typing import Any, Callable
from uuid import UUID, uuid4

import pytest

from mastery_engine.modules.catalog import StaticCatalogProvider
from mastery_engine.modules.engine import MasteryEngine
from mastery_engine.modules.notifications import InMemoryNotificationSink
from mastery_engine.modules.store import InMemoryProgressStore
from mastery_engine.shared.config import Settings, get_settings
from mastery_engine.shared.feature_flags import FeatureFlagManager, get_feature_flags
from mastery_engine.shared.service_registry import ServiceRegistry, get_service_registry


@pytest.fixture(autouse=True)
def reset_singletons():
    """Reset cached settings, feature flags and registry between tests."""
    yield
    get_settings.cache_clear()
    FeatureFlagManager._instance = None
    get_feature_flags.cache_clear()
    ServiceRegistry._instance = None
    get_service_registry.cache_clear()


@pytest.fixture
def learner_id() -> UUID:
    """Create a test learner ID."""
    return uuid4()


@pytest.fixture
def test_settings() -> Settings:
    """Settings with no retry delays."""
    return Settings(
        store_max_retries=3,
        store_retry_base_delay_seconds=0.0,
        max_conflict_retries=3,
    )


@pytest.fixture
def store() -> InMemoryProgressStore:
    """Create an empty in-memory store."""
    return InMemoryProgressStore()


@pytest.fixture
def sink() -> InMemoryNotificationSink:
    """Create a notification sink that records what is published."""
    return InMemoryNotificationSink()


@pytest.fixture
def catalog() -> StaticCatalogProvider:
    """Built-in catalog."""
    return StaticCatalogProvider()


@pytest.fixture
def engine(
    store: InMemoryProgressStore,
    sink: InMemoryNotificationSink,
    catalog: StaticCatalogProvider,
    test_settings: Settings,
) -> MasteryEngine:
    """Engine wired to in-memory collaborators."""
    return MasteryEngine(store=store, sink=sink, catalog=catalog, settings=test_settings)


@pytest.fixture
def make_event(learner_id: UUID) -> Callable[..., dict[str, Any]]:
    """Build raw interchange records for the test learner."""

    def _make(
        event_type: str,
        payload: dict[str, Any] | None = None,
        *,
        module_id: str | None = "application-process",
        timestamp: datetime | None = None,
        learner: UUID | None = None,
    ) -> dict[str, Any]:
        return {
            "learner_id": str(learner or learner_id),
            "module_id": module_id,
            "type": event_type,
            "payload": payload or {},
            "timestamp": (timestamp or datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)).isoformat(),
        }

    return _make
