"""Integration tests for the command line interface."""

import json
from uuid import uuid4

import pytest
from typer.testing import CliRunner

from mastery_engine.cli.main import app
from mastery_engine.shared.feature_flags import FeatureFlagManager, get_feature_flags


runner = CliRunner()


@pytest.fixture(autouse=True)
def in_memory_collaborators(monkeypatch):
    """Keep the CLI on the in-memory store and logging sink."""
    monkeypatch.delenv("FF_USE_DATABASE_PERSISTENCE", raising=False)
    monkeypatch.delenv("FF_ENABLE_REDIS_NOTIFICATIONS", raising=False)
    monkeypatch.delenv("CATALOG_PATH", raising=False)
    FeatureFlagManager._instance = None
    get_feature_flags.cache_clear()


def write_events(tmp_path, lines: list[str]):
    path = tmp_path / "events.jsonl"
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path


class TestCatalogCommands:
    """Tests for the read-only catalog commands."""

    def test_achievements(self):
        """Test the achievement catalog is listed."""
        result = runner.invoke(app, ["achievements"])

        assert result.exit_code == 0
        assert "first_steps" in result.output
        assert "bookmark_collector" in result.output

    def test_modules(self):
        """Test the modules are listed."""
        result = runner.invoke(app, ["modules"])

        assert result.exit_code == 0
        assert "application-process" in result.output

    def test_plan(self):
        """Test the plan shows the tier's step sequence."""
        result = runner.invoke(app, ["plan", "application-process", "--tier", "expert"])

        assert result.exit_code == 0
        assert "Expert Applications" in result.output
        assert "Core Fundamentals" not in result.output

    def test_plan_unknown_module(self):
        """Test an unknown module exits with an error."""
        result = runner.invoke(app, ["plan", "no-such-module"])

        assert result.exit_code == 1
        assert "Module not found" in result.output

    def test_invalid_catalog_path(self, monkeypatch, tmp_path):
        """Test a broken catalog file is reported."""
        path = tmp_path / "catalog.json"
        path.write_text("[]", encoding="utf-8")
        monkeypatch.setenv("CATALOG_PATH", str(path))

        result = runner.invoke(app, ["modules"])

        assert result.exit_code == 1
        assert "Invalid catalog" in result.output


class TestReplay:
    """Tests for the replay command."""

    @pytest.fixture
    def learner(self) -> str:
        """Learner id used in the event file."""
        return str(uuid4())

    def event(self, learner: str, event_type: str, payload: dict | None = None) -> str:
        return json.dumps({
            "learner_id": learner,
            "module_id": "application-process",
            "type": event_type,
            "payload": payload or {},
            "timestamp": "2026-03-02T09:00:00+00:00",
        })

    def test_replay_reports_unlocks(self, tmp_path, learner):
        """Test replayed events update stats and announce achievements."""
        path = write_events(tmp_path, [
            self.event(learner, "quiz_attempt", {
                "score": 100, "is_perfect": True, "passed": True, "time_taken_minutes": 3,
            }),
            self.event(learner, "note_created"),
        ])

        result = runner.invoke(app, ["replay", str(path)])

        assert result.exit_code == 0
        assert "2 accepted, 0 rejected" in result.output
        assert "Achievement unlocked: perfect_score" in result.output
        assert "Total points" in result.output

    def test_replay_skips_bad_lines(self, tmp_path, learner):
        """Test malformed lines are reported and skipped."""
        path = write_events(tmp_path, [
            self.event(learner, "note_created"),
            "not json",
            self.event(learner, "bogus"),
        ])

        result = runner.invoke(app, ["replay", str(path)])

        assert result.exit_code == 0
        assert "1 accepted, 2 rejected" in result.output
        assert "Line 2 rejected" in result.output

    def test_replay_strict_stops(self, tmp_path, learner):
        """Test --strict exits on the first rejected line."""
        path = write_events(tmp_path, [self.event(learner, "bogus")])

        result = runner.invoke(app, ["replay", str(path), "--strict"])

        assert result.exit_code == 1

    def test_replay_with_enrollment(self, tmp_path, learner):
        """Test --enroll enrolls learners before their events."""
        path = write_events(tmp_path, [
            self.event(learner, "quiz_attempt", {
                "score": 50, "passed": False, "time_taken_minutes": 8,
                "topic": "fees", "correct_answers": 2, "total_questions": 4,
            }),
        ])

        result = runner.invoke(app, ["replay", str(path), "--enroll", "application-process"])

        assert result.exit_code == 0
        assert "1 accepted, 0 rejected" in result.output

    def test_missing_file(self, tmp_path):
        """Test a missing events file is a usage error."""
        result = runner.invoke(app, ["replay", str(tmp_path / "absent.jsonl")])

        assert result.exit_code != 0
