"""
Tests for the career dashboard CLI (scripts/career_dashboard.py).
"""

import importlib.util
import json
from pathlib import Path

import pytest

ROOT = Path(__file__).parent.parent.parent
FIXTURE_PATH = ROOT / "tests" / "fixtures" / "career_fixture.json"


@pytest.fixture
def cli(monkeypatch):
    """Load the script as a module with logging setup disabled."""
    spec = importlib.util.spec_from_file_location(
        "career_dashboard_cli", ROOT / "scripts" / "career_dashboard.py"
    )
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    monkeypatch.setattr(module, "setup_logging", lambda **kwargs: None)
    return module


class TestCareerDashboardCli:
    """Tests for main()."""

    def test_metrics_view_from_fixture(self, cli, capsys):
        exit_code = cli.main(["--fixture", str(FIXTURE_PATH), "--view", "metrics"])

        assert exit_code == 0
        payload = json.loads(capsys.readouterr().out)
        assert payload["current_salary"] == "$130,000"
        assert payload["job_changes"] == 1

    def test_dashboard_view_is_default(self, cli, capsys):
        exit_code = cli.main(["--fixture", str(FIXTURE_PATH), "--user-id", "someone"])

        assert exit_code == 0
        payload = json.loads(capsys.readouterr().out)
        assert set(payload) == {
            "financial",
            "progression",
            "job_applications",
            "work_experiences",
            "recent_events",
            "salary_chart",
        }
        assert payload["financial"]["current_salary"] == 13000000

    def test_requires_user_or_fixture(self, cli):
        with pytest.raises(SystemExit):
            cli.main(["--view", "metrics"])

    def test_missing_mongodb_uri_fails_cleanly(self, cli, capsys, monkeypatch):
        monkeypatch.setattr(cli.Config, "MONGODB_URI", "")

        exit_code = cli.main(["--user-id", "user-1"])

        assert exit_code == 1
        assert "MONGODB_URI" in capsys.readouterr().err

    def test_unreadable_fixture_fails_cleanly(self, cli, tmp_path):
        broken = tmp_path / "broken.json"
        broken.write_text("{not json")

        assert cli.main(["--fixture", str(broken)]) == 1
