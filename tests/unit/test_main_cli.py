"""Tests for autotriage/main.py - click commands."""

import json
from unittest.mock import patch

import pytest
import structlog.testing
from click.testing import CliRunner
from conftest import ScriptedOracle, judgment, make_issue

from autotriage.config.settings import TriageConfig
from autotriage.main import cli
from autotriage.mcp.tools import TriageToolkit


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def toolkit(store, oracle):
    toolkit = TriageToolkit(store, oracle, config=TriageConfig(batch_delay=0))
    with patch("autotriage.main.TriageToolkit.from_settings", return_value=toolkit):
        yield toolkit


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("AUTOTRIAGE_CONFIG", "GITHUB_TOKEN", "GOOGLE_API_KEY", "GEMINI_MODEL"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture(autouse=True)
def captured_logs():
    """Keep log lines out of the command output."""
    with patch("autotriage.main.configure_logging"), structlog.testing.capture_logs() as logs:
        yield logs


class TestTriageCommand:
    def test_triage_issue(self, runner, toolkit, store):
        store.add(make_issue(7))

        result = runner.invoke(cli, ["triage", "octo", "widgets", "7"])

        assert result.exit_code == 0, result.output
        assert "Successfully triaged issue #7. Classified as: feature (P1, High)." in result.output
        assert store.issues[("octo", "widgets", 7)].labels == ["type-feature", "priority-p1", "complexity-high"]
        assert store.closed is True

    def test_issue_not_found(self, runner, toolkit, captured_logs):
        result = runner.invoke(cli, ["triage", "octo", "widgets", "404"])

        assert result.exit_code == 1
        assert "Error: Issue #404 not found in octo/widgets." in result.output
        assert "error" not in [entry["log_level"] for entry in captured_logs]

    def test_issue_number_must_be_positive(self, runner, toolkit):
        result = runner.invoke(cli, ["triage", "octo", "widgets", "0"])

        assert result.exit_code == 2


class TestOtherCommands:
    def test_recommend(self, runner, toolkit, store):
        store.add(make_issue(1, title="Fix docs", labels=["good first issue", "docs"]))
        store.add(make_issue(2, title="Rewrite core", labels=["hard"]))

        result = runner.invoke(cli, ["recommend", "octo", "widgets", "--label", "good first issue"])

        assert result.exit_code == 0, result.output
        assert "Found 1 recommended issue(s) in octo/widgets (filtered by: good first issue):" in result.output
        assert "**#1**: Fix docs" in result.output

    def test_batch_dry_run(self, runner, toolkit, store):
        store.add(make_issue(1))
        store.add(make_issue(2, labels=["type-bug", "priority-p2", "complexity-low"]))

        with patch("autotriage.engine.batch.asyncio.sleep") as mock_sleep:
            result = runner.invoke(cli, ["batch", "octo", "widgets"])

        assert result.exit_code == 0, result.output
        assert "Processed 2 open issue(s): 1 triaged, 1 skipped, 0 failed." in result.output
        assert store.issues[("octo", "widgets", 1)].labels == []
        mock_sleep.assert_not_called()

    def test_batch_apply(self, runner, store):
        store.add(make_issue(1))
        oracle = ScriptedOracle(judgment("bug", "P2", "Medium"))
        toolkit = TriageToolkit(store, oracle, config=TriageConfig(batch_delay=0))

        with patch("autotriage.main.TriageToolkit.from_settings", return_value=toolkit):
            result = runner.invoke(cli, ["batch", "octo", "widgets", "--apply"])

        assert result.exit_code == 0, result.output
        assert store.issues[("octo", "widgets", 1)].labels == ["type-bug", "priority-p2", "complexity-medium"]

    def test_stats_json(self, runner, toolkit, store):
        store.add(make_issue(1, labels=["type-question"]))

        result = runner.invoke(cli, ["stats", "octo", "widgets", "--json"])

        assert result.exit_code == 0, result.output
        document = json.loads(result.output)
        assert document["repository"] == "octo/widgets"
        assert document["by_type"]["question"]["count"] == 1


class TestGlobalOptions:
    def test_missing_config_file(self, runner, tmp_path):
        result = runner.invoke(cli, ["--config", str(tmp_path / "missing.yaml"), "stats", "octo", "widgets"])

        assert result.exit_code == 1
        assert "Configuration file not found" in result.output

    def test_invalid_config_file(self, runner, tmp_path):
        config_file = tmp_path / "autotriage.yaml"
        config_file.write_text("oracle:\n  provider_type: nope\n")

        result = runner.invoke(cli, ["--config", str(config_file), "stats", "octo", "widgets"])

        assert result.exit_code == 1
        assert "Failed to validate configuration" in result.output

    def test_version(self, runner):
        result = runner.invoke(cli, ["--version"])

        assert result.exit_code == 0
        assert "autotriage" in result.output
