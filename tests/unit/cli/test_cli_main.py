"""Unit tests for the gladiator command-line interface."""

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from gladiator_cli import __version__
from gladiator_cli.main import app

runner = CliRunner()

SUMMARY = "Renaming files with plain mv lost the git history"


@pytest.fixture(autouse=True)
def claude_env(claude_dir: Path, monkeypatch) -> Path:
    """Run every command against a temporary assistant config root."""
    monkeypatch.delenv("GLADIATOR_CONFIG_PATH", raising=False)
    monkeypatch.delenv("GLADIATOR_DATA_DIR", raising=False)
    monkeypatch.setenv("GLADIATOR_CLAUDE_DIR", str(claude_dir))
    return claude_dir


def _log(claude_dir: Path) -> Path:
    return claude_dir / "gladiator" / "observations.jsonl"


class TestVersion:
    """Tests for --version."""

    def test_version(self):
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert f"gladiator version {__version__}" in result.output


class TestObserveCommand:
    """Tests for `gladiator observe`."""

    def test_records(self, claude_env: Path):
        result = runner.invoke(app, ["observe", SUMMARY, "--tag", "git", "-t", "rename"])

        assert result.exit_code == 0
        assert "Recorded obs_" in result.output
        assert "Tags: git, rename" in result.output
        record = json.loads(_log(claude_env).read_text())
        assert record["tags"] == ["git", "rename"]
        assert record["source"] == "manual"

    def test_context_options(self, claude_env: Path):
        result = runner.invoke(
            app, ["observe", SUMMARY, "--before", "mv a b", "--after", "git mv a b"]
        )

        assert result.exit_code == 0
        record = json.loads(_log(claude_env).read_text())
        assert record["context"] == {"before": "mv a b", "after": "git mv a b"}
        assert record["artifact_type"] == "skill"

    def test_incomplete_correction_is_skipped(self, claude_env: Path):
        result = runner.invoke(app, ["observe", SUMMARY, "--before", "mv a b"])

        assert result.exit_code == 0
        assert "Skipped" in result.output
        assert not _log(claude_env).exists()

    def test_validation_error(self, claude_env: Path):
        result = runner.invoke(app, ["observe", "too short"])

        assert result.exit_code == 1
        assert "at least 20" in result.output
        assert not _log(claude_env).exists()

    def test_invalid_type(self):
        result = runner.invoke(app, ["observe", SUMMARY, "--type", "macro"])

        assert result.exit_code == 1
        assert "artifact_type must be one of" in result.output

    def test_configuration_error(self, tmp_path: Path, monkeypatch):
        bad = tmp_path / "bad.yaml"
        bad.write_text("learning: [unclosed")
        monkeypatch.setenv("GLADIATOR_CONFIG_PATH", str(bad))

        result = runner.invoke(app, ["observe", SUMMARY])

        assert result.exit_code == 1
        assert "Configuration error" in result.output


class TestReflectCommand:
    """Tests for `gladiator reflect`."""

    def test_stats_json(self):
        result = runner.invoke(app, ["reflect", "--json"])

        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["mode"] == "stats"
        assert data["total_observations"] == 0

    def test_cluster_json(self, claude_env: Path):
        runner.invoke(app, ["observe", SUMMARY, "-t", "git", "-t", "rename"])
        runner.invoke(app, ["observe", "Blame showed nothing after the move", "-t", "git", "-t", "history"])

        result = runner.invoke(app, ["reflect", "--json"])

        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["mode"] == "cluster"
        assert data["groups_found"] == 1
        assert data["groups"][0]["action"] == "create"

    def test_cluster_table_shows_guidance(self):
        runner.invoke(app, ["observe", SUMMARY, "-t", "git"])

        result = runner.invoke(app, ["reflect"])

        assert result.exit_code == 0
        assert "Guidance" in result.output
        assert "NEW" in result.output

    def test_stats_after_reflect(self):
        runner.invoke(app, ["observe", SUMMARY, "-t", "git"])
        runner.invoke(app, ["reflect"])

        result = runner.invoke(app, ["reflect"])

        assert result.exit_code == 0
        assert "nothing unprocessed" in result.output

    def test_query(self):
        runner.invoke(app, ["observe", SUMMARY, "-t", "git"])

        result = runner.invoke(app, ["reflect", "--query", "GIT", "--json"])

        data = json.loads(result.output)
        assert data["mode"] == "query"
        assert data["matching_observations"] == 1

    def test_query_no_match(self):
        result = runner.invoke(app, ["reflect", "-q", "docker"])

        assert result.exit_code == 0
        assert "No observations match 'docker'" in result.output

    def test_invalid_limit(self):
        result = runner.invoke(app, ["reflect", "--limit", "0"])

        assert result.exit_code == 1
        assert "limit must be at least 1" in result.output


class TestArtifactsCommand:
    """Tests for `gladiator artifacts`."""

    def test_none_found(self):
        result = runner.invoke(app, ["artifacts"])

        assert result.exit_code == 0
        assert "No existing artifacts found" in result.output

    def test_lists_artifacts(self, write_rule, write_skill):
        write_rule("git", "Use git mv to keep history")
        write_skill("bash", "---\ndescription: Quoting\n---\nAlways quote variables")

        result = runner.invoke(app, ["artifacts"])

        assert result.exit_code == 0
        assert "git" in result.output
        assert "bash" in result.output
        assert "2 artifacts (1 rule, 0 hook, 1 skill)" in result.output
