"""Unit tests for the command-line interface."""

import logging
from pathlib import Path
from typing import Iterator
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from year_builder import __version__
from year_builder.cli.main import cli
from year_builder.provision import run_pipeline
from year_builder.utils.notion_objects import normalize_id


@pytest.fixture(autouse=True)
def restore_root_handlers() -> Iterator[None]:
    """Drop the handlers each CLI invocation attaches to the root logger."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers = handlers
    root.setLevel(level)


@pytest.fixture
def runner(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> CliRunner:
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("NOTION_TOKEN", "secret_test")
    return CliRunner()


@pytest.mark.unit
class TestMain:
    def test_version(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_log_file_written(self, runner: CliRunner, tmp_path: Path) -> None:
        result = runner.invoke(cli, ["weeks", "2026"])
        assert result.exit_code == 0
        assert list((tmp_path / ".year-builder" / "logs").glob("*.log"))


@pytest.mark.unit
class TestWeeksCommand:
    def test_weeks(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["weeks", "2026"])

        assert result.exit_code == 0
        lines = result.output.splitlines()
        assert lines[0].startswith("Week 01  Dec 28 - Jan 3")
        assert lines[0].endswith("→ January")
        assert any(line.startswith("Week 14") and line.endswith("→ April") for line in lines)
        assert "53 weeks" in result.output

    def test_weeks_54(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["weeks", "2028"])
        assert "54 weeks" in result.output

    def test_year_out_of_range(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["weeks", "99"])
        assert result.exit_code != 0


@pytest.mark.unit
class TestInitCommand:
    def test_init_writes_config(self, runner: CliRunner, tmp_path: Path) -> None:
        result = runner.invoke(cli, ["init", "my-config.yaml"])

        assert result.exit_code == 0
        assert "Wrote configuration" in result.output
        assert "template_year" in (tmp_path / "my-config.yaml").read_text(encoding="utf-8")

    def test_init_refuses_overwrite(self, runner: CliRunner, tmp_path: Path) -> None:
        (tmp_path / "my-config.yaml").write_text("mine")

        result = runner.invoke(cli, ["init", "my-config.yaml"])

        assert result.exit_code == 1
        assert "Use --force" in result.output
        assert (tmp_path / "my-config.yaml").read_text() == "mine"

        result = runner.invoke(cli, ["init", "my-config.yaml", "--force"])
        assert result.exit_code == 0


@pytest.mark.unit
class TestGenerateCommand:
    """Tests for the generate and ids commands against the in-memory workspace."""

    def test_full_run(self, runner: CliRunner, store, year_page) -> None:
        with patch("year_builder.cli.generate.build_client", return_value=store):
            result = runner.invoke(cli, ["generate", "--page", year_page, "--action", "run"])

        assert result.exit_code == 0, result.output
        assert 'Found page: "2026" (year 2026)' in result.output
        assert "Phase 1: Databases" in result.output
        assert "[1/23] 2026 Trips ✅" in result.output
        assert "Phase 6e (Year record): 1 created, 0 skipped, 0 errors" in result.output
        assert "WEEKS_DATABASE_ID=" in result.output
        assert "MANUAL STEPS REQUIRED" in result.output
        assert "  • 2026 Rocks: Status, Retro" in result.output
        assert "✓ 2026 provisioned" in result.output

    def test_rerun_reports_complete_phases(self, runner: CliRunner, store, config, year_page) -> None:
        run_pipeline(store, config, year_page, 2026)

        with patch("year_builder.cli.generate.build_client", return_value=store):
            result = runner.invoke(cli, ["generate", "--page", year_page, "--action", "run"])

        assert result.exit_code == 0
        assert "Phase 4 (Weeks and months): 0 created, 65 skipped, 0 errors (already complete)" in result.output

    def test_prompts_for_page_and_action(self, runner: CliRunner, store, config, year_page) -> None:
        run_pipeline(store, config, year_page, 2026)
        url = f"https://www.notion.so/me/2026-{normalize_id(year_page)}"

        with patch("year_builder.cli.generate.build_client", return_value=store):
            result = runner.invoke(cli, ["generate"], input=f"{url}\nids\n")

        assert result.exit_code == 0, result.output
        assert "# 2026 database IDs" in result.output
        assert "MONTHS_DATABASE_ID=" in result.output
        assert "Phase 1" not in result.output

    def test_failed_steps_reported(self, runner: CliRunner, store, config, year_page) -> None:
        del store.objects[config.table("{year} Themes").source_id]

        with patch("year_builder.cli.generate.build_client", return_value=store):
            result = runner.invoke(cli, ["generate", "--page", year_page, "--action", "run"])

        assert result.exit_code == 0
        assert "Some steps failed" in result.output
        assert "✓ 2026 provisioned" not in result.output

    def test_missing_token(self, runner: CliRunner, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("NOTION_TOKEN")

        result = runner.invoke(cli, ["generate", "--page", "0" * 32, "--action", "run"])

        assert result.exit_code == 1
        assert "NOTION_TOKEN not set" in result.output

    def test_invalid_page_reference(self, runner: CliRunner, store) -> None:
        with patch("year_builder.cli.generate.build_client", return_value=store):
            result = runner.invoke(cli, ["generate", "--page", "not a page", "--action", "run"])

        assert result.exit_code == 1
        assert "Invalid Notion URL or page ID" in result.output

    def test_ids_before_generate(self, runner: CliRunner, store, year_page) -> None:
        with patch("year_builder.cli.generate.build_client", return_value=store):
            result = runner.invoke(cli, ["ids", "--page", year_page])

        assert result.exit_code == 1
        assert "No databases found" in result.output
