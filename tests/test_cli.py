"""Tests for the click CLI."""
from __future__ import annotations

from unittest.mock import AsyncMock, patch

from click.testing import CliRunner
from rich.console import Console

from alertify.alerts.executor import NullExecutor
from alertify.alerts.notifier import ConsoleNotifier
from alertify.alerts.rules import RuleKind
from alertify.cli import main
from alertify.errors import SourceError


class TestRender:
    def test_renders_fields(self) -> None:
        result = CliRunner().invoke(main, ["render", "Battery at {left_percent}%", "-f", "left_percent=18"])
        assert result.exit_code == 0
        assert "Battery at 18%" in result.output

    def test_reports_unresolved(self) -> None:
        result = CliRunner().invoke(main, ["render", "{mount} {used_percent}", "-f", "mount=/home"])
        assert result.exit_code == 0
        assert "/home {used_percent}" in result.output
        assert "used_percent" in result.output

    def test_bad_field_syntax(self) -> None:
        result = CliRunner().invoke(main, ["render", "x", "-f", "novalue"])
        assert result.exit_code != 0
        assert "KEY=VALUE" in result.output


class TestRules:
    def test_lists_rules(self, rule_file) -> None:
        path = rule_file('[[storage]]\nlevel = 90\nsummary = "Disk full"\n\n[[device]]\nsubsystem = "usb"\n')
        with patch("alertify.cli.console", Console(width=200)):
            result = CliRunner().invoke(main, ["rules", "--config", str(path)])
        assert result.exit_code == 0
        assert "storage-{mount}-90" in result.output
        assert "subsystem=usb" in result.output

    def test_invalid_config_exits_1(self, rule_file) -> None:
        path = rule_file('[[battery]]\nlevel = "low"\n')
        result = CliRunner().invoke(main, ["rules", "--config", str(path)])
        assert result.exit_code == 1
        assert "Invalid battery rule" in result.output

    def test_empty_config(self, rule_file) -> None:
        result = CliRunner().invoke(main, ["rules", "--config", str(rule_file("# nothing\n"))])
        assert result.exit_code == 0
        assert "No rules configured" in result.output


class TestInitConfig:
    def test_writes_and_refuses_overwrite(self, tmp_path) -> None:
        path = tmp_path / "sub" / "config.toml"
        runner = CliRunner()
        first = runner.invoke(main, ["init-config", "--config", str(path)])
        assert first.exit_code == 0
        assert path.exists()

        second = runner.invoke(main, ["init-config", "--config", str(path)])
        assert second.exit_code == 0
        assert "already exists" in second.output


class TestRun:
    def test_dry_run_wires_console_backends(self, rule_file) -> None:
        path = rule_file("[[cpu]]\nlevel = 80\n")
        with patch("alertify.app.run", new_callable=AsyncMock) as mock_run:
            result = CliRunner().invoke(main, ["run", "--config", str(path), "--dry-run", "--no-events"])
        assert result.exit_code == 0, result.output
        args, kwargs = mock_run.call_args
        rules, _settings, notifier, executor = args
        assert [r.level for r in rules[RuleKind.CPU]] == [80.0]
        assert isinstance(notifier, ConsoleNotifier)
        assert isinstance(executor, NullExecutor)
        assert kwargs["listen_events"] is False

    def test_startup_error_exits_1(self, rule_file) -> None:
        path = rule_file("[[cpu]]\n")
        with patch("alertify.app.run", new_callable=AsyncMock, side_effect=SourceError("Cannot open udev monitor")):
            result = CliRunner().invoke(main, ["run", "--config", str(path)])
        assert result.exit_code == 1
        assert "udev" in result.output

    def test_rejects_unknown_log_level(self, rule_file) -> None:
        path = rule_file("[[cpu]]\n")
        with patch("alertify.app.run", new_callable=AsyncMock) as mock_run:
            result = CliRunner().invoke(main, ["run", "--config", str(path), "--log-level", "loud"])
        assert result.exit_code == 2
        assert "loud" in result.output
        mock_run.assert_not_called()


def test_version() -> None:
    result = CliRunner().invoke(main, ["--version"])
    assert result.exit_code == 0
    assert "1.0.0" in result.output
