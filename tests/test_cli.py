"""
Tests for CLI commands — lifecycle commands, output, and exit codes.
"""

import json

from click.testing import CliRunner

from pkgswitch.adapters.mock import MockInstaller
from pkgswitch.core.context import Context
from pkgswitch.main import cli


def _run(ctx: Context, *args: str):
    runner = CliRunner()
    return runner.invoke(cli, list(args), obj={"context": ctx})


class TestCLIGlobal:
    """Tests for global CLI behavior."""

    def test_help(self):
        runner = CliRunner()
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "switch between versions" in result.output
        for command in ("install", "remove", "update", "list", "search", "switch"):
            assert command in result.output

    def test_version(self):
        runner = CliRunner()
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output

    def test_missing_config_file(self, tmp_path):
        runner = CliRunner()
        result = runner.invoke(cli, ["--config", str(tmp_path / "nope.yml"), "list"])
        assert result.exit_code == 1
        assert "Config file not found" in result.output


class TestInstallCommand:
    def test_install(self, ctx: Context):
        result = _run(ctx, "install", "ripgrep", "--version", "14.1.0")
        assert result.exit_code == 0
        assert "Installing package ripgrep version 14.1.0" in result.output
        assert "Successfully installed ripgrep 14.1.0" in result.output

    def test_install_user(self, ctx: Context):
        result = _run(ctx, "install", "ripgrep", "--user")
        assert result.exit_code == 0
        assert "(user package)" in result.output
        assert ctx.store.load().packages["ripgrep"].system is False

    def test_install_json(self, ctx: Context):
        result = _run(ctx, "install", "ripgrep", "-v", "13.0.0", "--json")
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["version"] == "13.0.0"
        assert data["scope"] == "system"
        assert data["active"] is True

    def test_install_failure_exits_1(self, ctx: Context, mock_installer: MockInstaller):
        mock_installer.set_failure("install", "broken", error="no candidate")
        result = _run(ctx, "install", "broken")
        assert result.exit_code == 1
        assert "no candidate" in result.output

    def test_install_unsafe_name(self, ctx: Context):
        result = _run(ctx, "install", "../etc")
        assert result.exit_code == 1


class TestListCommand:
    def test_empty(self, ctx: Context):
        result = _run(ctx, "list")
        assert result.exit_code == 0
        assert "No packages installed" in result.output

    def test_rows(self, ctx: Context):
        _run(ctx, "install", "foo", "-v", "1.0")
        _run(ctx, "install", "foo", "-v", "2.0")
        result = _run(ctx, "list")
        assert result.exit_code == 0
        assert "foo" in result.output
        assert "system" in result.output
        assert "* v1.0 - installed on" in result.output
        assert "  v2.0 - installed on" in result.output

    def test_system_filter_empty(self, ctx: Context):
        _run(ctx, "install", "foo", "--user")
        result = _run(ctx, "list", "--system")
        assert "No system packages installed" in result.output

    def test_json(self, ctx: Context):
        _run(ctx, "install", "foo", "-v", "1.0")
        result = _run(ctx, "list", "--json")
        data = json.loads(result.output)
        assert data["total"] == 1
        assert data["packages"][0]["versions"][0]["active"] is True

    def test_corrupt_registry_exits_1(self, ctx: Context):
        ctx.store.path.parent.mkdir(parents=True, exist_ok=True)
        ctx.store.path.write_text("{oops")
        result = _run(ctx, "list")
        assert result.exit_code == 1
        assert "not valid JSON" in result.output


class TestRemoveCommand:
    def test_remove_version(self, ctx: Context):
        _run(ctx, "install", "foo", "-v", "1.0")
        _run(ctx, "install", "foo", "-v", "2.0")
        result = _run(ctx, "remove", "foo", "-v", "1.0")
        assert result.exit_code == 0
        assert "Set 2.0 as the active version" in result.output

    def test_remove_package(self, ctx: Context):
        _run(ctx, "install", "foo")
        result = _run(ctx, "remove", "foo")
        assert result.exit_code == 0
        assert "Removed package foo" in result.output

    def test_not_found_exits_0(self, ctx: Context):
        result = _run(ctx, "remove", "ghost")
        assert result.exit_code == 0
        assert "Package not found: ghost" in result.output


class TestSwitchCommand:
    def test_switch(self, ctx: Context):
        _run(ctx, "install", "foo", "-v", "1.0")
        _run(ctx, "install", "foo", "-v", "2.0")
        result = _run(ctx, "switch", "foo", "2.0")
        assert result.exit_code == 0
        assert "Switched foo to version 2.0" in result.output

    def test_already_active(self, ctx: Context):
        _run(ctx, "install", "foo", "-v", "1.0")
        result = _run(ctx, "switch", "foo", "1.0")
        assert "already at version 1.0" in result.output

    def test_unknown_version(self, ctx: Context):
        _run(ctx, "install", "foo", "-v", "1.0")
        result = _run(ctx, "switch", "foo", "9.9")
        assert result.exit_code == 0
        assert "Version 9.9 not found for package foo" in result.output


class TestUpdateCommand:
    def test_update_all(self, ctx: Context, mock_installer: MockInstaller):
        _run(ctx, "install", "a")
        _run(ctx, "install", "b")
        mock_installer.set_failure("update", "b", error="mirror down")
        result = _run(ctx, "update")
        assert result.exit_code == 0
        assert "Updated a" in result.output
        assert "Failed to update b" in result.output

    def test_update_json(self, ctx: Context):
        _run(ctx, "install", "a")
        result = _run(ctx, "update", "a", "--json")
        data = json.loads(result.output)
        assert data["updated"] == ["a"]
        assert data["status"] == "ok"

    def test_update_unknown(self, ctx: Context):
        result = _run(ctx, "update", "ghost")
        assert result.exit_code == 0
        assert "Package not found: ghost" in result.output


class TestSearchCommand:
    def test_hits(self, ctx: Context, mock_installer: MockInstaller):
        mock_installer.set_hits("rip", [("ripgrep", "fast grep")])
        result = _run(ctx, "search", "rip")
        assert result.exit_code == 0
        assert "ripgrep - fast grep [mock]" in result.output

    def test_no_matches(self, ctx: Context):
        result = _run(ctx, "search", "zzz")
        assert result.exit_code == 0
        assert "No packages found matching: zzz" in result.output

    def test_json(self, ctx: Context, mock_installer: MockInstaller):
        mock_installer.set_hits("rip", [("ripgrep", "fast grep")])
        data = json.loads(_run(ctx, "search", "rip", "--json").output)
        assert data["hits"][0]["installer"] == "mock"


class TestInfoCommands:
    def test_installers(self, ctx: Context):
        result = _run(ctx, "installers", "--json")
        assert result.exit_code == 0
        assert json.loads(result.output)["mock"]["available"] is True

    def test_history(self, ctx: Context):
        _run(ctx, "install", "foo", "-v", "1.0")
        result = _run(ctx, "history", "--json")
        entries = json.loads(result.output)
        assert entries[-1]["operation"] == "install"
        assert entries[-1]["package"] == "foo"

    def test_history_empty(self, ctx: Context):
        result = _run(ctx, "history")
        assert "No operations recorded" in result.output
