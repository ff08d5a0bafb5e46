"""
Tests for the installer contract, registry, mock, and backends.
"""

from pathlib import Path

import pytest

from pkgswitch.adapters.base import executables_in
from pkgswitch.adapters.languages.cargo import CargoInstaller, _parse_cargo_search
from pkgswitch.adapters.mock import MockInstaller
from pkgswitch.adapters.registry import InstallerRegistry, build_default_registry
from pkgswitch.adapters.system.native import (
    NativeInstaller,
    _executables_from_listing,
    _parse_apk,
    _parse_apt,
    _parse_brew,
    _parse_dnf,
    _parse_pacman,
    _parse_zypper,
)
from pkgswitch.core.errors import NoInstallerAvailable
from pkgswitch.core.models.receipt import Receipt

# ── Mock Installer Tests ─────────────────────────────────────────────


class TestMockInstaller:
    def test_install_writes_executable(self, tmp_path: Path):
        mock = MockInstaller()
        receipt = mock.install("rg", "14.1.0", tmp_path / "rg" / "14.1.0", False)
        assert receipt.ok
        exe = tmp_path / "rg" / "14.1.0" / "bin" / "rg"
        assert receipt.bin_paths == [str(exe)]
        assert exe.is_file()
        assert mock.call_count == 1

    def test_install_without_files(self, tmp_path: Path):
        mock = MockInstaller(write_files=False)
        receipt = mock.install("rg", None, tmp_path, True)
        assert receipt.ok
        assert receipt.bin_paths == []
        assert not (tmp_path / "bin").exists()

    def test_set_failure(self, tmp_path: Path):
        mock = MockInstaller()
        mock.set_failure("install", "broken", error="no such package")
        receipt = mock.install("broken", None, tmp_path, False)
        assert receipt.failed
        assert receipt.error == "no such package"

    def test_search_hits(self):
        mock = MockInstaller(installer_name="apt")
        mock.set_hits("rip", [("ripgrep", "fast grep")])
        receipt = mock.search("rip")
        assert [h.name for h in receipt.hits] == ["ripgrep"]
        assert receipt.hits[0].installer == "apt"
        assert mock.search("other").hits == []

    def test_calls_and_reset(self, tmp_path: Path):
        mock = MockInstaller()
        mock.install("a", None, tmp_path / "a", False)
        mock.update("a", None, tmp_path / "a", False)
        assert len(mock.calls("update")) == 1
        mock.reset()
        assert mock.call_count == 0


# ── Registry Tests ───────────────────────────────────────────────────


class TestInstallerRegistry:
    def test_register_and_get(self):
        reg = InstallerRegistry()
        mock = MockInstaller(installer_name="apt")
        reg.register(mock)
        assert reg.get("apt") is mock
        assert reg.get("nope") is None
        assert reg.list_installers() == ["apt"]

    def test_unregister(self):
        reg = InstallerRegistry()
        reg.register(MockInstaller(installer_name="apt"))
        reg.unregister("apt")
        assert reg.list_installers() == []

    def test_detect_first_available(self):
        reg = InstallerRegistry()
        reg.register(MockInstaller(installer_name="apt", available=False))
        reg.register(MockInstaller(installer_name="dnf"))
        reg.register(MockInstaller(installer_name="pip"))
        assert reg.detect().name == "dnf"

    def test_detect_preferred(self):
        reg = InstallerRegistry()
        reg.register(MockInstaller(installer_name="apt"))
        reg.register(MockInstaller(installer_name="pip"))
        assert reg.detect("pip").name == "pip"

    def test_detect_nothing(self):
        reg = InstallerRegistry()
        reg.register(MockInstaller(installer_name="apt", available=False))
        with pytest.raises(NoInstallerAvailable, match="checked: apt"):
            reg.detect()

    def test_require_unavailable(self):
        reg = InstallerRegistry()
        reg.register(MockInstaller(installer_name="apt", available=False))
        with pytest.raises(NoInstallerAvailable):
            reg.require("apt")
        with pytest.raises(NoInstallerAvailable):
            reg.require("ghost")

    def test_disabled_installers_are_skipped(self):
        reg = InstallerRegistry(disabled=["apt"])
        reg.register(MockInstaller(installer_name="apt"))
        reg.register(MockInstaller(installer_name="pip"))
        assert [i.name for i in reg.available()] == ["pip"]
        status = reg.installer_status()
        assert status["apt"]["disabled"] is True
        assert status["apt"]["available"] is False
        assert status["pip"]["type"] == "MockInstaller"

    def test_mock_mode(self):
        reg = InstallerRegistry(mock_mode=True)
        reg.register(MockInstaller(installer_name="apt", available=False))
        assert isinstance(reg.get("apt"), MockInstaller)
        assert reg.require("anything").name == "mock"
        assert [i.name for i in reg.available()] == ["mock"]

    def test_call_turns_exceptions_into_receipts(self, tmp_path: Path):
        class Exploding(MockInstaller):
            def install(self, package, version, target_dir, user_scope):
                raise RuntimeError("kaboom")

        reg = InstallerRegistry()
        boom = Exploding(installer_name="boom")
        receipt = reg.install(boom, "pkg", None, tmp_path, False)
        assert receipt.failed
        assert "kaboom" in receipt.error
        assert receipt.operation == "install"

    def test_default_registry_order(self):
        reg = build_default_registry(timeout=5)
        names = reg.list_installers()
        assert names[:7] == ["apt", "dnf", "yum", "zypper", "pacman", "apk", "brew"]
        assert names[7:] == ["pip", "npm", "cargo"]


# ── Search Parser Tests ──────────────────────────────────────────────


class TestSearchParsers:
    def test_apt(self):
        out = "ripgrep - Recursively searches directories\nelpa-rg - ripgrep frontend\n"
        assert _parse_apt(out) == [
            ("ripgrep", "Recursively searches directories"),
            ("elpa-rg", "ripgrep frontend"),
        ]

    def test_dnf(self):
        out = (
            "Last metadata expiration check: 0:01:02 ago\n"
            "===== Name Exactly Matched: ripgrep =====\n"
            "ripgrep.x86_64 : Line oriented search tool\n"
        )
        assert _parse_dnf(out) == [("ripgrep", "Line oriented search tool")]

    def test_zypper(self):
        out = (
            "S | Name    | Summary                 | Type\n"
            "--+---------+-------------------------+--------\n"
            "  | ripgrep | A search tool           | package\n"
        )
        assert _parse_zypper(out) == [("ripgrep", "A search tool")]

    def test_pacman(self):
        out = (
            "extra/ripgrep 14.1.0-1 [installed]\n"
            "    A search tool that combines ag with grep\n"
            "extra/ripgrep-all 0.10.6-1\n"
            "    rga: ripgrep, but also search in PDFs\n"
        )
        assert _parse_pacman(out) == [
            ("ripgrep", "A search tool that combines ag with grep"),
            ("ripgrep-all", "rga: ripgrep, but also search in PDFs"),
        ]

    def test_apk(self):
        out = "ripgrep-14.1.0-r0 - ripgrep recursively searches directories\n"
        assert _parse_apk(out) == [("ripgrep", "ripgrep recursively searches directories")]

    def test_brew(self):
        out = "==> Formulae\nripgrep: Search tool like grep and The Silver Searcher\n"
        assert _parse_brew(out) == [("ripgrep", "Search tool like grep and The Silver Searcher")]

    def test_cargo(self):
        out = (
            'ripgrep = "14.1.0"    # ripgrep is a line-oriented search tool\n'
            'grep-cli = "0.1.10"   # Utilities for search oriented command line apps\n'
            "... and 42 crates more (use --limit N to see more)\n"
        )
        assert _parse_cargo_search(out) == [
            ("ripgrep", "ripgrep is a line-oriented search tool"),
            ("grep-cli", "Utilities for search oriented command line apps"),
        ]


# ── Native Installer Tests ───────────────────────────────────────────


class TestNativeInstaller:
    def test_unknown_manager(self):
        with pytest.raises(ValueError):
            NativeInstaller("emerge")

    def test_package_spec(self):
        assert NativeInstaller("apt")._package_spec("rg", "14.1.0") == "rg=14.1.0"
        assert NativeInstaller("dnf")._package_spec("rg", "14.1.0") == "rg-14.1.0"
        assert NativeInstaller("brew")._package_spec("node", "20") == "node@20"
        assert NativeInstaller("apt")._package_spec("rg", None) == "rg"

    def test_pacman_cannot_pin(self):
        assert NativeInstaller("pacman")._package_spec("rg", "13.0.0") == "rg"

    def test_no_sudo_when_disabled(self):
        inst = NativeInstaller("apt", use_sudo=False)
        assert inst._privileged(["apt-get", "install"]) == ["apt-get", "install"]

    def test_brew_never_uses_sudo(self):
        assert NativeInstaller("brew")._privileged(["brew", "install"]) == ["brew", "install"]

    def test_search_parses_output(self, monkeypatch: pytest.MonkeyPatch):
        inst = NativeInstaller("apt")
        monkeypatch.setattr(
            inst, "_exec",
            lambda cmd, op, target: Receipt.success(
                installer="apt", operation=op, target=target, output="rg - search tool",
            ),
        )
        receipt = inst.search("rg")
        assert receipt.ok
        assert [(h.name, h.installer) for h in receipt.hits] == [("rg", "apt")]

    def test_search_no_match_exit_code(self, monkeypatch: pytest.MonkeyPatch):
        inst = NativeInstaller("pacman")
        monkeypatch.setattr(
            inst, "_exec",
            lambda cmd, op, target: Receipt.failure(
                installer="pacman", operation=op, target=target, error="",
                metadata={"return_code": 1},
            ),
        )
        receipt = inst.search("zzz")
        assert receipt.ok
        assert receipt.hits == []

    def test_search_real_failure(self, monkeypatch: pytest.MonkeyPatch):
        inst = NativeInstaller("apt")
        monkeypatch.setattr(
            inst, "_exec",
            lambda cmd, op, target: Receipt.failure(
                installer="apt", operation=op, target=target, error="lock held",
                metadata={"return_code": 100},
            ),
        )
        assert inst.search("rg").failed

    def test_executables_from_listing(self, tmp_path: Path):
        bin_dir = tmp_path / "usr" / "bin"
        bin_dir.mkdir(parents=True)
        exe = bin_dir / "rg"
        exe.write_text("#!/bin/sh\n")
        exe.chmod(0o755)
        doc = tmp_path / "usr" / "share" / "doc" / "rg"
        doc.parent.mkdir(parents=True)
        doc.write_text("docs")
        plain = bin_dir / "not-exec"
        plain.write_text("")
        plain.chmod(0o644)

        listing = "\n".join(["ripgrep contains:", str(exe), str(doc), str(plain), str(exe)])
        assert _executables_from_listing(listing) == [str(exe)]


# ── Helpers ──────────────────────────────────────────────────────────


class TestHelpers:
    def test_executables_in(self, tmp_path: Path):
        assert executables_in(tmp_path / "missing") == []
        for name, mode in (("b", 0o755), ("a", 0o755), ("c", 0o644)):
            f = tmp_path / name
            f.write_text("")
            f.chmod(mode)
        assert executables_in(tmp_path) == [str(tmp_path / "a"), str(tmp_path / "b")]

    def test_cargo_install_command(self, tmp_path: Path):
        cmd = CargoInstaller()._install_cmd("ripgrep", "14.1.0", tmp_path, False)
        assert cmd == ["cargo", "install", "--root", str(tmp_path), "--version", "14.1.0", "ripgrep"]
