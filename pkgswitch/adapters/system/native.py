"""
Native package manager installers — apt, dnf, yum, zypper, pacman, apk, brew.

The host package manager installs files into its own prefix, so
``target_dir`` cannot hold the payload itself. Instead, after the
install the package's executables are found in the manager's file
listing and symlinked into ``{target_dir}/bin``. Removing the
install tree removes the links, not the system package.
"""

from __future__ import annotations

import logging
import os
import subprocess
from pathlib import Path
from typing import Any

from pkgswitch.adapters.base import Installer, which
from pkgswitch.core.models.receipt import Receipt, SearchHit

logger = logging.getLogger(__name__)


# ── Package manager definitions ─────────────────────────────────
#
# install / upgrade: command prefix, package spec appended
# pin:               package spec format when a version is requested
# files:             command listing the files of an installed package
# search:            catalog search command, query appended
# parser:            key into _SEARCH_PARSERS


NATIVE_MANAGERS: dict[str, dict[str, Any]] = {
    "apt": {
        "cli": "apt-get",
        "root": True,
        "install": ["apt-get", "install", "-y"],
        "upgrade": ["apt-get", "install", "--only-upgrade", "-y"],
        "pin": "{name}={version}",
        "files": ["dpkg-query", "-L"],
        "search": ["apt-cache", "search"],
        "parser": "apt",
    },
    "dnf": {
        "cli": "dnf",
        "root": True,
        "install": ["dnf", "install", "-y"],
        "upgrade": ["dnf", "upgrade", "-y"],
        "pin": "{name}-{version}",
        "files": ["rpm", "-ql"],
        "search": ["dnf", "search", "-q"],
        "parser": "dnf",
    },
    "yum": {
        "cli": "yum",
        "root": True,
        "install": ["yum", "install", "-y"],
        "upgrade": ["yum", "update", "-y"],
        "pin": "{name}-{version}",
        "files": ["rpm", "-ql"],
        "search": ["yum", "search", "-q"],
        "parser": "dnf",
    },
    "zypper": {
        "cli": "zypper",
        "root": True,
        "install": ["zypper", "--non-interactive", "install"],
        "upgrade": ["zypper", "--non-interactive", "update"],
        "pin": "{name}={version}",
        "files": ["rpm", "-ql"],
        "search": ["zypper", "--quiet", "search"],
        "parser": "zypper",
    },
    "pacman": {
        "cli": "pacman",
        "root": True,
        "install": ["pacman", "-S", "--noconfirm"],
        "upgrade": ["pacman", "-S", "--noconfirm"],
        "pin": None,  # pacman cannot install an arbitrary older version
        "files": ["pacman", "-Qlq"],
        "search": ["pacman", "-Ss"],
        "parser": "pacman",
    },
    "apk": {
        "cli": "apk",
        "root": True,
        "install": ["apk", "add"],
        "upgrade": ["apk", "add", "--upgrade"],
        "pin": "{name}={version}",
        "files": ["apk", "info", "-L"],
        "search": ["apk", "search", "-v", "-d"],
        "parser": "apk",
    },
    "brew": {
        "cli": "brew",
        "root": False,
        "install": ["brew", "install"],
        "upgrade": ["brew", "upgrade"],
        "pin": "{name}@{version}",
        "files": ["brew", "list"],
        "search": ["brew", "search", "--desc"],
        "parser": "brew",
    },
}


# ── Search output parsers ───────────────────────────────────────


def _parse_apt(output: str) -> list[tuple[str, str]]:
    """``name - description`` per line."""
    results = []
    for line in output.splitlines():
        name, sep, desc = line.partition(" - ")
        if sep and name.strip():
            results.append((name.strip(), desc.strip()))
    return results


def _parse_dnf(output: str) -> list[tuple[str, str]]:
    """``name.arch : description`` per line, with ``===`` section headers."""
    results = []
    for line in output.splitlines():
        if not line.strip() or line.startswith(("=", "Last metadata")):
            continue
        name, sep, desc = line.partition(" : ")
        if not sep:
            continue
        name = name.strip()
        if "." in name:
            name = name.rsplit(".", 1)[0]
        results.append((name, desc.strip()))
    return results


def _parse_zypper(output: str) -> list[tuple[str, str]]:
    """Table rows ``S | Name | Summary | Type``."""
    results = []
    for line in output.splitlines():
        cols = [c.strip() for c in line.split("|")]
        if len(cols) < 3 or cols[1] in ("", "Name") or set(line) <= set("-+ "):
            continue
        results.append((cols[1], cols[2]))
    return results


def _parse_pacman(output: str) -> list[tuple[str, str]]:
    """Pairs of lines: ``repo/name version [installed]`` then an indented description."""
    results = []
    current: str | None = None
    for line in output.splitlines():
        if not line.strip():
            continue
        if line[0].isspace():
            if current is not None:
                results.append((current, line.strip()))
                current = None
            continue
        if current is not None:
            results.append((current, ""))
        head = line.split()[0]
        current = head.split("/", 1)[-1]
    if current is not None:
        results.append((current, ""))
    return results


def _parse_apk(output: str) -> list[tuple[str, str]]:
    """``name-version-rN - description`` per line."""
    results = []
    for line in output.splitlines():
        spec, sep, desc = line.partition(" - ")
        spec = spec.strip()
        if not spec:
            continue
        parts = spec.rsplit("-", 2)
        name = parts[0] if len(parts) == 3 else spec
        results.append((name, desc.strip() if sep else ""))
    return results


def _parse_brew(output: str) -> list[tuple[str, str]]:
    """``name: description`` lines under ``==>`` headers, or bare names."""
    results = []
    for line in output.splitlines():
        line = line.strip()
        if not line or line.startswith("==>"):
            continue
        name, sep, desc = line.partition(": ")
        results.append((name.strip(), desc.strip() if sep else ""))
    return results


_SEARCH_PARSERS = {
    "apt": _parse_apt,
    "dnf": _parse_dnf,
    "zypper": _parse_zypper,
    "pacman": _parse_pacman,
    "apk": _parse_apk,
    "brew": _parse_brew,
}


def _executables_from_listing(output: str) -> list[str]:
    """Pick executable files under a bin/ or sbin/ directory from a file listing."""
    found: list[str] = []
    for line in output.splitlines():
        line = line.strip()
        if not line or line.endswith(":"):
            continue  # apk prints a "<pkg> contains:" header
        path = line if line.startswith("/") else "/" + line
        if Path(path).parent.name not in ("bin", "sbin"):
            continue
        if os.path.isfile(path) and os.access(path, os.X_OK) and path not in found:
            found.append(path)
    return found


class NativeInstaller(Installer):
    """Installer backed by the host's package manager."""

    def __init__(self, pm_id: str, use_sudo: bool = True):
        if pm_id not in NATIVE_MANAGERS:
            raise ValueError(f"Unknown package manager: {pm_id}")
        self._pm_id = pm_id
        self._spec = NATIVE_MANAGERS[pm_id]
        self._use_sudo = use_sudo

    @property
    def name(self) -> str:
        return self._pm_id

    def is_available(self) -> bool:
        return which(self._spec["cli"])

    def _privileged(self, cmd: list[str]) -> list[str]:
        if not self._spec["root"] or not self._use_sudo:
            return cmd
        if hasattr(os, "geteuid") and os.geteuid() == 0:
            return cmd
        if not which("sudo"):
            return cmd
        return ["sudo", *cmd]

    def _package_spec(self, package: str, version: str | None) -> str:
        if not version:
            return package
        pin = self._spec["pin"]
        if pin is None:
            logger.warning("%s cannot pin versions; installing current %s", self._pm_id, package)
            return package
        return pin.format(name=package, version=version)

    def _link_executables(self, package: str, target_dir: Path, operation: str) -> Receipt:
        """Symlink the package's executables into ``{target_dir}/bin``."""
        try:
            result = subprocess.run(
                [*self._spec["files"], package],
                capture_output=True,
                text=True,
                timeout=60,
            )
        except (subprocess.TimeoutExpired, OSError) as e:
            return Receipt.failure(
                installer=self.name, operation=operation, target=package,
                error=f"Cannot list files of {package}: {e}",
            )
        if result.returncode != 0:
            return Receipt.failure(
                installer=self.name, operation=operation, target=package,
                error=result.stderr.strip() or f"Cannot list files of {package}",
            )

        bin_dir = target_dir / "bin"
        links: list[str] = []
        try:
            bin_dir.mkdir(parents=True, exist_ok=True)
            for exe in _executables_from_listing(result.stdout):
                link = bin_dir / Path(exe).name
                if link.is_symlink() or link.exists():
                    link.unlink()
                link.symlink_to(exe)
                links.append(str(link))
        except OSError as e:
            return Receipt.failure(
                installer=self.name, operation=operation, target=package,
                error=f"Cannot link executables into {bin_dir}: {e}",
            )

        logger.debug("%s: linked %d executable(s) for %s", self.name, len(links), package)
        return Receipt.success(
            installer=self.name, operation=operation, target=package, bin_paths=links,
        )

    def _run_and_link(
        self,
        base_cmd: list[str],
        operation: str,
        package: str,
        version: str | None,
        target_dir: Path,
        user_scope: bool,
    ) -> Receipt:
        if user_scope and self._spec["root"]:
            logger.warning("%s installs system-wide; user scope only affects %s", self.name, target_dir)

        cmd = self._privileged([*base_cmd, self._package_spec(package, version)])
        receipt = self._exec(cmd, operation, package)
        if receipt.failed:
            return receipt

        linked = self._link_executables(package, target_dir, operation)
        if linked.failed:
            return linked
        receipt.bin_paths = linked.bin_paths
        return receipt

    def install(
        self,
        package: str,
        version: str | None,
        target_dir: Path,
        user_scope: bool,
    ) -> Receipt:
        return self._run_and_link(
            self._spec["install"], "install", package, version, target_dir, user_scope,
        )

    def update(
        self,
        package: str,
        version: str | None,
        install_dir: Path,
        user_scope: bool,
    ) -> Receipt:
        return self._run_and_link(
            self._spec["upgrade"], "update", package, version, install_dir, user_scope,
        )

    def search(self, query: str) -> Receipt:
        receipt = self._exec([*self._spec["search"], query], "search", query)
        if receipt.failed:
            # "no match" exits non-zero for some managers
            if receipt.metadata.get("return_code") == 1 and self._pm_id in ("pacman", "dnf", "yum", "zypper"):
                return Receipt.success(installer=self.name, operation="search", target=query)
            return receipt

        parser = _SEARCH_PARSERS[self._spec["parser"]]
        receipt.hits = [
            SearchHit(name=name, description=desc, installer=self.name)
            for name, desc in parser(receipt.output)
        ]
        return receipt
