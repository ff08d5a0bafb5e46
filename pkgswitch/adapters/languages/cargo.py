"""
cargo installer — Rust binary crates built into a private root.

``cargo install --root DIR`` places the binaries in ``DIR/bin``.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

from pkgswitch.adapters.base import Installer, executables_in, which
from pkgswitch.core.models.receipt import Receipt, SearchHit

logger = logging.getLogger(__name__)

# serde = "1.0.203"    # A generic serialization/deserialization framework
_SEARCH_LINE = re.compile(r'^(?P<name>[\w-]+)\s*=\s*"[^"]*"\s*(?:#\s*(?P<desc>.*))?$')


def _parse_cargo_search(output: str) -> list[tuple[str, str]]:
    results = []
    for line in output.splitlines():
        m = _SEARCH_LINE.match(line.strip())
        if m:
            results.append((m.group("name"), (m.group("desc") or "").strip()))
    return results


class CargoInstaller(Installer):
    """Rust crates from crates.io."""

    @property
    def name(self) -> str:
        return "cargo"

    def is_available(self) -> bool:
        return which("cargo")

    def _install_cmd(self, package: str, version: str | None, root: Path, force: bool) -> list[str]:
        cmd = ["cargo", "install", "--root", str(root)]
        if version:
            cmd += ["--version", version]
        if force:
            cmd.append("--force")
        cmd.append(package)
        return cmd

    def install(
        self,
        package: str,
        version: str | None,
        target_dir: Path,
        user_scope: bool,
    ) -> Receipt:
        receipt = self._exec(self._install_cmd(package, version, target_dir, False), "install", package)
        if receipt.ok:
            receipt.bin_paths = executables_in(target_dir / "bin")
        return receipt

    def update(
        self,
        package: str,
        version: str | None,
        install_dir: Path,
        user_scope: bool,
    ) -> Receipt:
        # Without --force cargo only rebuilds when a newer matching version exists
        receipt = self._exec(self._install_cmd(package, version, install_dir, False), "update", package)
        if receipt.ok:
            receipt.bin_paths = executables_in(install_dir / "bin")
        return receipt

    def search(self, query: str) -> Receipt:
        receipt = self._exec(["cargo", "search", "--limit", "20", query], "search", query)
        if receipt.ok:
            receipt.hits = [
                SearchHit(name=name, description=desc, installer=self.name)
                for name, desc in _parse_cargo_search(receipt.output)
            ]
        return receipt
