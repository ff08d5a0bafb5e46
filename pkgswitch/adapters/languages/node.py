"""
npm installer — Node.js packages installed globally into a private prefix.

``npm install -g --prefix DIR`` puts the package under
``DIR/lib/node_modules`` and its bin links under ``DIR/bin``.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from pkgswitch.adapters.base import Installer, executables_in, which
from pkgswitch.core.models.receipt import Receipt, SearchHit

logger = logging.getLogger(__name__)


class NpmInstaller(Installer):
    """Node.js packages from the npm registry."""

    @property
    def name(self) -> str:
        return "npm"

    def is_available(self) -> bool:
        return which("npm")

    @staticmethod
    def _spec(package: str, version: str | None) -> str:
        return f"{package}@{version}" if version else package

    def install(
        self,
        package: str,
        version: str | None,
        target_dir: Path,
        user_scope: bool,
    ) -> Receipt:
        cmd = ["npm", "install", "-g", "--no-fund", "--no-audit",
               "--prefix", str(target_dir), self._spec(package, version)]
        receipt = self._exec(cmd, "install", package)
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
        if version:
            # Pinned: reinstall the same spec to refresh the tree
            cmd = ["npm", "install", "-g", "--no-fund", "--no-audit",
                   "--prefix", str(install_dir), self._spec(package, version)]
        else:
            cmd = ["npm", "update", "-g", "--prefix", str(install_dir), package]
        receipt = self._exec(cmd, "update", package)
        if receipt.ok:
            receipt.bin_paths = executables_in(install_dir / "bin")
        return receipt

    def search(self, query: str) -> Receipt:
        receipt = self._exec(["npm", "search", "--json", query], "search", query)
        if receipt.failed:
            return receipt

        try:
            data = json.loads(receipt.output) if receipt.output else []
        except json.JSONDecodeError as e:
            return Receipt.failure(
                installer=self.name, operation="search", target=query,
                error=f"Unreadable npm search output: {e}",
            )

        receipt.hits = [
            SearchHit(
                name=item.get("name", ""),
                description=item.get("description") or "",
                installer=self.name,
            )
            for item in data
            if item.get("name")
        ]
        return receipt
