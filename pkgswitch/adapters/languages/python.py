"""
pip installer — Python packages installed into a private prefix.

Each version gets its own ``--prefix`` tree, so several versions of
the same distribution can coexist. Console scripts land in
``{target_dir}/bin``.
"""

from __future__ import annotations

import json
import logging
import sys
import urllib.error
import urllib.parse
import urllib.request
from pathlib import Path

from pkgswitch.adapters.base import Installer, executables_in
from pkgswitch.core.models.receipt import Receipt, SearchHit

logger = logging.getLogger(__name__)

PYPI_JSON_URL = "https://pypi.org/pypi/{name}/json"


def _pip_cmd(*args: str) -> list[str]:
    """Build a pip command using the current interpreter.

    Uses ``sys.executable -m pip`` so pip always runs in the same
    environment as pkgswitch — regardless of PATH.
    """
    return [sys.executable, "-m", "pip", *args]


class PipInstaller(Installer):
    """Python packages from PyPI via pip."""

    search_timeout: int = 15

    @property
    def name(self) -> str:
        return "pip"

    def is_available(self) -> bool:
        try:
            import pip  # noqa: F401
        except ImportError:
            return False
        return True

    @staticmethod
    def _requirement(package: str, version: str | None) -> str:
        return f"{package}=={version}" if version else package

    def install(
        self,
        package: str,
        version: str | None,
        target_dir: Path,
        user_scope: bool,
    ) -> Receipt:
        cmd = _pip_cmd(
            "install", "--no-input", "--disable-pip-version-check",
            "--prefix", str(target_dir),
            self._requirement(package, version),
        )
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
        # A pinned version is refreshed in place; "latest" moves forward.
        args = ["install", "--no-input", "--disable-pip-version-check", "--upgrade"]
        if version:
            args.append("--force-reinstall")
        cmd = _pip_cmd(*args, "--prefix", str(install_dir), self._requirement(package, version))
        receipt = self._exec(cmd, "update", package)
        if receipt.ok:
            receipt.bin_paths = executables_in(install_dir / "bin")
        return receipt

    def search(self, query: str) -> Receipt:
        """Exact-name lookup on the PyPI JSON API (pip has no search)."""
        url = PYPI_JSON_URL.format(name=urllib.parse.quote(query.strip()))
        try:
            with urllib.request.urlopen(url, timeout=self.search_timeout) as resp:
                data = json.loads(resp.read().decode("utf-8"))
        except urllib.error.HTTPError as e:
            if e.code == 404:
                return Receipt.success(installer=self.name, operation="search", target=query)
            return Receipt.failure(
                installer=self.name, operation="search", target=query,
                error=f"PyPI returned HTTP {e.code}",
            )
        except (urllib.error.URLError, OSError, ValueError) as e:
            return Receipt.failure(
                installer=self.name, operation="search", target=query,
                error=f"PyPI lookup failed: {e}",
            )

        info = data.get("info", {})
        hit = SearchHit(
            name=info.get("name", query),
            description=info.get("summary") or "",
            installer=self.name,
        )
        return Receipt.success(
            installer=self.name, operation="search", target=query, hits=[hit],
            metadata={"latest": info.get("version", "")},
        )
