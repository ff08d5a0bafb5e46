"""
Mock installer — universal test double for installer operations.

Used in mock mode to simulate installs without touching the host.
Installs write a stub executable into ``{target_dir}/bin`` so the
install tree really exists on disk. Configurable to fail per package
or per operation, and to return custom search hits.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from pkgswitch.adapters.base import Installer
from pkgswitch.core.models.receipt import Receipt, SearchHit


@dataclass
class MockCall:
    """One recorded installer call."""

    operation: str
    package: str
    version: str | None = None
    directory: Path | None = None
    user_scope: bool = False


class MockInstaller(Installer):
    """Universal mock installer for testing.

    By default, succeeds for everything. Failures and search hits can
    be configured per package / query.
    """

    def __init__(
        self,
        installer_name: str = "mock",
        available: bool = True,
        write_files: bool = True,
    ):
        self._name = installer_name
        self._available = available
        self._write_files = write_files
        self._failures: dict[tuple[str, str], str] = {}
        self._hits: dict[str, list[SearchHit]] = {}
        self._call_log: list[MockCall] = []

    @property
    def name(self) -> str:
        return self._name

    @property
    def call_log(self) -> list[MockCall]:
        """All calls this mock has received."""
        return self._call_log

    @property
    def call_count(self) -> int:
        return len(self._call_log)

    def calls(self, operation: str) -> list[MockCall]:
        return [c for c in self._call_log if c.operation == operation]

    def is_available(self) -> bool:
        return self._available

    def set_failure(self, operation: str, target: str, error: str = "Mock failure") -> None:
        """Configure an operation on a package (or a search query) to fail."""
        self._failures[(operation, target)] = error

    def set_hits(self, query: str, hits: list[tuple[str, str]]) -> None:
        """Configure search results as (name, description) pairs."""
        self._hits[query] = [
            SearchHit(name=n, description=d, installer=self._name) for n, d in hits
        ]

    def install(
        self,
        package: str,
        version: str | None,
        target_dir: Path,
        user_scope: bool,
    ) -> Receipt:
        self._call_log.append(MockCall("install", package, version, target_dir, user_scope))

        error = self._failures.get(("install", package))
        if error:
            return Receipt.failure(installer=self._name, operation="install", target=package, error=error)

        bin_paths = []
        if self._write_files:
            bin_dir = target_dir / "bin"
            bin_dir.mkdir(parents=True, exist_ok=True)
            exe = bin_dir / package.rsplit("/", 1)[-1]
            exe.write_text(f"#!/bin/sh\necho {package} {version or 'latest'}\n")
            exe.chmod(0o755)
            bin_paths.append(str(exe))

        return Receipt.success(
            installer=self._name,
            operation="install",
            target=package,
            output="[mock] installed",
            bin_paths=bin_paths,
            metadata={"mock": True},
        )

    def update(
        self,
        package: str,
        version: str | None,
        install_dir: Path,
        user_scope: bool,
    ) -> Receipt:
        self._call_log.append(MockCall("update", package, version, install_dir, user_scope))

        error = self._failures.get(("update", package))
        if error:
            return Receipt.failure(installer=self._name, operation="update", target=package, error=error)

        return Receipt.success(
            installer=self._name,
            operation="update",
            target=package,
            output="[mock] updated",
            metadata={"mock": True},
        )

    def search(self, query: str) -> Receipt:
        self._call_log.append(MockCall("search", query))

        error = self._failures.get(("search", query))
        if error:
            return Receipt.failure(installer=self._name, operation="search", target=query, error=error)

        return Receipt.success(
            installer=self._name,
            operation="search",
            target=query,
            hits=list(self._hits.get(query, [])),
        )

    def reset(self) -> None:
        """Clear call log, failures and configured hits."""
        self._call_log.clear()
        self._failures.clear()
        self._hits.clear()
