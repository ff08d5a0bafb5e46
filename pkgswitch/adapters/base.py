"""
Installer base — the contract between use cases and install backends.

Every backend (apt, dnf, pip, npm, ...) implements this interface.
Use cases only talk to installers through it and never know which
variant they hold.
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
import time
from abc import ABC, abstractmethod
from pathlib import Path

from pkgswitch.core.models.receipt import Receipt

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 900


class Installer(ABC):
    """Abstract base class for all installers.

    Installers perform the real install/update/search work and return
    receipts. They NEVER raise exceptions — failures are captured in
    the Receipt.

    To create a new installer:
        1. Subclass Installer
        2. Implement name, is_available, install, update, search
        3. Register it in the InstallerRegistry
    """

    timeout: int = DEFAULT_TIMEOUT

    @property
    @abstractmethod
    def name(self) -> str:
        """The installer identifier (e.g., 'apt', 'pip', 'npm')."""

    @abstractmethod
    def is_available(self) -> bool:
        """Check if the underlying tool exists on this host.

        Should be fast and never raise.
        """

    @abstractmethod
    def install(
        self,
        package: str,
        version: str | None,
        target_dir: Path,
        user_scope: bool,
    ) -> Receipt:
        """Install ``package`` (optionally pinned to ``version``) into ``target_dir``.

        A successful receipt lists the installed executables in ``bin_paths``.
        """

    @abstractmethod
    def update(
        self,
        package: str,
        version: str | None,
        install_dir: Path,
        user_scope: bool,
    ) -> Receipt:
        """Update an installed package in place."""

    @abstractmethod
    def search(self, query: str) -> Receipt:
        """Search the installer's catalog. Hits go in ``receipt.hits``."""

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"

    # ── Helpers shared by command-line backends ─────────────────

    def _exec(
        self,
        cmd: list[str],
        operation: str,
        target: str,
        cwd: Path | None = None,
        env: dict[str, str] | None = None,
    ) -> Receipt:
        """Run a command and turn the outcome into a receipt."""
        logger.debug("%s: running %s", self.name, " ".join(cmd))
        start = time.monotonic()
        run_env = {**os.environ, **env} if env else None
        try:
            result = subprocess.run(
                cmd,
                cwd=str(cwd) if cwd else None,
                env=run_env,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired:
            return Receipt.failure(
                installer=self.name,
                operation=operation,
                target=target,
                error=f"Command timed out after {self.timeout}s",
                metadata={"command": " ".join(cmd)},
            )
        except OSError as e:
            return Receipt.failure(
                installer=self.name,
                operation=operation,
                target=target,
                error=f"Command execution error: {e}",
                metadata={"command": " ".join(cmd)},
            )

        elapsed_ms = int((time.monotonic() - start) * 1000)
        if result.returncode == 0:
            return Receipt.success(
                installer=self.name,
                operation=operation,
                target=target,
                output=result.stdout.strip(),
                duration_ms=elapsed_ms,
                metadata={"command": " ".join(cmd), "return_code": 0},
            )
        return Receipt.failure(
            installer=self.name,
            operation=operation,
            target=target,
            error=result.stderr.strip() or f"Command exited with code {result.returncode}",
            duration_ms=elapsed_ms,
            metadata={"command": " ".join(cmd), "return_code": result.returncode},
        )


def which(tool: str) -> bool:
    """True if ``tool`` is on PATH."""
    return shutil.which(tool) is not None


def executables_in(directory: Path) -> list[str]:
    """Sorted executable files directly inside ``directory``."""
    if not directory.is_dir():
        return []
    return sorted(
        str(p)
        for p in directory.iterdir()
        if p.is_file() and os.access(p, os.X_OK)
    )
