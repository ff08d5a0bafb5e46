"""
Installer registry — central lookup and dispatch for installers.

The registry is the single point of installer management. It handles
registration, host probing, mock mode, and guarded calls. Use cases
never call an installer directly — always through the registry.
"""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Any

from pkgswitch.adapters.base import Installer
from pkgswitch.core.errors import NoInstallerAvailable
from pkgswitch.core.models.receipt import Receipt

logger = logging.getLogger(__name__)


class InstallerRegistry:
    """Central registry and dispatcher for installers.

    Features:
        - Register/unregister installers by name
        - Probe the host for available installers, in registration order
        - Mock mode: swap every installer for a mock that always succeeds
        - Call installers with a guard that turns stray exceptions into receipts
    """

    def __init__(
        self,
        mock_mode: bool = False,
        disabled: list[str] | None = None,
    ):
        self._installers: dict[str, Installer] = {}
        self._mock_mode = mock_mode
        self._mock_installer: Installer | None = None
        self._disabled = set(disabled or [])

    @property
    def mock_mode(self) -> bool:
        return self._mock_mode

    def set_mock_mode(self, enabled: bool, mock_installer: Installer | None = None) -> None:
        """Enable or disable mock mode.

        Args:
            enabled: Whether to use mock mode.
            mock_installer: Optional custom mock. If None, uses a default MockInstaller.
        """
        self._mock_mode = enabled
        self._mock_installer = mock_installer

    def _get_mock(self) -> Installer:
        if self._mock_installer is None:
            from pkgswitch.adapters.mock import MockInstaller

            self._mock_installer = MockInstaller()
        return self._mock_installer

    def register(self, installer: Installer) -> None:
        """Register an installer. Registration order is probing order."""
        name = installer.name
        if name in self._installers:
            logger.warning("Overwriting existing installer: %s", name)
        self._installers[name] = installer
        logger.debug("Registered installer: %s", name)

    def unregister(self, name: str) -> None:
        """Remove an installer from the registry."""
        self._installers.pop(name, None)

    def get(self, name: str) -> Installer | None:
        """Look up an installer by name (the mock, in mock mode)."""
        if self._mock_mode:
            return self._get_mock()
        return self._installers.get(name)

    def list_installers(self) -> list[str]:
        """List all registered installer names."""
        return list(self._installers.keys())

    def _probe(self, installer: Installer) -> bool:
        if installer.name in self._disabled:
            return False
        try:
            return installer.is_available()
        except Exception:
            logger.debug("Availability probe failed for %s", installer.name, exc_info=True)
            return False

    def installer_status(self) -> dict[str, dict[str, Any]]:
        """Availability status of all registered installers."""
        status = {}
        for name, installer in self._installers.items():
            status[name] = {
                "name": name,
                "available": self._probe(installer),
                "disabled": name in self._disabled,
                "type": installer.__class__.__name__,
            }
        return status

    def available(self) -> list[Installer]:
        """Installers usable on this host, in probing order."""
        if self._mock_mode:
            return [self._get_mock()]
        return [i for i in self._installers.values() if self._probe(i)]

    def require(self, name: str) -> Installer:
        """Look up an installer by name and check it can run here.

        Raises:
            NoInstallerAvailable: Unknown, disabled or unavailable installer.
        """
        installer = self.get(name)
        if installer is None:
            raise NoInstallerAvailable(f"No installer registered for '{name}'")
        if not self._mock_mode and not self._probe(installer):
            raise NoInstallerAvailable(f"Installer '{name}' is not available on this host")
        return installer

    def detect(self, preferred: str | None = None) -> Installer:
        """Pick the installer to use for a new install.

        The preferred installer wins if given; otherwise the first
        available one in probing order.

        Raises:
            NoInstallerAvailable: Nothing usable on this host.
        """
        if preferred:
            return self.require(preferred)

        candidates = self.available()
        if not candidates:
            raise NoInstallerAvailable(
                "No supported installer found on this host "
                f"(checked: {', '.join(self.list_installers()) or 'none'})"
            )
        logger.debug("Detected installer: %s", candidates[0].name)
        return candidates[0]

    # ── Guarded dispatch ────────────────────────────────────────

    def call(self, installer: Installer, operation: str, *args: Any) -> Receipt:
        """Call ``installer.<operation>(*args)`` and always return a receipt."""
        start_time = time.monotonic()
        target = str(args[0]) if args else ""
        try:
            receipt = getattr(installer, operation)(*args)
        except Exception as e:
            # Installers should never raise, but guard anyway
            logger.error("Installer %s raised during %s: %s", installer.name, operation, e)
            receipt = Receipt.failure(
                installer=installer.name,
                operation=operation,
                target=target,
                error=f"Unexpected error: {e}",
            )

        if not receipt.duration_ms:
            receipt.duration_ms = int((time.monotonic() - start_time) * 1000)
        return receipt

    def install(self, installer: Installer, package: str, version: str | None,
                target_dir: Path, user_scope: bool) -> Receipt:
        return self.call(installer, "install", package, version, target_dir, user_scope)

    def update(self, installer: Installer, package: str, version: str | None,
               install_dir: Path, user_scope: bool) -> Receipt:
        return self.call(installer, "update", package, version, install_dir, user_scope)

    def search(self, installer: Installer, query: str) -> Receipt:
        return self.call(installer, "search", query)


def build_default_registry(
    timeout: int | None = None,
    use_sudo: bool = True,
    disabled: list[str] | None = None,
    mock_mode: bool = False,
) -> InstallerRegistry:
    """Registry with every built-in backend, native managers first."""
    from pkgswitch.adapters.languages.cargo import CargoInstaller
    from pkgswitch.adapters.languages.node import NpmInstaller
    from pkgswitch.adapters.languages.python import PipInstaller
    from pkgswitch.adapters.system.native import NATIVE_MANAGERS, NativeInstaller

    registry = InstallerRegistry(mock_mode=mock_mode, disabled=disabled)
    installers: list[Installer] = [
        NativeInstaller(pm_id, use_sudo=use_sudo) for pm_id in NATIVE_MANAGERS
    ]
    installers += [PipInstaller(), NpmInstaller(), CargoInstaller()]

    for installer in installers:
        if timeout is not None:
            installer.timeout = timeout
        registry.register(installer)
    return registry
