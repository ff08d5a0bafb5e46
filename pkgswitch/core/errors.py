"""
Error taxonomy for registry and lifecycle operations.

Two families:
    - NotFoundError (PackageNotFound, VersionNotFound) — a normal
      "nothing to do" outcome. Raised inside the store transaction so
      nothing is saved; the CLI reports it and exits 0.
    - Everything else — a real fault. Propagates to the CLI, which
      exits non-zero.
"""

from __future__ import annotations


class PkgSwitchError(Exception):
    """Base class for all pkgswitch errors."""


class NotFoundError(PkgSwitchError):
    """A package or version named by the user is not in the registry."""


class PackageNotFound(NotFoundError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Package not found: {name}")


class VersionNotFound(NotFoundError):
    def __init__(self, name: str, version: str):
        self.name = name
        self.version = version
        super().__init__(f"Version {version} not found for package {name}")


class NoInstallerAvailable(PkgSwitchError):
    """No installer on this host can service the request."""


class InstallerError(PkgSwitchError):
    """The delegated installer reported a failure."""

    def __init__(self, installer: str, message: str):
        self.installer = installer
        super().__init__(f"{installer}: {message}")


class CorruptRegistry(PkgSwitchError):
    """The registry document exists but cannot be parsed."""


class PersistenceError(PkgSwitchError):
    """Filesystem failure while reading or writing registry state."""


class ConfigError(PkgSwitchError):
    """Raised when the configuration file is invalid."""
