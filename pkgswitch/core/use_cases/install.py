"""
Install use case — install one version and register it.

The installer runs inside the registry transaction: if it fails, the
transaction is abandoned, nothing is recorded, and a directory this
call created is removed again.
"""

from __future__ import annotations

import logging
import re
import shutil
from dataclasses import dataclass, field
from pathlib import Path

from pkgswitch.core.context import Context
from pkgswitch.core.errors import InstallerError, PersistenceError
from pkgswitch.core.models.package import LATEST, PackageVersion
from pkgswitch.core.persistence.history import HistoryEntry

logger = logging.getLogger(__name__)


@dataclass
class InstallResult:
    """Result of installing a package version."""

    package: str
    version: str
    install_path: str
    installer: str
    bin_paths: list[str] = field(default_factory=list)
    active: bool = False         # is the active version after the install
    created: bool = False        # first version of this package
    system: bool = True          # recorded scope of the package

    def to_dict(self) -> dict:
        return {
            "package": self.package,
            "version": self.version,
            "install_path": self.install_path,
            "installer": self.installer,
            "bin_paths": self.bin_paths,
            "active": self.active,
            "created": self.created,
            "scope": "system" if self.system else "user",
        }


# npm-style scoped names are the only names allowed to contain "/"
_SCOPED_NAME = re.compile(r"^@[^/@\s]+/[^/@\s]+$")


def _check_segment(value: str, what: str, allow_scope: bool = False) -> None:
    """Reject values that do not map to exactly one directory level."""
    if not value or not value.strip():
        raise ValueError(f"{what} must not be empty")
    if "\\" in value or "\0" in value:
        raise ValueError(f"Invalid {what}: {value!r}")
    if "/" in value and not (allow_scope and _SCOPED_NAME.match(value)):
        raise ValueError(f"Invalid {what}: {value!r}")
    if any(part in (".", "..") for part in value.split("/")):
        raise ValueError(f"Invalid {what}: {value!r}")


def _check_install_dir(root: Path, name: str, install_dir: Path) -> None:
    """The install dir must be a direct child of {root}/{name}, inside root."""
    package_dir = (root / name).resolve()
    if install_dir.resolve().parent != package_dir or not package_dir.is_relative_to(root.resolve()):
        raise ValueError(f"Install directory {install_dir} escapes {root}")


def install_package(
    ctx: Context,
    name: str,
    version: str | None = None,
    user: bool = False,
    installer: str | None = None,
) -> InstallResult:
    """Install ``name`` (optionally pinned to ``version``) and record it.

    Args:
        ctx: Runtime context.
        name: Package name.
        version: Version to install. None installs under the "latest" label.
        user: Install for the current user instead of system-wide.
        installer: Explicit installer name; default is the configured or detected one.

    Returns:
        InstallResult describing the new registry entry.

    Raises:
        ValueError: Empty or unsafe name/version.
        NoInstallerAvailable: No usable installer.
        InstallerError: The installer failed; the registry is unchanged.
        PersistenceError: The registry or install directory cannot be written.
    """
    _check_segment(name, "package name", allow_scope=True)
    if version is not None:
        _check_segment(version, "version")
    label = version or LATEST

    backend = ctx.installers.detect(installer or ctx.settings.preferred_installer)

    with ctx.store.transaction() as registry:
        # An existing package keeps the scope it was created with
        existing = registry.get(name)
        system = existing.system if existing is not None else not user
        if existing is not None and existing.system == user:
            logger.info("%s is already recorded as a %s package; keeping that scope", name, existing.scope)

        install_dir = ctx.settings.install_dir(name, label, user=not system)
        _check_install_dir(ctx.settings.install_root(user=not system), name, install_dir)
        logger.info("Installing %s (%s) with %s into %s", name, label, backend.name, install_dir)

        existed = install_dir.exists()
        try:
            install_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise PersistenceError(f"Cannot create install directory {install_dir}: {e}") from e

        receipt = ctx.installers.install(backend, name, version, install_dir, not system)
        if receipt.failed:
            if not existed:
                shutil.rmtree(install_dir, ignore_errors=True)
            ctx.history.write(HistoryEntry(
                operation="install", package=name, version=label,
                installer=backend.name, status="failed", errors=[receipt.error or ""],
            ))
            raise InstallerError(backend.name, receipt.error or "install failed")

        pkg, created = registry.get_or_create(name, system=system)
        pkg.add_version(label, PackageVersion(
            install_path=str(install_dir),
            bin_paths=receipt.bin_paths,
            package_manager=backend.name,
        ))

        result = InstallResult(
            package=name,
            version=label,
            install_path=str(install_dir),
            installer=backend.name,
            bin_paths=list(receipt.bin_paths),
            active=pkg.active_version == label,
            created=created,
            system=pkg.system,
        )

    ctx.history.write(HistoryEntry(
        operation="install", package=name, version=label, installer=backend.name,
        context={"install_path": str(install_dir), "created": created},
    ))
    logger.info("Installed %s %s (%d executable(s))", name, label, len(result.bin_paths))
    return result

