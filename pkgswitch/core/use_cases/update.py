"""
Update use case — refresh the active version of one or all packages.

Each package is updated through the installer that produced its
active version. Update-all processes packages one at a time in name
order and isolates failures: one broken package never stops the rest.
The registry is saved once after the whole batch.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path

from pkgswitch.core.context import Context
from pkgswitch.core.errors import InstallerError, NoInstallerAvailable, PackageNotFound
from pkgswitch.core.models.package import LATEST, Package
from pkgswitch.core.persistence.history import HistoryEntry

logger = logging.getLogger(__name__)


@dataclass
class UpdateReport:
    """Outcome of an update run."""

    target: str | None = None                   # None = all packages
    updated: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)

    @property
    def status(self) -> str:
        if not self.failed:
            return "ok"
        return "partial" if self.updated else "failed"

    def to_dict(self) -> dict:
        return {
            "target": self.target,
            "status": self.status,
            "updated": self.updated,
            "skipped": self.skipped,
            "failed": self.failed,
        }


def _update_one(ctx: Context, pkg: Package) -> bool:
    """Update the active version of ``pkg``. Returns False if there is nothing to do.

    Raises:
        NoInstallerAvailable: The recorded installer is not usable here.
        InstallerError: The installer failed.
    """
    label = pkg.active_version
    version = pkg.active
    if label is None or version is None or not version.package_manager:
        logger.debug("Skipping %s: no active version or no recorded installer", pkg.name)
        return False

    installer = ctx.installers.require(version.package_manager)
    pinned = None if label == LATEST else label

    logger.info("Updating %s %s with %s", pkg.name, label, installer.name)
    receipt = ctx.installers.update(
        installer, pkg.name, pinned, Path(version.install_path), not pkg.system,
    )
    if receipt.failed:
        raise InstallerError(installer.name, receipt.error or "update failed")

    version.updated_date = datetime.now(UTC).isoformat()
    if receipt.bin_paths:
        version.bin_paths = list(receipt.bin_paths)
    return True


def update_packages(ctx: Context, name: str | None = None) -> UpdateReport:
    """Update one named package, or every package when ``name`` is None.

    Raises:
        PackageNotFound: ``name`` is not installed.
        InstallerError / NoInstallerAvailable: Single-package mode only.
    """
    report = UpdateReport(target=name)

    try:
        with ctx.store.transaction() as registry:
            if name is not None:
                pkg = registry.get(name)
                if pkg is None:
                    raise PackageNotFound(name)
                targets = [pkg]
            else:
                targets = [registry.packages[n] for n in sorted(registry.packages)]

            for pkg in targets:
                try:
                    if _update_one(ctx, pkg):
                        report.updated.append(pkg.name)
                    else:
                        report.skipped.append(pkg.name)
                except (InstallerError, NoInstallerAvailable) as e:
                    if name is not None:
                        raise
                    logger.error("Failed to update %s: %s", pkg.name, e)
                    report.failed[pkg.name] = str(e)
    except (InstallerError, NoInstallerAvailable) as e:
        ctx.history.write(HistoryEntry(
            operation="update", package=name, status="failed", errors=[str(e)],
        ))
        raise

    ctx.history.write(HistoryEntry(
        operation="update",
        package=name,
        status=report.status,
        errors=[f"{n}: {err}" for n, err in report.failed.items()],
        context={"updated": report.updated, "skipped": report.skipped},
    ))
    return report
