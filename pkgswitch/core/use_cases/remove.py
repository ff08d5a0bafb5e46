"""
Remove use case — delete one version, or a whole package, with its files.

A version's registry entry and its install tree always go together.
A tree that is already missing is tolerated; any other filesystem
error keeps the entry for that version.
"""

from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass, field
from pathlib import Path

from pkgswitch.core.context import Context
from pkgswitch.core.errors import PackageNotFound, PersistenceError, VersionNotFound
from pkgswitch.core.persistence.history import HistoryEntry

logger = logging.getLogger(__name__)


@dataclass
class RemoveResult:
    """Result of removing versions of a package."""

    package: str
    removed: list[str] = field(default_factory=list)
    promoted: str | None = None          # new active version, if one was promoted
    package_removed: bool = False        # the package entry is gone
    missing_paths: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "package": self.package,
            "removed": self.removed,
            "promoted": self.promoted,
            "package_removed": self.package_removed,
            "missing_paths": self.missing_paths,
        }


def _delete_tree(path: Path) -> bool:
    """Delete an install tree. Returns False if it was already gone."""
    if path.is_symlink():
        path.unlink()
        return True
    if not path.exists():
        logger.warning("Install path %s is already gone", path)
        return False
    shutil.rmtree(path)

    # Drop the {root}/{name} directory once its last version is gone
    try:
        path.parent.rmdir()
    except OSError:
        pass
    return True


def remove_package(ctx: Context, name: str, version: str | None = None) -> RemoveResult:
    """Remove one version of ``name``, or every version when ``version`` is None.

    When the active version is removed, the oldest remaining version
    becomes active. A package left with no versions is deleted.

    Raises:
        PackageNotFound: ``name`` is not installed (nothing changes).
        VersionNotFound: ``version`` is not installed (nothing changes).
        PersistenceError: An install tree could not be deleted. Versions
            whose trees were deleted are still unregistered.
    """
    result = RemoveResult(package=name)
    failures: list[str] = []

    with ctx.store.transaction() as registry:
        pkg = registry.get(name)
        if pkg is None:
            raise PackageNotFound(name)

        if version is not None:
            if version not in pkg.versions:
                raise VersionNotFound(name, version)
            labels = [version]
        else:
            labels = list(pkg.versions)

        for label in labels:
            install_path = Path(pkg.versions[label].install_path)
            try:
                if not _delete_tree(install_path):
                    result.missing_paths.append(str(install_path))
            except OSError as e:
                logger.error("Cannot delete %s: %s", install_path, e)
                failures.append(f"{label}: {e}")
                continue

            _, promoted = pkg.drop_version(label)
            result.removed.append(label)
            if promoted is not None:
                result.promoted = promoted
                logger.info("Set %s as the active version of %s", promoted, name)

        if result.promoted is not None:
            # A later deletion may have dropped the version promoted earlier
            result.promoted = pkg.active_version
        if not pkg.versions:
            registry.remove(name)
            result.package_removed = True
            result.promoted = None

    ctx.history.write(HistoryEntry(
        operation="remove",
        package=name,
        version=version,
        status="failed" if failures and not result.removed else ("partial" if failures else "ok"),
        errors=failures,
        context=result.to_dict(),
    ))

    if failures:
        raise PersistenceError(
            f"Could not delete install files for {name}: {'; '.join(failures)}"
        )

    logger.info("Removed %s from %s", ", ".join(result.removed), name)
    return result
