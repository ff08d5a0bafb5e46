"""
Switch use case — make another installed version the active one.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from pkgswitch.core.context import Context
from pkgswitch.core.errors import PackageNotFound, VersionNotFound
from pkgswitch.core.persistence.history import HistoryEntry

logger = logging.getLogger(__name__)


@dataclass
class SwitchResult:
    package: str
    previous: str | None
    current: str

    @property
    def changed(self) -> bool:
        return self.previous != self.current

    def to_dict(self) -> dict:
        return {
            "package": self.package,
            "previous": self.previous,
            "current": self.current,
            "changed": self.changed,
        }


def switch_version(ctx: Context, name: str, version: str) -> SwitchResult:
    """Set the active version of ``name`` to ``version``.

    Raises:
        PackageNotFound / VersionNotFound: Nothing changes.
    """
    with ctx.store.transaction() as registry:
        pkg = registry.get(name)
        if pkg is None:
            raise PackageNotFound(name)
        if version not in pkg.versions:
            raise VersionNotFound(name, version)

        result = SwitchResult(package=name, previous=pkg.active_version, current=version)
        pkg.active_version = version

    ctx.history.write(HistoryEntry(
        operation="switch", package=name, version=version,
        context={"previous": result.previous},
    ))
    logger.info("Switched %s from %s to %s", name, result.previous, version)
    return result
