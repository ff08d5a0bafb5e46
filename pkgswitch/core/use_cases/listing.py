"""
List use case — read-only view of the registry, filtered by scope.

Packages are ordered by name, versions by install order, so repeated
calls against an unchanged registry always agree.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from pkgswitch.core.context import Context
from pkgswitch.core.models.package import Package, Registry


@dataclass
class VersionRow:
    label: str
    active: bool
    install_date: str
    install_path: str = ""
    installer: str | None = None


@dataclass
class PackageRow:
    name: str
    scope: str                        # "system" or "user"
    versions: list[VersionRow] = field(default_factory=list)

    @property
    def version_count(self) -> int:
        return len(self.versions)


@dataclass
class ListingReport:
    """Filtered registry listing."""

    packages: list[PackageRow] = field(default_factory=list)
    registry_empty: bool = False
    system_only: bool = False
    user_only: bool = False

    @property
    def contradictory(self) -> bool:
        return self.system_only and self.user_only

    @property
    def empty_message(self) -> str | None:
        """Why nothing is listed, or None when there are rows."""
        if self.packages:
            return None
        if self.registry_empty:
            return "No packages installed"
        if self.contradictory:
            return "No packages match both --system and --user"
        if self.system_only:
            return "No system packages installed"
        if self.user_only:
            return "No user packages installed"
        return "No packages installed"

    def to_dict(self) -> dict:
        return {
            "packages": [
                {
                    "name": p.name,
                    "scope": p.scope,
                    "version_count": p.version_count,
                    "versions": [
                        {
                            "version": v.label,
                            "active": v.active,
                            "install_date": v.install_date,
                            "install_path": v.install_path,
                            "installer": v.installer,
                        }
                        for v in p.versions
                    ],
                }
                for p in self.packages
            ],
            "total": len(self.packages),
            "message": self.empty_message,
        }


def _matches(pkg: Package, system_only: bool, user_only: bool) -> bool:
    if system_only and user_only:
        return False
    if system_only:
        return pkg.system
    if user_only:
        return not pkg.system
    return True


def build_listing(registry: Registry, system_only: bool = False, user_only: bool = False) -> ListingReport:
    """Project a registry into listing rows."""
    report = ListingReport(
        registry_empty=len(registry) == 0,
        system_only=system_only,
        user_only=user_only,
    )
    for name in sorted(registry.packages):
        pkg = registry.packages[name]
        if not _matches(pkg, system_only, user_only):
            continue
        report.packages.append(PackageRow(
            name=name,
            scope=pkg.scope,
            versions=[
                VersionRow(
                    label=label,
                    active=label == pkg.active_version,
                    install_date=ver.install_date,
                    install_path=ver.install_path,
                    installer=ver.package_manager,
                )
                for label, ver in pkg.versions.items()
            ],
        ))
    return report


def list_packages(ctx: Context, system_only: bool = False, user_only: bool = False) -> ListingReport:
    """List installed packages. Never writes the registry."""
    with ctx.store.snapshot() as registry:
        return build_listing(registry, system_only=system_only, user_only=user_only)
