"""
Registry models — Package, PackageVersion and the root Registry.

The Registry is the single document persisted to packages.json and
loaded on every operation. Model validators enforce the registry
invariants at load time; in-memory mutation goes through the helper
methods below so the invariants hold again before the next save.
"""

from __future__ import annotations

from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field, model_validator

LATEST = "latest"
SCHEMA_VERSION = 1


def _now_iso() -> str:
    """Current UTC time as ISO string."""
    return datetime.now(UTC).isoformat()


class PackageVersion(BaseModel):
    """One installed build of a package."""

    install_path: str
    install_date: str = Field(default_factory=_now_iso)
    bin_paths: list[str] = Field(default_factory=list)
    package_manager: str | None = None
    updated_date: str | None = None


class Package(BaseModel):
    """A named package with one or more installed versions."""

    name: str
    versions: dict[str, PackageVersion] = Field(default_factory=dict)
    active_version: str | None = None
    system: bool = False

    @model_validator(mode="after")
    def _active_is_known(self) -> Package:
        if self.active_version is not None and self.active_version not in self.versions:
            raise ValueError(
                f"active_version {self.active_version!r} is not an installed "
                f"version of {self.name!r}"
            )
        return self

    @property
    def scope(self) -> str:
        return "system" if self.system else "user"

    @property
    def active(self) -> PackageVersion | None:
        """The PackageVersion currently in use, if any."""
        if self.active_version is None:
            return None
        return self.versions.get(self.active_version)

    def add_version(self, label: str, version: PackageVersion) -> bool:
        """Insert or overwrite a version. Returns True if it became active."""
        self.versions[label] = version
        if self.active_version is None:
            self.active_version = label
            return True
        return False

    def drop_version(self, label: str) -> tuple[PackageVersion, str | None]:
        """Remove a version, promoting another one if it was active.

        The promoted version is the first remaining one in insertion
        order, i.e. the oldest remaining install.

        Returns:
            (removed version, promoted label or None).
        """
        removed = self.versions.pop(label)
        promoted = None
        if self.active_version == label:
            self.active_version = None
            if self.versions:
                promoted = next(iter(self.versions))
                self.active_version = promoted
        return removed, promoted


class Registry(BaseModel):
    """Root document — serialized to packages.json.

    Maps package name to Package. A package with no versions never
    survives a completed operation; use ``prune`` after mutation.
    """

    model_config = ConfigDict(extra="forbid")

    schema_version: int = SCHEMA_VERSION
    packages: dict[str, Package] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _check_entries(self) -> Registry:
        if self.schema_version != SCHEMA_VERSION:
            raise ValueError(f"unsupported schema_version {self.schema_version} (expected {SCHEMA_VERSION})")
        for key, pkg in self.packages.items():
            if key != pkg.name:
                raise ValueError(f"registry key {key!r} does not match package name {pkg.name!r}")
            if not pkg.versions:
                raise ValueError(f"package {key!r} has no versions")
        return self

    def __len__(self) -> int:
        return len(self.packages)

    def __contains__(self, name: object) -> bool:
        return name in self.packages

    def get(self, name: str) -> Package | None:
        return self.packages.get(name)

    def get_or_create(self, name: str, *, system: bool) -> tuple[Package, bool]:
        """Fetch a package entry, creating it with the given scope if absent.

        The scope of an existing package is never changed.
        """
        pkg = self.packages.get(name)
        if pkg is not None:
            return pkg, False
        pkg = Package(name=name, system=system)
        self.packages[name] = pkg
        return pkg, True

    def remove(self, name: str) -> Package | None:
        return self.packages.pop(name, None)

    def prune(self) -> list[str]:
        """Delete packages left with no versions. Returns their names."""
        empty = [name for name, pkg in self.packages.items() if not pkg.versions]
        for name in empty:
            del self.packages[name]
        return empty
