"""
Registry store — locked, atomic read/write of packages.json.

The registry is one JSON document. Every operation goes through
``RegistryStore.transaction()``, which holds an exclusive file lock
for the whole load–mutate–save span so two concurrent invocations
cannot lose each other's updates. Writes are atomic (write to temp
file, then rename).
"""

from __future__ import annotations

import json
import logging
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from filelock import FileLock, Timeout
from pydantic import ValidationError

from pkgswitch.core.errors import CorruptRegistry, PersistenceError
from pkgswitch.core.models.package import Registry

logger = logging.getLogger(__name__)

DEFAULT_LOCK_TIMEOUT = 960.0


class RegistryStore:
    """Durable single-file home of the Registry."""

    def __init__(self, path: Path, lock_timeout: float = DEFAULT_LOCK_TIMEOUT):
        self._path = Path(path)
        self._lock_path = self._path.with_name(self._path.name + ".lock")
        self._lock_timeout = lock_timeout

    @property
    def path(self) -> Path:
        return self._path

    @property
    def lock_path(self) -> Path:
        return self._lock_path

    def load(self) -> Registry:
        """Load the registry.

        Returns:
            Registry model. If the file doesn't exist, an empty registry.

        Raises:
            CorruptRegistry: The file exists but is not a valid registry.
            PersistenceError: The file cannot be read.
        """
        if not self._path.is_file():
            logger.info("No registry at %s — starting empty", self._path)
            return Registry()

        try:
            raw = self._path.read_text(encoding="utf-8")
        except OSError as e:
            raise PersistenceError(f"Cannot read registry {self._path}: {e}") from e
        except UnicodeDecodeError as e:
            raise CorruptRegistry(f"Registry {self._path} is not valid UTF-8: {e}") from e

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise CorruptRegistry(f"Registry {self._path} is not valid JSON: {e}") from e

        # A document without "packages" is not ours; never treat it as empty
        if not isinstance(data, dict) or "packages" not in data:
            raise CorruptRegistry(f"Registry {self._path} has no \"packages\" mapping")

        try:
            registry = Registry.model_validate(data)
        except ValidationError as e:
            raise CorruptRegistry(f"Registry {self._path} has an unexpected shape: {e}") from e

        logger.debug("Loaded %d package(s) from %s", len(registry), self._path)
        return registry

    def save(self, registry: Registry) -> None:
        """Replace the registry document in its entirety (atomic write).

        Raises:
            PersistenceError: On any filesystem failure.
        """
        data = registry.model_dump(mode="json")
        content = json.dumps(data, indent=2, ensure_ascii=False) + "\n"

        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                dir=self._path.parent,
                prefix=".packages_",
                suffix=".tmp",
            )
            tmp = Path(tmp_path)
            try:
                with open(fd, "w", encoding="utf-8") as f:
                    f.write(content)
                tmp.replace(self._path)
            except Exception:
                tmp.unlink(missing_ok=True)
                raise
        except OSError as e:
            logger.error("Failed to save registry to %s: %s", self._path, e)
            raise PersistenceError(f"Cannot write registry {self._path}: {e}") from e

        logger.debug("Registry saved to %s (%d package(s))", self._path, len(registry))

    @contextmanager
    def _locked(self) -> Iterator[None]:
        try:
            self._lock_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise PersistenceError(f"Cannot create registry directory {self._lock_path.parent}: {e}") from e

        lock = FileLock(str(self._lock_path), timeout=self._lock_timeout)
        try:
            lock.acquire()
        except Timeout as e:
            raise PersistenceError(
                f"Registry is locked by another process ({self._lock_path}); "
                f"gave up after {self._lock_timeout}s"
            ) from e
        except OSError as e:
            raise PersistenceError(f"Cannot lock registry {self._lock_path}: {e}") from e

        try:
            yield
        finally:
            lock.release()

    @contextmanager
    def transaction(self) -> Iterator[Registry]:
        """Lock, load, yield the registry, and save it on normal exit.

        If the block raises, nothing is saved. The lock is always released.
        """
        with self._locked():
            registry = self.load()
            yield registry
            registry.prune()
            self.save(registry)

    @contextmanager
    def snapshot(self) -> Iterator[Registry]:
        """Lock and load the registry for reading. Never saves."""
        with self._locked():
            yield self.load()
