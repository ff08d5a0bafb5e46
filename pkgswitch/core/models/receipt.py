"""
Receipt model — the result contract between use cases and installers.

Use cases call an installer; the installer returns a Receipt. Never
exceptions. The use case decides whether a failed receipt is fatal.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import BaseModel, Field


def _now_iso() -> str:
    """Current UTC time as ISO string."""
    return datetime.now(UTC).isoformat()


class SearchHit(BaseModel):
    """One package found by an installer's catalog search."""

    name: str
    description: str = ""
    installer: str = ""


class Receipt(BaseModel):
    """Result of an installer call.

    ``bin_paths`` is filled by install (and optionally update),
    ``hits`` by search.
    """

    installer: str
    operation: Literal["install", "update", "search"]
    target: str = ""                 # package name or search query
    status: Literal["ok", "failed"] = "ok"

    started_at: str = Field(default_factory=_now_iso)
    duration_ms: int = 0

    output: str = ""
    error: str | None = None

    bin_paths: list[str] = Field(default_factory=list)
    hits: list[SearchHit] = Field(default_factory=list)

    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def ok(self) -> bool:
        """Whether the call succeeded."""
        return self.status == "ok"

    @property
    def failed(self) -> bool:
        """Whether the call failed."""
        return self.status == "failed"

    @classmethod
    def success(
        cls,
        installer: str,
        operation: str,
        target: str = "",
        **kwargs: Any,
    ) -> Receipt:
        """Create a success receipt."""
        return cls(
            installer=installer,
            operation=operation,
            target=target,
            status="ok",
            **kwargs,
        )

    @classmethod
    def failure(
        cls,
        installer: str,
        operation: str,
        error: str,
        target: str = "",
        **kwargs: Any,
    ) -> Receipt:
        """Create a failure receipt."""
        return cls(
            installer=installer,
            operation=operation,
            target=target,
            status="failed",
            error=error,
            **kwargs,
        )
