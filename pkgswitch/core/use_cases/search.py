"""
Search use case — query every available installer's catalog.

Hits are reported per installer and never deduplicated: the same
package found by apt and pip shows up twice, tagged with its source.
A failing installer is reported and skipped; the search only fails
when every installer failed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from pkgswitch.core.context import Context
from pkgswitch.core.errors import InstallerError, NoInstallerAvailable
from pkgswitch.core.models.receipt import SearchHit

logger = logging.getLogger(__name__)


@dataclass
class SearchReport:
    query: str
    consulted: list[str] = field(default_factory=list)
    hits: list[SearchHit] = field(default_factory=list)
    failures: dict[str, str] = field(default_factory=dict)

    @property
    def found(self) -> bool:
        return bool(self.hits)

    def hits_by_installer(self) -> dict[str, list[SearchHit]]:
        grouped: dict[str, list[SearchHit]] = {name: [] for name in self.consulted}
        for hit in self.hits:
            grouped.setdefault(hit.installer, []).append(hit)
        return grouped

    def to_dict(self) -> dict:
        return {
            "query": self.query,
            "consulted": self.consulted,
            "hits": [h.model_dump() for h in self.hits],
            "failures": self.failures,
            "found": self.found,
        }


def search_packages(ctx: Context, query: str) -> SearchReport:
    """Search all available installers for ``query``.

    Raises:
        ValueError: Empty query.
        NoInstallerAvailable: No installer on this host.
        InstallerError: Every installer failed.
    """
    if not query or not query.strip():
        raise ValueError("Search query must not be empty")

    installers = ctx.installers.available()
    if not installers:
        raise NoInstallerAvailable("No installer available to search with")

    report = SearchReport(query=query)
    for installer in installers:
        logger.info("Searching with %s", installer.name)
        receipt = ctx.installers.search(installer, query)
        report.consulted.append(installer.name)
        if receipt.failed:
            logger.warning("Search with %s failed: %s", installer.name, receipt.error)
            report.failures[installer.name] = receipt.error or "search failed"
            continue
        report.hits.extend(
            hit if hit.installer == installer.name else hit.model_copy(update={"installer": installer.name})
            for hit in receipt.hits
        )

    if len(report.failures) == len(installers):
        raise InstallerError(
            ", ".join(report.failures),
            "; ".join(f"{n}: {e}" for n, e in report.failures.items()),
        )
    return report
