"""
Use cases — the version lifecycle operations.

Each operation loads the registry once under the store lock, applies
one state transition, and saves it once.
"""

from pkgswitch.core.use_cases.install import InstallResult, install_package
from pkgswitch.core.use_cases.listing import ListingReport, list_packages
from pkgswitch.core.use_cases.remove import RemoveResult, remove_package
from pkgswitch.core.use_cases.search import SearchReport, search_packages
from pkgswitch.core.use_cases.switch import SwitchResult, switch_version
from pkgswitch.core.use_cases.update import UpdateReport, update_packages

__all__ = [
    "InstallResult",
    "ListingReport",
    "RemoveResult",
    "SearchReport",
    "SwitchResult",
    "UpdateReport",
    "install_package",
    "list_packages",
    "remove_package",
    "search_packages",
    "switch_version",
    "update_packages",
]
