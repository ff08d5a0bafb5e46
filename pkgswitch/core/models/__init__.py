"""
Domain models — Pydantic types for the registry.

All models are re-exported here for convenient access:

    from pkgswitch.core.models import Package, PackageVersion, Registry, Receipt
"""

from pkgswitch.core.models.package import LATEST, Package, PackageVersion, Registry
from pkgswitch.core.models.receipt import Receipt, SearchHit

__all__ = [
    "LATEST",
    # package.py
    "Package",
    "PackageVersion",
    # receipt.py
    "Receipt",
    "Registry",
    "SearchHit",
]
