"""Adapters — installer backends the lifecycle use cases delegate to.

Public re-exports for convenient access.
"""

from pkgswitch.adapters.base import Installer
from pkgswitch.adapters.mock import MockInstaller
from pkgswitch.adapters.registry import InstallerRegistry, build_default_registry

__all__ = [
    "Installer",
    "InstallerRegistry",
    "MockInstaller",
    "build_default_registry",
]
