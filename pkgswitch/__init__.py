"""pkgswitch — local multi-version package registry and switcher."""

__version__ = "0.1.0"
