"""
Runtime context — everything a use case needs, built once per invocation.

    - CLI:    main.py  → build_context(load_settings(path))
    - Tests:  fixtures → build_context(settings, installers=mock registry)
"""

from __future__ import annotations

from dataclasses import dataclass

from pkgswitch.adapters.registry import InstallerRegistry, build_default_registry
from pkgswitch.core.config.loader import Settings
from pkgswitch.core.persistence.history import HistoryWriter
from pkgswitch.core.persistence.registry_store import RegistryStore


@dataclass
class Context:
    """Settings plus the collaborators derived from them."""

    settings: Settings
    store: RegistryStore
    installers: InstallerRegistry
    history: HistoryWriter


def build_context(
    settings: Settings,
    installers: InstallerRegistry | None = None,
    mock_mode: bool = False,
) -> Context:
    """Wire the store, history ledger and installer registry for ``settings``."""
    if installers is None:
        installers = build_default_registry(
            timeout=settings.command_timeout,
            use_sudo=settings.use_sudo,
            disabled=settings.disabled_installers,
            mock_mode=mock_mode,
        )
    return Context(
        settings=settings,
        store=RegistryStore(settings.registry_path, lock_timeout=settings.effective_lock_timeout),
        installers=installers,
        history=HistoryWriter(settings.history_path),
    )
