"""
Shared test fixtures and configuration.
"""

from pathlib import Path

import pytest

from pkgswitch.adapters.mock import MockInstaller
from pkgswitch.adapters.registry import InstallerRegistry
from pkgswitch.core.config.loader import Settings
from pkgswitch.core.context import Context, build_context


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings rooted entirely inside a temp directory."""
    return Settings(
        data_dir=tmp_path / "data",
        user_install_root=tmp_path / "user",
        system_install_root=tmp_path / "system",
        lock_timeout=2.0,
    )


@pytest.fixture
def mock_installer() -> MockInstaller:
    return MockInstaller(installer_name="mock")


@pytest.fixture
def installers(mock_installer: MockInstaller) -> InstallerRegistry:
    registry = InstallerRegistry()
    registry.register(mock_installer)
    return registry


@pytest.fixture
def ctx(settings: Settings, installers: InstallerRegistry) -> Context:
    return build_context(settings, installers=installers)
