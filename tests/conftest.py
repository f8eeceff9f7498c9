"""Shared pytest fixtures for the blueprint test suite.

Provides reusable fixtures for:
- Configurations (minimal, everything enabled, every toggle off)
- Template renderer and table registry
- A recording Rich console
- Run settings pointing at a temporary directory
"""

from __future__ import annotations

from pathlib import Path

import pytest
from rich.console import Console

from blueprint.config import Settings
from blueprint.models import (
    AnalyticsProvider,
    BlueprintConfig,
    CIProvider,
    StateManagement,
)
from blueprint.scaffolder.table import TableRegistry, default_registry
from blueprint.scaffolder.templates import TemplateRenderer


# ---------------------------------------------------------------------------
# Environment isolation
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _clean_blueprint_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep BLUEPRINT_* variables from the developer's shell out of tests."""
    for name in (
        "BLUEPRINT_OUTPUT_DIR",
        "BLUEPRINT_OVERWRITE",
        "BLUEPRINT_STRICT",
        "BLUEPRINT_MAX_PARALLEL_BUILDERS",
        "BLUEPRINT_PUB_DEV_URL",
        "BLUEPRINT_HTTP_TIMEOUT",
    ):
        monkeypatch.delenv(name, raising=False)


# ---------------------------------------------------------------------------
# Configurations
# ---------------------------------------------------------------------------

@pytest.fixture
def minimal_config() -> BlueprintConfig:
    """Defaults only: mobile + provider, theme on, everything else off."""
    return BlueprintConfig(app_name="my_app")


@pytest.fixture
def bare_config() -> BlueprintConfig:
    """Every optional feature off, including theme."""
    return BlueprintConfig(app_name="my_app", include_theme=False)


@pytest.fixture
def full_config() -> BlueprintConfig:
    """BLoC on mobile with every feature enabled and Firebase analytics."""
    return BlueprintConfig(
        app_name="my_app",
        state_management=StateManagement.BLOC,
        include_api=True,
        include_hive=True,
        include_analytics=True,
        analytics_provider=AnalyticsProvider.FIREBASE,
        include_pagination=True,
        include_accessibility=True,
        include_localization=True,
        include_env=True,
        include_tests=True,
        ci_provider=CIProvider.GITHUB,
    )


# ---------------------------------------------------------------------------
# Rendering / tables
# ---------------------------------------------------------------------------

@pytest.fixture(scope="session")
def renderer() -> TemplateRenderer:
    return TemplateRenderer()


@pytest.fixture
def registry(renderer: TemplateRenderer) -> TableRegistry:
    return default_registry(renderer)


# ---------------------------------------------------------------------------
# Console & settings
# ---------------------------------------------------------------------------

@pytest.fixture
def recording_console() -> Console:
    """Rich console that records output instead of writing to a terminal."""
    return Console(record=True, width=160, force_terminal=False, color_system=None)


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(output_dir=tmp_path)
