"""Dependency assembler: derives the ``pubspec.yaml`` manifest from a config.

The manifest starts from the table's baseline packages (the state-management
runtime, the shared core packages and the platform shim) and unions in the
package group of every active feature.  Features are taken from the table
itself, so the predicate that includes a feature's files is the very object
that pulls in its packages.
"""

from __future__ import annotations

from typing import Mapping

from pydantic import BaseModel, ConfigDict, Field

from blueprint.errors import ConfigValidationError, VersionTableError
from blueprint.models import BlueprintConfig

from .features import Feature
from .table import FileSpecTable, get_table
from .versions import CANONICAL_VERSIONS, SDK_FLUTTER


class DependencyManifest(BaseModel):
    """Package name -> version constraint mapping for one generated project."""

    model_config = ConfigDict(frozen=True)

    package_name: str = Field(..., description="Name of the generated Dart package")
    description: str = Field(default="", description="pubspec description")
    dependencies: dict[str, str] = Field(default_factory=dict)
    dev_dependencies: dict[str, str] = Field(default_factory=dict)

    def packages(self) -> list[str]:
        """All package names, regular dependencies first."""
        return list(self.dependencies) + [
            name for name in self.dev_dependencies if name not in self.dependencies
        ]

    def constraint(self, name: str) -> str | None:
        return self.dependencies.get(name, self.dev_dependencies.get(name))

    def has_dependency(self, name: str, *, dev: bool = False) -> bool:
        """True if *name* is a regular dependency (or a dev one when *dev*)."""
        return name in self.dependencies or (dev and name in self.dev_dependencies)

    @staticmethod
    def is_sdk(constraint: str) -> bool:
        return constraint == SDK_FLUTTER


def active_features(table: FileSpecTable, config: BlueprintConfig) -> list[Feature]:
    """Features of *table* whose predicate holds for *config*."""
    active: list[Feature] = []
    for feature in table.features():
        try:
            enabled = feature(config)
        except Exception as exc:
            raise ConfigValidationError(f"predicate '{feature.name}' failed: {exc}") from exc
        if enabled:
            active.append(feature)
    return active


def justified_packages(table: FileSpecTable, config: BlueprintConfig) -> set[str]:
    """Packages justified by the baseline or by an active feature."""
    justified = set(table.baseline_packages) | set(table.baseline_dev_packages)
    for feature in active_features(table, config):
        justified.update(feature.all_packages())
    return justified


def assemble(
    config: BlueprintConfig,
    version_table: Mapping[str, str] | None = None,
    *,
    table: FileSpecTable | None = None,
) -> DependencyManifest:
    """Build the dependency manifest for *config*.

    Every package is pinned to its canonical constraint; literal pins carried
    by a feature group are ignored here and reported by
    :func:`~blueprint.scaffolder.versions.check_version_table`.

    Raises:
        VersionTableError: A requested package has no canonical entry.
    """
    versions = CANONICAL_VERSIONS if version_table is None else version_table
    table = table or get_table(config.platform, config.state_management)

    deps: dict[str, str] = {}
    dev_deps: dict[str, str] = {}

    def _pin(name: str, requested_by: str) -> str:
        constraint = versions.get(name)
        if constraint is None:
            raise VersionTableError(name, requested_by)
        return constraint

    def _add(name: str, requested_by: str) -> None:
        dev_deps.pop(name, None)
        deps.setdefault(name, _pin(name, requested_by))

    def _add_dev(name: str, requested_by: str) -> None:
        if name not in deps:
            dev_deps.setdefault(name, _pin(name, requested_by))

    for name in table.baseline_packages:
        _add(name, table.name)
    for name in table.baseline_dev_packages:
        _add_dev(name, table.name)

    for feature in active_features(table, config):
        for name in feature.packages:
            _add(name, feature.name)
        for name in feature.dev_packages:
            _add_dev(name, feature.name)

    return DependencyManifest(
        package_name=config.app_name,
        description=config.description,
        dependencies=deps,
        dev_dependencies=dev_deps,
    )
