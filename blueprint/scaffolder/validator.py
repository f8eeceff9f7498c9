"""Consistency validator for a resolved file set and its dependency manifest.

Runs every check independently so a single run reports all problems:

* path uniqueness;
* soundness: every ``import``/``export`` in generated Dart code and every
  ``include: package:...`` in generated YAML resolves to an emitted path or
  to a package in the manifest;
* minimality (advisory): manifest packages not justified by the baseline or
  an active feature are reported as warnings;
* mutual exclusivity: the config's conflicts are re-asserted.
"""

from __future__ import annotations

import posixpath
import re
from dataclasses import dataclass, field
from typing import Optional

from pydantic import BaseModel, Field

from blueprint.errors import (
    BlueprintError,
    ConfigValidationError,
    DuplicatePathError,
    MissingReferenceError,
    ValidationFailedError,
)
from blueprint.models import BlueprintConfig

from .dependencies import DependencyManifest, justified_packages
from .resolver import ResolvedFile, ResolvedFileSet
from .table import FileSpecTable, get_table


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------

class Diagnostic(BaseModel):
    """A non-fatal finding surfaced alongside a successful result."""

    severity: str = Field(default="warning", description="'warning' or 'info'")
    code: str = Field(..., description="Machine-readable diagnostic code")
    message: str = Field(..., description="Human-readable description")
    path: Optional[str] = Field(default=None, description="File the finding refers to")
    package: Optional[str] = Field(default=None, description="Package the finding refers to")


@dataclass
class ValidationResult:
    """Outcome of :func:`validate`: fatal errors plus advisory warnings."""

    errors: list[BlueprintError] = field(default_factory=list)
    warnings: list[Diagnostic] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def errors_of(self, kind: type[BlueprintError]) -> list[BlueprintError]:
        return [err for err in self.errors if isinstance(err, kind)]

    def raise_for_errors(self) -> None:
        """Raise the sole error, or a :class:`ValidationFailedError` for several."""
        if not self.errors:
            return
        if len(self.errors) == 1:
            raise self.errors[0]
        raise ValidationFailedError(self.errors)


# ---------------------------------------------------------------------------
# Reference scanning
# ---------------------------------------------------------------------------

_RE_DART_DIRECTIVE = re.compile(
    r"""^\s*(?:import|export)\s+['"]([^'"]+)['"]""",
    re.MULTILINE,
)

_RE_YAML_PACKAGE_INCLUDE = re.compile(
    r"^\s*include:\s*package:([A-Za-z0-9_]+)/",
    re.MULTILINE,
)

_TEST_ROOTS = ("test/", "integration_test/")


def scan_references(file: ResolvedFile) -> list[str]:
    """Return the import targets found in *file*, in order of appearance.

    Dart files yield their ``import``/``export`` URIs; YAML files yield
    ``package:<name>/`` for analysis-option includes.
    """
    if file.path.endswith(".dart"):
        return _RE_DART_DIRECTIVE.findall(file.content)
    if file.path.endswith((".yaml", ".yml")):
        return [f"package:{name}/" for name in _RE_YAML_PACKAGE_INCLUDE.findall(file.content)]
    return []


def _check_reference(
    file: ResolvedFile,
    uri: str,
    paths: set[str],
    manifest: DependencyManifest,
) -> MissingReferenceError | None:
    if uri.startswith("dart:"):
        return None

    if uri.startswith("package:"):
        package, _, subpath = uri[len("package:"):].partition("/")
        if package == manifest.package_name:
            target = f"lib/{subpath}"
            if target not in paths:
                return MissingReferenceError(file.path, target)
            return None
        # tooling config (analysis_options.yaml) may use dev packages too
        dev_allowed = file.path.startswith(_TEST_ROOTS) or not file.path.endswith(".dart")
        if manifest.has_dependency(package, dev=dev_allowed):
            return None
        if package in manifest.dev_dependencies:
            return MissingReferenceError(
                file.path, package, "dev dependency imported outside test code"
            )
        return MissingReferenceError(file.path, package, "package not in manifest")

    target = posixpath.normpath(posixpath.join(posixpath.dirname(file.path), uri))
    if target not in paths:
        return MissingReferenceError(file.path, target)
    return None


# ---------------------------------------------------------------------------
# Checks
# ---------------------------------------------------------------------------

def _check_unique_paths(file_set: ResolvedFileSet) -> list[BlueprintError]:
    errors: list[BlueprintError] = []
    owners: dict[str, ResolvedFile] = {}
    for file in file_set.files:
        if file.path in owners:
            errors.append(DuplicatePathError(file.path, owners[file.path].source, file.source))
        else:
            owners[file.path] = file
    return errors


def _check_soundness(
    file_set: ResolvedFileSet, manifest: DependencyManifest
) -> list[BlueprintError]:
    errors: list[BlueprintError] = []
    paths = set(file_set.paths())
    reported: set[tuple[str, str]] = set()
    for file in file_set.files:
        for uri in scan_references(file):
            error = _check_reference(file, uri, paths, manifest)
            if error is None or (error.path, error.target) in reported:
                continue
            reported.add((error.path, error.target))
            errors.append(error)
    return errors


def _check_minimality(
    manifest: DependencyManifest, table: FileSpecTable, config: BlueprintConfig
) -> list[Diagnostic]:
    justified = justified_packages(table, config)
    return [
        Diagnostic(
            code="UNJUSTIFIED_DEPENDENCY",
            package=name,
            message=f"'{name}' is not required by the baseline or any enabled feature",
        )
        for name in manifest.packages()
        if name not in justified
    ]


def validate(
    file_set: ResolvedFileSet,
    manifest: DependencyManifest,
    *,
    config: BlueprintConfig | None = None,
    table: FileSpecTable | None = None,
) -> ValidationResult:
    """Check *file_set* and *manifest* for consistency.

    Uniqueness and soundness always run.  Minimality and mutual exclusivity
    need the *config* (and the table, looked up from it when omitted).
    """
    result = ValidationResult()
    result.errors.extend(_check_unique_paths(file_set))
    result.errors.extend(_check_soundness(file_set, manifest))

    if config is not None:
        problems = config.conflicts()
        if problems:
            result.errors.append(ConfigValidationError(problems))
        try:
            table = table or get_table(config.platform, config.state_management)
            result.warnings.extend(_check_minimality(manifest, table, config))
        except BlueprintError as exc:
            result.errors.append(exc)

    return result
