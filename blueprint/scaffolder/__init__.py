"""Blueprint scaffolder -- turns a configuration into a Flutter project.

A ``BlueprintConfig`` selects one file specification table (platform x
state management); the table is resolved into a file set, the dependency
manifest is assembled from the same feature objects, both are validated
together, and only then is anything written.

Quick usage::

    from blueprint.models import BlueprintConfig
    from blueprint.scaffolder import ProjectGenerator

    config = BlueprintConfig(app_name="my_app", state_management="bloc", include_api=True)
    generator = ProjectGenerator(config)
    project_path = await generator.generate("/tmp/output")
"""

from blueprint.scaffolder.dependencies import DependencyManifest, assemble
from blueprint.scaffolder.emitter import ProjectEmitter
from blueprint.scaffolder.generator import GenerationPlan, ProjectGenerator
from blueprint.scaffolder.resolver import ResolvedFile, ResolvedFileSet, resolve, resolve_async
from blueprint.scaffolder.table import FileSpec, FileSpecTable, TableRegistry, get_table
from blueprint.scaffolder.templates import TemplateRenderer
from blueprint.scaffolder.validator import Diagnostic, ValidationResult, validate

__all__ = [
    "DependencyManifest",
    "Diagnostic",
    "FileSpec",
    "FileSpecTable",
    "GenerationPlan",
    "ProjectEmitter",
    "ProjectGenerator",
    "ResolvedFile",
    "ResolvedFileSet",
    "TableRegistry",
    "TemplateRenderer",
    "ValidationResult",
    "assemble",
    "get_table",
    "resolve",
    "resolve_async",
    "validate",
]
