"""Main scaffolding orchestrator.

Takes a :class:`~blueprint.models.BlueprintConfig` and runs the pipeline:
table lookup -> resolution -> dependency assembly -> validation -> emission.
Nothing is written unless every check passes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.tree import Tree

from blueprint.config import Settings
from blueprint.errors import DiagnosticError, ValidationFailedError
from blueprint.models import BlueprintConfig

from .dependencies import DependencyManifest, assemble
from .emitter import BLUEPRINT_MANIFEST_PATH, PUBSPEC_PATH, ProjectEmitter
from .resolver import ResolvedFileSet, resolve, resolve_async
from .table import FileSpecTable, TableRegistry, default_registry
from .templates import TemplateRenderer
from .validator import Diagnostic, validate
from .versions import CANONICAL_VERSIONS, check_version_table


# ---------------------------------------------------------------------------
# Plan
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class GenerationPlan:
    """Everything a generation run would write, already validated."""

    config: BlueprintConfig
    table: FileSpecTable
    files: ResolvedFileSet
    manifest: DependencyManifest
    warnings: list[Diagnostic] = field(default_factory=list)
    write_blueprint_manifest: bool = True

    def written_paths(self) -> list[str]:
        """Every path the emitter writes for this plan, in emission order."""
        paths = list(self.files.paths()) + [PUBSPEC_PATH]
        if self.write_blueprint_manifest:
            paths.append(BLUEPRINT_MANIFEST_PATH)
        return paths

    def summary(self) -> dict[str, str]:
        """Key/value overview suitable for :func:`~blueprint.utils.print_summary_table`."""
        features = ", ".join(self.config.enabled_features()) or "none"
        return {
            "App": self.config.app_name,
            "Table": self.table.name,
            "Features": features,
            "Files": str(len(self.written_paths())),
            "Dependencies": str(len(self.manifest.dependencies)),
            "Dev dependencies": str(len(self.manifest.dev_dependencies)),
            "Warnings": str(len(self.warnings)),
        }


# ---------------------------------------------------------------------------
# Main generator
# ---------------------------------------------------------------------------


class ProjectGenerator:
    """Main scaffolding orchestrator.

    Given a ``BlueprintConfig``, produces a Flutter project containing:
    - the baseline app skeleton for the chosen platform and state management
    - one file group per enabled feature (theme, API, Hive, analytics, ...)
    - a ``pubspec.yaml`` whose dependencies are exactly what those files use
    - a ``blueprint.yaml`` recording the configuration (optional)
    """

    def __init__(
        self,
        config: BlueprintConfig,
        settings: Settings | None = None,
        *,
        console: Console | None = None,
        registry: TableRegistry | None = None,
    ) -> None:
        self.config = config
        self.settings = settings or Settings()
        self.console = console or Console()
        self.renderer = registry.renderer if registry else TemplateRenderer()
        self.registry = registry or default_registry(self.renderer)
        self.emitter = ProjectEmitter(self.renderer)

    # -- Public API --------------------------------------------------------

    def plan(self) -> GenerationPlan:
        """Resolve, assemble and validate without touching the filesystem.

        Raises:
            BlueprintError: Any subclass; the first problem aborts the plan,
                except validation, which reports every problem at once.
        """
        table = self.registry.for_config(self.config)
        files = resolve(table, self.config)
        return self._finish_plan(table, files)

    async def plan_async(self) -> GenerationPlan:
        """Like :meth:`plan`, rendering up to ``max_parallel_builders`` files at once."""
        table = self.registry.for_config(self.config)
        files = await resolve_async(
            table, self.config, concurrency=self.settings.max_parallel_builders
        )
        return self._finish_plan(table, files)

    async def generate(self, output_dir: str | Path | None = None) -> Path:
        """Generate the complete project.

        Args:
            output_dir: Parent directory where the project folder will be
                created.  Defaults to ``settings.output_dir``.  A
                subdirectory named after the app is created inside it.

        Returns:
            Path to the generated project root.
        """
        plan = await self.plan_async()
        for warning in plan.warnings:
            self.console.print(f"[yellow]warning[/yellow] {escape(warning.message)}")

        if output_dir is not None:
            target = Path(output_dir) / self.config.app_name
        else:
            target = self.settings.project_path(self.config.app_name)
        manifest_config = self.config if self.settings.write_blueprint_manifest else None
        return await self.emitter.write(
            plan.files,
            plan.manifest,
            target,
            config=manifest_config,
            overwrite=self.settings.overwrite,
        )

    def preview(self, plan: GenerationPlan | None = None) -> Tree:
        """Build a Rich tree of the files a run would write (dry run)."""
        plan = plan or self.plan()
        root = Tree(f"[bold]{self.config.app_name}/[/bold]")
        nodes: dict[str, Tree] = {}

        for path in sorted(plan.written_paths()):
            parent = root
            parts = path.split("/")
            for depth in range(1, len(parts)):
                key = "/".join(parts[:depth])
                if key not in nodes:
                    nodes[key] = parent.add(f"[blue]{parts[depth - 1]}/[/blue]")
                parent = nodes[key]
            parent.add(parts[-1])
        return root

    # -- Internal helpers ----------------------------------------------------

    def _finish_plan(self, table: FileSpecTable, files: ResolvedFileSet) -> GenerationPlan:
        manifest = assemble(self.config, table=table)

        result = validate(files, manifest, config=self.config, table=table)
        result.raise_for_errors()

        warnings = list(result.warnings)
        for discrepancy in check_version_table(
            table.features(), CANONICAL_VERSIONS, baseline=table.baseline_packages
        ):
            warnings.append(
                Diagnostic(
                    code="VERSION_TABLE",
                    package=discrepancy.package,
                    message=discrepancy.describe(),
                )
            )

        if self.settings.strict and warnings:
            raise ValidationFailedError(
                [DiagnosticError(w.code, w.message) for w in warnings]
            )

        return GenerationPlan(
            config=self.config,
            table=table,
            files=files,
            manifest=manifest,
            warnings=warnings,
            write_blueprint_manifest=self.settings.write_blueprint_manifest,
        )
