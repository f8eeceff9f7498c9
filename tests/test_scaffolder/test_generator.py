"""Tests for the scaffolding orchestrator and end-to-end pipeline properties.

Covers:
- The five reference scenarios (baseline, persistence, exclusive analytics,
  seeded duplicate, omitted package group)
- Determinism, uniqueness, feature isolation and toggle idempotence for
  every registered table
- Soundness and minimality over representative feature combinations
- ProjectGenerator plan / plan_async / generate / preview / strict mode
"""

from __future__ import annotations

import itertools
from pathlib import Path
from typing import Any

import pytest
from rich.console import Console

from blueprint.config import Settings
from blueprint.errors import (
    ConfigValidationError,
    DiagnosticError,
    DuplicatePathError,
    EmitError,
    MissingReferenceError,
    UnknownVariantError,
    ValidationFailedError,
)
from blueprint.models import BlueprintConfig, StateManagement, TargetPlatform
from blueprint.scaffolder.dependencies import assemble
from blueprint.scaffolder.features import ALWAYS, PERSISTENCE, Feature
from blueprint.scaffolder.generator import GenerationPlan, ProjectGenerator
from blueprint.scaffolder.resolver import resolve
from blueprint.scaffolder.table import FileSpec, FileSpecTable, TableRegistry
from blueprint.scaffolder.templates import TemplateRenderer
from blueprint.scaffolder.validator import validate

COMBINATIONS = list(itertools.product(TargetPlatform, StateManagement))

# feature name -> config changes that switch it on (starting from everything off)
TOGGLES: dict[str, dict[str, Any]] = {
    "theme": {"include_theme": True},
    "api": {"include_api": True},
    "hive": {"include_hive": True},
    "analytics_firebase": {"include_analytics": True, "analytics_provider": "firebase"},
    "analytics_sentry": {"include_analytics": True, "analytics_provider": "sentry"},
    "pagination": {"include_pagination": True},
    "accessibility": {"include_accessibility": True},
    "localization": {"include_localization": True},
    "env": {"include_env": True},
    "tests": {"include_tests": True},
    "ci_github": {"ci_provider": "github"},
    "ci_gitlab": {"ci_provider": "gitlab"},
    "ci_azure": {"ci_provider": "azure"},
}

ALL_ON: dict[str, Any] = {
    "include_theme": True,
    "include_api": True,
    "include_hive": True,
    "include_analytics": True,
    "include_pagination": True,
    "include_accessibility": True,
    "include_localization": True,
    "include_env": True,
    "include_tests": True,
}


def _bare(platform: TargetPlatform, sm: StateManagement) -> BlueprintConfig:
    return BlueprintConfig(app_name="my_app", platform=platform, state_management=sm, include_theme=False)


def _single_table(table: FileSpecTable, renderer: TemplateRenderer) -> TableRegistry:
    registry = TableRegistry(renderer)
    registry.register(table.platform, table.state_management, lambda r: table)
    return registry


# ---------------------------------------------------------------------------
# Reference scenarios
# ---------------------------------------------------------------------------


@pytest.mark.unit
class TestScenarios:
    def test_baseline_only(self, registry: TableRegistry):
        config = _bare(TargetPlatform.MOBILE, StateManagement.PROVIDER)
        table = registry.for_config(config)

        files = resolve(table, config)
        manifest = assemble(config, table=table)

        assert files.paths() == [spec.path for spec in table.entries if spec.include is ALWAYS]
        assert manifest.packages() == list(table.baseline_packages) + list(table.baseline_dev_packages)

    def test_persistence_adds_exactly_its_group(self, registry: TableRegistry):
        base = _bare(TargetPlatform.MOBILE, StateManagement.PROVIDER)
        with_hive = base.copy_with(include_hive=True)
        table = registry.for_config(base)

        before = resolve(table, base).as_dict()
        after = resolve(table, with_hive).as_dict()

        hive_paths = {spec.path for spec in table.entries if spec.include is PERSISTENCE}
        assert hive_paths
        assert set(after) - set(before) == hive_paths
        assert {path: after[path] for path in before} == before

        manifest_before = assemble(base, table=table)
        manifest_after = assemble(with_hive, table=table)
        added = set(manifest_after.packages()) - set(manifest_before.packages())
        assert added == set(PERSISTENCE.packages)

    def test_exclusive_analytics_rejected_before_resolution(self):
        with pytest.raises(ConfigValidationError, match="mutually exclusive"):
            BlueprintConfig(
                app_name="my_app",
                include_analytics=True,
                analytics_provider=["firebase", "sentry"],
            )

    def test_seeded_duplicate_path(self, renderer: TemplateRenderer, minimal_config: BlueprintConfig):
        builder = renderer.builder("provider/main.dart.j2")
        table = FileSpecTable(
            name="seeded",
            platform=TargetPlatform.MOBILE,
            state_management=StateManagement.PROVIDER,
            entries=(
                FileSpec("lib/main.dart", builder),
                FileSpec("lib/main.dart", builder),
            ),
        )
        with pytest.raises(DuplicatePathError) as exc_info:
            resolve(table, minimal_config)
        assert exc_info.value.first == "core:provider/main.dart.j2 (entry 0)"
        assert exc_info.value.second == "core:provider/main.dart.j2 (entry 1)"

    def test_omitted_package_group(self, minimal_config: BlueprintConfig):
        charts = Feature("charts", lambda config: True)

        def build_chart(config: BlueprintConfig) -> str:
            return "import 'package:fl_chart/fl_chart.dart';\n"

        table = FileSpecTable(
            name="charts",
            platform=TargetPlatform.MOBILE,
            state_management=StateManagement.PROVIDER,
            entries=(FileSpec("lib/chart.dart", build_chart, include=charts),),
            baseline_packages=("flutter",),
        )
        files = resolve(table, minimal_config)
        manifest = assemble(minimal_config, table=table)

        with pytest.raises(MissingReferenceError) as exc_info:
            validate(files, manifest).raise_for_errors()
        assert exc_info.value.target == "fl_chart"


# ---------------------------------------------------------------------------
# Properties over every registered table
# ---------------------------------------------------------------------------


@pytest.mark.unit
class TestTableProperties:
    @pytest.mark.parametrize("platform, sm", COMBINATIONS)
    def test_deterministic(self, platform, sm, registry: TableRegistry):
        config = BlueprintConfig(app_name="my_app", platform=platform, state_management=sm, **ALL_ON)
        table = registry.for_config(config)
        assert resolve(table, config) == resolve(table, config)
        assert assemble(config, table=table) == assemble(config, table=table)

    @pytest.mark.parametrize("platform, sm", COMBINATIONS)
    def test_paths_unique(self, platform, sm, registry: TableRegistry):
        config = BlueprintConfig(
            app_name="my_app", platform=platform, state_management=sm, ci_provider="github", **ALL_ON
        )
        paths = resolve(registry.for_config(config), config).paths()
        assert len(paths) == len(set(paths))

    @pytest.mark.parametrize("toggle", sorted(TOGGLES))
    @pytest.mark.parametrize("platform, sm", COMBINATIONS)
    def test_feature_isolation_and_idempotence(self, platform, sm, toggle, registry: TableRegistry):
        base = _bare(platform, sm)
        enabled = base.copy_with(**TOGGLES[toggle])
        disabled = enabled.copy_with(**{key: getattr(base, key) for key in TOGGLES[toggle]})
        table = registry.for_config(base)

        base_files = resolve(table, base).as_dict()
        enabled_files = resolve(table, enabled).as_dict()

        # turning a feature on only adds files; every other file is byte-identical
        assert set(enabled_files) > set(base_files)
        assert {path: enabled_files[path] for path in base_files} == base_files

        # ...and only adds packages, never re-pins existing ones
        base_manifest = assemble(base, table=table)
        enabled_manifest = assemble(enabled, table=table)
        for name in base_manifest.packages():
            assert enabled_manifest.constraint(name) == base_manifest.constraint(name)

        # turning it back off restores the original result
        assert disabled == base
        assert resolve(table, disabled) == resolve(table, base)
        assert assemble(disabled, table=table) == base_manifest

    @pytest.mark.parametrize("provider", ["firebase", "sentry"])
    @pytest.mark.parametrize("ci", ["none", "github", "gitlab", "azure"])
    @pytest.mark.parametrize("platform, sm", COMBINATIONS)
    def test_sound_and_minimal(self, platform, sm, ci, provider, registry: TableRegistry):
        configs = [
            _bare(platform, sm).copy_with(ci_provider=ci),
            BlueprintConfig(
                app_name="my_app",
                platform=platform,
                state_management=sm,
                ci_provider=ci,
                analytics_provider=provider,
                **ALL_ON,
            ),
        ]
        for config in configs:
            table = registry.for_config(config)
            files = resolve(table, config)
            manifest = assemble(config, table=table)
            result = validate(files, manifest, config=config, table=table)
            assert result.errors == [], [str(e) for e in result.errors]
            assert result.warnings == []

    @pytest.mark.parametrize("toggle", sorted(TOGGLES))
    def test_each_feature_alone_is_sound(self, toggle, registry: TableRegistry):
        for platform, sm in COMBINATIONS:
            config = _bare(platform, sm).copy_with(**TOGGLES[toggle])
            table = registry.for_config(config)
            result = validate(resolve(table, config), assemble(config, table=table), config=config, table=table)
            assert result.ok, [str(e) for e in result.errors]


# ---------------------------------------------------------------------------
# ProjectGenerator
# ---------------------------------------------------------------------------


@pytest.mark.unit
class TestProjectGeneratorPlan:
    def test_plan(self, minimal_config: BlueprintConfig, settings: Settings, recording_console: Console):
        plan = ProjectGenerator(minimal_config, settings, console=recording_console).plan()
        assert isinstance(plan, GenerationPlan)
        assert plan.table.name == "mobile-provider"
        assert "lib/main.dart" in plan.files
        assert "pubspec.yaml" not in plan.files
        assert plan.manifest.package_name == "my_app"
        assert plan.warnings == []

    @pytest.mark.asyncio
    async def test_plan_async_matches_plan(self, full_config: BlueprintConfig):
        settings = Settings(max_parallel_builders=4)
        generator = ProjectGenerator(full_config, settings, console=Console(record=True))
        async_plan = await generator.plan_async()
        sync_plan = generator.plan()
        assert async_plan.files == sync_plan.files
        assert async_plan.manifest == sync_plan.manifest

    def test_summary(self, full_config: BlueprintConfig):
        plan = ProjectGenerator(full_config, console=Console(record=True)).plan()
        summary = plan.summary()
        assert summary["App"] == "my_app"
        assert summary["Table"] == "mobile-bloc"
        assert "api" in summary["Features"]
        assert summary["Warnings"] == "0"

    @pytest.mark.parametrize("with_manifest, extra", [(True, 2), (False, 1)])
    def test_summary_counts_emitted_files(
        self, full_config: BlueprintConfig, with_manifest: bool, extra: int
    ):
        settings = Settings(write_blueprint_manifest=with_manifest)
        plan = ProjectGenerator(full_config, settings, console=Console(record=True)).plan()
        assert plan.summary()["Files"] == str(len(plan.files) + extra)
        assert ("blueprint.yaml" in plan.written_paths()) is with_manifest
        assert plan.written_paths()[-2 if with_manifest else -1] == "pubspec.yaml"

    def test_unknown_variant(self, minimal_config: BlueprintConfig, renderer: TemplateRenderer):
        generator = ProjectGenerator(minimal_config, registry=TableRegistry(renderer), console=Console(record=True))
        with pytest.raises(UnknownVariantError):
            generator.plan()

    def test_version_warnings_and_strict_mode(self, minimal_config: BlueprintConfig, renderer: TemplateRenderer):
        pinned = Feature("legacy_api", lambda config: True, packages=("dio",), pins={"dio": "^4.0.0"})

        def build_client(config: BlueprintConfig) -> str:
            return "import 'package:dio/dio.dart';\n"

        table = FileSpecTable(
            name="pinned",
            platform=TargetPlatform.MOBILE,
            state_management=StateManagement.PROVIDER,
            entries=(FileSpec("lib/client.dart", build_client, include=pinned),),
            baseline_packages=("flutter",),
        )
        registry = _single_table(table, renderer)

        plan = ProjectGenerator(minimal_config, registry=registry, console=Console(record=True)).plan()
        [warning] = plan.warnings
        assert warning.code == "VERSION_TABLE"
        assert warning.package == "dio"
        # canonical constraint wins in the manifest
        assert plan.manifest.dependencies["dio"] == "^5.5.0"

        strict = ProjectGenerator(
            minimal_config, Settings(strict=True), registry=registry, console=Console(record=True)
        )
        with pytest.raises(ValidationFailedError) as exc_info:
            strict.plan()
        [error] = exc_info.value.errors
        assert isinstance(error, DiagnosticError)
        assert error.diagnostic_code == "VERSION_TABLE"

    def test_preview_tree(self, minimal_config: BlueprintConfig, recording_console: Console):
        generator = ProjectGenerator(minimal_config, console=recording_console)
        recording_console.print(generator.preview())
        text = recording_console.export_text()
        assert "my_app/" in text
        assert "lib/" in text
        assert "main.dart" in text
        assert "pubspec.yaml" in text
        assert "blueprint.yaml" in text


@pytest.mark.unit
class TestProjectGeneratorGenerate:
    @pytest.mark.asyncio
    async def test_generate_writes_project(self, full_config: BlueprintConfig, settings: Settings, tmp_path: Path):
        root = await ProjectGenerator(full_config, settings, console=Console(record=True)).generate()

        assert root == tmp_path / "my_app"
        assert (root / "lib" / "main.dart").is_file()
        assert (root / "pubspec.yaml").is_file()
        assert (root / "blueprint.yaml").is_file()
        assert BlueprintConfig.load(root / "blueprint.yaml") == full_config

    @pytest.mark.asyncio
    async def test_output_dir_argument(self, minimal_config: BlueprintConfig, tmp_path: Path):
        target = tmp_path / "elsewhere"
        root = await ProjectGenerator(minimal_config, console=Console(record=True)).generate(target)
        assert root == target / "my_app"
        assert (root / "README.md").is_file()

    @pytest.mark.asyncio
    async def test_without_blueprint_manifest(self, minimal_config: BlueprintConfig, tmp_path: Path):
        settings = Settings(output_dir=tmp_path, write_blueprint_manifest=False)
        root = await ProjectGenerator(minimal_config, settings, console=Console(record=True)).generate()
        assert not (root / "blueprint.yaml").exists()

    @pytest.mark.asyncio
    async def test_existing_project_requires_overwrite(self, minimal_config: BlueprintConfig, tmp_path: Path):
        await ProjectGenerator(minimal_config, Settings(output_dir=tmp_path), console=Console(record=True)).generate()

        with pytest.raises(EmitError):
            await ProjectGenerator(
                minimal_config, Settings(output_dir=tmp_path), console=Console(record=True)
            ).generate()

        changed = minimal_config.copy_with(include_api=True)
        root = await ProjectGenerator(
            changed, Settings(output_dir=tmp_path, overwrite=True), console=Console(record=True)
        ).generate()
        assert (root / "lib" / "core" / "api" / "api_client.dart").is_file()

    @pytest.mark.asyncio
    async def test_failed_validation_writes_nothing(
        self, minimal_config: BlueprintConfig, renderer: TemplateRenderer, tmp_path: Path
    ):
        def build_chart(config: BlueprintConfig) -> str:
            return "import 'package:fl_chart/fl_chart.dart';\n"

        table = FileSpecTable(
            name="charts",
            platform=TargetPlatform.MOBILE,
            state_management=StateManagement.PROVIDER,
            entries=(FileSpec("lib/chart.dart", build_chart),),
            baseline_packages=("flutter",),
        )
        generator = ProjectGenerator(
            minimal_config,
            Settings(output_dir=tmp_path),
            registry=_single_table(table, renderer),
            console=Console(record=True),
        )
        with pytest.raises(MissingReferenceError):
            await generator.generate()
        assert list(tmp_path.iterdir()) == []
