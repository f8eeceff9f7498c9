"""Command-line interface for blueprint.

Commands::

    blueprint init my_app --state bloc --api --hive -o ./projects
    blueprint check my_app --platform web --analytics sentry
    blueprint versions --latest

Exit codes: 0 on success, 1 when validation or writing fails, 2 when the
configuration itself is invalid.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
import time
from pathlib import Path
from typing import Any, Sequence

from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from blueprint.config import Settings
from blueprint.errors import BlueprintError, ConfigValidationError, ValidationFailedError
from blueprint.models import AnalyticsProvider, BlueprintConfig, CIProvider, StateManagement
from blueprint.pub_client import PubClient
from blueprint.scaffolder.dependencies import DependencyManifest
from blueprint.scaffolder.generator import GenerationPlan, ProjectGenerator
from blueprint.scaffolder.versions import CANONICAL_VERSIONS
from blueprint.utils import (
    console as default_console,
    format_duration,
    print_error,
    print_problems,
    print_success,
    print_summary_table,
    print_warning,
    sanitize_package_name,
)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_CONFIG = 2

# (flag, BlueprintConfig field)
_TOGGLE_FLAGS: tuple[tuple[str, str], ...] = (
    ("--api", "include_api"),
    ("--hive", "include_hive"),
    ("--pagination", "include_pagination"),
    ("--accessibility", "include_accessibility"),
    ("--localization", "include_localization"),
    ("--env", "include_env"),
    ("--tests", "include_tests"),
)


# ---------------------------------------------------------------------------
# Argument parsing
# ---------------------------------------------------------------------------


def _feature_options() -> argparse.ArgumentParser:
    """Options shared by ``init`` and ``check``."""
    parent = argparse.ArgumentParser(add_help=False)
    parent.add_argument(
        "app_name",
        nargs="?",
        default=None,
        help="Dart package name of the app (optional with --config)",
    )
    parent.add_argument("--config", "-c", default=None, help="Load choices from a blueprint.yaml")
    _add_settings_option(parent)
    parent.add_argument(
        "--platform",
        choices=["mobile", "web", "android", "ios"],
        default=None,
        help="Target platform (default: mobile)",
    )
    parent.add_argument(
        "--state",
        dest="state_management",
        choices=[sm.value for sm in StateManagement],
        default=None,
        help="State management (default: provider)",
    )
    parent.add_argument("--description", default=None, help="pubspec description")
    for flag, dest in _TOGGLE_FLAGS:
        parent.add_argument(
            flag,
            dest=dest,
            action="store_true",
            default=None,
            help=f"Enable the {flag[2:]} feature",
        )
    parent.add_argument(
        "--no-theme",
        dest="include_theme",
        action="store_false",
        default=None,
        help="Skip the theme feature",
    )
    parent.add_argument(
        "--analytics",
        action="append",
        choices=[p.value for p in AnalyticsProvider],
        default=None,
        metavar="PROVIDER",
        help="Enable analytics with PROVIDER (firebase or sentry)",
    )
    parent.add_argument(
        "--ci",
        dest="ci_provider",
        choices=[ci.value for ci in CIProvider],
        default=None,
        help="Generate a CI pipeline for this provider",
    )
    parent.add_argument(
        "--strict",
        action="store_true",
        default=None,
        help="Treat advisory diagnostics as errors",
    )
    return parent


def _add_settings_option(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--settings",
        default=None,
        metavar="FILE",
        help="Load run settings from a JSON file instead of BLUEPRINT_* variables",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="blueprint",
        description="Blueprint -- configuration-driven Flutter project generator",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  blueprint init my_app --state riverpod --api --tests\n"
            "  blueprint init my_app --platform web --analytics sentry --dry-run\n"
            "  blueprint check --config blueprint.yaml\n"
            "  blueprint versions --latest\n"
        ),
    )
    sub = parser.add_subparsers(dest="command", required=True)
    features = _feature_options()

    init = sub.add_parser("init", parents=[features], help="Generate a new project")
    init.add_argument("--output", "-o", default=None, help="Parent directory (default: .)")
    init.add_argument(
        "--overwrite",
        action="store_true",
        default=None,
        help="Replace an existing non-empty project directory",
    )
    init.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would be written without writing anything",
    )

    sub.add_parser("check", parents=[features], help="Resolve and validate without writing")

    versions = sub.add_parser("versions", help="Show the canonical version table")
    versions.add_argument(
        "--latest",
        action="store_true",
        help="Compare against the latest versions published on pub.dev",
    )
    _add_settings_option(versions)
    return parser


# ---------------------------------------------------------------------------
# Config / settings assembly
# ---------------------------------------------------------------------------


def config_from_args(args: argparse.Namespace) -> BlueprintConfig:
    """Build the :class:`BlueprintConfig` described by parsed arguments.

    Flags given on the command line override values loaded with ``--config``.
    """
    overrides: dict[str, Any] = {}
    if args.platform:
        overrides["platform"] = args.platform
    if args.state_management:
        overrides["state_management"] = args.state_management
    if args.description:
        overrides["description"] = args.description
    for _, dest in _TOGGLE_FLAGS:
        value = getattr(args, dest)
        if value is not None:
            overrides[dest] = value
    if args.include_theme is not None:
        overrides["include_theme"] = args.include_theme
    if args.analytics:
        overrides["include_analytics"] = True
        overrides["analytics_provider"] = args.analytics
    if args.ci_provider:
        overrides["ci_provider"] = args.ci_provider
    if args.app_name:
        overrides["app_name"] = args.app_name

    if args.config:
        path = Path(args.config)
        if not path.exists():
            raise ConfigValidationError(f"config file not found: {path}")
        base = BlueprintConfig.load(path)
        return base.copy_with(**overrides) if overrides else base

    if "app_name" not in overrides:
        raise ConfigValidationError("an app name is required (or pass --config)")
    return BlueprintConfig(**overrides)


def settings_from_args(args: argparse.Namespace) -> Settings:
    """Run settings (from --settings or the environment) with flag overrides applied."""
    if getattr(args, "settings", None):
        path = Path(args.settings)
        if not path.exists():
            raise ConfigValidationError(f"settings file not found: {path}")
        try:
            settings = Settings.load(path)
        except ValidationError as exc:
            raise ConfigValidationError.from_validation_error(exc) from exc
    else:
        try:
            settings = Settings.from_env()
        except ValidationError as exc:
            raise ConfigValidationError.from_validation_error(exc) from exc
        except ValueError as exc:
            raise ConfigValidationError(str(exc)) from exc
    update: dict[str, Any] = {}
    if getattr(args, "output", None):
        update["output_dir"] = Path(args.output)
    if getattr(args, "overwrite", None):
        update["overwrite"] = True
    if getattr(args, "strict", None):
        update["strict"] = True
    return settings.model_copy(update=update) if update else settings


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def _report_plan(plan: GenerationPlan, console: Console) -> None:
    print_summary_table(plan.summary(), title="Blueprint", console=console)
    for warning in plan.warnings:
        print_warning(f"warning: {escape(warning.message)}", console=console)


def _cmd_init(args: argparse.Namespace, console: Console) -> int:
    config = config_from_args(args)
    settings = settings_from_args(args)
    generator = ProjectGenerator(config, settings, console=console)

    if args.dry_run:
        plan = generator.plan()
        _report_plan(plan, console)
        console.print(generator.preview(plan))
        print_success("Dry run complete; nothing was written.", console=console)
        return EXIT_OK

    start = time.monotonic()
    project_root = asyncio.run(generator.generate())
    elapsed = format_duration(time.monotonic() - start)
    print_success(f"Created {config.app_name} at {project_root} in {elapsed}", console=console)
    console.print("Next steps:")
    console.print(f"  cd {project_root}")
    console.print("  flutter pub get")
    if config.include_localization:
        console.print("  flutter gen-l10n")
    console.print("  flutter run")
    return EXIT_OK


def _cmd_check(args: argparse.Namespace, console: Console) -> int:
    config = config_from_args(args)
    settings = settings_from_args(args)
    plan = ProjectGenerator(config, settings, console=console).plan()
    _report_plan(plan, console)
    print_success("Configuration is consistent.", console=console)
    return EXIT_OK


def _cmd_versions(args: argparse.Namespace, console: Console) -> int:
    settings = settings_from_args(args)
    names = [name for name, c in CANONICAL_VERSIONS.items() if not DependencyManifest.is_sdk(c)]

    latest: dict[str, Any] = {}
    if args.latest:
        client = PubClient(settings.pub_dev_url, settings.http_timeout)
        latest = asyncio.run(client.latest_versions(names))

    table = Table(title="Canonical versions", show_header=True, header_style="bold cyan")
    table.add_column("Package", no_wrap=True)
    table.add_column("Constraint")
    if args.latest:
        table.add_column("Latest on pub.dev")

    for name, constraint in CANONICAL_VERSIONS.items():
        row = [name, constraint]
        if args.latest:
            response = latest.get(name)
            if response is None:
                row.append("-")
            elif not response.success:
                row.append(f"[red]{escape(response.error or '')}[/red]")
            elif response.caret_constraint == constraint:
                row.append(f"[green]{response.version}[/green]")
            else:
                row.append(f"[yellow]{response.version}[/yellow]")
        table.add_row(*row)

    console.print(table)
    return EXIT_OK


_COMMANDS = {
    "init": _cmd_init,
    "check": _cmd_check,
    "versions": _cmd_versions,
}


def main(argv: Sequence[str] | None = None, *, console: Console | None = None) -> int:
    """CLI entry point for ``blueprint`` and ``python -m blueprint``."""
    console = console or default_console
    args = build_parser().parse_args(argv)

    try:
        return _COMMANDS[args.command](args, console)
    except ConfigValidationError as exc:
        print_problems([exc], title="Invalid configuration", console=console)
        app_name = getattr(args, "app_name", None)
        suggestion = sanitize_package_name(app_name) if app_name else ""
        if suggestion and suggestion != app_name:
            print_warning(f"Did you mean '{suggestion}'?", console=console)
        return EXIT_CONFIG
    except ValidationFailedError as exc:
        print_problems(exc.errors, console=console)
        return EXIT_FAILED
    except BlueprintError as exc:
        print_error(f"Error: {escape(str(exc))}", console=console)
        return EXIT_FAILED


if __name__ == "__main__":
    sys.exit(main())
