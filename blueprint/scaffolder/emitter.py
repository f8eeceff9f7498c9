"""Emitter: writes a validated file set and manifest to disk.

The emitter treats the file set, ``pubspec.yaml`` and ``blueprint.yaml`` as
one unit.  Everything is written into a staging directory beside the target
and moved into place with a single rename, so a failed run never leaves a
partially written project behind.
"""

from __future__ import annotations

import asyncio
import shutil
import tempfile
import uuid
from pathlib import Path
from typing import Any

import yaml

from blueprint.errors import EmitError
from blueprint.models import BlueprintConfig

from .dependencies import DependencyManifest
from .resolver import ResolvedFileSet
from .templates import TemplateRenderer

PUBSPEC_PATH = "pubspec.yaml"
BLUEPRINT_MANIFEST_PATH = "blueprint.yaml"


class ProjectEmitter:
    """Writes generated projects with all-or-nothing semantics."""

    def __init__(self, renderer: TemplateRenderer | None = None) -> None:
        self.renderer = renderer or TemplateRenderer()

    # -- Rendering -----------------------------------------------------------

    def render_pubspec(self, manifest: DependencyManifest, file_set: ResolvedFileSet) -> str:
        """Render ``pubspec.yaml`` text from *manifest*.

        Asset directories and the ``generate`` flag are derived from the paths
        present in *file_set*.
        """
        paths = file_set.paths()
        assets = sorted({p.rsplit("/", 1)[0] for p in paths if p.startswith("assets/") and "/" in p})
        context: dict[str, Any] = {
            "name": manifest.package_name,
            "description": _yaml_scalar(manifest.description),
            "dependencies": _entries(manifest.dependencies),
            "dev_dependencies": _entries(manifest.dev_dependencies),
            "assets": assets,
            "generate_l10n": "l10n.yaml" in paths,
        }
        return self.renderer.render("pubspec.yaml.j2", context)

    def plan_files(
        self,
        file_set: ResolvedFileSet,
        manifest: DependencyManifest,
        config: BlueprintConfig | None = None,
    ) -> dict[str, str]:
        """Return every ``{path: content}`` pair the emitter would write."""
        files = file_set.as_dict()
        for extra in (PUBSPEC_PATH, BLUEPRINT_MANIFEST_PATH):
            if extra in files:
                raise EmitError(f"'{extra}' is reserved for the emitter but present in the file set")
        files[PUBSPEC_PATH] = self.render_pubspec(manifest, file_set)
        if config is not None:
            files[BLUEPRINT_MANIFEST_PATH] = config.dump_yaml()
        return files

    # -- Writing -------------------------------------------------------------

    async def write(
        self,
        file_set: ResolvedFileSet,
        manifest: DependencyManifest,
        target_dir: str | Path,
        *,
        config: BlueprintConfig | None = None,
        overwrite: bool = False,
    ) -> Path:
        """Write the project to *target_dir* and return its path.

        Args:
            file_set: Validated resolved file set.
            manifest: Validated dependency manifest.
            target_dir: Project root to create.
            config: When given, also written as ``blueprint.yaml``.
            overwrite: Replace an existing non-empty *target_dir*.

        Raises:
            EmitError: The target is not writable, not empty (without
                *overwrite*), or any write failed.  Nothing is left behind.
        """
        files = self.plan_files(file_set, manifest, config)
        target = Path(target_dir)
        return await asyncio.to_thread(_write_atomically, files, target, overwrite)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _yaml_scalar(value: str) -> str:
    """*value* as a double-quoted YAML scalar that loads back unchanged."""
    dumped = yaml.safe_dump(value, default_style='"', allow_unicode=True, width=float("inf"))
    return dumped.rstrip("\n").removesuffix("\n...")


def _entries(deps: dict[str, str]) -> list[dict[str, Any]]:
    return [
        {"name": name, "constraint": constraint, "sdk": DependencyManifest.is_sdk(constraint)}
        for name, constraint in deps.items()
    ]


def _write_atomically(files: dict[str, str], target: Path, overwrite: bool) -> Path:
    """Synchronous helper: stage every file, then rename the stage into place."""
    if target.exists():
        if not target.is_dir():
            raise EmitError(f"Target exists and is not a directory: {target}")
        if any(target.iterdir()) and not overwrite:
            raise EmitError(f"Target directory is not empty: {target} (use overwrite to replace it)")

    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        staging = Path(tempfile.mkdtemp(prefix=f".{target.name}.staging-", dir=target.parent))
    except OSError as exc:
        raise EmitError(f"Cannot prepare {target.parent}: {exc}") from exc

    try:
        for rel_path, content in files.items():
            out = staging / rel_path
            out.parent.mkdir(parents=True, exist_ok=True)
            out.write_text(content, encoding="utf-8")
        _swap_into_place(staging, target)
    except (OSError, UnicodeError) as exc:
        raise EmitError(f"Failed to write project to {target}: {exc}") from exc
    finally:
        # gone already once renamed into place
        shutil.rmtree(staging, ignore_errors=True)
    return target


def _swap_into_place(staging: Path, target: Path) -> None:
    if not target.exists():
        staging.rename(target)
        return
    backup = target.with_name(f".{target.name}.old-{uuid.uuid4().hex[:8]}")
    target.rename(backup)
    try:
        staging.rename(target)
    except OSError:
        backup.rename(target)
        raise
    shutil.rmtree(backup, ignore_errors=True)
