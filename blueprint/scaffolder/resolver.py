"""Bundle resolver: evaluates a file specification table against a config.

Resolution runs in three steps, each completing before the next starts:

1. every entry's inclusion predicate is evaluated in declaration order;
2. the selected entries are checked for duplicate output paths;
3. only then are the selected entries' builders invoked.

A predicate failure or a duplicate path therefore aborts resolution before a
single builder has run.  Builders of skipped entries are never invoked.
"""

from __future__ import annotations

import asyncio

from pydantic import BaseModel, ConfigDict, Field

from blueprint.errors import ConfigValidationError, DuplicatePathError
from blueprint.models import BlueprintConfig

from .table import FileSpec, FileSpecTable


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------

class ResolvedFile(BaseModel):
    """One emitted file."""

    model_config = ConfigDict(frozen=True)

    path: str = Field(..., description="POSIX path relative to the project root")
    content: str = Field(..., description="Generated file content")
    source: str = Field(default="", description="Label of the specification entry")


class ResolvedFileSet(BaseModel):
    """Ordered, path-unique sequence of files produced for one config."""

    model_config = ConfigDict(frozen=True)

    files: tuple[ResolvedFile, ...] = Field(default=())

    def __len__(self) -> int:
        return len(self.files)

    def __contains__(self, path: object) -> bool:
        return any(f.path == path for f in self.files)

    def paths(self) -> list[str]:
        return [f.path for f in self.files]

    def get(self, path: str) -> ResolvedFile | None:
        for f in self.files:
            if f.path == path:
                return f
        return None

    def as_dict(self) -> dict[str, str]:
        """Return a plain ``{path: content}`` mapping (declaration order)."""
        return {f.path: f.content for f in self.files}


# ---------------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------------

def select_entries(table: FileSpecTable, config: BlueprintConfig) -> list[FileSpec]:
    """Evaluate inclusion predicates and check selected paths for duplicates.

    Raises:
        ConfigValidationError: A predicate raised while reading the config.
        DuplicatePathError: Two selected entries share an output path.
    """
    selected: list[tuple[int, FileSpec]] = []
    for index, spec in enumerate(table.entries):
        try:
            included = spec.should_include(config)
        except Exception as exc:
            raise ConfigValidationError(
                f"predicate '{spec.include.name}' for '{spec.path}' failed: {exc}"
            ) from exc
        if included:
            selected.append((index, spec))

    owners: dict[str, tuple[int, FileSpec]] = {}
    for index, spec in selected:
        if spec.path in owners:
            first_index, first = owners[spec.path]
            raise DuplicatePathError(
                spec.path,
                f"{first.label} (entry {first_index})",
                f"{spec.label} (entry {index})",
            )
        owners[spec.path] = (index, spec)

    return [spec for _, spec in selected]


def resolve(table: FileSpecTable, config: BlueprintConfig) -> ResolvedFileSet:
    """Resolve *table* against *config* into a :class:`ResolvedFileSet`.

    Pure and deterministic: identical inputs give an identical result.
    """
    selected = select_entries(table, config)
    return ResolvedFileSet(
        files=tuple(
            ResolvedFile(path=spec.path, content=spec.build(config), source=spec.label)
            for spec in selected
        )
    )


async def resolve_async(
    table: FileSpecTable,
    config: BlueprintConfig,
    *,
    concurrency: int = 4,
) -> ResolvedFileSet:
    """Like :func:`resolve`, but invokes builders concurrently in threads.

    Builders are pure, so the result is identical to :func:`resolve`; the
    output keeps declaration order regardless of completion order.
    """
    if concurrency < 1:
        raise ValueError("concurrency must be >= 1")

    selected = select_entries(table, config)
    semaphore = asyncio.Semaphore(concurrency)

    async def _build(spec: FileSpec) -> ResolvedFile:
        async with semaphore:
            content = await asyncio.to_thread(spec.build, config)
        return ResolvedFile(path=spec.path, content=content, source=spec.label)

    files = await asyncio.gather(*[_build(spec) for spec in selected])
    return ResolvedFileSet(files=tuple(files))
