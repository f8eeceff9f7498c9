"""Blueprint generator settings.

Typed run settings for the generator and CLI.  These are deliberately kept
apart from :class:`~blueprint.models.BlueprintConfig`: the config describes
*what* project to generate, the settings describe *how* this run behaves
(where to write, whether to overwrite, how many builders run at once).
All settings use Pydantic v2 models so they can be validated at construction
time and serialised to/from JSON or environment variables.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

_TRUE_VALUES = ("1", "true", "yes", "on")


class Settings(BaseModel):
    """Global generator settings.

    Instances are typically created once by the CLI entry point and then
    passed to :class:`~blueprint.scaffolder.generator.ProjectGenerator`.
    """

    output_dir: Path = Field(default=Path("."), description="Parent directory for generated projects")
    overwrite: bool = Field(default=False, description="Replace a non-empty target directory")
    strict: bool = Field(
        default=False, description="Treat advisory diagnostics (minimality) as errors"
    )
    max_parallel_builders: int = Field(
        default=1, ge=1, description="Content builders rendered concurrently (1 = sequential)"
    )
    write_blueprint_manifest: bool = Field(
        default=True, description="Write blueprint.yaml next to the generated project files"
    )
    pub_dev_url: str = Field(default="https://pub.dev", description="pub.dev API base URL")
    http_timeout: int = Field(default=10, ge=1, description="Per-request pub.dev timeout in seconds")

    # ------------------------------------------------------------------
    # Derived paths
    # ------------------------------------------------------------------

    def project_path(self, app_name: str) -> Path:
        """Directory a project named *app_name* is generated into."""
        return self.output_dir / app_name

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    @classmethod
    def load(cls, path: Path) -> "Settings":
        """Load settings from a JSON file (as produced by ``model_dump_json``)."""
        raw = Path(path).read_text(encoding="utf-8")
        return cls.model_validate_json(raw)

    @classmethod
    def from_env(cls) -> "Settings":
        """Build ``Settings`` from environment variables.

        Recognised variables (all optional):
            BLUEPRINT_OUTPUT_DIR, BLUEPRINT_OVERWRITE, BLUEPRINT_STRICT,
            BLUEPRINT_MAX_PARALLEL_BUILDERS, BLUEPRINT_PUB_DEV_URL,
            BLUEPRINT_HTTP_TIMEOUT.
        """
        kwargs: dict[str, Any] = {}
        if os.environ.get("BLUEPRINT_OUTPUT_DIR"):
            kwargs["output_dir"] = Path(os.environ["BLUEPRINT_OUTPUT_DIR"])
        if os.environ.get("BLUEPRINT_OVERWRITE"):
            kwargs["overwrite"] = os.environ["BLUEPRINT_OVERWRITE"].strip().lower() in _TRUE_VALUES
        if os.environ.get("BLUEPRINT_STRICT"):
            kwargs["strict"] = os.environ["BLUEPRINT_STRICT"].strip().lower() in _TRUE_VALUES
        if os.environ.get("BLUEPRINT_MAX_PARALLEL_BUILDERS"):
            kwargs["max_parallel_builders"] = _env_int("BLUEPRINT_MAX_PARALLEL_BUILDERS")
        if os.environ.get("BLUEPRINT_PUB_DEV_URL"):
            kwargs["pub_dev_url"] = os.environ["BLUEPRINT_PUB_DEV_URL"]
        if os.environ.get("BLUEPRINT_HTTP_TIMEOUT"):
            kwargs["http_timeout"] = _env_int("BLUEPRINT_HTTP_TIMEOUT")
        return cls(**kwargs)


def _env_int(name: str) -> int:
    raw = os.environ[name]
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None
