"""Jinja2 template rendering for project scaffolding.

Provides the TemplateRenderer class which loads Jinja2 templates from the
``blueprint/scaffolder/templates/`` directory, and :class:`TemplateBuilder`,
the content builder bound to one template that file specification entries
call with a :class:`BlueprintConfig`.

The rendering context only carries values that are not feature toggles
(app name, title, description, platform, state management), so switching a
feature on or off never changes the text of a file owned by another feature.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, StrictUndefined, select_autoescape

from blueprint.models import BlueprintConfig


# ---------------------------------------------------------------------------
# Template directory discovery
# ---------------------------------------------------------------------------

_DEFAULT_TEMPLATE_DIR = Path(__file__).parent / "templates"


# ---------------------------------------------------------------------------
# TemplateRenderer
# ---------------------------------------------------------------------------


class TemplateRenderer:
    """Loads ``.j2`` files from one template root and renders them.

    Undefined variables raise ``jinja2.UndefinedError`` instead of rendering
    as empty strings, so a misspelt context key fails the run.
    """

    def __init__(self, template_dir: str | Path | None = None) -> None:
        self.template_dir = Path(template_dir) if template_dir is not None else _DEFAULT_TEMPLATE_DIR
        self.env = Environment(
            loader=FileSystemLoader(str(self.template_dir)),
            autoescape=select_autoescape([]),
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
            undefined=StrictUndefined,
        )

    def render(self, template_path: str, context: dict[str, Any]) -> str:
        """Render *template_path* (relative to the template root, e.g.
        ``"common/app_router.dart.j2"``) with *context*.
        """
        return self.env.get_template(template_path).render(**context)

    def builder(self, template_path: str) -> "TemplateBuilder":
        """Return a content builder bound to *template_path*."""
        return TemplateBuilder(self, template_path)

    def list_templates(self, prefix: str = "") -> list[str]:
        """Sorted ``.j2`` paths under *prefix*, relative to the root, POSIX style."""
        search_dir = self.template_dir / prefix if prefix else self.template_dir
        if not search_dir.is_dir():
            return []
        return sorted(
            p.relative_to(self.template_dir).as_posix()
            for p in search_dir.rglob("*.j2")
        )


# ---------------------------------------------------------------------------
# Content builders
# ---------------------------------------------------------------------------


class TemplateBuilder:
    """Content builder for one output file: ``build(config) -> str``.

    Builders assume their owning predicate already holds and never decide
    whether the file exists.
    """

    def __init__(self, renderer: TemplateRenderer, template_path: str) -> None:
        self.renderer = renderer
        self.template_path = template_path

    def __call__(self, config: BlueprintConfig) -> str:
        return self.renderer.render(self.template_path, build_context(config))

    def __repr__(self) -> str:
        return f"TemplateBuilder({self.template_path!r})"


def build_context(config: BlueprintConfig) -> dict[str, Any]:
    """Template context for *config*; feature toggles are deliberately absent."""
    return {
        "app_name": config.app_name,
        "app_title": title_case(config.app_name),
        "description": config.description,
        "platform": config.platform.value,
        "state_management": config.state_management.value,
    }


def title_case(value: str) -> str:
    """``my_cool_app`` -> ``My Cool App``."""
    return " ".join(word.capitalize() for word in re.split(r"[-_\s]+", value) if word)
