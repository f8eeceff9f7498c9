"""Configuration model for blueprint generation.

``BlueprintConfig`` is the immutable record of every choice that drives
generation: target platform, state-management variant, and the optional
feature toggles.  It is validated once at construction time and read-only
afterwards; every later stage of the pipeline only ever reads it.

Any construction failure is reported as a
:class:`~blueprint.errors.ConfigValidationError` listing all problems found.
"""

from __future__ import annotations

import re
from enum import Enum
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    ValidationError,
    field_validator,
    model_validator,
)

from blueprint.errors import ConfigValidationError

MANIFEST_VERSION = 1
MAX_APP_NAME_LENGTH = 64

_PACKAGE_NAME_RE = re.compile(r"^[a-z][a-z0-9_]*$")
_BOOL = TypeAdapter(bool)

DART_RESERVED_WORDS: frozenset[str] = frozenset({
    "abstract", "as", "assert", "async", "await", "break", "case", "catch",
    "class", "const", "continue", "covariant", "default", "deferred", "do",
    "dynamic", "else", "enum", "export", "extends", "extension", "external",
    "factory", "false", "final", "finally", "for", "function", "get", "hide",
    "if", "implements", "import", "in", "interface", "is", "late", "library",
    "mixin", "new", "null", "on", "operator", "part", "required", "rethrow",
    "return", "set", "show", "static", "super", "switch", "sync", "this",
    "throw", "true", "try", "typedef", "var", "void", "while", "with", "yield",
})


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class TargetPlatform(str, Enum):
    """Platform the generated project targets."""
    MOBILE = "mobile"
    WEB = "web"

    @classmethod
    def parse(cls, value: Any) -> "TargetPlatform":
        """Parse a platform name, accepting ``android``/``ios`` as ``mobile``."""
        if isinstance(value, cls):
            return value
        normalized = str(value).strip().lower()
        if normalized in ("android", "ios"):
            return cls.MOBILE
        try:
            return cls(normalized)
        except ValueError:
            raise ConfigValidationError(
                f"Unsupported platform: {value}. Use: mobile, web (or android, ios)"
            ) from None


class StateManagement(str, Enum):
    """State-management variant of the generated project."""
    PROVIDER = "provider"
    RIVERPOD = "riverpod"
    BLOC = "bloc"


class AnalyticsProvider(str, Enum):
    """Analytics / crash-reporting backend. Providers are mutually exclusive."""
    FIREBASE = "firebase"
    SENTRY = "sentry"


class CIProvider(str, Enum):
    """CI/CD provider to generate a pipeline definition for."""
    NONE = "none"
    GITHUB = "github"
    GITLAB = "gitlab"
    AZURE = "azure"


# ``blueprint.yaml`` feature key -> model field
FEATURE_FIELDS: dict[str, str] = {
    "accessibility": "include_accessibility",
    "analytics": "include_analytics",
    "api": "include_api",
    "env": "include_env",
    "hive": "include_hive",
    "localization": "include_localization",
    "pagination": "include_pagination",
    "tests": "include_tests",
    "theme": "include_theme",
}


# ---------------------------------------------------------------------------
# Configuration model
# ---------------------------------------------------------------------------

class BlueprintConfig(BaseModel):
    """Immutable, validated record of all feature choices for one project."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    app_name: str = Field(..., description="Dart package name of the generated app")
    description: str = Field(default="A new Flutter project.", description="Short project description")
    platform: TargetPlatform = Field(default=TargetPlatform.MOBILE)
    state_management: StateManagement = Field(default=StateManagement.PROVIDER)

    include_theme: bool = Field(default=True, description="Light/dark theme scaffolding")
    include_api: bool = Field(default=False, description="Dio API client and interceptors")
    include_hive: bool = Field(default=False, description="Hive local persistence")
    include_analytics: bool = Field(default=False, description="Analytics and crash reporting")
    analytics_provider: Optional[AnalyticsProvider] = Field(
        default=None, description="Analytics backend; only meaningful with include_analytics"
    )
    include_pagination: bool = Field(default=False, description="Paginated list helpers")
    include_accessibility: bool = Field(default=False, description="Semantics helpers")
    include_localization: bool = Field(default=False, description="intl / ARB localization")
    include_env: bool = Field(default=False, description=".env loading via flutter_dotenv")
    include_tests: bool = Field(default=False, description="Test scaffolding")
    ci_provider: CIProvider = Field(default=CIProvider.NONE)

    def __init__(self, **data: Any) -> None:
        try:
            super().__init__(**data)
        except ValidationError as exc:
            raise ConfigValidationError.from_validation_error(exc) from exc

    # -- Validators --------------------------------------------------------

    @model_validator(mode="before")
    @classmethod
    def _default_analytics_provider(cls, data: Any) -> Any:
        if isinstance(data, dict) and _coerces_to_true(data.get("include_analytics")):
            if data.get("analytics_provider") in (None, "", [], ()):
                data = {**data, "analytics_provider": AnalyticsProvider.FIREBASE}
        return data

    @field_validator("app_name")
    @classmethod
    def _check_app_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("app name cannot be empty")
        if len(value) > MAX_APP_NAME_LENGTH:
            raise ValueError(f"app name is too long (max {MAX_APP_NAME_LENGTH} characters)")
        if not _PACKAGE_NAME_RE.match(value):
            raise ValueError(
                "app name must start with a lowercase letter and contain only "
                "lowercase letters, digits and underscores"
            )
        if value in DART_RESERVED_WORDS:
            raise ValueError(f"'{value}' is a Dart reserved word")
        return value

    @field_validator("platform", mode="before")
    @classmethod
    def _parse_platform(cls, value: Any) -> Any:
        if isinstance(value, str):
            normalized = value.strip().lower()
            return TargetPlatform.MOBILE if normalized in ("android", "ios") else normalized
        return value

    @field_validator("state_management", "ci_provider", mode="before")
    @classmethod
    def _normalize_enum(cls, value: Any) -> Any:
        return value.strip().lower() if isinstance(value, str) else value

    @field_validator("analytics_provider", mode="before")
    @classmethod
    def _single_analytics_provider(cls, value: Any) -> Any:
        if isinstance(value, str) and "," in value:
            value = [part for part in value.split(",") if part.strip()]
        if isinstance(value, (list, tuple, set, frozenset)):
            requested: list[str] = []
            for item in value:
                name = item.value if isinstance(item, Enum) else str(item).strip().lower()
                if name not in requested:
                    requested.append(name)
            if len(requested) > 1:
                raise ValueError(
                    "analytics providers are mutually exclusive, got: " + ", ".join(requested)
                )
            return requested[0] if requested else None
        if isinstance(value, str):
            return value.strip().lower() or None
        return value

    @model_validator(mode="after")
    def _check_conflicts(self) -> "BlueprintConfig":
        problems = self.conflicts()
        if problems:
            raise ConfigValidationError(problems)
        return self

    # -- Queries -----------------------------------------------------------

    def conflicts(self) -> list[str]:
        """Return every sub-choice or mutual-exclusivity problem in this config.

        Construction already rejects these; the consistency validator calls
        this again as a final check.
        """
        problems: list[str] = []
        provider = self.analytics_provider
        if isinstance(provider, (list, tuple, set, frozenset)) and len(set(provider)) > 1:
            problems.append("analytics providers are mutually exclusive")
        elif provider is not None and not self.include_analytics:
            problems.append("analytics_provider is set but include_analytics is disabled")
        elif provider is None and self.include_analytics:
            problems.append("include_analytics requires an analytics_provider")
        return problems

    def enabled_features(self) -> list[str]:
        """Names of the enabled feature toggles, in ``blueprint.yaml`` key order."""
        return [key for key, field_name in FEATURE_FIELDS.items() if getattr(self, field_name)]

    def copy_with(self, **changes: Any) -> "BlueprintConfig":
        """Return a new, re-validated config with *changes* applied."""
        data = self.model_dump()
        data.update(changes)
        if changes.get("include_analytics") is False and "analytics_provider" not in changes:
            data["analytics_provider"] = None
        return type(self)(**data)

    # -- blueprint.yaml ----------------------------------------------------

    def to_manifest(self) -> dict[str, Any]:
        """Return the ``blueprint.yaml`` mapping for this config."""
        return {
            "version": MANIFEST_VERSION,
            "app_name": self.app_name,
            "description": self.description,
            "platforms": [self.platform.value],
            "state_management": self.state_management.value,
            "ci_provider": self.ci_provider.value,
            "analytics_provider": self.analytics_provider.value if self.analytics_provider else None,
            "features": {key: getattr(self, field) for key, field in sorted(FEATURE_FIELDS.items())},
        }

    @classmethod
    def from_mapping(cls, data: dict[str, Any]) -> "BlueprintConfig":
        """Build a config from a ``blueprint.yaml``-style mapping.

        Accepts both the ``platforms`` list and the legacy single ``platform``
        key.  Missing feature keys fall back to the model defaults.
        """
        if not isinstance(data, dict):
            raise ConfigValidationError("blueprint manifest must be a mapping")

        if "platforms" in data:
            raw = data["platforms"]
            platforms = raw if isinstance(raw, list) else [raw]
        elif "platform" in data:
            platforms = [data["platform"]]
        else:
            platforms = [TargetPlatform.MOBILE.value]
        parsed = {TargetPlatform.parse(p) for p in platforms}
        if len(parsed) != 1:
            requested = ", ".join(str(p) for p in platforms) or "none"
            raise ConfigValidationError(
                f"exactly one platform must be selected, got: {requested}"
            )

        kwargs: dict[str, Any] = {
            "app_name": data.get("app_name", ""),
            "platform": parsed.pop(),
            "state_management": data.get("state_management", StateManagement.PROVIDER.value),
            "ci_provider": data.get("ci_provider", CIProvider.NONE.value),
        }
        if data.get("description"):
            kwargs["description"] = data["description"]
        if data.get("analytics_provider"):
            kwargs["analytics_provider"] = data["analytics_provider"]

        features = data.get("features") or {}
        if not isinstance(features, dict):
            raise ConfigValidationError("'features' must be a mapping")
        unknown = sorted(set(features) - set(FEATURE_FIELDS))
        if unknown:
            raise ConfigValidationError(
                [f"unknown feature '{name}'" for name in unknown]
            )
        for key, field_name in FEATURE_FIELDS.items():
            default = cls.model_fields[field_name].default
            kwargs[field_name] = _read_bool(key, features.get(key), fallback=default)
        return cls(**kwargs)

    @classmethod
    def load(cls, path: str | Path) -> "BlueprintConfig":
        """Load a config from a ``blueprint.yaml`` file."""
        raw = Path(path).read_text(encoding="utf-8")
        try:
            data = yaml.safe_load(raw)
        except yaml.YAMLError as exc:
            raise ConfigValidationError(f"invalid YAML in {path}: {exc}") from exc
        return cls.from_mapping(data)

    def dump_yaml(self) -> str:
        """Serialise :meth:`to_manifest` as YAML text."""
        return yaml.safe_dump(self.to_manifest(), sort_keys=False, default_flow_style=False)


def _read_bool(key: str, value: Any, *, fallback: bool) -> bool:
    if value is None:
        return fallback
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ("true", "false"):
        return value.strip().lower() == "true"
    raise ConfigValidationError(f"feature '{key}' must be a boolean")


def _coerces_to_true(value: Any) -> bool:
    """True when pydantic would read *value* as a true ``bool`` field."""
    if value is None:
        return False
    try:
        return _BOOL.validate_python(value)
    except ValidationError:
        # reported by the include_analytics field itself
        return False
