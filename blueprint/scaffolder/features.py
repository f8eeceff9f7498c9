"""Feature predicates shared by file inclusion and dependency assembly.

A :class:`Feature` is a named predicate over :class:`BlueprintConfig` that
also declares the package group it pulls into ``pubspec.yaml``.  The file
specification table references these objects directly, and the dependency
assembler walks the very same objects, so a file and the packages it imports
are always switched on by one expression.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Callable, Mapping

from blueprint.models import AnalyticsProvider, BlueprintConfig, CIProvider, StateManagement

Predicate = Callable[[BlueprintConfig], bool]


@dataclass(frozen=True, eq=False)
class Feature:
    """A named inclusion predicate plus the packages it requires.

    Attributes:
        name: Stable identifier used in diagnostics.
        predicate: Callable deciding whether the feature is active.
        packages: Regular dependencies pulled in when active.
        dev_packages: Dev dependencies pulled in when active.
        pins: Optional literal constraints requested by this group.  The
            canonical version table always wins; a differing pin is reported
            by :func:`blueprint.scaffolder.versions.check_version_table`.
    """

    name: str
    predicate: Predicate
    packages: tuple[str, ...] = ()
    dev_packages: tuple[str, ...] = ()
    pins: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    description: str = ""

    def __call__(self, config: BlueprintConfig) -> bool:
        return bool(self.predicate(config))

    def all_packages(self) -> tuple[str, ...]:
        return self.packages + self.dev_packages

    def __repr__(self) -> str:
        return f"Feature({self.name!r})"


# ---------------------------------------------------------------------------
# Unconditional
# ---------------------------------------------------------------------------

ALWAYS = Feature("core", lambda config: True, description="Baseline project files")


# ---------------------------------------------------------------------------
# Optional features
# ---------------------------------------------------------------------------

THEME = Feature(
    "theme",
    lambda config: config.include_theme,
    description="Light/dark theme, colours and typography",
)

ENV = Feature(
    "env",
    lambda config: config.include_env,
    packages=("flutter_dotenv",),
    description=".env loading",
)

API = Feature(
    "api",
    lambda config: config.include_api,
    packages=("dio", "pretty_dio_logger", "connectivity_plus"),
    description="Dio API client, interceptors and connectivity checks",
)

PERSISTENCE = Feature(
    "hive",
    lambda config: config.include_hive,
    packages=("hive", "hive_flutter", "path_provider"),
    description="Hive local persistence and caching",
)

ANALYTICS = Feature(
    "analytics",
    lambda config: config.include_analytics,
    description="Provider-agnostic analytics service and error boundary",
)

FIREBASE_ANALYTICS = Feature(
    "analytics.firebase",
    lambda config: (
        config.include_analytics
        and config.analytics_provider == AnalyticsProvider.FIREBASE
    ),
    packages=("firebase_core", "firebase_analytics", "firebase_crashlytics"),
    description="Firebase Analytics and Crashlytics backend",
)

SENTRY_ANALYTICS = Feature(
    "analytics.sentry",
    lambda config: (
        config.include_analytics
        and config.analytics_provider == AnalyticsProvider.SENTRY
    ),
    packages=("sentry_flutter",),
    description="Sentry backend",
)

PAGINATION = Feature(
    "pagination",
    lambda config: config.include_pagination,
    packages=("shimmer",),
    description="Pagination controller, paginated list and skeleton loader",
)

ACCESSIBILITY = Feature(
    "accessibility",
    lambda config: config.include_accessibility,
    description="Semantics and text-scaling helpers",
)

LOCALIZATION = Feature(
    "localization",
    lambda config: config.include_localization,
    packages=("flutter_localizations", "intl"),
    description="ARB localization and locale persistence",
)

TESTS = Feature(
    "tests",
    lambda config: config.include_tests,
    dev_packages=("mocktail",),
    description="Widget test and test helpers",
)

BLOC_TESTS = Feature(
    "tests.bloc",
    lambda config: config.include_tests and config.state_management == StateManagement.BLOC,
    dev_packages=("bloc_test",),
    description="bloc_test based BLoC tests",
)

CI_GITHUB = Feature("ci.github", lambda config: config.ci_provider == CIProvider.GITHUB)
CI_GITLAB = Feature("ci.gitlab", lambda config: config.ci_provider == CIProvider.GITLAB)
CI_AZURE = Feature("ci.azure", lambda config: config.ci_provider == CIProvider.AZURE)


OPTIONAL_FEATURES: tuple[Feature, ...] = (
    THEME,
    ENV,
    API,
    PERSISTENCE,
    ANALYTICS,
    FIREBASE_ANALYTICS,
    SENTRY_ANALYTICS,
    PAGINATION,
    ACCESSIBILITY,
    LOCALIZATION,
    TESTS,
    BLOC_TESTS,
    CI_GITHUB,
    CI_GITLAB,
    CI_AZURE,
)
