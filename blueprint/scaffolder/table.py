"""File specification tables.

A :class:`FileSpecTable` is the ordered, declarative catalog of every file a
``(platform, state_management)`` combination can emit.  Each
:class:`FileSpec` binds an output path, a content builder and the
:class:`~blueprint.scaffolder.features.Feature` that decides inclusion.  The
tables are plain data: evaluation lives in :mod:`.resolver` and package
assembly in :mod:`.dependencies`.
"""

from __future__ import annotations

import posixpath
from dataclasses import dataclass, field
from typing import Callable

from blueprint.errors import UnknownVariantError
from blueprint.models import BlueprintConfig, StateManagement, TargetPlatform

from .features import (
    ACCESSIBILITY,
    ALWAYS,
    ANALYTICS,
    API,
    BLOC_TESTS,
    CI_AZURE,
    CI_GITHUB,
    CI_GITLAB,
    ENV,
    FIREBASE_ANALYTICS,
    LOCALIZATION,
    PAGINATION,
    PERSISTENCE,
    SENTRY_ANALYTICS,
    TESTS,
    THEME,
    Feature,
)
from .templates import TemplateRenderer

ContentBuilder = Callable[[BlueprintConfig], str]


# ---------------------------------------------------------------------------
# Table data types
# ---------------------------------------------------------------------------


@dataclass(frozen=True, eq=False)
class FileSpec:
    """One output file: where it goes, how to build it, when to include it."""

    path: str
    build: ContentBuilder
    include: Feature = ALWAYS
    name: str = ""

    def __post_init__(self) -> None:
        if not self.path or self.path.startswith("/") or "\\" in self.path:
            raise ValueError(f"Output path must be a relative POSIX path: {self.path!r}")
        normalized = posixpath.normpath(self.path)
        if normalized != self.path or normalized.startswith(".."):
            raise ValueError(f"Output path must be normalized and stay inside the project: {self.path!r}")

    @property
    def label(self) -> str:
        """Human-readable identifier used in diagnostics."""
        if self.name:
            return self.name
        source = getattr(self.build, "template_path", None) or getattr(
            self.build, "__name__", type(self.build).__name__
        )
        return f"{self.include.name}:{source}"

    def should_include(self, config: BlueprintConfig) -> bool:
        return self.include(config)


@dataclass(frozen=True)
class FileSpecTable:
    """Ordered catalog of file specifications for one platform/variant pair."""

    name: str
    platform: TargetPlatform
    state_management: StateManagement
    entries: tuple[FileSpec, ...]
    baseline_packages: tuple[str, ...] = ()
    baseline_dev_packages: tuple[str, ...] = ()
    extra_features: tuple[Feature, ...] = field(default=())

    def features(self) -> tuple[Feature, ...]:
        """Every optional feature referenced by this table, in declaration order.

        These are the exact objects the entries use as inclusion predicates.
        """
        seen: list[Feature] = []
        for feature in [spec.include for spec in self.entries] + list(self.extra_features):
            if feature is ALWAYS:
                continue
            if not any(feature is known for known in seen):
                seen.append(feature)
        return tuple(seen)

    def paths(self) -> list[str]:
        return [spec.path for spec in self.entries]


# ---------------------------------------------------------------------------
# Table composition
# ---------------------------------------------------------------------------

_STATE_PACKAGES: dict[StateManagement, tuple[str, ...]] = {
    StateManagement.PROVIDER: ("provider",),
    StateManagement.RIVERPOD: ("flutter_riverpod",),
    StateManagement.BLOC: ("flutter_bloc", "bloc"),
}

_PLATFORM_PACKAGES: dict[TargetPlatform, tuple[str, ...]] = {
    TargetPlatform.MOBILE: ("flutter_secure_storage",),
    TargetPlatform.WEB: ("url_strategy",),
}

_COMMON_PACKAGES = ("go_router", "shared_preferences", "equatable")
_COMMON_DEV_PACKAGES = ("flutter_test", "flutter_lints")


def _spec(renderer: TemplateRenderer, path: str, template: str, include: Feature = ALWAYS) -> FileSpec:
    return FileSpec(path=path, build=renderer.builder(template), include=include)


def _state_entries(renderer: TemplateRenderer, sm: StateManagement) -> list[FileSpec]:
    """Files owned by the state-management variant."""
    base = sm.value
    if sm is StateManagement.BLOC:
        bloc_dir = "lib/features/home/presentation/bloc"
        return [
            _spec(renderer, f"{bloc_dir}/home_event.dart", "bloc/home_event.dart.j2"),
            _spec(renderer, f"{bloc_dir}/home_state.dart", "bloc/home_state.dart.j2"),
            _spec(renderer, f"{bloc_dir}/home_bloc.dart", "bloc/home_bloc.dart.j2"),
        ]
    return [
        _spec(
            renderer,
            "lib/features/home/presentation/providers/home_provider.dart",
            f"{base}/home_provider.dart.j2",
        ),
    ]


def _platform_entries(renderer: TemplateRenderer, platform: TargetPlatform) -> list[FileSpec]:
    """Files owned by the platform shim."""
    entries = [
        _spec(renderer, "lib/app/platform_setup.dart", f"{platform.value}/platform_setup.dart.j2"),
    ]
    if platform is TargetPlatform.MOBILE:
        entries.append(
            _spec(renderer, "lib/core/storage/secure_storage.dart", "mobile/secure_storage.dart.j2")
        )
    else:
        entries.append(_spec(renderer, "web/manifest.json", "web/manifest.json.j2"))
    return entries


def build_table(
    platform: TargetPlatform,
    state_management: StateManagement,
    renderer: TemplateRenderer | None = None,
) -> FileSpecTable:
    """Compose the file specification table for one platform/variant pair."""
    r = renderer or TemplateRenderer()
    sm = state_management.value

    entries: list[FileSpec] = [
        # Project files
        _spec(r, "analysis_options.yaml", "common/analysis_options.yaml.j2"),
        _spec(r, ".gitignore", "common/gitignore.j2"),
        _spec(r, "README.md", "common/README.md.j2"),

        # App entry
        _spec(r, "lib/main.dart", f"{sm}/main.dart.j2"),
        _spec(r, "lib/app/app.dart", f"{sm}/app.dart.j2"),
        *_platform_entries(r, platform),

        # Core: config
        _spec(r, "lib/core/config/app_config.dart", "common/app_config.dart.j2"),
        _spec(r, "lib/core/config/env_loader.dart", "features/env/env_loader.dart.j2", ENV),
        _spec(r, ".env.example", "features/env/env.example.j2", ENV),

        # Core: constants, errors, utils
        _spec(r, "lib/core/constants/app_constants.dart", "common/app_constants.dart.j2"),
        _spec(r, "lib/core/errors/exceptions.dart", "common/exceptions.dart.j2"),
        _spec(r, "lib/core/errors/failures.dart", "common/failures.dart.j2"),
        _spec(r, "lib/core/utils/logger.dart", "common/logger.dart.j2"),

        # Core: routing
        _spec(r, "lib/core/routing/route_names.dart", "common/route_names.dart.j2"),
        _spec(r, "lib/core/routing/app_router.dart", "common/app_router.dart.j2"),

        # Core: theme
        _spec(r, "lib/core/theme/app_colors.dart", "features/theme/app_colors.dart.j2", THEME),
        _spec(r, "lib/core/theme/typography.dart", "features/theme/typography.dart.j2", THEME),
        _spec(r, "lib/core/theme/app_theme.dart", "features/theme/app_theme.dart.j2", THEME),

        # Core: widgets and storage
        _spec(r, "lib/core/widgets/loading_indicator.dart", "common/loading_indicator.dart.j2"),
        _spec(r, "lib/core/widgets/error_view.dart", "common/error_view.dart.j2"),
        _spec(r, "lib/core/storage/local_storage.dart", "common/local_storage.dart.j2"),

        # Core: API
        _spec(r, "lib/core/api/api_endpoints.dart", "features/api/api_endpoints.dart.j2", API),
        _spec(r, "lib/core/api/api_client.dart", "features/api/api_client.dart.j2", API),
        _spec(
            r,
            "lib/core/api/interceptors/auth_interceptor.dart",
            "features/api/auth_interceptor.dart.j2",
            API,
        ),
        _spec(r, "lib/core/network/network_info.dart", "features/api/network_info.dart.j2", API),

        # Core: local persistence
        _spec(r, "lib/core/database/hive_database.dart", "features/hive/hive_database.dart.j2", PERSISTENCE),
        _spec(r, "lib/core/database/cache_manager.dart", "features/hive/cache_manager.dart.j2", PERSISTENCE),

        # Core: analytics
        _spec(
            r,
            "lib/core/analytics/analytics_service.dart",
            "features/analytics/analytics_service.dart.j2",
            ANALYTICS,
        ),
        _spec(
            r,
            "lib/core/analytics/analytics_events.dart",
            "features/analytics/analytics_events.dart.j2",
            ANALYTICS,
        ),
        _spec(
            r,
            "lib/core/analytics/firebase_analytics_service.dart",
            "features/analytics/firebase_analytics_service.dart.j2",
            FIREBASE_ANALYTICS,
        ),
        _spec(
            r,
            "lib/core/analytics/sentry_service.dart",
            "features/analytics/sentry_service.dart.j2",
            SENTRY_ANALYTICS,
        ),
        _spec(
            r,
            "lib/core/widgets/error_boundary.dart",
            "features/analytics/error_boundary.dart.j2",
            ANALYTICS,
        ),

        # Core: pagination
        _spec(
            r,
            "lib/core/pagination/pagination_controller.dart",
            "features/pagination/pagination_controller.dart.j2",
            PAGINATION,
        ),
        _spec(
            r,
            "lib/core/pagination/skeleton_loader.dart",
            "features/pagination/skeleton_loader.dart.j2",
            PAGINATION,
        ),
        _spec(
            r,
            "lib/core/pagination/paginated_list_view.dart",
            "features/pagination/paginated_list_view.dart.j2",
            PAGINATION,
        ),

        # Core: accessibility
        _spec(
            r,
            "lib/core/accessibility/accessibility_config.dart",
            "features/accessibility/accessibility_config.dart.j2",
            ACCESSIBILITY,
        ),
        _spec(
            r,
            "lib/core/accessibility/semantic_helpers.dart",
            "features/accessibility/semantic_helpers.dart.j2",
            ACCESSIBILITY,
        ),

        # Localization
        _spec(r, "l10n.yaml", "features/localization/l10n.yaml.j2", LOCALIZATION),
        _spec(r, "assets/l10n/app_en.arb", "features/localization/app_en.arb.j2", LOCALIZATION),
        _spec(
            r,
            "lib/core/l10n/locale_controller.dart",
            "features/localization/locale_controller.dart.j2",
            LOCALIZATION,
        ),

        # Features: home
        *_state_entries(r, state_management),
        _spec(r, "lib/features/home/presentation/pages/home_page.dart", f"{sm}/home_page.dart.j2"),

        # Tests
        _spec(r, "test/widget_test.dart", "features/tests/widget_test.dart.j2", TESTS),
        _spec(r, "test/helpers/test_helpers.dart", "features/tests/test_helpers.dart.j2", TESTS),
    ]

    if state_management is StateManagement.BLOC:
        entries.append(
            _spec(r, "test/features/home/home_bloc_test.dart", "bloc/home_bloc_test.dart.j2", BLOC_TESTS)
        )

    entries += [
        # CI/CD
        _spec(r, ".github/workflows/ci.yml", "features/ci/github_actions.yml.j2", CI_GITHUB),
        _spec(r, ".gitlab-ci.yml", "features/ci/gitlab_ci.yml.j2", CI_GITLAB),
        _spec(r, "azure-pipelines.yml", "features/ci/azure_pipelines.yml.j2", CI_AZURE),
    ]

    return FileSpecTable(
        name=f"{platform.value}-{sm}",
        platform=platform,
        state_management=state_management,
        entries=tuple(entries),
        baseline_packages=("flutter", *_STATE_PACKAGES[state_management], *_COMMON_PACKAGES,
                           *_PLATFORM_PACKAGES[platform]),
        baseline_dev_packages=_COMMON_DEV_PACKAGES,
    )


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

TableFactory = Callable[[TemplateRenderer], FileSpecTable]


class TableRegistry:
    """Maps ``(platform, state_management)`` pairs to table factories.

    Tables are built on demand with the registry's renderer; nothing is
    cached between lookups.
    """

    def __init__(self, renderer: TemplateRenderer | None = None) -> None:
        self.renderer = renderer or TemplateRenderer()
        self._factories: dict[tuple[TargetPlatform, StateManagement], TableFactory] = {}

    def register(
        self,
        platform: TargetPlatform,
        state_management: StateManagement,
        factory: TableFactory,
    ) -> None:
        self._factories[(platform, state_management)] = factory

    def get(self, platform: TargetPlatform, state_management: StateManagement) -> FileSpecTable:
        """Return the table for the pair or raise :class:`UnknownVariantError`."""
        factory = self._factories.get((platform, state_management))
        if factory is None:
            raise UnknownVariantError(_value(platform), _value(state_management))
        return factory(self.renderer)

    def for_config(self, config: BlueprintConfig) -> FileSpecTable:
        return self.get(config.platform, config.state_management)

    def combinations(self) -> list[tuple[TargetPlatform, StateManagement]]:
        return list(self._factories)


def default_registry(renderer: TemplateRenderer | None = None) -> TableRegistry:
    """Registry with a table for every supported platform/variant pair."""
    registry = TableRegistry(renderer)
    for platform in TargetPlatform:
        for sm in StateManagement:
            registry.register(
                platform,
                sm,
                lambda r, p=platform, s=sm: build_table(p, s, r),
            )
    return registry


def get_table(
    platform: TargetPlatform,
    state_management: StateManagement,
    renderer: TemplateRenderer | None = None,
) -> FileSpecTable:
    """Shortcut for ``default_registry(renderer).get(platform, state_management)``."""
    return default_registry(renderer).get(platform, state_management)


def _value(member: object) -> str:
    return str(getattr(member, "value", member))
