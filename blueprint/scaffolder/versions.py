"""Canonical version table for generated ``pubspec.yaml`` files.

Every package a generated project may depend on has exactly one constraint
here, so the same package never receives two different constraints across
template variants.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Iterable, Mapping

from pydantic import BaseModel, Field

from .features import Feature

# Constraint marker for packages shipped with the Flutter SDK.
SDK_FLUTTER = "sdk: flutter"

CANONICAL_VERSIONS: Mapping[str, str] = MappingProxyType({
    # SDK
    "flutter": SDK_FLUTTER,
    "flutter_localizations": SDK_FLUTTER,
    "flutter_test": SDK_FLUTTER,
    # State management
    "provider": "^6.1.2",
    "flutter_riverpod": "^2.6.1",
    "flutter_bloc": "^8.1.5",
    "bloc": "^8.1.4",
    # Baseline
    "go_router": "^14.8.1",
    "shared_preferences": "^2.2.3",
    "equatable": "^2.0.5",
    "flutter_secure_storage": "^9.2.2",
    "url_strategy": "^0.3.0",
    # Optional features
    "flutter_dotenv": "^5.1.0",
    "dio": "^5.5.0",
    "pretty_dio_logger": "^1.4.0",
    "connectivity_plus": "^6.0.5",
    "hive": "^2.2.3",
    "hive_flutter": "^1.1.0",
    "path_provider": "^2.1.5",
    "firebase_core": "^3.6.0",
    "firebase_analytics": "^11.3.3",
    "firebase_crashlytics": "^4.1.3",
    "sentry_flutter": "^8.9.0",
    "shimmer": "^3.0.0",
    "intl": "^0.20.2",
    # Dev
    "flutter_lints": "^5.0.0",
    "mocktail": "^1.0.3",
    "bloc_test": "^9.1.7",
})


class VersionDiscrepancy(BaseModel):
    """A package group whose literal request disagrees with the canonical table."""

    package: str = Field(..., description="Package name")
    requested_by: str = Field(..., description="Feature or table that requested it")
    requested: str | None = Field(default=None, description="Literal constraint requested")
    canonical: str | None = Field(default=None, description="Canonical constraint, if any")

    @property
    def missing(self) -> bool:
        """True when the package has no canonical entry at all."""
        return self.canonical is None

    def describe(self) -> str:
        if self.missing:
            return f"{self.package} (requested by {self.requested_by}) has no canonical version"
        return (
            f"{self.package} pinned to {self.requested} by {self.requested_by}, "
            f"canonical is {self.canonical}"
        )


def check_version_table(
    features: Iterable[Feature],
    version_table: Mapping[str, str] = CANONICAL_VERSIONS,
    *,
    baseline: Iterable[str] = (),
) -> list[VersionDiscrepancy]:
    """Self-check the canonical table against the package groups using it.

    Reports packages without a canonical entry and literal pins that differ
    from the canonical constraint.  An empty list means the table is sound.
    """
    found: list[VersionDiscrepancy] = []
    for name in baseline:
        if name not in version_table:
            found.append(VersionDiscrepancy(package=name, requested_by="baseline"))
    for feature in features:
        for name in feature.all_packages():
            canonical = version_table.get(name)
            requested = feature.pins.get(name)
            if canonical is None:
                found.append(VersionDiscrepancy(
                    package=name, requested_by=feature.name, requested=requested,
                ))
            elif requested is not None and requested != canonical:
                found.append(VersionDiscrepancy(
                    package=name,
                    requested_by=feature.name,
                    requested=requested,
                    canonical=canonical,
                ))
    return found
