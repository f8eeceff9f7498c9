"""Error taxonomy for blueprint generation.

Every failure the generation pipeline can report is a ``BlueprintError``
subclass carrying a machine-readable ``code`` and a human-readable message.
All of them are fail-fast: a run that raises any of these never reaches the
emitter, so no partial project tree is written.
"""

from __future__ import annotations

from typing import Any


class BlueprintError(Exception):
    """Base class for all blueprint generation errors."""

    code = "BLUEPRINT_ERROR"

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-serialisable description of the error."""
        return {"code": self.code, "message": self.message}

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"


class ConfigValidationError(BlueprintError):
    """Raised when configuration values conflict or are out of range.

    ``problems`` lists every independent problem found, so a single
    fix-and-retry cycle can address all of them.
    """

    code = "CONFIG_VALIDATION_ERROR"

    def __init__(self, problems: list[str] | str) -> None:
        if isinstance(problems, str):
            problems = [problems]
        self.problems = list(problems)
        super().__init__("; ".join(self.problems) or "invalid configuration")

    def to_dict(self) -> dict[str, Any]:
        return {**super().to_dict(), "problems": list(self.problems)}

    @classmethod
    def from_validation_error(cls, exc: Any) -> "ConfigValidationError":
        """Build from a pydantic ``ValidationError``, one problem per entry."""
        problems: list[str] = []
        for err in exc.errors():
            loc = ".".join(str(part) for part in err.get("loc", ()) if part != "__root__")
            msg = str(err.get("msg", "invalid value"))
            # pydantic prefixes messages raised from validators
            msg = msg.removeprefix("Value error, ")
            problems.append(f"{loc}: {msg}" if loc else msg)
        return cls(problems)


class DuplicatePathError(BlueprintError):
    """Raised when two specification entries would emit the same path."""

    code = "DUPLICATE_PATH_ERROR"

    def __init__(self, path: str, first: str, second: str) -> None:
        self.path = path
        self.first = first
        self.second = second
        super().__init__(
            f"'{path}' is produced by both '{first}' and '{second}'"
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            **super().to_dict(),
            "path": self.path,
            "entries": [self.first, self.second],
        }


class MissingReferenceError(BlueprintError):
    """Raised when emitted content references a path or package that will not exist."""

    code = "MISSING_REFERENCE_ERROR"

    def __init__(self, path: str, target: str, reason: str = "") -> None:
        self.path = path
        self.target = target
        self.reason = reason
        detail = f" ({reason})" if reason else ""
        super().__init__(f"'{path}' references '{target}' which is not emitted{detail}")

    def to_dict(self) -> dict[str, Any]:
        return {**super().to_dict(), "path": self.path, "target": self.target}


class UnknownVariantError(BlueprintError):
    """Raised when no file specification table exists for a platform/variant pair."""

    code = "UNKNOWN_VARIANT_ERROR"

    def __init__(self, platform: str, state_management: str) -> None:
        self.platform = platform
        self.state_management = state_management
        super().__init__(
            f"No template table for platform '{platform}' "
            f"with state management '{state_management}'"
        )


class VersionTableError(BlueprintError):
    """Raised when a package has no entry in the canonical version table."""

    code = "VERSION_TABLE_ERROR"

    def __init__(self, package: str, requested_by: str) -> None:
        self.package = package
        self.requested_by = requested_by
        super().__init__(
            f"Package '{package}' requested by '{requested_by}' "
            "has no canonical version"
        )


class ValidationFailedError(BlueprintError):
    """Aggregate raised when a consistency check finds several problems."""

    code = "VALIDATION_FAILED"

    def __init__(self, errors: list[BlueprintError]) -> None:
        self.errors = list(errors)
        summary = "; ".join(err.message for err in self.errors)
        super().__init__(f"{len(self.errors)} problem(s): {summary}")

    def to_dict(self) -> dict[str, Any]:
        return {**super().to_dict(), "errors": [err.to_dict() for err in self.errors]}


class EmitError(BlueprintError):
    """Raised when the validated project cannot be written to storage."""

    code = "EMIT_ERROR"


class DiagnosticError(BlueprintError):
    """An advisory diagnostic promoted to an error by strict mode."""

    code = "STRICT_DIAGNOSTIC"

    def __init__(self, diagnostic_code: str, message: str) -> None:
        self.diagnostic_code = diagnostic_code
        super().__init__(f"[{diagnostic_code}] {message}")
