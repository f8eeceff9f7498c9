"""Unit tests for utility functions (blueprint.utils).

Tests cover:
- sanitize_package_name
- format_duration
- Rich output helpers (print_success, print_summary_table, print_problems, ...)
"""

from __future__ import annotations

import pytest
from rich.console import Console

from blueprint.errors import ConfigValidationError, EmitError, MissingReferenceError
from blueprint.utils import (
    format_duration,
    print_error,
    print_problems,
    print_success,
    print_summary_table,
    print_warning,
    sanitize_package_name,
)


# ---------------------------------------------------------------------------
# sanitize_package_name
# ---------------------------------------------------------------------------


class TestSanitizePackageName:
    @pytest.mark.unit
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("My Cool App", "my_cool_app"),
            ("2FA-helper", "fa_helper"),
            ("already_fine", "already_fine"),
            ("  spaced--out  ", "spaced_out"),
            ("___", ""),
        ],
    )
    def test_sanitize(self, raw: str, expected: str):
        assert sanitize_package_name(raw) == expected


# ---------------------------------------------------------------------------
# format_duration
# ---------------------------------------------------------------------------


class TestFormatDuration:
    @pytest.mark.unit
    @pytest.mark.parametrize(
        "seconds, expected",
        [
            (0.25, "250ms"),
            (3.7, "3.7s"),
            (65.2, "1m 5s"),
            (-1, "0ms"),
        ],
    )
    def test_format(self, seconds: float, expected: str):
        assert format_duration(seconds) == expected


# ---------------------------------------------------------------------------
# Rich output helpers
# ---------------------------------------------------------------------------


class TestOutputHelpers:
    @pytest.mark.unit
    def test_status_messages(self, recording_console: Console):
        print_success("done", console=recording_console)
        print_warning("careful", console=recording_console)
        print_error("failed", console=recording_console)
        text = recording_console.export_text()
        assert "done" in text
        assert "careful" in text
        assert "failed" in text

    @pytest.mark.unit
    def test_summary_table(self, recording_console: Console):
        print_summary_table({"App": "my_app", "Files": "12"}, title="Plan", console=recording_console)
        text = recording_console.export_text()
        assert "Plan" in text
        assert "my_app" in text
        assert "12" in text

    @pytest.mark.unit
    def test_print_problems_lists_every_problem(self, recording_console: Console):
        errors = [
            ConfigValidationError(["first problem", "second problem"]),
            MissingReferenceError("lib/a.dart", "dio"),
            EmitError("disk full"),
        ]
        print_problems(errors, console=recording_console)
        text = recording_console.export_text()
        assert "first problem" in text
        assert "second problem" in text
        assert "MISSING_REFERENCE_ERROR" in text
        assert "disk full" in text
