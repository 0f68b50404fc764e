from __future__ import annotations

import io
import sys
from typing import Generator
from unittest.mock import patch

import pytest
from rich.console import Console

from depvalidator.utils.console import (
    DEPVALIDATOR_THEME,
    _get_console,
    _should_use_color,
    colorize_status,
    get_raw_console,
    print_error,
    print_success,
    print_table,
    print_warning,
    reconfigure_console,
)


# ==============================================================================
# Fixtures
# ==============================================================================


@pytest.fixture(autouse=True)
def reset_console() -> Generator[None, None, None]:
    """Reset console singleton before and after each test."""
    reconfigure_console()
    yield
    reconfigure_console()


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove environment variables that affect color detection."""
    monkeypatch.delenv("NO_COLOR", raising=False)
    monkeypatch.delenv("CI", raising=False)


@pytest.fixture
def recording_console() -> Generator[io.StringIO, None, None]:
    """Route console output to an in-memory buffer."""
    buffer = io.StringIO()
    console = Console(file=buffer, theme=DEPVALIDATOR_THEME, no_color=True, width=120)
    with patch("depvalidator.utils.console._get_console", return_value=console):
        yield buffer


# ==============================================================================
# Console lifecycle
# ==============================================================================


@pytest.mark.unit
class TestConsoleLifecycle:
    """Tests for console creation and color detection."""

    def test_singleton(self) -> None:
        """Test the same console is returned until reconfigured."""
        first = _get_console()

        assert get_raw_console() is first
        reconfigure_console()
        assert _get_console() is not first

    def test_no_color_env(self, clean_env: None, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test NO_COLOR disables colored output."""
        monkeypatch.setenv("NO_COLOR", "1")

        assert _should_use_color() is False

    def test_ci_env(self, clean_env: None, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test CI disables colored output."""
        monkeypatch.setenv("CI", "true")

        assert _should_use_color() is False

    def test_tty_enables_color(self, clean_env: None) -> None:
        """Test an interactive stdout enables colors."""
        with patch.object(sys.stdout, "isatty", return_value=True):
            assert _should_use_color() is True


# ==============================================================================
# Output helpers
# ==============================================================================


@pytest.mark.unit
class TestStatusMessages:
    """Tests for print_success, print_error and print_warning."""

    @pytest.mark.parametrize(
        "printer, prefix",
        [
            (print_success, "[OK]"),
            (print_error, "[ERROR]"),
            (print_warning, "[WARNING]"),
        ],
    )
    def test_default_prefixes(
        self, recording_console: io.StringIO, printer, prefix: str
    ) -> None:
        """Test each helper prints its prefix and message."""
        printer("done")

        assert f"{prefix} done" in recording_console.getvalue()

    def test_custom_prefix(self, recording_console: io.StringIO) -> None:
        """Test the prefix can be overridden."""
        print_success("checked", prefix=">>")

        assert ">> checked" in recording_console.getvalue()


@pytest.mark.unit
class TestPrintTable:
    """Tests for print_table."""

    def test_renders_rows(self, recording_console: io.StringIO) -> None:
        """Test headers and cell values appear in the output."""
        print_table(
            [{"Dependency": "Serilog", "Current": "2.10.0"}],
            title="Dependency Status",
        )

        output = recording_console.getvalue()
        assert "Dependency Status" in output
        assert "Serilog" in output
        assert "2.10.0" in output

    def test_empty_data_prints_nothing(self, recording_console: io.StringIO) -> None:
        """Test an empty row list produces no output."""
        print_table([])

        assert recording_console.getvalue() == ""

    def test_explicit_headers_limit_columns(self, recording_console: io.StringIO) -> None:
        """Test only the requested headers are rendered."""
        print_table([{"A": "shown", "B": "hidden"}], headers=["A"])

        output = recording_console.getvalue()
        assert "shown" in output
        assert "hidden" not in output


@pytest.mark.unit
class TestColorizeStatus:
    """Tests for colorize_status."""

    @pytest.mark.parametrize(
        "status, color",
        [("up-to-date", "green"), ("outdated", "yellow"), ("unresolved", "red")],
    )
    def test_known_statuses(self, status: str, color: str) -> None:
        """Test statuses are wrapped in their color markup."""
        assert colorize_status(status) == f"[{color}]{status}[/{color}]"

    def test_unknown_status_unchanged(self) -> None:
        """Test unknown labels are returned as-is."""
        assert colorize_status("skipped") == "skipped"
