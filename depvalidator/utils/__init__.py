"""
Utility helpers for depvalidator.

This package provides reusable utilities used across depvalidator, including:

- Console output helpers (Rich-based)
- Logging configuration, retrieval, and secret redaction
- Filesystem safety and discovery helpers
- Async HTTP client and subprocess utilities
- Version comparison helpers

Only symbols listed in ``__all__`` are considered part of the public API.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Filesystem utilities
# ---------------------------------------------------------------------------

from depvalidator.utils.filesystem import (
    find_manifest_file,
    find_sbom_file,
    safe_read_bytes,
)

# ---------------------------------------------------------------------------
# Logging utilities
# ---------------------------------------------------------------------------

from depvalidator.utils.logger import (
    disable_logging,
    get_logger,
    is_logging_configured,
    redact,
    register_secret,
    setup_logging,
)

# ---------------------------------------------------------------------------
# Console utilities
# ---------------------------------------------------------------------------

from depvalidator.utils.console import (
    colorize_status,
    get_raw_console,
    print_error,
    print_success,
    print_table,
    print_warning,
    reconfigure_console,
)

# ---------------------------------------------------------------------------
# HTTP and process utilities
# ---------------------------------------------------------------------------

from depvalidator.utils.http import HTTPClient
from depvalidator.utils.process import CommandResult, run_command

# ---------------------------------------------------------------------------
# Version utilities
# ---------------------------------------------------------------------------

from depvalidator.utils.version_utils import VersionMatching, versions_match

# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

__all__ = [
    # Console
    "print_error",
    "print_table",
    "print_success",
    "print_warning",
    "get_raw_console",
    "reconfigure_console",
    "colorize_status",
    # Logging
    "get_logger",
    "setup_logging",
    "disable_logging",
    "is_logging_configured",
    "redact",
    "register_secret",
    # Filesystem
    "safe_read_bytes",
    "find_manifest_file",
    "find_sbom_file",
    # HTTP / process
    "HTTPClient",
    "CommandResult",
    "run_command",
    # Version utilities
    "VersionMatching",
    "versions_match",
]
