"""
Custom exception hierarchy for depvalidator.

This module defines structured exception types used across depvalidator.
All exceptions inherit from :class:`DepValidatorError` and support optional
structured metadata via the ``details`` attribute to improve diagnostics
and logging.

Two families matter to callers:

- *Fatal* errors (:class:`ConfigError`, :class:`ManifestNotFoundError`,
  :class:`ParseError`, :class:`UnsupportedFormatError`) abort a run before
  any dependency is classified.
- *Per-dependency* errors (:class:`ResolverError`, :class:`NetworkError`)
  are caught by the reconciler and downgrade one dependency to
  "unresolved".
"""

from __future__ import annotations

from typing import Any, Mapping, MutableMapping, Optional


class DepValidatorError(Exception):
    """Base exception for all depvalidator errors.

    Args:
        message: Human-readable error message.
        details: Optional structured metadata describing the error.
    """

    __slots__ = ("message", "details")

    def __init__(
        self,
        message: str,
        details: Optional[Mapping[str, Any]] = None,
    ) -> None:
        self.message: str = message
        # Internally normalize to a mutable dict
        self.details: MutableMapping[str, Any] = dict(details) if details else {}
        super().__init__(message)

    def __str__(self) -> str:
        if not self.details:
            return self.message
        formatted = ", ".join(f"{k}={v}" for k, v in self.details.items())
        return f"{self.message} ({formatted})"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, details={dict(self.details)!r})"
        )


def _add_if(details: MutableMapping[str, Any], key: str, value: Any) -> None:
    """Add a key to ``details`` only if ``value`` is not ``None``."""
    if value is not None:
        details[key] = value


def _truncate(text: str, max_length: int = 200) -> str:
    """Truncate long text for safe logging or error reporting."""
    if len(text) <= max_length:
        return text
    return text[:max_length] + "..."


class ConfigError(DepValidatorError):
    """Raised when the configuration file is missing, unreadable, or invalid.

    Args:
        message: Error description.
        config_path: Path to the configuration file.
        option: Offending option name, if a single option is at fault.
    """

    __slots__ = ("config_path", "option")

    def __init__(
        self,
        message: str,
        *,
        config_path: Optional[str] = None,
        option: Optional[str] = None,
    ) -> None:
        details: MutableMapping[str, Any] = {}
        _add_if(details, "config", config_path)
        _add_if(details, "option", option)

        super().__init__(message, details)

        self.config_path = config_path
        self.option = option


class FileOperationError(DepValidatorError):
    """Raised when file system operations fail.

    Args:
        message: Error description.
        file_path: Path to the file involved.
        operation: Operation being performed (read/discover).
        original_error: Original exception that triggered this error.
    """

    __slots__ = ("file_path", "operation", "original_error")

    def __init__(
        self,
        message: str,
        *,
        file_path: Optional[str] = None,
        operation: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ) -> None:
        details: MutableMapping[str, Any] = {}
        _add_if(details, "path", file_path)
        _add_if(details, "operation", operation)
        _add_if(
            details,
            "original_error",
            str(original_error) if original_error else None,
        )

        super().__init__(message, details)

        self.file_path = file_path
        self.operation = operation
        self.original_error = original_error


class ManifestNotFoundError(FileOperationError):
    """Raised when a manifest or SBOM file does not exist."""

    __slots__ = ()


class ParseError(DepValidatorError):
    """Raised when a manifest, SBOM, or assets file cannot be parsed.

    Args:
        message: Error description.
        file_path: Path to the file being parsed.
        format: Manifest format being parsed (e.g. ``"xml-csproj"``).
        line_number: Line number where parsing failed, if known.
    """

    __slots__ = ("file_path", "format", "line_number")

    def __init__(
        self,
        message: str,
        *,
        file_path: Optional[str] = None,
        format: Optional[str] = None,
        line_number: Optional[int] = None,
    ) -> None:
        details: MutableMapping[str, Any] = {}
        _add_if(details, "file", file_path)
        _add_if(details, "format", format)
        _add_if(details, "line", line_number)

        super().__init__(message, details)

        self.file_path = file_path
        self.format = format
        self.line_number = line_number


class UnsupportedFormatError(DepValidatorError):
    """Raised for unrecognized manifests and non-CycloneDX SBOMs.

    Args:
        message: Error description.
        file_path: Path to the rejected file.
        format: Format tag that was found, if any.
    """

    __slots__ = ("file_path", "format")

    def __init__(
        self,
        message: str,
        *,
        file_path: Optional[str] = None,
        format: Optional[str] = None,
    ) -> None:
        details: MutableMapping[str, Any] = {}
        _add_if(details, "file", file_path)
        _add_if(details, "format", format)

        super().__init__(message, details)

        self.file_path = file_path
        self.format = format


class NetworkError(DepValidatorError):
    """Raised when HTTP or network operations fail.

    Args:
        message: Error description.
        url: URL being accessed.
        status_code: HTTP status code, if available.
        response_body: Raw response body, truncated for safety.
    """

    __slots__ = ("url", "status_code", "response_body")

    def __init__(
        self,
        message: str,
        *,
        url: Optional[str] = None,
        status_code: Optional[int] = None,
        response_body: Optional[str] = None,
    ) -> None:
        details: MutableMapping[str, Any] = {}
        _add_if(details, "url", url)
        _add_if(details, "status_code", status_code)

        if response_body is not None:
            details["response"] = _truncate(response_body)

        super().__init__(message, details)

        self.url = url
        self.status_code = status_code
        self.response_body = response_body


class RegistryError(NetworkError):
    """Raised for failures related to the package registry API.

    Args:
        message: Error description.
        package_name: Name of the package involved.
        **kwargs: Additional arguments forwarded to ``NetworkError``.
    """

    __slots__ = ("package_name",)

    def __init__(
        self,
        message: str,
        *,
        package_name: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)

        self.package_name = package_name
        if package_name is not None:
            self.details["package"] = package_name


class ResolverError(DepValidatorError):
    """Base class for failures of an external version source."""

    __slots__ = ()


class GitResolverError(ResolverError):
    """Raised when a remote tag listing fails or yields no usable tag.

    ``repo_url`` must already be stripped of credentials.

    Args:
        message: Error description.
        repo_url: Redacted repository URL.
        stderr: Redacted process error output.
    """

    __slots__ = ("repo_url", "stderr")

    def __init__(
        self,
        message: str,
        *,
        repo_url: Optional[str] = None,
        stderr: Optional[str] = None,
    ) -> None:
        details: MutableMapping[str, Any] = {}
        _add_if(details, "repo", repo_url)
        if stderr:
            details["stderr"] = _truncate(stderr.strip())

        super().__init__(message, details)

        self.repo_url = repo_url
        self.stderr = stderr


class InstalledVersionError(ResolverError):
    """Raised when installed versions cannot be listed (e.g. ``go list``).

    Args:
        message: Error description.
        command: Command line that failed.
    """

    __slots__ = ("command",)

    def __init__(self, message: str, *, command: Optional[str] = None) -> None:
        details: MutableMapping[str, Any] = {}
        _add_if(details, "command", command)

        super().__init__(message, details)

        self.command = command
