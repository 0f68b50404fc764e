"""
Centralized constants for depvalidator.

This module defines immutable configuration values used across depvalidator,
including network settings, manifest file names, configuration discovery
names, and logging formats. All values are intended to be treated as
read-only.
"""

from typing import FrozenSet, Final, Mapping, Sequence

# ---------------------------------------------------------------------------
# Project metadata
# ---------------------------------------------------------------------------

#: HTTP User-Agent template used for outbound requests.
USER_AGENT_TEMPLATE: Final[str] = (
    "depvalidator/{version} (https://github.com/depvalidator/depvalidator)"
)

# ---------------------------------------------------------------------------
# Registry endpoints
# ---------------------------------------------------------------------------

#: NuGet flat-container index. ``{package}`` must be lower-cased.
NUGET_FLAT_CONTAINER_API: Final[str] = (
    "https://api.nuget.org/v3-flatcontainer/{package}/index.json"
)

#: Dependency kinds that can be looked up on the NuGet registry.
REGISTRY_KINDS: Final[FrozenSet[str]] = frozenset({"nuget", "dotnet"})

# ---------------------------------------------------------------------------
# Network / process configuration
# ---------------------------------------------------------------------------

#: Default timeout in seconds for every external call (HTTP, git, go).
DEFAULT_TIMEOUT: Final[float] = 30.0

#: Registry lookups are not retried unless explicitly configured.
DEFAULT_MAX_RETRIES: Final[int] = 0

#: Executables used by the resolvers.
GIT_EXECUTABLE: Final[str] = "git"
GO_EXECUTABLE: Final[str] = "go"

# ---------------------------------------------------------------------------
# Manifest discovery
# ---------------------------------------------------------------------------

#: Manifest basenames probed in order during discovery.
MANIFEST_DETECTION_ORDER: Final[Sequence[str]] = (
    "go.mod",
    "package.json",
    "requirements.txt",
    "pyproject.toml",
    "Gemfile",
    "Cargo.toml",
    "packages.config",
)

#: Glob used when no well-known manifest is present.
CSPROJ_PATTERN: Final[str] = "*.csproj"

#: SBOM basenames probed before the suffix patterns.
SBOM_FILE_NAMES: Final[Sequence[str]] = ("sbom.json", "bom.json")

#: SBOM filename suffixes.
SBOM_FILE_SUFFIXES: Final[Sequence[str]] = (".cdx.json", ".sbom.json")

#: Ecosystem tag assigned to records parsed from each manifest basename.
MANIFEST_KINDS: Final[Mapping[str, str]] = {
    "go.mod": "go-module",
    "package.json": "npm",
    "requirements.txt": "python",
    "pyproject.toml": "python",
    "Gemfile": "gem",
    "Cargo.toml": "cargo",
    "packages.config": "nuget",
}

#: Location of the restore output holding resolved NuGet versions.
DEFAULT_ASSETS_PATH: Final[str] = "obj/project.assets.json"

# ---------------------------------------------------------------------------
# CycloneDX
# ---------------------------------------------------------------------------

#: Only this ``bomFormat`` value is accepted.
CYCLONEDX_BOM_FORMAT: Final[str] = "CycloneDX"

#: Syft property naming a component's ecosystem.
SYFT_PACKAGE_TYPE_PROPERTY: Final[str] = "syft:package:type"

#: Syft property naming the file a component was found in.
SYFT_LOCATION_PROPERTY: Final[str] = "syft:location:0:path"

# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

#: YAML configuration file (``repos`` list of tracked repositories).
YAML_CONFIG_FILE: Final[str] = ".dependency-validator-config.yaml"

#: Standalone TOML configuration file.
TOML_CONFIG_FILE: Final[str] = "depvalidator.toml"

#: Default comparison strategy.
DEFAULT_VERSION_MATCHING: Final[str] = "canonical"

#: Whether the secondary registry pass runs by default.
DEFAULT_REGISTRY_CHECK: Final[bool] = True

# ---------------------------------------------------------------------------
# Security constraints
# ---------------------------------------------------------------------------

#: Maximum allowed file size (in bytes) when reading manifests.
MAX_FILE_SIZE: Final[int] = 10 * 1024 * 1024  # 10 MB

# ---------------------------------------------------------------------------
# Logging configuration
# ---------------------------------------------------------------------------

#: Timestamp format for verbose logging.
LOG_DATE_FORMAT: Final[str] = "%Y-%m-%d %H:%M:%S"

#: Default log format (non-verbose).
LOG_DEFAULT_FORMAT: Final[str] = "%(levelname)s: %(message)s"

#: Verbose log format including timestamp and logger name.
LOG_VERBOSE_FORMAT: Final[str] = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
