"""Configuration file loader for depvalidator.

Handles discovery, loading, parsing, and validation of configuration files.
Supports three formats:

- ``.dependency-validator-config.yaml`` — settings at the document root
- ``depvalidator.toml`` — settings under ``[depvalidator]`` table
- ``pyproject.toml`` — settings under ``[tool.depvalidator]`` table

Discovery order:

1. Explicit path from ``--config`` or ``DEPVALIDATOR_CONFIG``
2. ``.dependency-validator-config.yaml`` in current directory
3. ``depvalidator.toml`` in current directory
4. ``pyproject.toml`` with ``[tool.depvalidator]`` section

Configuration precedence: defaults < config file < CLI args.

Typical usage::

    config = load_config()  # Auto-discover
    config = load_config(Path("custom.yaml"))  # Explicit path

Example (``.dependency-validator-config.yaml``)::

    repos:
      - name: github.com/stretchr/testify
        repo_url: https://github.com/stretchr/testify.git
      - name: Internal.Shared
        repo_url: https://git.example.com/org/shared.git
        token: ${TOKEN}
        package_id: Internal.Shared.Core

Environment variable references in tokens (``${TOKEN}``) are expanded
when the file is loaded; unset variables are left as written. Access
tokens are registered with the log redaction filter as soon as they
are parsed, and never appear in ``repr`` or :meth:`to_log_dict` output.
"""

from __future__ import annotations

import os
import yaml
import tomli as tomllib
from pathlib import Path
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from depvalidator.exceptions import ConfigError
from depvalidator.models.repository import TrackedRepository
from depvalidator.utils.logger import get_logger, register_secret
from depvalidator.utils.version_utils import VersionMatching
from depvalidator.constants import (
    DEFAULT_REGISTRY_CHECK,
    DEFAULT_TIMEOUT,
    DEFAULT_VERSION_MATCHING,
    TOML_CONFIG_FILE,
    YAML_CONFIG_FILE,
)

logger = get_logger("config")

_KNOWN_KEYS = frozenset({"repos", "version_matching", "registry_check", "timeout"})
_REPO_KEYS = frozenset({"name", "repo_url", "token", "package_id"})


@dataclass
class DepValidatorConfig:
    """Parsed and validated depvalidator configuration.

    All fields have defaults, so empty config files are valid.

    Attributes:
        repos: Tracked repositories, in file order.
        version_matching: How declared and latest versions are compared.
        registry_check: Query the NuGet registry for dependencies that no
            tracked repository covers.
        timeout: Seconds allowed for each external lookup.
        source_path: Path to loaded config file, or ``None`` if using defaults.
    """

    repos: List[TrackedRepository] = field(default_factory=list)
    version_matching: VersionMatching = VersionMatching(DEFAULT_VERSION_MATCHING)
    registry_check: bool = DEFAULT_REGISTRY_CHECK
    timeout: float = DEFAULT_TIMEOUT

    # Metadata (not a user-facing option)
    source_path: Optional[Path] = field(default=None, repr=False)

    def to_log_dict(self) -> Dict[str, Any]:
        """Return configuration as dictionary for debug logging.

        Tokens are reduced to an ``authenticated`` flag per repository.
        """
        return {
            "repos": [repo.to_log_dict() for repo in self.repos],
            "version_matching": self.version_matching.value,
            "registry_check": self.registry_check,
            "timeout": self.timeout,
        }


def discover_config_file(explicit_path: Optional[Path] = None) -> Optional[Path]:
    """Find the configuration file to load.

    Args:
        explicit_path: Explicit config path. If provided, must exist.

    Returns:
        Resolved path to config file, or ``None`` if not found.

    Raises:
        ConfigError: Explicit path provided but does not exist.
    """
    if explicit_path is not None:
        resolved = explicit_path.resolve()
        if not resolved.is_file():
            raise ConfigError(
                f"Configuration file not found: {explicit_path}",
                config_path=str(explicit_path),
            )
        logger.debug("Using explicit config: %s", resolved)
        return resolved

    cwd = Path.cwd()

    for name in (YAML_CONFIG_FILE, TOML_CONFIG_FILE):
        candidate = cwd / name
        if candidate.is_file():
            logger.debug("Found %s: %s", name, candidate)
            return candidate

    pyproject_toml = cwd / "pyproject.toml"
    if pyproject_toml.is_file() and _pyproject_has_section(pyproject_toml):
        logger.debug("Found [tool.depvalidator] in pyproject.toml: %s", pyproject_toml)
        return pyproject_toml

    logger.debug("No configuration file found")
    return None


def _pyproject_has_section(path: Path) -> bool:
    """Check if pyproject.toml contains a [tool.depvalidator] section.

    A pyproject.toml that cannot be parsed is treated as having none.
    """
    try:
        raw = _read_toml(path)
    except ConfigError as exc:
        logger.debug("Ignoring unreadable pyproject.toml: %s", exc)
        return False
    tool = raw.get("tool", {})
    return isinstance(tool, dict) and "depvalidator" in tool


def load_config(config_path: Optional[Path] = None) -> DepValidatorConfig:
    """Load and validate depvalidator configuration.

    Args:
        config_path: Explicit path to config file. If ``None``, uses
            auto-discovery (see :func:`discover_config_file`).

    Returns:
        Validated :class:`DepValidatorConfig` with values from file or defaults.

    Raises:
        ConfigError: File cannot be parsed, has unknown keys, or invalid values.
    """
    resolved = discover_config_file(config_path)

    if resolved is None:
        logger.debug("No config file found, using defaults")
        return DepValidatorConfig()

    logger.info("Loading configuration from %s", resolved)

    if resolved.suffix.lower() in (".yaml", ".yml"):
        section = _read_yaml(resolved)
    else:
        raw = _read_toml(resolved)
        if resolved.name == "pyproject.toml":
            section = raw.get("tool", {}).get("depvalidator", {})
        else:
            section = raw.get("depvalidator", {})

    if not section:
        logger.debug("Config file found but empty, using defaults")
        return DepValidatorConfig(source_path=resolved)

    config = _parse_section(section, config_path=str(resolved))
    config.source_path = resolved

    logger.debug("Loaded configuration: %s", config.to_log_dict())
    return config


def _read_toml(path: Path) -> Dict[str, Any]:
    """Read and parse a TOML file.

    Raises:
        ConfigError: File cannot be read or is not valid TOML.
    """
    try:
        with open(path, "rb") as fh:
            return tomllib.load(fh)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(
            f"Invalid TOML in {path.name}: {exc}",
            config_path=str(path),
        ) from exc
    except OSError as exc:
        raise ConfigError(
            f"Cannot read configuration file {path}: {exc}",
            config_path=str(path),
        ) from exc


def _read_yaml(path: Path) -> Dict[str, Any]:
    """Read and parse a YAML file whose root must be a mapping.

    An empty document yields an empty mapping.

    Raises:
        ConfigError: File cannot be read, is not valid YAML, or its root is
            not a mapping.
    """
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except yaml.YAMLError as exc:
        raise ConfigError(
            f"Invalid YAML in {path.name}: {exc}",
            config_path=str(path),
        ) from exc
    except OSError as exc:
        raise ConfigError(
            f"Cannot read configuration file {path}: {exc}",
            config_path=str(path),
        ) from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(
            f"Configuration root must be a mapping, got {type(data).__name__}",
            config_path=str(path),
        )
    return data


def _parse_section(
    section: Mapping[str, Any],
    *,
    config_path: str,
) -> DepValidatorConfig:
    """Parse and validate a depvalidator configuration section.

    Rejects unknown keys and type mismatches.

    Raises:
        ConfigError: Unknown keys, incorrect types, or invalid values.
    """
    config = DepValidatorConfig()

    unknown_top = set(section.keys()) - _KNOWN_KEYS
    if unknown_top:
        raise ConfigError(
            f"Unknown configuration keys: {', '.join(sorted(unknown_top))}",
            config_path=config_path,
        )

    if "repos" in section:
        config.repos = _parse_repos(section["repos"], config_path=config_path)

    if "version_matching" in section:
        val = section["version_matching"]
        choices = [m.value for m in VersionMatching]
        if not isinstance(val, str) or val.lower() not in choices:
            raise ConfigError(
                f"version_matching must be one of {', '.join(choices)}, got {val!r}",
                config_path=config_path,
                option="version_matching",
            )
        config.version_matching = VersionMatching(val.lower())

    if "registry_check" in section:
        val = section["registry_check"]
        if not isinstance(val, bool):
            raise ConfigError(
                f"registry_check must be a boolean, got {type(val).__name__}",
                config_path=config_path,
                option="registry_check",
            )
        config.registry_check = val

    if "timeout" in section:
        val = section["timeout"]
        if isinstance(val, bool) or not isinstance(val, (int, float)) or val <= 0:
            raise ConfigError(
                f"timeout must be a positive number, got {val!r}",
                config_path=config_path,
                option="timeout",
            )
        config.timeout = float(val)

    return config


def _parse_repos(value: Any, *, config_path: str) -> List[TrackedRepository]:
    """Validate the ``repos`` list and build :class:`TrackedRepository` items."""
    if not isinstance(value, list):
        raise ConfigError(
            f"repos must be a list, got {type(value).__name__}",
            config_path=config_path,
            option="repos",
        )

    repos: List[TrackedRepository] = []
    for index, entry in enumerate(value):
        option = f"repos[{index}]"
        if not isinstance(entry, dict):
            raise ConfigError(
                f"{option} must be a mapping, got {type(entry).__name__}",
                config_path=config_path,
                option=option,
            )

        unknown = set(entry.keys()) - _REPO_KEYS
        if unknown:
            raise ConfigError(
                f"Unknown keys in {option}: {', '.join(sorted(unknown))}",
                config_path=config_path,
                option=option,
            )

        for required in ("name", "repo_url"):
            val = entry.get(required)
            if not isinstance(val, str) or not val.strip():
                raise ConfigError(
                    f"{option}.{required} must be a non-empty string",
                    config_path=config_path,
                    option=f"{option}.{required}",
                )

        for optional in ("token", "package_id"):
            val = entry.get(optional)
            if val is not None and not isinstance(val, str):
                raise ConfigError(
                    f"{option}.{optional} must be a string",
                    config_path=config_path,
                    option=f"{option}.{optional}",
                )

        # ${VAR} and $VAR references are read from the environment.
        token = os.path.expandvars(entry["token"]) if entry.get("token") else None
        register_secret(token)

        repos.append(
            TrackedRepository(
                name=entry["name"].strip(),
                repo_url=entry["repo_url"].strip(),
                token=token or None,
                package_id=entry.get("package_id") or None,
            )
        )

    return repos
