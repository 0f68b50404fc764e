"""Installed-version sources for depvalidator.

Raw manifests such as ``packages.config`` or ``package.json`` name their
dependencies but only carry constraint ranges, and ``go.mod`` is best read
through the toolchain. The versions actually in use are recovered from:

- ``obj/project.assets.json``, written by ``dotnet restore``; its
  ``libraries`` keys have the form ``"Name/Version"``.
- ``go list -m all``, which prints ``module version`` per line (the main
  module line carries no version).

SBOM inputs do not need this module; their components already carry a
version.
"""

from __future__ import annotations

import json
import asyncio
from pathlib import Path
from typing import Dict, Optional, Union

from depvalidator.constants import DEFAULT_ASSETS_PATH, DEFAULT_TIMEOUT, GO_EXECUTABLE
from depvalidator.exceptions import InstalledVersionError, ParseError
from depvalidator.utils.filesystem import safe_read_bytes
from depvalidator.utils.logger import get_logger
from depvalidator.utils.process import CommandRunner, run_command

logger = get_logger("installed")

__all__ = [
    "collect_installed_versions",
    "list_go_modules",
    "load_asset_versions",
    "parse_asset_versions",
    "parse_go_module_list",
]

PathLike = Union[str, Path]


def parse_asset_versions(data: bytes, file_path: Optional[str] = None) -> Dict[str, str]:
    """Map package name to version from ``project.assets.json`` content.

    Keys of ``libraries`` that do not split into exactly two ``/``
    separated parts are ignored.

    Raises:
        ParseError: The document is not valid JSON.
    """
    try:
        parsed = json.loads(data.decode("utf-8-sig"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise ParseError(
            f"Invalid assets file: {exc}",
            file_path=file_path,
            format="assets-json",
        ) from exc

    libraries = parsed.get("libraries") if isinstance(parsed, dict) else None
    if not isinstance(libraries, dict):
        return {}

    versions: Dict[str, str] = {}
    for key in libraries:
        parts = key.split("/")
        if len(parts) == 2:
            versions[parts[0]] = parts[1]
    return versions


def load_asset_versions(path: PathLike = DEFAULT_ASSETS_PATH) -> Dict[str, str]:
    """Read ``project.assets.json``; a missing file yields an empty mapping."""
    assets = Path(path)
    if not assets.is_file():
        logger.debug("No assets file at %s", assets)
        return {}

    versions = parse_asset_versions(safe_read_bytes(assets), str(assets))
    logger.info("Loaded %d installed version(s) from %s", len(versions), assets)
    return versions


def parse_go_module_list(output: Union[bytes, str]) -> Dict[str, str]:
    """Map module path to version from ``go list -m all`` output.

    Example::

        >>> parse_go_module_list("example.com/app\\ngithub.com/a/b v1.2.3\\n")
        {'github.com/a/b': 'v1.2.3'}
    """
    text = output.decode("utf-8", errors="replace") if isinstance(output, bytes) else output
    modules: Dict[str, str] = {}

    for line in text.splitlines():
        fields = line.split()
        if len(fields) >= 2:
            modules[fields[0]] = fields[1]

    return modules


async def list_go_modules(
    project_dir: PathLike = ".",
    *,
    runner: CommandRunner = run_command,
    timeout: float = DEFAULT_TIMEOUT,
    go_executable: str = GO_EXECUTABLE,
) -> Dict[str, str]:
    """Run ``go list -m all`` in ``project_dir`` and parse its output.

    Raises:
        InstalledVersionError: go is missing, fails, or times out.
    """
    args = [go_executable, "list", "-m", "all"]
    command = " ".join(args)

    try:
        result = await runner(args, timeout=timeout, cwd=project_dir)
    except asyncio.TimeoutError as exc:
        raise InstalledVersionError(
            f"go list timed out after {timeout:g}s", command=command
        ) from exc
    except OSError as exc:
        raise InstalledVersionError(
            f"failed to run {go_executable}: {exc.strerror or exc}", command=command
        ) from exc

    if not result.ok:
        raise InstalledVersionError(
            f"go list exited with status {result.returncode}: {result.stderr_text}",
            command=command,
        )

    return parse_go_module_list(result.stdout)


async def collect_installed_versions(
    project_dir: PathLike = ".",
    *,
    assets_path: Optional[PathLike] = None,
    runner: CommandRunner = run_command,
    timeout: float = DEFAULT_TIMEOUT,
) -> Dict[str, str]:
    """Gather installed versions from every available source.

    Go modules are listed only when ``go.mod`` exists; a failing ``go list``
    is logged and skipped. When a name appears in both sources, the go
    module version wins.

    Raises:
        ParseError: The assets file exists but is malformed.
    """
    root = Path(project_dir)
    assets = Path(assets_path) if assets_path is not None else root / DEFAULT_ASSETS_PATH

    versions: Dict[str, str] = dict(load_asset_versions(assets))

    if (root / "go.mod").is_file():
        try:
            modules = await list_go_modules(root, runner=runner, timeout=timeout)
        except InstalledVersionError as exc:
            logger.warning("Could not list Go modules: %s", exc)
        else:
            logger.info("Loaded %d Go module version(s)", len(modules))
            versions.update(modules)

    return versions
