"""Check command implementation for depvalidator.

Reads a project's declared dependencies and reports which of them lag
behind their latest upstream release.

The command orchestrates four core components:

1. **ManifestParser** — reads an SBOM or a manifest file into
   :class:`DependencyRecord` objects.
2. **collect_installed_versions** — fills in current versions for manifests
   that only name their dependencies (``project.assets.json``,
   ``go list -m all``).
3. **GitTagResolver** / **NuGetRegistryResolver** — look up the latest
   release of tracked repositories and of registry packages.
4. **Reconciler** — classifies each dependency as up to date, outdated, or
   unresolved.

Input selection, when neither ``--sbom`` nor ``--manifest`` is given: an
SBOM in the project directory is preferred; otherwise the first manifest
found in detection order is used.

Typical usage::

    # Check the current directory
    $ depvalidator check

    # Check an explicit SBOM with exact version comparison
    $ depvalidator check --sbom build/sbom.json --strict-version-matching

    # Machine-readable JSON output
    $ depvalidator check --format json > report.json
"""

from __future__ import annotations

import sys
import json
import click
import asyncio
from pathlib import Path
from typing import Any, Dict, Optional

from depvalidator.models import (
    ManifestFormat,
    ReconciliationReport,
    ReconciliationResult,
    ReconciliationStatus,
)
from depvalidator.exceptions import DepValidatorError
from depvalidator.context import pass_context, DepValidatorContext
from depvalidator.core import (
    GitTagResolver,
    ManifestParser,
    NuGetRegistryResolver,
    ParsedManifest,
    Reconciler,
    collect_installed_versions,
)
from depvalidator.utils import (
    HTTPClient,
    VersionMatching,
    colorize_status,
    find_manifest_file,
    find_sbom_file,
    get_logger,
    get_raw_console,
    print_error,
    print_success,
    print_table,
    print_warning,
)

logger = get_logger("commands.check")


@click.command()
@click.argument(
    "directory",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=".",
)
@click.option(
    "--manifest",
    "-m",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Manifest file to check instead of auto-discovery.",
)
@click.option(
    "--sbom",
    "-s",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="CycloneDX SBOM to check instead of auto-discovery.",
)
@click.option(
    "--assets",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Path to project.assets.json (default: obj/project.assets.json).",
)
@click.option(
    "--strict-version-matching",
    is_flag=True,
    help="Compare versions exactly, only ignoring a leading 'v'.",
)
@click.option(
    "--no-registry",
    is_flag=True,
    help="Skip NuGet lookups for dependencies not listed in the config.",
)
@click.option(
    "--format",
    "-f",
    type=click.Choice(["table", "simple", "json"], case_sensitive=False),
    default="table",
    help="Output format.",
)
@pass_context
def check(
    ctx: DepValidatorContext,
    directory: Path,
    manifest: Optional[Path],
    sbom: Optional[Path],
    assets: Optional[Path],
    strict_version_matching: bool,
    no_registry: bool,
    format: str,
) -> None:
    """Check declared dependencies against their latest releases.

    Every repository listed in the configuration is looked up by its git
    tags; remaining NuGet dependencies are looked up on the NuGet registry.
    Outdated dependencies are listed as
    ``name (current: X → latest: Y)``.

    \b
    Exits:
      0  All checked dependencies are up to date
      1  At least one dependency is outdated, or an error occurred
    """
    if manifest is not None and sbom is not None:
        raise click.UsageError("--manifest and --sbom are mutually exclusive")

    config = ctx.config
    matching = (
        VersionMatching.STRICT if strict_version_matching else config.version_matching
    )
    registry_check = config.registry_check and not no_registry

    try:
        report = asyncio.run(
            _check_async(
                ctx,
                directory,
                manifest=manifest,
                sbom=sbom,
                assets=assets,
                matching=matching,
                registry_check=registry_check,
            )
        )
    except DepValidatorError as e:
        print_error(f"{e}")
        sys.exit(1)
    except Exception as e:
        print_error(f"Unexpected error: {e}")
        logger.exception("Error in check command")
        sys.exit(1)

    _render(report, format)
    sys.exit(1 if report.has_outdated else 0)


# ---------------------------------------------------------------------------
# Async orchestration
# ---------------------------------------------------------------------------


def _select_input(
    directory: Path,
    manifest: Optional[Path],
    sbom: Optional[Path],
) -> Path:
    """Return the dependency file to check.

    Raises:
        ManifestNotFoundError: Nothing to check was found in ``directory``.
    """
    if sbom is not None:
        return sbom
    if manifest is not None:
        return manifest

    discovered = find_sbom_file(directory)
    if discovered is not None:
        logger.info("Using SBOM %s", discovered)
        return discovered

    found = find_manifest_file(directory)
    logger.info("Using manifest %s", found)
    return found


async def _check_async(
    ctx: DepValidatorContext,
    directory: Path,
    *,
    manifest: Optional[Path],
    sbom: Optional[Path],
    assets: Optional[Path],
    matching: VersionMatching,
    registry_check: bool,
) -> ReconciliationReport:
    """Async implementation of the check command.

    Raises:
        DepValidatorError: The input cannot be found, read, or parsed.
    """
    config = ctx.config
    path = _select_input(directory, manifest, sbom)

    parser = ManifestParser()
    parsed: ParsedManifest = parser.parse_file(
        path, ManifestFormat.SBOM if sbom is not None else None
    )

    if parsed.format is ManifestFormat.SBOM:
        records = parsed.to_records()
    else:
        project_dir = manifest.parent if manifest is not None else directory
        versions = await collect_installed_versions(
            project_dir,
            assets_path=assets,
            timeout=config.timeout,
        )
        records = parsed.to_records(versions)

    logger.info("Found %d dependency record(s) in %s", len(records), path)

    if not config.repos:
        logger.info("No tracked repositories configured")

    async with HTTPClient(timeout=config.timeout) as http:
        reconciler = Reconciler(
            GitTagResolver(timeout=config.timeout),
            NuGetRegistryResolver(http) if registry_check else None,
            matching=matching,
        )
        return await reconciler.reconcile(records, config.repos)


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


def _render(report: ReconciliationReport, format: str) -> None:
    """Display ``report`` in the requested format."""
    if format == "json":
        _display_json(report)
        return

    if report.results:
        if format == "table":
            _display_table(report)
        else:
            _display_simple(report)

    unresolved = len(report.by_status(ReconciliationStatus.UNRESOLVED))
    if unresolved:
        print_warning(f"{unresolved} dependency(ies) could not be checked")

    if report.has_outdated:
        console = get_raw_console()
        console.print("\nThe following dependencies are outdated:", style="error")
        for line in report.outdated:
            console.print(f"  {line}", style="error", highlight=False)
    else:
        print_success("All dependencies are up-to-date")


def _table_row(result: ReconciliationResult) -> Dict[str, str]:
    return {
        "Status": colorize_status(result.status.value),
        "Dependency": result.name,
        "Current": result.current or "-",
        "Latest": result.latest or "-",
        "Source": result.source or "-",
        "Note": result.reason or "",
    }


def _display_table(report: ReconciliationReport) -> None:
    """Render results as a Rich table.

    Example::

        ┏━━━━━━━━━━━━┳━━━━━━━━━━━━━━━━━━━━━━━━━━━━┳━━━━━━━━━┳━━━━━━━━━┓
        ┃ Status     ┃ Dependency                 ┃ Current ┃ Latest  ┃
        ┡━━━━━━━━━━━━╇━━━━━━━━━━━━━━━━━━━━━━━━━━━━╇━━━━━━━━━╇━━━━━━━━━┩
        │ outdated   │ github.com/stretchr/testify│ v1.8.0  │ v1.9.0  │
        └────────────┴────────────────────────────┴─────────┴─────────┘
    """
    column_styles: Dict[str, Dict[str, Any]] = {
        "Status": {"justify": "center", "no_wrap": True},
        "Dependency": {"style": "bold cyan", "no_wrap": True},
        "Current": {"justify": "center", "style": "dim"},
        "Latest": {"justify": "center", "style": "bold green"},
        "Source": {"justify": "center"},
        "Note": {"justify": "left", "no_wrap": False},
    }

    print_table(
        [_table_row(result) for result in report.results],
        title="Dependency Status",
        column_styles=column_styles,
    )


def _display_simple(report: ReconciliationReport) -> None:
    """Render one line per result.

    Example::

        [OUTDATED] github.com/stretchr/testify v1.8.0     → v1.9.0
        [UNRESOLVED] Serilog                   (no versions found for Serilog)
    """
    console = get_raw_console()

    for result in report.results:
        label = result.status.value.upper()
        if result.status is ReconciliationStatus.UNRESOLVED:
            console.print(
                f"[{label}] {result.name:30} ({result.reason})",
                markup=False,
                highlight=False,
            )
        else:
            console.print(
                f"[{label}] {result.name:30} {result.current or '-':10} → "
                f"{result.latest or '-'}",
                markup=False,
                highlight=False,
            )


def _display_json(report: ReconciliationReport) -> None:
    """Render the report as JSON for machine consumption.

    Example::

        {
          "results": [{"name": "...", "status": "outdated", ...}],
          "outdated": ["name (current: 1.0.0 → latest: 1.1.0)"],
          "summary": {"up-to-date": 3, "outdated": 1, "unresolved": 0}
        }
    """
    data = {
        "results": [result.to_json() for result in report.results],
        "outdated": report.outdated,
        "summary": report.summary(),
    }
    print(json.dumps(data, indent=2, ensure_ascii=False))
