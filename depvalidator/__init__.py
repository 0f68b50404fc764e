"""
depvalidator — Dependency freshness validator

depvalidator reads a project's declared dependencies (from a CycloneDX SBOM
or a manifest such as ``go.mod``, ``package.json`` or ``*.csproj``) and
reports which of them lag behind their latest upstream release.

Features include:
    • Latest releases from git tags of configured repositories
    • Latest releases from the NuGet registry for remaining .NET packages
    • Installed versions from ``project.assets.json`` and ``go list -m all``
    • Strict or canonical (pre-release/build suffix agnostic) comparison
    • CI-friendly exit status (1 when anything is outdated)
"""

from __future__ import annotations

from depvalidator.__version__ import __version__

# ---------------------------------------------------------------------------
# Package Metadata
# ---------------------------------------------------------------------------

__author__ = "depvalidator Contributors"
__license__ = "Apache-2.0"
__description__ = "Check declared dependencies against their latest upstream releases."

# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

__all__ = [
    "__version__",
]
