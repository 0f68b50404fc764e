"""
Tracked repository model for depvalidator.

A tracked repository ties a dependency name to the git remote whose tags
define its latest release.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class TrackedRepository:
    """
    A repository listed in the configuration.

    Attributes:
        name: Dependency name; must equal a ``DependencyRecord.name``.
        repo_url: Git remote URL.
        token: Optional access token. Excluded from ``repr`` and logs.
        package_id: Optional registry identifier of the same dependency,
            used when the registry namespace differs from ``name``.
    """

    name: str
    repo_url: str
    token: Optional[str] = field(default=None, repr=False)
    package_id: Optional[str] = None

    def covers(self, dependency_name: str) -> bool:
        """Return True if ``dependency_name`` refers to this repository."""
        return dependency_name in (self.name, self.package_id)

    def to_log_dict(self) -> Dict[str, Any]:
        """Return a token-free dictionary for debug logging."""
        return {
            "name": self.name,
            "repo_url": self.repo_url,
            "authenticated": bool(self.token),
            "package_id": self.package_id,
        }
