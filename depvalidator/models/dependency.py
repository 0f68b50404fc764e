"""
Dependency data model for depvalidator.

This module defines the normalized representation of one declared
dependency and the closed set of manifest formats it can come from.
"""

from __future__ import annotations

from enum import Enum
from dataclasses import dataclass
from typing import Any, Dict, Optional


class ManifestFormat(Enum):
    """Closed set of manifest formats understood by the parser."""

    LINES = "lines"
    JSON = "json"
    XML_PACKAGES = "xml-packages"
    XML_CSPROJ = "xml-csproj"
    SBOM = "sbom"


@dataclass(frozen=True)
class DependencyRecord:
    """
    A single dependency as declared by a manifest or SBOM.

    Attributes:
        name: Ecosystem coordinate (module path, registry id, library
            name). Joined against ``TrackedRepository.name`` by exact
            string equality.
        declared_version: Version as found; ``None`` when a manifest only
            names the dependency and no installed version is known.
        kind: Provenance tag (``"go-module"``, ``"npm"``, ``"nuget"``, ...).
        source_location: File the dependency was declared in, if known.
    """

    name: str
    declared_version: Optional[str] = None
    kind: str = "library"
    source_location: Optional[str] = None

    def to_json(self) -> Dict[str, Any]:
        """Return a JSON-safe dictionary representation."""
        return {
            "name": self.name,
            "declared_version": self.declared_version,
            "kind": self.kind,
            "source_location": self.source_location,
        }

    def __str__(self) -> str:
        if self.declared_version:
            return f"{self.name}@{self.declared_version}"
        return self.name
