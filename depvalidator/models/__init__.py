"""
Unified data model exports for depvalidator.

This module re-exports all core data models to provide a stable and
convenient public API. Users can import models directly from
``depvalidator.models`` instead of individual submodules.

Example:
    >>> from depvalidator.models import DependencyRecord, TrackedRepository
"""

from __future__ import annotations

from depvalidator.models.dependency import DependencyRecord, ManifestFormat
from depvalidator.models.repository import TrackedRepository
from depvalidator.models.result import (
    ReconciliationReport,
    ReconciliationResult,
    ReconciliationStatus,
)
from depvalidator.models.sbom import ComponentProperty, Sbom, SbomComponent

__all__ = [
    "DependencyRecord",
    "ManifestFormat",
    "TrackedRepository",
    "ReconciliationReport",
    "ReconciliationResult",
    "ReconciliationStatus",
    "Sbom",
    "SbomComponent",
    "ComponentProperty",
]
