"""
Reconciliation result models for depvalidator.

One :class:`ReconciliationResult` is produced per checked dependency; a
:class:`ReconciliationReport` collects them, in evaluation order, for a
single run. Nothing here is persisted.
"""

from __future__ import annotations

from enum import Enum
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


class ReconciliationStatus(Enum):
    """Terminal state of a dependency after reconciliation."""

    UP_TO_DATE = "up-to-date"
    OUTDATED = "outdated"
    UNRESOLVED = "unresolved"


@dataclass(frozen=True)
class ReconciliationResult:
    """
    Classification of one dependency.

    Attributes:
        name: Dependency name.
        status: Terminal classification.
        current: Declared version, when known.
        latest: Latest upstream version, when resolved.
        source: Version source consulted (``"git"`` or ``"registry"``).
        reason: Why the dependency is unresolved, if it is.
    """

    name: str
    status: ReconciliationStatus
    current: Optional[str] = None
    latest: Optional[str] = None
    source: Optional[str] = None
    reason: Optional[str] = None

    @property
    def is_outdated(self) -> bool:
        return self.status is ReconciliationStatus.OUTDATED

    def report_line(self) -> str:
        """Render the human-readable outdated entry."""
        return f"{self.name} (current: {self.current} → latest: {self.latest})"

    def to_json(self) -> Dict[str, Any]:
        """Return a JSON-safe dictionary representation."""
        return {
            "name": self.name,
            "status": self.status.value,
            "current": self.current,
            "latest": self.latest,
            "source": self.source,
            "reason": self.reason,
        }


@dataclass
class ReconciliationReport:
    """Ordered results of one reconciliation run.

    Attributes:
        results: Every classification, in evaluation order.
    """

    results: List[ReconciliationResult] = field(default_factory=list)

    def add(self, result: ReconciliationResult) -> ReconciliationResult:
        self.results.append(result)
        return result

    def by_status(self, status: ReconciliationStatus) -> List[ReconciliationResult]:
        """Return results with the given status, in evaluation order."""
        return [r for r in self.results if r.status is status]

    @property
    def outdated(self) -> List[str]:
        """Outdated report lines, in evaluation order."""
        return [
            r.report_line()
            for r in self.results
            if r.status is ReconciliationStatus.OUTDATED
        ]

    @property
    def has_outdated(self) -> bool:
        """True when at least one dependency is outdated."""
        return any(r.is_outdated for r in self.results)

    def summary(self) -> Dict[str, int]:
        """Count results per status."""
        return {
            status.value: len(self.by_status(status))
            for status in ReconciliationStatus
        }
