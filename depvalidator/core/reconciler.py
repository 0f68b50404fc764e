"""Reconciliation engine for depvalidator.

Compares declared dependency versions with the latest upstream releases
and classifies each dependency as up to date, outdated, or unresolved.

Two passes run, strictly one dependency at a time:

1. **Tracked repositories**, in configuration order. Each repository is
   matched to a declared record by name, falling back to its package id,
   and its latest release is read from git tags. Repositories the project
   does not use are skipped without a result.
2. **Registry dependencies**, in declaration order. Records not covered by
   any tracked repository whose kind is registry-backed (NuGet) are looked
   up on the registry.

Resolver failures never abort the run; they downgrade a single dependency
to :attr:`ReconciliationStatus.UNRESOLVED`. The report is returned by
value, so a :class:`Reconciler` can be reused across runs.

Typical usage::

    reconciler = Reconciler(GitTagResolver(), NuGetRegistryResolver(http))
    report = await reconciler.reconcile(records, config.repos)
    for line in report.outdated:
        print(line)
"""

from __future__ import annotations

from typing import AbstractSet, Mapping, Optional, Sequence

from depvalidator.constants import REGISTRY_KINDS
from depvalidator.core.git_resolver import TagResolver
from depvalidator.core.registry import RegistryResolver
from depvalidator.exceptions import DepValidatorError
from depvalidator.models.dependency import DependencyRecord
from depvalidator.models.repository import TrackedRepository
from depvalidator.models.result import (
    ReconciliationReport,
    ReconciliationResult,
    ReconciliationStatus,
)
from depvalidator.utils.logger import get_logger
from depvalidator.utils.version_utils import VersionMatching, versions_match

logger = get_logger("reconciler")

__all__ = ["Reconciler", "classify"]

SOURCE_GIT = "git"
SOURCE_REGISTRY = "registry"


def classify(
    name: str,
    current: str,
    latest: str,
    *,
    matching: VersionMatching = VersionMatching.CANONICAL,
    source: Optional[str] = None,
) -> ReconciliationResult:
    """Classify one dependency whose versions are both known."""
    status = (
        ReconciliationStatus.UP_TO_DATE
        if versions_match(current, latest, matching)
        else ReconciliationStatus.OUTDATED
    )
    return ReconciliationResult(
        name=name,
        status=status,
        current=current,
        latest=latest,
        source=source,
    )


class Reconciler:
    """Classify declared dependencies against their upstream releases.

    Args:
        tag_resolver: Resolves latest tags of tracked repositories.
        registry_resolver: Resolves latest registry versions; the registry
            pass is skipped when ``None``.
        matching: Version comparison strategy.
        registry_kinds: Record kinds eligible for the registry pass.
    """

    def __init__(
        self,
        tag_resolver: TagResolver,
        registry_resolver: Optional[RegistryResolver] = None,
        *,
        matching: VersionMatching = VersionMatching.CANONICAL,
        registry_kinds: AbstractSet[str] = REGISTRY_KINDS,
    ) -> None:
        self.tag_resolver = tag_resolver
        self.registry_resolver = registry_resolver
        self.matching = matching
        self.registry_kinds = registry_kinds

    async def reconcile(
        self,
        records: Mapping[str, DependencyRecord],
        repositories: Sequence[TrackedRepository],
    ) -> ReconciliationReport:
        """Run both passes and return the resulting report.

        Tracked repositories the project does not use produce no result.

        Args:
            records: Declared dependencies keyed by name.
            repositories: Tracked repositories, in configuration order.
        """
        report = ReconciliationReport()

        for repo in repositories:
            record = self._find_record(repo, records)
            if record is None:
                logger.info("%s is not used in this project; skipping", repo.name)
                continue
            report.add(await self._check_repository(repo, record))

        registry = self.registry_resolver
        if registry is not None:
            for record in records.values():
                if any(repo.covers(record.name) for repo in repositories):
                    continue
                if record.kind not in self.registry_kinds:
                    continue
                if not record.declared_version:
                    logger.debug("No installed version for %s; skipping registry", record.name)
                    continue
                report.add(
                    await self._check_registry(registry, record.name, record.declared_version)
                )

        logger.info("Reconciliation finished: %s", report.summary())
        return report

    # ------------------------------------------------------------------
    # Passes (private)
    # ------------------------------------------------------------------

    @staticmethod
    def _find_record(
        repo: TrackedRepository,
        records: Mapping[str, DependencyRecord],
    ) -> Optional[DependencyRecord]:
        """Return the record declared under the repository name or its package id."""
        record = records.get(repo.name)
        if record is None and repo.package_id:
            record = records.get(repo.package_id)
        return record

    async def _check_repository(
        self,
        repo: TrackedRepository,
        record: DependencyRecord,
    ) -> ReconciliationResult:
        name = record.name
        logger.info("Checking %s...", name)

        try:
            latest = await self.tag_resolver.resolve_latest_tag(repo.repo_url, repo.token)
        except DepValidatorError as exc:
            logger.warning("Failed to get latest version of %s: %s", name, exc)
            return self._unresolved(
                name, str(exc), current=record.declared_version, source=SOURCE_GIT
            )

        if not record.declared_version:
            logger.warning("Could not determine current version of %s", name)
            return self._unresolved(
                name,
                "could not determine current version",
                latest=latest,
                source=SOURCE_GIT,
            )

        return self._log(
            classify(
                name,
                record.declared_version,
                latest,
                matching=self.matching,
                source=SOURCE_GIT,
            )
        )

    async def _check_registry(
        self,
        registry: RegistryResolver,
        name: str,
        current: str,
    ) -> ReconciliationResult:
        try:
            latest = await registry.resolve_latest_version(name)
        except DepValidatorError as exc:
            logger.warning("Registry lookup failed for %s: %s", name, exc)
            return self._unresolved(
                name,
                str(exc),
                current=current,
                source=SOURCE_REGISTRY,
            )

        return self._log(
            classify(
                name,
                current,
                latest,
                matching=self.matching,
                source=SOURCE_REGISTRY,
            )
        )

    # ------------------------------------------------------------------
    # Helpers (private)
    # ------------------------------------------------------------------

    @staticmethod
    def _unresolved(
        name: str,
        reason: str,
        *,
        current: Optional[str] = None,
        latest: Optional[str] = None,
        source: Optional[str] = None,
    ) -> ReconciliationResult:
        return ReconciliationResult(
            name=name,
            status=ReconciliationStatus.UNRESOLVED,
            current=current,
            latest=latest,
            source=source,
            reason=reason,
        )

    @staticmethod
    def _log(result: ReconciliationResult) -> ReconciliationResult:
        if result.is_outdated:
            logger.info("Outdated: %s", result.report_line())
        else:
            logger.info("Up-to-date: %s %s", result.name, result.current)
        return result
