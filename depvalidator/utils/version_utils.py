"""
Version normalization and comparison utilities for depvalidator.

Declared versions (from manifests, SBOMs, lock files) and upstream versions
(git tags, registry listings) come from independent vocabularies: one side
may carry a ``v`` prefix, the other a pre-release suffix. This module
reduces both sides to a comparable form.

Two strategies are supported:

- :attr:`VersionMatching.STRICT` strips a leading ``v`` and nothing else,
  so ``1.2.3-beta`` and ``1.2.3`` differ.
- :attr:`VersionMatching.CANONICAL` additionally drops everything after the
  first ``-`` when the part before it contains a digit.

All functions here are pure.
"""

from __future__ import annotations

from enum import Enum
from typing import Iterable, Optional

import semver


class VersionMatching(Enum):
    """Strategy used to decide whether two version strings are equal."""

    STRICT = "strict"
    CANONICAL = "canonical"


def strip_v_prefix(version: str) -> str:
    """Remove a single leading ``v`` from ``version``.

    Examples:
        >>> strip_v_prefix("v1.2.3")
        '1.2.3'
        >>> strip_v_prefix("1.2.3")
        '1.2.3'
    """
    return version[1:] if version.startswith("v") else version


def canonicalize_version(version: str) -> str:
    """Reduce ``version`` to its release component.

    The leading ``v`` is removed, then the string is split on the first
    ``-``. When the part before the hyphen contains at least one digit it is
    returned; otherwise ``version`` is returned unmodified so that tag names
    such as ``release-4.5.6`` are not truncated.

    Examples:
        >>> canonicalize_version("v1.2.3-beta.1")
        '1.2.3'
        >>> canonicalize_version("2.0.0")
        '2.0.0'
        >>> canonicalize_version("release-4.5.6")
        'release-4.5.6'
    """
    stripped = strip_v_prefix(version)
    head, _, _ = stripped.partition("-")

    if any(ch.isdigit() for ch in head):
        return head
    return version


def normalize_version(
    version: str,
    matching: VersionMatching = VersionMatching.CANONICAL,
) -> str:
    """Normalize ``version`` according to ``matching``."""
    if matching is VersionMatching.STRICT:
        return strip_v_prefix(version)
    return canonicalize_version(version)


def versions_match(
    current: str,
    latest: str,
    matching: VersionMatching = VersionMatching.CANONICAL,
) -> bool:
    """Return ``True`` when both versions denote the same release.

    The same normalization is applied to both sides before an exact string
    comparison.

    Examples:
        >>> versions_match("v1.9.0", "1.9.0")
        True
        >>> versions_match("1.2.3-beta", "v1.2.3")
        True
        >>> versions_match("1.2.3-beta", "v1.2.3", VersionMatching.STRICT)
        False
    """
    return normalize_version(current, matching) == normalize_version(latest, matching)


# ---------------------------------------------------------------------------
# Semantic versioning helpers
# ---------------------------------------------------------------------------


def parse_semver(tag: str) -> Optional[semver.Version]:
    """Parse a tag as a semantic version, tolerating a leading ``v``.

    Returns:
        Parsed :class:`semver.Version`, or ``None`` when ``tag`` is not a
        syntactically valid semantic version.
    """
    candidate = strip_v_prefix(tag.strip())
    if not semver.Version.is_valid(candidate):
        return None
    return semver.Version.parse(candidate)


def is_valid_semver(tag: str) -> bool:
    """Return ``True`` if ``tag`` (optionally ``v``-prefixed) is valid semver."""
    return parse_semver(tag) is not None


def max_semver(tags: Iterable[str]) -> Optional[str]:
    """Return the tag with the highest semver precedence.

    Invalid tags are skipped. The original tag text is returned, so a
    ``v`` prefix is preserved.

    Examples:
        >>> max_semver(["v1.9.0", "v2.0.0", "v1.10.0", "nightly"])
        'v2.0.0'
        >>> max_semver(["latest"]) is None
        True
    """
    best_tag: Optional[str] = None
    best_version: Optional[semver.Version] = None

    for tag in tags:
        parsed = parse_semver(tag)
        if parsed is None:
            continue
        if best_version is None or parsed > best_version:
            best_tag, best_version = tag, parsed

    return best_tag
