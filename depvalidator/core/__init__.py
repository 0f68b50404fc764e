"""
Core functionality exports for depvalidator.

This module provides convenient access to the core subsystems of
depvalidator. Importing from here keeps user-facing imports clean and
stable:

    from depvalidator.core import ManifestParser, Reconciler
"""

from __future__ import annotations

from depvalidator.core.parser import ManifestParser, ParsedManifest, detect_format
from depvalidator.core.git_resolver import GitTagResolver, TagResolver
from depvalidator.core.registry import NuGetRegistryResolver, RegistryResolver
from depvalidator.core.installed import collect_installed_versions
from depvalidator.core.reconciler import Reconciler

__all__ = [
    "ManifestParser",
    "ParsedManifest",
    "detect_format",
    "TagResolver",
    "GitTagResolver",
    "RegistryResolver",
    "NuGetRegistryResolver",
    "collect_installed_versions",
    "Reconciler",
]
