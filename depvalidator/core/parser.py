"""Manifest and SBOM parser for depvalidator.

Turns the raw bytes of a dependency manifest into a flat, ordered list of
dependency names, or, for CycloneDX SBOMs, into a mapping of name to
:class:`DependencyRecord`.

Supported inputs (selected by file name only, never by content):

==========================  ============================
File                        Format
==========================  ============================
``go.mod``                  :attr:`ManifestFormat.LINES`
``requirements.txt``        :attr:`ManifestFormat.LINES`
``pyproject.toml``          :attr:`ManifestFormat.LINES`
``Cargo.toml``              :attr:`ManifestFormat.LINES`
``Gemfile``                 :attr:`ManifestFormat.LINES`
``package.json``            :attr:`ManifestFormat.JSON`
``packages.config``         :attr:`ManifestFormat.XML_PACKAGES`
``*.csproj``                :attr:`ManifestFormat.XML_CSPROJ`
``sbom.json``, ``bom.json``,
``*.cdx.json``,
``*.sbom.json``             :attr:`ManifestFormat.SBOM`
==========================  ============================

Typical usage::

    from depvalidator.core.parser import ManifestParser

    parser = ManifestParser()
    manifest = parser.parse_file("packages.config")
    records = manifest.to_records(installed_versions)
"""

from __future__ import annotations

import json
import xml.etree.ElementTree as ET
from pathlib import Path
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Union

from depvalidator.constants import (
    CYCLONEDX_BOM_FORMAT,
    MANIFEST_KINDS,
    SYFT_LOCATION_PROPERTY,
    SYFT_PACKAGE_TYPE_PROPERTY,
)
from depvalidator.exceptions import ParseError, UnsupportedFormatError
from depvalidator.models.dependency import DependencyRecord, ManifestFormat
from depvalidator.models.sbom import Sbom
from depvalidator.utils.filesystem import is_sbom_filename, safe_read_bytes
from depvalidator.utils.logger import get_logger

logger = get_logger("parser")

# Public API
__all__ = [
    "ManifestParser",
    "ParsedManifest",
    "build_records",
    "detect_format",
    "manifest_kind",
    "parse_csproj",
    "parse_json_dependencies",
    "parse_lines",
    "parse_packages_config",
    "parse_sbom",
]

_LINE_MANIFESTS = frozenset(
    {"go.mod", "requirements.txt", "pyproject.toml", "Cargo.toml", "Gemfile"}
)


# ---------------------------------------------------------------------------
# Parse result
# ---------------------------------------------------------------------------


@dataclass
class ParsedManifest:
    """Outcome of parsing one manifest.

    Attributes:
        format: Format the file was parsed as.
        kind: Ecosystem tag for records built from ``names``.
        names: Dependency names in declaration order.
        records: Fully populated records (SBOM only; empty otherwise).
        path: File the manifest was read from, if any.
    """

    format: ManifestFormat
    kind: str
    names: List[str] = field(default_factory=list)
    records: Dict[str, DependencyRecord] = field(default_factory=dict)
    path: Optional[Path] = None

    def to_records(
        self,
        versions: Optional[Mapping[str, str]] = None,
    ) -> Dict[str, DependencyRecord]:
        """Return records keyed by name.

        SBOM records already carry their versions. For every other format
        the names are joined with ``versions`` (installed versions).
        """
        if self.format is ManifestFormat.SBOM:
            return dict(self.records)
        return build_records(
            self.names,
            versions or {},
            kind=self.kind,
            source=str(self.path) if self.path else None,
        )


# ---------------------------------------------------------------------------
# Format dispatch
# ---------------------------------------------------------------------------


def detect_format(file_path: Union[str, Path]) -> ManifestFormat:
    """Select the manifest format from a file name.

    Exact basenames are matched first, then suffixes.

    Raises:
        UnsupportedFormatError: The name matches no known manifest.
    """
    name = Path(file_path).name

    if name in _LINE_MANIFESTS:
        return ManifestFormat.LINES
    if name == "package.json":
        return ManifestFormat.JSON
    if name == "packages.config":
        return ManifestFormat.XML_PACKAGES
    if name.endswith(".csproj"):
        return ManifestFormat.XML_CSPROJ
    if is_sbom_filename(name):
        return ManifestFormat.SBOM

    raise UnsupportedFormatError(
        "Unsupported dependency file",
        file_path=str(file_path),
    )


def manifest_kind(file_path: Union[str, Path]) -> str:
    """Return the ecosystem tag for records declared in ``file_path``."""
    name = Path(file_path).name
    if name.endswith(".csproj"):
        return "nuget"
    return MANIFEST_KINDS.get(name, "library")


# ---------------------------------------------------------------------------
# Format-specific parsers
# ---------------------------------------------------------------------------


def _decode(data: bytes, file_path: Optional[str], fmt: ManifestFormat) -> str:
    try:
        return data.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise ParseError(
            f"Manifest is not valid UTF-8: {exc}",
            file_path=file_path,
            format=fmt.value,
        ) from exc


def parse_lines(data: bytes, file_path: Optional[str] = None) -> List[str]:
    """Extract the first token of every significant line.

    Blank lines and lines starting with ``#`` (after trimming) are skipped.

    Example::

        >>> parse_lines(b"# deps\\n  github.com/a/b   v1.0.0\\n\\nfoo\\n")
        ['github.com/a/b', 'foo']
    """
    text = _decode(data, file_path, ManifestFormat.LINES)
    names: List[str] = []

    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        names.append(line.split()[0])

    return names


def parse_json_dependencies(
    data: bytes,
    file_path: Optional[str] = None,
) -> List[str]:
    """Extract the keys of the top-level ``dependencies`` object.

    Values are version ranges, not installed versions, and are ignored.
    A missing or non-object ``dependencies`` entry yields an empty list.

    Raises:
        ParseError: The document is not valid JSON.
    """
    fmt = ManifestFormat.JSON
    try:
        parsed = json.loads(_decode(data, file_path, fmt))
    except json.JSONDecodeError as exc:
        raise ParseError(
            f"Invalid JSON: {exc.msg}",
            file_path=file_path,
            format=fmt.value,
            line_number=exc.lineno,
        ) from exc

    if not isinstance(parsed, dict):
        return []

    dependencies = parsed.get("dependencies")
    if not isinstance(dependencies, dict):
        return []

    return list(dependencies.keys())


def _parse_xml(
    data: bytes,
    file_path: Optional[str],
    fmt: ManifestFormat,
) -> ET.Element:
    try:
        return ET.fromstring(data)
    except ET.ParseError as exc:
        line_number = exc.position[0] if getattr(exc, "position", None) else None
        raise ParseError(
            f"Malformed XML: {exc}",
            file_path=file_path,
            format=fmt.value,
            line_number=line_number,
        ) from exc


def _local_name(tag: Any) -> str:
    """Strip an ``{namespace}`` prefix from an element tag."""
    if not isinstance(tag, str):
        return ""
    return tag.rsplit("}", 1)[-1]


def _children(element: ET.Element, name: str) -> Iterable[ET.Element]:
    return (child for child in element if _local_name(child.tag) == name)


def parse_packages_config(
    data: bytes,
    file_path: Optional[str] = None,
) -> List[str]:
    """Extract the ``id`` of each ``<package>`` element of ``packages.config``.

    Raises:
        ParseError: The document is not well-formed XML.
    """
    root = _parse_xml(data, file_path, ManifestFormat.XML_PACKAGES)
    return [pkg.get("id", "") for pkg in _children(root, "package")]


def parse_csproj(data: bytes, file_path: Optional[str] = None) -> List[str]:
    """Extract ``Include`` of every ``<PackageReference>`` in every ``<ItemGroup>``.

    MSBuild namespaces (legacy project files) are ignored.

    Raises:
        ParseError: The document is not well-formed XML.
    """
    root = _parse_xml(data, file_path, ManifestFormat.XML_CSPROJ)
    names: List[str] = []

    for group in _children(root, "ItemGroup"):
        for reference in _children(group, "PackageReference"):
            names.append(reference.get("Include", ""))

    return names


def parse_sbom(
    data: bytes,
    file_path: Optional[str] = None,
) -> Dict[str, DependencyRecord]:
    """Extract library components from a CycloneDX JSON SBOM.

    Only components with ``type == "library"`` are kept. The record kind
    comes from the ``syft:package:type`` property (``"library"`` when
    absent) and the source location from ``syft:location:0:path``.
    When two components share a name the later one wins and a warning is
    logged.

    Raises:
        ParseError: The document is not valid JSON or is structurally
            malformed.
        UnsupportedFormatError: ``bomFormat`` is not ``"CycloneDX"``.
    """
    fmt = ManifestFormat.SBOM
    try:
        document = json.loads(_decode(data, file_path, fmt))
    except json.JSONDecodeError as exc:
        raise ParseError(
            f"Invalid JSON: {exc.msg}",
            file_path=file_path,
            format=fmt.value,
            line_number=exc.lineno,
        ) from exc

    if not isinstance(document, dict):
        raise ParseError(
            "SBOM document must be a JSON object",
            file_path=file_path,
            format=fmt.value,
        )

    try:
        sbom = Sbom.from_dict(document)
    except ValueError as exc:
        raise ParseError(
            f"Malformed SBOM: {exc}",
            file_path=file_path,
            format=fmt.value,
        ) from exc

    if sbom.bom_format != CYCLONEDX_BOM_FORMAT:
        raise UnsupportedFormatError(
            f"Unsupported SBOM format: {sbom.bom_format!r}",
            file_path=file_path,
            format=str(sbom.bom_format),
        )

    logger.debug("Parsed SBOM: %s", sbom.to_log_dict())

    records: Dict[str, DependencyRecord] = {}
    for component in sbom.libraries():
        if component.name in records:
            logger.warning(
                "Duplicate SBOM component '%s'; keeping the later entry (%s)",
                component.name,
                component.version,
            )
        records[component.name] = DependencyRecord(
            name=component.name,
            declared_version=component.version,
            kind=component.get_property(SYFT_PACKAGE_TYPE_PROPERTY) or "library",
            source_location=component.get_property(SYFT_LOCATION_PROPERTY),
        )

    return records


def build_records(
    names: Iterable[str],
    versions: Mapping[str, str],
    *,
    kind: str = "library",
    source: Optional[str] = None,
) -> Dict[str, DependencyRecord]:
    """Join parsed dependency names with known installed versions.

    Names without a known version still produce a record (with
    ``declared_version=None``) so that the reconciler can report them as
    unresolved.
    """
    return {
        name: DependencyRecord(
            name=name,
            declared_version=versions.get(name),
            kind=kind,
            source_location=source,
        )
        for name in names
    }


# ---------------------------------------------------------------------------
# Parser facade
# ---------------------------------------------------------------------------

_NameParser = Callable[[bytes, Optional[str]], List[str]]

_NAME_PARSERS: Dict[ManifestFormat, _NameParser] = {
    ManifestFormat.LINES: parse_lines,
    ManifestFormat.JSON: parse_json_dependencies,
    ManifestFormat.XML_PACKAGES: parse_packages_config,
    ManifestFormat.XML_CSPROJ: parse_csproj,
}


class ManifestParser:
    """Stateless entry point dispatching each format to its parser.

    Example::

        >>> parser = ManifestParser()
        >>> manifest = parser.parse_file("project.csproj")
        >>> manifest.names
        ['Serilog', 'AutoMapper']
    """

    def __init__(self) -> None:
        self.logger = logger

    def parse_file(
        self,
        file_path: Union[str, Path],
        format: Optional[ManifestFormat] = None,
    ) -> ParsedManifest:
        """Read and parse a manifest from disk.

        Args:
            file_path: Manifest location.
            format: Explicit format; detected from the file name when
                omitted.

        Raises:
            UnsupportedFormatError: The file name is not recognized.
            ManifestNotFoundError: The file does not exist.
            ParseError: The content is malformed.
        """
        path = Path(file_path)
        fmt = format or detect_format(path)
        data = safe_read_bytes(path)
        return self.parse_bytes(data, fmt, file_path=path)

    def parse_bytes(
        self,
        data: bytes,
        format: ManifestFormat,
        *,
        file_path: Optional[Union[str, Path]] = None,
        kind: Optional[str] = None,
    ) -> ParsedManifest:
        """Parse manifest bytes already read by the caller."""
        path = Path(file_path) if file_path is not None else None
        path_str = str(path) if path else None

        if format is ManifestFormat.SBOM:
            records = parse_sbom(data, path_str)
            self.logger.info(
                "Parsed %d library component(s) from %s", len(records), path_str
            )
            return ParsedManifest(
                format=format,
                kind=kind or "library",
                names=list(records),
                records=records,
                path=path,
            )

        names = _NAME_PARSERS[format](data, path_str)
        self.logger.info(
            "Parsed %d dependency name(s) from %s (%s)",
            len(names),
            path_str or "<bytes>",
            format.value,
        )
        return ParsedManifest(
            format=format,
            kind=kind or (manifest_kind(path) if path else "library"),
            names=names,
            path=path,
        )
