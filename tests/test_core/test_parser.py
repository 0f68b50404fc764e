from __future__ import annotations

import json
from unittest.mock import patch
from pathlib import Path

import pytest

from depvalidator.core.parser import (
    ManifestParser,
    build_records,
    detect_format,
    manifest_kind,
    parse_csproj,
    parse_json_dependencies,
    parse_lines,
    parse_packages_config,
    parse_sbom,
)
from depvalidator.exceptions import (
    ManifestNotFoundError,
    ParseError,
    UnsupportedFormatError,
)
from depvalidator.models import DependencyRecord, ManifestFormat


CSPROJ = b"""<Project Sdk="Microsoft.NET.Sdk">
  <PropertyGroup><TargetFramework>net8.0</TargetFramework></PropertyGroup>
  <ItemGroup>
    <PackageReference Include="Serilog" Version="3.1.1" />
    <PackageReference Include="AutoMapper" Version="12.0.1" />
  </ItemGroup>
  <ItemGroup>
    <Compile Include="Program.cs" />
    <PackageReference Include="Polly" Version="8.2.0" />
  </ItemGroup>
</Project>
"""

LEGACY_CSPROJ = b"""<?xml version="1.0" encoding="utf-8"?>
<Project xmlns="http://schemas.microsoft.com/developer/msbuild/2003">
  <ItemGroup>
    <PackageReference Include="Newtonsoft.Json" />
  </ItemGroup>
</Project>
"""

PACKAGES_CONFIG = b"""<?xml version="1.0" encoding="utf-8"?>
<packages>
  <package id="Newtonsoft.Json" version="13.0.1" targetFramework="net48" />
  <package id="NUnit" version="3.13.3" targetFramework="net48" />
</packages>
"""


def _sbom(*components: dict, bom_format: str = "CycloneDX") -> bytes:
    return json.dumps(
        {"bomFormat": bom_format, "specVersion": "1.5", "components": list(components)}
    ).encode()


# ==============================================================================
# Format detection
# ==============================================================================


@pytest.mark.unit
class TestDetectFormat:
    """Tests for detect_format and manifest_kind."""

    @pytest.mark.parametrize(
        "name, expected",
        [
            ("go.mod", ManifestFormat.LINES),
            ("requirements.txt", ManifestFormat.LINES),
            ("pyproject.toml", ManifestFormat.LINES),
            ("Cargo.toml", ManifestFormat.LINES),
            ("Gemfile", ManifestFormat.LINES),
            ("package.json", ManifestFormat.JSON),
            ("packages.config", ManifestFormat.XML_PACKAGES),
            ("src/App.csproj", ManifestFormat.XML_CSPROJ),
            ("sbom.json", ManifestFormat.SBOM),
            ("bom.json", ManifestFormat.SBOM),
            ("service.cdx.json", ManifestFormat.SBOM),
        ],
    )
    def test_known_names(self, name: str, expected: ManifestFormat) -> None:
        """Test the format is chosen from the file name."""
        assert detect_format(name) is expected

    @pytest.mark.parametrize("name", ["setup.py", "yarn.lock", "pom.xml", "Makefile"])
    def test_unknown_names(self, name: str) -> None:
        """Test unknown file names raise UnsupportedFormatError."""
        with pytest.raises(UnsupportedFormatError, match="Unsupported dependency file"):
            detect_format(name)

    @pytest.mark.parametrize(
        "name, kind",
        [
            ("go.mod", "go-module"),
            ("package.json", "npm"),
            ("packages.config", "nuget"),
            ("App.csproj", "nuget"),
            ("requirements.txt", "python"),
        ],
    )
    def test_manifest_kind(self, name: str, kind: str) -> None:
        """Test records from each manifest get their ecosystem tag."""
        assert manifest_kind(name) == kind


# ==============================================================================
# Line manifests
# ==============================================================================


@pytest.mark.unit
class TestParseLines:
    """Tests for parse_lines."""

    def test_first_token_of_significant_lines(self) -> None:
        """Test comments and blanks never contribute names."""
        data = b"# header\n\nrequests==2.31.0\n   # indented comment\n  flask  >=2\n"

        assert parse_lines(data) == ["requests==2.31.0", "flask"]

    def test_crlf_and_bom(self) -> None:
        """Test Windows line endings and a UTF-8 BOM are handled."""
        data = b"\xef\xbb\xbfalpha\r\nbeta\r\n"

        assert parse_lines(data) == ["alpha", "beta"]

    def test_empty(self) -> None:
        """Test empty input yields no names."""
        assert parse_lines(b"") == []
        assert parse_lines(b"\n# only comments\n") == []

    def test_idempotent(self) -> None:
        """Test repeated parsing of the same bytes gives the same list."""
        data = b"a 1\nb 2\n"

        assert parse_lines(data) == parse_lines(data)

    def test_invalid_utf8(self) -> None:
        """Test undecodable bytes raise ParseError."""
        with pytest.raises(ParseError):
            parse_lines(b"\xff\xfe\xfa")


# ==============================================================================
# JSON manifests
# ==============================================================================


@pytest.mark.unit
class TestParseJsonDependencies:
    """Tests for parse_json_dependencies."""

    def test_dependency_keys_in_order(self) -> None:
        """Test keys of the dependencies object are returned in order."""
        data = json.dumps(
            {
                "name": "app",
                "dependencies": {"react": "^18.2.0", "lodash": "~4.17.21"},
                "devDependencies": {"jest": "^29.0.0"},
            }
        ).encode()

        assert parse_json_dependencies(data) == ["react", "lodash"]

    @pytest.mark.parametrize(
        "document",
        [{"name": "app"}, {"dependencies": ["react"]}, ["react"]],
    )
    def test_missing_or_wrong_shape(self, document) -> None:
        """Test absent or non-object dependencies yield an empty list."""
        assert parse_json_dependencies(json.dumps(document).encode()) == []

    def test_invalid_json(self) -> None:
        """Test malformed JSON raises ParseError with a line number."""
        with pytest.raises(ParseError) as exc_info:
            parse_json_dependencies(b'{\n  "dependencies": {,}\n}', "package.json")

        assert exc_info.value.line_number == 2
        assert exc_info.value.file_path == "package.json"


# ==============================================================================
# XML manifests
# ==============================================================================


@pytest.mark.unit
class TestParseXml:
    """Tests for parse_packages_config and parse_csproj."""

    def test_packages_config(self) -> None:
        """Test package ids are read from packages.config."""
        assert parse_packages_config(PACKAGES_CONFIG) == ["Newtonsoft.Json", "NUnit"]

    def test_csproj_all_item_groups(self) -> None:
        """Test PackageReference items from every ItemGroup are collected."""
        assert parse_csproj(CSPROJ) == ["Serilog", "AutoMapper", "Polly"]

    def test_csproj_with_msbuild_namespace(self) -> None:
        """Test legacy namespaced project files are supported."""
        assert parse_csproj(LEGACY_CSPROJ) == ["Newtonsoft.Json"]

    def test_csproj_without_packages(self) -> None:
        """Test a project without references yields no names."""
        assert parse_csproj(b"<Project><ItemGroup/></Project>") == []

    def test_malformed_xml(self) -> None:
        """Test malformed XML raises ParseError."""
        with pytest.raises(ParseError) as exc_info:
            parse_packages_config(b"<packages><package id='x'></packages>")

        assert exc_info.value.format == "xml-packages"


# ==============================================================================
# SBOM
# ==============================================================================


@pytest.mark.unit
class TestParseSbom:
    """Tests for parse_sbom."""

    def test_libraries_only(self) -> None:
        """Test file components are ignored."""
        data = _sbom(
            {"type": "library", "name": "Serilog", "version": "2.10.0"},
            {"type": "file", "name": "/app/Serilog.dll", "version": "1"},
        )

        records = parse_sbom(data)

        assert list(records) == ["Serilog"]
        assert records["Serilog"].declared_version == "2.10.0"

    def test_syft_properties(self) -> None:
        """Test syft properties populate kind and source location."""
        data = _sbom(
            {
                "type": "library",
                "name": "Newtonsoft.Json",
                "version": "13.0.1",
                "properties": [
                    {"name": "syft:package:type", "value": "dotnet"},
                    {"name": "syft:location:0:path", "value": "/app/app.deps.json"},
                ],
            }
        )

        record = parse_sbom(data)["Newtonsoft.Json"]

        assert record == DependencyRecord(
            name="Newtonsoft.Json",
            declared_version="13.0.1",
            kind="dotnet",
            source_location="/app/app.deps.json",
        )

    def test_default_kind(self) -> None:
        """Test components without syft metadata are tagged library."""
        record = parse_sbom(_sbom({"type": "library", "name": "x", "version": "1"}))["x"]

        assert record.kind == "library"
        assert record.source_location is None

    def test_duplicate_last_wins(self) -> None:
        """Test the later duplicate wins and a warning is logged."""
        data = _sbom(
            {"type": "library", "name": "dup", "version": "1.0.0"},
            {"type": "library", "name": "dup", "version": "2.0.0"},
        )

        with patch("depvalidator.core.parser.logger") as mock_logger:
            records = parse_sbom(data)

        assert records["dup"].declared_version == "2.0.0"
        mock_logger.warning.assert_called_once()
        assert "Duplicate SBOM component" in mock_logger.warning.call_args[0][0]

    def test_not_cyclonedx(self) -> None:
        """Test non-CycloneDX documents are rejected."""
        with pytest.raises(UnsupportedFormatError, match="Unsupported SBOM format"):
            parse_sbom(_sbom(bom_format="SPDX"))

    def test_no_components(self) -> None:
        """Test an SBOM without components yields no records."""
        assert parse_sbom(b'{"bomFormat": "CycloneDX"}') == {}

    @pytest.mark.parametrize(
        "data",
        [b"not json", b"[]", b'{"bomFormat": "CycloneDX", "components": "x"}'],
    )
    def test_malformed(self, data: bytes) -> None:
        """Test malformed SBOM documents raise ParseError."""
        with pytest.raises(ParseError):
            parse_sbom(data)


# ==============================================================================
# Records and facade
# ==============================================================================


@pytest.mark.unit
class TestBuildRecords:
    """Tests for build_records."""

    def test_versions_joined_by_name(self) -> None:
        """Test installed versions are attached, missing ones stay None."""
        records = build_records(
            ["Serilog", "Polly"], {"Serilog": "2.10.0"}, kind="nuget", source="a.csproj"
        )

        assert records["Serilog"].declared_version == "2.10.0"
        assert records["Polly"].declared_version is None
        assert records["Polly"].kind == "nuget"
        assert list(records) == ["Serilog", "Polly"]


@pytest.mark.unit
class TestManifestParser:
    """Tests for ManifestParser."""

    def test_parse_csproj_file(self, tmp_path: Path) -> None:
        """Test a csproj on disk is parsed and tagged nuget."""
        path = tmp_path / "App.csproj"
        path.write_bytes(CSPROJ)

        manifest = ManifestParser().parse_file(path)

        assert manifest.format is ManifestFormat.XML_CSPROJ
        assert manifest.kind == "nuget"
        assert manifest.names == ["Serilog", "AutoMapper", "Polly"]
        records = manifest.to_records({"Serilog": "3.1.1"})
        assert records["Serilog"].source_location == str(path)

    def test_parse_sbom_file_keeps_versions(self, tmp_path: Path) -> None:
        """Test SBOM records keep their own versions."""
        path = tmp_path / "sbom.json"
        path.write_bytes(_sbom({"type": "library", "name": "lib", "version": "1.0"}))

        manifest = ManifestParser().parse_file(path)

        assert manifest.format is ManifestFormat.SBOM
        assert manifest.to_records({"lib": "9.9"})["lib"].declared_version == "1.0"

    def test_explicit_format_overrides_name(self, tmp_path: Path) -> None:
        """Test an explicit format bypasses name detection."""
        path = tmp_path / "inventory.json"
        path.write_bytes(_sbom({"type": "library", "name": "lib", "version": "1.0"}))

        manifest = ManifestParser().parse_file(path, ManifestFormat.SBOM)

        assert manifest.names == ["lib"]

    def test_missing_file(self, tmp_path: Path) -> None:
        """Test a missing manifest raises ManifestNotFoundError."""
        with pytest.raises(ManifestNotFoundError):
            ManifestParser().parse_file(tmp_path / "go.mod")

    def test_parse_bytes_without_path(self) -> None:
        """Test bytes can be parsed without a file name."""
        manifest = ManifestParser().parse_bytes(b"a\nb\n", ManifestFormat.LINES)

        assert manifest.names == ["a", "b"]
        assert manifest.kind == "library"
        assert manifest.path is None
