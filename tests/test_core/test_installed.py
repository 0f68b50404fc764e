from __future__ import annotations

import json
import asyncio
from pathlib import Path
from typing import Any, Dict, List

import pytest

from depvalidator.core.installed import (
    collect_installed_versions,
    list_go_modules,
    load_asset_versions,
    parse_asset_versions,
    parse_go_module_list,
)
from depvalidator.exceptions import InstalledVersionError, ParseError
from depvalidator.utils.process import CommandResult


GO_LIST_OUTPUT = b"""\
example.com/app
github.com/davecgh/go-spew v1.1.1
github.com/stretchr/testify v1.8.4
gopkg.in/yaml.v3 v3.0.1
"""


def _assets(*keys: str) -> bytes:
    return json.dumps({"version": 3, "libraries": {k: {} for k in keys}}).encode()


class FakeRunner:
    def __init__(self, result: CommandResult = CommandResult(0), exc=None) -> None:
        self.result = result
        self.exc = exc
        self.calls: List[Dict[str, Any]] = []

    async def __call__(self, args, *, timeout=None, cwd=None, env=None) -> CommandResult:
        self.calls.append({"args": list(args), "cwd": cwd, "timeout": timeout})
        if self.exc is not None:
            raise self.exc
        return self.result


@pytest.mark.unit
class TestAssetVersions:
    """Tests for project.assets.json parsing."""

    def test_parse_name_version_keys(self) -> None:
        """Test Name/Version keys become a name to version mapping."""
        data = _assets("Newtonsoft.Json/13.0.1", "Serilog/2.10.0")

        assert parse_asset_versions(data) == {
            "Newtonsoft.Json": "13.0.1",
            "Serilog": "2.10.0",
        }

    def test_malformed_keys_skipped(self) -> None:
        """Test keys without exactly one '/' are ignored."""
        data = _assets("NoVersion", "Too/Many/Parts", "Ok/1.0.0")

        assert parse_asset_versions(data) == {"Ok": "1.0.0"}

    def test_missing_libraries(self) -> None:
        """Test documents without libraries yield an empty mapping."""
        assert parse_asset_versions(b'{"version": 3}') == {}
        assert parse_asset_versions(b"[]") == {}

    def test_invalid_json(self) -> None:
        """Test invalid JSON raises ParseError."""
        with pytest.raises(ParseError) as exc_info:
            parse_asset_versions(b"{", "obj/project.assets.json")

        assert exc_info.value.format == "assets-json"

    def test_load_missing_file(self, tmp_path: Path) -> None:
        """Test a missing assets file yields an empty mapping."""
        assert load_asset_versions(tmp_path / "obj" / "project.assets.json") == {}

    def test_load_file(self, tmp_path: Path) -> None:
        """Test an assets file on disk is loaded."""
        path = tmp_path / "project.assets.json"
        path.write_bytes(_assets("Polly/8.2.0"))

        assert load_asset_versions(path) == {"Polly": "8.2.0"}


@pytest.mark.unit
class TestGoModules:
    """Tests for go list -m all handling."""

    def test_parse_module_list(self) -> None:
        """Test the main module line without a version is skipped."""
        modules = parse_go_module_list(GO_LIST_OUTPUT)

        assert "example.com/app" not in modules
        assert modules["github.com/stretchr/testify"] == "v1.8.4"
        assert len(modules) == 3

    def test_parse_replaced_module(self) -> None:
        """Test replace directives keep the original module version."""
        output = "github.com/a/b v1.0.0 => ../b\n"

        assert parse_go_module_list(output) == {"github.com/a/b": "v1.0.0"}

    @pytest.mark.asyncio
    async def test_list_go_modules(self, tmp_path: Path) -> None:
        """Test go is invoked in the project directory."""
        runner = FakeRunner(CommandResult(0, stdout=GO_LIST_OUTPUT))

        modules = await list_go_modules(tmp_path, runner=runner, timeout=9)

        assert modules["gopkg.in/yaml.v3"] == "v3.0.1"
        assert runner.calls[0]["args"] == ["go", "list", "-m", "all"]
        assert runner.calls[0]["cwd"] == tmp_path
        assert runner.calls[0]["timeout"] == 9

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "runner",
        [
            FakeRunner(CommandResult(1, stderr=b"go: not in a module")),
            FakeRunner(exc=asyncio.TimeoutError()),
            FakeRunner(exc=FileNotFoundError(2, "No such file or directory")),
        ],
        ids=["nonzero", "timeout", "missing-go"],
    )
    async def test_list_go_modules_failures(self, runner: FakeRunner) -> None:
        """Test every failure mode raises InstalledVersionError."""
        with pytest.raises(InstalledVersionError) as exc_info:
            await list_go_modules(".", runner=runner)

        assert exc_info.value.command == "go list -m all"


@pytest.mark.unit
class TestCollectInstalledVersions:
    """Tests for collect_installed_versions."""

    @pytest.mark.asyncio
    async def test_assets_only_without_go_mod(self, tmp_path: Path) -> None:
        """Test go is not run when the project has no go.mod."""
        (tmp_path / "obj").mkdir()
        (tmp_path / "obj" / "project.assets.json").write_bytes(_assets("Serilog/2.10.0"))
        runner = FakeRunner()

        versions = await collect_installed_versions(tmp_path, runner=runner)

        assert versions == {"Serilog": "2.10.0"}
        assert runner.calls == []

    @pytest.mark.asyncio
    async def test_go_overrides_assets(self, tmp_path: Path) -> None:
        """Test go module versions win over assets on name clashes."""
        (tmp_path / "go.mod").write_text("module example.com/app\n", encoding="utf-8")
        assets = tmp_path / "custom.json"
        assets.write_bytes(_assets("shared/1.0.0", "Only/1.0"))
        runner = FakeRunner(
            CommandResult(0, stdout=b"example.com/app\nshared v2.0.0\n")
        )

        versions = await collect_installed_versions(
            tmp_path, assets_path=assets, runner=runner
        )

        assert versions == {"shared": "v2.0.0", "Only": "1.0"}

    @pytest.mark.asyncio
    async def test_go_failure_is_not_fatal(self, tmp_path: Path) -> None:
        """Test a failing go list leaves the other sources intact."""
        (tmp_path / "go.mod").write_text("module example.com/app\n", encoding="utf-8")
        runner = FakeRunner(CommandResult(1, stderr=b"boom"))

        versions = await collect_installed_versions(tmp_path, runner=runner)

        assert versions == {}
        assert len(runner.calls) == 1
