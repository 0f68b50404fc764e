from __future__ import annotations

from typing import List

import httpx
import pytest

from depvalidator.core.registry import NuGetRegistryResolver
from depvalidator.exceptions import RegistryError
from depvalidator.utils.http import HTTPClient


def _resolver(handler) -> NuGetRegistryResolver:
    http = HTTPClient(transport=httpx.MockTransport(handler))
    return NuGetRegistryResolver(http)


@pytest.mark.unit
class TestNuGetRegistryResolver:
    """Tests for NuGetRegistryResolver against a mocked transport."""

    def test_index_url_lowercased(self) -> None:
        """Test package ids are lower-cased in the flat-container URL."""
        resolver = NuGetRegistryResolver(HTTPClient())

        assert resolver.index_url_for("Newtonsoft.Json") == (
            "https://api.nuget.org/v3-flatcontainer/newtonsoft.json/index.json"
        )

    @pytest.mark.asyncio
    async def test_last_version_is_latest(self) -> None:
        """Test the last listed version is returned without sorting."""
        seen: List[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(str(request.url))
            return httpx.Response(200, json={"versions": ["3.1.1", "2.10.0", "3.0.0"]})

        resolver = _resolver(handler)
        try:
            latest = await resolver.resolve_latest_version("Serilog")
        finally:
            await resolver.http.close()

        assert latest == "3.0.0"
        assert seen == ["https://api.nuget.org/v3-flatcontainer/serilog/index.json"]

    @pytest.mark.asyncio
    async def test_not_found(self) -> None:
        """Test HTTP 404 raises RegistryError naming the package."""
        resolver = _resolver(lambda request: httpx.Response(404))
        try:
            with pytest.raises(RegistryError, match="NuGet package Missing not found") as exc_info:
                await resolver.resolve_latest_version("Missing")
        finally:
            await resolver.http.close()

        assert exc_info.value.package_name == "Missing"
        assert exc_info.value.status_code == 404

    @pytest.mark.asyncio
    async def test_non_200_success_status(self) -> None:
        """Test any non-200 answer is treated as not found."""
        resolver = _resolver(lambda request: httpx.Response(204))
        try:
            with pytest.raises(RegistryError, match="not found"):
                await resolver.resolve_latest_version("Odd")
        finally:
            await resolver.http.close()

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "payload",
        [{"versions": []}, {}, {"versions": "1.0.0"}, ["1.0.0"]],
    )
    async def test_no_versions(self, payload) -> None:
        """Test an empty or malformed version list raises RegistryError."""
        resolver = _resolver(lambda request: httpx.Response(200, json=payload))
        try:
            with pytest.raises(RegistryError, match="no versions found for Empty"):
                await resolver.resolve_latest_version("Empty")
        finally:
            await resolver.http.close()

    @pytest.mark.asyncio
    async def test_invalid_json(self) -> None:
        """Test a non-JSON body raises RegistryError."""
        resolver = _resolver(lambda request: httpx.Response(200, text="<html>"))
        try:
            with pytest.raises(RegistryError, match="Invalid JSON"):
                await resolver.resolve_latest_version("Broken")
        finally:
            await resolver.http.close()

    @pytest.mark.asyncio
    async def test_transport_failure(self) -> None:
        """Test connection errors become RegistryError without a status."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        resolver = _resolver(handler)
        try:
            with pytest.raises(RegistryError, match="NuGet lookup failed for Offline") as exc_info:
                await resolver.resolve_latest_version("Offline")
        finally:
            await resolver.http.close()

        assert exc_info.value.status_code is None
