"""NuGet registry resolver for depvalidator.

Looks up the latest published version of a package through the NuGet
flat-container index (``/v3-flatcontainer/{id}/index.json``). The
registry returns versions in its own published order, and the last entry
is taken as the latest; no local sorting is applied.

Typical usage::

    async with HTTPClient() as http:
        resolver = NuGetRegistryResolver(http)
        latest = await resolver.resolve_latest_version("Newtonsoft.Json")
"""

from __future__ import annotations

from typing import Protocol

from depvalidator.constants import NUGET_FLAT_CONTAINER_API
from depvalidator.exceptions import NetworkError, RegistryError
from depvalidator.utils.http import HTTPClient
from depvalidator.utils.logger import get_logger

logger = get_logger("registry")

__all__ = ["RegistryResolver", "NuGetRegistryResolver"]


class RegistryResolver(Protocol):
    """Capability: resolve the latest registry version of a package."""

    async def resolve_latest_version(self, package_id: str) -> str:
        """Return the latest version or raise a ``DepValidatorError``."""
        ...


class NuGetRegistryResolver:
    """Resolve latest versions from the NuGet flat-container API.

    Args:
        http: Shared HTTP client.
        index_url: URL template with a ``{package}`` placeholder.
    """

    def __init__(
        self,
        http: HTTPClient,
        *,
        index_url: str = NUGET_FLAT_CONTAINER_API,
    ) -> None:
        self.http = http
        self.index_url = index_url

    def index_url_for(self, package_id: str) -> str:
        """Return the index URL for ``package_id`` (lower-cased)."""
        return self.index_url.format(package=package_id.lower())

    async def resolve_latest_version(self, package_id: str) -> str:
        """Return the last version listed by the registry for ``package_id``.

        Raises:
            RegistryError: The package is unknown (any non-200 answer), the
                lookup failed, or the registry lists no versions.
        """
        url = self.index_url_for(package_id)
        logger.debug("Querying NuGet index %s", url)

        try:
            response = await self.http.get(url)
        except NetworkError as exc:
            if exc.status_code is not None:
                raise RegistryError(
                    f"NuGet package {package_id} not found",
                    package_name=package_id,
                    url=url,
                    status_code=exc.status_code,
                ) from exc
            raise RegistryError(
                f"NuGet lookup failed for {package_id}: {exc.message}",
                package_name=package_id,
                url=url,
            ) from exc

        if response.status_code != 200:
            raise RegistryError(
                f"NuGet package {package_id} not found",
                package_name=package_id,
                url=url,
                status_code=response.status_code,
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise RegistryError(
                f"Invalid JSON from NuGet for {package_id}",
                package_name=package_id,
                url=url,
                response_body=response.text,
            ) from exc

        versions = payload.get("versions") if isinstance(payload, dict) else None
        if not isinstance(versions, list) or not versions:
            raise RegistryError(
                f"no versions found for {package_id}",
                package_name=package_id,
                url=url,
            )

        latest = str(versions[-1])
        logger.debug("NuGet latest for %s: %s", package_id, latest)
        return latest
