"""Async client for the ip-api.com geolocation endpoint.

The free endpoint needs no API key and allows about 45 requests per minute;
callers are expected to cache and rate-limit (see GeolocationResolver).

Supports both shared and lazily created httpx.AsyncClient instances, the
same way the OIDC token client does.
"""

from __future__ import annotations

import logging

import httpx

from authsentinel.app.services.geolocation_resolver import (
    GeolocationLookupError,
    IGeolocationLookup,
)
from authsentinel.domain.values import GeoLocation

logger = logging.getLogger(__name__)

_DEFAULT_TIMEOUT = 3.0
_FIELDS = "status,message,country,city,regionName,lat,lon"


class IpApiGeolocationClient(IGeolocationLookup):
    """ip-api.com lookup client.

    Args:
        base_url: Endpoint base, e.g. "http://ip-api.com/json".
        timeout: Request timeout in seconds.
        client: Optional shared httpx.AsyncClient (caller manages lifecycle).
    """

    service_name = "ip-api.com"

    def __init__(
        self,
        base_url: str = "http://ip-api.com/json",
        timeout: float = _DEFAULT_TIMEOUT,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._external_client = client is not None
        self._client: httpx.AsyncClient | None = client

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
        return self._client

    async def lookup(self, ip: str) -> GeoLocation:
        """Resolve an address.

        Raises:
            GeolocationLookupError: On transport errors, non-2xx responses or
                a provider-side "fail" status.
        """
        try:
            response = await self._get_client().get(
                f"{self._base_url}/{ip}",
                params={"fields": _FIELDS},
                timeout=self._timeout,
            )
        except httpx.TimeoutException as exc:
            raise GeolocationLookupError("timeout") from exc
        except httpx.HTTPError as exc:
            raise GeolocationLookupError(type(exc).__name__) from exc

        if response.status_code >= 400:
            raise GeolocationLookupError(
                f"http_{response.status_code}", status_code=response.status_code
            )

        try:
            data = response.json()
        except ValueError as exc:
            raise GeolocationLookupError(
                "invalid_json", status_code=response.status_code
            ) from exc

        if data.get("status") != "success":
            logger.warning("ip-api.com returned %s for %s", data.get("message"), ip)
            raise GeolocationLookupError("api_error", status_code=response.status_code)

        return GeoLocation(
            country=data.get("country") or None,
            city=data.get("city") or None,
            region=data.get("regionName") or None,
            latitude=data.get("lat"),
            longitude=data.get("lon"),
        )

    async def aclose(self) -> None:
        """Close the internal client. Shared clients are left to their owner."""
        if self._client is not None and not self._external_client:
            await self._client.aclose()
            self._client = None
