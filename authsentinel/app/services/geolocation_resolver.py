"""
Geolocation Resolver

Resolves a client address to a coarse location. Enrichment only: every path
returns a GeoLocation (possibly empty) and never raises.

Resolution order:
1. Edge-provided geo headers (zero network cost)
2. Local pseudo-location for a missing address and loopback/private ranges
   (no call-out)
3. External IP lookup, cached per address and capped per minute
"""

import ipaddress
import logging
import time
from abc import ABC, abstractmethod
from collections import deque
from typing import Callable, Deque, Optional

from cachetools import TTLCache

from authsentinel.app.services.telemetry import SecurityTelemetry
from authsentinel.domain.values import LOCAL_LOCATION, GeoLocation, RequestMetadata

logger = logging.getLogger(__name__)

# Column width of country/city/region
MAX_PLACE_LENGTH = 128


class GeolocationLookupError(Exception):
    """Raised by lookup clients when the provider call fails.

    Attributes:
        error_type: Short machine-readable failure type (e.g. "http_429").
        status_code: HTTP status, when a response was received.
    """

    def __init__(self, error_type: str, status_code: Optional[int] = None):
        self.error_type = error_type
        self.status_code = status_code
        super().__init__(f"Geolocation lookup failed: {error_type}")


class IGeolocationLookup(ABC):
    """Outbound IP geolocation lookup"""

    service_name: str = "geolocation"

    @abstractmethod
    async def lookup(self, ip: str) -> GeoLocation:
        """Resolve an IP or raise GeolocationLookupError"""
        pass


def is_local_address(ip: str) -> bool:
    try:
        address = ipaddress.ip_address(ip)
    except ValueError:
        return False
    return (
        address.is_loopback
        or address.is_private
        or address.is_link_local
        or address.is_unspecified
    )


def _is_ip_address(value: str) -> bool:
    try:
        ipaddress.ip_address(value)
    except ValueError:
        return False
    return True


def _clip(value: Optional[str]) -> Optional[str]:
    return value[:MAX_PLACE_LENGTH] if value else value


def _parse_float(value: Optional[str]) -> Optional[float]:
    if value is None:
        return None
    try:
        return float(value)
    except ValueError:
        return None


class _SlidingWindowLimiter:
    """Per-process cap on outbound calls in a trailing window."""

    def __init__(self, limit: int, window_seconds: float, clock: Callable[[], float]):
        self.limit = limit
        self.window_seconds = window_seconds
        self.clock = clock
        self._calls: Deque[float] = deque()

    def try_acquire(self) -> bool:
        now = self.clock()
        while self._calls and now - self._calls[0] >= self.window_seconds:
            self._calls.popleft()
        if len(self._calls) >= self.limit:
            return False
        self._calls.append(now)
        return True


class GeolocationResolver:
    """
    Best-effort location enrichment for sign-in attempts and sessions.

    Args:
        lookup: External lookup client.
        telemetry: Sink for call latency and errors.
        cache_ttl: Seconds a resolved address stays cached.
        cache_size: Maximum cached addresses.
        rate_limit_per_minute: Maximum external calls per trailing minute.
        clock: Monotonic clock, injectable for tests.
    """

    def __init__(
        self,
        lookup: IGeolocationLookup,
        telemetry: SecurityTelemetry,
        cache_ttl: int = 86400,
        cache_size: int = 10_000,
        rate_limit_per_minute: int = 45,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.lookup = lookup
        self.telemetry = telemetry
        self.clock = clock
        self._cache: TTLCache = TTLCache(maxsize=cache_size, ttl=cache_ttl)
        self._limiter = _SlidingWindowLimiter(rate_limit_per_minute, 60.0, clock)

    async def resolve(self, request: RequestMetadata, ip: Optional[str]) -> GeoLocation:
        edge_location = self.from_edge_headers(request)
        if edge_location.is_resolved:
            return edge_location

        if not ip:
            return LOCAL_LOCATION

        return await self.resolve_ip(ip)

    @staticmethod
    def from_edge_headers(request: RequestMetadata) -> GeoLocation:
        return GeoLocation(
            country=_clip(request.header("cf-ipcountry")),
            city=_clip(request.header("cf-ipcity")),
            region=_clip(request.header("cf-region")),
            latitude=_parse_float(request.header("cf-iplatitude")),
            longitude=_parse_float(request.header("cf-iplongitude")),
        )

    async def resolve_ip(self, ip: str) -> GeoLocation:
        if is_local_address(ip):
            return LOCAL_LOCATION
        if not _is_ip_address(ip):
            logger.warning("Refusing geolocation lookup for non-address %r", ip[:64])
            return GeoLocation()

        cached = self._cache.get(ip)
        if cached is not None:
            return cached

        if not self._limiter.try_acquire():
            logger.warning("Geolocation rate limit reached, skipping lookup for %s", ip)
            return GeoLocation()

        started = time.perf_counter()
        status_code = None
        error_type = None
        location = GeoLocation()
        try:
            location = await self.lookup.lookup(ip)
        except GeolocationLookupError as exc:
            error_type = exc.error_type
            status_code = exc.status_code
            logger.error("Geolocation lookup for %s failed: %s", ip, exc.error_type)
        except Exception as exc:
            error_type = type(exc).__name__
            logger.exception("Unexpected error during geolocation lookup for %s", ip)
        finally:
            self.telemetry.record_api_call(
                service=self.lookup.service_name,
                duration_ms=(time.perf_counter() - started) * 1000,
                success=error_type is None,
                status_code=status_code,
                error=error_type,
            )

        if location.is_resolved:
            self._cache[ip] = location
        return location
