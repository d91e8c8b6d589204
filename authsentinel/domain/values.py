"""
Domain value objects.

Immutable records threaded between the authentication components. None of
these are persisted on their own.
"""

from dataclasses import asdict, dataclass, field
from typing import Dict, Optional

UNKNOWN = "Unknown"


@dataclass(frozen=True, slots=True)
class RequestMetadata:
    """Framework-independent view of an incoming request.

    Attributes:
        headers: Header names lower-cased.
        client_host: Literal connection address, if known.
    """

    headers: Dict[str, str] = field(default_factory=dict)
    client_host: Optional[str] = None

    @classmethod
    def from_mapping(cls, headers, client_host: Optional[str] = None) -> "RequestMetadata":
        return cls(
            headers={str(k).lower(): str(v) for k, v in headers.items()},
            client_host=client_host,
        )

    def header(self, name: str) -> Optional[str]:
        value = self.headers.get(name.lower())
        if value is None:
            return None
        value = value.strip()
        return value or None


@dataclass(frozen=True, slots=True)
class ClientContext:
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    device_class: str = UNKNOWN
    device: str = UNKNOWN
    browser: str = UNKNOWN
    os: str = UNKNOWN


@dataclass(frozen=True, slots=True)
class GeoLocation:
    """Coarse location. An all-None instance means "unresolved"."""

    country: Optional[str] = None
    city: Optional[str] = None
    region: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    @property
    def is_resolved(self) -> bool:
        return bool(self.country)

    def describe(self) -> str:
        parts = [p for p in (self.city, self.region, self.country) if p]
        return ", ".join(parts) or "Unknown location"


LOCAL_LOCATION = GeoLocation(country="Local", city="Local", region="Local")


@dataclass(frozen=True, slots=True)
class ResolvedClient:
    context: ClientContext = field(default_factory=ClientContext)
    location: GeoLocation = field(default_factory=GeoLocation)


@dataclass(frozen=True, slots=True)
class TokenClaims:
    """Claims carried by the stateless token.

    Attributes:
        principal_id: Principal UUID as string.
        session_id: The one Session this token is bound to.
        last_validity_check: Epoch seconds of the last registry check.
        session_invalid: Set when reconciliation found the session gone.
    """

    principal_id: str
    session_id: str
    last_validity_check: int
    session_invalid: bool = False
    email: Optional[str] = None
    locale: str = "en"
    timezone: str = "UTC"

    def to_payload(self) -> dict:
        return asdict(self)

    @classmethod
    def from_payload(cls, payload: dict) -> "TokenClaims":
        return cls(
            principal_id=str(payload["principal_id"]),
            session_id=str(payload["session_id"]),
            last_validity_check=int(payload.get("last_validity_check", 0)),
            session_invalid=bool(payload.get("session_invalid", False)),
            email=payload.get("email"),
            locale=payload.get("locale") or "en",
            timezone=payload.get("timezone") or "UTC",
        )


@dataclass(frozen=True, slots=True)
class AnomalySignal:
    is_new_location: bool = False
    is_burst_failure: bool = False
    failed_attempt_count: int = 0
    prior_location_logins: Optional[int] = None
