"""
Application container.

Everything that must exist exactly once per process (engine, session factory,
outbound HTTP clients, geolocation cache, telemetry) is built here at start-up
and handed to the request scope explicitly. Per-request components are built
by the factory methods around a request's UnitOfWork.
"""

import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from authsentinel.adapter.services.geolocation_client import IpApiGeolocationClient
from authsentinel.adapter.services.notifications import (
    LoggingNotificationDispatcher,
    ResendEmailDispatcher,
)
from authsentinel.api.utils.jwt import TokenCodec
from authsentinel.app.services.anomaly_detector import AnomalyDetector
from authsentinel.app.services.client_context import ClientContextExtractor
from authsentinel.app.services.credential_store import CredentialStore
from authsentinel.app.services.geolocation_resolver import (
    GeolocationResolver,
    IGeolocationLookup,
)
from authsentinel.app.services.login_attempt_recorder import LoginAttemptRecorder
from authsentinel.app.services.notification_throttler import (
    NotificationDispatcher,
    NotificationThrottler,
)
from authsentinel.app.services.session_registry import SessionRegistry
from authsentinel.app.services.telemetry import SecurityTelemetry
from authsentinel.app.services.token_reconciler import TokenReconciler
from authsentinel.app.services.unit_of_work import UnitOfWork

logger = logging.getLogger(__name__)


@dataclass
class Container:
    """Process-wide collaborators plus factories for request-scoped ones"""

    config: type
    engine: AsyncEngine
    session_factory: sessionmaker
    telemetry: SecurityTelemetry
    codec: TokenCodec
    extractor: ClientContextExtractor
    geolocator: GeolocationResolver
    dispatcher: NotificationDispatcher
    geolocation_client: Optional[IGeolocationLookup] = None

    @property
    def session_lifetime(self) -> timedelta:
        return timedelta(days=self.config.SESSION_LIFETIME_DAYS)

    @property
    def verification_ttl(self) -> timedelta:
        return timedelta(hours=self.config.EMAIL_VERIFICATION_TTL_HOURS)

    def credential_store(self, uow: UnitOfWork) -> CredentialStore:
        return CredentialStore(uow, rounds=self.config.BCRYPT_ROUNDS)

    def session_registry(self, uow: UnitOfWork) -> SessionRegistry:
        return SessionRegistry(uow, telemetry=self.telemetry, lifetime=self.session_lifetime)

    def token_reconciler(self, uow: UnitOfWork) -> TokenReconciler:
        return TokenReconciler(
            self.session_registry(uow),
            self.codec,
            check_interval_seconds=self.config.SESSION_CHECK_INTERVAL_SECONDS,
        )

    def login_attempt_recorder(self, uow: UnitOfWork) -> LoginAttemptRecorder:
        threshold = self.config.BURST_FAILURE_THRESHOLD
        detector = AnomalyDetector(
            uow,
            self.telemetry,
            burst_threshold=threshold,
            burst_window=timedelta(minutes=self.config.BURST_FAILURE_WINDOW_MINUTES),
        )
        throttler = NotificationThrottler(
            self.dispatcher, self.telemetry, burst_threshold=threshold
        )
        return LoginAttemptRecorder(
            uow, self.extractor, self.geolocator, detector, throttler, self.telemetry
        )

    async def create_schema(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(SQLModel.metadata.create_all)

    async def aclose(self) -> None:
        if isinstance(self.geolocation_client, IpApiGeolocationClient):
            await self.geolocation_client.aclose()
        if isinstance(self.dispatcher, ResendEmailDispatcher):
            await self.dispatcher.aclose()
        await self.engine.dispose()


def build_dispatcher(config) -> NotificationDispatcher:
    backend = config.NOTIFICATION_BACKEND
    if backend == "resend":
        if not config.RESEND_API_KEY:
            raise ValueError("RESEND_API_KEY must be set when NOTIFICATION_BACKEND is 'resend'")
        return ResendEmailDispatcher(
            api_key=config.RESEND_API_KEY,
            from_email=config.RESEND_FROM_EMAIL,
            api_url=config.RESEND_API_URL,
            timeout=config.NOTIFICATION_TIMEOUT_SECONDS,
        )
    if backend == "log":
        return LoggingNotificationDispatcher()
    raise ValueError(f"Unknown NOTIFICATION_BACKEND: {backend}")


def build_container(
    config,
    telemetry: Optional[SecurityTelemetry] = None,
    dispatcher: Optional[NotificationDispatcher] = None,
    geolocation_client: Optional[IGeolocationLookup] = None,
) -> Container:
    """
    Build the process-wide container from ApplicationConfig.

    Args:
        config: ApplicationConfig class (or any object with the same keys)
        telemetry: Override the OpenTelemetry-backed sink
        dispatcher: Override the configured notification backend
        geolocation_client: Override the ip-api.com client
    """
    engine = create_async_engine(config.DB_URI, echo=False, future=True)
    session_factory = sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
    )
    telemetry = telemetry or SecurityTelemetry()
    geolocation_client = geolocation_client or IpApiGeolocationClient(
        base_url=config.GEOLOCATION_URL, timeout=config.GEOLOCATION_TIMEOUT_SECONDS
    )
    geolocator = GeolocationResolver(
        geolocation_client,
        telemetry,
        cache_ttl=config.GEOLOCATION_CACHE_TTL_SECONDS,
        cache_size=config.GEOLOCATION_CACHE_SIZE,
        rate_limit_per_minute=config.GEOLOCATION_RATE_LIMIT_PER_MINUTE,
    )

    logger.info("Container built (notifications: %s)", config.NOTIFICATION_BACKEND)
    return Container(
        config=config,
        engine=engine,
        session_factory=session_factory,
        telemetry=telemetry,
        codec=TokenCodec(
            config.JWT_SECRET, max_age=timedelta(days=config.SESSION_LIFETIME_DAYS)
        ),
        extractor=ClientContextExtractor(config.TRUSTED_IP_HEADER),
        geolocator=geolocator,
        dispatcher=dispatcher or build_dispatcher(config),
        geolocation_client=geolocation_client,
    )
