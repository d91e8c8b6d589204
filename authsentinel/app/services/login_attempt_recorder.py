"""
Login Attempt Recorder

Records every authentication attempt and drives the monitoring pipeline:

    persist attempt -> metrics -> AnomalyDetector -> NotificationThrottler

Monitoring must never change the outcome of a sign-in, so each step reports
through its own error channel and record() does not raise.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, List, Optional, Union
from uuid import UUID

from authsentinel.app.services.anomaly_detector import AnomalyDetector
from authsentinel.app.services.client_context import ClientContextExtractor
from authsentinel.app.services.geolocation_resolver import GeolocationResolver
from authsentinel.app.services.notification_throttler import NotificationThrottler
from authsentinel.app.services.telemetry import SecurityTelemetry
from authsentinel.app.services.unit_of_work import UnitOfWork
from authsentinel.domain.base import parse_uuid, utcnow
from authsentinel.domain.entities import (
    UNKNOWN_PRINCIPAL,
    FailureReason,
    LoginAttempt,
    normalize_email,
)
from authsentinel.domain.values import (
    AnomalySignal,
    ClientContext,
    GeoLocation,
    RequestMetadata,
    ResolvedClient,
)
from authsentinel.libs.result import Error

logger = logging.getLogger(__name__)


@dataclass
class RecordOutcome:
    """What happened while recording one attempt.

    ``errors`` collects the failure of every step that did not succeed;
    an empty list means the whole pipeline ran.
    """

    persisted: bool = False
    attempt: Optional[LoginAttempt] = None
    signal: Optional[AnomalySignal] = None
    notifications: List[str] = field(default_factory=list)
    errors: List[Error] = field(default_factory=list)

    @property
    def attempt_id(self) -> Optional[UUID]:
        return self.attempt.id if self.attempt is not None else None


class LoginAttemptRecorder:
    """
    Append-only attempt log plus anomaly evaluation.

    Business Rules:
    - Exactly one LoginAttempt per call, committed on its own
    - Attempts for unknown principals are stored (principal_id NULL) but not
      evaluated
    - Enrichment and notification failures are logged and collected, never
      raised
    """

    def __init__(
        self,
        uow: UnitOfWork,
        extractor: ClientContextExtractor,
        geolocator: GeolocationResolver,
        detector: AnomalyDetector,
        throttler: NotificationThrottler,
        telemetry: SecurityTelemetry,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.uow = uow
        self.extractor = extractor
        self.geolocator = geolocator
        self.detector = detector
        self.throttler = throttler
        self.telemetry = telemetry
        self.clock = clock

    async def resolve_client(self, request_meta: Optional[RequestMetadata]) -> ResolvedClient:
        """Client context and location for a request. Never raises."""
        if request_meta is None:
            return ResolvedClient()

        try:
            context = self.extractor.extract(request_meta)
        except Exception:
            logger.exception("Client context extraction failed")
            context = ClientContext()

        try:
            location = await self.geolocator.resolve(request_meta, context.ip_address)
        except Exception:
            logger.exception("Geolocation failed for %s", context.ip_address)
            location = GeoLocation()

        return ResolvedClient(context=context, location=location)

    async def record(
        self,
        principal_id: Union[UUID, str, None],
        email: Optional[str],
        success: bool,
        failure_reason: Optional[FailureReason] = None,
        *,
        failure_detail: Optional[str] = None,
        principal_name: Optional[str] = None,
        request_meta: Optional[RequestMetadata] = None,
        client: Optional[ResolvedClient] = None,
    ) -> RecordOutcome:
        """
        Record one attempt and evaluate it.

        Args:
            principal_id: Principal UUID, or UNKNOWN_PRINCIPAL when the email
                matched nobody
            email: Email as submitted
            success: Whether the attempt authenticated
            failure_reason: FailureReason for failed attempts
            failure_detail: Exception class name for unknown_error
            principal_name: Display name used in alert templates
            request_meta: Request to derive client context from
            client: Already-resolved client context (skips resolution)

        Returns:
            RecordOutcome (never raises)
        """
        outcome = RecordOutcome()
        known_principal = _principal_uuid(principal_id)
        if client is None:
            client = await self.resolve_client(request_meta)

        reason = failure_reason.value if failure_reason is not None else None
        if success:
            reason = None
        elif reason is None:
            reason = FailureReason.unknown_error.value

        span = self._open_span(outcome, {"login.success": success, "failure.reason": reason})
        try:
            try:
                self.telemetry.record_login_attempt(
                    success, failure_reason=reason, country=client.location.country
                )
            except Exception as exc:
                logger.exception("Failed to count login attempt")
                outcome.errors.append(
                    _step_error("metrics", "Login attempt could not be counted", exc)
                )

            attempt = LoginAttempt(
                principal_id=known_principal,
                email=normalize_email(email or ""),
                success=success,
                failure_reason=reason,
                failure_detail=failure_detail,
                ip_address=client.context.ip_address,
                user_agent=client.context.user_agent,
                device=client.context.device,
                browser=client.context.browser,
                os=client.context.os,
                country=client.location.country,
                city=client.location.city,
                region=client.location.region,
                latitude=client.location.latitude,
                longitude=client.location.longitude,
                created_at=self.clock(),
            )
            await self._persist_and_evaluate(outcome, attempt, known_principal, principal_name)
        finally:
            self._close_span(span, outcome)

        return outcome

    async def _persist_and_evaluate(
        self,
        outcome: RecordOutcome,
        attempt: LoginAttempt,
        known_principal: Optional[UUID],
        principal_name: Optional[str],
    ) -> None:
        try:
            async with self.uow:
                attempt = await self.uow.login_attempts.create(attempt)
                await self.uow.commit()
        except Exception as exc:
            logger.exception("Failed to persist login attempt for %s", attempt.email)
            outcome.errors.append(
                _step_error("persist", "Login attempt could not be recorded", exc)
            )
            return

        outcome.persisted = True
        outcome.attempt = attempt
        logger.info(
            "Recorded %s login attempt for %s (principal %s)",
            "successful" if attempt.success else "failed",
            attempt.email,
            attempt.principal_ref,
        )

        if known_principal is None:
            return

        evaluation = await self.detector.evaluate(attempt)
        if evaluation.is_err():
            outcome.errors.append(evaluation.error)
            return
        outcome.signal = evaluation.value

        if not (outcome.signal.is_new_location or outcome.signal.is_burst_failure):
            return

        notified = await self.throttler.notify(attempt, outcome.signal, principal_name)
        if notified.is_err():
            logger.error("Notification step failed: %s", notified.error.message)
            outcome.errors.append(notified.error)
            outcome.notifications = list(notified.error.details.get("sent", []))
        else:
            outcome.notifications = notified.value

    def _open_span(self, outcome: RecordOutcome, attributes: dict):
        """Enter the recording span, or None if the tracer is broken"""
        try:
            span = self.telemetry.span("login_attempt.record", attributes)
            span.__enter__()
            return span
        except Exception as exc:
            logger.exception("Failed to open login attempt span")
            outcome.errors.append(_step_error("telemetry", "Tracing unavailable", exc))
            return None

    def _close_span(self, span, outcome: RecordOutcome) -> None:
        if span is None:
            return
        try:
            span.__exit__(None, None, None)
        except Exception as exc:
            logger.exception("Failed to close login attempt span")
            outcome.errors.append(_step_error("telemetry", "Tracing unavailable", exc))


def _step_error(step: str, message: str, exc: Exception) -> Error:
    return Error(
        FailureReason.unknown_error.value,
        message,
        details={"step": step, "exception": type(exc).__name__},
    )


def _principal_uuid(principal_id: Union[UUID, str, None]) -> Optional[UUID]:
    if principal_id is None or principal_id == UNKNOWN_PRINCIPAL:
        return None
    return parse_uuid(principal_id)
