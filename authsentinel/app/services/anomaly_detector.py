"""
Anomaly Detector

Evaluates a just-persisted LoginAttempt against the attempt history. All
state lives in the login_attempts table, so any number of instances agree
on the answer without shared memory.
"""

import logging
from datetime import timedelta

from authsentinel.app.services.telemetry import SecurityTelemetry
from authsentinel.app.services.unit_of_work import UnitOfWork
from authsentinel.domain.entities import FailureReason, LoginAttempt
from authsentinel.domain.values import AnomalySignal
from authsentinel.libs.result import Error, Result, Return

logger = logging.getLogger(__name__)


class AnomalyDetector:
    """
    First-time-location and burst-failure detection.

    Business Rules:
    - New location: successful attempt by a known principal with a resolved
      country and no earlier success from the same (city, country)
    - Burst failure: failed attempt whose email has >= threshold failures
      in the rolling window ending at the attempt (both bounds inclusive)
    - Counts are not serialized; concurrent attempts may be off by one
    """

    def __init__(
        self,
        uow: UnitOfWork,
        telemetry: SecurityTelemetry,
        burst_threshold: int = 3,
        burst_window: timedelta = timedelta(minutes=15),
    ):
        self.uow = uow
        self.telemetry = telemetry
        self.burst_threshold = burst_threshold
        self.burst_window = burst_window

    async def evaluate(self, attempt: LoginAttempt) -> Result[AnomalySignal]:
        """
        Args:
            attempt: The persisted attempt (created_at set)

        Returns:
            Result with AnomalySignal, or Error(unknown_error) if history
            could not be read
        """
        try:
            if attempt.success:
                signal = await self._check_new_location(attempt)
            else:
                signal = await self._check_burst(attempt)
        except Exception as exc:
            logger.exception("Anomaly evaluation failed for attempt %s", attempt.id)
            return Return.err(
                Error(
                    FailureReason.unknown_error.value,
                    "Anomaly evaluation failed",
                    details={"exception": type(exc).__name__},
                )
            )
        return Return.ok(signal)

    async def _check_new_location(self, attempt: LoginAttempt) -> AnomalySignal:
        if attempt.principal_id is None or not attempt.country:
            return AnomalySignal()

        async with self.uow:
            prior = await self.uow.login_attempts.count_successful_from_location(
                attempt.principal_id, attempt.city, attempt.country, attempt.created_at
            )

        if prior > 0:
            return AnomalySignal(prior_location_logins=prior)

        logger.info(
            "New login location for principal %s: %s, %s",
            attempt.principal_id,
            attempt.city,
            attempt.country,
        )
        self.telemetry.new_location_logins.add(
            1, {"geo.country": attempt.country, "geo.city": attempt.city or "unknown"}
        )
        return AnomalySignal(is_new_location=True, prior_location_logins=0)

    async def _check_burst(self, attempt: LoginAttempt) -> AnomalySignal:
        async with self.uow:
            count = await self.uow.login_attempts.count_failed_for_email(
                attempt.email,
                attempt.created_at - self.burst_window,
                attempt.created_at,
            )

        if count < self.burst_threshold:
            return AnomalySignal(failed_attempt_count=count)

        logger.warning(
            "Burst of %s failed logins for %s within %s", count, attempt.email, self.burst_window
        )
        self.telemetry.suspicious_logins.add(
            1, {"failure.count": count, "geo.country": attempt.country or "unknown"}
        )
        return AnomalySignal(is_burst_failure=True, failed_attempt_count=count)
