"""
Notification Throttler

Decides whether an anomaly signal becomes a user-facing security alert and
hands it to a NotificationDispatcher. Dispatch failures are logged and
counted, never raised to the sign-in path.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from authsentinel.app.services.telemetry import SecurityTelemetry
from authsentinel.domain.entities import LoginAttempt, NotificationKind
from authsentinel.domain.values import AnomalySignal, GeoLocation
from authsentinel.libs.result import Error, Result, Return

logger = logging.getLogger(__name__)


class NotificationDispatcher(ABC):
    """Outbound channel for security alerts"""

    @abstractmethod
    async def send(
        self, recipient: str, template_kind: NotificationKind, template_data: Dict[str, Any]
    ) -> None:
        """Deliver one templated notification. May raise on delivery failure."""
        pass


def should_send_burst_alert(failed_count: int, threshold: int = 3) -> bool:
    """Alert on every threshold-th failure: 3, 6, 9, ... for the default threshold"""
    return failed_count >= threshold and failed_count % threshold == 0


class NotificationThrottler:
    """
    Alert policy for anomaly signals.

    Business Rules:
    - New-location alerts are always sent when flagged (the zero-prior-login
      condition already deduplicates them)
    - Burst alerts fire only at multiples of the threshold, so a sustained
      attack produces one alert per threshold failures
    """

    def __init__(
        self,
        dispatcher: NotificationDispatcher,
        telemetry: SecurityTelemetry,
        burst_threshold: int = 3,
    ):
        self.dispatcher = dispatcher
        self.telemetry = telemetry
        self.burst_threshold = burst_threshold

    async def notify(
        self,
        attempt: LoginAttempt,
        signal: AnomalySignal,
        principal_name: Optional[str] = None,
    ) -> Result[List[str]]:
        """
        Dispatch the alerts a signal calls for.

        Returns:
            Result with the template kinds dispatched, or Error(notification_failed)
        """
        location = GeoLocation(
            country=attempt.country,
            city=attempt.city,
            region=attempt.region,
        )
        template_data: Dict[str, Any] = {
            "name": principal_name,
            "location": location.describe(),
            "ip_address": attempt.ip_address,
            "timestamp": attempt.created_at.isoformat() if attempt.created_at else None,
        }

        pending = []
        if signal.is_new_location:
            pending.append((NotificationKind.new_location_login, template_data))
        if signal.is_burst_failure and should_send_burst_alert(
            signal.failed_attempt_count, self.burst_threshold
        ):
            pending.append(
                (
                    NotificationKind.failed_login_attempts,
                    {**template_data, "failed_attempts": signal.failed_attempt_count},
                )
            )

        sent: List[str] = []
        failed: List[str] = []
        for kind, data in pending:
            if await self._dispatch(attempt.email, kind, data):
                sent.append(kind.value)
            else:
                failed.append(kind.value)

        if failed:
            return Return.err(
                Error(
                    "notification_failed",
                    "Security notification could not be delivered",
                    details={"failed": failed, "sent": sent},
                )
            )
        return Return.ok(sent)

    async def _dispatch(
        self, recipient: str, kind: NotificationKind, data: Dict[str, Any]
    ) -> bool:
        try:
            await self.dispatcher.send(recipient, kind, data)
        except Exception as exc:
            logger.exception("Failed to send %s notification to %s", kind.value, recipient)
            self.telemetry.record_email(kind.value, success=False, error=type(exc).__name__)
            return False

        logger.info("Sent %s notification to %s", kind.value, recipient)
        self.telemetry.record_email(kind.value, success=True)
        return True
