"""
Security telemetry sink.

Wraps an OpenTelemetry meter and tracer that are handed in at start-up.
Exporter configuration belongs to the host process; without a configured
provider every call here is a no-op.
"""

from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional

from opentelemetry import metrics, trace
from opentelemetry.trace import Status, StatusCode


class SecurityTelemetry:
    """Named counters/histograms and spans used by the authentication core.

    Args:
        meter: OpenTelemetry meter. Defaults to the global provider's meter.
        tracer: OpenTelemetry tracer. Defaults to the global provider's tracer.
    """

    def __init__(
        self,
        meter: Optional[metrics.Meter] = None,
        tracer: Optional[trace.Tracer] = None,
    ):
        self._meter = meter or metrics.get_meter("authsentinel")
        self._tracer = tracer or trace.get_tracer("authsentinel")

        self.login_attempts = self._meter.create_counter(
            "user.login.attempts", description="Total login attempts"
        )
        self.login_success = self._meter.create_counter(
            "user.login.success", description="Successful logins"
        )
        self.login_failures = self._meter.create_counter(
            "user.login.failures", description="Failed logins"
        )
        self.new_location_logins = self._meter.create_counter(
            "user.login.new_location", description="Logins from a never-seen location"
        )
        self.suspicious_logins = self._meter.create_counter(
            "user.login.suspicious", description="Attempts inside a failure burst"
        )
        self.sessions_revoked = self._meter.create_counter(
            "user.sessions.revoked", description="Sessions deleted by revocation or sweep"
        )
        self.api_calls = self._meter.create_counter(
            "api.calls", description="Outbound API calls"
        )
        self.api_call_duration = self._meter.create_histogram(
            "api.call.duration", unit="ms", description="Outbound API call latency"
        )
        self.api_errors = self._meter.create_counter(
            "api.errors", description="Outbound API call errors"
        )
        self.emails_sent = self._meter.create_counter(
            "email.sent", description="Notifications dispatched"
        )
        self.email_failures = self._meter.create_counter(
            "email.failures", description="Notification dispatch failures"
        )

    @contextmanager
    def span(self, name: str, attributes: Optional[Dict[str, Any]] = None) -> Iterator[trace.Span]:
        with self._tracer.start_as_current_span(name) as span:
            if attributes:
                self.set_attributes(span, attributes)
            try:
                yield span
                span.set_status(Status(StatusCode.OK))
            except Exception as exc:
                span.set_status(Status(StatusCode.ERROR, str(exc)))
                span.record_exception(exc)
                raise

    @staticmethod
    def set_attributes(span: trace.Span, attributes: Dict[str, Any]) -> None:
        for key, value in attributes.items():
            if value is not None:
                span.set_attribute(key, value)

    def record_login_attempt(
        self,
        success: bool,
        failure_reason: Optional[str] = None,
        country: Optional[str] = None,
    ) -> None:
        attributes = {"login.success": success, "geo.country": country or "unknown"}
        self.login_attempts.add(1, attributes)
        if success:
            self.login_success.add(1, {"geo.country": country or "unknown"})
        else:
            self.login_failures.add(1, {"failure.reason": failure_reason or "unknown"})

    def record_api_call(
        self,
        service: str,
        duration_ms: float,
        success: bool,
        status_code: Optional[int] = None,
        error: Optional[str] = None,
    ) -> None:
        attributes: Dict[str, Any] = {"api.service": service, "api.success": success}
        if status_code is not None:
            attributes["http.status_code"] = status_code
        self.api_calls.add(1, attributes)
        self.api_call_duration.record(duration_ms, attributes)
        if not success:
            self.api_errors.add(1, {"api.service": service, "error.type": error or "unknown"})

    def record_email(self, template_kind: str, success: bool, error: Optional[str] = None) -> None:
        if success:
            self.emails_sent.add(1, {"email.type": template_kind})
        else:
            self.email_failures.add(
                1, {"email.type": template_kind, "error.type": error or "unknown"}
            )
