"""
LoginAttempt Entity

Immutable log of every authentication attempt.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import Column, DateTime, Field, Index, SQLModel

from authsentinel.domain.base import utcnow

# Sentinel used by callers when the submitted email matched no principal.
# Stored as NULL principal_id.
UNKNOWN_PRINCIPAL = "unknown"


class LoginAttempt(SQLModel, table=True):
    """
    LoginAttempt entity - append-only record of one sign-in attempt.

    Business Rules:
    - Immutable (never updated or deleted by this service)
    - principal_id is NULL when the email did not resolve to a principal
    - failure_reason uses the closed FailureReason taxonomy
    - History is the single source of truth for anomaly detection
    """

    __tablename__ = "login_attempts"

    id: UUID = Field(default_factory=uuid4, primary_key=True)

    principal_id: Optional[UUID] = Field(default=None, index=True)
    email: str = Field(max_length=255)

    success: bool = Field(default=False)
    failure_reason: Optional[str] = Field(default=None, max_length=32)
    failure_detail: Optional[str] = Field(default=None, max_length=255)

    # Client context
    ip_address: Optional[str] = Field(default=None, max_length=64)
    user_agent: Optional[str] = Field(default=None, max_length=1024)
    device: Optional[str] = Field(default=None, max_length=64)
    browser: Optional[str] = Field(default=None, max_length=64)
    os: Optional[str] = Field(default=None, max_length=64)

    # Geolocation
    country: Optional[str] = Field(default=None, max_length=128)
    city: Optional[str] = Field(default=None, max_length=128)
    region: Optional[str] = Field(default=None, max_length=128)
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    created_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime))

    __table_args__ = (
        Index("idx_login_attempt_email_success_created", "email", "success", "created_at"),
        Index(
            "idx_login_attempt_principal_location",
            "principal_id",
            "success",
            "country",
            "city",
        ),
        Index("idx_login_attempt_created_at", "created_at"),
    )

    @property
    def principal_ref(self) -> str:
        return str(self.principal_id) if self.principal_id else UNKNOWN_PRINCIPAL
