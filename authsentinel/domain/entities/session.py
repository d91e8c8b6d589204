"""
Session Entity

Server-side, independently revocable record of a logged-in device.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import Column, DateTime, Field, Index, SQLModel

from authsentinel.domain.base import utcnow


class Session(SQLModel, table=True):
    """
    Session entity - one logged-in device/browser instance.

    Business Rules:
    - Exists iff the principal is logged in from that device
    - Deleting the row revokes access, whatever tokens still reference it
    - Expires after 30 days
    - updated_at is the last-activity timestamp
    """

    __tablename__ = "sessions"

    id: UUID = Field(default_factory=uuid4, primary_key=True)

    principal_id: UUID = Field(foreign_key="principals.id", nullable=False, index=True)

    # Client context captured at sign-in
    ip_address: Optional[str] = Field(default=None, max_length=64)
    user_agent: Optional[str] = Field(default=None, max_length=1024)
    device: Optional[str] = Field(default=None, max_length=64)
    device_class: Optional[str] = Field(default=None, max_length=16)
    browser: Optional[str] = Field(default=None, max_length=64)
    os: Optional[str] = Field(default=None, max_length=64)

    # Geolocation
    country: Optional[str] = Field(default=None, max_length=128)
    city: Optional[str] = Field(default=None, max_length=128)
    region: Optional[str] = Field(default=None, max_length=128)
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    # Timestamps
    created_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime))
    updated_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime))
    expires_at: datetime = Field(sa_column=Column(DateTime, nullable=False))

    __table_args__ = (
        Index("idx_session_expires_at", "expires_at"),
        Index("idx_session_principal_updated", "principal_id", "updated_at"),
    )
