"""
Principal Entity

Represents a registered user account.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import Column, DateTime, Field, Index, SQLModel

from authsentinel.domain.base import utcnow
from .enums import PrincipalStatus


def normalize_email(email: str) -> str:
    return email.strip().lower()


class Principal(SQLModel, table=True):
    """
    Principal entity - a registered user.

    Business Rules:
    - Email is unique and stored lower-cased
    - password_hash is NULL for accounts created through an identity provider
    - status moves pending -> active on email verification
    - Never hard-deleted while sessions reference it
    """

    __tablename__ = "principals"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    email: str = Field(unique=True, index=True, max_length=255)
    password_hash: Optional[str] = Field(default=None, max_length=60)  # Bcrypt output

    name: Optional[str] = Field(default=None, max_length=255)
    avatar: Optional[str] = Field(default=None, max_length=1024)

    status: PrincipalStatus = Field(default=PrincipalStatus.pending)

    # Email verification
    email_verified_at: Optional[datetime] = Field(
        default=None, sa_column=Column(DateTime)
    )
    email_verification_token: Optional[str] = Field(
        default=None, unique=True, index=True, max_length=64
    )
    email_verification_expires_at: Optional[datetime] = Field(
        default=None, sa_column=Column(DateTime)
    )

    locale: str = Field(default="en", max_length=16)
    timezone: str = Field(default="UTC", max_length=64)

    # Timestamps
    created_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime))
    updated_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime))
    last_login_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime))

    __table_args__ = (Index("idx_principal_status", "status"),)
