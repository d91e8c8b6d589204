"""
LinkedIdentity Entity

Binds a Principal to one external identity-provider account.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import Column, DateTime, Field, Index, SQLModel

from authsentinel.domain.base import utcnow


class LinkedIdentity(SQLModel, table=True):
    """
    LinkedIdentity entity - external provider account linked to a Principal.

    Business Rules:
    - (provider, provider_account_id) is unique
    - Created idempotently on the first successful provider callback
    - A Principal may own many linked identities
    - Provider tokens are opaque to this service
    """

    __tablename__ = "linked_identities"

    id: UUID = Field(default_factory=uuid4, primary_key=True)

    principal_id: UUID = Field(foreign_key="principals.id", nullable=False, index=True)

    provider: str = Field(max_length=64)  # e.g., "github", "google"
    provider_account_id: str = Field(max_length=255)
    type: str = Field(default="oauth", max_length=32)

    # Opaque provider token bundle
    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
    expires_at: Optional[int] = None
    token_type: Optional[str] = Field(default=None, max_length=64)
    scope: Optional[str] = None
    id_token: Optional[str] = None
    session_state: Optional[str] = None

    created_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime))

    __table_args__ = (
        Index(
            "idx_linked_identity_provider_account",
            "provider",
            "provider_account_id",
            unique=True,
        ),
    )
