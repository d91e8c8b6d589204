"""
Authentication Use Case DTOs (Data Transfer Objects)

All Command and Response classes for auth domain.
Provides type safety and clear contracts between layers.
"""

from typing import Optional

from pydantic import BaseModel, EmailStr, Field

from authsentinel.domain.entities import Principal

PASSWORD_MIN_LENGTH = 8


# ============================================================================
# Command DTOs
# ============================================================================


class CredentialsCommand(BaseModel):
    """Email/password pair as submitted to sign-in"""

    email: EmailStr
    password: str = Field(..., min_length=PASSWORD_MIN_LENGTH)


class RegisterCommand(BaseModel):
    """Self-service registration intent"""

    email: EmailStr
    password: str = Field(..., min_length=PASSWORD_MIN_LENGTH)
    name: Optional[str] = Field(default=None, max_length=255)


# ============================================================================
# Response DTOs
# ============================================================================


class PrincipalInfo(BaseModel):
    """Principal information in authentication responses"""

    id: str
    email: str
    name: Optional[str] = None
    image: Optional[str] = None
    locale: str = "en"
    timezone: str = "UTC"

    @classmethod
    def from_principal(cls, principal: Principal) -> "PrincipalInfo":
        return cls(
            id=str(principal.id),
            email=principal.email,
            name=principal.name,
            image=principal.avatar,
            locale=principal.locale,
            timezone=principal.timezone,
        )


class AuthSuccess(BaseModel):
    """Response for password and provider sign-in"""

    principal: PrincipalInfo
    session_id: str
    access_token: str
    token_type: str = "bearer"


class RegisterResponse(BaseModel):
    """Response for registration use case"""

    principal: PrincipalInfo
    status: str
    message: str


class ResendVerificationResponse(BaseModel):
    """Response for resend verification use case (identical for every email)"""

    status: str = "sent"
    message: str = "If the account is awaiting verification, a new link has been sent"


class VerifyEmailResponse(BaseModel):
    """Response for email verification use case"""

    status: str
    message: str


class SessionClaimsResponse(BaseModel):
    """Current identity as carried by a reconciled token"""

    principal_id: str
    session_id: str
    email: Optional[str] = None
    locale: str = "en"
    timezone: str = "UTC"
    last_validity_check: int
