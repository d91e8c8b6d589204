"""
Authentication Use Cases

Sign-in, registration, verification and per-request session reconciliation.
"""

from .authenticate_use_case import AuthenticateUseCase
from .oauth_sign_in_use_case import OAuthSignInUseCase
from .register_use_case import RegisterUseCase
from .resend_verification_use_case import ResendVerificationUseCase
from .verify_email_use_case import VerifyEmailUseCase
from .reconcile_session_use_case import ReconcileSessionUseCase
from .session_issuer import SessionIssuer
from .dtos import (
    AuthSuccess,
    CredentialsCommand,
    PrincipalInfo,
    RegisterCommand,
    RegisterResponse,
    ResendVerificationResponse,
    SessionClaimsResponse,
    VerifyEmailResponse,
)

__all__ = [
    # Use Cases
    "AuthenticateUseCase",
    "OAuthSignInUseCase",
    "RegisterUseCase",
    "ResendVerificationUseCase",
    "VerifyEmailUseCase",
    "ReconcileSessionUseCase",
    "SessionIssuer",
    # DTOs - Commands
    "CredentialsCommand",
    "RegisterCommand",
    # DTOs - Responses
    "AuthSuccess",
    "PrincipalInfo",
    "RegisterResponse",
    "ResendVerificationResponse",
    "SessionClaimsResponse",
    "VerifyEmailResponse",
]
