"""
Domain Entities

All domain entities organized by model.
Each entity in its own file for better maintainability.
"""

# Export all enums
from .enums import (
    PrincipalStatus,
    FailureReason,
    DeviceClass,
    NotificationKind,
)

# Export all entities
from .principal import Principal, normalize_email
from .linked_identity import LinkedIdentity
from .session import Session
from .login_attempt import LoginAttempt, UNKNOWN_PRINCIPAL

__all__ = [
    # Enums
    "PrincipalStatus",
    "FailureReason",
    "DeviceClass",
    "NotificationKind",
    # Entities
    "Principal",
    "LinkedIdentity",
    "Session",
    "LoginAttempt",
    # Helpers
    "normalize_email",
    "UNKNOWN_PRINCIPAL",
]
