"""
Domain Enums

All enumeration types used across domain entities and value objects.
"""

from enum import Enum


class PrincipalStatus(str, Enum):
    """Principal lifecycle status"""

    pending = "pending"
    active = "active"
    suspended = "suspended"


class FailureReason(str, Enum):
    """Closed taxonomy of authentication failure reasons"""

    user_not_found = "user_not_found"
    account_not_active = "account_not_active"
    password_not_set = "password_not_set"
    invalid_password = "invalid_password"
    invalid_input = "invalid_input"
    unknown_error = "unknown_error"


class DeviceClass(str, Enum):
    """Coarse device class derived from the user agent"""

    mobile = "Mobile"
    tablet = "Tablet"
    desktop = "Desktop"


class NotificationKind(str, Enum):
    """Security notification templates"""

    new_location_login = "new_location_login"
    failed_login_attempts = "failed_login_attempts"
    email_verification = "email_verification"
