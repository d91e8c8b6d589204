"""
Security Use Case DTOs
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel

from authsentinel.domain.entities import LoginAttempt


class LoginAttemptInfo(BaseModel):
    """One entry of a principal's sign-in history"""

    id: str
    success: bool
    failure_reason: Optional[str] = None
    ip_address: Optional[str] = None
    device: Optional[str] = None
    browser: Optional[str] = None
    os: Optional[str] = None
    country: Optional[str] = None
    city: Optional[str] = None
    region: Optional[str] = None
    created_at: datetime

    @classmethod
    def from_attempt(cls, attempt: LoginAttempt) -> "LoginAttemptInfo":
        return cls(
            id=str(attempt.id),
            success=attempt.success,
            failure_reason=attempt.failure_reason,
            ip_address=attempt.ip_address,
            device=attempt.device,
            browser=attempt.browser,
            os=attempt.os,
            country=attempt.country,
            city=attempt.city,
            region=attempt.region,
            created_at=attempt.created_at,
        )


class LoginHistoryResponse(BaseModel):
    attempts: List[LoginAttemptInfo]
