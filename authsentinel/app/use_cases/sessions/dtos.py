"""
Session Management DTOs
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel

from authsentinel.domain.entities import Session


class SessionInfo(BaseModel):
    """One active session as shown in the device list"""

    id: str
    device: Optional[str] = None
    device_class: Optional[str] = None
    browser: Optional[str] = None
    os: Optional[str] = None
    ip_address: Optional[str] = None
    country: Optional[str] = None
    city: Optional[str] = None
    region: Optional[str] = None
    created_at: datetime
    last_active_at: datetime
    expires_at: datetime
    is_current: bool = False

    @classmethod
    def from_session(cls, session: Session, current_session_id: Optional[str]) -> "SessionInfo":
        return cls(
            id=str(session.id),
            device=session.device,
            device_class=session.device_class,
            browser=session.browser,
            os=session.os,
            ip_address=session.ip_address,
            country=session.country,
            city=session.city,
            region=session.region,
            created_at=session.created_at,
            last_active_at=session.updated_at,
            expires_at=session.expires_at,
            is_current=str(session.id) == current_session_id,
        )


class SessionListResponse(BaseModel):
    sessions: List[SessionInfo]


class RevokeSessionResponse(BaseModel):
    """Response for session revocation operations"""

    message: str
    revoked_count: int
