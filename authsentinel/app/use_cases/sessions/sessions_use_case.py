"""
Sessions Use Case

Self-service session management: list devices, sign out one device, sign
out everywhere else, sign out here.
"""

import logging
from typing import Optional
from uuid import UUID

from authsentinel.app.services.session_registry import SessionRegistry
from authsentinel.libs.result import Error, Result, Return
from .dtos import RevokeSessionResponse, SessionInfo, SessionListResponse

logger = logging.getLogger(__name__)


class SessionsUseCase:
    """
    Use case for managing a principal's own sessions.

    Business Rules:
    - A principal only ever sees or revokes its own sessions
    - Revoking someone else's session id looks exactly like revoking an
      unknown one (SESSION_NOT_FOUND)
    - Logout is idempotent
    """

    def __init__(self, registry: SessionRegistry):
        self.registry = registry

    async def list_sessions(
        self, principal_id: UUID, current_session_id: Optional[str] = None
    ) -> Result[SessionListResponse]:
        sessions = await self.registry.list_for_principal(principal_id)
        return Return.ok(
            SessionListResponse(
                sessions=[SessionInfo.from_session(s, current_session_id) for s in sessions]
            )
        )

    async def revoke_session(
        self, principal_id: UUID, session_id: str
    ) -> Result[RevokeSessionResponse]:
        revoked = await self.registry.revoke(principal_id, session_id)
        if not revoked:
            return Return.err(Error("SESSION_NOT_FOUND", "Session not found"))
        return Return.ok(
            RevokeSessionResponse(message="Session revoked successfully", revoked_count=1)
        )

    async def revoke_all_other_sessions(
        self, principal_id: UUID, current_session_id: str
    ) -> Result[RevokeSessionResponse]:
        count = await self.registry.revoke_all_except(principal_id, current_session_id)
        return Return.ok(
            RevokeSessionResponse(
                message=f"Successfully revoked {count} other session(s)",
                revoked_count=count,
            )
        )

    async def logout(
        self, principal_id: UUID, current_session_id: str
    ) -> Result[RevokeSessionResponse]:
        revoked = await self.registry.revoke(principal_id, current_session_id)
        logger.info("Principal %s logged out of session %s", principal_id, current_session_id)
        return Return.ok(
            RevokeSessionResponse(message="Logged out", revoked_count=1 if revoked else 0)
        )
