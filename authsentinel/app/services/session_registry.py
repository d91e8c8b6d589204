"""
Session Registry

Server-side session records: create, list, validate, touch, revoke, expire.

State machine per session:
    created -> active (touched on use) -> {revoked | expired}
Both terminal states delete the row.
"""

import logging
from datetime import datetime, timedelta
from typing import Callable, List, Optional
from uuid import UUID

from authsentinel.app.services.telemetry import SecurityTelemetry
from authsentinel.app.services.unit_of_work import UnitOfWork
from authsentinel.domain.base import parse_uuid, utcnow
from authsentinel.domain.entities import Session
from authsentinel.domain.values import ClientContext, GeoLocation

logger = logging.getLogger(__name__)


class SessionRegistry:
    """
    Registry of revocable server-side sessions.

    Business Rules:
    - Sessions expire 30 days after creation (configurable)
    - Revocation checks ownership inside the DELETE itself
    - Expiry sweep is a single delete-where-expired statement
    - Listing returns the most recently touched session first
    """

    def __init__(
        self,
        uow: UnitOfWork,
        telemetry: Optional[SecurityTelemetry] = None,
        lifetime: timedelta = timedelta(days=30),
        clock: Callable[[], datetime] = utcnow,
    ):
        self.uow = uow
        self.telemetry = telemetry
        self.lifetime = lifetime
        self.clock = clock

    async def create(
        self,
        principal_id: UUID,
        context: Optional[ClientContext] = None,
        location: Optional[GeoLocation] = None,
    ) -> Session:
        """
        Create a session for an existing principal.

        Errors propagate: a token must never be issued without a backing row.
        """
        context = context or ClientContext()
        location = location or GeoLocation()
        now = self.clock()

        async with self.uow:
            session = Session(
                principal_id=principal_id,
                ip_address=context.ip_address,
                user_agent=context.user_agent,
                device=context.device,
                device_class=context.device_class,
                browser=context.browser,
                os=context.os,
                country=location.country,
                city=location.city,
                region=location.region,
                latitude=location.latitude,
                longitude=location.longitude,
                created_at=now,
                updated_at=now,
                expires_at=now + self.lifetime,
            )
            session = await self.uow.sessions.create(session)
            await self.uow.commit()

        logger.info("Session %s created for principal %s", session.id, principal_id)
        return session

    async def is_valid(self, session_id) -> bool:
        """False if the row is absent or expires_at <= now"""
        session_uuid = parse_uuid(session_id)
        if session_uuid is None:
            return False
        async with self.uow:
            return await self.uow.sessions.exists_unexpired(session_uuid, self.clock())

    async def touch(self, session_id) -> bool:
        session_uuid = parse_uuid(session_id)
        if session_uuid is None:
            return False
        async with self.uow:
            touched = await self.uow.sessions.touch(session_uuid, self.clock())
            await self.uow.commit()
            return touched

    async def list_for_principal(self, principal_id: UUID) -> List[Session]:
        async with self.uow:
            return await self.uow.sessions.get_active_by_principal_id(
                principal_id, self.clock()
            )

    async def revoke(self, principal_id: UUID, session_id) -> bool:
        """Delete the session only if the principal owns it"""
        session_uuid = parse_uuid(session_id)
        if session_uuid is None:
            return False
        async with self.uow:
            deleted = await self.uow.sessions.delete_owned(principal_id, session_uuid)
            await self.uow.commit()

        if deleted:
            logger.info("Session %s revoked by principal %s", session_uuid, principal_id)
            self._count_revoked(1, "revoke")
        else:
            logger.info(
                "Session %s not found or not owned by principal %s", session_uuid, principal_id
            )
        return deleted

    async def revoke_all_except(self, principal_id: UUID, keep_session_id=None) -> int:
        """Sign out everywhere, optionally keeping one session"""
        keep_uuid = parse_uuid(keep_session_id) if keep_session_id else None
        async with self.uow:
            count = await self.uow.sessions.delete_all_except(principal_id, keep_uuid)
            await self.uow.commit()

        logger.info("Revoked %s session(s) for principal %s", count, principal_id)
        self._count_revoked(count, "revoke_all")
        return count

    async def sweep_expired(self) -> int:
        """Idempotent; safe to overlap with itself and with normal traffic"""
        async with self.uow:
            count = await self.uow.sessions.delete_expired(self.clock())
            await self.uow.commit()

        logger.info("Swept %s expired session(s)", count)
        self._count_revoked(count, "expired")
        return count

    def _count_revoked(self, count: int, reason: str) -> None:
        if self.telemetry is not None and count:
            self.telemetry.sessions_revoked.add(count, {"revocation.reason": reason})
