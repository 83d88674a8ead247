"""Audit service — fire-and-forget audit events for booking actions."""

import logging

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from dormitory.models.audit_log import AuditLog

logger = logging.getLogger(__name__)


class AuditService:
    """Writes audit events in their own short transaction.

    Called after the booking transaction has committed. A failure here is
    logged and swallowed: it must never fail or undo the booking itself.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def record(
        self,
        action: str,
        entity_type: str,
        entity_id: str | None,
        actor: str,
        detail: str | None = None,
    ) -> bool:
        """Persist one audit event. Returns False if it could not be written."""
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    session.add(
                        AuditLog(
                            action=action,
                            entity_type=entity_type,
                            entity_id=entity_id,
                            actor=actor,
                            detail=detail,
                        )
                    )
        except Exception:
            logger.exception("Failed to write audit event %s %s:%s", action, entity_type, entity_id)
            return False

        logger.info("[audit] %s %s:%s by %s", action, entity_type, entity_id, actor)
        return True
