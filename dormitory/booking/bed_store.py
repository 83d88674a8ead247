"""Bed state store — the two concurrency primitives every engine operation uses.

``try_transition`` is a single conditional UPDATE that reports whether it
applied. It does not read first, but it still waits for a row lock held by
another transaction, bounded by the lock timeout (PostgreSQL
``lock_timeout``, SQLite busy timeout).
``lock_for_update`` takes an exclusive row lock (``SELECT ... FOR UPDATE``)
that lives until the enclosing transaction commits or rolls back; use it when
the decision depends on more than the bed's own status.
"""

import logging
import uuid

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from dormitory.models.bed import Bed
from dormitory.models.enums import BedStatus

logger = logging.getLogger(__name__)


class BedStateStore:
    """Status reads and transitions for bed rows."""

    async def get(self, session: AsyncSession, bed_id: uuid.UUID, refresh: bool = False) -> Bed | None:
        """Plain read, no lock. ``refresh`` re-reads a row already in the session."""
        return await session.get(Bed, bed_id, populate_existing=refresh)

    async def lock_for_update(self, session: AsyncSession, bed_id: uuid.UUID) -> Bed | None:
        """Lock the bed row exclusively and return its current state.

        Blocks while another transaction holds the lock. ``populate_existing``
        makes sure a copy already in the identity map is refreshed with the
        values read under the lock.
        """
        result = await session.execute(
            select(Bed)
            .where(Bed.id == bed_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def try_transition(
        self,
        session: AsyncSession,
        bed_id: uuid.UUID,
        from_status: BedStatus,
        to_status: BedStatus,
    ) -> bool:
        """Set ``to_status`` iff the bed is currently ``from_status``.

        Returns False when the bed is missing or its status already changed;
        that is a lost race, not an error. Bumps the version counter so any
        stale ORM copy of the row fails its next conditional flush.
        """
        result = await session.execute(
            update(Bed)
            .where(Bed.id == bed_id, Bed.status == from_status)
            .values(status=to_status, version=Bed.version + 1)
            .execution_options(synchronize_session=False)
        )
        applied = result.rowcount == 1
        logger.debug(
            "try_transition bed=%s %s->%s applied=%s",
            bed_id,
            from_status.value,
            to_status.value,
            applied,
        )
        return applied
