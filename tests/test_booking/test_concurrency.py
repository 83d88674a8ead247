"""Races between engine operations on the same bed, application or student.

Each engine call runs in its own session and transaction, so
``asyncio.gather`` puts them in genuine contention on the database.
"""

import asyncio

from sqlalchemy import func, select, update

from dormitory.booking.errors import AlreadyProcessed, BedNotAvailable, NotCheckedIn
from dormitory.models import Application, ApplicationStatus, Bed, BedStatus, OccupancyRecord, OccupancyStatus, Room


def _split(results):
    successes = [r for r in results if not isinstance(r, BaseException)]
    failures = [r for r in results if isinstance(r, BaseException)]
    return successes, failures


class TestReservationRace:
    """Many students racing for one bed: exactly one wins."""

    async def test_only_one_reservation_wins(self, booking_engine, session_factory, dorm, make_students):
        students = await make_students(8)
        bed_id = dorm.bed_ids[0]

        results = await asyncio.gather(
            *(booking_engine.reserve(student_id, bed_id) for student_id in students),
            return_exceptions=True,
        )

        successes, failures = _split(results)
        assert len(successes) == 1
        assert all(isinstance(f, BedNotAvailable) for f in failures), failures
        async with session_factory() as session:
            pending = (
                await session.execute(
                    select(func.count()).select_from(Application).where(Application.bed_id == bed_id)
                )
            ).scalar_one()
            bed = await session.get(Bed, bed_id)
        assert pending == 1
        assert bed.status == BedStatus.RESERVED

    async def test_one_student_racing_for_two_beds_gets_one(self, booking_engine, session_factory, dorm):
        student_id = dorm.student_ids[0]

        results = await asyncio.gather(
            booking_engine.reserve(student_id, dorm.bed_ids[0]),
            booking_engine.reserve(student_id, dorm.bed_ids[1]),
            return_exceptions=True,
        )

        successes, failures = _split(results)
        assert len(successes) == 1
        assert len(failures) == 1
        async with session_factory() as session:
            reserved = (
                await session.execute(
                    select(func.count()).select_from(Bed).where(Bed.status == BedStatus.RESERVED)
                )
            ).scalar_one()
        assert reserved == 1


class TestDirectCheckInRace:
    """Walk-in check-ins racing for one bed."""

    async def test_only_one_check_in_wins(self, booking_engine, session_factory, dorm, make_students):
        students = await make_students(10)
        bed_id = dorm.bed_ids[0]

        results = await asyncio.gather(
            *(booking_engine.direct_check_in(student_id, bed_id, "mgr-1") for student_id in students),
            return_exceptions=True,
        )

        successes, failures = _split(results)
        assert len(successes) == 1
        assert all(isinstance(f, BedNotAvailable) for f in failures), failures
        async with session_factory() as session:
            room = await session.get(Room, dorm.room_id)
            active = (
                await session.execute(
                    select(func.count())
                    .select_from(OccupancyRecord)
                    .where(OccupancyRecord.bed_id == bed_id, OccupancyRecord.status == OccupancyStatus.ACTIVE)
                )
            ).scalar_one()
        assert room.current_occupancy == 1
        assert active == 1

    async def test_check_ins_to_different_beds_all_counted(self, booking_engine, session_factory, dorm):
        results = await asyncio.gather(
            *(
                booking_engine.direct_check_in(student_id, bed_id, "mgr-1")
                for student_id, bed_id in zip(dorm.student_ids, dorm.bed_ids)
            ),
            return_exceptions=True,
        )

        successes, failures = _split(results)
        assert failures == []
        assert len(successes) == 4
        async with session_factory() as session:
            room = await session.get(Room, dorm.room_id)
        assert room.current_occupancy == 4

    async def test_check_in_against_reservation(self, booking_engine, session_factory, dorm):
        """Approve and a walk-in on the same reserved bed: the walk-in loses."""
        bed_id = dorm.bed_ids[0]
        application = await booking_engine.reserve(dorm.student_ids[0], bed_id)

        approve_result, check_in_result = await asyncio.gather(
            booking_engine.approve(application.id, "mgr-1"),
            booking_engine.direct_check_in(dorm.student_ids[1], bed_id, "mgr-2"),
            return_exceptions=True,
        )

        assert not isinstance(approve_result, BaseException)
        assert isinstance(check_in_result, BedNotAvailable)
        async with session_factory() as session:
            room = await session.get(Room, dorm.room_id)
        assert room.current_occupancy == 1


class TestDecisionRace:
    """Concurrent decisions on the same application: exactly one applies."""

    async def test_approve_vs_reject(self, booking_engine, session_factory, dorm):
        application = await booking_engine.reserve(dorm.student_ids[0], dorm.bed_ids[0])

        results = await asyncio.gather(
            booking_engine.approve(application.id, "mgr-1"),
            booking_engine.reject(application.id, None, "mgr-2"),
            return_exceptions=True,
        )

        successes, failures = _split(results)
        assert len(successes) == 1
        assert len(failures) == 1
        assert isinstance(failures[0], AlreadyProcessed)

        async with session_factory() as session:
            stored = await session.get(Application, application.id)
            bed = await session.get(Bed, dorm.bed_ids[0])
            room = await session.get(Room, dorm.room_id)
        if stored.status == ApplicationStatus.APPROVED:
            assert bed.status == BedStatus.OCCUPIED
            assert room.current_occupancy == 1
        else:
            assert bed.status == BedStatus.AVAILABLE
            assert room.current_occupancy == 0

    async def test_double_approve(self, booking_engine, session_factory, dorm):
        application = await booking_engine.reserve(dorm.student_ids[0], dorm.bed_ids[0])

        results = await asyncio.gather(
            *(booking_engine.approve(application.id, f"mgr-{n}") for n in range(3)),
            return_exceptions=True,
        )

        successes, failures = _split(results)
        assert len(successes) == 1
        assert all(isinstance(f, AlreadyProcessed) for f in failures)
        async with session_factory() as session:
            room = await session.get(Room, dorm.room_id)
            records = (
                await session.execute(select(func.count()).select_from(OccupancyRecord))
            ).scalar_one()
        assert room.current_occupancy == 1
        assert records == 1


class TestCheckOutRace:
    async def test_double_check_out(self, booking_engine, session_factory, dorm):
        await booking_engine.direct_check_in(dorm.student_ids[0], dorm.bed_ids[0], "mgr-1")
        await booking_engine.direct_check_in(dorm.student_ids[1], dorm.bed_ids[1], "mgr-1")

        results = await asyncio.gather(
            booking_engine.check_out(dorm.student_ids[0], "mgr-1"),
            booking_engine.check_out(dorm.student_ids[0], "mgr-2"),
            return_exceptions=True,
        )

        successes, failures = _split(results)
        assert len(successes) == 1
        assert isinstance(failures[0], NotCheckedIn)
        async with session_factory() as session:
            room = await session.get(Room, dorm.room_id)
        assert room.current_occupancy == 1

    async def test_check_out_and_check_in_interleave(self, booking_engine, session_factory, dorm):
        """A released bed can be taken in the same burst; the counter stays exact."""
        await booking_engine.direct_check_in(dorm.student_ids[0], dorm.bed_ids[0], "mgr-1")

        await asyncio.gather(
            booking_engine.check_out(dorm.student_ids[0], "mgr-1"),
            booking_engine.direct_check_in(dorm.student_ids[1], dorm.bed_ids[1], "mgr-1"),
            booking_engine.direct_check_in(dorm.student_ids[2], dorm.bed_ids[2], "mgr-1"),
        )

        report = await booking_engine.reconcile_occupancy()
        assert not report.changed
        async with session_factory() as session:
            room = await session.get(Room, dorm.room_id)
        assert room.current_occupancy == 2


class TestReconcileDuringBookings:
    """Reconciliation racing check-ins and check-outs leaves an exact counter."""

    async def test_reconcile_inside_the_race(self, booking_engine, session_factory, dorm):
        await booking_engine.direct_check_in(dorm.student_ids[0], dorm.bed_ids[0], "mgr-1")
        async with session_factory.begin() as session:
            await session.execute(update(Room).where(Room.id == dorm.room_id).values(current_occupancy=3))

        results = await asyncio.gather(
            booking_engine.reconcile_occupancy(),
            booking_engine.direct_check_in(dorm.student_ids[1], dorm.bed_ids[1], "mgr-1"),
            booking_engine.check_out(dorm.student_ids[0], "mgr-1"),
            booking_engine.reconcile_occupancy(),
            booking_engine.direct_check_in(dorm.student_ids[2], dorm.bed_ids[2], "mgr-1"),
            return_exceptions=True,
        )

        successes, failures = _split(results)
        assert failures == []
        assert len(successes) == 5
        async with session_factory() as session:
            room = await session.get(Room, dorm.room_id)
            occupied = (
                await session.execute(
                    select(func.count())
                    .select_from(Bed)
                    .where(Bed.room_id == dorm.room_id, Bed.status == BedStatus.OCCUPIED)
                )
            ).scalar_one()
        assert occupied == 2
        assert room.current_occupancy == occupied
