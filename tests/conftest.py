"""Shared test configuration and fixtures.

Every test gets a fresh SQLite database file under ``tmp_path``. The engine
built by ``dormitory.database.build_engine`` opens each transaction with
``BEGIN IMMEDIATE``, so concurrent engine calls in one test really queue on
the database write lock instead of interleaving.

Do not hold a session open across an engine call: the open transaction keeps
the write lock and the engine call would wait for it.
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./dormitory_dev.db")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-do-not-use")
os.environ.setdefault("ENVIRONMENT", "test")

import uuid  # noqa: E402
from collections.abc import AsyncGenerator, Awaitable, Callable  # noqa: E402
from dataclasses import dataclass  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy import select  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker  # noqa: E402

from dormitory.api.deps import get_booking_engine, get_notification_dispatcher  # noqa: E402
from dormitory.auth.jwt import create_principal_token  # noqa: E402
from dormitory.booking.catalog import create_room_with_beds  # noqa: E402
from dormitory.booking.engine import BookingEngine  # noqa: E402
from dormitory.database import Base, build_engine, build_session_factory, get_db  # noqa: E402
from dormitory.main import app  # noqa: E402
from dormitory.models import Bed, Building, Student  # noqa: E402
from dormitory.services.audit_service import AuditService  # noqa: E402
from dormitory.services.notification_service import NotificationDispatcher  # noqa: E402

# ---------------------------------------------------------------------------
# Per-test database
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def test_engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    """Create a throwaway SQLite database with all tables."""
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'dormitory_test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(test_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return build_session_factory(test_engine)


@pytest.fixture
def audit(session_factory) -> AuditService:
    return AuditService(session_factory)


@pytest.fixture
def booking_engine(session_factory, audit: AuditService) -> BookingEngine:
    """Booking engine on the test database, retrying without backoff."""
    return BookingEngine(session_factory, audit=audit, retry_backoff_seconds=0)


# ---------------------------------------------------------------------------
# Seed data: one building, one room of four beds, a handful of students
# ---------------------------------------------------------------------------


@dataclass
class Dorm:
    building_id: uuid.UUID
    building_name: str
    room_id: uuid.UUID
    room_label: str
    bed_ids: list[uuid.UUID]
    student_ids: list[str]


@pytest.fixture
def make_students(session_factory) -> Callable[..., Awaitable[list[str]]]:
    """Return a coroutine function that inserts ``count`` students without a bed."""

    async def _make(count: int, with_email: bool = True) -> list[str]:
        unique = uuid.uuid4().hex[:6].upper()
        ids = [f"S{unique}{n:02d}" for n in range(count)]
        async with session_factory.begin() as session:
            for student_id in ids:
                session.add(
                    Student(
                        id=student_id,
                        name=f"Student {student_id}",
                        email=f"{student_id.lower()}@campus.test" if with_email else None,
                    )
                )
        return ids

    return _make


@pytest_asyncio.fixture
async def dorm(session_factory, make_students) -> Dorm:
    """North Hall room 101 with four available beds, plus six students."""
    async with session_factory.begin() as session:
        building = Building(name="North Hall", location="North campus")
        session.add(building)
        await session.flush()
        room = await create_room_with_beds(session, building, "101", 4, room_type="standard")
        result = await session.execute(select(Bed.id).where(Bed.room_id == room.id).order_by(Bed.label))
        bed_ids = list(result.scalars().all())
        building_id, building_name, room_id, room_label = building.id, building.name, room.id, room.label

    return Dorm(
        building_id=building_id,
        building_name=building_name,
        room_id=room_id,
        room_label=room_label,
        bed_ids=bed_ids,
        student_ids=await make_students(6),
    )


# ---------------------------------------------------------------------------
# HTTP client and tokens
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def client(session_factory, booking_engine: BookingEngine) -> AsyncGenerator[AsyncClient, None]:
    """Provide an httpx AsyncClient wired to the test database and engine."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_booking_engine] = lambda: booking_engine
    app.dependency_overrides[get_notification_dispatcher] = lambda: NotificationDispatcher(enabled=True)

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def make_headers() -> Callable[[str, str], dict[str, str]]:
    """Return a function building Authorization headers for ``(principal_id, role)``."""

    def _make(principal_id: str, role: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_principal_token(principal_id, role)}"}

    return _make


@pytest.fixture
def manager_headers(make_headers) -> dict[str, str]:
    return make_headers("mgr-001", "manager")


@pytest.fixture
def admin_headers(make_headers) -> dict[str, str]:
    return make_headers("admin-001", "admin")
