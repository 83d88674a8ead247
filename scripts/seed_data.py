"""Seed the database with sample dormitory data.

Creates two buildings with a handful of rooms (one available bed per unit
of capacity) and a set of students without a bed.

Run from the repository root:
    python -m scripts.seed_data
"""

import asyncio
import sys
from pathlib import Path

# Add the repo root to path so imports work when run as a script
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from sqlalchemy import delete

from dormitory.booking.catalog import create_room_with_beds
from dormitory.database import async_session_factory
from dormitory.models import (
    Application,
    AuditLog,
    Bed,
    Building,
    OccupancyRecord,
    Room,
    Student,
)

# ---------------------------------------------------------------------------
# Seed data definitions
# ---------------------------------------------------------------------------

BUILDINGS = [
    {
        "name": "North Hall",
        "location": "North campus, Block A",
        "manager_name": "Li Wei",
        "manager_phone": "+86 10 5555 0101",
        "rooms": [
            ("101", 4, "standard"),
            ("102", 4, "standard"),
            ("201", 2, "double"),
            ("202", 1, "single"),
        ],
    },
    {
        "name": "South Hall",
        "location": "South campus, Block C",
        "manager_name": "Zhang Min",
        "manager_phone": "+86 10 5555 0202",
        "rooms": [
            ("A1", 6, "dormitory"),
            ("A2", 6, "dormitory"),
            ("B1", 2, "double"),
        ],
    },
]

STUDENTS = [
    {"id": "S2024001", "name": "Chen Jie", "email": "chen.jie@campus.edu", "gender": "male", "major": "Physics"},
    {"id": "S2024002", "name": "Wang Fang", "email": "wang.fang@campus.edu", "gender": "female", "major": "History"},
    {"id": "S2024003", "name": "Liu Yang", "email": "liu.yang@campus.edu", "gender": "male", "major": "Economics"},
    {"id": "S2024004", "name": "Zhao Lin", "email": None, "gender": "female", "major": "Mathematics"},
    {"id": "S2024005", "name": "Sun Hao", "email": "sun.hao@campus.edu", "gender": "male", "major": "Chemistry"},
    {"id": "S2024006", "name": "Zhou Xin", "email": "zhou.xin@campus.edu", "gender": "female", "major": "Biology"},
]


async def seed() -> None:
    """Populate the database with sample buildings, rooms, beds and students.

    Idempotent: wipes all booking data first, then re-seeds.
    """
    async with async_session_factory() as session:
        # Children first so foreign keys never dangle
        for model in (AuditLog, OccupancyRecord, Application, Bed, Room, Student, Building):
            await session.execute(delete(model))
        await session.flush()

        bed_count = 0
        room_count = 0
        for building_data in BUILDINGS:
            building = Building(**{k: v for k, v in building_data.items() if k != "rooms"})
            session.add(building)
            await session.flush()
            print(f"🏢 {building.name} — {building.location}")

            for label, capacity, room_type in building_data["rooms"]:
                await create_room_with_beds(session, building, label, capacity, room_type=room_type)
                room_count += 1
                bed_count += capacity
                print(f"   🛏  Room {label} ({room_type}, {capacity} beds)")

        for student_data in STUDENTS:
            session.add(Student(**student_data))
        await session.flush()
        await session.commit()

        print()
        print("=" * 60)
        print("📊 Seed Summary")
        print("=" * 60)
        print(f"   Buildings: {len(BUILDINGS)}")
        print(f"   Rooms:     {room_count}")
        print(f"   Beds:      {bed_count}")
        print(f"   Students:  {len(STUDENTS)}")
        print("=" * 60)


if __name__ == "__main__":
    asyncio.run(seed())
