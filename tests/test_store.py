import asyncio
from contextlib import asynccontextmanager

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from geocheckin.exceptions import DuplicateCheckInError, OutOfRangeError, StoreError
from geocheckin.models import Base
from geocheckin.models.attendance import AttendanceRecord
from geocheckin.models.roster import RosterEntry
from geocheckin.services.checkin import CheckInVerifier
from geocheckin.services.finalization import FinalizationProcessor
from geocheckin.services.sessions import SessionManager
from geocheckin.services.store import AttendanceStore

CAMPUS = {"latitude": 12.9716, "longitude": 77.5946}
FAR = {"latitude": 13.5, "longitude": 78.0}


@asynccontextmanager
async def sqlite_store():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    factory = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)
    try:
        async with factory() as db:
            yield AttendanceStore(db)
    finally:
        await engine.dispose()


async def seed_roster(store, *entries):
    store.db.add_all([RosterEntry(student_id=s, name=n, course_id=c) for s, n, c in entries])
    await store.db.commit()


async def open_session(store, clock):
    manager = SessionManager(store, clock=clock, default_threshold=100.0, ttl_minutes=15)
    session = await manager.create_session("CS101", location=CAMPUS)
    return session.id


def absent_record(session_id, student_id, clock):
    return AttendanceRecord(
        student_id=student_id, course_id="CS101", session_id=session_id,
        timestamp=clock.now, status="absent", verified=False,
    )


def test_concurrent_present_insert_reports_already_checked_in(clock):
    async def scenario():
        async with sqlite_store() as store:
            session_id = await open_session(store, clock)
            verifier = CheckInVerifier(store, clock=clock)
            first = await verifier.check_in(session_id, "s1", location=CAMPUS)
            assert first.record.status == "present"

            # The other request commits between our read and our write
            async def nothing_yet(**kwargs):
                return []

            store.find_attendance = nothing_yet
            second = await verifier.check_in(session_id, "s1", location=CAMPUS)
            del store.find_attendance

            assert second.already_checked_in is True
            assert second.record is None
            rows = await store.find_attendance(session_id=session_id, student_id="s1")
            assert [r.status for r in rows] == ["present"]

    asyncio.run(scenario())


def test_student_marked_absent_cannot_check_in_afterwards(clock):
    async def scenario():
        async with sqlite_store() as store:
            await seed_roster(store, ("s1", "Asha", "CS101"), ("s2", "Bilal", "CS101"))
            session_id = await open_session(store, clock)
            verifier = CheckInVerifier(store, clock=clock)
            await verifier.check_in(session_id, "s1", location=CAMPUS)

            assert await FinalizationProcessor(store, clock=clock).finalize_session(session_id) == 1

            late = await verifier.check_in(session_id, "s2", location=CAMPUS)
            assert late.already_checked_in is True
            rows = await store.find_attendance(session_id=session_id, student_id="s2")
            assert [r.status for r in rows] == ["absent"]

    asyncio.run(scenario())


def test_duplicate_absence_batch_is_rejected_and_store_recovers(clock):
    async def scenario():
        async with sqlite_store() as store:
            await seed_roster(store, ("s1", "Asha", "CS101"), ("s2", "Bilal", "CS101"))
            session_id = await open_session(store, clock)
            processor = FinalizationProcessor(store, clock=clock)
            assert await processor.finalize_session(session_id) == 2

            with pytest.raises(StoreError):
                await store.add_attendance_batch([absent_record(session_id, "s2", clock)])

            assert await processor.finalize_session(session_id) == 0
            rows = await store.find_attendance(session_id=session_id, status="absent")
            assert sorted(r.student_id for r in rows) == ["s1", "s2"]

    asyncio.run(scenario())


def test_single_absent_insert_conflict_maps_to_duplicate(clock):
    async def scenario():
        async with sqlite_store() as store:
            session_id = await open_session(store, clock)
            await store.add_attendance(absent_record(session_id, "s1", clock))

            with pytest.raises(DuplicateCheckInError):
                await store.add_attendance(absent_record(session_id, "s1", clock))

    asyncio.run(scenario())


def test_rejected_attempts_are_not_unique(clock):
    async def scenario():
        async with sqlite_store() as store:
            session_id = await open_session(store, clock)
            verifier = CheckInVerifier(store, clock=clock)
            for _ in range(2):
                with pytest.raises(OutOfRangeError):
                    await verifier.check_in(session_id, "s1", location=FAR)
                clock.advance(1000)

            rows = await store.find_attendance(session_id=session_id, student_id="s1")
            assert [r.status for r in rows] == ["rejected_out_of_range"] * 2
            assert all(r.distance_meters > 1000 for r in rows)

    asyncio.run(scenario())


def test_unknown_status_violates_check_constraint(clock):
    async def scenario():
        async with sqlite_store() as store:
            session_id = await open_session(store, clock)
            record = absent_record(session_id, "s1", clock)
            record.status = "late"

            with pytest.raises(StoreError):
                await store.add_attendance(record)
            assert await store.find_attendance(session_id=session_id) == []

    asyncio.run(scenario())


def test_attendance_query_filters_orders_and_limits(clock):
    async def scenario():
        async with sqlite_store() as store:
            session_id = await open_session(store, clock)
            other_id = await open_session(store, clock)
            for student_id in ("s1", "s2", "s3"):
                clock.advance(1000)
                await store.add_attendance(absent_record(session_id, student_id, clock))
            await store.add_attendance(absent_record(other_id, "s1", clock))

            rows = await store.find_attendance(session_id=session_id)
            assert [r.student_id for r in rows] == ["s3", "s2", "s1"]
            assert [r.student_id for r in await store.find_attendance(session_id=session_id, limit=1)] == ["s3"]
            assert len(await store.find_attendance(student_id="s1")) == 2
            assert await store.find_attendance(session_id=session_id, status="present") == []

    asyncio.run(scenario())


def test_roster_query(clock):
    async def scenario():
        async with sqlite_store() as store:
            await seed_roster(
                store,
                ("s2", "Bilal", "CS101"),
                ("m1", "Dana", "MATH200"),
                ("s1", "Asha", "CS101"),
            )

            cs = await store.list_roster(course_id="CS101")
            assert [(e.student_id, e.name) for e in cs] == [("s1", "Asha"), ("s2", "Bilal")]
            assert [e.student_id for e in await store.list_roster()] == ["m1", "s1", "s2"]

    asyncio.run(scenario())


def test_session_round_trip(clock):
    async def scenario():
        async with sqlite_store() as store:
            session_id = await open_session(store, clock)

            session = await store.get_session(session_id)
            assert len(session_id) == 32
            assert session.location == CAMPUS
            assert session.expires_at == clock.now + 900_000
            assert await store.get_session("missing") is None

    asyncio.run(scenario())
