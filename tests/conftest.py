from __future__ import annotations

import uuid
from typing import Optional

import pytest
from fastapi.testclient import TestClient

from geocheckin.exceptions import DuplicateCheckInError, StoreError
from geocheckin.models.attendance import AttendanceRecord
from geocheckin.models.roster import RosterEntry
from geocheckin.models.sessions import AttendanceSession
from geocheckin.schemas.attendance import AttendanceStatusEnum

SETTLED = (AttendanceStatusEnum.present.value, AttendanceStatusEnum.absent.value)


class FakeClock:
    def __init__(self, now: int = 1_700_000_000_000):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


class InMemoryStore:
    """Stand-in for AttendanceStore that enforces the same unique outcome rule."""

    def __init__(self):
        self.sessions: dict[str, AttendanceSession] = {}
        self.records: list[AttendanceRecord] = []
        self.roster: list[RosterEntry] = []
        self.writes = 0
        self.batch_writes = 0
        self.fail_writes = False
        self._record_id = 0

    def add_roster(self, student_id: str, name: str, course_id: str = "CS101") -> RosterEntry:
        entry = RosterEntry(student_id=student_id, name=name, course_id=course_id)
        self.roster.append(entry)
        return entry

    def _check_writable(self) -> None:
        if self.fail_writes:
            raise StoreError()

    def _insert(self, record: AttendanceRecord) -> None:
        if record.status in SETTLED and any(
            r.session_id == record.session_id and r.student_id == record.student_id and r.status in SETTLED
            for r in self.records
        ):
            raise DuplicateCheckInError()
        self._record_id += 1
        record.id = self._record_id
        self.records.append(record)

    async def add_session(self, session: AttendanceSession) -> AttendanceSession:
        self._check_writable()
        session.id = uuid.uuid4().hex
        self.sessions[session.id] = session
        self.writes += 1
        return session

    async def get_session(self, session_id: str) -> Optional[AttendanceSession]:
        return self.sessions.get(session_id)

    async def find_attendance(self, session_id=None, student_id=None, status=None, limit=None):
        items = [
            r for r in self.records
            if (not session_id or r.session_id == session_id)
            and (not student_id or r.student_id == student_id)
            and (not status or r.status == AttendanceStatusEnum(status).value)
        ]
        items.sort(key=lambda r: (-r.timestamp, r.id))
        return items[:limit] if limit else items

    async def add_attendance(self, record: AttendanceRecord) -> AttendanceRecord:
        self._check_writable()
        self._insert(record)
        self.writes += 1
        return record

    async def add_attendance_batch(self, records) -> int:
        if not records:
            return 0
        self._check_writable()
        for record in records:
            self._insert(record)
        self.writes += 1
        self.batch_writes += 1
        return len(records)

    async def list_roster(self, course_id=None):
        items = [e for e in self.roster if not course_id or e.course_id == course_id]
        return sorted(items, key=lambda e: e.student_id)

    def statuses_for(self, session_id: str) -> dict[str, list[str]]:
        out: dict[str, list[str]] = {}
        for r in self.records:
            if r.session_id == session_id:
                out.setdefault(r.student_id, []).append(r.status)
        return out


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def client(store):
    from geocheckin.main import app
    from geocheckin.services.store import get_store

    async def override_store():
        return store

    app.dependency_overrides[get_store] = override_store
    # Not entered as a context manager so the startup hook never touches a database
    yield TestClient(app)
    app.dependency_overrides.clear()
