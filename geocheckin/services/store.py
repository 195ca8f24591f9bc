import logging
from typing import List, Optional, Sequence

from fastapi import Depends
from sqlalchemy import desc
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from geocheckin.database import get_db
from geocheckin.exceptions import DuplicateCheckInError, StoreError
from geocheckin.models.attendance import AttendanceRecord
from geocheckin.models.roster import RosterEntry
from geocheckin.models.sessions import AttendanceSession
from geocheckin.schemas.attendance import AttendanceStatusEnum

logger = logging.getLogger(__name__)


class AttendanceStore:
    """
    Document access for sessions, attendance records and the roster.

    Every method is a single round trip to the database. Nothing here spans
    more than one write, so callers must not assume cross-call atomicity.
    Database failures surface as StoreError and are never retried.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _commit(self, action: str) -> None:
        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Store write failed during {action}: {str(e)}")
            raise StoreError() from e

    async def add_session(self, session: AttendanceSession) -> AttendanceSession:
        self.db.add(session)
        await self._commit("add_session")
        await self.db.refresh(session)
        return session

    async def get_session(self, session_id: str) -> Optional[AttendanceSession]:
        try:
            result = await self.db.execute(
                select(AttendanceSession).where(AttendanceSession.id == session_id)
            )
        except SQLAlchemyError as e:
            logger.error(f"Store read failed for session {session_id}: {str(e)}")
            raise StoreError() from e
        return result.scalars().first()

    async def find_attendance(
        self,
        session_id: Optional[str] = None,
        student_id: Optional[str] = None,
        status: Optional[AttendanceStatusEnum] = None,
        limit: Optional[int] = None,
    ) -> List[AttendanceRecord]:
        query = select(AttendanceRecord)
        if session_id:
            query = query.where(AttendanceRecord.session_id == session_id)
        if student_id:
            query = query.where(AttendanceRecord.student_id == student_id)
        if status:
            query = query.where(AttendanceRecord.status == AttendanceStatusEnum(status).value)

        query = query.order_by(desc(AttendanceRecord.timestamp), AttendanceRecord.id)
        if limit:
            query = query.limit(limit)

        try:
            result = await self.db.execute(query)
        except SQLAlchemyError as e:
            logger.error(f"Store read failed for attendance query: {str(e)}")
            raise StoreError() from e
        return list(result.scalars().all())

    async def add_attendance(self, record: AttendanceRecord) -> AttendanceRecord:
        """
        Insert one attendance record.

        The partial unique index on (session_id, student_id) rejects a second
        present or absent record; that violation is reported as
        DuplicateCheckInError.
        """
        status = record.status
        self.db.add(record)
        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            if status in (AttendanceStatusEnum.present.value, AttendanceStatusEnum.absent.value):
                raise DuplicateCheckInError() from e
            logger.error(f"Store rejected attendance record: {str(e)}")
            raise StoreError() from e
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Store write failed during add_attendance: {str(e)}")
            raise StoreError() from e
        await self.db.refresh(record)
        return record

    async def add_attendance_batch(self, records: Sequence[AttendanceRecord]) -> int:
        if not records:
            return 0
        self.db.add_all(list(records))
        await self._commit("add_attendance_batch")
        return len(records)

    async def list_roster(self, course_id: Optional[str] = None) -> List[RosterEntry]:
        query = select(RosterEntry)
        if course_id:
            query = query.where(RosterEntry.course_id == course_id)
        query = query.order_by(RosterEntry.student_id)

        try:
            result = await self.db.execute(query)
        except SQLAlchemyError as e:
            logger.error(f"Store read failed for roster: {str(e)}")
            raise StoreError() from e
        return list(result.scalars().all())


# Dependency to get the attendance store
async def get_store(db: AsyncSession = Depends(get_db)) -> AttendanceStore:
    return AttendanceStore(db)
