import logging
from typing import Callable, Optional

from geocheckin.config import settings
from geocheckin.exceptions import InvalidSessionError, MissingSessionIdError
from geocheckin.models.attendance import AttendanceRecord
from geocheckin.schemas.attendance import AttendanceStatusEnum
from geocheckin.services.clock import now_ms

logger = logging.getLogger(__name__)


class FinalizationProcessor:
    """
    Turns "did not check in" into explicit absence records.

    Absentees are the roster minus every student who is already present or
    already marked absent for the session, so running it again adds nothing.
    """

    def __init__(
        self,
        store,
        *,
        clock: Callable[[], int] = now_ms,
        filter_roster_by_course: Optional[bool] = None,
    ):
        self._store = store
        self._clock = clock
        if filter_roster_by_course is None:
            filter_roster_by_course = settings.FINALIZE_FILTER_ROSTER_BY_COURSE
        self._filter_roster_by_course = filter_roster_by_course

    async def finalize_session(self, session_id: Optional[str]) -> int:
        if not session_id:
            raise MissingSessionIdError()

        session = await self._store.get_session(session_id)
        if session is None:
            raise InvalidSessionError()

        records = await self._store.find_attendance(session_id=session_id)
        roster = await self._store.list_roster(
            course_id=session.course_id if self._filter_roster_by_course else None
        )

        settled = {
            r.student_id
            for r in records
            if r.status in (AttendanceStatusEnum.present.value, AttendanceStatusEnum.absent.value)
        }

        finalized_at = self._clock()
        absents = []
        for entry in roster:
            if entry.student_id in settled:
                continue
            # Guard against the same student listed under several courses
            settled.add(entry.student_id)
            absents.append(
                AttendanceRecord(
                    student_id=entry.student_id,
                    student_name=entry.name,
                    course_id=entry.course_id,
                    session_id=session_id,
                    timestamp=finalized_at,
                    status=AttendanceStatusEnum.absent.value,
                    verified=False,
                )
            )

        added = await self._store.add_attendance_batch(absents)
        logger.info(
            f"Session finalized: {session_id} [roster: {len(roster)}] "
            f"[absents added: {added}]"
        )
        return added
