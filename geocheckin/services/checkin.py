import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional

from geocheckin.exceptions import (
    DuplicateCheckInError,
    InvalidSessionError,
    LocationRequiredError,
    OutOfRangeError,
    ParameterError,
    SessionExpiredError,
    SessionMissingGeofenceError,
)
from geocheckin.models.attendance import AttendanceRecord
from geocheckin.schemas.attendance import AttendanceStatusEnum
from geocheckin.services.clock import now_ms
from geocheckin.services.gps import is_within_radius, parse_location

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CheckInResult:
    record: Optional[AttendanceRecord]
    distance_meters: Optional[float] = None
    already_checked_in: bool = False

    @property
    def verified(self) -> bool:
        return bool(self.record is not None and self.record.verified)


class CheckInVerifier:
    """
    Classifies a check-in attempt and records it.

    The steps run in a fixed order and the first failing one decides the
    outcome. Attempts rejected after the duplicate check are persisted
    before the error is raised, so out-of-range and location-less attempts
    remain available for audit.
    """

    def __init__(self, store, *, clock: Callable[[], int] = now_ms):
        self._store = store
        self._clock = clock

    async def check_in(
        self,
        session_token: Optional[str],
        student_id: Optional[str],
        student_name: Optional[str] = None,
        location: Any = None,
    ) -> CheckInResult:
        if not session_token or not student_id:
            raise ParameterError("sessionToken and studentId required")

        session = await self._store.get_session(session_token)
        if session is None:
            raise InvalidSessionError()

        # A rolled back write expires loaded rows, so only these copies are
        # read once the store has been written to
        session_id = session.id
        course_id = session.course_id
        expires_at = session.expires_at
        center = parse_location(session.location)
        threshold = session.threshold_meters

        now = self._clock()
        if expires_at is not None and now > expires_at:
            raise SessionExpiredError()

        existing = await self._store.find_attendance(
            session_id=session_id,
            student_id=student_id,
            status=AttendanceStatusEnum.present,
            limit=1,
        )
        if existing:
            logger.info(f"Duplicate check-in ignored: student {student_id} [session: {session_id}]")
            return CheckInResult(record=existing[0], already_checked_in=True)

        def build(status: AttendanceStatusEnum, distance: Optional[float] = None) -> AttendanceRecord:
            return AttendanceRecord(
                student_id=student_id,
                student_name=student_name,
                course_id=course_id,
                session_id=session_id,
                timestamp=now,
                status=status.value,
                verified=status is AttendanceStatusEnum.present,
                distance_meters=distance,
            )

        client_point = parse_location(location)
        if client_point is None:
            await self._store.add_attendance(build(AttendanceStatusEnum.rejected_no_location))
            logger.info(f"Check-in rejected, no location: student {student_id} [session: {session_id}]")
            raise LocationRequiredError()

        if center is None:
            await self._store.add_attendance(build(AttendanceStatusEnum.rejected_no_session_location))
            logger.info(f"Check-in rejected, session has no location: student {student_id} [session: {session_id}]")
            raise SessionMissingGeofenceError()

        within, distance = is_within_radius(client_point[0], client_point[1], center[0], center[1], threshold)
        if not within:
            await self._store.add_attendance(build(AttendanceStatusEnum.rejected_out_of_range, distance))
            logger.info(
                f"Check-in rejected, out of range: student {student_id} [session: {session_id}] "
                f"[distance: {distance:.1f}m] [threshold: {threshold}m]"
            )
            raise OutOfRangeError(distance_meters=distance, threshold=threshold)

        try:
            record = await self._store.add_attendance(build(AttendanceStatusEnum.present, distance))
        except DuplicateCheckInError:
            # Another present or absent row for this student won the unique index
            logger.info(f"Concurrent duplicate check-in: student {student_id} [session: {session_id}]")
            return CheckInResult(record=None, already_checked_in=True)

        logger.info(f"Check-in accepted: student {student_id} [session: {session_id}] [distance: {distance:.1f}m]")
        return CheckInResult(record=record, distance_meters=distance)
