import logging
from typing import Any, Callable, Optional

from geocheckin.config import settings
from geocheckin.exceptions import InvalidSessionError, MissingSessionIdError, ParameterError
from geocheckin.models.sessions import AttendanceSession
from geocheckin.services.clock import now_ms
from geocheckin.services.gps import is_number, parse_location

logger = logging.getLogger(__name__)


def resolve_threshold(value: Any, default: float) -> float:
    if is_number(value):
        return float(value)
    return default


class SessionManager:
    """Creates and describes geofenced attendance sessions."""

    def __init__(
        self,
        store,
        *,
        clock: Callable[[], int] = now_ms,
        default_threshold: Optional[float] = None,
        ttl_minutes: Optional[int] = None,
    ):
        self._store = store
        self._clock = clock
        self._default_threshold = settings.DEFAULT_THRESHOLD_METERS if default_threshold is None else default_threshold
        self._ttl_minutes = settings.SESSION_TTL_MINUTES if ttl_minutes is None else ttl_minutes

    async def create_session(
        self,
        course_id: Optional[str],
        start_ts: Optional[int] = None,
        expires_at: Optional[int] = None,
        location: Any = None,
        threshold_meters: Any = None,
    ) -> AttendanceSession:
        """
        Persist a new session and return it.

        The store assigns the identifier, which is also the token students
        check in with. Expiry defaults to creation time plus the configured
        TTL; it is not checked against the start time.
        """
        if not course_id:
            raise ParameterError("courseId required")

        created_at = self._clock()
        center = parse_location(location)
        if location is not None and center is None:
            logger.warning(f"Ignoring malformed location for new session of course {course_id}")

        session = AttendanceSession(
            course_id=course_id,
            start_ts=created_at if start_ts is None else start_ts,
            expires_at=created_at + self._ttl_minutes * 60 * 1000 if expires_at is None else expires_at,
            latitude=center[0] if center else None,
            longitude=center[1] if center else None,
            threshold_meters=resolve_threshold(threshold_meters, self._default_threshold),
            created_at=created_at,
        )
        session = await self._store.add_session(session)

        logger.info(
            f"Session created: {session.id} [course: {course_id}] "
            f"[geofence: {'yes' if center else 'no'}] [threshold: {session.threshold_meters}m]"
        )
        return session

    async def get_session(self, session_id: Optional[str]) -> AttendanceSession:
        if not session_id:
            raise MissingSessionIdError()
        session = await self._store.get_session(session_id)
        if session is None:
            raise InvalidSessionError()
        return session
