from typing import List

from fastapi import APIRouter, Depends, Path, status

from geocheckin.schemas.sessions import SessionCreate, SessionCreated, SessionInDB
from geocheckin.schemas.attendance import AttendanceStatusEnum, FinalizeResponse, RosterAttendanceRow
from geocheckin.config import settings
from geocheckin.services.store import AttendanceStore, get_store
from geocheckin.services.sessions import SessionManager
from geocheckin.services.finalization import FinalizationProcessor

router = APIRouter()


@router.post("/sessions", response_model=SessionCreated, status_code=status.HTTP_201_CREATED)
async def create_session(
    session_data: SessionCreate,
    store: AttendanceStore = Depends(get_store),
):
    """
    Create a geofenced attendance session. The returned token is what
    students present when checking in.
    """
    session = await SessionManager(store).create_session(
        session_data.course_id,
        start_ts=session_data.start_ts,
        expires_at=session_data.expires_at,
        location=session_data.location,
        threshold_meters=session_data.threshold_meters,
    )
    return {"session_id": session.id, "token": session.id, "session": session}


@router.get("/sessions/{session_id}", response_model=SessionInDB)
async def get_session(
    session_id: str = Path(..., min_length=1),
    store: AttendanceStore = Depends(get_store),
):
    return await SessionManager(store).get_session(session_id)


@router.post("/sessions/{session_id}/finalize", response_model=FinalizeResponse)
async def finalize_session(
    session_id: str = Path(..., min_length=1),
    store: AttendanceStore = Depends(get_store),
):
    """
    Record every rostered student without a present check-in as absent.
    """
    added = await FinalizationProcessor(store).finalize_session(session_id)
    return {"ok": True, "absents_added": added}


@router.get("/sessions/{session_id}/roster-attendance", response_model=List[RosterAttendanceRow])
async def get_roster_attendance(
    session_id: str = Path(..., min_length=1),
    store: AttendanceStore = Depends(get_store),
):
    """
    Roster of the session's course joined with each student's settled
    outcome, or the latest attempt when nothing is settled yet.
    """
    session = await SessionManager(store).get_session(session_id)
    roster = await store.list_roster(
        course_id=session.course_id if settings.FINALIZE_FILTER_ROSTER_BY_COURSE else None
    )
    records = await store.find_attendance(session_id=session_id)

    # Records arrive newest first; settled outcomes win over rejected attempts
    by_student = {}
    for record in records:
        current = by_student.get(record.student_id)
        if current is None or (
            current.status not in (AttendanceStatusEnum.present.value, AttendanceStatusEnum.absent.value)
            and record.status in (AttendanceStatusEnum.present.value, AttendanceStatusEnum.absent.value)
        ):
            by_student[record.student_id] = record

    rows = []
    for entry in roster:
        record = by_student.get(entry.student_id)
        rows.append({
            "student_id": entry.student_id,
            "name": entry.name,
            "course_id": entry.course_id,
            "status": record.status if record else None,
            "verified": bool(record.verified) if record else False,
            "distance_meters": record.distance_meters if record else None,
            "timestamp": record.timestamp if record else None,
        })
    return rows
