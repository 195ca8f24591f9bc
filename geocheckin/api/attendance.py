from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import JSONResponse

from geocheckin.config import settings
from geocheckin.schemas.attendance import (
    AlreadyCheckedInResponse, AttendanceRecordInDB, AttendanceStatusEnum,
    CheckInRequest, CheckInResponse,
)
from geocheckin.services.store import AttendanceStore, get_store
from geocheckin.services.checkin import CheckInVerifier

router = APIRouter()


@router.post("/checkin", response_model=CheckInResponse, status_code=status.HTTP_201_CREATED)
async def check_in(
    checkin_data: CheckInRequest,
    request: Request,
    store: AttendanceStore = Depends(get_store),
):
    """
    Check a student in to a session. Rejected attempts are still recorded
    and answered with an error body describing the reason.
    """
    result = await CheckInVerifier(store).check_in(
        checkin_data.session_token,
        checkin_data.student_id,
        student_name=checkin_data.student_name,
        location=checkin_data.location,
    )

    request.state.outcome = "already_checked_in" if result.already_checked_in else "present"
    if result.already_checked_in:
        return JSONResponse(
            status_code=status.HTTP_200_OK,
            content=AlreadyCheckedInResponse().model_dump(by_alias=True),
        )

    return {
        "ok": True,
        "verified": result.verified,
        "distance_meters": result.distance_meters,
        "record": result.record,
    }


@router.get("/attendance", response_model=List[AttendanceRecordInDB])
async def get_attendance_records(
    session_id: Optional[str] = Query(None, alias="sessionId"),
    student_id: Optional[str] = Query(None, alias="studentId"),
    status: Optional[AttendanceStatusEnum] = Query(None),
    limit: int = Query(settings.ATTENDANCE_LIST_LIMIT, gt=0),
    store: AttendanceStore = Depends(get_store),
):
    """
    Get attendance records with optional filtering, newest first.
    """
    limit = min(limit, settings.ATTENDANCE_LIST_LIMIT)
    return await store.find_attendance(
        session_id=session_id,
        student_id=student_id,
        status=status,
        limit=limit,
    )
