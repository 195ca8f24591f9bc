from typing import Optional, Any
from enum import Enum

from geocheckin.schemas.sessions import CamelModel


class AttendanceStatusEnum(str, Enum):
    present = "present"
    absent = "absent"
    rejected_no_location = "rejected_no_location"
    rejected_no_session_location = "rejected_no_session_location"
    rejected_out_of_range = "rejected_out_of_range"


# Attendance Record schemas
class AttendanceRecordInDB(CamelModel):
    id: int
    student_id: str
    student_name: Optional[str] = None
    course_id: str
    session_id: str
    timestamp: int
    status: AttendanceStatusEnum
    verified: bool
    distance_meters: Optional[float] = None


# Check-in schemas
class CheckInRequest(CamelModel):
    session_token: Optional[str] = None
    student_id: Optional[str] = None
    student_name: Optional[str] = None
    # Validated by the verifier so malformed locations are still recorded
    location: Optional[Any] = None


class CheckInResponse(CamelModel):
    ok: bool = True
    verified: bool
    distance_meters: Optional[float] = None
    record: AttendanceRecordInDB


class AlreadyCheckedInResponse(CamelModel):
    ok: bool = True
    already_checked_in: bool = True
    message: str = "already checked-in"


# Finalization
class FinalizeResponse(CamelModel):
    ok: bool = True
    absents_added: int


# Roster projection
class RosterAttendanceRow(CamelModel):
    student_id: str
    name: Optional[str] = None
    course_id: str
    status: Optional[AttendanceStatusEnum] = None
    verified: bool = False
    distance_meters: Optional[float] = None
    timestamp: Optional[int] = None
