from sqlalchemy import Column, Integer, String, BigInteger, Float, Boolean, DateTime, ForeignKey, CheckConstraint, Index, text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from geocheckin.database import Base

# At most one present and one absent record per student and session
OUTCOME_UNIQUE_WHERE = text("status IN ('present', 'absent')")

# Attendance Record model
class AttendanceRecord(Base):
    __tablename__ = "attendance_records"

    id = Column(Integer, primary_key=True, index=True)
    student_id = Column(String(64), nullable=False, index=True)
    student_name = Column(String(200))
    course_id = Column(String(64), nullable=False)
    session_id = Column(String(32), ForeignKey("sessions.id", ondelete="CASCADE"), nullable=False, index=True)
    timestamp = Column(BigInteger, nullable=False)
    status = Column(String(40), nullable=False)
    verified = Column(Boolean, nullable=False, default=False)
    distance_meters = Column(Float)
    inserted_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        CheckConstraint(
            "status IN ('present', 'absent', 'rejected_no_location', "
            "'rejected_no_session_location', 'rejected_out_of_range')",
            name="check_attendance_status",
        ),
        Index(
            "uq_attendance_outcome",
            "session_id",
            "student_id",
            unique=True,
            postgresql_where=OUTCOME_UNIQUE_WHERE,
            sqlite_where=OUTCOME_UNIQUE_WHERE,
        ),
    )

    # Relationships
    session = relationship("AttendanceSession", back_populates="attendance_records")
