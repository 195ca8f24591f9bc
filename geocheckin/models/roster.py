from sqlalchemy import Column, Integer, String, DateTime, UniqueConstraint
from sqlalchemy.sql import func
from geocheckin.database import Base

# Roster Entry model, populated by enrollment outside this service
class RosterEntry(Base):
    __tablename__ = "roster_entries"

    id = Column(Integer, primary_key=True, index=True)
    student_id = Column(String(64), nullable=False, index=True)
    name = Column(String(200))
    course_id = Column(String(64), nullable=False, index=True)
    inserted_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        UniqueConstraint("student_id", "course_id", name="uq_roster_student_course"),
    )
