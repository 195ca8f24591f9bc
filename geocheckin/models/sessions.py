import uuid
from sqlalchemy import Column, String, BigInteger, Float, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from geocheckin.database import Base


def generate_session_id() -> str:
    return uuid.uuid4().hex


# Attendance Session model
class AttendanceSession(Base):
    __tablename__ = "sessions"

    # The identifier is also the token handed to check-in clients
    id = Column(String(32), primary_key=True, default=generate_session_id)
    course_id = Column(String(64), nullable=False, index=True)
    start_ts = Column(BigInteger, nullable=False)
    expires_at = Column(BigInteger)
    latitude = Column(Float)
    longitude = Column(Float)
    threshold_meters = Column(Float, nullable=False, default=100.0)
    created_at = Column(BigInteger, nullable=False)
    inserted_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    attendance_records = relationship("AttendanceRecord", back_populates="session")

    @property
    def location(self):
        if self.latitude is None or self.longitude is None:
            return None
        return {"latitude": self.latitude, "longitude": self.longitude}
