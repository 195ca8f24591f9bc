from typing import Optional, Any
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class GeoPoint(CamelModel):
    latitude: float
    longitude: float


# Session schemas
class SessionCreate(CamelModel):
    # Loosely typed so that malformed values fall back to defaults
    # instead of failing request validation
    course_id: Optional[str] = None
    start_ts: Optional[int] = None
    expires_at: Optional[int] = None
    location: Optional[Any] = None
    threshold_meters: Optional[Any] = None


class SessionInDB(CamelModel):
    id: str
    course_id: str
    start_ts: int
    expires_at: Optional[int] = None
    location: Optional[GeoPoint] = None
    threshold_meters: float
    created_at: int


class SessionCreated(CamelModel):
    session_id: str
    token: str
    session: SessionInDB
