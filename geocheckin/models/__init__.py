# Import all models to ensure they're registered with SQLAlchemy
from geocheckin.database import Base
from geocheckin.models.sessions import AttendanceSession
from geocheckin.models.attendance import AttendanceRecord
from geocheckin.models.roster import RosterEntry
