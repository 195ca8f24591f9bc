import logging
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from geocheckin.api import attendance, sessions
from geocheckin.config import settings
from geocheckin.database import engine
from geocheckin.exceptions import AttendanceError
from geocheckin.middleware.logging import add_logging_middleware, setup_logging
from geocheckin.models import Base

# Initialize FastAPI app
app = FastAPI(
    title="Geo Check-in API",
    description="Geofenced attendance sessions, location-verified check-ins and absence finalization",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
add_logging_middleware(app)

# Setup logging
setup_logging()
logger = logging.getLogger(__name__)

@app.exception_handler(AttendanceError)
async def attendance_exception_handler(request: Request, exc: AttendanceError):
    request.state.outcome = exc.code
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

# Custom exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception: {str(exc)}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"error": "server_error", "message": "An unexpected error occurred. Please try again later."},
    )

# Create database tables
@app.on_event("startup")
async def startup():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables created or verified")

# Include routers
app.include_router(sessions.router, prefix="/api", tags=["Sessions"])
app.include_router(attendance.router, prefix="/api", tags=["Attendance"])

@app.get("/", tags=["Root"])
async def root():
    return {"message": "Geo Check-in API running. Visit /docs for documentation."}

# Run the server
if __name__ == "__main__":
    import uvicorn
    uvicorn.run("geocheckin.main:app", host="0.0.0.0", port=5000, reload=True)
