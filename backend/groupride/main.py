"""FastAPI application entry point."""
import logging
from contextlib import asynccontextmanager
from datetime import timedelta

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from groupride.config import settings
from groupride.database import Base, SessionLocal, engine

# Import routers
from groupride.routers import users, rides, comments
from groupride.services.archival_service import ArchivalSweeper

# Import all models so Base.metadata knows about them
from groupride.models.user import User                    # noqa: F401
from groupride.models.ride import Ride                    # noqa: F401
from groupride.models.participant import RideParticipant  # noqa: F401
from groupride.models.comment import RideComment          # noqa: F401

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables in SQLite dev mode and own the archival sweeper's lifetime."""
    if settings.DATABASE_URL.startswith("sqlite"):
        Base.metadata.create_all(bind=engine)

    sweeper = ArchivalSweeper(
        SessionLocal,
        interval=timedelta(hours=settings.ARCHIVAL_SWEEP_INTERVAL_HOURS),
        stale_after=timedelta(hours=settings.ARCHIVAL_STALE_AFTER_HOURS),
    )
    app.state.archival_sweeper = sweeper
    if settings.ARCHIVAL_SWEEP_ENABLED:
        sweeper.start()

    yield

    sweeper.stop()


app = FastAPI(
    title="Group Ride",
    description="Group ride coordination — create, discover and join bicycle rides, including recurring series",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _format_error(error: dict) -> str:
    location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
    message = error.get("msg", "Invalid value").removeprefix("Value error, ")
    return f"{location}: {message}" if location else message


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Validation failures are client errors with a readable message list."""
    details = [_format_error(error) for error in exc.errors()]
    logger.warning("Validation error on %s %s: %s", request.method, request.url.path, details)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "Validation error", "details": details},
    )


# Register routers
app.include_router(users.router, prefix="/api/users", tags=["Users"])
app.include_router(rides.router, prefix="/api/rides", tags=["Rides"])
app.include_router(comments.router, prefix="/api/rides", tags=["Comments"])


@app.get("/api/health")
def health_check():
    return {"status": "ok"}
