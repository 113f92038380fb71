"""Wakeful Backend API - FastAPI application."""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from wakeful import ObservationNotFoundError, SupersessionError, __version__

from .config import get_settings
from .database import Memory
from .logging_config import configure, get_logger
from .rate_limit import limiter
from .routes import observe_router, soulfile_router, wake_router

logger = get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    settings = get_settings()
    configure(settings.log_level, settings.debug)
    logger.info(f"Starting Wakeful Backend API (debug={settings.debug})")
    yield
    logger.info("Shutting down Wakeful Backend API")


app = FastAPI(
    title="Wakeful Backend API",
    description="Observation memory and deterministic wake retrieval for agents",
    version=__version__,
    lifespan=lifespan,
)

# Rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# CORS middleware
settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(wake_router)
app.include_router(observe_router)
app.include_router(soulfile_router)


# =============================================================================
# Error mapping
# =============================================================================


@app.exception_handler(SupersessionError)
async def supersession_error_handler(request: Request, exc: SupersessionError):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.code.value})


@app.exception_handler(ObservationNotFoundError)
async def not_found_handler(request: Request, exc: ObservationNotFoundError):
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content={"error": "NOT_FOUND", "id": exc.observation_id},
    )


@app.exception_handler(ValueError)
async def validation_error_handler(request: Request, exc: ValueError):
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": str(exc)})


@app.get("/")
async def root():
    """Health check endpoint."""
    return {
        "service": "wakeful-backend",
        "version": __version__,
        "status": "ok",
    }


@app.get("/health")
def health(memory: Memory):
    """Detailed health check with actual database verification."""
    db_status = "disconnected"
    try:
        memory.store.ping()
        db_status = "connected"
    except Exception as e:
        logger.warning(f"Health check failed: {e}")
        db_status = f"error: {str(e)[:50]}"

    overall_status = "healthy" if db_status == "connected" else "degraded"

    return {
        "status": overall_status,
        "database": db_status,
    }
