"""Devotional Companion FastAPI Application."""
from datetime import datetime, timezone
import logging

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.config import get_settings
from app.middleware.request_logging import RequestLoggingMiddleware
from app.models.schemas import HealthCheck
from app.routers import bible, content, export, plans, stats
from app.services.key_value_store import close_store, initialize_store
from app.services.persistence_sync import initialize_state
from app.services.progress_tracker import ProgressTracker, get_progress_tracker, set_progress_tracker
from app.services.reader_service import reset_bible_reader
from app.utils.exceptions import ContentGenerationError, ExportError

# Get settings
settings = get_settings()

# Configure logging
logging.basicConfig(level=getattr(logging, settings.log_level.upper(), logging.INFO))
logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title=settings.app_name,
    description="Reading plans, progress tracking and devotional content",
    version="1.0.0"
)

# Add API request logging middleware
app.add_middleware(RequestLoggingMiddleware)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
async def startup_event():
    """Initialize resources on application startup."""
    logger.info("Initializing application resources...")
    try:
        store = initialize_store(settings)
        initialize_state(store, settings)
        logger.info("Application startup complete")
    except Exception as e:
        logger.error(f"Failed to initialize application: {e}")
        raise


@app.on_event("shutdown")
async def shutdown_event():
    """Clean up resources on application shutdown."""
    logger.info("Shutting down application...")
    reset_bible_reader()
    set_progress_tracker(None)
    close_store()
    logger.info("Application shutdown complete")


# Include routers
app.include_router(plans.router)
app.include_router(stats.router)
app.include_router(bible.router)
app.include_router(content.router)
app.include_router(export.router)


@app.get("/", response_model=HealthCheck)
async def health_check(tracker: ProgressTracker = Depends(get_progress_tracker)):
    """Health check endpoint."""
    return HealthCheck(
        status="healthy",
        timestamp=datetime.now(timezone.utc),
        details={"plans": len(tracker.list_plans())},
    )


# Error handlers
@app.exception_handler(ContentGenerationError)
async def content_error_handler(request, exc):
    logger.error(f"Content generation error: {exc.detail}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail}
    )


@app.exception_handler(ExportError)
async def export_error_handler(request, exc):
    logger.error(f"Export error: {exc.detail}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail}
    )
