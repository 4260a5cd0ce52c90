"""
Main FastAPI application
"""
import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from nursery_app.config.database import db_config
from nursery_app.config.settings import settings
from nursery_app.database.db_operations import DBOperations
from nursery_app.routes import (
    availability,
    bookings,
    club_booking,
    contact,
    cron,
    deposit_payment,
    forms,
    jobs,
    waitlist,
)
from nursery_app.utils.errors import SubmissionError

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan - startup and shutdown events"""
    # Startup
    try:
        database = await db_config.get_database()
        await DBOperations(database).ensure_indexes()
    except Exception as exc:
        # Duplicate checks still run without the indexes
        logger.error("❌ Could not ensure indexes: %s", exc)
    logger.info("🚀 %s v%s started", settings.APP_NAME, settings.VERSION)
    yield
    # Shutdown
    await db_config.close_db()
    logger.info("👋 Application shutdown")


# Create FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.VERSION,
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(SubmissionError)
async def submission_error_handler(request: Request, exc: SubmissionError):
    if exc.status_code >= 500:
        logger.error("❌ %s %s failed: %s", request.method, request.url.path, exc.message)
    else:
        logger.info("%s %s rejected (%s): %s", request.method, request.url.path, exc.status_code, exc.errors)
    return JSONResponse(status_code=exc.status_code, content=exc.to_content())


# Request logging middleware
@app.middleware("http")
async def log_requests(request: Request, call_next):
    start_time = time.time()
    response = await call_next(request)
    duration = time.time() - start_time
    logger.info("🌐 %s %s - %s (%.2fs)", request.method, request.url.path, response.status_code, duration)
    return response


# Include routers
app.include_router(bookings.router, prefix="/api")
app.include_router(club_booking.router, prefix="/api")
app.include_router(deposit_payment.router, prefix="/api")
app.include_router(waitlist.router, prefix="/api")
app.include_router(availability.router, prefix="/api")
app.include_router(contact.router, prefix="/api")
app.include_router(jobs.router, prefix="/api")
app.include_router(forms.router, prefix="/api")
app.include_router(cron.router, prefix="/api")


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "app": settings.APP_NAME,
        "version": settings.VERSION,
        "status": "running",
    }


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy"}
