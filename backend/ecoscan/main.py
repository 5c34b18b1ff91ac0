"""
Main FastAPI Application
Entry point for the EcoScan Rewards API.

This module creates and configures the FastAPI application instance,
sets up middleware and error handlers, and defines the health check endpoint.

Run with:
    uvicorn ecoscan.main:app --host 0.0.0.0 --port 8000
"""

import logging

from fastapi import FastAPI
from fastapi.responses import JSONResponse

from ecoscan import __version__
from ecoscan.core.config import settings
from ecoscan.core.exceptions import EcoScanError
from ecoscan.db.seed import seed_demo_data
from ecoscan.db.session import SessionLocal, engine
from ecoscan.middleware.cors import setup_cors
from ecoscan.middleware.error_handler import ErrorHandlerMiddleware, ecoscan_exception_handler
from ecoscan.models import Base
from ecoscan.services.error_logging import configure_error_logging

logger = logging.getLogger(__name__)


# Create FastAPI application instance
# - docs_url: Swagger UI endpoint (interactive API documentation)
# - redoc_url: ReDoc endpoint (alternative documentation style)
app = FastAPI(
    title=settings.PROJECT_NAME,
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    description="""
    EcoScan Rewards API.

    Features:
    - Product catalog lookup by barcode
    - Scan sessions (camera or manual entry) crediting EcoPoints exactly once
    - Dashboard with level, rank, weekly points and score distribution
    - Leaderboard
    - Rewards and challenges catalog

    For more information, visit the documentation at /docs
    """
)


# Setup CORS middleware
setup_cors(app)

# Catches all unhandled exceptions and logs them
app.add_middleware(ErrorHandlerMiddleware)

# Domain errors -> {"detail", "code"} with the error's status code
app.add_exception_handler(EcoScanError, ecoscan_exception_handler)


@app.on_event("startup")
async def startup_event():
    """
    Application startup handler.

    Tasks performed:
    - Create all database tables if they don't exist
    - Configure error logging (log files + error_logs table)
    - Seed the demo catalog, challenges and rewards (SEED_DEMO_DATA)

    Note: In production, use Alembic migrations instead of
    Base.metadata.create_all() for better schema management.
    """
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created/verified")

    configure_error_logging(SessionLocal)

    if settings.SEED_DEMO_DATA:
        db = SessionLocal()
        try:
            seed_demo_data(db)
        finally:
            db.close()

    logger.info(f"{settings.PROJECT_NAME} {__version__} started, docs at /docs")


@app.on_event("shutdown")
async def shutdown_event():
    """Dispose pooled database connections."""
    engine.dispose()
    logger.info("Application shutdown complete")


@app.get(
    "/health",
    tags=["Health"],
    summary="Health Check",
    description="Simple endpoint to verify API is running"
)
async def health_check():
    """
    Health check endpoint.

    Example Response:
        {
            "status": "ok",
            "version": "1.0.0",
            "api": "EcoScan Rewards API"
        }
    """
    return JSONResponse(
        status_code=200,
        content={
            "status": "ok",
            "version": __version__,
            "api": settings.PROJECT_NAME
        }
    )


@app.get(
    "/",
    tags=["Root"],
    summary="API Root",
    description="Root endpoint with API information"
)
async def root():
    """API information and links to documentation."""
    return {
        "message": f"Welcome to {settings.PROJECT_NAME}",
        "version": __version__,
        "docs": "/docs",
        "redoc": "/redoc",
        "health": "/health"
    }


# Include API v1 router
# All v1 endpoints are prefixed with /api/v1
from ecoscan.api.v1.router import api_router  # noqa: E402

app.include_router(
    api_router,
    prefix=f"/api/{settings.API_VERSION}",
)
