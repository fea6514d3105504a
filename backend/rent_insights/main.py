"""
Main FastAPI application entry point for Paris Rent Insights.
"""

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import logging

from rent_insights.core.config import settings
from rent_insights.core.exceptions import (
    InvalidFormat,
    InvalidInput,
    NotFound,
    OutOfRegion,
    RentInsightsError,
    ServiceUnavailable,
)
from rent_insights.core.logging_config import setup_logging
from rent_insights.api import rent_insights

# Initialize logging
setup_logging(settings.LOG_LEVEL, settings.LOG_DIR, log_to_file=settings.LOG_TO_FILE)
logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title="Paris Rent Insights API",
    description="Reference rents from the Paris rent-control (encadrement des loyers) dataset",
    version=settings.VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
)

logger.info(f"Starting {settings.PROJECT_NAME} v{settings.VERSION}")
logger.info(f"Environment: {settings.ENVIRONMENT}")

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET"],
    allow_headers=["*"],
)

ERROR_STATUS = {
    InvalidInput: status.HTTP_422_UNPROCESSABLE_ENTITY,
    InvalidFormat: status.HTTP_422_UNPROCESSABLE_ENTITY,
    OutOfRegion: status.HTTP_422_UNPROCESSABLE_ENTITY,
    NotFound: status.HTTP_404_NOT_FOUND,
    ServiceUnavailable: status.HTTP_503_SERVICE_UNAVAILABLE,
}


@app.exception_handler(RentInsightsError)
async def rent_insights_error_handler(request: Request, exc: RentInsightsError):
    status_code = next(
        (code for error_type, code in ERROR_STATUS.items() if isinstance(exc, error_type)),
        status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=status_code, content={"detail": exc.to_dict()})


# Include routers
app.include_router(rent_insights.router, prefix=settings.API_PREFIX, tags=["rent-insights"])


@app.get("/")
async def root():
    """Root endpoint - API health check."""
    return {
        "message": "Welcome to Paris Rent Insights API",
        "version": settings.VERSION,
        "status": "active",
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "rent_insights.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
