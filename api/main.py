"""
FastAPI application for the line-check system.

This module creates and configures the FastAPI application, registering
the import, form and submission routers.
"""

import logging
import os
import time
from contextlib import asynccontextmanager
from datetime import datetime

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text

from api.config import settings
from api.dependencies import engine, SessionLocal
from api.routers import forms, import_router, submissions
from api.schemas.common import ErrorResponse, HealthCheckResponse
from backend.models.schema import Base
from services.storage_service import StorageService

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL),
    format=settings.LOG_FORMAT,
    handlers=[
        logging.FileHandler(settings.LOG_FILE),
        logging.StreamHandler()
    ]
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Create tables, prepare upload and template directories and drop
    abandoned uploads before serving requests.
    """
    logger.info(f"Starting {settings.API_TITLE} v{settings.API_VERSION}")
    logger.info(f"Database: {settings.DATABASE_URL.split('@')[-1]}")  # Hide credentials

    try:
        Base.metadata.create_all(bind=engine)
        logger.info("Database tables verified")
    except Exception as e:
        logger.error(f"Database initialization failed: {e}")

    os.makedirs(settings.TEMP_UPLOAD_DIR, exist_ok=True)
    storage = StorageService(settings.TEMPLATES_DIR)
    removed = storage.cleanup_temp_files(settings.TEMP_UPLOAD_DIR, settings.TEMP_FILE_MAX_AGE_HOURS)
    logger.info(f"Uploads: {settings.TEMP_UPLOAD_DIR} ({removed} stale files removed), "
                f"templates: {settings.TEMPLATES_DIR}")

    yield

    logger.info("Shutting down application")


app = FastAPI(
    title=settings.API_TITLE,
    description=settings.API_DESCRIPTION,
    version=settings.API_VERSION,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=settings.CORS_ALLOW_CREDENTIALS,
    allow_methods=settings.CORS_ALLOW_METHODS,
    allow_headers=settings.CORS_ALLOW_HEADERS
)


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Turn uncaught exceptions into a 500 ErrorResponse."""
    logger.error(f"Unhandled exception on {request.method} {request.url.path}: {exc}", exc_info=True)

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ErrorResponse(
            error="Internal server error",
            detail={"message": str(exc)} if settings.DEBUG else None,
            path=request.url.path
        ).model_dump(mode='json')
    )


app.include_router(import_router.router, prefix=settings.API_PREFIX)
app.include_router(forms.router, prefix=settings.API_PREFIX)
app.include_router(submissions.router, prefix=settings.API_PREFIX)


@app.get('/', include_in_schema=False)
async def root():
    return {
        'message': f'Welcome to {settings.API_TITLE}',
        'version': settings.API_VERSION,
        'docs': '/docs',
        'endpoints': {
            'import': f'{settings.API_PREFIX}/import',
            'forms': f'{settings.API_PREFIX}/forms',
            'submissions': f'{settings.API_PREFIX}/submissions'
        }
    }


@app.get('/health', response_model=HealthCheckResponse, tags=['health'])
async def health_check():
    """
    Health check endpoint.

    Reports database connectivity and whether the template directory
    accepts new workbooks.

    **Example:**
    ```bash
    curl http://localhost:8000/health
    ```
    """
    health_status = {
        'status': 'healthy',
        'timestamp': datetime.utcnow(),
        'version': settings.API_VERSION,
        'database': 'unknown',
        'storage': 'unknown'
    }

    try:
        with SessionLocal() as session:
            session.execute(text('SELECT 1'))
        health_status['database'] = 'connected'
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        health_status['database'] = 'disconnected'
        health_status['status'] = 'unhealthy'

    if os.path.isdir(settings.TEMPLATES_DIR) and os.access(settings.TEMPLATES_DIR, os.W_OK):
        health_status['storage'] = 'writable'
    else:
        health_status['storage'] = 'unavailable'
        if health_status['status'] == 'healthy':
            health_status['status'] = 'degraded'

    return HealthCheckResponse(**health_status)


@app.get('/api/ping', tags=['health'])
async def ping():
    """Simple ping endpoint for load balancers."""
    return {'ping': 'pong'}


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log each request with its status and duration."""
    started = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = (time.perf_counter() - started) * 1000
    logger.info(f"{request.method} {request.url.path} - {response.status_code} ({elapsed_ms:.0f} ms)")
    return response


if __name__ == '__main__':
    import uvicorn

    uvicorn.run(
        'api.main:app',
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.RELOAD,
        log_level=settings.LOG_LEVEL.lower()
    )
