"""
Dependency injection utilities for FastAPI.

This module provides reusable dependencies for database sessions,
authentication, and upload checks.
"""

import logging
from pathlib import Path
from typing import Generator
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from fastapi import Depends, HTTPException, Header, status

from api.config import settings
from services.sheet_import_service import SheetImportService

logger = logging.getLogger(__name__)


def _engine_options() -> dict:
    if settings.DATABASE_URL.startswith('sqlite'):
        return {'connect_args': {'check_same_thread': False}, 'echo': settings.DEBUG}
    return {
        'pool_size': settings.DB_POOL_SIZE,
        'max_overflow': settings.DB_MAX_OVERFLOW,
        'pool_pre_ping': settings.DB_POOL_PRE_PING,
        'echo': settings.DEBUG
    }


# Create database engine
engine = create_engine(settings.DATABASE_URL, **_engine_options())

# Create session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Generator[Session, None, None]:
    """
    Get database session dependency.

    Yields database session and ensures it's closed after use.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_api_key(
    x_api_key: str = Header(None, alias=settings.API_KEY_HEADER)
) -> str:
    """
    Validate API key from header.

    Args:
        x_api_key: API key from request header

    Returns:
        Validated API key, or "public" when API key auth is disabled

    Raises:
        HTTPException: If API key is invalid or missing
    """
    if not settings.ENABLE_API_KEY_AUTH:
        return "public"

    if not x_api_key:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="API key required",
            headers={"WWW-Authenticate": "ApiKey"}
        )

    if x_api_key not in settings.API_KEYS:
        logger.warning("Rejected request with unknown API key")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid API key"
        )

    return x_api_key


def get_current_user(api_key: str = Depends(get_api_key)) -> str:
    """
    Get current user from API key.

    Returns:
        User identifier (the API key itself)
    """
    return api_key


def get_import_service() -> SheetImportService:
    """Build a sheet import service from the heuristic settings."""
    return SheetImportService(
        sheet_hint=settings.SHEET_NAME_HINT,
        data_start_row=settings.DATA_START_ROW,
        section_first_column=settings.SECTION_FIRST_COLUMN,
        section_last_column=settings.SECTION_LAST_COLUMN,
        temperature_marker=settings.TEMPERATURE_MARKER
    )


def verify_file_size(file_size: int) -> bool:
    """
    Verify uploaded file size is within limit.

    Raises:
        HTTPException: If file is too large
    """
    max_size_bytes = settings.MAX_FILE_SIZE_MB * 1024 * 1024

    if file_size > max_size_bytes:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"File size ({file_size / 1024 / 1024:.1f} MB) exceeds maximum allowed "
                   f"({settings.MAX_FILE_SIZE_MB} MB)"
        )

    return True


def verify_file_extension(filename: str) -> bool:
    """
    Verify file has allowed extension.

    Raises:
        HTTPException: If extension is not allowed
    """
    ext = Path(filename or '').suffix.lower()

    if ext not in [e.lower() for e in settings.ALLOWED_EXTENSIONS]:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"File extension '{ext}' not allowed. "
                   f"Allowed extensions: {', '.join(settings.ALLOWED_EXTENSIONS)}"
        )

    return True
