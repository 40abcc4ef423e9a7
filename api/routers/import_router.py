"""
Import router - Turn uploaded line-check workbooks into form lines.

This module provides endpoints for previewing the lines parsed from an
uploaded workbook, creating a form directly from one, and describing the
worksheet layout the importer expects.
"""

import os
import logging
import tempfile
import shutil
from pathlib import Path
from typing import Optional, Tuple
from zipfile import BadZipFile

from fastapi import APIRouter, UploadFile, File, Form, Depends, HTTPException, status
from openpyxl.utils import get_column_letter
from openpyxl.utils.exceptions import InvalidFileException
from sqlalchemy.orm import Session

from api.config import settings
from api.dependencies import (
    get_db, get_current_user, get_import_service, verify_file_extension, verify_file_size
)
from api.routers.forms import validation_error
from api.schemas.form_schema import FormDetail, FormLineSchema
from api.schemas.import_schema import (
    ImportFormResponse, ImportPreviewResponse, ImportSettingsResponse, ImportSummary
)
from services.form_service import FormService, FormValidationError
from services.sheet_import_service import NoDataError, SheetImportService, SheetNotFoundError
from services.storage_service import StorageService, remove_quietly

logger = logging.getLogger(__name__)

# Create router
router = APIRouter(prefix='/import', tags=['import'])


def save_upload(file: UploadFile) -> str:
    """
    Write an upload to the temp directory after checking its extension and size.

    Returns:
        Path to the temporary file
    """
    verify_file_extension(file.filename)

    fd, temp_path = tempfile.mkstemp(
        suffix=Path(file.filename).suffix.lower(),
        dir=settings.TEMP_UPLOAD_DIR
    )
    try:
        with os.fdopen(fd, 'wb') as tmp:
            shutil.copyfileobj(file.file, tmp)

        file_size = os.path.getsize(temp_path)
        verify_file_size(file_size)
    except Exception:
        remove_quietly(temp_path)
        raise

    logger.info(f"File saved to {temp_path} ({file_size / 1024:.1f} KB)")
    return temp_path


def parse_upload(service: SheetImportService, temp_path: str, filename: str,
                 sheet_name: Optional[str]) -> dict:
    """Run the import heuristic, translating failures into HTTP errors."""
    try:
        return service.import_file(temp_path, sheet_name=sheet_name)
    except NoDataError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={'error': 'No Data', 'message': str(e)}
        )
    except SheetNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={'error': 'Sheet Not Found', 'message': str(e)}
        )
    except (InvalidFileException, BadZipFile, KeyError, OSError) as e:
        logger.warning(f"Could not parse {filename}: {e}")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={'error': 'Invalid File', 'message': 'Could not parse the Excel file.'}
        )


def _summary(result: dict) -> Tuple[ImportSummary, list]:
    lines = [FormLineSchema.from_line(line) for line in result['lines']]
    return ImportSummary(**result['summary']), lines


@router.post('/preview', response_model=ImportPreviewResponse)
async def preview_workbook(
    file: UploadFile = File(..., description="Line-check workbook (.xlsx or .xlsm)"),
    sheet_name: Optional[str] = Form(None, description="Worksheet to read (default: first 'line check' sheet)"),
    db: Session = Depends(get_db),
    service: SheetImportService = Depends(get_import_service)
):
    """
    Parse an uploaded workbook and return its form lines for review.

    Nothing is stored. The returned lines can be edited and sent to
    `POST /api/forms`.

    **Classification:**
    - Full-row A:E merge -> section header
    - "Record Temp" in column B or `[min-max]` in the label -> temperature
    - Everything else -> date

    **Returns:**
    - 200 with parsed lines and counts
    - 422 when no rows are recognised
    """
    logger.info(f"Preview request: {file.filename}")
    temp_path = save_upload(file)

    try:
        result = parse_upload(service, temp_path, file.filename, sheet_name)
    finally:
        remove_quietly(temp_path)

    existing = FormService(db).find_by_source_hash(result['file_hash'])
    summary, lines = _summary(result)

    return ImportPreviewResponse(
        filename=file.filename,
        sheet_name=result['sheet_name'],
        file_hash=result['file_hash'],
        summary=summary,
        lines=lines,
        existing_form_id=existing.id if existing else None
    )


@router.post('/form', response_model=ImportFormResponse, status_code=status.HTTP_201_CREATED)
async def import_form(
    file: UploadFile = File(..., description="Line-check workbook (.xlsx or .xlsm)"),
    title: str = Form(..., max_length=255, description="Form title"),
    location: str = Form(..., max_length=255, description="Location the form is assigned to"),
    sheet_name: Optional[str] = Form(None, description="Worksheet to read"),
    keep_source: bool = Form(True, description="Keep a copy of the workbook"),
    db: Session = Depends(get_db),
    current_user: str = Depends(get_current_user),
    service: SheetImportService = Depends(get_import_service)
):
    """
    Create a form directly from an uploaded workbook.

    **Returns:**
    - 201 with the created form
    - 422 when no rows are recognised or the form is invalid
    """
    logger.info(f"Import request from {current_user}: {file.filename} as '{title}' for {location}")
    temp_path = save_upload(file)

    try:
        result = parse_upload(service, temp_path, file.filename, sheet_name)

        form_service = FormService(db)
        # Validate before copying into template storage
        form_service.validate(title, location, form_service.normalize_lines(result['lines']))

        source = {'filename': file.filename, 'file_hash': result['file_hash']}
        if keep_source:
            source['path'] = StorageService(settings.TEMPLATES_DIR).store_file(
                temp_path, result['file_hash']
            )

        form = form_service.create_form(
            title=title,
            location=location,
            lines=result['lines'],
            created_by=current_user,
            source=source
        )
    except FormValidationError as e:
        raise validation_error(e)
    finally:
        remove_quietly(temp_path)

    summary, _ = _summary(result)
    return ImportFormResponse(
        form=FormDetail.from_form(form),
        sheet_name=result['sheet_name'],
        summary=summary
    )


@router.get('/settings', response_model=ImportSettingsResponse)
async def import_settings(
    service: SheetImportService = Depends(get_import_service)
):
    """
    Describe the worksheet layout uploads are read with.

    **Example:**
    ```bash
    curl http://localhost:8000/api/import/settings
    ```
    """
    return ImportSettingsResponse(
        sheet_name_hint=service.sheet_hint,
        data_start_row=service.data_start_row,
        section_columns=(f"{get_column_letter(service.section_first_column)}:"
                         f"{get_column_letter(service.section_last_column)}"),
        temperature_marker=service.temperature_marker,
        allowed_extensions=settings.ALLOWED_EXTENSIONS,
        max_file_size_mb=settings.MAX_FILE_SIZE_MB
    )
