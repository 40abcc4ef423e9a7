"""
Forms router - CRUD operations for line-check form templates.

This module provides endpoints for creating, listing, editing and deleting
forms and assigning them to locations.
"""

import logging
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session

from api.config import settings
from api.dependencies import get_db, get_current_user
from api.schemas.form_schema import (
    FormAssignRequest, FormCreateRequest, FormDeleteResponse, FormDetail,
    FormListItem, FormListResponse, FormUpdateRequest
)
from backend.models.schema import FormGroup
from services.form_service import FormNotFoundError, FormService, FormValidationError
from services.storage_service import StorageService

logger = logging.getLogger(__name__)

# Create router
router = APIRouter(prefix='/forms', tags=['forms'])


def validation_error(exc: FormValidationError) -> HTTPException:
    """Translate a form validation failure into a 422 response."""
    return HTTPException(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        detail={'error': exc.title, 'message': exc.message}
    )


def not_found(exc: FormNotFoundError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=str(exc)
    )


@router.post('', response_model=FormDetail, status_code=status.HTTP_201_CREATED)
async def create_form(
    request: FormCreateRequest,
    db: Session = Depends(get_db),
    current_user: str = Depends(get_current_user)
):
    """
    Create a form template and assign it to a location.

    Sections and fields share one position sequence. Date and section
    lines never keep temperature bounds.

    **Returns:**
    - 201 with the created form
    - 422 when the title, location or a field label is missing
    """
    try:
        form = FormService(db).create_form(
            title=request.title,
            location=request.location,
            lines=[line.to_line() for line in request.lines],
            created_by=current_user
        )
    except FormValidationError as e:
        raise validation_error(e)

    return FormDetail.from_form(form)


@router.get('', response_model=FormListResponse)
async def list_forms(
    location: Optional[str] = Query(None, description="Only forms assigned to this location"),
    db: Session = Depends(get_db)
):
    """
    List form templates, newest first.

    **Example:**
    ```bash
    curl "http://localhost:8000/api/forms?location=Downtown"
    ```
    """
    forms = FormService(db).list_forms(location)
    return FormListResponse(
        total=len(forms),
        items=[FormListItem.from_form(form) for form in forms]
    )


@router.get('/{form_id}', response_model=FormDetail)
async def get_form(
    form_id: int,
    db: Session = Depends(get_db)
):
    """Get a form template with its ordered lines."""
    try:
        form = FormService(db).get_form(form_id)
    except FormNotFoundError as e:
        raise not_found(e)

    return FormDetail.from_form(form)


@router.put('/{form_id}', response_model=FormDetail)
async def update_form(
    form_id: int,
    request: FormUpdateRequest,
    db: Session = Depends(get_db),
    current_user: str = Depends(get_current_user)
):
    """
    Replace the title and lines of a form.

    Existing submissions keep the labels and ranges they were recorded with.
    """
    try:
        form = FormService(db).update_form(
            form_id,
            title=request.title,
            lines=[line.to_line() for line in request.lines]
        )
    except FormNotFoundError as e:
        raise not_found(e)
    except FormValidationError as e:
        raise validation_error(e)

    logger.info(f"Form {form_id} updated by {current_user}")
    return FormDetail.from_form(form)


@router.post('/{form_id}/locations', response_model=FormDetail)
async def assign_location(
    form_id: int,
    request: FormAssignRequest,
    db: Session = Depends(get_db),
    current_user: str = Depends(get_current_user)
):
    """Make a form available at another location."""
    try:
        form = FormService(db).assign_location(form_id, request.location)
    except FormNotFoundError as e:
        raise not_found(e)
    except FormValidationError as e:
        raise validation_error(e)

    return FormDetail.from_form(form)


@router.delete('/{form_id}', response_model=FormDeleteResponse)
async def delete_form(
    form_id: int,
    db: Session = Depends(get_db),
    current_user: str = Depends(get_current_user)
):
    """
    Delete a form template.

    Submissions recorded against the form are kept. The stored workbook is
    removed once no other form was imported from it.
    """
    service = FormService(db)
    try:
        source_path = service.get_form(form_id).source_path
        lines_deleted = service.delete_form(form_id)
    except FormNotFoundError as e:
        raise not_found(e)

    if source_path and not db.query(FormGroup).filter_by(source_path=source_path).first():
        StorageService(settings.TEMPLATES_DIR).delete_file(source_path)

    logger.info(f"Form {form_id} deleted by {current_user}")
    return FormDeleteResponse(
        id=form_id,
        message="Form deleted successfully",
        lines_deleted=lines_deleted
    )
