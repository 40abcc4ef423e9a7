"""
Submissions router - Record line checks and review their results.

This module provides endpoints for submitting a filled-in form and for
listing and reviewing completed checks.
"""

import logging
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session

from api.dependencies import get_db, get_current_user
from api.schemas.submission_schema import (
    SubmissionCreateRequest, SubmissionDetail, SubmissionListItem, SubmissionListResponse
)
from services.check_service import CheckService, CheckValidationError, SubmissionNotFoundError
from services.form_service import FormNotFoundError

logger = logging.getLogger(__name__)

# Create router
router = APIRouter(tags=['submissions'])


@router.post('/forms/{form_id}/submissions', response_model=SubmissionDetail,
             status_code=status.HTTP_201_CREATED)
async def submit_check(
    form_id: int,
    request: SubmissionCreateRequest,
    db: Session = Depends(get_db),
    current_user: str = Depends(get_current_user)
):
    """
    Record a completed line check.

    Every field needs a value. Temperatures are numbers, dates are `MM-DD`.

    **Returns:**
    - 201 with the stored submission and its pass/fail results
    - 404 if the form does not exist
    - 422 with the offending field IDs on missing or invalid values
    """
    service = CheckService(db)
    try:
        submission = service.submit(
            form_id,
            location=request.location,
            values=request.values,
            submitted_by=current_user
        )
    except FormNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except CheckValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={'error': e.title, 'message': e.message, 'field_ids': e.field_ids}
        )

    return SubmissionDetail.from_review(service.review(submission.id))


@router.get('/submissions', response_model=SubmissionListResponse)
async def list_submissions(
    location: Optional[str] = Query(None, description="Only checks done at this location"),
    db: Session = Depends(get_db)
):
    """
    List completed checks, newest first.

    **Example:**
    ```bash
    curl "http://localhost:8000/api/submissions?location=Downtown"
    ```
    """
    submissions = CheckService(db).list_submissions(location)
    return SubmissionListResponse(
        total=len(submissions),
        items=[SubmissionListItem.model_validate(s) for s in submissions]
    )


@router.get('/submissions/{submission_id}', response_model=SubmissionDetail)
async def get_submission(
    submission_id: int,
    db: Session = Depends(get_db)
):
    """
    Get a completed check with per-entry pass/fail results.

    Temperatures pass inside their range; dates pass when not yet expired.
    """
    try:
        review = CheckService(db).review(submission_id)
    except SubmissionNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    return SubmissionDetail.from_review(review)
