"""
Submission-related Pydantic schemas.

This module contains schemas for recording line checks and reviewing
their pass/fail results.
"""

from typing import Dict, List, Optional, Union
from pydantic import BaseModel, Field
from datetime import datetime


class SubmissionCreateRequest(BaseModel):
    """Recorded values for one line check."""

    location: str = Field(..., min_length=1, max_length=255, description="Location of the check")
    values: Dict[int, Union[float, str]] = Field(
        ..., description="Recorded values keyed by form line ID (temperature or MM-DD)"
    )

    class Config:
        json_schema_extra = {
            "example": {
                "location": "Downtown",
                "values": {"12": 36, "13": "10-31"}
            }
        }


class EntryResult(BaseModel):
    """One recorded value with its pass/fail result."""

    id: int = Field(..., description="Entry ID")
    field_id: Optional[int] = Field(None, description="Form line the value was recorded for")
    position: int = Field(..., description="Order within the submission")
    label: str = Field(..., description="Field label")
    type: str = Field(..., description="Entry type: temperature or date")
    value: Optional[Union[float, str]] = Field(None, description="Recorded value")
    min: Optional[float] = Field(None, description="Minimum acceptable temperature")
    max: Optional[float] = Field(None, description="Maximum acceptable temperature")
    passed: bool = Field(..., description="Whether the value passes its check")


class SubmissionDetail(BaseModel):
    """Submission with per-entry results."""

    id: int = Field(..., description="Submission ID")
    submission_key: str = Field(..., description="Readable key: date-location-title")
    location: str = Field(..., description="Location of the check")
    form_id: Optional[int] = Field(None, description="Form template ID")
    title: str = Field(..., description="Form title at submission time")
    submitted_by: Optional[str] = Field(None, description="Submitter")
    submitted_at: datetime = Field(..., description="Submission timestamp")
    entries: List[EntryResult] = Field(..., description="Recorded values")
    passed: int = Field(..., description="Entries that passed")
    failed: int = Field(..., description="Entries that failed")
    all_passed: bool = Field(..., description="True when every entry passed")

    @classmethod
    def from_review(cls, review: dict) -> 'SubmissionDetail':
        submission = review['submission']
        return cls(
            id=submission.id,
            submission_key=submission.submission_key,
            location=submission.location,
            form_id=submission.form_group_id,
            title=submission.title,
            submitted_by=submission.submitted_by,
            submitted_at=submission.submitted_at,
            entries=[
                EntryResult(
                    id=r['entry'].id,
                    field_id=r['entry'].field_id,
                    position=r['entry'].position,
                    label=r['entry'].label,
                    type=r['entry'].entry_type,
                    value=r['entry'].value,
                    min=r['entry'].min_value,
                    max=r['entry'].max_value,
                    passed=r['passed']
                )
                for r in review['results']
            ],
            passed=review['passed'],
            failed=review['failed'],
            all_passed=review['all_passed']
        )


class SubmissionListItem(BaseModel):
    """Submission list item."""

    id: int = Field(..., description="Submission ID")
    submission_key: str = Field(..., description="Readable key: date-location-title")
    title: str = Field(..., description="Form title at submission time")
    location: str = Field(..., description="Location of the check")
    submitted_at: datetime = Field(..., description="Submission timestamp")

    class Config:
        from_attributes = True


class SubmissionListResponse(BaseModel):
    """Submission list response."""

    total: int = Field(..., description="Total number of submissions")
    items: List[SubmissionListItem] = Field(..., description="Submissions, newest first")
