"""
Pydantic schemas for request/response validation.

This package contains all Pydantic models used for API request validation
and response serialization.
"""

from api.schemas.common import ErrorResponse, HealthCheckResponse
from api.schemas.form_schema import (
    FormLineSchema, FormLineResponse, FormCreateRequest, FormUpdateRequest,
    FormAssignRequest, FormDetail, FormListItem, FormListResponse, FormDeleteResponse
)
from api.schemas.import_schema import (
    ImportSummary, ImportPreviewResponse, ImportFormResponse, ImportSettingsResponse
)
from api.schemas.submission_schema import (
    SubmissionCreateRequest, EntryResult, SubmissionDetail,
    SubmissionListItem, SubmissionListResponse
)

__all__ = [
    # Common
    'ErrorResponse',
    'HealthCheckResponse',

    # Form
    'FormLineSchema',
    'FormLineResponse',
    'FormCreateRequest',
    'FormUpdateRequest',
    'FormAssignRequest',
    'FormDetail',
    'FormListItem',
    'FormListResponse',
    'FormDeleteResponse',

    # Import
    'ImportSummary',
    'ImportPreviewResponse',
    'ImportFormResponse',
    'ImportSettingsResponse',

    # Submission
    'SubmissionCreateRequest',
    'EntryResult',
    'SubmissionDetail',
    'SubmissionListItem',
    'SubmissionListResponse',
]
