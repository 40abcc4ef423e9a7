"""Models package for the line-check system."""
from backend.models.schema import (
    Base, LineType, FormGroup, FormLineRecord, LocationForm, Submission, SubmissionEntry
)

__all__ = [
    'Base', 'LineType', 'FormGroup', 'FormLineRecord',
    'LocationForm', 'Submission', 'SubmissionEntry'
]
