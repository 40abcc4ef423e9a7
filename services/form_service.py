"""
Form Service - Line-check form template management.

This module validates form lines and stores form templates, whether they
were typed in by hand or imported from a worksheet.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from backend.models.schema import FormGroup, FormLineRecord, LineType, LocationForm
from services.sheet_import_service import FormLine

logger = logging.getLogger(__name__)

# Matches FormLineRecord.label
MAX_LABEL_LENGTH = 255


class FormValidationError(Exception):
    """Raised when a form cannot be saved as submitted."""

    def __init__(self, title: str, message: str):
        self.title = title
        self.message = message
        super().__init__(f"{title}: {message}")


class FormNotFoundError(Exception):
    """Raised when a form template does not exist."""

    def __init__(self, form_id: int):
        self.form_id = form_id
        super().__init__(f"Form {form_id} not found")


class FormService:
    """
    Framework-agnostic form template service.

    Sections and fields share one 1-based position sequence, so the saved
    order matches the worksheet order.
    """

    def __init__(self, db_session: Session):
        self.session = db_session

    @staticmethod
    def normalize_lines(lines: List[FormLine]) -> List[FormLine]:
        """Trim text and clear bounds on non-temperature lines."""
        normalized = []
        for line in lines:
            line = line.with_type(LineType(line.type))
            line.label = (line.label or '').strip()
            line.description = (line.description or '').strip()
            normalized.append(line)
        return normalized

    @staticmethod
    def validate_lines(lines: List[FormLine]):
        """
        Check that a list of lines can be saved.

        Raises:
            FormValidationError: On the first problem found
        """
        fields = [line for line in lines if not line.is_section]
        if not fields:
            raise FormValidationError('No Fields', 'A form needs at least one temperature or date field.')

        if any(not line.label.strip() for line in fields):
            raise FormValidationError('Incomplete Fields', 'All fields must have a label.')

        for line in lines:
            if len(line.label) > MAX_LABEL_LENGTH:
                raise FormValidationError(
                    'Label Too Long',
                    f"'{line.label[:40]}...' is longer than {MAX_LABEL_LENGTH} characters."
                )

        for line in fields:
            if line.min is not None and line.max is not None and line.min > line.max:
                raise FormValidationError(
                    'Invalid Range',
                    f"'{line.label}' has a minimum ({line.min:g}) above its maximum ({line.max:g})."
                )

    def validate(self, title: str, location: Optional[str], lines: List[FormLine]):
        """Validate a new form: title, location, then lines."""
        if not (title or '').strip():
            raise FormValidationError('Missing Title', 'Please enter a form title.')
        if not (location or '').strip():
            raise FormValidationError('Missing Location', 'Please select a location.')
        self.validate_lines(lines)

    def _build_line_records(self, lines: List[FormLine]) -> List[FormLineRecord]:
        return [
            FormLineRecord(
                position=position,
                line_type=LineType(line.type).value,
                label=line.label,
                description='' if line.is_section else line.description,
                min_value=line.min,
                max_value=line.max
            )
            for position, line in enumerate(lines, start=1)
        ]

    def create_form(
        self,
        title: str,
        location: str,
        lines: List[FormLine],
        created_by: Optional[str] = None,
        source: Optional[Dict[str, Any]] = None
    ) -> FormGroup:
        """
        Create a form template and assign it to a location.

        Args:
            title: Form title
            location: Location the form is assigned to
            lines: Ordered form lines
            created_by: User identifier
            source: Optional import details: filename, file_hash, path

        Returns:
            Created FormGroup
        """
        lines = self.normalize_lines(lines)
        self.validate(title, location, lines)

        title = title.strip()
        location = location.strip()
        source = source or {}

        form = FormGroup(
            title=title,
            assigned_locations=[location],
            source_filename=source.get('filename'),
            source_file_hash=source.get('file_hash'),
            source_path=source.get('path'),
            created_by=created_by
        )
        form.lines = self._build_line_records(lines)
        form.location_forms = [LocationForm(location=location, customizations={})]

        self.session.add(form)
        self.session.commit()

        logger.info(f"Created form {form.id} '{title}' for {location} ({len(lines)} lines)")
        return form

    def get_form(self, form_id: int) -> FormGroup:
        form = self.session.query(FormGroup).filter_by(id=form_id).first()
        if not form:
            raise FormNotFoundError(form_id)
        return form

    def list_forms(self, location: Optional[str] = None) -> List[FormGroup]:
        """List forms, optionally only those assigned to a location."""
        query = self.session.query(FormGroup)
        if location:
            query = query.join(LocationForm).filter(LocationForm.location == location)
        return query.order_by(FormGroup.created_at.desc(), FormGroup.id.desc()).all()

    def find_by_source_hash(self, file_hash: str) -> Optional[FormGroup]:
        """Find a form previously imported from the same workbook."""
        return self.session.query(FormGroup).filter_by(source_file_hash=file_hash).first()

    def update_form(self, form_id: int, title: str, lines: List[FormLine]) -> FormGroup:
        """
        Replace the title and lines of a form.

        Past submissions keep their own copy of labels and ranges, so editing
        a form never rewrites history.
        """
        form = self.get_form(form_id)

        if not (title or '').strip():
            raise FormValidationError('Missing Title', 'Please enter a form title.')
        lines = self.normalize_lines(lines)
        self.validate_lines(lines)

        form.title = title.strip()
        form.lines.clear()
        # Flush removals first so positions can be reused
        self.session.flush()
        form.lines.extend(self._build_line_records(lines))
        form.updated_at = datetime.utcnow()

        self.session.commit()
        logger.info(f"Updated form {form_id} ({len(lines)} lines)")
        return form

    def assign_location(self, form_id: int, location: str) -> FormGroup:
        """Make a form available at another location."""
        form = self.get_form(form_id)
        location = (location or '').strip()
        if not location:
            raise FormValidationError('Missing Location', 'Please select a location.')

        if location in (form.assigned_locations or []):
            logger.debug(f"Form {form_id} already assigned to {location}")
            return form

        form.assigned_locations = list(form.assigned_locations or []) + [location]
        form.location_forms.append(LocationForm(location=location, customizations={}))
        self.session.commit()

        logger.info(f"Assigned form {form_id} to {location}")
        return form

    def delete_form(self, form_id: int) -> int:
        """
        Delete a form template.

        Returns:
            Number of lines deleted
        """
        form = self.get_form(form_id)
        line_count = len(form.lines)

        for submission in form.submissions:
            submission.form_group_id = None

        self.session.delete(form)
        self.session.commit()

        logger.info(f"Deleted form {form_id} ({line_count} lines)")
        return line_count
