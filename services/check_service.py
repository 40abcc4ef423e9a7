"""
Check Service - Recording and reviewing line checks.

This module validates filled-in line checks, stores them as submissions
and evaluates each recorded value against its form line:

    - temperature: passes when min <= value <= max (all three numeric)
    - date (MM-DD): passes when the date in the current year is today or later
"""

import calendar
import logging
import re
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from backend.models.schema import FormGroup, LineType, Submission, SubmissionEntry
from services.form_service import FormNotFoundError

logger = logging.getLogger(__name__)

MMDD_PATTERN = re.compile(r'^\d{2}-\d{2}$')


class CheckValidationError(Exception):
    """Raised when a filled-in check cannot be submitted."""

    def __init__(self, title: str, message: str, field_ids: Optional[List[int]] = None):
        self.title = title
        self.message = message
        self.field_ids = field_ids or []
        super().__init__(f"{title}: {message}")


class SubmissionNotFoundError(Exception):
    """Raised when a submission does not exist."""

    def __init__(self, submission_id: int):
        self.submission_id = submission_id
        super().__init__(f"Submission {submission_id} not found")


def is_valid_mmdd(value: Any, year: Optional[int] = None) -> bool:
    """
    Check a "MM-DD" date string.

    Month must be 1..12 and day must exist in that month of the given year
    (current year by default).
    """
    if not isinstance(value, str) or not MMDD_PATTERN.match(value):
        return False

    month, day = (int(part) for part in value.split('-'))
    if month < 1 or month > 12:
        return False

    year = year or date.today().year
    days_in_month = calendar.monthrange(year, month)[1]
    return 1 <= day <= days_in_month


def parse_temperature(value: Any) -> Optional[float]:
    """
    Parse a temperature reading.

    Numbers pass through. Text keeps digits, one decimal point and a leading
    minus sign; anything else is dropped. Returns None when nothing numeric
    is left.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if value is None:
        return None

    text = str(value).strip()
    negative = text.startswith('-')
    cleaned = re.sub(r'[^0-9.]', '', text)
    if cleaned.count('.') > 1:
        head, _, tail = cleaned.partition('.')
        cleaned = head + '.' + tail.replace('.', '')
    if not cleaned or cleaned == '.':
        return None

    number = float(cleaned)
    return -number if negative else number


def evaluate_entry(entry_type: str, value: Any, min_value: Any = None, max_value: Any = None,
                   today: Optional[date] = None) -> bool:
    """Return True when a recorded value passes its check."""
    if entry_type == LineType.TEMPERATURE:
        numeric = all(
            isinstance(v, (int, float)) and not isinstance(v, bool)
            for v in (value, min_value, max_value)
        )
        return numeric and min_value <= value <= max_value

    if entry_type == LineType.DATE:
        if not isinstance(value, str):
            return False
        today = today or date.today()
        try:
            month, day = (int(part) for part in value.split('-'))
            entry_date = date(today.year, month, day)
        except ValueError:
            return False
        return entry_date >= today

    return False


def build_submission_key(location: str, title: str, existing_keys: List[str],
                         submitted_on: date) -> str:
    """
    Build a readable submission key: "YYYY-MM-DD-location-title".

    Repeat checks of the same form on the same day get " (n)" appended,
    where n is one more than the number of existing keys with that prefix,
    raised further while the candidate is already taken (another title may
    end in " (n)").
    """
    base_key = f"{submitted_on.isoformat()}-{location}-{title}"
    count = sum(1 for key in existing_keys if key.startswith(base_key))
    if count == 0:
        return base_key

    taken = set(existing_keys)
    n = count + 1
    while f"{base_key} ({n})" in taken:
        n += 1
    return f"{base_key} ({n})"


class CheckService:
    """
    Framework-agnostic line-check service.

    Each submission copies label, type and range from the form, so later
    form edits do not change how a past check is judged.
    """

    def __init__(self, db_session: Session):
        self.session = db_session

    def _get_form(self, form_id: int) -> FormGroup:
        form = self.session.query(FormGroup).filter_by(id=form_id).first()
        if not form:
            raise FormNotFoundError(form_id)
        return form

    def validate_values(self, form: FormGroup, values: Dict[int, Any],
                        year: Optional[int] = None) -> Dict[int, Any]:
        """
        Validate and coerce recorded values for every field of a form.

        Args:
            form: Form template
            values: Recorded values keyed by form line id

        Returns:
            Coerced values keyed by form line id

        Raises:
            CheckValidationError: On missing values, bad dates or bad temperatures
        """
        fields = form.fields

        missing = [
            f.id for f in fields
            if values.get(f.id) is None or str(values.get(f.id)).strip() == ''
        ]
        if missing:
            raise CheckValidationError(
                'Missing Values', 'Please fill out all fields before submitting.', missing
            )

        invalid_dates = [
            f.id for f in fields
            if f.line_type == LineType.DATE and not is_valid_mmdd(str(values[f.id]).strip(), year)
        ]
        if invalid_dates:
            raise CheckValidationError(
                'Invalid Dates', 'Please fix invalid dates before submitting.', invalid_dates
            )

        coerced = {}
        invalid_temps = []
        for f in fields:
            if f.line_type == LineType.TEMPERATURE:
                reading = parse_temperature(values[f.id])
                if reading is None:
                    invalid_temps.append(f.id)
                coerced[f.id] = reading
            else:
                coerced[f.id] = str(values[f.id]).strip()

        if invalid_temps:
            raise CheckValidationError(
                'Invalid Temperatures', 'Temperatures must be numbers.', invalid_temps
            )

        return coerced

    def submit(
        self,
        form_id: int,
        location: str,
        values: Dict[int, Any],
        submitted_by: Optional[str] = None,
        now: Optional[datetime] = None
    ) -> Submission:
        """
        Record a completed line check.

        Args:
            form_id: Form template id
            location: Location the check was done at
            values: Recorded values keyed by form line id
            submitted_by: User identifier
            now: Submission time (UTC), defaults to the current time

        Returns:
            Stored Submission
        """
        form = self._get_form(form_id)
        now = now or datetime.utcnow()

        if location not in (form.assigned_locations or []):
            raise CheckValidationError(
                'Unknown Location', f"Form '{form.title}' is not assigned to {location}."
            )

        coerced = self.validate_values(form, values, year=now.year)

        existing_keys = [
            key for (key,) in self.session.query(Submission.submission_key)
            .filter(Submission.location == location)
            .all()
        ]
        submission_key = build_submission_key(location, form.title, existing_keys, now.date())

        submission = Submission(
            submission_key=submission_key,
            location=location,
            form_group_id=form.id,
            title=form.title,
            submitted_by=submitted_by,
            submitted_at=now
        )

        for position, field in enumerate(form.fields, start=1):
            entry = SubmissionEntry(
                field_id=field.id,
                position=position,
                entry_type=field.line_type,
                label=field.label,
                min_value=field.min_value,
                max_value=field.max_value
            )
            if field.line_type == LineType.TEMPERATURE:
                entry.value_number = coerced[field.id]
            else:
                entry.value_text = coerced[field.id]
            submission.entries.append(entry)

        self.session.add(submission)
        self.session.commit()

        logger.info(f"Stored submission '{submission_key}' ({len(submission.entries)} entries)")
        return submission

    def get_submission(self, submission_id: int) -> Submission:
        submission = self.session.query(Submission).filter_by(id=submission_id).first()
        if not submission:
            raise SubmissionNotFoundError(submission_id)
        return submission

    def list_submissions(self, location: Optional[str] = None) -> List[Submission]:
        """List submissions newest first, optionally for one location."""
        query = self.session.query(Submission)
        if location:
            query = query.filter(Submission.location == location)
        return query.order_by(Submission.submitted_at.desc(), Submission.id.desc()).all()

    def review(self, submission_id: int, today: Optional[date] = None) -> Dict[str, Any]:
        """
        Evaluate every entry of a submission.

        Returns:
            {
                'submission': Submission,
                'results': [{'entry': SubmissionEntry, 'passed': bool}, ...],
                'passed': int,
                'failed': int,
                'all_passed': bool
            }
        """
        submission = self.get_submission(submission_id)
        today = today or date.today()

        results = [
            {
                'entry': entry,
                'passed': evaluate_entry(
                    entry.entry_type, entry.value, entry.min_value, entry.max_value, today
                )
            }
            for entry in submission.entries
        ]
        passed = sum(1 for r in results if r['passed'])
        failed = len(results) - passed

        logger.debug(f"Reviewed submission {submission_id}: {passed} passed, {failed} failed")
        return {
            'submission': submission,
            'results': results,
            'passed': passed,
            'failed': failed,
            'all_passed': failed == 0
        }
