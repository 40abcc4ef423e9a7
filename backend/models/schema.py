"""
SQLAlchemy models for the line-check system.

This module defines the database schema using SQLAlchemy ORM,
matching the schema defined in Alembic migrations.
"""

from enum import Enum
from sqlalchemy import (
    JSON, Column, Integer, String, Text, Float, TIMESTAMP,
    ForeignKey, CheckConstraint, Index, UniqueConstraint, text
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()

# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests)
JSONType = JSON().with_variant(JSONB(), 'postgresql')


class LineType(str, Enum):
    """Kind of form line."""
    SECTION = 'section'
    TEMPERATURE = 'temperature'
    DATE = 'date'


class FormGroup(Base):
    """Represents a line-check form template."""

    __tablename__ = 'form_groups'
    __table_args__ = (
        Index('idx_form_groups_created_at', 'created_at'),
        Index('idx_form_groups_hash', 'source_file_hash'),
        {'comment': 'Line-check form templates'}
    )

    id = Column(
        Integer,
        primary_key=True,
        autoincrement=True,
        nullable=False
    )
    title = Column(
        String(255),
        nullable=False,
        comment='Form title shown to staff'
    )
    assigned_locations = Column(
        JSONType,
        nullable=False,
        default=list,
        comment='Locations this form is assigned to'
    )
    source_filename = Column(
        String(255),
        nullable=True,
        comment='Original Excel filename if imported'
    )
    source_file_hash = Column(
        String(64),
        nullable=True,
        comment='SHA256 hash of the imported workbook'
    )
    source_path = Column(
        String(512),
        nullable=True,
        comment='Path to stored copy of the imported workbook'
    )
    created_by = Column(
        String(255),
        nullable=True,
        comment='User or API key that created the form'
    )
    created_at = Column(
        TIMESTAMP,
        server_default=text('CURRENT_TIMESTAMP'),
        nullable=False,
        comment='Creation timestamp'
    )
    updated_at = Column(
        TIMESTAMP,
        server_default=text('CURRENT_TIMESTAMP'),
        nullable=False,
        comment='Last modification timestamp'
    )

    # Relationships
    lines = relationship(
        'FormLineRecord',
        back_populates='form_group',
        cascade='all, delete-orphan',
        order_by='FormLineRecord.position'
    )
    location_forms = relationship('LocationForm', back_populates='form_group',
                                  cascade='all, delete-orphan')
    submissions = relationship('Submission', back_populates='form_group')

    @property
    def fields(self):
        """Non-section lines in order."""
        return [line for line in self.lines if line.line_type != LineType.SECTION]

    def __repr__(self):
        return f"<FormGroup(id={self.id}, title='{self.title}')>"


class FormLineRecord(Base):
    """Represents one ordered line of a form: section header or field."""

    __tablename__ = 'form_lines'
    __table_args__ = (
        CheckConstraint(
            "line_type IN ('section', 'temperature', 'date')",
            name='form_lines_line_type_check'
        ),
        UniqueConstraint('form_group_id', 'position', name='uq_form_lines_position'),
        Index('idx_form_lines_form_group', 'form_group_id'),
        {'comment': 'Ordered lines of a form template'}
    )

    id = Column(
        Integer,
        primary_key=True,
        autoincrement=True,
        nullable=False
    )
    form_group_id = Column(
        Integer,
        ForeignKey('form_groups.id', ondelete='CASCADE'),
        nullable=False
    )
    position = Column(
        Integer,
        nullable=False,
        comment='1-based order shared by sections and fields'
    )
    line_type = Column(
        String(20),
        nullable=False,
        comment='Type: section, temperature, date'
    )
    label = Column(
        String(255),
        nullable=False,
        comment='Field label or section title'
    )
    description = Column(
        Text,
        nullable=False,
        default='',
        comment='Optional free-text description'
    )
    min_value = Column(
        Float,
        nullable=True,
        comment='Minimum acceptable temperature'
    )
    max_value = Column(
        Float,
        nullable=True,
        comment='Maximum acceptable temperature'
    )

    form_group = relationship('FormGroup', back_populates='lines')

    def __repr__(self):
        return f"<FormLineRecord(form_group_id={self.form_group_id}, position={self.position}, type='{self.line_type}')>"

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'position': self.position,
            'type': self.line_type,
            'label': self.label,
            'description': self.description or '',
            'min': self.min_value,
            'max': self.max_value
        }


class LocationForm(Base):
    """Assignment of a form template to a location."""

    __tablename__ = 'location_forms'
    __table_args__ = (
        UniqueConstraint('location', 'form_group_id', name='uq_location_forms'),
        Index('idx_location_forms_location', 'location'),
        {'comment': 'Forms available at each location'}
    )

    id = Column(
        Integer,
        primary_key=True,
        autoincrement=True,
        nullable=False
    )
    location = Column(
        String(255),
        nullable=False,
        comment='Location name'
    )
    form_group_id = Column(
        Integer,
        ForeignKey('form_groups.id', ondelete='CASCADE'),
        nullable=False
    )
    customizations = Column(
        JSONType,
        nullable=False,
        default=dict,
        comment='Per-location overrides'
    )

    form_group = relationship('FormGroup', back_populates='location_forms')

    def __repr__(self):
        return f"<LocationForm(location='{self.location}', form_group_id={self.form_group_id})>"


class Submission(Base):
    """A completed line check."""

    __tablename__ = 'submissions'
    __table_args__ = (
        UniqueConstraint('location', 'submission_key', name='uq_submissions_key'),
        Index('idx_submissions_location', 'location'),
        Index('idx_submissions_submitted_at', 'submitted_at'),
        {'comment': 'Completed line checks'}
    )

    id = Column(
        Integer,
        primary_key=True,
        autoincrement=True,
        nullable=False
    )
    submission_key = Column(
        String(512),
        nullable=False,
        comment='Readable key: date-location-title with (n) suffix for repeats'
    )
    location = Column(
        String(255),
        nullable=False
    )
    form_group_id = Column(
        Integer,
        ForeignKey('form_groups.id', ondelete='SET NULL'),
        nullable=True
    )
    title = Column(
        String(255),
        nullable=False,
        comment='Form title at submission time'
    )
    submitted_by = Column(
        String(255),
        nullable=True
    )
    submitted_at = Column(
        TIMESTAMP,
        nullable=False,
        comment='Submission timestamp (UTC)'
    )

    form_group = relationship('FormGroup', back_populates='submissions')
    entries = relationship(
        'SubmissionEntry',
        back_populates='submission',
        cascade='all, delete-orphan',
        order_by='SubmissionEntry.position'
    )

    def __repr__(self):
        return f"<Submission(id={self.id}, key='{self.submission_key}')>"


class SubmissionEntry(Base):
    """One recorded value of a completed line check."""

    __tablename__ = 'submission_entries'
    __table_args__ = (
        CheckConstraint(
            "entry_type IN ('temperature', 'date')",
            name='submission_entries_type_check'
        ),
        Index('idx_submission_entries_submission', 'submission_id'),
        {'comment': 'Recorded values of completed line checks'}
    )

    id = Column(
        Integer,
        primary_key=True,
        autoincrement=True,
        nullable=False
    )
    submission_id = Column(
        Integer,
        ForeignKey('submissions.id', ondelete='CASCADE'),
        nullable=False
    )
    field_id = Column(
        Integer,
        nullable=True,
        comment='Form line the value was recorded for'
    )
    position = Column(Integer, nullable=False)
    entry_type = Column(String(20), nullable=False)
    label = Column(String(255), nullable=False)
    value_number = Column(
        Float,
        nullable=True,
        comment='Temperature reading'
    )
    value_text = Column(
        String(20),
        nullable=True,
        comment='Date value as MM-DD'
    )
    min_value = Column(Float, nullable=True)
    max_value = Column(Float, nullable=True)

    submission = relationship('Submission', back_populates='entries')

    @property
    def value(self):
        if self.entry_type == LineType.TEMPERATURE:
            return self.value_number
        return self.value_text

    def __repr__(self):
        return f"<SubmissionEntry(submission_id={self.submission_id}, label='{self.label}')>"
