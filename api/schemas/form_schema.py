"""
Form-related Pydantic schemas.

This module contains schemas for line-check form templates and their lines.
"""

from typing import List, Optional
from pydantic import BaseModel, Field
from datetime import datetime

from backend.models.schema import LineType
from services.sheet_import_service import FormLine


class FormLineSchema(BaseModel):
    """One form line as sent by clients or returned by an import preview."""

    type: LineType = Field(LineType.TEMPERATURE, description="Line type: section, temperature, date")
    label: str = Field('', max_length=255, description="Field label or section title")
    description: str = Field('', description="Optional description")
    min: Optional[float] = Field(None, description="Minimum acceptable temperature")
    max: Optional[float] = Field(None, description="Maximum acceptable temperature")

    class Config:
        json_schema_extra = {
            "example": {
                "type": "temperature",
                "label": "FT Batter",
                "description": "4\" 1/6 pan, kept on ice",
                "min": 33,
                "max": 38
            }
        }

    def to_line(self) -> FormLine:
        return FormLine(
            type=self.type,
            label=self.label,
            description=self.description,
            min=self.min,
            max=self.max
        )

    @classmethod
    def from_line(cls, line: FormLine) -> 'FormLineSchema':
        return cls(**line.to_dict())


class FormLineResponse(FormLineSchema):
    """Stored form line."""

    id: int = Field(..., description="Form line ID")
    position: int = Field(..., description="1-based position in the form")


class FormCreateRequest(BaseModel):
    """Request to create a form template."""

    title: str = Field(..., max_length=255, description="Form title")
    location: str = Field(..., max_length=255, description="Location the form is assigned to")
    lines: List[FormLineSchema] = Field(..., description="Ordered form lines")

    class Config:
        json_schema_extra = {
            "example": {
                "title": "2301 Line Check",
                "location": "Downtown",
                "lines": [
                    {"type": "section", "label": "Meat Grill"},
                    {"type": "temperature", "label": "Burger Patties", "min": 33, "max": 38},
                    {"type": "date", "label": "Pesto"}
                ]
            }
        }


class FormUpdateRequest(BaseModel):
    """Request to replace the title and lines of a form."""

    title: str = Field(..., max_length=255, description="Form title")
    lines: List[FormLineSchema] = Field(..., description="Ordered form lines")


class FormAssignRequest(BaseModel):
    """Request to make a form available at a location."""

    location: str = Field(..., min_length=1, max_length=255, description="Location name")


class FormDetail(BaseModel):
    """Detailed form template."""

    id: int = Field(..., description="Form ID")
    title: str = Field(..., description="Form title")
    assigned_locations: List[str] = Field(default_factory=list, description="Assigned locations")
    source_filename: Optional[str] = Field(None, description="Workbook the form was imported from")
    created_by: Optional[str] = Field(None, description="Creator")
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: datetime = Field(..., description="Last update timestamp")
    lines: List[FormLineResponse] = Field(..., description="Ordered form lines")

    @classmethod
    def from_form(cls, form) -> 'FormDetail':
        return cls(
            id=form.id,
            title=form.title,
            assigned_locations=form.assigned_locations or [],
            source_filename=form.source_filename,
            created_by=form.created_by,
            created_at=form.created_at,
            updated_at=form.updated_at,
            lines=[FormLineResponse(**line.to_dict()) for line in form.lines]
        )


class FormListItem(BaseModel):
    """Form list item."""

    id: int = Field(..., description="Form ID")
    title: str = Field(..., description="Form title")
    assigned_locations: List[str] = Field(default_factory=list, description="Assigned locations")
    section_count: int = Field(..., description="Number of section headers")
    field_count: int = Field(..., description="Number of temperature and date fields")
    created_at: datetime = Field(..., description="Creation timestamp")

    @classmethod
    def from_form(cls, form) -> 'FormListItem':
        fields = form.fields
        return cls(
            id=form.id,
            title=form.title,
            assigned_locations=form.assigned_locations or [],
            section_count=len(form.lines) - len(fields),
            field_count=len(fields),
            created_at=form.created_at
        )


class FormListResponse(BaseModel):
    """Form list response."""

    total: int = Field(..., description="Total number of forms")
    items: List[FormListItem] = Field(..., description="Forms")


class FormDeleteResponse(BaseModel):
    """Response when a form is deleted."""

    id: int = Field(..., description="Deleted form ID")
    message: str = Field(..., description="Success message")
    lines_deleted: int = Field(..., description="Number of lines deleted")
