"""
Import-related Pydantic schemas.

This module contains schemas for worksheet template import responses.
"""

from typing import List, Optional
from pydantic import BaseModel, Field

from api.schemas.form_schema import FormDetail, FormLineSchema


class ImportSummary(BaseModel):
    """Counts of imported lines per type."""

    total: int = Field(..., description="Total lines imported")
    sections: int = Field(..., description="Section headers")
    temperature_fields: int = Field(..., description="Temperature fields")
    date_fields: int = Field(..., description="Date fields")


class ImportPreviewResponse(BaseModel):
    """Parsed lines for review before a form is created."""

    filename: str = Field(..., description="Uploaded filename")
    sheet_name: str = Field(..., description="Worksheet the lines were read from")
    file_hash: str = Field(..., description="SHA256 file hash")
    summary: ImportSummary = Field(..., description="Import counts")
    lines: List[FormLineSchema] = Field(..., description="Parsed lines in worksheet order")
    existing_form_id: Optional[int] = Field(
        None, description="Form previously imported from the same workbook"
    )

    class Config:
        json_schema_extra = {
            "example": {
                "filename": "line_check.xlsx",
                "sheet_name": "Line Check",
                "file_hash": "a1b2c3d4e5f6...",
                "summary": {"total": 3, "sections": 1, "temperature_fields": 1, "date_fields": 1},
                "lines": [
                    {"type": "section", "label": "Meat Grill", "description": "", "min": None, "max": None},
                    {"type": "temperature", "label": "Burger Patties", "description": "", "min": 33, "max": 38},
                    {"type": "date", "label": "Pesto", "description": "", "min": None, "max": None}
                ],
                "existing_form_id": None
            }
        }


class ImportFormResponse(BaseModel):
    """Form created directly from an uploaded workbook."""

    form: FormDetail = Field(..., description="Created form")
    sheet_name: str = Field(..., description="Worksheet the lines were read from")
    summary: ImportSummary = Field(..., description="Import counts")


class ImportSettingsResponse(BaseModel):
    """Worksheet layout the importer expects."""

    sheet_name_hint: str = Field(..., description="Sheets whose name contains this are picked first")
    data_start_row: int = Field(..., description="First worksheet row holding form lines")
    section_columns: str = Field(..., description="Merge range marking a section header, e.g. A:E")
    temperature_marker: str = Field(..., description="Column B text marking a temperature row")
    allowed_extensions: List[str] = Field(..., description="Accepted workbook extensions")
    max_file_size_mb: int = Field(..., description="Upload size limit")
