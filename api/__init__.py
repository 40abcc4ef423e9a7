"""
FastAPI application for the line-check system.

This package contains the REST API for line-check forms, spreadsheet
template import and check review.
"""

__version__ = "1.0.0"
