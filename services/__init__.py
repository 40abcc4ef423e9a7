"""
Service layer for the line-check system.

This package contains framework-agnostic business logic that can be used
by CLI, API, or any other interface.
"""

__version__ = "1.0.0"
