"""
app/schemas package marker.
"""

from app.schemas.employee_import import (
    CSVImportOutcomeResponse,
    ImportOptionsPayload,
    ImportOutcomeResponse,
    ImportPreviewResponse,
    ImportRowErrorResponse,
)

__all__ = [
    "CSVImportOutcomeResponse",
    "ImportOptionsPayload",
    "ImportOutcomeResponse",
    "ImportPreviewResponse",
    "ImportRowErrorResponse",
]
