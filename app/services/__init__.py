"""
app/services package marker.
"""

from app.services.employee_import_service import (
    EmployeeImportService,
    IdentifierLookup,
    NoUsableRowsError,
    format_outcome_summary,
    get_employee_import_service,
)

__all__ = [
    "EmployeeImportService",
    "IdentifierLookup",
    "NoUsableRowsError",
    "format_outcome_summary",
    "get_employee_import_service",
]
