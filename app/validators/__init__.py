"""
app/validators package marker.
"""

from app.validators.import_payload_validator import ImportPayloadValidator, ImportStructureError
from app.validators.import_row_validator import ImportRowValidator, RowRejectedError

__all__ = [
    "ImportPayloadValidator",
    "ImportRowValidator",
    "ImportStructureError",
    "RowRejectedError",
]
