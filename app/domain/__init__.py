"""
app/domain package marker.
"""

from app.domain.employee_import import (
    ImportOptions,
    ImportOutcome,
    ImportRow,
    ImportRowError,
    MatchField,
    NormalizationResult,
)

__all__ = [
    "ImportOptions",
    "ImportOutcome",
    "ImportRow",
    "ImportRowError",
    "MatchField",
    "NormalizationResult",
]
