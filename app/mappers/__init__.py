"""
app/mappers package marker.
"""

from app.mappers.import_normalizer import (
    DEFAULT_HEADER_ALIASES,
    ImportNormalizer,
    coerce_employment_status,
)

__all__ = [
    "DEFAULT_HEADER_ALIASES",
    "ImportNormalizer",
    "coerce_employment_status",
]
