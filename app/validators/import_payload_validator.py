"""
app/validators/import_payload_validator.py

Whole-batch (structural) validation for employee import payloads.
"""

from __future__ import annotations

from typing import Any, Mapping

# Also the ceiling: configuration may lower the limit but never raise it.
DEFAULT_MAX_IMPORT_ROWS = 500


class ImportStructureError(ValueError):
    """
    Raised when an import payload is unusable as a whole. No row is processed.
    """

    def __init__(self, *, code: str, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message

    def to_dict(self) -> dict[str, str]:
        return {"code": self.code, "message": self.message}


class ImportPayloadValidator:
    """
    Validates the top-level shape of a JSON import payload.
    """

    def __init__(self, *, max_rows: int = DEFAULT_MAX_IMPORT_ROWS) -> None:
        self._max_rows = min(DEFAULT_MAX_IMPORT_ROWS, max(1, max_rows))

    @property
    def max_rows(self) -> int:
        return self._max_rows

    def extract_items(self, payload: Any) -> list[Any]:
        """
        Accept a bare array or an object carrying an ``items`` array.
        """

        if isinstance(payload, list):
            return payload
        if isinstance(payload, Mapping) and isinstance(payload.get("items"), list):
            return payload["items"]
        raise ImportStructureError(
            code="payload_invalid",
            message="Import payload must be an array or an object with an 'items' array.",
        )

    def validate(self, payload: Any) -> list[Mapping[str, Any]]:
        """
        Return the payload rows, or raise ImportStructureError.
        """

        items = self.extract_items(payload)
        self.check_size(len(items))

        for index, item in enumerate(items):
            if not isinstance(item, Mapping):
                raise ImportStructureError(
                    code="row_not_object",
                    message=f"Import row {index} is not an object.",
                )
        return items

    def check_size(self, row_count: int) -> None:
        if row_count == 0:
            raise ImportStructureError(code="payload_empty", message="Import payload is empty.")
        if row_count > self._max_rows:
            raise ImportStructureError(
                code="too_many_rows",
                message=f"At most {self._max_rows} rows can be imported at once; got {row_count}.",
            )
