"""
app/config.py

Application-level configuration helpers.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from app.validators.import_payload_validator import DEFAULT_MAX_IMPORT_ROWS
from db.config import load_env_files


@lru_cache(maxsize=1)
def _load_env_once() -> None:
    """
    Ensure project `.env` files are loaded once before reading app settings.
    """

    load_env_files()


def _get_bool_env(name: str, default: bool) -> bool:
    """
    Read a boolean from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    return raw_value.strip().lower() in {"1", "true", "yes", "on"}


def _get_int_env(name: str, default: int) -> int:
    """
    Read an integer from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return int(raw_value)
    except ValueError:
        return default


def _get_str_env(name: str, default: str) -> str:
    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return default
    stripped = value.strip()
    return stripped if stripped else default


def _get_optional_str_env(name: str) -> str | None:
    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return None
    stripped = value.strip()
    return stripped if stripped else None


@dataclass(frozen=True)
class EmployeeImportSettings:
    """
    Runtime settings for employee bulk import.
    """

    max_rows: int = DEFAULT_MAX_IMPORT_ROWS
    log_row_errors: bool = True
    default_initial_password: str | None = None
    use_employee_code_as_password: bool = False
    employee_code_prefix: str = "y"
    employee_code_pad_length: int = 3


@lru_cache(maxsize=1)
def get_employee_import_settings() -> EmployeeImportSettings:
    """
    Return cached employee import settings from environment variables.
    """

    return EmployeeImportSettings(
        max_rows=min(
            DEFAULT_MAX_IMPORT_ROWS,
            max(1, _get_int_env("EMPLOYEE_IMPORT_MAX_ROWS", DEFAULT_MAX_IMPORT_ROWS)),
        ),
        log_row_errors=_get_bool_env("EMPLOYEE_IMPORT_LOG_ROW_ERRORS", True),
        default_initial_password=_get_optional_str_env("EMPLOYEE_IMPORT_DEFAULT_PASSWORD"),
        use_employee_code_as_password=_get_bool_env("EMPLOYEE_IMPORT_USE_CODE_AS_PASSWORD", False),
        employee_code_prefix=_get_str_env("EMPLOYEE_CODE_PREFIX", "y"),
        employee_code_pad_length=max(1, _get_int_env("EMPLOYEE_CODE_PAD_LENGTH", 3)),
    )
