"""
app/api/routers/employee_import.py

Employee bulk import HTTP endpoints.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, Query, Response, UploadFile, status
from pydantic import ValidationError

from app.api.dependencies import get_csv_upload, get_employee_store
from app.domain.employee_import import EmploymentStatus, ImportOptions, ImportOutcome
from app.repositories.employee_repository import EmployeeRepository
from app.schemas.employee_import import (
    CSVImportOutcomeResponse,
    ImportOptionsPayload,
    ImportOutcomeResponse,
    ImportPreviewResponse,
    options_from_payload,
)
from app.services.employee_import_service import (
    EmployeeImportService,
    NoUsableRowsError,
    get_employee_import_service,
)
from app.validators.import_payload_validator import ImportStructureError

router = APIRouter(prefix="/employees/import", tags=["employee-import"])


def _invalid_options(exc: ValidationError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail={
            "code": "options_invalid",
            "message": "; ".join(error["msg"] for error in exc.errors()),
        },
    )


def _mark_partial(response: Response, outcome: ImportOutcome) -> None:
    if outcome.errors:
        response.status_code = status.HTTP_207_MULTI_STATUS


@router.post("", response_model=ImportOutcomeResponse)
def import_employees(
    response: Response,
    payload: Any = Body(..., description="Array of employee objects, or {items, options}"),
    store: EmployeeRepository = Depends(get_employee_store),
    import_service: EmployeeImportService = Depends(get_employee_import_service),
) -> ImportOutcomeResponse:
    """
    Create or update employees from a JSON array.

    Responds 207 when at least one row failed; the other rows are still applied.
    """

    try:
        options = import_service.build_options(**options_from_payload(payload).overrides())
    except ValidationError as exc:
        raise _invalid_options(exc) from exc

    try:
        outcome = import_service.import_items(payload, store=store, options=options)
    except ImportStructureError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=exc.to_dict(),
        ) from exc

    _mark_partial(response, outcome)
    return ImportOutcomeResponse.from_outcome(outcome)


@router.post("/csv", response_model=CSVImportOutcomeResponse)
def import_employees_csv(
    response: Response,
    file: UploadFile = Depends(get_csv_upload),
    upsert: bool | None = Query(default=None, description="Create employees that match no existing record"),
    match_by: str | None = Query(default=None, description="Comma-separated identifier priority, e.g. email,phone"),
    default_status: EmploymentStatus | None = Query(default=None, description="Status for new employees without one"),
    use_employee_code_as_password: bool | None = Query(default=None),
    stop_on_error: bool | None = Query(default=None),
    store: EmployeeRepository = Depends(get_employee_store),
    import_service: EmployeeImportService = Depends(get_employee_import_service),
) -> CSVImportOutcomeResponse:
    """
    Normalize an uploaded CSV and create or update the employees it describes.
    """

    try:
        requested = ImportOptionsPayload.model_validate(
            {
                "upsert": upsert,
                "match_by": match_by,
                "default_status": default_status,
                "use_employee_code_as_password": use_employee_code_as_password,
                "stop_on_error": stop_on_error,
            }
        )
    except ValidationError as exc:
        raise _invalid_options(exc) from exc
    options: ImportOptions = import_service.build_options(**requested.overrides())

    try:
        result, outcome = import_service.import_csv(file.file, store=store, options=options)
    except ImportStructureError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=exc.to_dict(),
        ) from exc
    except NoUsableRowsError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={
                "code": "no_usable_rows",
                "message": str(exc),
                "ignored_headers": exc.result.ignored_headers,
            },
        ) from exc
    finally:
        file.file.close()

    _mark_partial(response, outcome)
    return CSVImportOutcomeResponse(
        **ImportOutcomeResponse.from_outcome(outcome).model_dump(),
        recognized_headers=result.recognized_headers,
        ignored_headers=result.ignored_headers,
    )


@router.post("/preview", response_model=ImportPreviewResponse)
def preview_employee_csv(
    file: UploadFile = Depends(get_csv_upload),
    import_service: EmployeeImportService = Depends(get_employee_import_service),
) -> ImportPreviewResponse:
    """
    Show how an uploaded CSV would be normalized without touching the database.
    """

    try:
        result = import_service.normalizer.normalize_csv(file.file)
    except ImportStructureError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=exc.to_dict(),
        ) from exc
    finally:
        file.file.close()

    return ImportPreviewResponse.from_result(result)
