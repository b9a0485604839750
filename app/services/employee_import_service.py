"""
app/services/employee_import_service.py

Upsert reconciler for employee bulk import.

Rows are applied one at a time, in input order, each inside its own store
transaction. A failing row is rolled back, reported in the outcome's error
list and counted as skipped; it never aborts the rest of the batch. Rows
that were already committed stay committed if the batch stops early, and
re-running the same batch updates instead of duplicating because every row
is matched by identifier first.
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Callable, Mapping, Sequence
from functools import lru_cache
from typing import IO, Any, ContextManager, Protocol

from sqlalchemy.exc import SQLAlchemyError

from app.config import get_employee_import_settings
from app.domain.employee_import import (
    DEFAULT_MATCH_ORDER,
    EmploymentStatus,
    ImportOptions,
    ImportOutcome,
    ImportRow,
    ImportRowError,
    MatchField,
    NormalizationResult,
)
from app.mappers.import_normalizer import ImportNormalizer
from app.passwords import hash_password
from app.validators.import_payload_validator import DEFAULT_MAX_IMPORT_ROWS, ImportPayloadValidator
from app.validators.import_row_validator import ImportRowValidator, RowRejectedError

logger = logging.getLogger(__name__)

_CREATED = "created"
_UPDATED = "updated"
_SKIPPED = "skipped"

# Row fields that are resolved or consumed before reaching the store.
_NON_COLUMN_FIELDS = frozenset(
    {"id", "department_code", "department_id", "job_grade_code", "job_grade_id", "initial_password"}
)


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class NoUsableRowsError(ValueError):
    """
    Raised when a source normalizes to zero rows.
    """

    def __init__(self, result: NormalizationResult) -> None:
        super().__init__("The import source contains no usable rows.")
        self.result = result


# ---------------------------------------------------------------------------
# Collaborators
# ---------------------------------------------------------------------------


class EmployeeStore(Protocol):
    """
    Persistence collaborator the reconciler reads from and writes to.
    """

    def row_transaction(self) -> ContextManager[Any]:
        ...

    def find_employee_id(self, match_field: MatchField, value: str) -> str | None:
        ...

    def find_department_id(
        self,
        *,
        code: str | None = None,
        department_id: str | None = None,
    ) -> str | None:
        ...

    def find_job_grade_id(
        self,
        *,
        code: str | None = None,
        job_grade_id: str | None = None,
    ) -> str | None:
        ...

    def next_employee_code(self) -> str:
        ...

    def create_employee(self, values: Mapping[str, Any]) -> str:
        ...

    def update_employee(
        self,
        employee_id: str,
        values: Mapping[str, Any],
        *,
        status_note: str | None = None,
    ) -> None:
        ...


class IdentifierLookup:
    """
    Resolves an import row to at most one existing employee.

    Identifiers are tried in the given priority order; the first identifier
    that is present on the row and matches an employee wins, and lower
    priority identifiers are not consulted.
    """

    def __init__(self, store: EmployeeStore) -> None:
        self._store = store

    def resolve(
        self,
        row: ImportRow,
        order: Sequence[MatchField] = DEFAULT_MATCH_ORDER,
    ) -> tuple[str | None, MatchField | None]:
        for match_field in order:
            value = row.identifier_value(match_field)
            if value is None:
                continue
            existing_id = self._store.find_employee_id(match_field, value)
            if existing_id is not None:
                return existing_id, match_field
        return None, None


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


class EmployeeImportService:
    """
    Coordinates normalization, validation and per-row upsert.
    """

    def __init__(
        self,
        *,
        max_rows: int = DEFAULT_MAX_IMPORT_ROWS,
        log_row_errors: bool = True,
        default_options: ImportOptions | None = None,
        normalizer: ImportNormalizer | None = None,
        row_validator: ImportRowValidator | None = None,
        password_hasher: Callable[[str], str] = hash_password,
    ) -> None:
        self._payload_validator = ImportPayloadValidator(max_rows=max_rows)
        self._normalizer = normalizer or ImportNormalizer(payload_validator=self._payload_validator)
        self._row_validator = row_validator or ImportRowValidator()
        self._log_row_errors = log_row_errors
        self._default_options = default_options or ImportOptions()
        self._hash_password = password_hasher

    @property
    def normalizer(self) -> ImportNormalizer:
        return self._normalizer

    def build_options(self, **overrides: Any) -> ImportOptions:
        """
        Service defaults with the non-None ``overrides`` applied.
        """

        changes = {key: value for key, value in overrides.items() if value is not None}
        return dataclasses.replace(self._default_options, **changes)

    def import_csv(
        self,
        source: bytes | str | IO[bytes] | IO[str],
        *,
        store: EmployeeStore,
        options: ImportOptions | None = None,
    ) -> tuple[NormalizationResult, ImportOutcome]:
        """
        Normalize a CSV source and reconcile the resulting rows.
        """

        result = self._normalizer.normalize_csv(source)
        if not result.rows:
            raise NoUsableRowsError(result)
        return result, self.reconcile(result.rows, store=store, options=options)

    def import_items(
        self,
        payload: Any,
        *,
        store: EmployeeStore,
        options: ImportOptions | None = None,
    ) -> ImportOutcome:
        """
        Reconcile a JSON payload: a bare array or ``{"items": [...]}``.
        """

        items = self._payload_validator.validate(payload)
        return self.reconcile(items, store=store, options=options)

    def reconcile(
        self,
        rows: Sequence[ImportRow | Mapping[str, Any]],
        *,
        store: EmployeeStore,
        options: ImportOptions | None = None,
    ) -> ImportOutcome:
        """
        Create, update or skip each row and report per-row outcomes.

        Raw mappings are converted row by row, so a malformed item becomes a
        row error instead of failing the batch. Oversized or empty batches
        raise ImportStructureError before the store is touched.
        """

        self._payload_validator.check_size(len(rows))
        options = options or self._default_options
        default_order = options.match_by or DEFAULT_MATCH_ORDER
        lookup = IdentifierLookup(store)
        outcome = ImportOutcome()

        for index, raw_row in enumerate(rows):
            row = raw_row if isinstance(raw_row, ImportRow) else None
            try:
                with store.row_transaction():
                    if row is None:
                        row = self._normalizer.row_from_mapping(raw_row)
                        self._normalizer.check_status(raw_row)
                    result = self._apply_row(
                        row,
                        store=store,
                        lookup=lookup,
                        options=options,
                        default_order=default_order,
                    )
            except RowRejectedError as exc:
                self._record_error(outcome, index=index, row=row, code=exc.code, message=exc.message)
            except SQLAlchemyError as exc:
                logger.warning("Employee import row %d hit a database error: %s", index, exc)
                self._record_error(
                    outcome,
                    index=index,
                    row=row,
                    code="persistence_error",
                    message="The row could not be saved to the database.",
                )
            except Exception as exc:  # noqa: BLE001
                logger.exception("Unexpected failure importing employee row %d", index)
                self._record_error(outcome, index=index, row=row, code="unexpected_error", message=str(exc))
            else:
                if result == _CREATED:
                    outcome.created += 1
                elif result == _UPDATED:
                    outcome.updated += 1
                else:
                    outcome.skipped += 1
                continue

            outcome.skipped += 1
            if options.stop_on_error:
                remaining = len(rows) - index - 1
                outcome.skipped += remaining
                logger.info("Employee import stopped at row %d; %d rows left unprocessed", index, remaining)
                break

        logger.info(
            "Employee import finished rows=%d created=%d updated=%d skipped=%d errors=%d",
            len(rows),
            outcome.created,
            outcome.updated,
            outcome.skipped,
            len(outcome.errors),
        )
        return outcome

    # ------------------------------------------------------------------
    # Row internals
    # ------------------------------------------------------------------

    def _apply_row(
        self,
        row: ImportRow,
        *,
        store: EmployeeStore,
        lookup: IdentifierLookup,
        options: ImportOptions,
        default_order: Sequence[MatchField],
    ) -> str:
        existing_id, _ = lookup.resolve(row, row.match_by or default_order)
        if existing_id is None and not options.upsert:
            return _SKIPPED

        values = self._column_values(row, store=store)
        if existing_id is not None:
            store.update_employee(existing_id, values, status_note=row.status_change_note)
            return _UPDATED

        store.create_employee(self._creation_values(row, values, store=store, options=options))
        return _CREATED

    def _column_values(self, row: ImportRow, *, store: EmployeeStore) -> dict[str, Any]:
        """
        Employee columns for the fields the row supplies, parsed and resolved.
        """

        values: dict[str, Any] = {}
        for name, value in row.present_fields().items():
            if name in _NON_COLUMN_FIELDS:
                continue
            if name in ("hire_date", "termination_date"):
                values[name] = self._row_validator.parse_date(value, column=name)
            elif name == "gender":
                values[name] = self._row_validator.parse_gender(value)
            else:
                values[name] = value

        department_id = self._resolve_department(row, store)
        if department_id is not None:
            values["department_id"] = department_id
        job_grade_id = self._resolve_job_grade(row, store)
        if job_grade_id is not None:
            values["job_grade_id"] = job_grade_id
        return values

    def _creation_values(
        self,
        row: ImportRow,
        values: dict[str, Any],
        *,
        store: EmployeeStore,
        options: ImportOptions,
    ) -> dict[str, Any]:
        first_name, last_name = self._resolve_names(row)

        password = (
            row.initial_password
            or (row.employee_code if options.use_employee_code_as_password else None)
            or options.default_initial_password
        )
        if not password:
            raise RowRejectedError(
                "missing_password",
                "No initial password: supply one per row or set a default for the import.",
            )

        return {
            **values,
            "first_name": first_name,
            "last_name": last_name,
            "employee_code": row.employee_code or store.next_employee_code(),
            "employment_status": row.employment_status or options.default_status or EmploymentStatus.ACTIVE,
            "password_hash": self._hash_password(password),
        }

    def _resolve_names(self, row: ImportRow) -> tuple[str, str]:
        first_name = row.first_name
        last_name = row.last_name
        if row.display_name and not (first_name and last_name):
            split_first, split_last = self._row_validator.split_full_name(row.display_name)
            first_name = first_name or split_first
            last_name = last_name or split_last
        first_name = first_name or last_name
        last_name = last_name or first_name
        if not first_name or not last_name:
            raise RowRejectedError("missing_display_name", "A name is required to create an employee.")
        return first_name, last_name

    @staticmethod
    def _resolve_department(row: ImportRow, store: EmployeeStore) -> str | None:
        if row.department_id:
            department_id = store.find_department_id(department_id=row.department_id)
            if department_id is None:
                raise RowRejectedError("department_not_found", f"Department {row.department_id} does not exist.")
            return department_id
        if row.department_code:
            department_id = store.find_department_id(code=row.department_code)
            if department_id is None:
                raise RowRejectedError(
                    "department_code_not_found",
                    f"No department with code {row.department_code!r}.",
                )
            return department_id
        return None

    @staticmethod
    def _resolve_job_grade(row: ImportRow, store: EmployeeStore) -> str | None:
        if row.job_grade_id:
            job_grade_id = store.find_job_grade_id(job_grade_id=row.job_grade_id)
            if job_grade_id is None:
                raise RowRejectedError("job_grade_not_found", f"Job grade {row.job_grade_id} does not exist.")
            return job_grade_id
        if row.job_grade_code:
            job_grade_id = store.find_job_grade_id(code=row.job_grade_code)
            if job_grade_id is None:
                raise RowRejectedError(
                    "job_grade_code_not_found",
                    f"No job grade with code {row.job_grade_code!r}.",
                )
            return job_grade_id
        return None

    def _record_error(
        self,
        outcome: ImportOutcome,
        *,
        index: int,
        row: ImportRow | None,
        code: str,
        message: str,
    ) -> None:
        identifier = row.identifier_for() if row is not None else None
        if self._log_row_errors:
            logger.warning(
                "Employee import row failed index=%s identifier=%r code=%s message=%s",
                index,
                identifier,
                code,
                message,
            )
        outcome.errors.append(ImportRowError(index=index, message=message, identifier=identifier, code=code))


# ---------------------------------------------------------------------------
# Reporting
# ---------------------------------------------------------------------------


def format_outcome_summary(outcome: ImportOutcome, *, max_errors: int = 5) -> str:
    """
    Human-readable summary: counts, then at most ``max_errors`` row errors.

    Errors beyond the limit are elided with a count; the outcome itself keeps
    the full list.
    """

    lines = [
        f"Created {outcome.created}, updated {outcome.updated}, skipped {outcome.skipped}."
    ]
    shown = outcome.errors[: max(0, max_errors)]
    for error in shown:
        label = f" ({error.identifier})" if error.identifier else ""
        lines.append(f"  row {error.index + 1}{label}: {error.message}")
    hidden = len(outcome.errors) - len(shown)
    if hidden > 0:
        lines.append(f"  ... and {hidden} more error(s)")
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


@lru_cache(maxsize=1)
def get_employee_import_service() -> EmployeeImportService:
    """
    Build and cache the import service with env-driven settings.
    """

    settings = get_employee_import_settings()
    return EmployeeImportService(
        max_rows=settings.max_rows,
        log_row_errors=settings.log_row_errors,
        default_options=ImportOptions(
            default_initial_password=settings.default_initial_password,
            use_employee_code_as_password=settings.use_employee_code_as_password,
        ),
    )
