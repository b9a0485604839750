"""
Run an employee bulk import from CLI.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from app.config import get_employee_import_settings
from app.domain.employee_import import EmploymentStatus, MatchField, parse_match_fields
from app.repositories.employee_repository import EmployeeRepository
from app.services.employee_import_service import (
    NoUsableRowsError,
    format_outcome_summary,
    get_employee_import_service,
)
from app.validators.import_payload_validator import ImportStructureError
from db.session import SessionLocal


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Import employees from a CSV or JSON file.")
    parser.add_argument("path", type=Path, help="CSV file, or JSON array / {items: [...]} file.")
    parser.add_argument(
        "--match-by",
        dest="match_by",
        default=None,
        help="Comma-separated identifier priority, e.g. employee_code,email.",
    )
    parser.add_argument(
        "--no-upsert",
        dest="upsert",
        action="store_false",
        default=None,
        help="Only update existing employees; never create new ones.",
    )
    parser.add_argument(
        "--default-status",
        dest="default_status",
        choices=[status.value for status in EmploymentStatus],
        default=None,
    )
    parser.add_argument("--stop-on-error", dest="stop_on_error", action="store_true", default=None)
    parser.add_argument(
        "--json",
        dest="as_json",
        action="store_true",
        help="Print the full outcome as JSON instead of a summary.",
    )
    return parser


def main() -> int:
    parser = _build_parser()
    args = parser.parse_args()
    match_by: tuple[MatchField, ...] = ()
    if args.match_by is not None:
        tokens = [token for token in args.match_by.split(",") if token.strip()]
        unknown = [token for token in tokens if not parse_match_fields([token])]
        if unknown or not tokens:
            parser.error(f"--match-by expects id, employee_code, email or phone; got {args.match_by!r}")
        match_by = parse_match_fields(tokens)
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s [%(name)s] %(message)s")

    service = get_employee_import_service()
    settings = get_employee_import_settings()
    options = service.build_options(
        upsert=args.upsert,
        match_by=match_by or None,
        default_status=EmploymentStatus(args.default_status) if args.default_status else None,
        stop_on_error=args.stop_on_error,
    )

    with SessionLocal() as db:
        store = EmployeeRepository(
            db,
            code_prefix=settings.employee_code_prefix,
            code_pad_length=settings.employee_code_pad_length,
        )
        try:
            if args.path.suffix.lower() == ".json":
                payload = json.loads(args.path.read_text(encoding="utf-8-sig"))
                outcome = service.import_items(payload, store=store, options=options)
            else:
                with args.path.open("rb") as handle:
                    _, outcome = service.import_csv(handle, store=store, options=options)
        except (ImportStructureError, NoUsableRowsError, json.JSONDecodeError, UnicodeDecodeError) as exc:
            print(f"Import rejected: {exc}", file=sys.stderr)
            return 2

    if args.as_json:
        print(json.dumps(outcome.to_dict(), indent=2, ensure_ascii=False))
    else:
        print(format_outcome_summary(outcome))
    return 1 if outcome.errors else 0


if __name__ == "__main__":
    raise SystemExit(main())
