from __future__ import annotations

import unittest
import uuid
from unittest.mock import MagicMock

from app.domain.employee_import import MatchField
from app.repositories.employee_repository import EmployeeConflictError, EmployeeRepository
from db.models.employee import Employee, EmployeeStatusLog, EmploymentStatus


class TestEmployeeRepository(unittest.TestCase):
    def setUp(self) -> None:
        self.session = MagicMock()
        self.repository = EmployeeRepository(self.session, code_prefix="y", code_pad_length=3)

    def test_next_employee_code_continues_highest_sequence(self) -> None:
        self.session.scalars.return_value.all.return_value = ["y001", "y007", "yabc", None]

        self.assertEqual(self.repository.next_employee_code(), "y008")

    def test_next_employee_code_starts_at_one(self) -> None:
        self.session.scalars.return_value.all.return_value = []

        self.assertEqual(self.repository.next_employee_code(), "y001")

    def test_invalid_uuid_never_queries(self) -> None:
        self.assertIsNone(self.repository.find_employee_id(MatchField.ID, "not-a-uuid"))
        self.assertIsNone(self.repository.find_department_id(department_id="not-a-uuid"))
        self.session.scalars.assert_not_called()

    def test_row_transaction_commits_or_rolls_back(self) -> None:
        with self.repository.row_transaction():
            pass
        self.session.commit.assert_called_once()

        with self.assertRaises(RuntimeError):
            with self.repository.row_transaction():
                raise RuntimeError("boom")
        self.session.rollback.assert_called_once()
        self.session.commit.assert_called_once()

    def test_create_rejects_email_held_by_another_employee(self) -> None:
        self.session.scalars.return_value.first.return_value = uuid.uuid4()

        with self.assertRaises(EmployeeConflictError) as ctx:
            self.repository.create_employee({"first_name": "A", "last_name": "B", "email": "a@example.com"})

        self.assertEqual(ctx.exception.code, "email_exists")
        self.session.add.assert_not_called()

    def test_terminating_writes_status_log_and_deactivates(self) -> None:
        employee = Employee(
            id=uuid.uuid4(),
            first_name="A",
            last_name="B",
            employment_status=EmploymentStatus.ACTIVE,
            is_active=True,
            custom_fields={"team": "core"},
        )
        self.session.get.return_value = employee

        self.repository.update_employee(
            str(employee.id),
            {"employment_status": EmploymentStatus.TERMINATED, "custom_fields": {"floor": "2"}},
            status_note="contract ended",
        )

        self.assertIs(employee.employment_status, EmploymentStatus.TERMINATED)
        self.assertFalse(employee.is_active)
        self.assertEqual(employee.custom_fields, {"team": "core", "floor": "2"})
        (log,), _ = self.session.add.call_args
        self.assertIsInstance(log, EmployeeStatusLog)
        self.assertEqual((log.previous_status, log.next_status, log.note), ("active", "terminated", "contract ended"))


if __name__ == "__main__":
    unittest.main()
