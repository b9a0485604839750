from __future__ import annotations

import json
import unittest

from app.domain.employee_import import EmploymentStatus, MatchField
from app.mappers.import_normalizer import ImportNormalizer, coerce_employment_status
from app.validators.import_payload_validator import ImportPayloadValidator, ImportStructureError
from app.validators.import_row_validator import RowRejectedError


class TestCoerceEmploymentStatus(unittest.TestCase):
    def test_english_and_chinese_tokens(self) -> None:
        self.assertIs(coerce_employment_status("Active"), EmploymentStatus.ACTIVE)
        self.assertIs(coerce_employment_status(" ON LEAVE "), EmploymentStatus.ON_LEAVE)
        self.assertIs(coerce_employment_status("inactive"), EmploymentStatus.TERMINATED)
        self.assertIs(coerce_employment_status("在职"), EmploymentStatus.ACTIVE)
        self.assertIs(coerce_employment_status("休假"), EmploymentStatus.ON_LEAVE)
        self.assertIs(coerce_employment_status("离职"), EmploymentStatus.TERMINATED)

    def test_unknown_text_is_none(self) -> None:
        self.assertIsNone(coerce_employment_status("retired"))
        self.assertIsNone(coerce_employment_status(""))
        self.assertIsNone(coerce_employment_status(None))


class TestNormalizeCSV(unittest.TestCase):
    def setUp(self) -> None:
        self.normalizer = ImportNormalizer()

    def test_chinese_headers_map_to_canonical_fields(self) -> None:
        result = self.normalizer.normalize_csv("姓名,邮箱,员工状态\n王晓华,xiaohua@example.com,在职\n")

        self.assertEqual(len(result.rows), 1)
        row = result.rows[0]
        self.assertEqual(row.display_name, "王晓华")
        self.assertEqual(row.email, "xiaohua@example.com")
        self.assertIs(row.employment_status, EmploymentStatus.ACTIVE)
        self.assertEqual(result.recognized_headers, ["姓名", "邮箱", "员工状态"])
        self.assertEqual(result.ignored_headers, [])

    def test_english_aliases_and_unknown_headers(self) -> None:
        result = self.normalizer.normalize_csv(
            "Employee Code,E-mail,Full Name,Nickname\nE01, a@x.com ,Alice Smith,Ally\n"
        )

        row = result.rows[0]
        self.assertEqual(row.employee_code, "E01")
        self.assertEqual(row.email, "a@x.com")
        self.assertEqual(row.display_name, "Alice Smith")
        self.assertEqual(result.recognized_headers, ["Employee Code", "E-mail", "Full Name"])
        self.assertEqual(result.ignored_headers, ["Nickname"])

    def test_custom_prefix_goes_to_custom_fields(self) -> None:
        result = self.normalizer.normalize_csv("email,custom.shirt_size,custom.\na@x.com,L,orphan\n")

        row = result.rows[0]
        self.assertEqual(row.custom_fields, {"shirt_size": "L"})
        self.assertIn("custom.shirt_size", result.recognized_headers)
        self.assertEqual(result.ignored_headers, ["custom."])

    def test_header_recognized_in_one_row_and_ignored_in_another(self) -> None:
        result = self.normalizer.normalize_csv("email,status\na@x.com,active\nb@x.com,retired\n")

        self.assertEqual(len(result.rows), 2)
        self.assertIsNone(result.rows[1].employment_status)
        self.assertIn("status", result.recognized_headers)
        self.assertIn("status", result.ignored_headers)

    def test_ragged_rows_are_tolerated(self) -> None:
        result = self.normalizer.normalize_csv("name,email\nAlice,a@x.com,surplus\nBob\n")

        self.assertEqual(len(result.rows), 2)
        self.assertEqual(result.rows[0].email, "a@x.com")
        self.assertEqual(result.rows[1].display_name, "Bob")
        self.assertIsNone(result.rows[1].email)

    def test_blank_and_empty_rows_are_dropped(self) -> None:
        result = self.normalizer.normalize_csv("name,email\n\n   \n,\nCarol,c@x.com\n")

        self.assertEqual([row.display_name for row in result.rows], ["Carol"])

    def test_utf8_bom_bytes_are_accepted(self) -> None:
        source = "\ufeffname,email\nDana,d@x.com\n".encode("utf-8")
        result = self.normalizer.normalize_csv(source)

        self.assertEqual(result.recognized_headers, ["name", "email"])
        self.assertEqual(result.rows[0].display_name, "Dana")

    def test_bad_quoting_raises_structure_error(self) -> None:
        with self.assertRaises(ImportStructureError) as ctx:
            self.normalizer.normalize_csv('name,email\n"Eve"x,e@x.com\n')

        self.assertEqual(ctx.exception.code, "malformed_csv")

    def test_nul_byte_raises_structure_error(self) -> None:
        with self.assertRaises(ImportStructureError) as ctx:
            self.normalizer.normalize_csv("姓名,邮箱\n王\x00晓华,a@x.com\n")

        self.assertEqual(ctx.exception.code, "malformed_csv")

    def test_row_with_only_a_note_is_dropped(self) -> None:
        result = self.normalizer.normalize_csv("name,备注\nErin,moved teams\n,left a remark\n")

        self.assertEqual([row.display_name for row in result.rows], ["Erin"])
        self.assertEqual(result.rows[0].status_change_note, "moved teams")

    def test_undecodable_bytes_raise_structure_error(self) -> None:
        with self.assertRaises(ImportStructureError) as ctx:
            self.normalizer.normalize_csv(b"name\n\xff\xfe\n")

        self.assertEqual(ctx.exception.code, "invalid_encoding")

    def test_missing_header_raises_structure_error(self) -> None:
        with self.assertRaises(ImportStructureError) as ctx:
            self.normalizer.normalize_csv("")

        self.assertEqual(ctx.exception.code, "missing_header")

    def test_no_usable_rows_is_not_an_error(self) -> None:
        result = self.normalizer.normalize_csv("nickname\nAlly\n")

        self.assertEqual(result.rows, [])
        self.assertEqual(result.ignored_headers, ["nickname"])


class TestNormalizeJSON(unittest.TestCase):
    def setUp(self) -> None:
        self.normalizer = ImportNormalizer(payload_validator=ImportPayloadValidator(max_rows=3))

    def test_camel_case_keys_and_custom_fields(self) -> None:
        payload = json.dumps(
            [
                {
                    "displayName": "Frank",
                    "employeeCode": "E07",
                    "employmentStatus": "on_leave",
                    "customFields": {"team": "core", "empty": ""},
                    "matchBy": ["email", "employeeCode"],
                }
            ]
        )

        result = self.normalizer.normalize_json(payload)

        row = result.rows[0]
        self.assertEqual(row.display_name, "Frank")
        self.assertEqual(row.employee_code, "E07")
        self.assertIs(row.employment_status, EmploymentStatus.ON_LEAVE)
        self.assertEqual(row.custom_fields, {"team": "core"})
        self.assertEqual(row.match_by, (MatchField.EMAIL, MatchField.EMPLOYEE_CODE))
        self.assertIn("customFields", result.recognized_headers)

    def test_nested_values_on_plain_fields_are_ignored(self) -> None:
        result = self.normalizer.normalize_json([{"email": "g@x.com", "phone": {"home": "1"}}])

        self.assertIsNone(result.rows[0].phone)
        self.assertEqual(result.ignored_headers, ["phone"])

    def test_structural_errors(self) -> None:
        cases = {
            "[{": "malformed_json",
            '{"items": []}': "payload_invalid",
            "[]": "payload_empty",
            "[1]": "row_not_object",
            "[{}, {}, {}, {}]": "too_many_rows",
        }
        for source, expected in cases.items():
            with self.subTest(source=source):
                with self.assertRaises(ImportStructureError) as ctx:
                    self.normalizer.normalize_json(source)
                self.assertEqual(ctx.exception.code, expected)


class TestRowFromMapping(unittest.TestCase):
    def setUp(self) -> None:
        self.normalizer = ImportNormalizer()

    def test_empty_object_yields_blank_row(self) -> None:
        row = self.normalizer.row_from_mapping({})

        self.assertFalse(row.has_values())

    def test_check_status_rejects_uncoercible_text(self) -> None:
        with self.assertRaises(RowRejectedError) as ctx:
            self.normalizer.check_status({"email": "h@x.com", "employmentStatus": "retired"})

        self.assertEqual(ctx.exception.code, "invalid_status")

    def test_check_status_accepts_known_or_missing_status(self) -> None:
        self.normalizer.check_status({"status": "离职"})
        self.normalizer.check_status({"status": ""})
        self.normalizer.check_status({"email": "h@x.com"})


if __name__ == "__main__":
    unittest.main()
