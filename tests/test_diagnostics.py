import unittest
from unittest import mock

from json_doctor.diagnostics import catalogue_suggestions, diagnose
from json_doctor.models import FindingKind


class DiagnoseTest(unittest.TestCase):
    def finding(self, diagnosis, kind):
        for f in diagnosis.findings:
            if f.kind == kind:
                return f
        self.fail(f"no {kind} finding in {diagnosis.kinds()}")

    def test_valid_input_has_no_findings(self):
        diagnosis = diagnose('{"a": 1}')
        self.assertTrue(diagnosis.is_valid)
        self.assertEqual(diagnosis.findings, [])

    def test_unquoted_key(self):
        diagnosis = diagnose('{name: "John"}')
        self.assertFalse(diagnosis.is_valid)
        key = self.finding(diagnosis, FindingKind.KEY)
        self.assertIn("Quote all", key.suggestion)
        self.assertEqual((key.position, key.line, key.column), (1, 1, 2))

    def test_occurrences_are_counted(self):
        key = self.finding(diagnose("{a: 1, b: 2}"), FindingKind.KEY)
        self.assertEqual(key.occurrence_count, 2)

    def test_single_quotes(self):
        quote = self.finding(diagnose("{'a': 1}"), FindingKind.QUOTE)
        self.assertIn("double quotes", quote.suggestion)

    def test_trailing_comma(self):
        comma = self.finding(diagnose("[1, 2,]"), FindingKind.COMMA)
        self.assertIn("trailing", comma.suggestion)

    def test_undefined(self):
        value = self.finding(diagnose('{"a": undefined}'), FindingKind.VALUE)
        self.assertIn("null", value.suggestion)

    def test_comments(self):
        self.finding(diagnose('{"a": 1 // x\n}'), FindingKind.OTHER)

    def test_unterminated_string(self):
        self.finding(diagnose('{"a": "b'), FindingKind.STRING)

    def test_mismatched_bracket(self):
        self.finding(diagnose('{"a": [1, 2}'), FindingKind.BRACKET)

    def test_unclosed_brace(self):
        self.finding(diagnose('{"a": 1'), FindingKind.BRACE)

    def test_empty_input_is_a_syntax_finding(self):
        diagnosis = diagnose("")
        self.assertFalse(diagnosis.is_valid)
        self.assertEqual(diagnosis.kinds(), [FindingKind.SYNTAX])

    def test_catalogue_suggestions(self):
        self.assertIn(
            "Use double quotes instead of single quotes",
            catalogue_suggestions("{'a': 1}"),
        )

    def test_unexpected_error_becomes_syntax_finding(self):
        with mock.patch(
            "json_doctor.diagnostics.strict_parse", side_effect=RuntimeError("boom")
        ):
            diagnosis = diagnose("{")
        self.assertFalse(diagnosis.is_valid)
        self.assertEqual(diagnosis.kinds(), [FindingKind.SYNTAX])
        self.assertIn("boom", diagnosis.findings[0].message)


if __name__ == "__main__":
    unittest.main()
