import unittest

from json_doctor.scanner import (
    end_state,
    map_structural,
    scan,
    significant_tokens,
    string_spans,
    structural_runs,
)


class ScanTest(unittest.TestCase):
    def test_quotes_are_reported_inside_the_literal(self):
        self.assertEqual(
            list(scan('a"b"c')),
            [(0, "a", False), (1, '"', True), (2, "b", True), (3, '"', True), (4, "c", False)],
        )

    def test_escaped_quote_does_not_close_the_string(self):
        text = '"a\\"b"'
        self.assertTrue(all(inside for _, _, inside in scan(text)))
        self.assertFalse(end_state(text).inside_string)

    def test_backslash_outside_strings_is_ordinary(self):
        events = list(scan('\\"a"'))
        self.assertFalse(events[0][2])
        self.assertTrue(events[1][2])
        self.assertFalse(end_state('\\"a"').inside_string)

    def test_unterminated_literal_leaves_state_inside(self):
        state = end_state('{"a": "b')
        self.assertTrue(state.inside_string)
        spans = string_spans('{"a": "b')
        self.assertEqual(len(spans), 2)
        self.assertTrue(spans[0].terminated)
        self.assertFalse(spans[1].terminated)
        self.assertEqual(spans[1].end, len('{"a": "b'))

    def test_single_quotes_only_when_asked(self):
        self.assertEqual(string_spans("{'a': 1}"), [])
        spans = string_spans("{'a': 1}", single_quotes=True)
        self.assertEqual(len(spans), 1)
        self.assertEqual(spans[0].delimiter, "'")
        self.assertEqual(spans[0].content("{'a': 1}"), "a")

    def test_apostrophe_after_letter_is_not_a_delimiter(self):
        text = "[it's, 'x']"
        spans = string_spans(text, single_quotes=True)
        self.assertEqual(len(spans), 1)
        self.assertEqual(spans[0].content(text), "x")

    def test_double_quote_inside_single_quoted_literal(self):
        spans = string_spans("'a\"b'", single_quotes=True)
        self.assertEqual(len(spans), 1)
        self.assertTrue(spans[0].terminated)

    def test_line_reset_forgets_string_state(self):
        events = list(scan('"ab\n"', line_reset=True))
        self.assertFalse(events[3][2])
        self.assertTrue(events[4][2])


class StructuralHelpersTest(unittest.TestCase):
    def test_structural_runs(self):
        self.assertEqual(structural_runs('a"b"c'), [(0, 1), (4, 5)])

    def test_map_structural_copies_literals(self):
        out = map_structural('"True" True', lambda s: s.replace("True", "true"))
        self.assertEqual(out, '"True" true')

    def test_tokens(self):
        kinds = [t.kind for t in significant_tokens('{"a": 1}')]
        self.assertEqual(kinds, ["PUNCT", "STRING", "PUNCT", "WORD", "PUNCT"])


if __name__ == "__main__":
    unittest.main()
