import unittest
from unittest import mock

from json_doctor.models import FixKind
from json_doctor.passes import (
    Pass,
    collapse_duplicate_delimiters,
    convert_hex,
    escape_inner_quotes,
    fix_double_commas,
    fix_escapes,
    insert_missing_commas,
    normalize_quotes,
    quote_keys,
    remove_trailing_commas,
    replace_literals,
    run_pipeline,
    strip_bom,
    strip_comments,
    trim_dangling,
    unescape_stringified,
    wrap_multiple_roots,
)
from json_doctor.strict import strict_loads


class CleanupPassesTest(unittest.TestCase):
    def test_strip_bom(self):
        self.assertEqual(strip_bom("\ufeff{}"), "{}")
        self.assertEqual(strip_bom("{}"), "{}")

    def test_line_comment_and_its_leading_blanks(self):
        self.assertEqual(strip_comments('{"a": 1 // note\n}'), '{"a": 1\n}')

    def test_block_comment(self):
        self.assertEqual(strip_comments('{/* c */"a":1}'), '{"a":1}')

    def test_unterminated_block_comment_runs_to_end(self):
        self.assertEqual(strip_comments("[1] /* tail"), "[1] ")

    def test_comment_markers_inside_strings_survive(self):
        self.assertEqual(strip_comments('{"url": "http://x"}'), '{"url": "http://x"}')
        self.assertEqual(strip_comments("{'a': '// not'}"), "{'a': '// not'}")

    def test_literals_outside_strings_only(self):
        self.assertEqual(
            replace_literals('{"a": None, "b": "None", "c": True}'),
            '{"a": null, "b": "None", "c": true}',
        )

    def test_hex_numbers(self):
        self.assertEqual(
            convert_hex('{"x": 0x1A, "y": "0x1A"}'), '{"x": 26, "y": "0x1A"}'
        )


class DelimiterPassesTest(unittest.TestCase):
    def test_double_braces(self):
        self.assertEqual(collapse_duplicate_delimiters('{{"a":1}}'), '{"a":1}')

    def test_double_braces_around_several_objects(self):
        self.assertEqual(
            collapse_duplicate_delimiters('{{"a":1}, {"b":2}}'), '{"a":1}, {"b":2}'
        )

    def test_double_bracket_with_unclosed_outer(self):
        self.assertEqual(collapse_duplicate_delimiters("[[1,2]"), "[1,2]")

    def test_nested_arrays_untouched(self):
        self.assertEqual(collapse_duplicate_delimiters("[[1,2]]"), "[[1,2]]")

    def test_repeated_closer(self):
        self.assertEqual(collapse_duplicate_delimiters("[1]]"), "[1]")

    def test_multiple_roots(self):
        self.assertEqual(wrap_multiple_roots('{"a":1}{"b":2}'), '[{"a":1},{"b":2}]')
        self.assertEqual(wrap_multiple_roots('{"a":1},\n{"b":2}'), '[{"a":1},{"b":2}]')

    def test_roots_with_junk_between_are_kept(self):
        self.assertEqual(wrap_multiple_roots('{"a":1} x {"b":2}'), '{"a":1} x {"b":2}')
        self.assertEqual(wrap_multiple_roots('{"a":1}'), '{"a":1}')


class QuotePassesTest(unittest.TestCase):
    def test_single_to_double_quotes(self):
        self.assertEqual(normalize_quotes("{'a': 'it\\'s'}"), '{"a": "it\'s"}')

    def test_bare_double_quote_escaped_when_requoting(self):
        self.assertEqual(normalize_quotes("{'a': 'say \"hi\"'}"), '{"a": "say \\"hi\\""}')

    def test_inner_quotes(self):
        self.assertEqual(
            escape_inner_quotes('{"x": "text with "quotes"" }'),
            '{"x": "text with \\"quotes\\"" }',
        )
        self.assertEqual(escape_inner_quotes('["a", "b"]'), '["a", "b"]')

    def test_inner_quotes_around_punctuation_and_numbers(self):
        self.assertEqual(
            escape_inner_quotes('{"x": "He said "hi, there""}'),
            '{"x": "He said \\"hi, there\\""}',
        )
        self.assertEqual(
            escape_inner_quotes('{"x": "size "10" inch"}'),
            '{"x": "size \\"10\\" inch"}',
        )

    def test_separators_between_literals_are_not_merged(self):
        for text in ('["a", "b",]', '[["a"], "b",]', '{"a": "x", "b": "y",}'):
            self.assertEqual(escape_inner_quotes(text), text)

    def test_hex_escape_dropped(self):
        self.assertEqual(fix_escapes('{"x":"\\x01"}'), '{"x":""}')

    def test_invalid_escape_keeps_backslash(self):
        self.assertEqual(fix_escapes('{"p":"C:\\dir"}'), '{"p":"C:\\\\dir"}')

    def test_raw_newline_encoded(self):
        self.assertEqual(fix_escapes('{"x":"a\nb"}'), '{"x":"a\\nb"}')

    def test_valid_unicode_escapes_kept(self):
        self.assertEqual(fix_escapes('{"x":"\\u00e9"}'), '{"x":"\\u00e9"}')
        self.assertEqual(fix_escapes('"\\ud83d\\ude00"'), '"\\ud83d\\ude00"')

    def test_unquoted_keys(self):
        self.assertEqual(
            quote_keys("{a: 1, b_2: {c: 3}}"), '{"a": 1, "b_2": {"c": 3}}'
        )
        self.assertEqual(quote_keys('{"a": "x, y: z"}'), '{"a": "x, y: z"}')


class CommaPassesTest(unittest.TestCase):
    def test_missing_comma_before_key(self):
        self.assertEqual(insert_missing_commas('{"a":1 "b":2}'), '{"a":1, "b":2}')

    def test_missing_comma_before_bare_key_quotes_it(self):
        self.assertEqual(insert_missing_commas('{"a": 1 b: 2}'), '{"a": 1, "b": 2}')

    def test_adjacent_containers(self):
        self.assertEqual(insert_missing_commas('{"a":1}{"b":2}'), '{"a":1},{"b":2}')

    def test_adjacent_array_values(self):
        self.assertEqual(insert_missing_commas("[1 2 3]"), "[1, 2, 3]")

    def test_valid_json_untouched(self):
        text = '{"a": [1, 2], "b": {"c": "d"}}'
        self.assertEqual(insert_missing_commas(text), text)

    def test_double_commas(self):
        self.assertEqual(fix_double_commas("[1,,2]"), "[1,2]")
        self.assertEqual(fix_double_commas("[,1]"), "[1]")
        self.assertEqual(fix_double_commas('["a,,b"]'), '["a,,b"]')

    def test_trailing_commas(self):
        self.assertEqual(remove_trailing_commas('{"a":[1,2,],}'), '{"a":[1,2]}')


class TailPassesTest(unittest.TestCase):
    def test_dangling_colon_and_quote(self):
        self.assertEqual(trim_dangling('{"a":1}:"'), '{"a":1}')
        self.assertEqual(trim_dangling('{"a":1},'), '{"a":1}')
        self.assertEqual(trim_dangling('{"a":1}'), '{"a":1}')

    def test_stringified_json(self):
        self.assertEqual(
            unescape_stringified('{"x": "{\\"y\\": 1}"}'), '{"x": {"y": 1}}'
        )

    def test_stringified_json_repaired_before_inlining(self):
        out = unescape_stringified('{"x": "{\\"y\\": [1, 2,]}"}')
        self.assertEqual(strict_loads(out), {"x": {"y": [1, 2]}})

    def test_stringified_json_nested_twice(self):
        self.assertEqual(
            strict_loads(unescape_stringified(self.nested_twice())),
            {"x": {"y": {"z": 1}}},
        )

    def test_unescape_iterations_are_capped(self):
        with mock.patch("json_doctor.passes.MAX_UNESCAPE_ITERATIONS", 1):
            out = unescape_stringified(self.nested_twice())
        self.assertEqual(strict_loads(out), {"x": {"y": '{"z":1}'}})

    def test_stringified_text_that_stays_broken_is_kept(self):
        text = '{"x": "[\\"a\\" : 2]"}'
        self.assertEqual(unescape_stringified(text), text)

    @staticmethod
    def nested_twice():
        inner = '{\\\\\\"z\\\\\\":1}'
        return '{"x": "{\\"y\\":\\"' + inner + '\\"}"}'


class PipelineAuditTest(unittest.TestCase):
    def test_only_changing_stages_are_recorded(self):
        audit = []
        out = run_pipeline("{'a': 1,}", audit)
        self.assertEqual(out, '{"a": 1}')
        self.assertEqual(
            [r.stage for r in audit], ["normalize_quotes", "remove_trailing_commas"]
        )

    def test_record_span_covers_the_edit(self):
        audit = []
        run_pipeline("{'a': 1,}", audit)
        record = audit[0]
        self.assertEqual(record.kind, FixKind.QUOTE)
        self.assertEqual(record.span, (1, 4))
        self.assertEqual(record.before, "'a'")
        self.assertEqual(record.after, '"a"')

    def test_failing_stage_leaves_text_unchanged(self):
        def boom(text):
            raise RuntimeError("boom")

        stage = Pass("boom", FixKind.OTHER, "Boom", boom)
        audit = []
        self.assertEqual(stage("{", audit), "{")
        self.assertEqual(audit, [])


if __name__ == "__main__":
    unittest.main()
