"""
The normalization pipeline.

Sixteen pure text-to-text stages, always run in the order of ``PIPELINE``.
Each stage is wrapped in a ``Pass`` that appends a ``FixRecord`` to the audit
trail when, and only when, its output differs from its input.

Stages that only *detect* something expose a ``find_*`` predicate; the
diagnostic reporter runs those same predicates read-only.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Tuple

import orjson

from .brackets import balance
from .config import MAX_UNESCAPE_ITERATIONS
from .models import FixKind, FixRecord
from .scanner import (
    IDENT_RE,
    Scanner,
    StringSpan,
    end_state,
    last_span,
    map_structural,
    next_significant,
    scan,
    significant_tokens,
    string_spans,
    structural_runs,
)
from .strict import is_valid, strict_parse

logger = logging.getLogger(__name__)

# (start, end, replacement); an insertion has start == end.
Edit = Tuple[int, int, str]


def apply_edits(text: str, edits: Sequence[Edit]) -> str:
    if not edits:
        return text
    parts: List[str] = []
    pos = 0
    for start, end, replacement in sorted(edits, key=lambda e: (e[0], e[1])):
        if start < pos:
            continue
        parts.append(text[pos:start])
        parts.append(replacement)
        pos = end
    parts.append(text[pos:])
    return "".join(parts)


def _diff_span(before: str, after: str) -> Tuple[int, int, int]:
    """Common prefix/suffix diff: (start, end in before, end in after)."""
    n = min(len(before), len(after))
    start = 0
    while start < n and before[start] == after[start]:
        start += 1
    end_b, end_a = len(before), len(after)
    while end_b > start and end_a > start and before[end_b - 1] == after[end_a - 1]:
        end_b -= 1
        end_a -= 1
    return start, end_b, end_a


@dataclass(frozen=True)
class Pass:
    name: str
    kind: FixKind
    description: str
    transform: Callable[[str], str]

    def record(self, before: str, after: str) -> FixRecord:
        start, end_b, end_a = _diff_span(before, after)
        return FixRecord(
            kind=self.kind,
            description=self.description,
            span=(start, end_b),
            before=before[start:end_b],
            after=after[start:end_a],
            stage=self.name,
        )

    def __call__(self, text: str, audit: List[FixRecord]) -> str:
        try:
            result = self.transform(text)
        except Exception:
            # A failing stage leaves the text as it found it.
            logger.debug("Stage %s failed, input kept", self.name, exc_info=True)
            return text
        if result != text:
            audit.append(self.record(text, result))
            logger.debug("Stage %s changed the text", self.name)
        return result


# -----------------------------
# 1. Byte-order mark
# -----------------------------
BOM = "\ufeff"


def strip_bom(text: str) -> str:
    return text[1:] if text.startswith(BOM) else text


# -----------------------------
# 2. Comments (// and /* */)
# -----------------------------
def _line_end(text: str, i: int) -> int:
    n = len(text)
    while i < n and text[i] not in "\r\n":
        i += 1
    return i


def find_comments(text: str) -> List[Tuple[int, int]]:
    """
    Comment spans outside string literals.

    Both quote styles delimit strings here (quote normalization has not run
    yet), and string state resets at each newline. A ``//`` comment takes the
    blanks in front of it along; an unterminated ``/*`` runs to end of input.
    """
    found: List[Tuple[int, int]] = []
    sc = Scanner(text, single_quotes=True, line_reset=True)
    i = 0
    n = len(text)
    while i < n:
        c = text[i]
        if c == "/" and i + 1 < n and not sc.state.inside_string:
            nxt = text[i + 1]
            if nxt == "/":
                start = i
                while start > 0 and text[start - 1] in " \t":
                    start -= 1
                end = _line_end(text, i + 2)
                found.append((start, end))
                i = end
                continue
            if nxt == "*":
                close = text.find("*/", i + 2)
                end = n if close < 0 else close + 2
                found.append((i, end))
                i = end
                continue
        sc.feed(i, c)
        i += 1
    return found


def strip_comments(text: str) -> str:
    return apply_edits(text, [(s, e, "") for s, e in find_comments(text)])


# -----------------------------
# 3. Non-standard literals
# -----------------------------
_RE_LITERALS = re.compile(r"\b(None|undefined|NULL|True|False)\b")
_LITERAL_MAP = {
    "None": "null",
    "undefined": "null",
    "NULL": "null",
    "True": "true",
    "False": "false",
}


def find_literals(text: str) -> List[Edit]:
    return [
        (m.start(), m.end(), _LITERAL_MAP[m.group(1)])
        for start, end in structural_runs(text, single_quotes=True)
        for m in _RE_LITERALS.finditer(text, start, end)
    ]


def replace_literals(text: str) -> str:
    return map_structural(
        text,
        lambda s: _RE_LITERALS.sub(lambda m: _LITERAL_MAP[m.group(1)], s),
        single_quotes=True,
    )


# -----------------------------
# 4. Hexadecimal numbers
# -----------------------------
_RE_HEX = re.compile(r"\b0[xX]([0-9A-Fa-f]+)\b")


def find_hex_numbers(text: str) -> List[Edit]:
    return [
        (m.start(), m.end(), str(int(m.group(1), 16)))
        for start, end in structural_runs(text, single_quotes=True)
        for m in _RE_HEX.finditer(text, start, end)
    ]


def convert_hex(text: str) -> str:
    return apply_edits(text, find_hex_numbers(text))


# -----------------------------
# 5. Duplicate delimiters
# -----------------------------
@dataclass
class _Frame:
    opener: str
    position: int
    redundant: bool = False
    wraps: int = -1
    child_closed_at: int = -1


def find_duplicate_delimiters(text: str) -> List[int]:
    """
    Positions of redundant delimiters.

    - ``{{``: the outer brace is redundant, and so is the closer it pairs with.
      ``{{"a":1}, {"b":2}}`` therefore leaves two roots for wrapping.
    - ``[[``: the inner bracket is redundant only if the outer array is never
      closed and nothing follows the inner array.
    - a closer with nothing to close, straight after the same closer.
    """
    drops: List[int] = []
    stack: List[_Frame] = []
    prev = ""
    for i, c, inside in scan(text, single_quotes=True):
        if inside:
            prev = '"'
            continue
        if c in " \t\r\n":
            continue
        if c == "{":
            if prev == "{" and stack:
                stack[-1].redundant = True
                drops.append(stack[-1].position)
            stack.append(_Frame(c, i))
        elif c == "[":
            if prev == "[" and stack:
                stack[-1].wraps = i
            stack.append(_Frame(c, i))
        elif c in "}]":
            if not stack:
                if prev == c:
                    drops.append(i)
            else:
                frame = stack.pop()
                if frame.redundant:
                    drops.append(i)
                elif stack and stack[-1].wraps == frame.position:
                    stack[-1].child_closed_at = i
        prev = c

    for frame in stack:
        if frame.wraps >= 0 and frame.child_closed_at >= 0:
            if not text[frame.child_closed_at + 1 :].strip():
                drops.append(frame.wraps)
    return sorted(drops)


def collapse_duplicate_delimiters(text: str) -> str:
    return apply_edits(text, [(i, i + 1, "") for i in find_duplicate_delimiters(text)])


# -----------------------------
# 6. Single quotes -> double quotes
# -----------------------------
def find_single_quoted(text: str) -> List[StringSpan]:
    return [
        s
        for s in string_spans(text, single_quotes=True)
        if s.delimiter == "'" and s.terminated
    ]


def _requote(content: str) -> str:
    out: List[str] = []
    i = 0
    n = len(content)
    while i < n:
        c = content[i]
        if c == "\\" and i + 1 < n:
            nxt = content[i + 1]
            out.append("'" if nxt == "'" else c + nxt)
            i += 2
            continue
        out.append('\\"' if c == '"' else c)
        i += 1
    return "".join(out)


def normalize_quotes(text: str) -> str:
    return apply_edits(
        text,
        [
            (s.start, s.end, '"' + _requote(s.content(text)) + '"')
            for s in find_single_quoted(text)
        ],
    )


# -----------------------------
# 7. Unescaped inner quotes
# -----------------------------
_INNER_QUOTE_STOP = frozenset(":{[\\")
_SEPARATORS = ",}]"


def find_inner_quotes(text: str) -> List[Tuple[StringSpan, StringSpan]]:
    """Pairs of literals that are really one literal with bare inner quotes.

    ``"He said "hello""`` scans as ``"He said "``, ``hello``, ``""``.
    """
    spans = [s for s in string_spans(text) if s.terminated]
    pairs: List[Tuple[StringSpan, StringSpan]] = []
    k = 0
    while k < len(spans) - 1:
        a, b = spans[k], spans[k + 1]
        middle = text[a.end : b.start].strip()
        if (
            middle
            and not (_INNER_QUOTE_STOP & set(middle))
            and middle[0] not in _SEPARATORS
            and middle[-1] not in _SEPARATORS
            and next_significant(text, b.end)[0] in (",", "}", "]")
        ):
            pairs.append((a, b))
            k += 2
            continue
        k += 1
    return pairs


def escape_inner_quotes(text: str) -> str:
    edits: List[Edit] = []
    for a, b in find_inner_quotes(text):
        gap = text[a.end : b.start]
        middle = gap.strip()
        lead = gap[: len(gap) - len(gap.lstrip())]
        trail = gap[len(gap.rstrip()) :]
        merged = (
            text[a.start : a.end - 1]
            + lead
            + '\\"'
            + middle
            + '\\"'
            + trail
            + text[b.start + 1 : b.end]
        )
        edits.append((a.start, b.end, merged))
    return apply_edits(text, edits)


# -----------------------------
# 8. Escape sequences inside strings
# -----------------------------
_VALID_ESCAPES = '"\\/bfnrt'
_RE_HEX_ESCAPE = re.compile(r"\\x[0-9A-Fa-f]{2}")
_RE_UNICODE_ESCAPE = re.compile(r"\\u([0-9A-Fa-f]{4})")
_CONTROL_ESCAPES = {"\n": "\\n", "\r": "\\r", "\t": "\\t", "\b": "\\b", "\f": "\\f"}


def _decodes(escape: str) -> bool:
    try:
        orjson.loads('"' + escape + '"')
    except orjson.JSONDecodeError:
        return False
    return True


def repair_escapes(content: str) -> str:
    """
    Repair the body of one double-quoted literal:

    - ``\\xNN`` escapes are dropped (JSON has no such escape)
    - ``\\uNNNN`` escapes that do not decode are dropped; a high/low
      surrogate pair is checked as one unit
    - any other invalid escape keeps its character and gets its backslash
      escaped
    - raw control characters become escapes
    """
    out: List[str] = []
    i = 0
    n = len(content)
    while i < n:
        c = content[i]
        if c == "\\":
            nxt = content[i + 1] if i + 1 < n else ""
            if nxt == "x" and _RE_HEX_ESCAPE.match(content, i):
                i += 4
                continue
            m = _RE_UNICODE_ESCAPE.match(content, i) if nxt == "u" else None
            if m is not None:
                code = int(m.group(1), 16)
                if 0xD800 <= code <= 0xDBFF:
                    low = _RE_UNICODE_ESCAPE.match(content, m.end())
                    if low is not None and 0xDC00 <= int(low.group(1), 16) <= 0xDFFF:
                        pair = m.group(0) + low.group(0)
                        if _decodes(pair):
                            out.append(pair)
                            i = low.end()
                            continue
                if _decodes(m.group(0)):
                    out.append(m.group(0))
                i = m.end()
                continue
            if nxt and nxt in _VALID_ESCAPES:
                out.append(c + nxt)
                i += 2
                continue
            out.append("\\\\")
            i += 1
            continue
        if c < " ":
            out.append(_CONTROL_ESCAPES.get(c, "\\u%04x" % ord(c)))
        else:
            out.append(c)
        i += 1
    return "".join(out)


def fix_escapes(text: str) -> str:
    edits: List[Edit] = []
    for span in string_spans(text):
        if not span.terminated:
            continue
        content = span.content(text)
        fixed = repair_escapes(content)
        if fixed != content:
            edits.append((span.content_start, span.content_end, fixed))
    return apply_edits(text, edits)


# -----------------------------
# 9. Unquoted keys
# -----------------------------
_RE_UNQUOTED_KEY = re.compile(r"([{,]\s*)([A-Za-z_$][A-Za-z0-9_$-]*)(\s*):")
_RE_LEADING_KEY = re.compile(r"\s*([A-Za-z_$][A-Za-z0-9_$-]*)(\s*):")


def find_unquoted_keys(text: str) -> List[Tuple[int, int]]:
    keys: List[Tuple[int, int]] = []
    for start, end in structural_runs(text):
        if start == 0:
            m = _RE_LEADING_KEY.match(text, 0, end)
            if m:
                keys.append(m.span(1))
        keys.extend(m.span(2) for m in _RE_UNQUOTED_KEY.finditer(text, start, end))
    return keys


def quote_keys(text: str) -> str:
    return apply_edits(
        text, [(s, e, '"' + text[s:e] + '"') for s, e in find_unquoted_keys(text)]
    )


# -----------------------------
# 10. Missing commas
# -----------------------------
def find_missing_commas(text: str) -> List[Edit]:
    """
    Comma insertions between a value and whatever must follow it:

    - a value (string, word, ``}`` or ``]``) followed by a key
    - ``}{``, ``][``, ``}[``, ``]{``
    - two adjacent values inside an array

    A bare-word key found this way is quoted too.
    """
    toks = significant_tokens(text)
    edits: List[Edit] = []
    stack: List[str] = []
    for k in range(len(toks) - 1):
        t, u = toks[k], toks[k + 1]
        if t.kind == "PUNCT" and t.text in "{[":
            stack.append(t.text)
        elif t.kind == "PUNCT" and t.text in "}]" and stack:
            stack.pop()

        closes = t.kind == "PUNCT" and t.text in "}]"
        if not (closes or t.kind in ("STRING", "WORD")):
            continue
        opens = u.kind == "PUNCT" and u.text in "{["
        key_ahead = (
            u.kind in ("STRING", "WORD")
            and k + 2 < len(toks)
            and toks[k + 2].text == ":"
        )
        in_array = bool(stack) and stack[-1] == "["
        if key_ahead or (closes and opens) or (in_array and (opens or u.kind in ("STRING", "WORD"))):
            edits.append((t.end, t.end, ","))
            if key_ahead and u.kind == "WORD" and IDENT_RE.fullmatch(u.text):
                edits.append((u.start, u.end, '"' + u.text + '"'))
    return edits


def insert_missing_commas(text: str) -> str:
    return apply_edits(text, find_missing_commas(text))


# -----------------------------
# 11. Double commas / empty slots
# -----------------------------
_RE_DOUBLE_COMMA = re.compile(r",(\s*,)+")
_RE_LEADING_COMMA = re.compile(r"([\[{])\s*,")
_RE_COMMA_BEFORE_BRACKET = re.compile(r",\s*\]")


def find_double_commas(text: str) -> List[int]:
    return [
        m.start()
        for start, end in structural_runs(text)
        for m in _RE_DOUBLE_COMMA.finditer(text, start, end)
    ]


def _fix_empty_slots(s: str) -> str:
    s = _RE_DOUBLE_COMMA.sub(",", s)
    s = _RE_LEADING_COMMA.sub(r"\1", s)
    return _RE_COMMA_BEFORE_BRACKET.sub("]", s)


def fix_double_commas(text: str) -> str:
    return map_structural(text, _fix_empty_slots)


# -----------------------------
# 12. Trailing commas
# -----------------------------
_RE_TRAILING_COMMA = re.compile(r",(\s*[}\]])")


def find_trailing_commas(text: str) -> List[int]:
    return [
        m.start()
        for start, end in structural_runs(text)
        for m in _RE_TRAILING_COMMA.finditer(text, start, end)
    ]


def remove_trailing_commas(text: str) -> str:
    return map_structural(text, lambda s: _RE_TRAILING_COMMA.sub(r"\1", s))


# -----------------------------
# 14. Multiple roots
# -----------------------------
def _root_spans(text: str) -> Optional[List[Tuple[int, int]]]:
    """Top-level ``{...}`` / ``[...]`` spans, or None if anything else sits
    between them at depth 0 (besides whitespace and commas)."""
    spans: List[Tuple[int, int]] = []
    depth = 0
    start = 0
    for i, c, inside in scan(text):
        if inside:
            if depth == 0:
                return None
            continue
        if c in "{[":
            if depth == 0:
                start = i
            depth += 1
        elif c in "}]":
            if depth == 0:
                return None
            depth -= 1
            if depth == 0:
                spans.append((start, i + 1))
        elif depth == 0 and not c.isspace() and c != ",":
            return None
    return spans if depth == 0 else None


def _line_roots(text: str) -> Optional[List[str]]:
    if "}\n{" not in text and "},\n{" not in text:
        return None
    roots: List[str] = []
    for line in text.split("\n"):
        line = line.strip()
        if not line:
            continue
        if line.endswith(","):
            line = line[:-1].rstrip()
        if not (line.startswith("{") and line.endswith("}") and is_valid(line)):
            return None
        roots.append(line)
    return roots


def wrap_multiple_roots(text: str) -> str:
    spans = _root_spans(text)
    if spans and len(spans) > 1:
        roots = [text[s:e] for s, e in spans]
        if all(is_valid(r) for r in roots):
            return "[" + ",".join(roots) + "]"
    roots = _line_roots(text)
    if roots and len(roots) > 1:
        return "[" + ",".join(roots) + "]"
    return text


# -----------------------------
# 15. Dangling artifacts
# -----------------------------
_DANGLING = ",:; \t\r\n"


def trim_dangling(text: str) -> str:
    body = text.rstrip()
    if end_state(body).inside_string:
        # Only a lone opening quote right after a colon is an artifact.
        span = last_span(body)
        if span is None or span.start != len(body) - 1:
            return text
        body = body[:-1].rstrip()
        if not body.endswith(":"):
            return text
    elif body.endswith("'") and body[:-1].rstrip().endswith(":"):
        body = body[:-1].rstrip()
    stripped = body.rstrip(_DANGLING)
    return stripped if stripped != text.rstrip() else text


# -----------------------------
# 16. Stringified JSON
# -----------------------------
def _decode_literal(literal: str, content: str) -> str:
    result = strict_parse(literal)
    if result.success and isinstance(result.data, str):
        return result.data
    return content.replace('\\"', '"').replace("\\\\", "\\")


def find_stringified(text: str) -> List[Edit]:
    edits: List[Edit] = []
    for span in string_spans(text):
        if not span.terminated:
            continue
        content = span.content(text)
        if '\\"' not in content or not ("{" in content or "[" in content):
            continue
        candidate = _decode_literal(text[span.start : span.end], content).strip()
        if not candidate or candidate[0] not in "{[" or candidate[-1] not in "}]":
            continue
        if not is_valid(candidate):
            candidate = run_pipeline(candidate, [], PIPELINE[:-1]).strip()
            if not is_valid(candidate):
                continue
        edits.append((span.start, span.end, candidate))
    return edits


def unescape_stringified(text: str) -> str:
    for _ in range(MAX_UNESCAPE_ITERATIONS):
        edits = find_stringified(text)
        if not edits:
            break
        text = apply_edits(text, edits)
    return text


# -----------------------------
# Pipeline
# -----------------------------
PIPELINE: List[Pass] = [
    Pass("strip_bom", FixKind.WHITESPACE, "Removed byte-order mark", strip_bom),
    Pass("strip_comments", FixKind.OTHER, "Removed comments", strip_comments),
    Pass("replace_literals", FixKind.OTHER, "Replaced non-JSON literals", replace_literals),
    Pass("convert_hex", FixKind.OTHER, "Converted hexadecimal numbers", convert_hex),
    Pass(
        "collapse_duplicate_delimiters",
        FixKind.BRACKET,
        "Collapsed duplicate brackets",
        collapse_duplicate_delimiters,
    ),
    Pass(
        "normalize_quotes",
        FixKind.QUOTE,
        "Converted single quotes to double quotes",
        normalize_quotes,
    ),
    Pass(
        "escape_inner_quotes",
        FixKind.QUOTE,
        "Escaped unescaped quotes inside strings",
        escape_inner_quotes,
    ),
    Pass("fix_escapes", FixKind.OTHER, "Repaired invalid escape sequences", fix_escapes),
    Pass("quote_keys", FixKind.QUOTE, "Added quotes to unquoted keys", quote_keys),
    Pass(
        "insert_missing_commas",
        FixKind.COMMA,
        "Inserted missing commas",
        insert_missing_commas,
    ),
    Pass("fix_double_commas", FixKind.COMMA, "Removed empty comma slots", fix_double_commas),
    Pass(
        "remove_trailing_commas",
        FixKind.COMMA,
        "Removed trailing commas",
        remove_trailing_commas,
    ),
    Pass("balance_brackets", FixKind.BRACKET, "Balanced brackets and braces", balance),
    Pass(
        "wrap_multiple_roots",
        FixKind.BRACKET,
        "Wrapped multiple root values in an array",
        wrap_multiple_roots,
    ),
    Pass("trim_dangling", FixKind.OTHER, "Removed dangling trailing characters", trim_dangling),
    Pass(
        "unescape_stringified",
        FixKind.OTHER,
        "Unescaped stringified JSON",
        unescape_stringified,
    ),
]

PASSES_BY_NAME = {p.name: p for p in PIPELINE}


def run_pipeline(
    text: str,
    audit: Optional[List[FixRecord]] = None,
    passes: Optional[Sequence[Pass]] = None,
) -> str:
    if audit is None:
        audit = []
    for stage in PIPELINE if passes is None else passes:
        text = stage(text, audit)
    return text
