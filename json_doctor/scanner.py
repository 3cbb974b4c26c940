"""
String-aware scanning primitive shared by every repair pass.

A pass must never treat characters inside a string literal as structural.
Rather than re-implementing the usual ``in_str`` / ``esc`` loop in each pass,
they all drive a ``Scanner``:

    for i, c, inside in scan(text):
        ...

``inside`` is True for every character of a literal, its delimiting quotes
included. Passes that need literal boundaries use ``string_spans()``; passes
that rewrite only structural text use ``map_structural()``.

Two options exist for the passes that run before quote normalization:

- ``single_quotes`` : a ``'`` opens a literal when it directly follows a
  non-alphanumeric character (so ``it's`` stays prose) and a closing ``'``
  exists somewhere after it.
- ``line_reset``    : string state is forgotten at every newline.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, Iterator, List, Optional, Tuple


@dataclass
class ScanState:
    index: int = 0
    inside_string: bool = False
    escape_next: bool = False
    delimiter: str = ""


@dataclass(frozen=True)
class StringSpan:
    """``text[start:end]`` is the literal, quotes included (end exclusive)."""

    start: int
    end: int
    delimiter: str = '"'
    terminated: bool = True

    @property
    def content_start(self) -> int:
        return self.start + 1

    @property
    def content_end(self) -> int:
        return self.end - 1 if self.terminated else self.end

    def content(self, text: str) -> str:
        return text[self.content_start : self.content_end]


class Scanner:
    def __init__(
        self,
        text: str,
        *,
        single_quotes: bool = False,
        line_reset: bool = False,
    ) -> None:
        self.text = text
        self.single_quotes = single_quotes
        self.line_reset = line_reset
        self.state = ScanState()
        self.spans: List[StringSpan] = []
        self._start = 0
        self._last_single = text.rfind("'") if single_quotes else -1

    def _opens_single(self, i: int) -> bool:
        if i >= self._last_single:
            return False
        return i == 0 or not self.text[i - 1].isalnum()

    def _close(self, end: int, terminated: bool) -> None:
        st = self.state
        self.spans.append(StringSpan(self._start, end, st.delimiter, terminated))
        st.inside_string = False
        st.escape_next = False

    def feed(self, i: int, c: str) -> bool:
        """Advance over ``text[i] == c``; return True if it belongs to a literal.

        Callers that skip regions (comments) simply do not feed them.
        """
        st = self.state
        st.index = i
        if st.inside_string:
            if self.line_reset and c == "\n":
                self._close(i, terminated=False)
                return False
            if st.escape_next:
                st.escape_next = False
            elif c == "\\":
                st.escape_next = True
            elif c == st.delimiter:
                self._close(i + 1, terminated=True)
            return True

        if c == '"' or (c == "'" and self.single_quotes and self._opens_single(i)):
            st.inside_string = True
            st.delimiter = c
            st.escape_next = False
            self._start = i
            return True
        return False

    def finish(self) -> ScanState:
        # Unterminated literal runs to end of input; inside_string stays True.
        st = self.state
        if st.inside_string and (not self.spans or self.spans[-1].start != self._start):
            self.spans.append(
                StringSpan(self._start, len(self.text), st.delimiter, False)
            )
        return st

    def __iter__(self) -> Iterator[Tuple[int, str, bool]]:
        for i, c in enumerate(self.text):
            yield i, c, self.feed(i, c)
        self.finish()

    def run(self) -> "Scanner":
        for _ in self:
            pass
        return self


def scan(
    text: str, *, single_quotes: bool = False, line_reset: bool = False
) -> Iterator[Tuple[int, str, bool]]:
    return iter(Scanner(text, single_quotes=single_quotes, line_reset=line_reset))


def string_spans(text: str, *, single_quotes: bool = False) -> List[StringSpan]:
    return Scanner(text, single_quotes=single_quotes).run().spans


def end_state(text: str, *, single_quotes: bool = False) -> ScanState:
    return Scanner(text, single_quotes=single_quotes).run().state


def structural_runs(text: str, *, single_quotes: bool = False) -> List[Tuple[int, int]]:
    """Maximal ``(start, end)`` regions that lie outside every literal."""
    runs: List[Tuple[int, int]] = []
    pos = 0
    for span in string_spans(text, single_quotes=single_quotes):
        if span.start > pos:
            runs.append((pos, span.start))
        pos = span.end
    if pos < len(text):
        runs.append((pos, len(text)))
    return runs


def map_structural(
    text: str, fn: Callable[[str], str], *, single_quotes: bool = False
) -> str:
    """Apply ``fn`` to structural runs only; literals are copied verbatim."""
    parts: List[str] = []
    pos = 0
    for span in string_spans(text, single_quotes=single_quotes):
        if span.start > pos:
            parts.append(fn(text[pos : span.start]))
        parts.append(text[span.start : span.end])
        pos = span.end
    if pos < len(text):
        parts.append(fn(text[pos:]))
    return "".join(parts)


def next_significant(text: str, pos: int) -> Tuple[str, int]:
    j = pos
    n = len(text)
    while j < n and text[j] in " \t\r\n":
        j += 1
    return (text[j], j) if j < n else ("", n)


def prev_significant(text: str, pos: int) -> Tuple[str, int]:
    """Last non-whitespace character strictly before ``pos``."""
    j = pos - 1
    while j >= 0 and text[j] in " \t\r\n":
        j -= 1
    return (text[j], j) if j >= 0 else ("", -1)


# -----------------------------
# Lexical tokens
# -----------------------------
@dataclass(frozen=True)
class Tok:
    kind: str
    text: str
    start: int

    @property
    def end(self) -> int:
        return self.start + len(self.text)


_RE_LEX = re.compile(
    r"(?P<WS>\s+)|(?P<PUNCT>[{}\[\]:,])|(?P<WORD>[A-Za-z0-9_$.+\-]+)|(?P<CHAR>.)",
    re.DOTALL,
)
IDENT_RE = re.compile(r"[A-Za-z_$][A-Za-z0-9_$-]*")
SCALAR_RE = re.compile(r"-?\d+(?:\.\d+)?(?:[eE][+-]?\d+)?|true|false|null")


def _lex(text: str, start: int, end: int, toks: List[Tok]) -> None:
    for m in _RE_LEX.finditer(text, start, end):
        toks.append(Tok(m.lastgroup or "CHAR", m.group(0), m.start()))


def tokenize(text: str) -> List[Tok]:
    """STRING / WORD / PUNCT / WS / CHAR tokens; literals come from the scanner."""
    toks: List[Tok] = []
    pos = 0
    for span in string_spans(text):
        _lex(text, pos, span.start, toks)
        toks.append(Tok("STRING", text[span.start : span.end], span.start))
        pos = span.end
    _lex(text, pos, len(text), toks)
    return toks


def significant_tokens(text: str) -> List[Tok]:
    return [t for t in tokenize(text) if t.kind != "WS"]


def is_scalar(word: str) -> bool:
    return SCALAR_RE.fullmatch(word) is not None


def last_span(text: str) -> Optional[StringSpan]:
    spans = string_spans(text)
    return spans[-1] if spans else None
