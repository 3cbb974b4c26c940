"""
Delimiter stack: mismatch correction and completion of truncated documents.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Tuple

from .scanner import (
    IDENT_RE,
    end_state,
    prev_significant,
    scan,
    significant_tokens,
    string_spans,
)

CLOSER_FOR = {"{": "}", "[": "]"}


@dataclass
class DelimiterFrame:
    expected_closer: str
    open_position: int


@dataclass
class BracketAudit:
    """Read-only view of delimiter problems, shared with the diagnostics."""

    frames: List[DelimiterFrame] = field(default_factory=list)
    # (position, found, expected)
    mismatches: List[Tuple[int, str, str]] = field(default_factory=list)
    orphans: List[int] = field(default_factory=list)

    @property
    def balanced(self) -> bool:
        return not (self.frames or self.mismatches or self.orphans)


def audit(text: str) -> BracketAudit:
    result = BracketAudit()
    stack = result.frames
    for i, c, inside in scan(text):
        if inside:
            continue
        if c in CLOSER_FOR:
            stack.append(DelimiterFrame(CLOSER_FOR[c], i))
        elif c in "}]":
            if not stack:
                result.orphans.append(i)
                continue
            frame = stack.pop()
            if frame.expected_closer != c:
                result.mismatches.append((i, c, frame.expected_closer))
    return result


def drop_orphans(text: str, orphans: List[int]) -> str:
    if not orphans:
        return text
    drop = set(orphans)
    return "".join(c for i, c in enumerate(text) if i not in drop)


def track(text: str) -> Tuple[str, List[DelimiterFrame]]:
    """Correct mismatched closers; return the text and the frames open at EOF."""
    report = audit(text)
    chars = list(text)
    for pos, _found, expected in reversed(report.mismatches):
        chars[pos] = expected
    return "".join(chars), report.frames


def complete(text: str, frames: List[DelimiterFrame]) -> str:
    return text + "".join(f.expected_closer for f in reversed(frames))


def _dangling_key(body: str, frames: List[DelimiterFrame]) -> Tuple[int, int]:
    """Span of a key left without ``:value`` at the very end, or (-1, -1)."""
    if not frames or frames[-1].expected_closer != "}":
        return -1, -1
    toks = significant_tokens(body)
    if not toks:
        return -1, -1
    last = toks[-1]
    if last.kind == "STRING" or (last.kind == "WORD" and IDENT_RE.fullmatch(last.text)):
        before, _ = prev_significant(body, last.start)
        if before in ("{", ","):
            return last.start, last.end
    return -1, -1


def balance(text: str, fill_values: bool = True) -> str:
    """
    Repair delimiter nesting of ``text``:

    1. drop closers that have nothing to close
    2. substitute mismatched closers
    3. with containers still open at EOF: close a dangling string, drop a
       trailing comma, append ``null`` / ``:null`` for a dangling
       assignment or key (``fill_values``), then append the closers.

    An unterminated string at the very start of the text is also closed.
    """
    report = audit(text)
    text = drop_orphans(text, report.orphans)
    text, frames = track(text)

    st = end_state(text)
    if st.inside_string:
        opened_at = _unterminated_start(text)
        if frames or prev_significant(text, opened_at)[0] == "":
            if st.escape_next:
                text = text[:-1]
            text += '"'

    if not frames:
        return text

    body = text.rstrip()
    while body.endswith(","):
        body = body[:-1].rstrip()

    if fill_values:
        if body.endswith(":"):
            body += "null"
        else:
            start, end = _dangling_key(body, frames)
            if start >= 0:
                key = body[start:end]
                if not key.startswith('"'):
                    key = f'"{key}"'
                body = body[:start] + key + ":null"

    return complete(body, frames)


def _unterminated_start(text: str) -> int:
    spans = string_spans(text)
    return spans[-1].start if spans and not spans[-1].terminated else len(text)
