"""
Error taxonomy.

Every error is a ``ValueError`` so callers that only know the old
``repair_json`` contract ("raises ValueError when the text cannot be
repaired") keep working.

- JSONParseError         : strict parse failed; carries position/context
- UnrepairableError      : repair pipeline + final heuristic exhausted
- ValidationMismatchError: parse succeeded, caller's predicate said no
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from .config import CONTEXT_WINDOW

PARSE_ERROR = "PARSE_ERROR"
UNREPAIRABLE = "UNREPAIRABLE"
VALIDATION_MISMATCH = "VALIDATION_MISMATCH"

_RE_POSITION = re.compile(r"position (\d+)", re.IGNORECASE)
_RE_CHAR = re.compile(r"\(char (\d+)\)", re.IGNORECASE)
_RE_LINE_COL = re.compile(r"line (\d+) column (\d+)", re.IGNORECASE)


@dataclass(frozen=True)
class Position:
    line: int
    column: int
    index: int

    def to_dict(self) -> Dict[str, int]:
        return {"line": self.line, "column": self.column, "index": self.index}


@dataclass(frozen=True)
class Context:
    before: str
    at: str
    after: str

    def to_dict(self) -> Dict[str, str]:
        return {"before": self.before, "at": self.at, "after": self.after}


class JSONDoctorError(ValueError):
    code = "JSON_DOCTOR_ERROR"

    def __init__(
        self,
        message: str,
        *,
        suggestions: Optional[List[str]] = None,
        position: Optional[Position] = None,
        context: Optional[Context] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self._suggestions = suggestions
        self.position = position
        self.context = context

    @property
    def suggestions(self) -> List[str]:
        return list(self._suggestions or [])

    def detailed_message(self) -> str:
        lines = [self.message]
        if self.position:
            lines.append(
                f"  at line {self.position.line}, column {self.position.column}"
            )
        if self.context:
            c = self.context
            lines.append(f"  Context: {c.before}[{c.at}]{c.after}")
        suggestions = self.suggestions
        if suggestions:
            lines.append("  Suggestions:")
            lines.extend(f"    - {s}" for s in suggestions)
        return "\n".join(lines)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "suggestions": self.suggestions,
            "position": self.position.to_dict() if self.position else None,
            "context": self.context.to_dict() if self.context else None,
        }


class JSONParseError(JSONDoctorError):
    """Strict parse failure, enriched for humans.

    Suggestions are derived lazily from the source text: most parse errors
    raised inside the repair pipeline are discarded without being looked at.
    """

    code = PARSE_ERROR

    def __init__(self, message: str, *, source: Optional[str] = None, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.source = source

    @property
    def suggestions(self) -> List[str]:
        if self._suggestions is None:
            self._suggestions = generate_parse_suggestions(self.message, self.source or "")
        return list(self._suggestions)

    @classmethod
    def from_native_error(cls, error: Exception, text: str) -> "JSONParseError":
        position = extract_position(error, text)
        context = extract_context(text, position.index) if position else None
        err = cls(str(error), source=text, position=position, context=context)
        err.__cause__ = error
        return err


class UnrepairableError(JSONDoctorError):
    code = UNREPAIRABLE

    def __init__(
        self,
        message: str,
        *,
        parse_error: Optional[JSONParseError] = None,
        final_attempt: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        if parse_error is not None:
            kwargs.setdefault("position", parse_error.position)
            kwargs.setdefault("context", parse_error.context)
        super().__init__(message, **kwargs)
        self.parse_error = parse_error
        self.final_attempt = final_attempt
        if parse_error is not None:
            self.__cause__ = parse_error

    @property
    def suggestions(self) -> List[str]:
        if self._suggestions is None and self.parse_error is not None:
            return self.parse_error.suggestions
        return list(self._suggestions or [])


class ValidationMismatchError(JSONDoctorError):
    code = VALIDATION_MISMATCH

    def __init__(self, message: str, *, value: Any = None, **kwargs: Any) -> None:
        kwargs.setdefault("suggestions", ["Check your type validator function"])
        super().__init__(message, **kwargs)
        self.value = value


# -----------------------------
# Position helpers
# -----------------------------
def line_column(text: str, index: int) -> Tuple[int, int]:
    """1-based (line, column) for a 0-based character index."""
    index = max(0, min(index, len(text)))
    line = text.count("\n", 0, index) + 1
    column = index - (text.rfind("\n", 0, index) + 1) + 1
    return line, column


def index_from_line_column(text: str, line: int, column: int) -> int:
    lines = text.split("\n")
    index = sum(len(lines[i]) + 1 for i in range(min(line - 1, len(lines))))
    return index + column - 1


def extract_position(error: Exception, text: str) -> Optional[Position]:
    """Structured position when the parser exposes one, else message patterns."""
    pos = getattr(error, "pos", None)
    if isinstance(pos, int):
        line, column = line_column(text, pos)
        return Position(line, column, pos)

    message = str(error)
    m = _RE_POSITION.search(message) or _RE_CHAR.search(message)
    if m:
        index = int(m.group(1))
        line, column = line_column(text, index)
        return Position(line, column, index)

    m = _RE_LINE_COL.search(message)
    if m:
        line, column = int(m.group(1)), int(m.group(2))
        return Position(line, column, index_from_line_column(text, line, column))

    return None


def extract_context(text: str, index: int, width: int = CONTEXT_WINDOW) -> Context:
    start = max(0, index - width)
    end = min(len(text), index + width)
    at = text[index] if 0 <= index < len(text) else "EOF"
    return Context(before=text[start:index], at=at, after=text[index + 1 : end])


def generate_parse_suggestions(message: str, text: str) -> List[str]:
    suggestions: List[str] = []
    lower = message.lower()

    if "unexpected character" in lower or "unexpected token" in lower or "expecting" in lower:
        suggestions.append("Check for missing or extra commas, quotes, or brackets")
        suggestions.append("Ensure all strings are properly quoted with double quotes")
    if "unexpected end" in lower or "eof" in lower or "unterminated" in lower:
        suggestions.append("Check for missing closing brackets or braces")
        suggestions.append("Ensure the JSON is complete and not truncated")

    # Same catalogue the diagnostic reporter uses.
    from .diagnostics import catalogue_suggestions

    for s in catalogue_suggestions(text):
        if s not in suggestions:
            suggestions.append(s)

    if not suggestions:
        suggestions.append("Validate your JSON syntax using a JSON validator")
        suggestions.append("Check the JSON specification at https://json.org")
    return suggestions
