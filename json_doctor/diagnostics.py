"""
Read-only diagnosis: which of the known defects does a text contain?

The detectors are the same predicates the repair passes use, so what is
reported here is exactly what ``repair()`` would act on.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, List

from .brackets import audit
from .errors import line_column
from .models import DiagnosticFinding, Diagnosis, FindingKind
from .passes import (
    find_comments,
    find_double_commas,
    find_hex_numbers,
    find_literals,
    find_missing_commas,
    find_single_quoted,
    find_trailing_commas,
    find_unquoted_keys,
)
from .scanner import string_spans
from .strict import strict_parse

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Detector:
    kind: FindingKind
    message: str
    suggestion: str
    locate: Callable[[str], List[int]]


def _unterminated_strings(text: str) -> List[int]:
    return [s.start for s in string_spans(text) if not s.terminated]


def _brace_problems(text: str) -> List[int]:
    return _delimiter_problems(text, "}")


def _bracket_problems(text: str) -> List[int]:
    return _delimiter_problems(text, "]")


def _delimiter_problems(text: str, closer: str) -> List[int]:
    report = audit(text)
    found = [f.open_position for f in report.frames if f.expected_closer == closer]
    found += [pos for pos, _found, expected in report.mismatches if expected == closer]
    found += [pos for pos in report.orphans if text[pos] == closer]
    return sorted(found)


CATALOGUE: List[Detector] = [
    Detector(
        FindingKind.QUOTE,
        "Single quotes found",
        "Use double quotes instead of single quotes",
        lambda t: [s.start for s in find_single_quoted(t)],
    ),
    Detector(
        FindingKind.KEY,
        "Unquoted object keys found",
        "Quote all object keys with double quotes",
        lambda t: [start for start, _end in find_unquoted_keys(t)],
    ),
    Detector(
        FindingKind.COMMA,
        "Trailing comma found",
        "Remove trailing commas before closing brackets",
        find_trailing_commas,
    ),
    Detector(
        FindingKind.COMMA,
        "Missing comma between values",
        "Add commas between array elements and object properties",
        lambda t: [e[0] for e in find_missing_commas(t) if e[2] == ","],
    ),
    Detector(
        FindingKind.COMMA,
        "Repeated commas found",
        "Remove empty slots between commas",
        find_double_commas,
    ),
    Detector(
        FindingKind.VALUE,
        "Non-JSON literal found (undefined, None, True, False, NULL)",
        "Use null instead of undefined or None, and lowercase true/false",
        lambda t: [e[0] for e in find_literals(t)],
    ),
    Detector(
        FindingKind.VALUE,
        "Hexadecimal number found",
        "Write numbers in decimal notation",
        lambda t: [e[0] for e in find_hex_numbers(t)],
    ),
    Detector(
        FindingKind.OTHER,
        "Comment found",
        "Remove comments; JSON does not support them",
        lambda t: [start for start, _end in find_comments(t)],
    ),
    Detector(
        FindingKind.STRING,
        "Unterminated string literal",
        "Close every string with a double quote",
        _unterminated_strings,
    ),
    Detector(
        FindingKind.BRACE,
        "Unbalanced or mismatched braces",
        "Make sure every { has a matching }",
        _brace_problems,
    ),
    Detector(
        FindingKind.BRACKET,
        "Unbalanced or mismatched brackets",
        "Make sure every [ has a matching ]",
        _bracket_problems,
    ),
]


def _findings(text: str) -> List[DiagnosticFinding]:
    findings: List[DiagnosticFinding] = []
    for detector in CATALOGUE:
        positions = detector.locate(text)
        if not positions:
            continue
        first = min(positions)
        line, column = line_column(text, first)
        findings.append(
            DiagnosticFinding(
                kind=detector.kind,
                message=detector.message,
                suggestion=detector.suggestion,
                occurrence_count=len(positions),
                position=first,
                line=line,
                column=column,
            )
        )
    return findings


def catalogue_suggestions(text: str) -> List[str]:
    return [f.suggestion for f in _findings(text)]


def _diagnose(text: str) -> Diagnosis:
    result = strict_parse(text)
    if result.success:
        return Diagnosis(is_valid=True)

    findings = _findings(text)
    if not findings:
        error = result.error
        position = error.position if error is not None else None
        findings.append(
            DiagnosticFinding(
                kind=FindingKind.SYNTAX,
                message=error.message if error is not None else "Invalid JSON",
                suggestion="Validate your JSON syntax using a JSON validator",
                position=position.index if position else None,
                line=position.line if position else None,
                column=position.column if position else None,
            )
        )
    return Diagnosis(is_valid=False, findings=findings)


def diagnose(text: str) -> Diagnosis:
    try:
        return _diagnose(text)
    except Exception as exc:
        logger.debug("Unexpected error while diagnosing", exc_info=True)
        return Diagnosis(
            is_valid=False,
            findings=[
                DiagnosticFinding(
                    kind=FindingKind.SYNTAX,
                    message=f"Could not diagnose input: {exc}",
                    suggestion="Validate your JSON syntax using a JSON validator",
                )
            ],
        )
