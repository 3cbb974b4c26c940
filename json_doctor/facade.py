"""
Caller-facing parse helpers.

All of them try a strict parse first and only reach for the repair engine
when that fails. Only ``repair_json`` raises; the others report through
their result objects.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional

from .brackets import balance
from .errors import JSONDoctorError, JSONParseError, ValidationMismatchError
from .models import FixRecord
from .orchestrator import repair
from .passes import PASSES_BY_NAME
from .strict import ParseOptions, ParseResult, apply_reviver, pretty_dumps, strict_parse

logger = logging.getLogger(__name__)

_OPTION_PASSES = (
    ("allow_comments", "strip_comments"),
    ("allow_single_quotes", "normalize_quotes"),
    ("allow_unquoted_keys", "quote_keys"),
    ("allow_trailing_commas", "remove_trailing_commas"),
)


@dataclass
class PartialParseResult(ParseResult):
    is_partial: bool = False
    completed_text: Optional[str] = None


@dataclass
class MultiParseResult:
    results: List[ParseResult] = field(default_factory=list)
    successful: int = 0
    failed: int = 0


@dataclass
class RecoveryResult:
    success: bool
    data: Any = None
    recovered: bool = False
    fixes_applied: List[str] = field(default_factory=list)
    fixes: List[FixRecord] = field(default_factory=list)
    repaired_text: Optional[str] = None
    original_error: Optional[JSONParseError] = None
    error: Optional[JSONDoctorError] = None


def _tolerate(text: str, options: ParseOptions) -> str:
    audit: List[FixRecord] = []
    for flag, name in _OPTION_PASSES:
        if getattr(options, flag):
            text = PASSES_BY_NAME[name](text, audit)
    return text


def safe_parse(text: str, options: Optional[ParseOptions] = None) -> ParseResult:
    options = options or ParseOptions()
    if options.strict:
        return strict_parse(text, options)
    return strict_parse(_tolerate(text, options), options)


def parse_or_raise(text: str, options: Optional[ParseOptions] = None) -> Any:
    result = safe_parse(text, options)
    if not result.success:
        if result.error is None:
            raise JSONDoctorError("Parse failed without an error")
        raise result.error
    return result.data


def parse_typed(
    text: str,
    validator: Callable[[Any], bool],
    options: Optional[ParseOptions] = None,
) -> ParseResult:
    result = safe_parse(text, options)
    if not result.success:
        return result
    if not validator(result.data):
        return ParseResult(
            False,
            error=ValidationMismatchError(
                "Parsed value does not match the expected type", value=result.data
            ),
        )
    return result


def parse_lines(text: str, options: Optional[ParseOptions] = None) -> MultiParseResult:
    multi = MultiParseResult()
    for line in text.splitlines():
        line = line.strip()
        if not line:
            continue
        result = safe_parse(line, options)
        multi.results.append(result)
        if result.success:
            multi.successful += 1
        else:
            multi.failed += 1
    return multi


def parse_partial(text: str, options: Optional[ParseOptions] = None) -> PartialParseResult:
    """Parse a document that may have been cut off mid-stream.

    Open strings and containers are closed; missing values are not invented.
    """
    first = safe_parse(text, options)
    if first.success:
        return PartialParseResult(True, first.data)

    completed = balance(text.rstrip(), fill_values=False)
    second = safe_parse(completed, options)
    if second.success:
        return PartialParseResult(
            True, second.data, is_partial=True, completed_text=completed
        )
    return PartialParseResult(False, error=first.error)


def parse_with_recovery(
    text: str, options: Optional[ParseOptions] = None
) -> RecoveryResult:
    options = options or ParseOptions()
    first = strict_parse(text, options)
    if first.success:
        return RecoveryResult(True, first.data, repaired_text=text)

    outcome = repair(text)
    if not outcome.succeeded:
        return RecoveryResult(
            False, original_error=first.error, error=outcome.error, fixes=outcome.fixes
        )

    data = outcome.value
    if options.reviver is not None:
        data = apply_reviver(data, options.reviver)
    return RecoveryResult(
        True,
        data,
        recovered=outcome.recovered,
        fixes_applied=outcome.change_log(),
        fixes=outcome.fixes,
        repaired_text=outcome.repaired_text,
        original_error=first.error,
    )


def repair_json(broken: str, return_dict: bool = False) -> Any:
    """
    Repair ``broken`` and return it as pretty-printed JSON (2-space indent),
    or as the parsed Python value when ``return_dict`` is set.

    Raises UnrepairableError (a ValueError) when nothing works.
    """
    outcome = repair(broken)
    if not outcome.succeeded:
        if outcome.error is None:
            raise JSONDoctorError("Could not repair JSON.")
        raise outcome.error
    if outcome.fixes:
        logger.debug("Applied: %s", ", ".join(outcome.change_log()))
    if return_dict:
        return outcome.value
    return pretty_dumps(outcome.value)
