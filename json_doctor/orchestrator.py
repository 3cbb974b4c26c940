"""
Recovery orchestrator.

    strict parse ─ok─> done (no fixes)
        │
        └─fail─> 16 passes ─> trim ─> strict parse ─ok─> done
                                         │
                                         └─fail─> final heuristic ─> strict parse ─> done | failed

``repair()`` never raises. Failures come back as an unsuccessful
``RecoveryOutcome`` whose ``error`` is an ``UnrepairableError``.
"""

from __future__ import annotations

import logging
import re
from typing import List, Optional

import orjson

from .config import ERROR_PREVIEW_LIMIT
from .errors import JSONParseError, UnrepairableError
from .models import FixKind, FixRecord, RecoveryOutcome
from .passes import Pass, run_pipeline
from .strict import strict_parse

logger = logging.getLogger(__name__)

TRIM = Pass(
    "trim_whitespace",
    FixKind.WHITESPACE,
    "Trimmed surrounding whitespace",
    lambda text: text.strip(),
)

_RE_NUMBER = re.compile(r"-?\d+(?:\.\d+)?(?:[eE][+-]?\d+)?")
_RE_WORDS = re.compile(r"\S+")
_KEYWORDS = ("true", "false", "null")


def final_attempt(text: str, parse_error: Optional[JSONParseError] = None) -> str:
    """Last-resort reshaping of text the pipeline could not fix (not audited)."""
    t = text.strip()
    if not t or t == '""' or (t.startswith("//") and "{" not in t and "[" not in t):
        return "null"

    if not any(ch in t for ch in '{[:"'):
        if len(_RE_WORDS.findall(t)) > 1:
            raise UnrepairableError(
                "Input does not look like JSON.",
                parse_error=parse_error,
                final_attempt=t[:ERROR_PREVIEW_LIMIT],
            )
        if t in _KEYWORDS or _RE_NUMBER.fullmatch(t):
            return t
        return orjson.dumps(t).decode("utf-8")

    if ":" in t and t[0] not in "{[":
        return "{" + t + "}"
    if "{" in t and "}" not in t:
        return t + "}"
    if "[" in t and "]" not in t:
        return t + "]"
    return t


def _failure(
    message: str,
    fixes: List[FixRecord],
    attempt: str,
    parse_error: Optional[JSONParseError],
) -> RecoveryOutcome:
    logger.debug("Repair failed: %s", message)
    return RecoveryOutcome(
        succeeded=False,
        fixes=fixes,
        error=UnrepairableError(
            f"{message}\nFinal attempt:\n{attempt[:ERROR_PREVIEW_LIMIT]}",
            parse_error=parse_error,
            final_attempt=attempt[:ERROR_PREVIEW_LIMIT],
        ),
    )


def _repair(text: str) -> RecoveryOutcome:
    first = strict_parse(text)
    if first.success:
        logger.debug("Repaired at stage: strict")
        return RecoveryOutcome(True, [], text, first.data)

    fixes: List[FixRecord] = []
    repaired = run_pipeline(text, fixes)
    repaired = TRIM(repaired, fixes)

    retry = strict_parse(repaired)
    if retry.success:
        logger.debug("Repaired at stage: pipeline (%d fixes)", len(fixes))
        return RecoveryOutcome(True, fixes, repaired, retry.data)

    try:
        last = final_attempt(repaired, retry.error)
    except UnrepairableError as exc:
        logger.debug("Repair rejected: %s", exc.message)
        return RecoveryOutcome(False, fixes, error=exc)

    final = strict_parse(last)
    if final.success:
        logger.debug("Repaired at stage: final_attempt")
        return RecoveryOutcome(True, fixes, last, final.data)
    return _failure("Could not repair JSON.", fixes, last, final.error)


def repair(text: str) -> RecoveryOutcome:
    try:
        return _repair(text)
    except Exception as exc:
        logger.debug("Unexpected error while repairing", exc_info=True)
        outcome = _failure(f"Could not repair JSON: {exc}", [], str(text), None)
        if outcome.error is not None:
            outcome.error.__cause__ = exc
        return outcome
