"""
Strict RFC 8259 parsing and pretty printing, backed by orjson.

orjson already rejects everything the standard library tolerates by default
(NaN, Infinity, -Infinity) so no parse_constant hook is needed.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional

import orjson

from .errors import JSONParseError

Reviver = Callable[[str, Any], Any]


@dataclass
class ParseOptions:
    strict: bool = True
    reviver: Optional[Reviver] = None
    allow_comments: bool = False
    allow_trailing_commas: bool = False
    allow_single_quotes: bool = False
    allow_unquoted_keys: bool = False


@dataclass
class ParseResult:
    success: bool
    data: Any = None
    error: Optional[JSONParseError] = None
    warnings: List[str] = field(default_factory=list)


def strict_loads(text: str) -> Any:
    """orjson.loads; raises orjson.JSONDecodeError (a ValueError)."""
    return orjson.loads(text)


def strict_parse(text: str, options: Optional[ParseOptions] = None) -> ParseResult:
    try:
        data = strict_loads(text)
    except orjson.JSONDecodeError as exc:
        return ParseResult(False, error=JSONParseError.from_native_error(exc, text))
    if options is not None and options.reviver is not None:
        data = apply_reviver(data, options.reviver)
    return ParseResult(True, data)


def is_valid(text: str) -> bool:
    try:
        strict_loads(text)
    except orjson.JSONDecodeError:
        return False
    return True


def apply_reviver(value: Any, reviver: Reviver, key: str = "") -> Any:
    """Children first, the root last with key ``""``."""
    if isinstance(value, dict):
        value = {k: apply_reviver(v, reviver, k) for k, v in value.items()}
    elif isinstance(value, list):
        value = [apply_reviver(v, reviver, str(i)) for i, v in enumerate(value)]
    return reviver(key, value)


def pretty_dumps(obj: Any) -> str:
    return orjson.dumps(obj, option=orjson.OPT_INDENT_2).decode("utf-8")
