"""
json_doctor: strict parsing, repair and diagnosis of almost-JSON text.

Public API
- repair(text) -> RecoveryOutcome
- diagnose(text) -> Diagnosis
- repair_json(broken, return_dict=False) -> str | Any
- strict_parse / safe_parse / parse_typed / parse_lines / parse_partial /
  parse_with_recovery
"""

from .diagnostics import diagnose
from .errors import (
    JSONDoctorError,
    JSONParseError,
    UnrepairableError,
    ValidationMismatchError,
)
from .facade import (
    MultiParseResult,
    PartialParseResult,
    RecoveryResult,
    parse_lines,
    parse_or_raise,
    parse_partial,
    parse_typed,
    parse_with_recovery,
    repair_json,
    safe_parse,
)
from .models import (
    DiagnosticFinding,
    Diagnosis,
    FindingKind,
    FixKind,
    FixRecord,
    RecoveryOutcome,
)
from .orchestrator import repair
from .scanner import scan
from .strict import ParseOptions, ParseResult, strict_parse

__version__ = "0.1.0"

__all__ = [
    "DiagnosticFinding",
    "Diagnosis",
    "FindingKind",
    "FixKind",
    "FixRecord",
    "JSONDoctorError",
    "JSONParseError",
    "MultiParseResult",
    "ParseOptions",
    "ParseResult",
    "PartialParseResult",
    "RecoveryOutcome",
    "RecoveryResult",
    "UnrepairableError",
    "ValidationMismatchError",
    "diagnose",
    "parse_lines",
    "parse_or_raise",
    "parse_partial",
    "parse_typed",
    "parse_with_recovery",
    "repair",
    "repair_json",
    "safe_parse",
    "scan",
    "strict_parse",
]
