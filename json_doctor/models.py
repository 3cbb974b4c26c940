from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from .errors import JSONDoctorError


class FixKind(str, Enum):
    QUOTE = "quote"
    COMMA = "comma"
    BRACKET = "bracket"
    WHITESPACE = "whitespace"
    OTHER = "other"


class FindingKind(str, Enum):
    QUOTE = "quote"
    COMMA = "comma"
    BRACKET = "bracket"
    WHITESPACE = "whitespace"
    OTHER = "other"
    SYNTAX = "syntax"
    STRING = "string"
    BRACE = "brace"
    KEY = "key"
    VALUE = "value"


@dataclass(frozen=True)
class FixRecord:
    """
    One audited change made by a pass.

    ``span``  : (start, end) into the text the pass received
    ``before``: text[start:end] of the pass input
    ``after`` : what replaced it in the pass output
    """

    kind: FixKind
    description: str
    span: Tuple[int, int]
    before: str
    after: str
    stage: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "description": self.description,
            "span": list(self.span),
            "before": self.before,
            "after": self.after,
            "stage": self.stage,
        }


@dataclass
class RecoveryOutcome:
    succeeded: bool
    fixes: List[FixRecord] = field(default_factory=list)
    repaired_text: Optional[str] = None
    value: Any = None
    error: Optional[JSONDoctorError] = None

    @property
    def recovered(self) -> bool:
        return self.succeeded and bool(self.fixes)

    def change_log(self) -> List[str]:
        return [fix.description for fix in self.fixes]


@dataclass(frozen=True)
class DiagnosticFinding:
    kind: FindingKind
    message: str
    suggestion: str
    occurrence_count: int = 1
    position: Optional[int] = None
    line: Optional[int] = None
    column: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "message": self.message,
            "suggestion": self.suggestion,
            "occurrence_count": self.occurrence_count,
            "position": self.position,
            "line": self.line,
            "column": self.column,
        }


@dataclass
class Diagnosis:
    is_valid: bool
    findings: List[DiagnosticFinding] = field(default_factory=list)

    def kinds(self) -> List[FindingKind]:
        return [f.kind for f in self.findings]
