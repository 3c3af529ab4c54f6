"""
Diagnostics sink: records why a node was not instrumented.

The sink is a pure reporting channel. Recording never raises and never
changes what the planner does next.
"""

from collections import Counter
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterator, List, Optional


class Reason(str, Enum):
    """Reason codes for skipped or rejected nodes."""
    CONSTEXPR = "constexpr"
    NO_DECLARATOR = "no_declarator"
    NO_NAME = "no_name"
    NO_PARAMS = "no_params"
    NO_BODY = "no_body"
    MULTILINE_NAME = "multiline_name"
    ALREADY_DONE = "already_done"
    EMPTY_BODY = "empty_body"
    SYNTAX_ERROR = "syntax_error"


@dataclass(frozen=True)
class Diagnostic:
    label: str
    reason: Reason
    snippet: str
    line: Optional[int] = None

    def to_dict(self) -> dict:
        return {
            "label": self.label,
            "reason": self.reason.value,
            "snippet": self.snippet,
            "line": self.line,
        }


class DiagnosticsSink:
    """Accumulates diagnostics in discovery order."""

    def __init__(self):
        self._entries: List[Diagnostic] = []

    def record(self, label: str, reason: Reason, snippet: str, line: Optional[int] = None) -> Diagnostic:
        diagnostic = Diagnostic(label=str(label), reason=reason, snippet=snippet or "", line=line)
        self._entries.append(diagnostic)
        return diagnostic

    @property
    def entries(self) -> List[Diagnostic]:
        return list(self._entries)

    def counts(self) -> Dict[Reason, int]:
        """Number of diagnostics per reason code."""
        return dict(Counter(d.reason for d in self._entries))

    def __iter__(self) -> Iterator[Diagnostic]:
        return iter(list(self._entries))

    def __len__(self) -> int:
        return len(self._entries)
