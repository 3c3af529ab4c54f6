"""
Instrumentation package: plan trace insertions and apply them.

Provides the planner (tree walk + eligibility checks), the edit applier
and the diagnostics sink shared by both.
"""

from .planner import (
    Candidate,
    Edit,
    InstrumentationPlanner,
    Plan,
    Rejection,
    plan,
)
from .applier import apply_edits, preview_edits, validate_edits
from .diagnostics import Diagnostic, DiagnosticsSink, Reason
from .config import (
    COMPILE_TIME_QUALIFIERS,
    DEFAULT_MARKER,
    INSTRUMENT_CONFIG,
    EmptyBodyPolicy,
    get_instrument_config,
)

__all__ = [
    # Planner
    "InstrumentationPlanner",
    "plan",
    "Plan",
    "Candidate",
    "Rejection",
    "Edit",

    # Applier
    "apply_edits",
    "preview_edits",
    "validate_edits",

    # Diagnostics
    "Diagnostic",
    "DiagnosticsSink",
    "Reason",

    # Configuration
    "INSTRUMENT_CONFIG",
    "DEFAULT_MARKER",
    "COMPILE_TIME_QUALIFIERS",
    "EmptyBodyPolicy",
    "get_instrument_config",
]
