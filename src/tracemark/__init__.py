"""
tracemark - trace-statement instrumentation for C++ sources

Parses C++ files with tree-sitter and inserts a profiling trace macro at the
top of every eligible function body.
"""

__version__ = "0.3.0"

# Core exports
from tracemark.instrument import (
    DiagnosticsSink,
    Edit,
    EmptyBodyPolicy,
    InstrumentationPlanner,
    Plan,
    Reason,
    apply_edits,
    plan,
)
from tracemark.session import instrument_source, process_file, run

__all__ = [
    "__version__",
    "InstrumentationPlanner",
    "plan",
    "Plan",
    "Edit",
    "apply_edits",
    "DiagnosticsSink",
    "Reason",
    "EmptyBodyPolicy",
    "instrument_source",
    "process_file",
    "run",
]
