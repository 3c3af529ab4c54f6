"""
Configuration for instrumentation.

Contains the trace marker, eligibility policies and their validation.
"""

import os
import re
from enum import Enum
from typing import Optional

from tracemark.exceptions import ConfigError


class EmptyBodyPolicy(str, Enum):
    """What to do with a function whose body has no statements."""
    INSTRUMENT = "instrument"
    SKIP = "skip"


DEFAULT_MARKER = "TRACE_MARKER"

# Qualifiers that make a function usable at translation time
COMPILE_TIME_QUALIFIERS = ("constexpr", "consteval")

INSTRUMENT_CONFIG = {
    "marker": DEFAULT_MARKER,
    "empty_body_policy": EmptyBodyPolicy.INSTRUMENT,
    "compile_time_qualifiers": COMPILE_TIME_QUALIFIERS,
    "report_syntax_errors": True,
}

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def validate_marker(marker: str) -> None:
    """
    Validate the trace macro name.

    Raises:
        ConfigError: If the marker is not a plain C identifier.
    """
    if not isinstance(marker, str) or not _IDENTIFIER_RE.match(marker):
        raise ConfigError(f"Trace marker must be a C identifier, got {marker!r}")


def validate_empty_body_policy(value) -> EmptyBodyPolicy:
    """Normalize an empty-body policy given as enum or string."""
    try:
        return EmptyBodyPolicy(value)
    except ValueError:
        choices = ", ".join(p.value for p in EmptyBodyPolicy)
        raise ConfigError(f"Unknown empty-body policy {value!r} (expected one of: {choices})") from None


def get_instrument_config(overrides: Optional[dict] = None) -> dict:
    """
    Get the effective instrumentation config.

    Defaults come from INSTRUMENT_CONFIG, then TRACEMARK_MARKER and
    TRACEMARK_EMPTY_BODIES, then explicit overrides (None values ignored).

    Raises:
        ConfigError: If any resulting value is invalid.
    """
    config = dict(INSTRUMENT_CONFIG)

    env_marker = os.getenv("TRACEMARK_MARKER")
    if env_marker:
        config["marker"] = env_marker
    env_policy = os.getenv("TRACEMARK_EMPTY_BODIES")
    if env_policy:
        config["empty_body_policy"] = env_policy.lower()

    for key, value in (overrides or {}).items():
        if key not in INSTRUMENT_CONFIG:
            raise ConfigError(f"Unknown instrumentation option: {key}")
        if value is not None:
            config[key] = value

    validate_marker(config["marker"])
    config["empty_body_policy"] = validate_empty_body_policy(config["empty_body_policy"])
    config["compile_time_qualifiers"] = tuple(config["compile_time_qualifiers"])
    return config
