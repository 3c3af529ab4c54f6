"""
CLI Configuration

Centralized configuration for the tracemark CLI.
"""

import os
from typing import Optional


class CLIConfig:
    """Configuration for CLI commands"""

    # Snippets longer than this are shortened in human-mode tables
    MAX_SNIPPET_CHARS = 160

    # Machine mode (plain output for scripts and wrappers)
    _machine_mode: Optional[bool] = None

    @classmethod
    def set_machine_mode(cls, enabled: Optional[bool]) -> None:
        """Set machine mode (pure data output, no presentation)"""
        cls._machine_mode = enabled

    @classmethod
    def is_machine_mode(cls) -> bool:
        """
        Check if machine mode is active.

        Machine mode is the DEFAULT.
        Returns False only if human mode is explicitly requested.
        """
        if cls._machine_mode is not None:
            return cls._machine_mode
        # If TRACEMARK_HUMAN_MODE is set, disable machine mode
        if os.getenv("TRACEMARK_HUMAN_MODE", "").lower() in ("1", "true", "yes"):
            return False
        return True

    _verbose: bool = False

    @classmethod
    def set_verbose(cls, enabled: bool) -> None:
        """Log debug output to stderr, even in machine mode"""
        cls._verbose = enabled

    @classmethod
    def is_verbose(cls) -> bool:
        return cls._verbose
