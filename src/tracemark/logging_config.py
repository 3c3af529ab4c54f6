import sys
import os
from datetime import datetime
from pathlib import Path
from loguru import logger

# Flag to track if logging has been configured
_logging_configured = False

LOG_FILE_PREFIX = "log-"
LOG_TIMESTAMP_FORMAT = "%Y-%m-%d-%H-%M-%S"


def default_log_path(directory=None, now=None) -> Path:
    """Run log name used by the instrumenter: log-<timestamp> in the given directory."""
    now = now or datetime.now()
    directory = Path(directory) if directory else Path.cwd()
    return directory / f"{LOG_FILE_PREFIX}{now.strftime(LOG_TIMESTAMP_FORMAT)}"


def setup_logging(level="INFO", suppress_console=None, log_file=None, force=False):
    """
    Configures the global logger.

    By default, only console logging is enabled. File logging is opt-in via
    TRACEMARK_FILE_LOGGING=1 environment variable or an explicit log_file.

    Args:
        level: Logging level (default: INFO)
        suppress_console: If True, suppress console logging. If None, check TRACEMARK_MACHINE_MODE env var.
        log_file: Path of a plain-text run log. If None, check TRACEMARK_FILE_LOGGING env var.
        force: Reconfigure even if logging was already set up (used by the CLI).

    Returns:
        Path of the run log, or None when file logging is disabled.
    """
    global _logging_configured

    # Only configure once to avoid duplicate handlers
    if _logging_configured and not force:
        return None
    _logging_configured = True

    logger.remove()

    # Check if console logging should be suppressed
    if suppress_console is None:
        suppress_console = os.getenv("TRACEMARK_MACHINE_MODE", "").lower() in ("1", "true", "yes")

    # Stream 1: Human-readable console output (only if not suppressed)
    if not suppress_console:
        logger.add(
            sys.stderr,
            level=level,
            format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>",
            colorize=True
        )

    # Stream 2: Run log is OPT-IN only
    if log_file is None and os.getenv("TRACEMARK_FILE_LOGGING", "").lower() in ("1", "true", "yes"):
        log_file = default_log_path()

    if log_file is not None:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_file,
            level="INFO",
            format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {message}",
            catch=True,
            serialize=False
        )

    return log_file


# Configure the logger on import (will check env var for machine mode)
setup_logging()
