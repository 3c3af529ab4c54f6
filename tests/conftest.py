"""
Pytest configuration for the tracemark test suite.

This conftest.py provides:
- Machine-mode logging (suppresses console output)
- Temp directory and sample project fixtures
- A fresh tree-sitter C++ parser per test
"""

import os
import tempfile
import shutil
from pathlib import Path

import pytest

from tracemark.logging_config import setup_logging

TEST_FILES_DIR = Path(__file__).parent / "test_files"


# ============================================================================
# GLOBAL CONFIGURATION
# ============================================================================

def pytest_configure(config):
    """Run the suite in machine mode with no ambient overrides."""
    os.environ.setdefault("TRACEMARK_MACHINE_MODE", "1")
    os.environ.pop("TRACEMARK_MARKER", None)
    os.environ.pop("TRACEMARK_EMPTY_BODIES", None)
    os.environ.pop("TRACEMARK_HUMAN_MODE", None)


# ============================================================================
# LOGGING FIXTURES
# ============================================================================

@pytest.fixture(autouse=True)
def setup_test_logging():
    """
    Machine mode by default - suppress console logs for clean test output.
    """
    setup_logging(level="DEBUG", suppress_console=True, force=True)


# ============================================================================
# PARSER FIXTURES
# ============================================================================

@pytest.fixture
def cpp_parser():
    """A tree-sitter C++ parser owned by the test."""
    from tracemark.parser import create_parser

    return create_parser("cpp")


@pytest.fixture
def parse(cpp_parser):
    """
    Parse bytes and return the root node.

    Usage:
        def test_something(parse):
            root = parse(b"int f() { return 1; }")
    """
    from tracemark.parser import parse_source

    def _parse(source: bytes):
        return parse_source(source, cpp_parser).root_node

    return _parse


# ============================================================================
# TEMPORARY DIRECTORY FIXTURES
# ============================================================================

@pytest.fixture
def temp_dir():
    """Create a temporary directory that's cleaned up after the test."""
    tmp = Path(tempfile.mkdtemp(prefix="tracemark_test_"))
    yield tmp
    shutil.rmtree(tmp, ignore_errors=True)


@pytest.fixture
def temp_project(temp_dir):
    """
    Copy of tests/test_files/project inside a temp directory.

    Returns:
        Path to the project root (<temp_dir>/project), so backups created
        next to it stay inside temp_dir.
    """
    root = temp_dir / "project"
    shutil.copytree(TEST_FILES_DIR / "project", root)
    yield root
