"""Unit tests for the parser module."""

import pytest

pytestmark = pytest.mark.fast

from tracemark.exceptions import GrammarNotFoundError
from tracemark.parser import create_parser, get_language, parse_source


def test_language_is_cached():
    assert get_language("cpp") is get_language("cpp")


def test_each_parser_is_a_new_instance():
    assert create_parser() is not create_parser()


def test_parse_source_returns_translation_unit(cpp_parser):
    tree = parse_source(b"int add(int a, int b) { return a + b; }", cpp_parser)

    root = tree.root_node
    assert root.type == "translation_unit"
    assert root.named_children[0].type == "function_definition"
    assert not root.has_error


def test_parse_source_creates_parser_when_missing():
    tree = parse_source(b"void f() {}")
    assert tree.root_node.type == "translation_unit"


def test_unknown_language():
    with pytest.raises(GrammarNotFoundError):
        get_language("cobol")
