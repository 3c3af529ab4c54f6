import importlib
from typing import Dict, Optional

from tree_sitter import Language, Parser, Tree

from tracemark.exceptions import GrammarNotFoundError, ParserError
from tracemark.logging_config import logger
from .config import GRAMMAR_MODULES, DEFAULT_LANGUAGE

# Global cache for loaded languages to avoid repeated loading
_language_cache: Dict[str, Language] = {}


def get_language(language_name: str = DEFAULT_LANGUAGE) -> Language:
    """
    Loads a tree-sitter language from its grammar package.

    Caches the loaded language object for efficiency. Language objects are
    immutable and safe to share between threads; parsers are not.
    """
    if language_name in _language_cache:
        return _language_cache[language_name]

    if language_name not in GRAMMAR_MODULES:
        raise GrammarNotFoundError(language_name, "no grammar registered for this language")

    module_name, package = GRAMMAR_MODULES[language_name]
    try:
        grammar = importlib.import_module(module_name)
    except ImportError as e:
        logger.error(f"Failed to import grammar module '{module_name}': {e}")
        raise GrammarNotFoundError(language_name, f"pip install {package}") from e

    lang = Language(grammar.language())
    _language_cache[language_name] = lang
    logger.debug(f"Successfully loaded language '{language_name}'")
    return lang


def create_parser(language_name: str = DEFAULT_LANGUAGE) -> Parser:
    """
    Creates a fresh parser for the language.

    Each worker must own its parser: parser state is not thread-safe.
    """
    parser = Parser()
    parser.language = get_language(language_name)
    return parser


def parse_source(source: bytes, parser: Optional[Parser] = None, file_path: str = "<buffer>") -> Tree:
    """
    Parses a source buffer and returns the syntax tree.

    Raises:
        ParserError: if the parser produced no tree.
    """
    if parser is None:
        parser = create_parser()

    tree = parser.parse(source)
    if tree is None or tree.root_node is None:
        raise ParserError(file_path, "parser returned no syntax tree")

    if tree.root_node.has_error:
        logger.debug(f"Syntax tree for {file_path} contains error nodes")
    return tree
