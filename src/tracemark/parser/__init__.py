"""
This facade exposes the public API for the parser module.
Other parts of the application should only import from here,
not from internal modules.
"""
from .language_manager import get_language, create_parser, parse_source

__all__ = ["get_language", "create_parser", "parse_source"]
