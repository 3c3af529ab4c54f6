"""
This facade exposes the public API for the scanner module.
Other parts of the application should only import from here,
not from internal modules.
"""
from .facade import find_source_files

__all__ = ["find_source_files"]
