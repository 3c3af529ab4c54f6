"""
CLI support modules: mode configuration and machine-aware output.
"""

from tracemark.cli import config, output, render

__all__ = ['config', 'output', 'render']
