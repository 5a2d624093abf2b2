"""Command-line interface module for the WordML parser.

This module provides the ``wordml`` tool for batch parsing, validation,
tree dumps and profiling.
"""

from .main import main

__all__ = ["main"]
