"""Command-line interface module for XBL.

This module provides the ``xbl`` tool for inspecting, validating and
converting XBL files.
"""

from .main import main

__all__ = ["main"]
