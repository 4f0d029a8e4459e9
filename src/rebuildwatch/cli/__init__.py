"""
Command-line interface for the rebuildwatch package.
"""

from .main import main_cli

__all__ = [
    "main_cli",
]
