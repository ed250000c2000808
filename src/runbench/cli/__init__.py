"""
Command-line interface for runbench.
"""

from .main import main_cli

__all__ = ["main_cli"]
