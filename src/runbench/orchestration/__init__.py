"""
Orchestration of benchmark modes.
"""

from .runner import MODES, BenchmarkRunner, format_summary, verify_variants

__all__ = ["MODES", "BenchmarkRunner", "format_summary", "verify_variants"]
