"""
Storage module for benchmark results.

Result records are written as JSON; the raw sample series are written as a
single long table (Parquet via Polars, or JSON rows) next to them.
"""

from .archive import ResultArchive, series_to_dataframe
from .base import ResultStorage
from .factory import create_storage
from .parquet_storage import JsonStorage, ParquetStorage

__all__ = [
    "ResultStorage",
    "ParquetStorage",
    "JsonStorage",
    "create_storage",
    "ResultArchive",
    "series_to_dataframe",
]
