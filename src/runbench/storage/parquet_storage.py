"""
Parquet and JSON storage implementations using Polars.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional

import polars as pl

from .base import ResultStorage

logger = logging.getLogger(__name__)

_JSON_DTYPES = {
    "String": pl.Utf8,
    "Utf8": pl.Utf8,
    "Int64": pl.Int64,
    "Int32": pl.Int32,
    "Float64": pl.Float64,
    "Float32": pl.Float32,
    "Boolean": pl.Boolean,
}


class ParquetStorage(ResultStorage):
    """
    Stores tables as compressed Parquet and dictionaries as indented JSON.
    """

    def __init__(self, compression: Literal["snappy", "gzip", "brotli", "lz4", "zstd"] = "snappy"):
        self.compression = compression
        logger.debug(f"Initialized ParquetStorage with compression: {compression}")

    @property
    def table_suffix(self) -> str:
        return ".parquet"

    def save_dataframe(self, df: pl.DataFrame, path: str) -> None:
        try:
            Path(path).parent.mkdir(parents=True, exist_ok=True)
            df.write_parquet(path, compression=self.compression)
            logger.debug(f"Saved DataFrame with {len(df)} rows to {path}")
        except (OSError, pl.exceptions.PolarsError) as e:
            logger.error(f"Failed to save DataFrame to {path}: {e}")
            raise

    def load_dataframe(self, path: str, columns: Optional[List[str]] = None) -> pl.DataFrame:
        try:
            if columns:
                df = pl.read_parquet(path, columns=columns)
            else:
                df = pl.read_parquet(path)
            logger.debug(f"Loaded DataFrame with {len(df)} rows from {path}")
            return df
        except (OSError, pl.exceptions.PolarsError) as e:
            logger.error(f"Failed to load DataFrame from {path}: {e}")
            raise

    def save_dict(self, data: Dict[str, Any], path: str) -> None:
        """
        Save dictionary data to JSON.

        Result records are small and meant to be read by people and by the
        report generator, so they are always JSON.
        """
        try:
            Path(path).parent.mkdir(parents=True, exist_ok=True)
            with open(path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
            logger.debug(f"Saved dictionary data to {path}")
        except (OSError, TypeError) as e:
            logger.error(f"Failed to save dictionary to {path}: {e}")
            raise

    def load_dict(self, path: str) -> Dict[str, Any]:
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
            logger.debug(f"Loaded dictionary data from {path}")
            return data
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Failed to load dictionary from {path}: {e}")
            raise

    def file_exists(self, path: str) -> bool:
        return Path(path).exists()


class JsonStorage(ParquetStorage):
    """
    Stores tables as JSON row lists instead of Parquet.

    Column names and dtypes are written next to the rows so that an empty
    table reloads with its columns.
    """

    @property
    def table_suffix(self) -> str:
        return ".json"

    def save_dataframe(self, df: pl.DataFrame, path: str) -> None:
        schema = {name: str(dtype) for name, dtype in df.schema.items()}
        self.save_dict({"schema": schema, "rows": df.to_dicts()}, path)

    def load_dataframe(self, path: str, columns: Optional[List[str]] = None) -> pl.DataFrame:
        data = self.load_dict(path)
        schema = data.get("schema")
        if schema is None:
            df = pl.DataFrame(data["rows"])
        else:
            # Unknown dtype names are inferred from the rows.
            df = pl.DataFrame(
                data["rows"],
                schema={name: _JSON_DTYPES.get(dtype) for name, dtype in schema.items()},
            )
        return df.select(columns) if columns else df
