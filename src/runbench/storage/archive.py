"""
High-level persistence of benchmark runs.

Each run gets its own directory under the results directory containing the
result record (`record.json`), the raw series table (`series.parquet` or
`series.json`) and the plain-text console summary (`summary.txt`).
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

import polars as pl

from ..models.config import StorageConfig
from ..models.results import ResultRecord
from ..models.runtime import RunContext
from .base import ResultStorage
from .factory import create_storage

logger = logging.getLogger(__name__)

SERIES_SCHEMA = {
    "variant_id": pl.Utf8,
    "metric": pl.Utf8,
    "phase": pl.Utf8,
    "index": pl.Int64,
    "value": pl.Float64,
}


def series_to_dataframe(context: RunContext) -> pl.DataFrame:
    """Flatten every series of the run into one long table."""
    rows: List[Dict[str, Any]] = []
    for (variant_id, metric, phase), series in context.series.items():
        for index, value in enumerate(series.values):
            rows.append(
                {
                    "variant_id": variant_id,
                    "metric": metric.value,
                    "phase": phase,
                    "index": index,
                    "value": value,
                }
            )
    return pl.DataFrame(rows, schema=SERIES_SCHEMA)


class ResultArchive:
    """
    Writes and reads run directories.

    Args:
        storage_config: Results directory, format and compression
        storage: Backend override; created from `storage_config` when None
    """

    def __init__(self, storage_config: StorageConfig, storage: Optional[ResultStorage] = None):
        self.output_dir = Path(storage_config.results_dir)
        self.storage = storage or create_storage(
            storage_config.format, storage_config.compression
        )

    def run_dir_for(self, record: ResultRecord) -> Path:
        try:
            stamp = datetime.fromisoformat(record.timestamp).strftime("%Y%m%d-%H%M%S")
        except ValueError:
            stamp = datetime.now().strftime("%Y%m%d-%H%M%S")
        return self.output_dir / f"{record.mode}-{stamp}"

    def save_run(
        self, record: ResultRecord, context: RunContext, summary_text: Optional[str] = None
    ) -> Path:
        """
        Persist one run and return its directory.
        """
        run_dir = self.run_dir_for(record)
        logger.info(f"Saving benchmark results to {run_dir}")

        self.storage.save_dict(record.to_dict(), str(run_dir / "record.json"))

        df = series_to_dataframe(context)
        series_path = run_dir / f"series{self.storage.table_suffix}"
        self.storage.save_dataframe(df, str(series_path))
        logger.info(f"Saved {len(df)} readings to {series_path}")

        if summary_text is not None:
            with open(run_dir / "summary.txt", "w", encoding="utf-8") as f:
                f.write(summary_text)

        return run_dir

    def load_record(self, run_dir: Path) -> Dict[str, Any]:
        return self.storage.load_dict(str(Path(run_dir) / "record.json"))

    def load_series(self, run_dir: Path, columns: Optional[List[str]] = None) -> pl.DataFrame:
        path = Path(run_dir) / f"series{self.storage.table_suffix}"
        return self.storage.load_dataframe(str(path), columns=columns)
