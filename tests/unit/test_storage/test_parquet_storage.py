"""
Unit tests for the Parquet and JSON storage backends.
"""

import json

import polars as pl
import pytest

from runbench.storage import JsonStorage, ParquetStorage


@pytest.fixture
def sample_df():
    return pl.DataFrame(
        {
            "variant_id": ["electron", "electron", "tauri"],
            "metric": ["memory_mb"] * 3,
            "value": [180.5, 182.0, 45.25],
        }
    )


@pytest.mark.unit
class TestParquetStorage:
    """Test cases for ParquetStorage."""

    def test_dataframe_round_trip(self, temp_dir, sample_df):
        storage = ParquetStorage(compression="zstd")
        path = str(temp_dir / "nested" / "series.parquet")

        storage.save_dataframe(sample_df, path)

        assert storage.file_exists(path)
        assert storage.load_dataframe(path).equals(sample_df)

    def test_column_projection(self, temp_dir, sample_df):
        storage = ParquetStorage()
        path = str(temp_dir / "series.parquet")
        storage.save_dataframe(sample_df, path)

        loaded = storage.load_dataframe(path, columns=["value"])
        assert loaded.columns == ["value"]

    def test_missing_file_raises(self, temp_dir):
        with pytest.raises((OSError, pl.exceptions.PolarsError)):
            ParquetStorage().load_dataframe(str(temp_dir / "missing.parquet"))

    def test_dict_is_indented_json(self, temp_dir):
        storage = ParquetStorage()
        path = temp_dir / "record.json"

        storage.save_dict({"mode": "baseline", "recommendations": []}, str(path))

        assert json.loads(path.read_text()) == {"mode": "baseline", "recommendations": []}
        assert "\n  " in path.read_text()
        assert storage.load_dict(str(path))["mode"] == "baseline"

    def test_invalid_json_raises(self, temp_dir):
        path = temp_dir / "record.json"
        path.write_text("{not json")

        with pytest.raises(json.JSONDecodeError):
            ParquetStorage().load_dict(str(path))

    def test_suffix(self):
        assert ParquetStorage().table_suffix == ".parquet"


@pytest.mark.unit
class TestJsonStorage:
    """Test cases for JsonStorage."""

    def test_tables_are_row_lists(self, temp_dir, sample_df):
        storage = JsonStorage()
        path = temp_dir / "series.json"

        storage.save_dataframe(sample_df, str(path))

        rows = json.loads(path.read_text())["rows"]
        assert rows[2] == {"variant_id": "tauri", "metric": "memory_mb", "value": 45.25}
        assert storage.load_dataframe(str(path), columns=["variant_id"]).to_series().to_list() == [
            "electron",
            "electron",
            "tauri",
        ]
        assert storage.table_suffix == ".json"

    def test_empty_table_keeps_columns_and_dtypes(self, temp_dir):
        storage = JsonStorage()
        path = temp_dir / "empty.json"
        empty = pl.DataFrame(schema={"variant_id": pl.Utf8, "value": pl.Float64})

        storage.save_dataframe(empty, str(path))
        loaded = storage.load_dataframe(str(path), columns=["value"])

        assert loaded.columns == ["value"]
        assert loaded.schema["value"] == pl.Float64
        assert loaded.height == 0

    def test_legacy_file_without_schema(self, temp_dir):
        path = temp_dir / "legacy.json"
        path.write_text(json.dumps({"rows": [{"value": 1.5}, {"value": 2.5}]}))

        loaded = JsonStorage().load_dataframe(str(path))

        assert loaded["value"].to_list() == [1.5, 2.5]
