"""Tests for core.io_utils module."""

import json
from pathlib import Path

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import pytest

from core.io_utils import (
    OutputManager,
    ensure_directory,
    load_csv,
    load_json,
    safe_filename,
    save_csv,
    save_json,
    save_plot,
)


class TestJsonIO:
    """Test JSON save/load."""

    def test_save_and_load(self, temp_dir):
        """Test JSON is written and read back."""
        data = {"view_a": "met", "correlations": [{"factor": 1, "pearson_r": None}]}
        filepath = temp_dir / "nested" / "summary.json"

        save_json(data, filepath)

        assert filepath.exists()
        assert load_json(filepath) == data

    def test_non_serializable_values_written_as_strings(self, temp_dir):
        """Test numpy scalars and paths do not break saving."""
        filepath = temp_dir / "summary.json"
        save_json({"path": Path("/tmp/x"), "n": np.int64(3)}, filepath)

        loaded = json.loads(filepath.read_text())
        assert loaded["path"] == "/tmp/x"
        assert loaded["n"] == "3"

    def test_load_missing_raises(self, temp_dir):
        """Test loading a missing file raises."""
        with pytest.raises(FileNotFoundError):
            load_json(temp_dir / "missing.json")


class TestCsvIO:
    """Test CSV save/load."""

    def test_save_and_load(self, temp_dir, scenario_tables):
        """Test a weight table round-trips through CSV."""
        table_a, _ = scenario_tables
        filepath = temp_dir / "tables" / "weights_met.csv"

        save_csv(table_a, filepath)
        loaded = load_csv(filepath)

        pd.testing.assert_frame_equal(loaded, table_a)

    def test_tab_separated_by_suffix(self, temp_dir, scenario_tables):
        """Test .tsv files are tab separated in both directions."""
        table_a, _ = scenario_tables
        filepath = temp_dir / "weights.tsv"

        save_csv(table_a, filepath)
        assert "feature\tfactor\tvalue" in filepath.read_text()
        pd.testing.assert_frame_equal(load_csv(filepath), table_a)

    def test_explicit_separator_wins(self, temp_dir, scenario_tables):
        """Test an explicit sep overrides the suffix."""
        table_a, _ = scenario_tables
        filepath = temp_dir / "weights.txt"

        save_csv(table_a, filepath, sep=";")
        assert load_csv(filepath, sep=";").shape == table_a.shape


class TestSavePlot:
    """Test save_plot."""

    def test_saves_and_closes(self, temp_dir):
        """Test the figure is written and closed."""
        plt.figure()
        plt.plot([1, 2, 3])
        filepath = temp_dir / "plots" / "line.png"

        save_plot(filepath, dpi=50)

        assert filepath.exists()
        assert plt.get_fignums() == []

    def test_keep_open(self, temp_dir):
        """Test close_after=False leaves the figure open."""
        fig = plt.figure()
        try:
            save_plot(temp_dir / "line.png", dpi=50, close_after=False)
            assert fig.number in plt.get_fignums()
        finally:
            plt.close("all")


class TestFilenames:
    """Test path helpers."""

    @pytest.mark.parametrize(
        "name,expected",
        [
            ("met", "met"),
            ("met/acc", "met_acc"),
            ("CpG islands", "CpG_islands"),
            ("a::b", "a_b"),
            ("/leading", "leading"),
        ],
    )
    def test_safe_filename(self, name, expected):
        """Test problematic characters are replaced."""
        assert safe_filename(name) == expected

    def test_ensure_directory(self, temp_dir):
        """Test nested directories are created."""
        path = ensure_directory(temp_dir / "a" / "b")
        assert path.is_dir()


class TestOutputManager:
    """Test OutputManager context manager."""

    def test_tracks_created_files(self, temp_dir, scenario_tables):
        """Test every saved file is recorded."""
        table_a, _ = scenario_tables
        output_dir = temp_dir / "run"

        with OutputManager(output_dir) as outputs:
            csv_path = outputs.save_csv(table_a, "weights.csv")
            json_path = outputs.save_json({"status": "completed"}, "summary.json")
            plot_path = outputs.track(output_dir / "plots" / "scatter.png")

        assert output_dir.is_dir()
        assert outputs.files_created == [csv_path, json_path, plot_path]
        assert csv_path.exists()
        assert json_path.exists()

    def test_does_not_suppress_errors(self, temp_dir):
        """Test exceptions propagate out of the block."""
        with pytest.raises(ValueError):
            with OutputManager(temp_dir):
                raise ValueError("failed")
