"""File output helpers for comparison runs: tables, JSON summaries and plots."""

import json
import logging
import re
from pathlib import Path
from typing import Any, List, Optional, Union

import pandas as pd

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

TAB_SEPARATED_SUFFIXES = (".tsv", ".tab", ".txt")


def _prepare_path(filepath: PathLike) -> Path:
    path = Path(filepath)
    path.parent.mkdir(parents=True, exist_ok=True)
    return path


def save_json(data: Any, filepath: PathLike, indent: int = 2) -> None:
    """
    Write ``data`` as indented JSON, creating the parent directory.

    Values JSON cannot encode natively (numpy scalars, paths) are written
    via ``str``.
    """
    path = _prepare_path(filepath)
    try:
        with open(path, "w") as f:
            json.dump(data, f, indent=indent, default=str)
    except (OSError, TypeError, ValueError) as e:
        logger.error(f"Could not write JSON {path}: {e}")
        raise
    logger.debug(f"Wrote JSON {path}")


def load_json(filepath: PathLike) -> Any:
    """Read a JSON document."""
    path = Path(filepath)
    try:
        with open(path, "r") as f:
            return json.load(f)
    except (OSError, ValueError) as e:
        logger.error(f"Could not read JSON {path}: {e}")
        raise


def table_separator(filepath: PathLike) -> str:
    """Return the column separator implied by a table file's suffix."""
    return "\t" if Path(filepath).suffix.lower() in TAB_SEPARATED_SUFFIXES else ","


def save_csv(df: pd.DataFrame, filepath: PathLike, index: bool = False, **kwargs) -> None:
    """
    Write a table, creating the parent directory.

    Parameters
    ----------
    df : pd.DataFrame
        Table to write
    filepath : str or Path
        Destination. ``.tsv``/``.tab``/``.txt`` files are tab separated
        unless ``sep`` is given.
    index : bool, optional
        Write the frame index as a column
    **kwargs
        Passed on to ``DataFrame.to_csv``
    """
    path = _prepare_path(filepath)
    kwargs.setdefault("sep", table_separator(path))
    try:
        df.to_csv(path, index=index, **kwargs)
    except OSError as e:
        logger.error(f"Could not write table {path}: {e}")
        raise
    logger.debug(f"Wrote {len(df)} rows to {path}")


def load_csv(filepath: PathLike, sep: Optional[str] = None, **kwargs) -> pd.DataFrame:
    """Read a table, inferring the separator from the suffix when not given."""
    path = Path(filepath)
    try:
        df = pd.read_csv(path, sep=sep or table_separator(path), **kwargs)
    except (OSError, ValueError) as e:
        logger.error(f"Could not read table {path}: {e}")
        raise
    logger.debug(f"Read {len(df)} rows from {path}")
    return df


def save_plot(
    filepath: PathLike,
    dpi: int = 300,
    bbox_inches: str = "tight",
    close_after: bool = True,
    **kwargs,
) -> None:
    """
    Save the current matplotlib figure.

    The figure is closed afterwards (also when saving fails) unless
    ``close_after`` is False.
    """
    import matplotlib.pyplot as plt

    path = _prepare_path(filepath)
    try:
        plt.savefig(path, dpi=dpi, bbox_inches=bbox_inches, **kwargs)
        logger.debug(f"Saved plot {path}")
    except Exception as e:
        logger.error(f"Could not save plot {path}: {e}")
        raise
    finally:
        if close_after:
            plt.close()


def ensure_directory(dirpath: PathLike) -> Path:
    """Create ``dirpath`` (and parents) if needed and return it."""
    path = Path(dirpath)
    path.mkdir(parents=True, exist_ok=True)
    return path


def safe_filename(filename: str, replacement: str = "_") -> str:
    """
    Turn a view name into something usable inside a file name.

    Path separators, whitespace and other characters that are awkward in
    file names become ``replacement``; runs of it are collapsed and it is
    trimmed from both ends.
    """
    safe_name = re.sub(r'[<>:"/\\|?*\s]', replacement, filename)
    safe_name = re.sub(f"{re.escape(replacement)}+", replacement, safe_name)
    return safe_name.strip(replacement)


class OutputManager:
    """
    Context manager for the output directory of one run.

    Creates the directory on entry and records every file written through
    it, so the run summary can list them.
    """

    def __init__(self, base_dir: PathLike):
        self.base_dir = Path(base_dir)
        self.files_created: List[Path] = []

    def __enter__(self):
        ensure_directory(self.base_dir)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is not None:
            logger.warning(
                f"Run output in {self.base_dir} incomplete after error: {exc_val}"
            )
        logger.debug(f"{len(self.files_created)} files written to {self.base_dir}")

    def track(self, filepath: PathLike) -> Path:
        """Record a file written by another component (e.g. a plot)."""
        path = Path(filepath)
        self.files_created.append(path)
        return path

    def save_json(self, data: Any, filename: str, **kwargs) -> Path:
        path = self.base_dir / filename
        save_json(data, path, **kwargs)
        return self.track(path)

    def save_csv(self, df: pd.DataFrame, filename: str, **kwargs) -> Path:
        path = self.base_dir / filename
        save_csv(df, path, **kwargs)
        return self.track(path)
