# towtank_resistance/loaders/dat_loader.py
from __future__ import annotations
from pathlib import Path
import logging
import pandas as pd

from ..core.model import RunTable, MIN_COLUMNS
from ..core.normalize import name_columns, numeric_frame

_LOG = logging.getLogger(__name__)

DEFAULT_FILE_NAME = "full_resistance_data.dat"


def drop_zero_rows(df: pd.DataFrame) -> pd.DataFrame:
    """Remove placeholder rows; empty cells of a short line count as zero."""
    if df.empty:
        return df
    zero_mask = df.fillna(0).eq(0).all(axis=1)
    return df.loc[~zero_mask].reset_index(drop=True)


def _trim_trailing_empty(raw: pd.DataFrame) -> pd.DataFrame:
    filled = raw.notna().any(axis=0).to_numpy()
    last = int(filled.nonzero()[0].max()) + 1 if filled.any() else 0
    return raw.iloc[:, :last]


def _read_positional(path: Path) -> pd.DataFrame:
    try:
        raw = pd.read_csv(path, sep=",", header=None, skipinitialspace=True,
                          skip_blank_lines=True, dtype=str)
    except pd.errors.EmptyDataError:
        raise ValueError(f"{path.name}: file is empty")
    # trailing separators produce all-NaN columns; inner ones keep their position
    raw = _trim_trailing_empty(raw)
    if raw.shape[1] < MIN_COLUMNS:
        raise ValueError(f"{path.name}: expected at least {MIN_COLUMNS} columns, found {raw.shape[1]}")
    return numeric_frame(name_columns(raw))


def load(path: Path) -> RunTable | None:
    """
    Read the comma separated run table and discard all-zero rows.
    Returns None (after printing a warning) when the file does not exist.
    Raises ValueError when the table is unusable.
    """
    path = Path(path)
    if not path.is_file():
        print(f"WARNING: Data file for full resistance data ({path.name}) does not exist!")
        return None

    df = _read_positional(path)
    n_before = df.shape[0]
    df = drop_zero_rows(df)
    dropped = n_before - df.shape[0]
    if dropped:
        _LOG.debug("dropped %d all-zero row(s) from %s", dropped, path.name)
    if df.empty:
        raise ValueError(f"{path.name}: no non-zero rows")

    return RunTable(df=df, source_path=path, dropped_zero_rows=dropped)
