# towtank_resistance/core/normalize.py
from __future__ import annotations
import numpy as np
import pandas as pd

from .model import column_names


def to_float(s) -> pd.Series:
    if pd.api.types.is_numeric_dtype(s):
        return s.astype(float)
    return pd.to_numeric(s.astype(str).str.strip().str.replace(",", ".", regex=False), errors="coerce")


def name_columns(df: pd.DataFrame) -> pd.DataFrame:
    """Attach canonical names to a positional (headerless) run table."""
    out = df.copy()
    out.columns = column_names(out.shape[1])
    return out


def numeric_frame(df: pd.DataFrame) -> pd.DataFrame:
    return pd.DataFrame({c: to_float(df[c]) for c in df.columns}, index=df.index)


def condition_codes(s: pd.Series) -> pd.Series:
    """Condition column as nullable integers (NaN stays missing)."""
    vals = pd.to_numeric(s, errors="coerce")
    return vals.round().astype("Int64")


def froude_setpoints(s: pd.Series, decimals: int) -> pd.Series:
    return pd.Series(np.round(pd.to_numeric(s, errors="coerce").to_numpy(float), decimals), index=s.index)
