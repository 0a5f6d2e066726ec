# towtank_resistance/core/partition.py
from __future__ import annotations
import logging
import pandas as pd

from .conditions import CONDITION_CODES
from .normalize import condition_codes

_LOG = logging.getLogger(__name__)


def partition_by_condition(df: pd.DataFrame, column: str = "condition") -> dict[int, pd.DataFrame]:
    """
    Split the run table into one frame per condition code.

    Keys are ascending condition codes; each group keeps input row order and
    gets a fresh index. Rows without a condition code, or with a code outside
    1-13, are dropped.
    """
    if df.empty or column not in df.columns:
        return {}

    codes = condition_codes(df[column])
    missing = int(codes.isna().sum())
    if missing:
        _LOG.debug("dropping %d row(s) without a condition code", missing)

    groups: dict[int, pd.DataFrame] = {}
    for code in sorted(int(c) for c in codes.dropna().unique()):
        mask = (codes == code).fillna(False).to_numpy(bool)
        if code not in CONDITION_CODES:
            _LOG.debug("dropping %d row(s) with unknown condition code %d", int(mask.sum()), code)
            continue
        groups[code] = df.loc[mask].reset_index(drop=True)
    return groups
