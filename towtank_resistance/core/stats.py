# towtank_resistance/core/stats.py
from __future__ import annotations
from dataclasses import dataclass
from typing import Iterable
import numpy as np
import pandas as pd

from .model import BASE_COLUMNS, BOOKKEEPING_COLUMNS, CHANNELS, averaged_columns
from .normalize import froude_setpoints

MINMAX_COLUMNS: tuple[str, ...] = (
    "condition", "froude", "heave_min", "heave_max", "heave_mid",
    "crm_x1000", "froude_mean", "trim_min", "trim_max", "trim_mid",
)


@dataclass(frozen=True)
class ChannelStats:
    min: float
    max: float
    mean: float
    pct: float      # (max - mean) / max
    std: float      # population standard deviation


def channel_stats(values) -> ChannelStats:
    """
    Min, max, mean, percentage spread of max from mean relative to max, and
    population standard deviation of the repeat observations of one channel.
    NaN observations are ignored; a single observation has no spread.
    """
    v = pd.to_numeric(pd.Series(values), errors="coerce").to_numpy(float)
    v = v[np.isfinite(v)]
    if v.size == 0:
        raise ValueError("channel_stats needs at least one finite value")
    mx = float(np.max(v))
    mean = float(np.mean(v))
    if v.size == 1:
        return ChannelStats(min=mx, max=mx, mean=mx, pct=0.0, std=0.0)
    pct = (mx - mean) / mx if mx != 0 else 0.0
    return ChannelStats(
        min=float(np.min(v)),
        max=mx,
        mean=mean,
        pct=float(pct),
        std=float(np.std(v, ddof=0)),
    )


def _nan_stats() -> ChannelStats:
    return ChannelStats(np.nan, np.nan, np.nan, np.nan, np.nan)


def select_runs(runs: pd.DataFrame, run_numbers: Iterable[int] | None) -> pd.DataFrame:
    if run_numbers is None or runs.empty:
        return runs
    wanted = {int(r) for r in run_numbers}
    run_no = pd.to_numeric(runs["run_no"], errors="coerce").round()
    return runs.loc[run_no.isin(wanted).to_numpy(bool)]


def stats_avg(runs: pd.DataFrame,
              run_numbers: Iterable[int] | None = None,
              channels: tuple[str, ...] = CHANNELS,
              froude_decimals: int = 2) -> pd.DataFrame:
    """
    Average repeat runs per Froude number setpoint.

    ``run_numbers`` optionally restricts ``runs`` to a run-number range first.
    Returns one row per setpoint (ascending) holding the mean of every base
    column, then per channel min/max/avg/pct, per channel std, the mean of the
    per-run std columns and the repeat count.
    """
    cols = averaged_columns(channels)
    sel = select_runs(runs, run_numbers)
    if sel.empty or "froude" not in sel.columns:
        return pd.DataFrame(columns=list(cols), dtype=float)

    keys = froude_setpoints(sel["froude"], froude_decimals)
    rows: list[dict] = []
    for key in np.sort(keys.dropna().unique()):
        rep = sel.loc[(keys == key).to_numpy(bool)]
        row: dict = {}
        for c in BASE_COLUMNS:
            if c in BOOKKEEPING_COLUMNS or c not in rep.columns:
                row[c] = 0.0 if c in BOOKKEEPING_COLUMNS else np.nan
            else:
                row[c] = float(pd.to_numeric(rep[c], errors="coerce").mean())

        per_channel: dict[str, ChannelStats] = {}
        for ch in channels:
            try:
                per_channel[ch] = channel_stats(rep[ch]) if ch in rep.columns else _nan_stats()
            except ValueError:
                per_channel[ch] = _nan_stats()
            st = per_channel[ch]
            row[f"{ch}_min"] = st.min
            row[f"{ch}_max"] = st.max
            row[f"{ch}_avg"] = st.mean
            row[f"{ch}_pct"] = st.pct
        for ch in channels:
            row[f"{ch}_std"] = per_channel[ch].std
        for ch in channels:
            std_col = f"{ch}_std"
            row[f"{ch}_mean_std"] = (
                float(pd.to_numeric(rep[std_col], errors="coerce").mean())
                if std_col in rep.columns else np.nan
            )
        row["n_repeats"] = int(rep.shape[0])
        rows.append(row)

    return pd.DataFrame(rows, columns=list(cols))


def stats_minmax(group: pd.DataFrame, froude_decimals: int = 2) -> pd.DataFrame:
    """Heave and trim extremes per Froude setpoint of one condition group."""
    needed = ("condition", "froude", "heave", "trim", "crm")
    if group.empty or any(c not in group.columns for c in needed):
        return pd.DataFrame(columns=list(MINMAX_COLUMNS), dtype=float)

    keys = froude_setpoints(group["froude"], froude_decimals)
    rows = []
    for key in np.sort(keys.dropna().unique()):
        g = group.loc[(keys == key).to_numpy(bool)]
        heave = g["heave"].to_numpy(float)
        trim = g["trim"].to_numpy(float)
        h_min, h_max = float(np.nanmin(heave)), float(np.nanmax(heave))
        t_min, t_max = float(np.nanmin(trim)), float(np.nanmax(trim))
        rows.append({
            "condition": float(g["condition"].iloc[0]),
            "froude": float(key),
            "heave_min": h_min,
            "heave_max": h_max,
            "heave_mid": (h_min + h_max) / 2.0,
            "crm_x1000": float(g["crm"].mean()) * 1000.0,
            "froude_mean": float(g["froude"].mean()),
            "trim_min": t_min,
            "trim_max": t_max,
            "trim_mid": (t_min + t_max) / 2.0,
        })
    return pd.DataFrame(rows, columns=list(MINMAX_COLUMNS))


def setpoint_means(df: pd.DataFrame, columns: Iterable[str], froude_decimals: int = 2) -> pd.DataFrame:
    """Mean of ``columns`` per Froude setpoint (ascending); missing columns are skipped."""
    cols = [c for c in columns if c in df.columns and c != "froude"]
    if df.empty or "froude" not in df.columns:
        return pd.DataFrame(columns=["froude"] + cols, dtype=float)
    keyed = df[cols].apply(pd.to_numeric, errors="coerce")
    keyed = keyed.assign(froude=froude_setpoints(df["froude"], froude_decimals))
    out = keyed.dropna(subset=["froude"]).groupby("froude", sort=True).mean().reset_index()
    return out[["froude"] + cols]
