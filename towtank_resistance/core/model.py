# towtank_resistance/core/model.py
from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING
import pandas as pd

if TYPE_CHECKING:
    from .plotting import PlotStyle
    from .prohaska import LinearFit

# Positional layout of full_resistance_data.dat (1-based column numbers in comments)
BASE_COLUMNS: tuple[str, ...] = (
    "run_no",          # [1]  Run No.
    "fs_hz",           # [2]  Sampling frequency (Hz)
    "n_samples",       # [3]  No. of samples
    "record_time_s",   # [4]  Record time (s)
    "speed",           # [5]  Model averaged speed (m/s)
    "fwd_lvdt",        # [6]  Model averaged fwd LVDT (mm)
    "aft_lvdt",        # [7]  Model averaged aft LVDT (mm)
    "drag",            # [8]  Model averaged drag (g)
    "rtm",             # [9]  Model total resistance Rtm (N)
    "ctm",             # [10] Model total resistance coefficient Ctm
    "froude",          # [11] Model Froude length number
    "heave",           # [12] Model heave (mm)
    "trim",            # [13] Model trim (deg)
    "fs_speed_ms",     # [14] Equivalent full scale speed (m/s)
    "fs_speed_kts",    # [15] Equivalent full scale speed (knots)
    "rem",             # [16] Model Reynolds number
    "cfm_ittc",        # [17] Model Cfm, ITTC'57
    "cfm_grigson",     # [18] Model Cfm, Grigson
    "crm",             # [19] Model residual resistance coefficient Crm
    "pem",             # [20] Model effective power (W)
    "pbm",             # [21] Model brake power (W)
    "res",             # [22] Full scale Reynolds number
    "cfs_ittc",        # [23] Full scale Cfs, ITTC'57
    "cts",             # [24] Full scale total resistance coefficient
    "rts",             # [25] Full scale total resistance (N)
    "pes",             # [26] Full scale effective power (W)
    "pbs",             # [27] Full scale brake power (W)
    "condition",       # [28] Run condition
)

# the four averaged sensor channels subject to error analysis
CHANNELS: tuple[str, ...] = ("speed", "fwd_lvdt", "aft_lvdt", "drag")


def error_columns(channels=CHANNELS) -> tuple[str, ...]:
    return tuple(
        f"{ch}_{stat}" for ch in channels for stat in ("min", "max", "avg", "pct")
    ) + tuple(f"{ch}_std" for ch in channels)


def averaged_columns(channels=CHANNELS) -> tuple[str, ...]:
    return (
        BASE_COLUMNS
        + error_columns(channels)
        + tuple(f"{ch}_mean_std" for ch in channels)
        + ("n_repeats",)
    )


ERROR_COLUMNS: tuple[str, ...] = error_columns()     # [29]..[48]

EXTENDED_COLUMNS: tuple[str, ...] = (
    "cfs_grigson",     # [49] Full scale Cfs, Grigson
    "delta_cfs",       # [50] Roughness allowance
    "ca",              # [51] Correlation allowance
    "caas",            # [52] Air resistance coefficient, full scale
    "rtm_with_ts",     # [53] Rtm including turbulence stimulator resistance (N)
) + tuple(f"{ch}_var" for ch in CHANNELS)           # [54]..[57]

RUN_COLUMNS: tuple[str, ...] = BASE_COLUMNS + ERROR_COLUMNS + EXTENDED_COLUMNS

# bookkeeping columns zeroed when repeats are averaged
BOOKKEEPING_COLUMNS: tuple[str, ...] = ("run_no", "fs_hz", "n_samples", "record_time_s")

AVERAGED_COLUMNS: tuple[str, ...] = averaged_columns()  # [1]..[53]

MIN_COLUMNS = len(BASE_COLUMNS)


def column_names(n: int) -> list[str]:
    """Names for a table with ``n`` positional columns."""
    names = list(RUN_COLUMNS[:n])
    names.extend(f"col_{k}" for k in range(len(RUN_COLUMNS) + 1, n + 1))
    return names


@dataclass(frozen=True)
class RunTable:
    df: pd.DataFrame          # one row per run, columns named via column_names()
    source_path: Path         # full_resistance_data.dat on disk
    dropped_zero_rows: int = 0

    @property
    def n_runs(self) -> int:
        return int(self.df.shape[0])

    def has_columns(self, *names: str) -> bool:
        return all(n in self.df.columns for n in names)


@dataclass
class SceneContext:
    conditions: dict[int, pd.DataFrame]   # raw runs per condition code
    averaged: dict[int, pd.DataFrame]     # stats_avg output per condition code
    out_dir: Path                         # .../_plots/_averaged
    style: PlotStyle
    formats: tuple[str, ...] = ("PDF", "PNG", "EPS")
    heave_poly_degree: int = 2
    froude_decimals: int = 2
    fits: dict[str, LinearFit] = field(default_factory=dict)   # Prohaska fits of condition 13

    def raw(self, code: int) -> pd.DataFrame:
        return self.conditions.get(code, pd.DataFrame())

    def avg(self, code: int) -> pd.DataFrame:
        return self.averaged.get(code, pd.DataFrame())

    def any_raw(self, codes) -> bool:
        return any(not self.raw(c).empty for c in codes)

    def any_avg(self, codes) -> bool:
        return any(not self.avg(c).empty for c in codes)
