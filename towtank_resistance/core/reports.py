# towtank_resistance/core/reports.py
from __future__ import annotations
from pathlib import Path
from typing import Literal
import numpy as np
import pandas as pd
from scipy.io import savemat

from .model import AVERAGED_COLUMNS
from .prohaska import LinearFit, FRICTION_LABELS

ReportFormat = Literal["csv", "mat", "both"]

PROHASKA_COLUMNS = ["friction_line", "slope", "intercept", "form_factor", "r_squared", "n_points"]


def _build_dataframe(averaged: dict[int, pd.DataFrame]) -> pd.DataFrame:
    """All averaged condition records stacked in ascending condition order."""
    frames = [averaged[code] for code in sorted(averaged) if not averaged[code].empty]
    if not frames:
        return pd.DataFrame(columns=list(AVERAGED_COLUMNS), dtype=float)
    return pd.concat(frames, ignore_index=True)


def _write_dat(df_out: pd.DataFrame, out_dat: Path) -> None:
    out_dat.parent.mkdir(parents=True, exist_ok=True)
    df_out.to_csv(out_dat, index=False, header=False, encoding="utf-8")
    print(f"[OK] wrote report: averaged results → {out_dat}")


def _write_txt(df_out: pd.DataFrame, out_txt: Path) -> None:
    out_txt.parent.mkdir(parents=True, exist_ok=True)
    df_out.to_csv(out_txt, sep="\t", index=False, header=False, float_format="%.4g", encoding="utf-8")
    print(f"[OK] wrote report: averaged results → {out_txt}")


def _write_mat(df_out: pd.DataFrame, out_mat: Path, varname: str) -> None:
    """
    Save a MATLAB struct with one Nx1 double field per column plus the raw
    N x M matrix under ``data``.
    """
    out_mat.parent.mkdir(parents=True, exist_ok=True)

    def numcol(name: str) -> np.ndarray:
        return df_out[name].to_numpy(dtype=float).reshape(-1, 1)

    mat_struct = {name: numcol(name) for name in df_out.columns}
    mat_struct["data"] = df_out.to_numpy(dtype=float)
    savemat(out_mat, {varname: mat_struct})
    print(f"[OK] wrote report: averaged results → {out_mat}")


def write_averaged_report(averaged: dict[int, pd.DataFrame],
                          out_base: Path,
                          fmt: ReportFormat = "csv",
                          mat_variable: str = "resultsAveragedArray") -> pd.DataFrame | None:
    """
    Write the stacked averaged records.
    - out_base is a *base path without extension* (e.g., .../resultsAveragedArray)
    - fmt: "csv" (.dat + .txt) | "mat" | "both"
    """
    df_out = _build_dataframe(averaged)
    if df_out.empty:
        print("[INFO] no averaged records; skipping averaged report.")
        return None

    if fmt in ("csv", "both"):
        _write_dat(df_out, out_base.with_suffix(".dat"))
        _write_txt(df_out, out_base.with_suffix(".txt"))
    if fmt in ("mat", "both"):
        _write_mat(df_out, out_base.with_suffix(".mat"), mat_variable)
    return df_out


def write_prohaska_summary(fits: dict[str, LinearFit], out_csv: Path) -> pd.DataFrame | None:
    if not fits:
        return None
    rows = [
        {
            "friction_line": FRICTION_LABELS.get(line, line),
            "slope": fit.slope,
            "intercept": fit.intercept,
            "form_factor": fit.form_factor,
            "r_squared": fit.r_squared,
            "n_points": fit.n_points,
        }
        for line, fit in fits.items()
    ]
    df_out = pd.DataFrame(rows, columns=PROHASKA_COLUMNS)
    out_csv.parent.mkdir(parents=True, exist_ok=True)
    df_out.to_csv(out_csv, index=False, encoding="utf-8")
    print(f"[OK] wrote report: Prohaska fits → {out_csv}")
    return df_out
