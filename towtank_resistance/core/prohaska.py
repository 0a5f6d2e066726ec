# towtank_resistance/core/prohaska.py
from __future__ import annotations
from dataclasses import dataclass
from typing import Literal
import logging
import numpy as np
import pandas as pd

_LOG = logging.getLogger(__name__)

FrictionLine = Literal["ittc", "grigson"]

FRICTION_COLUMNS: dict[str, str] = {
    "ittc": "cfm_ittc",
    "grigson": "cfm_grigson",
}

FRICTION_LABELS: dict[str, str] = {
    "ittc": "ITTC 1957",
    "grigson": "Grigson",
}


@dataclass(frozen=True)
class LinearFit:
    slope: float
    intercept: float
    r_squared: float
    n_points: int

    @property
    def form_factor(self) -> float:
        """(1+k): intercept of Ctm/Cfm over Fr^4/Cfm."""
        return self.intercept

    def __call__(self, x):
        return self.slope * np.asarray(x, float) + self.intercept

    def equation(self, label: str) -> str:
        sign = "+" if self.intercept > 0 else "-"
        return f"{label}: y = {self.slope:.3f}*x {sign} {abs(self.intercept):.3f}"


def fit_line(x, y) -> LinearFit:
    """Ordinary least squares y = slope*x + intercept with coefficient of determination."""
    xs = np.asarray(x, float).ravel()
    ys = np.asarray(y, float).ravel()
    if xs.shape != ys.shape:
        raise ValueError(f"x and y differ in length ({xs.size} vs {ys.size})")
    ok = np.isfinite(xs) & np.isfinite(ys)
    xs, ys = xs[ok], ys[ok]
    if xs.size < 2:
        raise ValueError("linear fit needs at least two finite points")
    if np.ptp(xs) == 0:
        raise ValueError("linear fit needs at least two distinct x values")

    slope, intercept = np.polyfit(xs, ys, 1)
    y_fit = slope * xs + intercept
    ss_res = float(np.sum((ys - y_fit) ** 2))
    ss_tot = float(np.sum((ys - np.mean(ys)) ** 2))
    if ss_tot == 0:
        r2 = 1.0 if np.isclose(ss_res, 0.0) else 0.0
    else:
        r2 = 1.0 - ss_res / ss_tot
    return LinearFit(slope=float(slope), intercept=float(intercept), r_squared=float(r2), n_points=int(xs.size))


def prohaska_points(group: pd.DataFrame, friction_line: FrictionLine = "ittc") -> tuple[np.ndarray, np.ndarray]:
    """x = Fr^4/Cfm, y = Ctm/Cfm for the chosen friction line."""
    col = FRICTION_COLUMNS.get(friction_line)
    if col is None:
        raise ValueError(f"unknown friction line {friction_line!r}")
    for c in ("froude", "ctm", col):
        if c not in group.columns:
            raise KeyError(f"missing column {c}")
    fr = group["froude"].to_numpy(float)
    ctm = group["ctm"].to_numpy(float)
    cfm = group[col].to_numpy(float)
    with np.errstate(divide="ignore", invalid="ignore"):
        x = fr ** 4 / cfm
        y = ctm / cfm
    return x, y


def prohaska_fit(group: pd.DataFrame, friction_line: FrictionLine = "ittc") -> LinearFit:
    x, y = prohaska_points(group, friction_line)
    return fit_line(x, y)


def prohaska_fits(group: pd.DataFrame) -> dict[str, LinearFit]:
    """Fits for every friction line the group supports; failures are logged and left out."""
    fits: dict[str, LinearFit] = {}
    for line in FRICTION_COLUMNS:
        try:
            fits[line] = prohaska_fit(group, line)
        except (KeyError, ValueError) as e:
            _LOG.warning("Prohaska fit (%s) not possible: %s", FRICTION_LABELS[line], e)
    return fits
