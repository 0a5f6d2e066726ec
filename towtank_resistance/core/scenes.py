# towtank_resistance/core/scenes.py
from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from typing import Callable
import logging
import numpy as np
import pandas as pd
import matplotlib.pyplot as plt

from .conditions import (
    label_for, title_for, condition_info,
    TURB_STIM_CONDITIONS, TRIM_TAB_CONDITIONS, RESISTANCE_CONDITIONS, PROHASKA_CONDITION,
)
from .model import CHANNELS, SceneContext
from .plotting import Curve, new_figure, plot_curves, decorate, save_figure
from .prohaska import prohaska_points, FRICTION_LABELS
from .stats import stats_minmax, setpoint_means

_LOG = logging.getLogger(__name__)

GRAVITY = 9.806   # m/s^2

CHANNEL_LABELS: dict[str, str] = {
    "speed": "Speed",
    "fwd_lvdt": "Fwd LVDT",
    "aft_lvdt": "Aft LVDT",
    "drag": "Drag",
}

FR_LABEL = "Froude length number [-]"
CTM_LABEL = "Total resistance coefficient $C_{Tm}$*1000 [-]"
CRM_LABEL = "Residual resistance coefficient $C_{Rm}$*1000 [-]"
ERR_LABEL = "Error to average [%]"

# Froude axis ranges per campaign: (lower, upper, tick step)
FR_TSI = (0.2, 0.45, 0.05)
FR_RT = (0.1, 0.5, 0.05)
FR_FF = (0.1, 0.24, 0.02)


@dataclass(frozen=True)
class Scene:
    number: int
    key: str
    description: str
    render: Callable[[SceneContext], "plt.Figure | None"]

    @property
    def stem(self) -> str:
        return f"Plot_{self.number}_{self.description}_Plot"


_REGISTRY: dict[str, Scene] = {}


def _scene(number: int, key: str, description: str):
    def register(fn):
        _REGISTRY[key] = Scene(number, key, description, fn)
        return fn
    return register


def all_scenes() -> list[Scene]:
    return sorted(_REGISTRY.values(), key=lambda s: s.number)


# ---------- data helpers ----------
def _xy(df: pd.DataFrame, x: str, y: str, scale: float = 1.0) -> tuple[np.ndarray, np.ndarray]:
    if df.empty or x not in df.columns or y not in df.columns:
        return np.array([]), np.array([])
    return df[x].to_numpy(float), df[y].to_numpy(float) * scale


def _condition_curves(ctx: SceneContext, codes, x: str, y: str, scale: float = 1.0,
                      averaged: bool = False, offset: int = 0, suffix: str = "") -> list[Curve]:
    curves = []
    for i, code in enumerate(codes):
        df = ctx.avg(code) if averaged else ctx.raw(code)
        xs, ys = _xy(df, x, y, scale)
        if xs.size == 0:
            continue
        curves.append(Curve(xs, ys, f"{label_for(code)}{suffix}", i + offset))
    return curves


def _channel_curves(df: pd.DataFrame, suffix: str, scales: dict[str, float] | None = None) -> list[Curve]:
    curves = []
    for i, ch in enumerate(CHANNELS):
        scale = (scales or {}).get(ch, 1.0)
        xs, ys = _xy(df, "froude", f"{ch}_{suffix}", scale)
        if xs.size == 0:
            continue
        label = CHANNEL_LABELS[ch]
        if scale != 1.0:
            label = f"{label}*{scale:g}" if scale > 1 else f"{label}/{1 / scale:g}"
        curves.append(Curve(xs, ys, label, i))
    return curves


def _run_span(ctx: SceneContext, codes) -> str:
    nums = []
    for code in codes:
        df = ctx.raw(code)
        if not df.empty and "run_no" in df.columns:
            nums.extend(df["run_no"].dropna().to_numpy(float).tolist())
    if not nums:
        return ""
    return f", Run {int(min(nums))} to {int(max(nums))}"


def _has_columns(ctx: SceneContext, codes, columns, averaged: bool = False) -> bool:
    for code in codes:
        df = ctx.avg(code) if averaged else ctx.raw(code)
        if df.empty:
            continue
        if all(c in df.columns and df[c].notna().any() for c in columns):
            return True
    return False


def _skip(key: str, reason: str) -> None:
    print(f"[INFO] scene {key}: {reason}; skipping.")


# ---------- scenes ----------
@_scene(1, "turb_stim", "Turbulence_Stimulator_Resistance_Data")
def _turb_stim(ctx: SceneContext):
    codes = TURB_STIM_CONDITIONS
    if not ctx.any_raw(codes):
        _skip("turb_stim", "no runs for conditions 1-3")
        return None
    fig, axes = new_figure(ctx.style, f"Resistance Test:: Turbulence Stimulator Investigation{_run_span(ctx, codes)}", 1, 2)
    for ax, averaged, title in ((axes[0], False, "Repeated runs"), (axes[1], True, "Average of repeated runs")):
        plot_curves(ax, _condition_curves(ctx, codes, "froude", "ctm", 1000, averaged=averaged), ctx.style)
        decorate(ax, ctx.style, xlabel=FR_LABEL, ylabel=CTM_LABEL, title=title,
                 xlim=FR_TSI, xfmt="%.2f", yfmt="%.1f")
    return fig


@_scene(2, "trim_tab", "Trim_Tab_Resistance_Data")
def _trim_tab(ctx: SceneContext):
    codes = TRIM_TAB_CONDITIONS
    if not ctx.any_raw(codes):
        _skip("trim_tab", "no runs for conditions 4-6")
        return None
    fig, axes = new_figure(ctx.style, f"Resistance Test:: Trim Tab Investigation{_run_span(ctx, codes)}", 2, 2)
    plot_curves(axes[0], _condition_curves(ctx, codes, "froude", "ctm", 1000), ctx.style)
    decorate(axes[0], ctx.style, xlabel=FR_LABEL, ylabel=CTM_LABEL, title="Repeated runs",
             xlim=FR_TSI, xfmt="%.2f", yfmt="%.1f")
    plot_curves(axes[1], _condition_curves(ctx, codes, "froude", "ctm", 1000, averaged=True), ctx.style)
    decorate(axes[1], ctx.style, xlabel=FR_LABEL, ylabel=CTM_LABEL, title="Average of repeated runs",
             xlim=FR_TSI, xfmt="%.2f", yfmt="%.1f")
    plot_curves(axes[2], _condition_curves(ctx, codes, "froude", "trim", averaged=True), ctx.style)
    decorate(axes[2], ctx.style, xlabel=FR_LABEL, ylabel="Trim [deg]", title="Running trim",
             xlim=FR_TSI, xfmt="%.2f", yfmt="%.1f")
    plot_curves(axes[3], _condition_curves(ctx, codes, "trim", "crm", 1000, averaged=True), ctx.style)
    decorate(axes[3], ctx.style, xlabel="Trim [deg]", ylabel=CRM_LABEL, title="Trim vs. residual resistance",
             yfmt="%.1f")
    return fig


def _resistance_summary(ctx: SceneContext, averaged: bool, name: str):
    codes = RESISTANCE_CONDITIONS
    fig, axes = new_figure(ctx.style, f"{name}{_run_span(ctx, codes)}", 2, 2)
    panels = (
        ("froude", "ctm", 1000, FR_LABEL, CTM_LABEL, FR_RT),
        ("fs_speed_kts", "pes", 1, "Full scale speed [knots]", "Full scale effective power [W]", None),
        ("froude", "heave", 1, FR_LABEL, "Heave [mm]", FR_RT),
        ("froude", "trim", 1, FR_LABEL, "Running trim [deg]", FR_RT),
    )
    for ax, (x, y, scale, xl, yl, xlim) in zip(axes, panels):
        plot_curves(ax, _condition_curves(ctx, codes, x, y, scale, averaged=averaged), ctx.style)
        decorate(ax, ctx.style, xlabel=xl, ylabel=yl, xlim=xlim, xfmt="%.2f" if xlim else None)
    return fig


@_scene(3, "resistance_repeats", "Summary_Resistance_Data_Repeated_Runs")
def _resistance_repeats(ctx: SceneContext):
    if not ctx.any_raw(RESISTANCE_CONDITIONS):
        _skip("resistance_repeats", "no runs for conditions 7-12")
        return None
    return _resistance_summary(ctx, False, "Resistance Test (Repeated Runs):: 1,500 and 1,804 tonnes")


@_scene(4, "resistance_averaged", "Summary_Resistance_Data_Averaged")
def _resistance_averaged(ctx: SceneContext):
    if not ctx.any_avg(RESISTANCE_CONDITIONS):
        _skip("resistance_averaged", "no averaged data for conditions 7-12")
        return None
    return _resistance_summary(ctx, True, "Resistance Test (Averaged Runs):: 1,500 and 1,804 tonnes")


@_scene(5, "resistance_coefficients", "Fr_vs_Rtm_Ctm_and_Crm_Averaged")
def _resistance_coefficients(ctx: SceneContext):
    codes = RESISTANCE_CONDITIONS
    if not ctx.any_avg(codes):
        _skip("resistance_coefficients", "no averaged data for conditions 7-12")
        return None
    fig, axes = new_figure(ctx.style, f"Resistance Test (Averaged):: 1,500 and 1,804 tonnes{_run_span(ctx, codes)}", 1, 3)
    panels = (
        ("rtm", 1, "Total resistance $R_{Tm}$ [N]"),
        ("ctm", 1000, CTM_LABEL),
        ("crm", 1000, CRM_LABEL),
    )
    for ax, (y, scale, yl) in zip(axes, panels):
        plot_curves(ax, _condition_curves(ctx, codes, "froude", y, scale, averaged=True), ctx.style)
        decorate(ax, ctx.style, xlabel=FR_LABEL, ylabel=yl, xlim=FR_RT, xfmt="%.2f")
    return fig


@_scene(6, "prohaska", "Prohaska_Form_Factor_Resistance_Data")
def _prohaska(ctx: SceneContext):
    code = PROHASKA_CONDITION
    group = ctx.raw(code)
    if group.empty:
        _skip("prohaska", f"no runs for condition {code}")
        return None
    fig, axes = new_figure(ctx.style, f"Resistance Test:: Prohaska Runs, Form Factor, Deep Transom{_run_span(ctx, [code])}", 1, 2)

    fits = ctx.fits
    curves: list[Curve] = []
    notes: list[str] = []
    for i, line in enumerate(("ittc", "grigson")):
        try:
            x, y = prohaska_points(group, line)
        except KeyError as e:
            _LOG.info("prohaska scene: %s", e)
            continue
        label = FRICTION_LABELS[line]
        curves.append(Curve(x, y, f"Cond. {code}: {label}", i))
        fit = fits.get(line)
        if fit is not None:
            xs = np.sort(x[np.isfinite(x)])
            curves.append(Curve(xs, fit(xs), f"Cond. {code}: {label} (Fit)", i, line=True))
            notes.append(f"{fit.equation(label)}  ($R^2$ = {fit.r_squared:.3f}, 1+k = {fit.form_factor:.3f})")
    plot_curves(axes[0], curves, ctx.style)
    for k, note in enumerate(notes):
        axes[0].text(0.03, 0.04 + 0.06 * k, note, transform=axes[0].transAxes,
                     fontsize=ctx.style.legend_font_size + 1, color="k")
    decorate(axes[0], ctx.style, xlabel="$F_r^4/C_{Fm}$ [-]", ylabel="$C_{Tm}/C_{Fm}$ [-]",
             title="Prohaska plot", legend_loc="upper right", xfmt="%.2f", yfmt="%.2f")

    plot_curves(axes[1], _channel_curves(ctx.avg(code), "pct", {ch: 100 for ch in CHANNELS}), ctx.style)
    decorate(axes[1], ctx.style, xlabel=FR_LABEL, ylabel=ERR_LABEL, title=title_for(code),
             xlim=FR_FF, xfmt="%.2f", legend_loc="upper right")
    return fig


def _per_condition_grid(ctx: SceneContext, name: str, averaged: bool, suffix: str,
                        ylabel: str, scales: dict[str, float] | None):
    codes = RESISTANCE_CONDITIONS
    fig, axes = new_figure(ctx.style, f"{name}{_run_span(ctx, codes)}", 2, 3)
    for ax, code in zip(axes, codes):
        df = ctx.avg(code) if averaged else ctx.raw(code)
        plot_curves(ax, _channel_curves(df, suffix, scales), ctx.style)
        decorate(ax, ctx.style, xlabel=FR_LABEL, ylabel=ylabel, title=title_for(code),
                 xlim=FR_RT, xfmt="%.2f", legend_loc="upper right")
    return fig


@_scene(7, "errors_repeats", "Errors_Resistance_Data_Repeated_Runs")
def _errors_repeats(ctx: SceneContext):
    needed = [f"{ch}_pct" for ch in CHANNELS]
    if not _has_columns(ctx, RESISTANCE_CONDITIONS, needed):
        _skip("errors_repeats", "per-run error columns (29-44) missing")
        return None
    return _per_condition_grid(ctx, "Resistance Test (Errors, Repeated Runs):: 1,500 and 1,804 tonnes",
                               False, "pct", ERR_LABEL, {ch: 100 for ch in CHANNELS})


@_scene(8, "errors_averaged", "Errors_Resistance_Data_Averaged")
def _errors_averaged(ctx: SceneContext):
    if not ctx.any_avg(RESISTANCE_CONDITIONS):
        _skip("errors_averaged", "no averaged data for conditions 7-12")
        return None
    return _per_condition_grid(ctx, "Resistance Test (Errors, Averaged Runs):: 1,500 and 1,804 tonnes",
                               True, "pct", ERR_LABEL, {ch: 100 for ch in CHANNELS})


def _grouped_bars(ax, x: np.ndarray, ys: list[np.ndarray], labels: list[str], style) -> None:
    if x.size == 0:
        return
    spacing = float(np.min(np.diff(np.sort(x)))) if x.size > 1 else 0.02
    width = 0.5 * spacing / max(len(ys), 1)
    greys = ("0.0", "0.35", "0.6", "0.85")
    for i, (y, label) in enumerate(zip(ys, labels)):
        offset = (i - (len(ys) - 1) / 2.0) * width
        color = greys[i % len(greys)] if style.black_and_white else style.color(i)
        ax.bar(x + offset, y, width=width, color=color, edgecolor="k", linewidth=0.5, label=label)


@_scene(9, "mean_std", "Fr_vs_Standard_Deviation_Mean")
def _mean_std(ctx: SceneContext):
    codes = RESISTANCE_CONDITIONS
    needed = [f"{ch}_mean_std" for ch in CHANNELS]
    if not _has_columns(ctx, codes, needed, averaged=True):
        _skip("mean_std", "per-run standard deviation columns (45-48) missing")
        return None
    fig, axes = new_figure(ctx.style, f"Resistance Test (Avg. Mean of StdDev):: 1,500 and 1,804 tonnes{_run_span(ctx, codes)}", 2, 3)
    for ax, code in zip(axes, codes):
        df = ctx.avg(code)
        if not df.empty:
            x = df["froude"].to_numpy(float)
            ys = [df[f"{ch}_mean_std"].to_numpy(float) for ch in CHANNELS]
            _grouped_bars(ax, x, ys, [CHANNEL_LABELS[ch] for ch in CHANNELS], ctx.style)
        decorate(ax, ctx.style, xlabel=FR_LABEL, ylabel="Mean of standard deviation [-]",
                 title=title_for(code), xlim=FR_RT, xfmt="%.2f", legend_loc="upper right")
    return fig


@_scene(10, "std", "Fr_vs_Standard_Deviation")
def _std(ctx: SceneContext):
    if not ctx.any_avg(RESISTANCE_CONDITIONS):
        _skip("std", "no averaged data for conditions 7-12")
        return None
    return _per_condition_grid(ctx, "Resistance Test (Avg. StdDev):: 1,500 and 1,804 tonnes",
                               True, "std", "Standard deviation [-]", {"speed": 100, "drag": 0.01})


@_scene(11, "rem_vs_cfm", "Rem_vs_Cfm_Resistance_Data")
def _rem_vs_cfm(ctx: SceneContext):
    codes = RESISTANCE_CONDITIONS
    if not ctx.any_avg(codes):
        _skip("rem_vs_cfm", "no averaged data for conditions 7-12")
        return None
    fig, axes = new_figure(ctx.style, f"Resistance Test ($C_{{Fm}}$ vs. $R_{{em}}$):: 1,500 and 1,804 tonnes{_run_span(ctx, codes)}")
    curves = _condition_curves(ctx, codes, "rem", "cfm_ittc", 1000, averaged=True, suffix=" (ITTC 1957)")
    curves += _condition_curves(ctx, codes, "rem", "cfm_grigson", 1000, averaged=True,
                                offset=len(codes), suffix=" (Grigson)")
    plot_curves(axes[0], curves, ctx.style)
    decorate(axes[0], ctx.style, xlabel="Reynolds number, $R_{em}$ [-]",
             ylabel="Frictional resistance coefficient, $C_{Fm}$*$10^3$ [-]",
             legend_loc="upper right")
    return fig


@_scene(12, "turb_stim_delta", "Rtm_With_and_Without_Turbulence_Stimulator")
def _turb_stim_delta(ctx: SceneContext):
    codes = RESISTANCE_CONDITIONS
    if not _has_columns(ctx, codes, ["rtm", "rtm_with_ts"]):
        _skip("turb_stim_delta", "column 53 (Rtm including turbulence stimulators) missing")
        return None
    fig, axes = new_figure(ctx.style, f"Resistance Test (Turbulence Stimulator Correction):: 1,500 and 1,804 tonnes{_run_span(ctx, codes)}", 1, 2)
    with_ts, without_ts, delta = [], [], []
    for i, code in enumerate(codes):
        means = setpoint_means(ctx.raw(code), ["rtm", "rtm_with_ts"], ctx.froude_decimals)
        if means.empty or "rtm_with_ts" not in means.columns:
            continue
        x = means["froude"].to_numpy(float)
        rtm = means["rtm"].to_numpy(float)
        rtm_ts = means["rtm_with_ts"].to_numpy(float)
        without_ts.append(Curve(x, rtm, f"{label_for(code)} corrected", i))
        with_ts.append(Curve(x, rtm_ts, f"{label_for(code)} uncorrected", i + len(codes)))
        delta.append(Curve(x, rtm_ts - rtm, label_for(code), i))
    plot_curves(axes[0], without_ts + with_ts, ctx.style)
    decorate(axes[0], ctx.style, xlabel=FR_LABEL, ylabel="Total resistance $R_{Tm}$ [N]",
             title="With and without turbulence stimulator resistance", xlim=FR_RT, xfmt="%.2f")
    plot_curves(axes[1], delta, ctx.style)
    decorate(axes[1], ctx.style, xlabel=FR_LABEL, ylabel="Turbulence stimulator resistance [N]",
             title="Resistance delta", xlim=FR_RT, xfmt="%.2f")
    return fig


@_scene(13, "heave_minmax", "Heave_Min_Max_Averaged")
def _heave_minmax(ctx: SceneContext):
    codes = RESISTANCE_CONDITIONS
    if not ctx.any_raw(codes):
        _skip("heave_minmax", "no runs for conditions 7-12")
        return None
    fig, axes = new_figure(ctx.style, f"Heave (Min, Max and Averaged):: 1,500 and 1,804 tonnes{_run_span(ctx, codes)}", 2, 3)
    deg = ctx.heave_poly_degree
    for ax, code in zip(axes, codes):
        mm = stats_minmax(ctx.raw(code), ctx.froude_decimals)
        curves: list[Curve] = []
        if not mm.empty:
            x = mm["froude"].to_numpy(float)
            curves.append(Curve(x, mm["heave_min"].to_numpy(float), "Minimum", 0))
            curves.append(Curve(x, mm["heave_max"].to_numpy(float), "Maximum", 1))
            mid = mm["heave_mid"].to_numpy(float)
            curves.append(Curve(x, mid, "Mean of min. and max.", 3))
            ok = np.isfinite(x) & np.isfinite(mid)
            if ok.sum() > deg:
                coeffs = np.polyfit(x[ok], mid[ok], deg)
                xs = np.linspace(x[ok].min(), x[ok].max(), 50)
                curves.append(Curve(xs, np.polyval(coeffs, xs), f"Trend (degree {deg})", 3, line=True))
        plot_curves(ax, curves, ctx.style)
        decorate(ax, ctx.style, xlabel=FR_LABEL, ylabel="Heave [mm]", title=title_for(code),
                 xlim=FR_RT, xfmt="%.2f", legend_loc="lower left")
    return fig


@_scene(14, "nondim_resistance", "Fr_vs_NonDim_Data_Averaged")
def _nondim_resistance(ctx: SceneContext):
    codes = RESISTANCE_CONDITIONS
    if not ctx.any_avg(codes):
        _skip("nondim_resistance", "no averaged data for conditions 7-12")
        return None
    fig, axes = new_figure(ctx.style, f"Averaged Non-Dimensional Resistance for 1,500 and 1,804 tonnes{_run_span(ctx, codes)}")
    curves = []
    for i, code in enumerate(codes):
        df = ctx.avg(code)
        disp = condition_info(code).displacement_kg
        if df.empty or not disp:
            continue
        fr = df["froude"].to_numpy(float)
        with np.errstate(divide="ignore", invalid="ignore"):
            y = df["rtm"].to_numpy(float) / (disp * GRAVITY) / fr ** 2
        curves.append(Curve(fr, y, label_for(code), i))
    plot_curves(axes[0], curves, ctx.style)
    decorate(axes[0], ctx.style, xlabel=FR_LABEL,
             ylabel="$R_{Tm}/(\\nabla \\rho g)\\,(1/F_r^2)$ [-]",
             xlim=FR_RT, xfmt="%.2f", legend_loc="upper right")
    return fig


def render_scene(scene: Scene, ctx: SceneContext) -> list[Path]:
    fig = scene.render(ctx)
    if fig is None:
        return []
    return save_figure(fig, ctx.out_dir, scene.stem, ctx.formats, ctx.style.dpi)
