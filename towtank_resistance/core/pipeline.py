# towtank_resistance/core/pipeline.py
from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path
import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import pandas as pd

from .conditions import configure_from_config, run_range_for, PROHASKA_CONDITION
from .model import RunTable, SceneContext
from .partition import partition_by_condition
from .plotting import PlotStyle
from .prohaska import prohaska_fits, LinearFit
from .reports import write_averaged_report, write_prohaska_summary
from .scenes import all_scenes, render_scene
from .stats import stats_avg

PLOT_SUBDIR = Path("_plots") / "_averaged"


@dataclass
class PipelineResult:
    conditions: dict[int, pd.DataFrame]
    averaged: dict[int, pd.DataFrame]
    fits: dict[str, LinearFit]
    written: dict[str, list[Path]] = field(default_factory=dict)   # scene key -> files


def _enabled(cfg: dict, key: str) -> bool:
    enable = ((cfg.get("plots") or {}).get("enable", {}) or {})
    return bool(enable.get(key, True))


def average_conditions(groups: dict[int, pd.DataFrame], cfg: dict) -> dict[int, pd.DataFrame]:
    an = cfg.get("analysis") or {}
    decimals = int(an.get("froude_decimals", 2))
    by_range = bool(an.get("select_by_run_range", False))

    averaged: dict[int, pd.DataFrame] = {}
    for code, runs in groups.items():
        run_numbers = run_range_for(code) if by_range else None
        averaged[code] = stats_avg(runs, run_numbers=run_numbers, froude_decimals=decimals)
    return averaged


def run_pipeline(table: RunTable, cfg: dict, out_root: Path) -> PipelineResult:
    cfg = cfg or {}
    configure_from_config(cfg)
    verbose = bool((cfg.get("logging") or {}).get("verbose", True))
    an = cfg.get("analysis") or {}

    # partition + aggregate
    groups = partition_by_condition(table.df)
    if verbose:
        sizes = ", ".join(f"{code}:{len(g)}" for code, g in groups.items())
        print(f"[partition] {table.n_runs} run(s) in {len(groups)} condition(s) → {sizes}")
    averaged = average_conditions(groups, cfg)
    prohaska_group = groups.get(PROHASKA_CONDITION)
    fits = prohaska_fits(prohaska_group) if prohaska_group is not None else {}

    result = PipelineResult(conditions=groups, averaged=averaged, fits=fits)

    # plots
    formats = tuple(str(f).upper() for f in (cfg.get("plots") or {}).get("formats", ("PDF", "PNG", "EPS")))
    ctx = SceneContext(
        conditions=groups,
        averaged=averaged,
        out_dir=out_root / PLOT_SUBDIR,
        style=PlotStyle.from_config(cfg),
        formats=formats,
        heave_poly_degree=int(an.get("heave_poly_degree", 2)),
        froude_decimals=int(an.get("froude_decimals", 2)),
        fits=fits,
    )
    for scene in all_scenes():
        if not _enabled(cfg, scene.key):
            if verbose:
                print(f"[SKIP] scene {scene.key} disabled in config")
            continue
        try:
            files = render_scene(scene, ctx)
            if files:
                result.written[scene.key] = files
        except Exception as e:
            plt.close("all")
            print(f"[WARN] scene {scene.key} failed: {e}")

    # reports
    fmt = str((cfg.get("reports") or {}).get("format", "csv")).lower()
    write_averaged_report(averaged, out_root / "resultsAveragedArray", fmt=fmt)
    write_prohaska_summary(fits, out_root / "prohaska_fits.csv")
    return result
