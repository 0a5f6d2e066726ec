# towtank_resistance/core/plotting.py
from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
import re
import matplotlib.pyplot as plt
from matplotlib.ticker import FormatStrFormatter
import numpy as np

CM_PER_INCH = 2.54

# A3 sheet minus 1 cm margins on each side
PAPER_SIZE_CM = (42.0 - 2 * 1.0, 29.7 - 2 * 1.0)
SCREEN_SIZE_CM = (20.0, 14.0)

MARKERS: tuple[str, ...] = ("*", "+", "x", "o", "s", "d", "*", "^", "<", ">", "p", "h")
COLORS: tuple = (
    "r", "g", "b", "c", "m",
    (0.0, 0.75, 0.75), (0.75, 0.0, 0.75), (0.0, 0.8125, 1.0), (0.0, 0.125, 1.0),
    "k", "k", "k",
)

FILE_FORMATS: dict[str, str] = {"PDF": "pdf", "PNG": "png", "EPS": "eps"}


@dataclass
class PlotStyle:
    black_and_white: bool = True
    a4_paper: bool = True
    show_main_title: bool = True
    show_titles: bool = True
    font_size: float = 11
    legend_font_size: float = 8
    marker_size: float = 7
    dpi: int = 160

    @classmethod
    def from_config(cls, cfg: dict) -> "PlotStyle":
        st = ((cfg or {}).get("plots", {}) or {}).get("style", {}) or {}
        d = cls()
        return cls(
            black_and_white=bool(st.get("black_and_white", d.black_and_white)),
            a4_paper=bool(st.get("a4_paper", d.a4_paper)),
            show_main_title=bool(st.get("show_main_title", d.show_main_title)),
            show_titles=bool(st.get("show_titles", d.show_titles)),
            font_size=float(st.get("font_size", d.font_size)),
            legend_font_size=float(st.get("legend_font_size", d.legend_font_size)),
            marker_size=float(st.get("marker_size", d.marker_size)),
            dpi=int(st.get("dpi", d.dpi)),
        )

    def color(self, i: int):
        return "k" if self.black_and_white else COLORS[i % len(COLORS)]

    def marker(self, i: int) -> str:
        return MARKERS[i % len(MARKERS)]

    @property
    def figsize(self) -> tuple[float, float]:
        w, h = PAPER_SIZE_CM if self.a4_paper else SCREEN_SIZE_CM
        return w / CM_PER_INCH, h / CM_PER_INCH


@dataclass
class Curve:
    x: np.ndarray
    y: np.ndarray
    label: str
    style_index: int = 0
    line: bool = False          # draw a line instead of markers (fit curves)


def new_figure(style: PlotStyle, name: str, nrows: int = 1, ncols: int = 1):
    fig, axes = plt.subplots(nrows, ncols, figsize=style.figsize, squeeze=False)
    fig.patch.set_facecolor("white")
    if style.show_main_title:
        fig.suptitle(name, fontsize=style.font_size + 1, fontweight="bold")
    return fig, axes.ravel()


def plot_curves(ax, curves: list[Curve], style: PlotStyle) -> int:
    """Draw curves with the shared palette; returns the number of curves drawn."""
    drawn = 0
    for c in curves:
        x = np.asarray(c.x, float)
        y = np.asarray(c.y, float)
        if x.size == 0 or y.size == 0:
            continue
        color = style.color(c.style_index)
        if c.line:
            ax.plot(x, y, linestyle="-", linewidth=1, color=color, label=c.label)
        else:
            ax.plot(x, y, linestyle="none", marker=style.marker(c.style_index),
                    markersize=style.marker_size, markeredgewidth=1.2,
                    markerfacecolor="none", color=color, label=c.label)
        drawn += 1
    return drawn


def _ticks(lo: float, hi: float, step: float) -> np.ndarray:
    return np.arange(lo, hi + step / 2.0, step)


def decorate(ax, style: PlotStyle, *,
             xlabel: str,
             ylabel: str,
             title: str | None = None,
             xlim: tuple[float, float, float] | None = None,
             ylim: tuple[float, float, float] | None = None,
             xfmt: str | None = None,
             yfmt: str | None = None,
             legend_loc: str = "upper left",
             legend: bool = True) -> None:
    """
    Axis labels, grid, box, limits and legend in the house style.
    ``xlim``/``ylim`` are (lower, upper, tick step).
    """
    ax.set_xlabel(xlabel, fontsize=style.font_size, fontweight="bold")
    ax.set_ylabel(ylabel, fontsize=style.font_size, fontweight="bold")
    if title and style.show_titles:
        ax.set_title(title, fontsize=style.font_size, fontweight="bold")
    ax.grid(True, alpha=0.3)
    ax.tick_params(direction="in", labelsize=style.font_size - 2, width=1.5)
    for spine in ax.spines.values():
        spine.set_linewidth(1.5)

    if xlim is not None:
        ax.set_xlim(xlim[0], xlim[1])
        ax.set_xticks(_ticks(*xlim))
    if ylim is not None:
        ax.set_ylim(ylim[0], ylim[1])
        ax.set_yticks(_ticks(*ylim))
    if xfmt:
        ax.xaxis.set_major_formatter(FormatStrFormatter(xfmt))
    if yfmt:
        ax.yaxis.set_major_formatter(FormatStrFormatter(yfmt))

    if legend:
        handles, labels = ax.get_legend_handles_labels()
        if handles:
            ax.legend(handles, labels, loc=legend_loc, fontsize=style.legend_font_size, frameon=False)


def _sanitize(name: str) -> str:
    s = re.sub(r"[^A-Za-z0-9._-]+", "_", name).strip("_")
    return s[:120] if len(s) > 120 else s


def save_figure(fig, out_dir: Path, stem: str,
                formats: tuple[str, ...] = ("PDF", "PNG", "EPS"),
                dpi: int = 160) -> list[Path]:
    """
    Write ``fig`` once per format to ``<out_dir>/<FMT>/<stem>.<ext>`` and close it.
    """
    base = _sanitize(stem) or "plot"
    written: list[Path] = []
    try:
        fig.tight_layout(rect=[0, 0, 1, 0.95])
        for fmt in formats:
            key = str(fmt).upper()
            ext = FILE_FORMATS.get(key)
            if ext is None:
                print(f"[SKIP] unknown plot format '{fmt}' for {base}")
                continue
            fmt_dir = out_dir / key
            fmt_dir.mkdir(parents=True, exist_ok=True)
            out_path = fmt_dir / f"{base}.{ext}"
            fig.savefig(out_path, format=ext, dpi=dpi, facecolor="white")
            written.append(out_path)
    finally:
        plt.close(fig)
    print(f"[OK] {base}: {len(written)} file(s) → {out_dir}")
    return written
