# towtank_resistance/main.py
from __future__ import annotations
from pathlib import Path
import logging
import sys
import yaml

from .loaders import dat_loader
from .core.pipeline import run_pipeline

here = Path(__file__).resolve().parent


def load_config(cfg_path: Path) -> dict:
    with cfg_path.open("r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def _missing_table_banner() -> None:
    print("!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!")
    print("WARNING: Required resistance data file does not exist!")
    print("!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!")


def main(cfg_path: str | Path | None = None):
    # ---------- config ----------
    if cfg_path is None and len(sys.argv) > 1:
        cfg_path = sys.argv[1]
    cfg = load_config(Path(cfg_path) if cfg_path else here / "config.yaml")

    in_path = Path((cfg.get("input") or {}).get("path", dat_loader.DEFAULT_FILE_NAME)).resolve()
    out_root = Path((cfg.get("output") or {}).get("root", ".")).resolve()
    out_root.mkdir(parents=True, exist_ok=True)

    verbose = bool((cfg.get("logging") or {}).get("verbose", True))
    logging.basicConfig(level=logging.INFO if verbose else logging.WARNING,
                        format="%(levelname)s %(name)s: %(message)s")
    if verbose:
        print(f"[cfg] input={in_path}")
        print(f"[cfg] output={out_root}")

    # ---------- load ----------
    if verbose:
        print(f"  [load] dat    {in_path.name}")
    try:
        table = dat_loader.load(in_path)
    except ValueError as e:
        print(f"[WARN] loader failed for {in_path.name}: {e}")
        table = None

    if table is None:
        _missing_table_banner()
        sys.exit(0)

    if verbose:
        print(f"[load] {table.n_runs} run(s), {table.df.shape[1]} column(s), "
              f"{table.dropped_zero_rows} all-zero row(s) dropped")

    # ---------- pipeline ----------
    result = run_pipeline(table, cfg, out_root)

    if verbose:
        n_files = sum(len(v) for v in result.written.values())
        print(f"[summary] {len(result.conditions)} condition(s), {len(result.written)} scene(s), {n_files} plot file(s)")


if __name__ == "__main__":
    main()
