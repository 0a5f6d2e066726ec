from pathlib import Path
import numpy as np

from towtank_resistance.core.model import RUN_COLUMNS, CHANNELS

FROUDES = (0.20, 0.30, 0.40)


def make_run(run_no: int, condition: int, froude: float, jitter: float = 0.0) -> dict:
    """One physically plausible run record keyed by column name."""
    speed = froude * np.sqrt(9.806 * 4.5) * (1.0 + jitter)
    cfm = 0.075 / (np.log10(speed * 4.5 / 1.0e-6) - 2.0) ** 2
    ctm = cfm * (1.2 + 40.0 * froude ** 4 / cfm * 0.01) * (1.0 + jitter)
    rtm = 0.5 * 1000.0 * 1.3 * speed ** 2 * ctm
    rec = {c: 0.0 for c in RUN_COLUMNS}
    rec.update({
        "run_no": float(run_no), "fs_hz": 800.0, "n_samples": 32000.0, "record_time_s": 40.0,
        "speed": speed, "fwd_lvdt": -2.0 - 10 * froude, "aft_lvdt": -1.0 - 12 * froude,
        "drag": rtm * 1000.0 / 9.806, "rtm": rtm, "ctm": ctm, "froude": froude,
        "heave": -5.0 * froude + jitter, "trim": 0.2 + froude, "fs_speed_ms": speed * 4.85,
        "fs_speed_kts": speed * 4.85 * 1.944, "rem": speed * 4.5 / 1.0e-6,
        "cfm_ittc": cfm, "cfm_grigson": cfm * 0.98, "crm": ctm - 1.2 * cfm,
        "pem": rtm * speed, "pbm": rtm * speed / 0.5, "res": speed * 4.85 * 101.0 / 1.0e-6,
        "cfs_ittc": 0.0016, "cts": ctm * 0.8, "rts": rtm * 1.0e5, "pes": rtm * 1.0e5 * speed * 4.85,
        "pbs": rtm * 1.0e5 * speed * 4.85 / 0.5, "condition": float(condition),
        "cfs_grigson": 0.0015, "delta_cfs": 0.0004, "ca": 0.0002, "caas": 0.00007,
        "rtm_with_ts": rtm * 1.03,
    })
    for ch in CHANNELS:
        v = rec[ch]
        rec[f"{ch}_min"] = v * 0.98
        rec[f"{ch}_max"] = v * 1.02
        rec[f"{ch}_avg"] = v
        rec[f"{ch}_pct"] = 0.02
        rec[f"{ch}_std"] = abs(v) * 0.01
        rec[f"{ch}_var"] = (abs(v) * 0.01) ** 2
    return rec


def write_dat(path: Path, codes=range(1, 14), repeats: int = 2, zero_rows: int = 2) -> int:
    """Write a full_resistance_data.dat style file; returns the number of non-zero rows."""
    lines = []
    run_no = 1
    for code in codes:
        for fr in FROUDES:
            for k in range(repeats):
                rec = make_run(run_no, code, fr, jitter=0.01 * k)
                lines.append(",".join(repr(float(rec[c])) for c in RUN_COLUMNS))
                run_no += 1
    n = len(lines)
    zero = ",".join("0" for _ in RUN_COLUMNS)
    for i in range(zero_rows):
        lines.insert(min(i * 3, len(lines)), zero)
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return n
