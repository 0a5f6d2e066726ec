# towtank_resistance/core/conditions.py
from __future__ import annotations
from dataclasses import dataclass, replace
import logging

_LOG = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConditionInfo:
    code: int
    label: str                          # legend entry, e.g. "Cond. 7: 1,500t (level)"
    title: str                          # subplot title
    campaign: str                       # TSI | TTI | RT | FF
    runs: tuple[int, int] | None        # inclusive run number range
    displacement_kg: float | None       # model displacement


# ----- defaults (used if configure_from_config isn't called) -----
_DEFAULTS: dict[int, ConditionInfo] = {
    1:  ConditionInfo(1,  "Cond. 1: 1,500t (Barehull)",          "Condition 1: 1,500 tonnes, bare hull",        "TSI", (1, 15),    74.47),
    2:  ConditionInfo(2,  "Cond. 2: 1,500t (1st row)",           "Condition 2: 1,500 tonnes, 1st row",          "TSI", (16, 25),   74.47),
    3:  ConditionInfo(3,  "Cond. 3: 1,500t (1st and 2nd row)",   "Condition 3: 1,500 tonnes, 1st and 2nd row",  "TSI", (26, 35),   74.47),
    4:  ConditionInfo(4,  "Cond. 4: 1,500t (Trim tab 5 deg)",    "Condition 4: 1,500 tonnes, trim tab 5 deg",   "TTI", (36, 44),   74.47),
    5:  ConditionInfo(5,  "Cond. 5: 1,500t (Trim tab 0 deg)",    "Condition 5: 1,500 tonnes, trim tab 0 deg",   "TTI", (45, 53),   74.47),
    6:  ConditionInfo(6,  "Cond. 6: 1,500t (Trim tab 10 deg)",   "Condition 6: 1,500 tonnes, trim tab 10 deg",  "TTI", (54, 62),   74.47),
    7:  ConditionInfo(7,  "Cond. 7: 1,500t (level)",             "Condition 7: 1,500 tonnes, level",            "RT",  (63, 141),  74.47),
    8:  ConditionInfo(8,  "Cond. 8: 1,500t (-0.5 deg by bow)",   "Condition 8: 1,500 tonnes, -0.5 deg by bow",  "RT",  (142, 156), 74.47),
    9:  ConditionInfo(9,  "Cond. 9: 1,500t (0.5 deg by stern)",  "Condition 9: 1,500 tonnes, 0.5 deg by stern", "RT",  (157, 171), 74.47),
    10: ConditionInfo(10, "Cond. 10: 1,804t (level)",            "Condition 10: 1,804 tonnes, level",           "RT",  (172, 201), 89.18),
    11: ConditionInfo(11, "Cond. 11: 1,804t (-0.5 deg by bow)",  "Condition 11: 1,804 tonnes, -0.5 deg by bow", "RT",  (202, 216), 89.18),
    12: ConditionInfo(12, "Cond. 12: 1,804t (0.5 deg by stern)", "Condition 12: 1,804 tonnes, 0.5 deg by stern", "RT", (217, 231), 89.18),
    13: ConditionInfo(13, "Cond. 13: 1,500t (deep transom)",     "Condition 13: 1,500 tonnes, deep transom",    "FF",  (232, 249), 74.47),
}

_CONDITIONS: dict[int, ConditionInfo] = dict(_DEFAULTS)

CONDITION_CODES: tuple[int, ...] = tuple(range(1, 14))
TURB_STIM_CONDITIONS: tuple[int, ...] = (1, 2, 3)
TRIM_TAB_CONDITIONS: tuple[int, ...] = (4, 5, 6)
RESISTANCE_CONDITIONS: tuple[int, ...] = (7, 8, 9, 10, 11, 12)
PROHASKA_CONDITION: int = 13


def configure_from_config(cfg: dict) -> None:
    """
    Optional: call once at startup to override condition metadata from config.yaml.

    ``conditions`` maps a condition code to any of ``label``, ``title``,
    ``campaign``, ``runs`` ([start, end]) and ``displacement_kg``.
    """
    global _CONDITIONS

    # reset to defaults each call so repeated invocations do not accumulate
    _CONDITIONS = dict(_DEFAULTS)
    overrides = (cfg or {}).get("conditions", {}) if cfg else {}
    if not isinstance(overrides, dict):
        return

    for key, values in overrides.items():
        try:
            code = int(key)
        except (TypeError, ValueError):
            _LOG.debug("ignoring condition override with non-integer key %r", key)
            continue
        if not isinstance(values, dict):
            continue
        base = _CONDITIONS.get(code) or ConditionInfo(code, f"Cond. {code}", f"Condition {code}", "", None, None)
        changes = {}
        for name in ("label", "title", "campaign"):
            if name in values:
                changes[name] = str(values[name])
        if "runs" in values:
            runs = values["runs"]
            changes["runs"] = (int(runs[0]), int(runs[1])) if runs else None
        if "displacement_kg" in values:
            disp = values["displacement_kg"]
            changes["displacement_kg"] = float(disp) if disp is not None else None
        _CONDITIONS[code] = replace(base, **changes)


def condition_info(code: int) -> ConditionInfo:
    info = _CONDITIONS.get(int(code))
    if info is None:
        return ConditionInfo(int(code), f"Cond. {code}", f"Condition {code}", "", None, None)
    return info


def label_for(code: int) -> str:
    return condition_info(code).label


def title_for(code: int) -> str:
    return condition_info(code).title


def run_range_for(code: int) -> range | None:
    runs = condition_info(code).runs
    if runs is None:
        return None
    return range(runs[0], runs[1] + 1)


def known_codes() -> list[int]:
    return sorted(_CONDITIONS)
