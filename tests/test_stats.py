import numpy as np
import pandas as pd
import unittest

from towtank_resistance.core.model import AVERAGED_COLUMNS, BASE_COLUMNS
from towtank_resistance.core.stats import (
    channel_stats, stats_avg, stats_minmax, setpoint_means, MINMAX_COLUMNS,
)


def _runs(rows):
    """rows: list of dicts with a few base fields; the rest default to 1.0."""
    full = []
    for i, r in enumerate(rows, start=1):
        rec = {c: 1.0 for c in BASE_COLUMNS}
        rec.update({"run_no": float(i), "fs_hz": 200.0, "n_samples": 8000.0, "record_time_s": 40.0})
        rec.update(r)
        full.append(rec)
    return pd.DataFrame(full)


class ChannelStatsTests(unittest.TestCase):
    def test_known_values(self):
        st = channel_stats([1.0, 2.0, 3.0])
        self.assertEqual(1.0, st.min)
        self.assertEqual(3.0, st.max)
        self.assertAlmostEqual(2.0, st.mean)
        self.assertAlmostEqual(1.0 / 3.0, st.pct)
        self.assertAlmostEqual(np.sqrt(2.0 / 3.0), st.std)

    def test_single_observation_has_no_spread(self):
        st = channel_stats([4.2])
        self.assertEqual(0.0, st.pct)
        self.assertEqual(0.0, st.std)
        self.assertEqual(4.2, st.mean)

    def test_zero_max_gives_zero_pct(self):
        st = channel_stats([-1.0, 0.0])
        self.assertEqual(0.0, st.pct)

    def test_mean_within_bounds_and_pct_non_negative(self):
        rng = np.random.default_rng(3)
        for _ in range(20):
            v = rng.uniform(0.1, 10.0, size=int(rng.integers(1, 8)))
            st = channel_stats(v)
            self.assertLessEqual(st.min, st.mean + 1e-12)
            self.assertLessEqual(st.mean, st.max + 1e-12)
            self.assertGreaterEqual(st.pct, 0.0)

    def test_std_shift_invariant_and_scales(self):
        v = np.array([1.0, 2.5, 4.0, 7.0])
        base = channel_stats(v).std
        self.assertAlmostEqual(base, channel_stats(v + 100.0).std)
        self.assertAlmostEqual(3.0 * base, channel_stats(3.0 * v).std)

    def test_nan_ignored_and_empty_rejected(self):
        self.assertEqual(2.0, channel_stats([2.0, np.nan]).mean)
        with self.assertRaises(ValueError):
            channel_stats([np.nan])


class StatsAvgTests(unittest.TestCase):
    def test_one_row_per_setpoint_in_order(self):
        runs = _runs([
            {"froude": 0.30, "speed": 2.0, "drag": 100.0},
            {"froude": 0.20, "speed": 1.0, "drag": 50.0},
            {"froude": 0.301, "speed": 4.0, "drag": 300.0},
        ])
        out = stats_avg(runs)
        self.assertEqual(list(AVERAGED_COLUMNS), list(out.columns))
        self.assertEqual(2, len(out))
        self.assertEqual([1, 2], out["n_repeats"].tolist())
        self.assertLess(out["froude"].iloc[0], out["froude"].iloc[1])

        row = out.iloc[1]
        self.assertAlmostEqual(3.0, row["speed"])
        self.assertAlmostEqual(2.0, row["speed_min"])
        self.assertAlmostEqual(4.0, row["speed_max"])
        self.assertAlmostEqual(3.0, row["speed_avg"])
        self.assertAlmostEqual(0.25, row["speed_pct"])
        self.assertAlmostEqual(1.0, row["speed_std"])
        self.assertAlmostEqual(200.0, row["drag_avg"])

    def test_bookkeeping_columns_zeroed(self):
        out = stats_avg(_runs([{"froude": 0.25}, {"froude": 0.25}]))
        for c in ("run_no", "fs_hz", "n_samples", "record_time_s"):
            self.assertEqual(0.0, out[c].iloc[0])

    def test_mean_std_from_per_run_std_columns(self):
        runs = _runs([{"froude": 0.3}, {"froude": 0.3}])
        runs["drag_std"] = [0.2, 0.4]
        out = stats_avg(runs)
        self.assertAlmostEqual(0.3, out["drag_mean_std"].iloc[0])
        self.assertTrue(np.isnan(out["speed_mean_std"].iloc[0]))

    def test_run_number_selection(self):
        runs = _runs([{"froude": 0.3, "speed": 1.0}, {"froude": 0.3, "speed": 5.0}])
        out = stats_avg(runs, run_numbers=[1])
        self.assertEqual(1, out["n_repeats"].iloc[0])
        self.assertAlmostEqual(1.0, out["speed"].iloc[0])

    def test_empty_input(self):
        out = stats_avg(_runs([]))
        self.assertTrue(out.empty)
        self.assertEqual(list(AVERAGED_COLUMNS), list(out.columns))


class MinMaxTests(unittest.TestCase):
    def test_heave_trim_extremes(self):
        runs = _runs([
            {"froude": 0.3, "heave": -2.0, "trim": 0.1, "crm": 0.002, "condition": 7.0},
            {"froude": 0.3, "heave": -4.0, "trim": 0.3, "crm": 0.004, "condition": 7.0},
        ])
        out = stats_minmax(runs)
        self.assertEqual(list(MINMAX_COLUMNS), list(out.columns))
        row = out.iloc[0]
        self.assertEqual(-4.0, row["heave_min"])
        self.assertEqual(-2.0, row["heave_max"])
        self.assertAlmostEqual(-3.0, row["heave_mid"])
        self.assertAlmostEqual(3.0, row["crm_x1000"])
        self.assertAlmostEqual(0.2, row["trim_mid"])

    def test_setpoint_means(self):
        runs = _runs([{"froude": 0.2, "rtm": 10.0}, {"froude": 0.2, "rtm": 12.0}, {"froude": 0.4, "rtm": 30.0}])
        out = setpoint_means(runs, ["rtm", "rtm_with_ts"])
        self.assertEqual(["froude", "rtm"], list(out.columns))
        self.assertEqual([11.0, 30.0], out["rtm"].tolist())


if __name__ == "__main__":
    unittest.main()
