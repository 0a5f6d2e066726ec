import numpy as np
import pandas as pd
from pathlib import Path
import tempfile
import unittest

from towtank_resistance.core.model import AVERAGED_COLUMNS, RunTable
from towtank_resistance.core.pipeline import run_pipeline, PLOT_SUBDIR
from towtank_resistance.core.scenes import all_scenes
from towtank_resistance.loaders.dat_loader import load

from helpers import write_dat, FROUDES


def _only(*keys):
    return {s.key: (s.key in keys) for s in all_scenes()}


class SceneRegistryTests(unittest.TestCase):
    def test_numbers_and_keys_unique(self):
        scenes = all_scenes()
        self.assertEqual(list(range(1, 15)), [s.number for s in scenes])
        self.assertEqual(len(scenes), len({s.key for s in scenes}))
        self.assertTrue(all(s.stem.startswith(f"Plot_{s.number}_") for s in scenes))


class PipelineTests(unittest.TestCase):
    def test_all_formats_written_for_enabled_scene(self):
        cfg = {
            "plots": {"enable": _only("resistance_averaged"), "formats": ["PDF", "PNG", "EPS"]},
            "reports": {"format": "csv"},
            "logging": {"verbose": False},
        }
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            write_dat(root / "full_resistance_data.dat", codes=[7, 10])
            table = load(root / "full_resistance_data.dat")
            result = run_pipeline(table, cfg, root / "out")

            plot_dir = root / "out" / PLOT_SUBDIR
            stem = "Plot_4_Summary_Resistance_Data_Averaged_Plot"
            for fmt, ext in (("PDF", "pdf"), ("PNG", "png"), ("EPS", "eps")):
                self.assertTrue((plot_dir / fmt / f"{stem}.{ext}").exists(), f"{fmt} plot missing")
            self.assertEqual(["resistance_averaged"], list(result.written))

            dat = root / "out" / "resultsAveragedArray.dat"
            self.assertTrue(dat.exists())
            self.assertTrue((root / "out" / "resultsAveragedArray.txt").exists())
            arr = pd.read_csv(dat, header=None)
            self.assertEqual(2 * len(FROUDES), len(arr))
            self.assertEqual(len(AVERAGED_COLUMNS), arr.shape[1])
            # last column is the repeat count
            self.assertTrue((arr.iloc[:, -1] == 2).all())

    def test_full_run_renders_every_scene(self):
        cfg = {
            "plots": {"formats": ["PNG"], "style": {"black_and_white": False, "a4_paper": False}},
            "reports": {"format": "both"},
            "logging": {"verbose": False},
        }
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            write_dat(root / "full_resistance_data.dat")
            table = load(root / "full_resistance_data.dat")
            result = run_pipeline(table, cfg, root / "out")

            self.assertEqual(list(range(1, 14)), list(result.conditions))
            self.assertEqual({s.key for s in all_scenes()}, set(result.written))
            pngs = list((root / "out" / PLOT_SUBDIR / "PNG").glob("Plot_*_Plot.png"))
            self.assertEqual(len(all_scenes()), len(pngs))

            self.assertTrue((root / "out" / "resultsAveragedArray.mat").exists())
            fits = pd.read_csv(root / "out" / "prohaska_fits.csv")
            self.assertEqual(["ITTC 1957", "Grigson"], fits["friction_line"].tolist())
            self.assertTrue(np.all(fits["r_squared"] <= 1.0 + 1e-9))

    def test_missing_conditions_skip_scenes(self):
        cfg = {"plots": {"formats": ["PNG"]}, "logging": {"verbose": False}}
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            write_dat(root / "full_resistance_data.dat", codes=[13])
            table = load(root / "full_resistance_data.dat")
            result = run_pipeline(table, cfg, root / "out")

            self.assertIn("prohaska", result.written)
            self.assertNotIn("turb_stim", result.written)
            self.assertNotIn("resistance_averaged", result.written)
            self.assertEqual({"ittc", "grigson"}, set(result.fits))

    def test_prohaska_fit_warning_logged_once(self):
        cfg = {"plots": {"enable": _only("prohaska"), "formats": ["PNG"]}, "logging": {"verbose": False}}
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            write_dat(root / "full_resistance_data.dat", codes=[13])
            table = load(root / "full_resistance_data.dat")
            table = RunTable(df=table.df.drop(columns=["cfm_grigson"]), source_path=table.source_path)
            with self.assertLogs("towtank_resistance.core.prohaska", level="WARNING") as logs:
                result = run_pipeline(table, cfg, root / "out")

        self.assertEqual(["ittc"], list(result.fits))
        self.assertIn("prohaska", result.written)
        self.assertEqual(1, sum("Grigson" in m for m in logs.output))

    def test_run_range_selection(self):
        cfg = {
            "plots": {"enable": _only()},
            "analysis": {"select_by_run_range": True},
            "conditions": {7: {"runs": [1, 3]}},
            "logging": {"verbose": False},
        }
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            write_dat(root / "full_resistance_data.dat", codes=[7])
            table = load(root / "full_resistance_data.dat")
            result = run_pipeline(table, cfg, root / "out")

        avg = result.averaged[7]
        # runs 1..3 cover two repeats of the first setpoint and one of the second
        self.assertEqual([2, 1], avg["n_repeats"].tolist())


if __name__ == "__main__":
    unittest.main()
