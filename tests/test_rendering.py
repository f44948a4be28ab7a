import unittest
import sys
import os
from datetime import datetime, timezone

import numpy as np
import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from hrvreport.data_handler import Interval
from hrvreport.metrics.distributions import bin_labels, histogram
from hrvreport.rendering import plots, tables, texts
from hrvreport.rendering.charts import ChartRegistry


class TestHistogram(unittest.TestCase):

    def test_sqrt_rule_bin_count(self):
        values = np.linspace(600, 1000, 50)
        result = histogram(values)
        # ceil(sqrt(50)) = 8
        self.assertEqual(result.n_bins, 8)
        self.assertEqual(result.total, 50)
        self.assertAlmostEqual(result.edges[0], 600)
        self.assertAlmostEqual(result.edges[-1], 1000)

    def test_max_value_is_counted(self):
        result = histogram([1.0, 2.0, 3.0, 4.0])
        self.assertEqual(result.total, 4)
        # Two bins split at 2.5; 4.0 sits on the closed upper edge
        self.assertEqual(list(result.counts), [2, 2])

    def test_max_value_alone_in_last_bin(self):
        result = histogram([1.0, 1.5, 2.0, 10.0])
        self.assertEqual(list(result.counts), [3, 1])

    def test_identical_values_single_bin(self):
        result = histogram([800.0] * 7)
        self.assertEqual(result.n_bins, 1)
        self.assertEqual(list(result.counts), [7])
        self.assertEqual(result.labels, ["800.0 - 800.0"])

    def test_empty_sample(self):
        result = histogram([])
        self.assertEqual(result.n_bins, 0)
        self.assertEqual(result.labels, [])

    def test_non_finite_dropped(self):
        self.assertEqual(histogram([800.0, np.nan, 810.0, np.inf]).total, 2)

    def test_named_numpy_rule(self):
        values = np.random.default_rng(1).normal(800, 40, 200)
        self.assertEqual(histogram(values, rule="sturges").total, 200)

    def test_bin_labels(self):
        self.assertEqual(bin_labels(np.array([1.0, 1.5, 2.0]), 2), ["1.00 - 1.50", "1.50 - 2.00"])


class TestTables(unittest.TestCase):

    def setUp(self):
        self.values = [800.0, 820.0, 790.0, 810.0]
        self.intervals = tuple(
            Interval(v, datetime(2024, 5, 1, 12, 0, i, tzinfo=timezone.utc), i)
            for i, v in enumerate(self.values)
        )

    def test_poincare_table(self):
        frame = tables.poincare_table(self.values)
        self.assertEqual(list(frame.columns), ["RRn (ms)", "RRn+1 (ms)"])
        self.assertEqual(len(frame), 3)
        self.assertEqual(frame.iloc[0].tolist(), [800.0, 820.0])

    def test_histogram_table(self):
        frame = tables.histogram_table(self.values, "RR Interval (ms)")
        self.assertEqual(list(frame.columns), ["RR Interval (ms) Bin", "Count"])
        self.assertEqual(frame["Count"].sum(), 4)

    def test_time_series_table(self):
        frame = tables.time_series_table(
            self.values, [i.timestamp for i in self.intervals], "RR Interval (ms)"
        )
        self.assertEqual(list(frame.columns), ["Index", "Timestamp", "RR Interval (ms)"])
        self.assertEqual(frame["Index"].tolist(), [1, 2, 3, 4])
        self.assertTrue(frame["Timestamp"].iloc[0].startswith("2024-05-01T12:00:00"))

    def test_successive_diff_table(self):
        frame = tables.successive_diff_table(self.values)
        self.assertEqual(list(frame.columns), ["Difference (ms) Bin", "Count"])
        self.assertEqual(frame["Count"].sum(), 3)

    def test_summary_table(self):
        frame = tables.summary_table({"count": 4, "mean_rr": 805.0})
        self.assertEqual(list(frame.columns), ["Metric", "Value"])
        rows = dict(zip(frame["Metric"], frame["Value"]))
        self.assertEqual(rows["Count"], "4")
        self.assertEqual(rows["Mean RR"], "805.00 ms")
        self.assertEqual(rows["SDNN"], "N/A")

    def test_summary_table_without_metrics(self):
        frame = tables.summary_table(None)
        self.assertTrue(all(v == "N/A" for v in frame["Value"]))

    def test_raw_table_keeps_original_indices(self):
        frame = tables.raw_table(self.intervals[1:])
        self.assertEqual(list(frame.columns), ["Original Index", "Timestamp", "RR (ms)"])
        self.assertEqual(frame["Original Index"].tolist(), [1, 2, 3])

    def test_record_table_formatting(self):
        records = [
            {"id": 1, "email": "a@b.c", "weight": 70.456, "age": None, "active": True},
        ]
        frame = tables.record_table(records, [("id", "ID"), ("weight", "W"), ("age", "Age"), ("active", "Active")])
        self.assertEqual(frame.iloc[0].tolist(), ["1", "70.46", "--", "Yes"])

    def test_record_table_default_headers(self):
        frame = tables.record_table([{"firstName": "Ann", "joinDate": "2024-01-02T03:04:00Z"}])
        self.assertEqual(list(frame.columns), ["First Name", "Join Date"])
        self.assertEqual(frame.iloc[0]["Join Date"], "2024-01-02 03:04")

    def test_record_table_empty(self):
        frame = tables.record_table([], tables.MEMBER_COLUMNS)
        self.assertTrue(frame.empty)
        self.assertEqual(list(frame.columns), [h for _, h in tables.MEMBER_COLUMNS])

    def test_most_recent(self):
        records = [
            {"id": 1, "date": "2024-01-01"},
            {"id": 2, "date": None},
            {"id": 3, "date": "2024-03-01"},
            {"id": 4, "date": "2024-02-01"},
        ]
        self.assertEqual([r["id"] for r in tables.most_recent(records, "date", 3)], [3, 4, 1])
        self.assertEqual([r["id"] for r in tables.most_recent(records, "date", 10)], [3, 4, 1, 2])

    def test_join_nutrition_programs(self):
        joined = tables.join_nutrition_programs(
            [{"programId": 5, "assignedDate": "2024-01-01", "status": "active"}, {"programId": 9}],
            [{"id": 5, "name": "Lean"}],
        )
        self.assertEqual(joined[0]["programName"], "Lean")
        self.assertEqual(joined[1]["programName"], "N/A")


class TestTexts(unittest.TestCase):

    def test_interval_texts_mention_subject(self):
        self.assertIn("Poincaré", texts.poincare_text())
        self.assertIn("Heart Rate", texts.histogram_text("Heart Rate"))
        self.assertIn("RR Interval", texts.time_series_text("RR Interval"))

    def test_unknown_interpretation_uses_default(self):
        self.assertIn("General Interpretation", texts.interpretation_text("not_a_key"))

    def test_known_interpretation(self):
        self.assertIn("All Members Report", texts.interpretation_text("all_members_text"))


class TestPlots(unittest.TestCase):

    def tearDown(self):
        plt.close("all")

    def test_figures_are_created(self):
        values = [800.0, 820.0, 790.0, 810.0, 805.0]
        for fig in (
            plots.poincare_figure(values),
            plots.histogram_figure(values, "RR", "RR Histogram"),
            plots.time_series_figure(values, [None] * 5, "RR", "RR Series"),
        ):
            self.assertIsInstance(fig, plt.Figure)

    def test_histogram_figure_single_value(self):
        fig = plots.histogram_figure([800.0], "RR", "RR Histogram")
        self.assertEqual(len(fig.axes[0].patches), 1)

    def test_table_figure_truncates(self):
        frame = tables.poincare_table(np.linspace(600, 900, 60))
        fig = plots.table_figure(frame, "Pairs", max_rows=10)
        texts_drawn = [t.get_text() for t in fig.axes[0].texts]
        self.assertIn("Showing 10 of 59 rows", texts_drawn)

    def test_table_figure_empty(self):
        fig = plots.table_figure(tables.record_table([]), "Empty")
        self.assertIn("No data to display in this table.", [t.get_text() for t in fig.axes[0].texts])


class TestChartRegistry(unittest.TestCase):

    def setUp(self):
        plt.close("all")
        self.charts = ChartRegistry()

    def tearDown(self):
        plt.close("all")

    def test_register_replaces_and_closes_previous(self):
        first, _ = plt.subplots()
        second, _ = plt.subplots()
        self.charts.register("poincare-1", first)
        self.charts.register("poincare-1", second)

        self.assertEqual(len(self.charts), 1)
        self.assertIs(self.charts.get("poincare-1"), second)
        self.assertNotIn(first.number, plt.get_fignums())

    def test_release(self):
        fig, _ = plt.subplots()
        self.charts.register("histogram-2", fig)

        self.assertTrue(self.charts.release("histogram-2"))
        self.assertFalse(self.charts.release("histogram-2"))
        self.assertNotIn("histogram-2", self.charts)
        self.assertEqual(plt.get_fignums(), [])

    def test_release_all(self):
        for i in range(3):
            fig, _ = plt.subplots()
            self.charts.register(f"chart-{i}", fig)
        self.assertEqual(sorted(self.charts), ["chart-0", "chart-1", "chart-2"])
        self.assertEqual(self.charts.release_all(), 3)
        self.assertEqual(len(self.charts), 0)
        self.assertEqual(plt.get_fignums(), [])


if __name__ == "__main__":
    unittest.main()
