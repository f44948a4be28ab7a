import math
import os
import shutil
import sys
import tempfile
import unittest
from datetime import datetime, timezone

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt
import numpy as np
import pandas as pd

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from hrvreport.export_system import ReportExporter
from hrvreport.notifications import CollectingNotifier
from hrvreport.report_builder import ReportBuilder
from hrvreport.storage.memory_store import MemoryRecordStore

NOW = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


class TestReportExporter(unittest.IsolatedAsyncioTestCase):

    async def asyncSetUp(self):
        plt.close("all")
        self.temp_dir = tempfile.mkdtemp()
        store = MemoryRecordStore({"memberData": [{"id": 1, "name": "Ann"}]})
        self.builder = ReportBuilder(store, CollectingNotifier())
        await self.builder.restore()

        np.random.seed(0)
        rr = np.random.normal(900, 40, 120).round(1)
        await self.builder.load_text("\n".join(str(v) for v in rr), now=NOW)
        self.exporter = ReportExporter(self.builder)

    async def asyncTearDown(self):
        self.builder.close()
        plt.close("all")
        shutil.rmtree(self.temp_dir)

    def path(self, name):
        return os.path.join(self.temp_dir, name)

    async def test_empty_report_pdf(self):
        sheets = await self.exporter.export_pdf(self.path("empty.pdf"))
        self.assertEqual(sheets, 1)
        self.assertGreater(os.path.getsize(self.path("empty.pdf")), 0)

    async def test_pdf_one_sheet_per_instance(self):
        await self.builder.add_analysis("poincare")
        await self.builder.add_analysis("general_summary")
        await self.builder.set_render_mode("general_summary-2", "table")
        await self.builder.add_page()
        await self.builder.add_analysis("histogram")
        await self.builder.set_render_mode("histogram-3", "text")

        sheets = await self.exporter.export_pdf(self.path("report.pdf"))

        self.assertEqual(sheets, 3)
        with open(self.path("report.pdf"), "rb") as f:
            self.assertTrue(f.read(5).startswith(b"%PDF"))

    async def test_pdf_keeps_registry_figures_open(self):
        await self.builder.add_analysis("poincare")
        await self.exporter.export_pdf(self.path("report.pdf"))

        figure = self.builder.charts.get("poincare-1")
        self.assertIsNotNone(figure)
        self.assertEqual(plt.get_fignums(), [figure.number])

    async def test_pdf_includes_no_data_pages(self):
        await self.builder.add_analysis("all_financials_report")
        sheets = await self.exporter.export_pdf(self.path("report.pdf"))
        self.assertEqual(sheets, 1)

    async def test_landscape_page_size(self):
        await self.builder.set_orientation("landscape")
        self.assertEqual(self.exporter.page_size, (11, 8.5))

    async def test_intervals_csv(self):
        await self.builder.toggle_exclusion(0)
        rows = self.exporter.export_intervals_csv(self.path("intervals.csv"))

        frame = pd.read_csv(self.path("intervals.csv"))
        self.assertEqual(rows, 119)
        self.assertEqual(list(frame.columns), ["original_index", "timestamp", "rr_ms", "hr_bpm"])
        self.assertEqual(frame["original_index"].iloc[0], 1)
        self.assertAlmostEqual(frame["hr_bpm"].iloc[0], 60000.0 / frame["rr_ms"].iloc[0], places=2)

    async def test_collect_metrics(self):
        metrics = self.exporter.collect_metrics()
        self.assertEqual(metrics["n_loaded"], 120)
        self.assertEqual(metrics["time_count"], 120)
        self.assertIn("poincare_sd1", metrics)
        # 120 beats of ~0.9s is above the spectral minimum
        self.assertIsNotNone(metrics["freq_total_power"])

    async def test_collect_metrics_short_recording(self):
        await self.builder.load_text("800\n810\n790", now=NOW)
        metrics = self.exporter.collect_metrics()
        self.assertIsNone(metrics["freq_lf_power"])
        self.assertFalse(math.isnan(metrics["poincare_sd1"]))

    async def test_metrics_csv(self):
        self.exporter.export_metrics_csv(self.path("metrics.csv"))
        frame = pd.read_csv(self.path("metrics.csv"))
        self.assertEqual(len(frame), 1)
        self.assertIn("time_rmssd", frame.columns)


if __name__ == "__main__":
    unittest.main()
