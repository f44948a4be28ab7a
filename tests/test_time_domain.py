import unittest
import numpy as np
import sys
import os

# Add project root to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from hrvreport.metrics.time_domain import (
    HRVTimeDomainAnalysis,
    METRIC_LABELS,
    calculate_metrics,
    heart_rate_bpm,
    successive_differences,
)


class TestHRVTimeDomainAnalysis(unittest.TestCase):

    def setUp(self):
        """Small hand-checked sequence plus a longer synthetic recording"""
        self.rr = [800.0, 820.0, 790.0, 810.0]

        np.random.seed(42)
        self.long_rr = np.random.normal(loc=1000, scale=50, size=300).tolist()

    def test_basic_statistics(self):
        analysis = HRVTimeDomainAnalysis(self.rr)

        self.assertAlmostEqual(analysis.mean_rr(), 805.0)
        self.assertAlmostEqual(analysis.median_rr(), 805.0)
        self.assertAlmostEqual(analysis.sdnn(), np.sqrt(500.0 / 3), places=6)
        self.assertAlmostEqual(analysis.rmssd(), np.sqrt(1700.0 / 3), places=6)
        self.assertAlmostEqual(analysis.mean_hr(), 60000.0 / 805.0, places=6)

    def test_nn50_counts_absolute_differences(self):
        analysis = HRVTimeDomainAnalysis([800, 900, 840, 845, 780])
        # |100|, |-60|, |5|, |-65|
        self.assertEqual(analysis.nn50(), 3)
        self.assertAlmostEqual(analysis.pnn50(), 75.0)

    def test_sdsd_matches_numpy(self):
        analysis = HRVTimeDomainAnalysis(self.long_rr)
        expected = np.std(np.diff(self.long_rr), ddof=1)
        self.assertAlmostEqual(analysis.sdsd(), expected, places=8)

    def test_sdsd_single_difference(self):
        self.assertEqual(HRVTimeDomainAnalysis([800, 810]).sdsd(), 0.0)

    def test_summary_keys(self):
        summary = HRVTimeDomainAnalysis(self.long_rr).summary()
        self.assertEqual(set(summary), set(METRIC_LABELS))
        self.assertEqual(summary["count"], 300)
        self.assertLessEqual(summary["min_rr"], summary["mean_rr"])
        self.assertGreaterEqual(summary["max_rr"], summary["mean_rr"])

    def test_minimum_intervals(self):
        with self.assertRaises(ValueError):
            HRVTimeDomainAnalysis([800])
        with self.assertRaises(ValueError):
            HRVTimeDomainAnalysis([])

    def test_calculate_metrics_insufficient_data(self):
        self.assertIsNone(calculate_metrics([]))
        self.assertIsNone(calculate_metrics([800]))
        self.assertIsNotNone(calculate_metrics([800, 810]))


class TestDerivedSeries(unittest.TestCase):

    def test_heart_rate(self):
        np.testing.assert_allclose(heart_rate_bpm([1000, 750, 600]), [60.0, 80.0, 100.0])

    def test_successive_differences_are_signed(self):
        np.testing.assert_allclose(
            successive_differences([800, 820, 790, 810]), [20.0, -30.0, 20.0]
        )

    def test_successive_differences_short_input(self):
        self.assertEqual(successive_differences([800]).size, 0)
        self.assertEqual(successive_differences([]).size, 0)

    def test_successive_differences_length(self):
        """n intervals give n-1 differences"""
        for n in range(2, 12):
            self.assertEqual(successive_differences(np.full(n, 800.0)).size, n - 1)


if __name__ == "__main__":
    unittest.main()
