import os
import sys
import unittest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from hrvreport.errors import LoadError, LoadErrorReason
from hrvreport.session_loader import HistoricalSessionLoader, SessionSummary
from hrvreport.storage.memory_store import MemoryRecordStore


def make_store():
    return MemoryRecordStore(
        {
            "restSessionsFree": [
                {"id": 1, "date": "2024-03-01T08:00:00Z", "duration": 5, "rawRrData": [800, 810, 790]},
                {"id": 2, "date": "not a date", "duration": 3, "rawRrData": [900]},
                {"id": 3, "date": "2024-01-15T08:00:00Z", "duration": 2, "rawRrData": []},
            ],
            "restSessionsAdvanced": [
                {
                    "id": 7,
                    "date": "2024-04-10T07:30:00Z",
                    "duration": 10.4,
                    "filteredRrData": [1000, 990],
                    "timestamps": ["2024-04-10T07:30:00Z", "2024-04-10T07:30:01Z"],
                },
                {"id": 8, "date": "2024-02-01", "rawRrData": "800,810"},
            ],
        }
    )


class TestHistoricalSessionLoader(unittest.IsolatedAsyncioTestCase):

    def setUp(self):
        self.loader = HistoricalSessionLoader(make_store())

    async def test_sessions_newest_first(self):
        sessions = await self.loader.list_available_sessions()
        self.assertEqual(
            [s.selector for s in sessions],
            [
                "restSessionsAdvanced|7",
                "restSessionsFree|1",
                "restSessionsAdvanced|8",
                "restSessionsFree|3",
                "restSessionsFree|2",
            ],
        )

    async def test_session_label(self):
        sessions = await self.loader.list_available_sessions()
        self.assertEqual(
            sessions[0].label, "Advanced Measurement - 2024-04-10T07:30:00Z (10 min)"
        )

    def test_label_without_metadata(self):
        summary = SessionSummary("restSessionsFree", 4, "Simple", None, None)
        self.assertEqual(summary.label, "Simple Measurement - -- (-- min)")

    async def test_fetch_raw_values(self):
        values, timestamps = await self.loader.fetch_session_intervals("restSessionsFree", 1)
        self.assertEqual(values, [800, 810, 790])
        self.assertIsNone(timestamps)

    async def test_fetch_falls_back_to_filtered_values(self):
        values, timestamps = await self.loader.fetch_session_intervals("restSessionsAdvanced", 7)
        self.assertEqual(values, [1000, 990])
        self.assertEqual(len(timestamps), 2)

    async def test_numeric_string_id(self):
        values, _ = await self.loader.fetch_session_intervals("restSessionsFree", "1")
        self.assertEqual(len(values), 3)

    async def test_empty_rr_data(self):
        with self.assertRaises(LoadError) as ctx:
            await self.loader.fetch_session_intervals("restSessionsFree", 3)
        self.assertEqual(ctx.exception.reason, LoadErrorReason.NO_INTERVAL_DATA)

    async def test_missing_session(self):
        with self.assertRaises(LoadError) as ctx:
            await self.loader.fetch_session_intervals("restSessionsFree", 99)
        self.assertEqual(ctx.exception.reason, LoadErrorReason.NO_INTERVAL_DATA)

    async def test_unknown_collection(self):
        with self.assertRaises(LoadError):
            await self.loader.fetch_session_intervals("memberData", 1)

    async def test_rr_data_not_a_list(self):
        with self.assertRaises(LoadError) as ctx:
            await self.loader.fetch_session_intervals("restSessionsAdvanced", 8)
        self.assertEqual(ctx.exception.reason, LoadErrorReason.PARSE_FAILURE)


if __name__ == "__main__":
    unittest.main()
