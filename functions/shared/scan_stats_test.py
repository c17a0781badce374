import unittest
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

from shared import scan_stats
from shared.scans import ScanRecord

NOW = datetime(2026, 1, 15, 12, 0, 0, tzinfo=timezone.utc)


def _scan(**fields) -> ScanRecord:
    return ScanRecord.from_document("scan", "user", "a@example.com", fields)


class ClassifyFreshnessTest(unittest.TestCase):

    def test_default_bucket_is_ripe(self):
        self.assertEqual(scan_stats.classify_freshness(""), "ripe")
        self.assertEqual(scan_stats.classify_freshness(None), "ripe")
        self.assertEqual(scan_stats.classify_freshness("fully ripe"), "ripe")
        self.assertEqual(scan_stats.classify_freshness("Unknown"), "ripe")

    def test_labels_are_case_insensitive(self):
        self.assertEqual(scan_stats.classify_freshness("Green"), "unripe")
        self.assertEqual(scan_stats.classify_freshness("ROTTEN"), "overripe")
        self.assertEqual(scan_stats.classify_freshness("Early stage"), "unripe")
        self.assertEqual(scan_stats.classify_freshness("LATE"), "overripe")

    def test_green_and_rotten_must_match_exactly(self):
        self.assertEqual(scan_stats.classify_freshness("greenish"), "ripe")
        self.assertEqual(scan_stats.classify_freshness("half rotten"), "ripe")

    def test_unripe_wins_over_overripe(self):
        self.assertEqual(
            scan_stats.classify_freshness("unripe or overripe?"), "unripe"
        )
        self.assertEqual(scan_stats.classify_freshness("early-late"), "unripe")


class FreshnessDistributionTest(unittest.TestCase):

    def test_counts_each_bucket(self):
        result = scan_stats.freshness_distribution(["green", "rotten", "Ripe", None])
        self.assertEqual(result, {"unripe": 1, "ripe": 2, "overripe": 1})

    def test_empty_input_uses_placeholder(self):
        self.assertEqual(
            scan_stats.freshness_distribution([]),
            {"unripe": 1, "ripe": 1, "overripe": 1},
        )


class ToDatetimeTest(unittest.TestCase):

    def test_decodes_supported_shapes(self):
        expected = datetime(2026, 1, 1, tzinfo=timezone.utc)
        seconds = expected.timestamp()
        protobuf_like = MagicMock()
        protobuf_like.ToDatetime.return_value = datetime(2026, 1, 1)

        self.assertEqual(scan_stats.to_datetime(expected), expected)
        self.assertEqual(scan_stats.to_datetime(datetime(2026, 1, 1)), expected)
        self.assertEqual(scan_stats.to_datetime("2026-01-01T00:00:00Z"), expected)
        self.assertEqual(scan_stats.to_datetime({"seconds": seconds}), expected)
        self.assertEqual(scan_stats.to_datetime({"_seconds": seconds}), expected)
        self.assertEqual(scan_stats.to_datetime(seconds * 1000), expected)
        self.assertEqual(scan_stats.to_datetime(protobuf_like), expected)

    def test_unreadable_values_are_none(self):
        self.assertIsNone(scan_stats.to_datetime(None))
        self.assertIsNone(scan_stats.to_datetime(""))
        self.assertIsNone(scan_stats.to_datetime("not-a-date"))
        self.assertIsNone(scan_stats.to_datetime({"nanoseconds": 5}))
        self.assertIsNone(scan_stats.to_datetime(["2026-01-01"]))

    def test_decoder_failure_is_none(self):
        broken = MagicMock()
        broken.ToDatetime.side_effect = RuntimeError("corrupt")
        self.assertIsNone(scan_stats.to_datetime(broken))


class WeeklyScanCountsTest(unittest.TestCase):

    def test_empty_input_is_sample_series(self):
        self.assertEqual(scan_stats.weekly_scan_counts([], now=NOW), [2, 5, 8, 12])

    def test_one_scan_per_week(self):
        scans = [
            _scan(scannedDate=NOW),
            _scan(scannedDate=NOW - timedelta(days=8)),
            _scan(scannedDate=NOW - timedelta(days=15)),
            _scan(scannedDate=NOW - timedelta(days=22)),
        ]
        self.assertEqual(scan_stats.weekly_scan_counts(scans, now=NOW), [1, 1, 1, 1])

    def test_newest_week_is_last(self):
        scans = [
            _scan(scannedDate=NOW - timedelta(hours=1)),
            _scan(addedAt=NOW - timedelta(days=2)),
            _scan(harvestedDate=NOW - timedelta(days=3)),
            _scan(scannedDate=NOW - timedelta(days=21)),
        ]
        self.assertEqual(scan_stats.weekly_scan_counts(scans, now=NOW), [1, 1, 1, 3])

    def test_anchor_priority(self):
        # scannedDate wins over an addedAt that falls in another week.
        scans = [
            _scan(scannedDate=NOW, addedAt=NOW - timedelta(days=20)),
            _scan(scannedDate=NOW, addedAt=NOW - timedelta(days=20)),
        ]
        self.assertEqual(scan_stats.weekly_scan_counts(scans, now=NOW), [1, 1, 1, 2])

    def test_out_of_window_and_unreadable_are_dropped(self):
        scans = [
            _scan(scannedDate=NOW - timedelta(days=28)),
            _scan(scannedDate=NOW + timedelta(days=1)),
            _scan(scannedDate="not-a-date"),
            _scan(),
        ]
        self.assertEqual(scan_stats.weekly_scan_counts(scans, now=NOW), [1, 1, 1, 1])


class FormatTimeAgoTest(unittest.TestCase):

    def _ago(self, delta: timedelta) -> str:
        return scan_stats.format_time_ago(NOW - delta, now=NOW)

    def test_missing_or_invalid_is_recent(self):
        self.assertEqual(scan_stats.format_time_ago(None, now=NOW), "Recent")
        self.assertEqual(scan_stats.format_time_ago("not-a-date", now=NOW), "Recent")
        self.assertEqual(scan_stats.format_time_ago(object(), now=NOW), "Recent")

    def test_epoch_seconds_mapping(self):
        thirty_seconds_ago = (NOW - timedelta(seconds=30)).timestamp()
        self.assertEqual(
            scan_stats.format_time_ago({"seconds": thirty_seconds_ago}, now=NOW),
            "Just now",
        )

    def test_ranges(self):
        self.assertEqual(self._ago(timedelta(minutes=45)), "45 mins ago")
        self.assertEqual(self._ago(timedelta(hours=3)), "3 hr ago")
        self.assertEqual(self._ago(timedelta(hours=23, minutes=59)), "23 hr ago")
        self.assertEqual(self._ago(timedelta(days=5)), "5 days ago")
        self.assertEqual(self._ago(timedelta(days=5, hours=20)), "5 days ago")

    def test_iso_string(self):
        self.assertEqual(
            scan_stats.format_time_ago("2026-01-15T10:00:00+00:00", now=NOW),
            "2 hr ago",
        )

    def test_future_timestamp_is_just_now(self):
        self.assertEqual(self._ago(-timedelta(minutes=10)), "Just now")


if __name__ == "__main__":
    unittest.main()
