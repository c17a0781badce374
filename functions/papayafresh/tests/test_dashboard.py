import unittest
from datetime import datetime, timedelta, timezone

from papayafresh.dashboard import DashboardAggregator, fallback_summary
from papayafresh.errors import StoreError
from papayafresh.store import InMemoryDocumentStore

NOW = datetime(2026, 1, 15, 12, 0, 0, tzinfo=timezone.utc)


class DashboardAggregatorTests(unittest.TestCase):
    def setUp(self):
        self.store = InMemoryDocumentStore()
        self.aggregator = DashboardAggregator(self.store, max_workers=2)

    def test_no_users_uses_placeholders(self):
        summary = self.aggregator.aggregate(now=NOW)

        self.assertEqual(summary.total_users, 0)
        self.assertEqual(summary.new_users, 1)
        self.assertEqual(summary.total_scans, 0)
        self.assertEqual(
            summary.ripeness_distribution, {"unripe": 1, "ripe": 1, "overripe": 1}
        )
        self.assertEqual(summary.weekly_scans, [2, 5, 8, 12])
        self.assertEqual(len(summary.recent_activities), 1)
        self.assertEqual(summary.recent_activities[0].user, "No activity yet")
        self.assertEqual(summary.average_scans_per_user, 0)

    def test_distribution_counts_shelf_only(self):
        self.store.add_user("u1", {"email": "a@example.com"})
        self.store.add_document("u1", "shelf", "s1", {"freshness": "green"})
        self.store.add_document("u1", "shelf", "s2", {"freshness": "rotten"})

        summary = self.aggregator.aggregate(now=NOW)

        self.assertEqual(
            summary.ripeness_distribution, {"unripe": 1, "ripe": 0, "overripe": 1}
        )
        self.assertEqual(summary.total_scans, 2)
        self.assertEqual(summary.total_shelf_items, 2)
        self.assertEqual(summary.total_history_items, 0)
        self.assertEqual(summary.average_scans_per_user, "2.0")

    def test_history_counts_toward_totals_but_not_charts(self):
        self.store.add_user("u1", {"email": "a@example.com"})
        self.store.add_user("u2", {"email": "b@example.com"})
        self.store.add_document(
            "u1", "shelf", "s1", {"freshness": "Ripe", "scannedDate": NOW}
        )
        self.store.add_document(
            "u2", "history", "h1", {"freshness": "rotten", "scannedDate": NOW}
        )

        summary = self.aggregator.aggregate(now=NOW)

        self.assertEqual(summary.total_scans, 2)
        self.assertEqual(
            summary.ripeness_distribution, {"unripe": 0, "ripe": 1, "overripe": 0}
        )
        self.assertEqual(summary.weekly_scans, [1, 1, 1, 1])
        self.assertEqual(summary.average_scans_per_user, "1.0")

    def test_new_users_is_a_fifth_of_total(self):
        for index in range(11):
            self.store.add_user(f"user-{index}")
        summary = self.aggregator.aggregate(now=NOW)
        self.assertEqual(summary.new_users, 2)

    def test_failed_user_is_counted_as_empty(self):
        self.store.add_user("good", {"email": "good@example.com"})
        self.store.add_user("bad", {"email": "bad@example.com"})
        self.store.add_document("good", "shelf", "s1", {"freshness": "green"})
        self.store.add_document("bad", "shelf", "s2", {"freshness": "rotten"})
        self.store.failing_paths.add("users/bad/shelf")

        summary = self.aggregator.aggregate(now=NOW)

        self.assertEqual(summary.total_users, 2)
        self.assertEqual(summary.total_scans, 1)
        self.assertEqual(summary.failed_user_ids, ["bad"])
        self.assertEqual(
            summary.ripeness_distribution, {"unripe": 1, "ripe": 0, "overripe": 0}
        )

    def test_user_listing_failure_propagates(self):
        self.store.failing_paths.add("users")
        with self.assertRaises(StoreError):
            self.aggregator.aggregate(now=NOW)

    def test_activities_are_newest_first_and_capped(self):
        self.store.add_user("u1", {"email": "a@example.com"})
        self.store.add_user("abcdefghijkl")
        for days in range(5):
            self.store.add_document(
                "u1",
                "shelf",
                f"s{days}",
                {
                    "name": f"Papaya {days}",
                    "freshness": "Ripe",
                    "scannedDate": NOW - timedelta(days=days, hours=1),
                },
            )
        self.store.add_document(
            "abcdefghijkl", "history", "h1", {"archivedAt": NOW - timedelta(minutes=5)}
        )
        self.store.add_document("abcdefghijkl", "history", "h2", {"name": "Old"})

        summary = self.aggregator.aggregate(now=NOW)
        activities = summary.recent_activities

        self.assertEqual(summary.activity_count, 7)
        self.assertEqual(len(activities), 6)
        self.assertEqual(activities[0].user, "User abcdefgh")
        self.assertEqual(activities[0].action, "History: Activity")
        self.assertEqual(activities[0].time, "5 mins ago")
        self.assertEqual(activities[0].type, "history")
        self.assertEqual(activities[1].action, "Scanned Papaya 0 - Ripe")
        self.assertEqual(activities[1].time, "1 hr ago")
        self.assertEqual(activities[5].action, "Scanned Papaya 4 - Ripe")
        self.assertEqual(activities[5].time, "4 days ago")
        # The undated history entry sorts last and is cut off.
        self.assertNotIn("History: Old", [a.action for a in activities])

    def test_shelf_placeholders(self):
        self.store.add_user("u1")
        self.store.add_document("u1", "shelf", "s1", {})

        summary = self.aggregator.aggregate(now=NOW)

        entry = summary.recent_activities[0]
        self.assertEqual(entry.action, "Scanned Unknown Papaya - Unknown")
        self.assertEqual(entry.time, "Recent")
        self.assertEqual(entry.user, "User u1")

    def test_to_json_shape(self):
        self.store.add_user("u1", {"email": "a@example.com"})
        payload = self.aggregator.aggregate(now=NOW).to_json()

        self.assertEqual(payload["papayasOnShelf"], 0)
        self.assertEqual(payload["userStats"]["averageScansPerUser"], "0.0")
        self.assertEqual(payload["_debug"]["userIds"], ["u1"])
        self.assertEqual(payload["_debug"]["failedUserIds"], [])


class FallbackSummaryTests(unittest.TestCase):
    def test_fallback_payload(self):
        payload = fallback_summary("boom")
        self.assertFalse(payload["success"])
        self.assertEqual(payload["error"], "boom")
        self.assertEqual(payload["totalUsers"], 0)
        self.assertEqual(
            payload["ripenessDistribution"], {"unripe": 1, "ripe": 1, "overripe": 1}
        )
        self.assertEqual(payload["weeklyScans"], [2, 5, 8, 12])
        self.assertEqual(payload["recentActivities"][0]["user"], "System")


if __name__ == "__main__":
    unittest.main()
