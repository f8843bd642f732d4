"""Unit tests for app.services.schedules: next run per frequency, upsert arguments."""

import unittest
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

from app.services.schedules import next_run_after, save_scan_schedule

NOW = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)


class TestNextRun(unittest.TestCase):
    def test_frequencies(self) -> None:
        self.assertEqual(next_run_after("daily", NOW), NOW + timedelta(days=1))
        self.assertEqual(next_run_after("weekly", NOW), NOW + timedelta(days=7))
        self.assertEqual(next_run_after("monthly", NOW), NOW + timedelta(days=30))

    def test_unknown_frequency(self) -> None:
        with self.assertRaises(ValueError):
            next_run_after("hourly", NOW)  # type: ignore[arg-type]


class TestSaveScanSchedule(unittest.TestCase):
    def test_upserts_with_last_run_now(self) -> None:
        store = MagicMock()
        save_scan_schedule(store, "example.myshopify.com", "gid://shopify/Product/1", "uk", "weekly", now=NOW)
        store.upsert_schedule.assert_called_once_with(
            shop_domain="example.myshopify.com",
            product_id="gid://shopify/Product/1",
            market="uk",
            frequency="weekly",
            next_run=NOW + timedelta(days=7),
            last_run=NOW,
        )


if __name__ == "__main__":
    unittest.main()
