"""Tests for netspeed.grading -- ratings, comparison, and share text."""

import unittest
from datetime import datetime, timezone

from netspeed.grading import (
    compare_with_previous,
    connection_type,
    format_delta,
    format_share_text,
    grade_speed,
    rate_ping,
)
from netspeed.result import SpeedTestResult


def _result(download=95.0, upload=40.0, ping=15.0, jitter=2.0, loss=0.0):
    return SpeedTestResult(
        download_mbps=download,
        upload_mbps=upload,
        ping_ms=ping,
        jitter_ms=jitter,
        packet_loss_pct=loss,
        test_duration_sec=12.0,
        timestamp_utc=datetime(2025, 1, 15, 10, 30, tzinfo=timezone.utc),
    )


class TestGradeSpeed(unittest.TestCase):
    def test_excellent(self):
        self.assertEqual(grade_speed(150.0), ("Excellent", "green"))

    def test_boundaries_inclusive(self):
        self.assertEqual(grade_speed(100.0)[0], "Excellent")
        self.assertEqual(grade_speed(50.0)[0], "Very Good")
        self.assertEqual(grade_speed(25.0)[0], "Good")
        self.assertEqual(grade_speed(10.0)[0], "Fair")

    def test_poor(self):
        self.assertEqual(grade_speed(9.99), ("Poor", "red"))
        self.assertEqual(grade_speed(0.0)[0], "Poor")


class TestRatePing(unittest.TestCase):
    def test_excellent(self):
        self.assertEqual(rate_ping(5.0), ("Excellent", "green"))

    def test_boundaries_exclusive(self):
        self.assertEqual(rate_ping(20.0)[0], "Good")
        self.assertEqual(rate_ping(50.0)[0], "Fair")
        self.assertEqual(rate_ping(100.0)[0], "Poor")

    def test_penalty_is_poor(self):
        self.assertEqual(rate_ping(1000.0), ("Poor", "red"))


class TestConnectionType(unittest.TestCase):
    def test_types(self):
        self.assertEqual(connection_type(250.0), "ethernet")
        self.assertEqual(connection_type(100.0), "wifi")
        self.assertEqual(connection_type(30.0), "wifi")
        self.assertEqual(connection_type(25.0), "mobile")


class TestCompareWithPrevious(unittest.TestCase):
    def test_no_history(self):
        self.assertIsNone(compare_with_previous(_result(), []))

    def test_uses_newest_entry(self):
        history = [_result(download=80.0, upload=30.0, ping=20.0), _result(download=10.0)]
        delta = compare_with_previous(_result(), history)
        self.assertAlmostEqual(delta["download_delta"], 15.0)
        self.assertAlmostEqual(delta["upload_delta"], 10.0)
        self.assertAlmostEqual(delta["ping_delta"], -5.0)
        self.assertEqual(delta["prev_download"], 80.0)


class TestFormatDelta(unittest.TestCase):
    def test_positive_speed(self):
        self.assertEqual(format_delta(5.0, "Mbps"), "[green]+5.0 Mbps[/green]")

    def test_negative_speed(self):
        self.assertEqual(format_delta(-5.0, "Mbps"), "[red]-5.0 Mbps[/red]")

    def test_ping_lower_is_better(self):
        self.assertIn("green", format_delta(-3.0, "ms", invert=True))
        self.assertIn("red", format_delta(3.0, "ms", invert=True))

    def test_same(self):
        self.assertIn("same", format_delta(0.001, "Mbps"))


class TestShareText(unittest.TestCase):
    def test_contents(self):
        text = format_share_text(_result())
        self.assertIn("Download: 95.0 Mbps", text)
        self.assertIn("Upload: 40.0 Mbps", text)
        self.assertIn("Ping: 15 ms (jitter: 2.0 ms)", text)
        self.assertIn("2025-01-15 10:30 UTC", text)
        self.assertNotIn("Packet Loss", text)

    def test_packet_loss_line(self):
        text = format_share_text(_result(loss=20.0))
        self.assertIn("Packet Loss: 20.0%", text)


if __name__ == "__main__":
    unittest.main()
