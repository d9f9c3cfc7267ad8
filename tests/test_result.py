"""Tests for netspeed.result."""

import unittest
from datetime import datetime, timedelta, timezone

from netspeed.result import SpeedTestResult, build_result
from netspeed.stats import PingStats, ProbeSample, ThroughputStats

T0 = datetime(2025, 1, 15, 10, 0, 0, tzinfo=timezone.utc)


def _stats():
    ping = PingStats.from_samples([ProbeSample(elapsed_ms=v) for v in (20, 22, 18, 19, 21)])
    down = ThroughputStats.from_samples([ProbeSample(size_bytes=12_500_000, elapsed_ms=1000)])
    up = ThroughputStats.from_samples([ProbeSample(size_bytes=1_250_000, elapsed_ms=1000)])
    return ping, down, up


class TestBuildResult(unittest.TestCase):
    def test_fields(self):
        ping, down, up = _stats()
        r = build_result(ping, down, up, T0, T0 + timedelta(seconds=12.5))
        self.assertAlmostEqual(r.download_mbps, 100.0)
        self.assertAlmostEqual(r.upload_mbps, 10.0)
        self.assertAlmostEqual(r.ping_ms, 20.0)
        self.assertAlmostEqual(r.jitter_ms, 1.41421356)
        self.assertEqual(r.packet_loss_pct, 0.0)
        self.assertAlmostEqual(r.test_duration_sec, 12.5)
        self.assertEqual(r.timestamp_utc, T0 + timedelta(seconds=12.5))

    def test_finish_before_start(self):
        ping, down, up = _stats()
        with self.assertRaises(ValueError):
            build_result(ping, down, up, T0, T0 - timedelta(seconds=1))

    def test_naive_times_are_utc(self):
        ping, down, up = _stats()
        start = datetime(2025, 1, 15, 10, 0, 0)
        r = build_result(ping, down, up, start, start + timedelta(seconds=3))
        self.assertEqual(r.timestamp_utc.tzinfo, timezone.utc)


class TestSerialisation(unittest.TestCase):
    def setUp(self):
        self.result = SpeedTestResult(
            download_mbps=95.4567,
            upload_mbps=10.123,
            ping_ms=20.004,
            jitter_ms=1.4142,
            packet_loss_pct=20.0,
            test_duration_sec=12.5,
            timestamp_utc=T0,
        )

    def test_to_dict_keys(self):
        d = self.result.to_dict()
        self.assertEqual(
            sorted(d),
            sorted([
                "downloadMbps", "uploadMbps", "pingMs", "jitterMs",
                "packetLossPct", "testDurationSec", "timestampUTC",
            ]),
        )
        self.assertEqual(d["downloadMbps"], 95.46)
        self.assertEqual(d["jitterMs"], 1.41)
        self.assertEqual(d["timestampUTC"], "2025-01-15T10:00:00+00:00")

    def test_from_dict(self):
        r = SpeedTestResult.from_dict(self.result.to_dict())
        self.assertAlmostEqual(r.download_mbps, 95.46)
        self.assertEqual(r.timestamp_utc, T0)

    def test_from_dict_tolerates_missing_fields(self):
        r = SpeedTestResult.from_dict({"downloadMbps": 5})
        self.assertEqual(r.download_mbps, 5.0)
        self.assertEqual(r.upload_mbps, 0.0)
        self.assertEqual(r.timestamp_utc.year, 1970)

    def test_from_dict_bad_timestamp(self):
        r = SpeedTestResult.from_dict({"timestampUTC": "yesterday"})
        self.assertEqual(r.timestamp_utc.year, 1970)

    def test_from_dict_naive_timestamp(self):
        r = SpeedTestResult.from_dict({"timestampUTC": "2025-01-15T10:00:00"})
        self.assertEqual(r.timestamp_utc, T0)


if __name__ == "__main__":
    unittest.main()
