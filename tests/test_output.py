"""Unit tests for ui.output -- JSON export and text / CSV formatting."""

import json
import os
import tempfile
import unittest
from datetime import datetime, timezone

from netspeed.result import SpeedTestResult
from ui.output import (
    _csv_escape,
    append_csv,
    format_csv_header,
    format_csv_row,
    format_text_result,
    save_json,
)


def _result():
    return SpeedTestResult(
        download_mbps=95.456,
        upload_mbps=40.1,
        ping_ms=15.04,
        jitter_ms=1.414,
        packet_loss_pct=20.0,
        test_duration_sec=12.5,
        timestamp_utc=datetime(2025, 1, 15, 10, 30, tzinfo=timezone.utc),
    )


class TestSaveJson(unittest.TestCase):
    def test_writes_file(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, "out.json")
            save_json(_result().to_dict(), path)
            with open(path) as f:
                data = json.load(f)
            self.assertEqual(data["downloadMbps"], 95.46)
            self.assertEqual(os.listdir(tmpdir), ["out.json"])

    def test_missing_directory_raises(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, "nope", "out.json")
            with self.assertRaises(IOError):
                save_json({"a": 1}, path)


class TestFormatTextResult(unittest.TestCase):
    def test_contents(self):
        text = format_text_result(_result(), base_url="http://srv.test")
        self.assertIn("Server: http://srv.test", text)
        self.assertIn("Ping: 15.0 ms (jitter: 1.41 ms)", text)
        self.assertIn("Packet Loss: 20.0%", text)
        self.assertIn("Download: 95.46 Mbps", text)
        self.assertIn("Upload: 40.10 Mbps", text)
        self.assertIn("Duration: 12.5 s", text)

    def test_no_server_line(self):
        self.assertNotIn("Server:", format_text_result(_result()))


class TestCsv(unittest.TestCase):
    def test_header_matches_row(self):
        header = format_csv_header().split(",")
        row = format_csv_row(_result(), "srv").split(",")
        self.assertEqual(len(header), 8)
        self.assertEqual(len(header), len(row))

    def test_row_values(self):
        row = format_csv_row(_result(), "srv").split(",")
        self.assertEqual(row[0], "2025-01-15T10:30:00+00:00")
        self.assertEqual(row[1], "srv")
        self.assertEqual(row[5], "95.46")

    def test_escape(self):
        self.assertEqual(_csv_escape("plain"), "plain")
        self.assertEqual(_csv_escape("a,b"), '"a,b"')
        self.assertEqual(_csv_escape('say "hi"'), '"say ""hi"""')

    def test_append_writes_header_once(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, "log.csv")
            append_csv(path, _result(), "srv")
            append_csv(path, _result(), "srv")
            with open(path) as f:
                lines = f.read().splitlines()
            self.assertEqual(len(lines), 3)
            self.assertEqual(lines[0], format_csv_header())


if __name__ == "__main__":
    unittest.main()
