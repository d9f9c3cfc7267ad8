"""
Output formatting -- JSON export, plain text, and CSV.
"""
from __future__ import annotations

import json
import os
from typing import Any, Dict

from netspeed.result import SpeedTestResult


def save_json(result: Dict[str, Any], filepath: str) -> None:
    """Write *result* to *filepath* atomically (write-tmp then rename)."""
    dir_path = os.path.dirname(filepath) or "."
    tmp = os.path.join(dir_path, f".tmp_{os.path.basename(filepath)}")

    try:
        with open(tmp, "w", encoding="utf-8") as fh:
            json.dump(result, fh, indent=2, ensure_ascii=False)
        os.replace(tmp, filepath)
    except (IOError, OSError) as exc:
        # Clean up partial temp file
        try:
            os.unlink(tmp)
        except OSError:
            pass
        raise IOError(f"Failed to save JSON to {filepath}: {exc}") from exc


# ---------------------------------------------------------------------------
# Plain-text / CSV helpers
# ---------------------------------------------------------------------------

def format_text_result(result: SpeedTestResult, base_url: str = "") -> str:
    sep = "=" * 50
    mid = "-" * 50
    lines = [sep, "Speed Test Results", sep]
    if base_url:
        lines.append(f"Server: {base_url}")
    lines += [
        f"Time: {result.timestamp_utc.isoformat()}",
        mid,
        f"Ping: {result.ping_ms:.1f} ms (jitter: {result.jitter_ms:.2f} ms)",
        f"Packet Loss: {result.packet_loss_pct:.1f}%",
        f"Download: {result.download_mbps:.2f} Mbps",
        f"Upload: {result.upload_mbps:.2f} Mbps",
        f"Duration: {result.test_duration_sec:.1f} s",
        sep,
    ]
    return "\n".join(lines)


def _csv_escape(value: str) -> str:
    """Quote a CSV field when it contains a delimiter, quote, or newline."""
    if any(c in value for c in (",", '"', "\n", "\r")):
        return '"' + value.replace('"', '""') + '"'
    return value


def format_csv_header() -> str:
    return "timestamp,server,ping_ms,jitter_ms,packet_loss_pct,download_mbps,upload_mbps,duration_sec"


def format_csv_row(result: SpeedTestResult, server: str = "") -> str:
    return ",".join([
        result.timestamp_utc.isoformat(),
        _csv_escape(server),
        f"{result.ping_ms:.1f}",
        f"{result.jitter_ms:.2f}",
        f"{result.packet_loss_pct:.1f}",
        f"{result.download_mbps:.2f}",
        f"{result.upload_mbps:.2f}",
        f"{result.test_duration_sec:.2f}",
    ])


def append_csv(path: str, result: SpeedTestResult, server: str = "") -> None:
    """Append a single CSV row, writing the header if the file is new."""
    write_header = not os.path.isfile(path) or os.path.getsize(path) == 0
    with open(path, "a", encoding="utf-8") as fh:
        if write_header:
            fh.write(format_csv_header() + "\n")
        fh.write(format_csv_row(result, server) + "\n")
