"""
Test history persistence and display.

Results are stored newest first, capped at ``HISTORY_LIMIT`` entries.  The
engine only talks to the ``HistoryStore`` contract (load / save); the JSON
file store below is the default backend for the CLI.
"""
from __future__ import annotations

import abc
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from .constants import HISTORY_LIMIT
from .result import SpeedTestResult

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------

_DEFAULT_DIR = os.path.join(Path.home(), ".netspeed")
_DEFAULT_FILE = "history.json"


def _history_path() -> str:
    return os.path.join(_DEFAULT_DIR, _DEFAULT_FILE)


# ---------------------------------------------------------------------------
# Contract
# ---------------------------------------------------------------------------

class HistoryStore(abc.ABC):
    """Load / save contract for the last N results."""

    @abc.abstractmethod
    def load(self) -> List[SpeedTestResult]:
        """Return stored results, newest first."""

    @abc.abstractmethod
    def save(self, results: Sequence[SpeedTestResult]) -> None:
        """Replace the stored list with *results* (already ordered and capped)."""


class MemoryHistoryStore(HistoryStore):
    """Keeps results in a list.  Counts saves, which tests rely on."""

    def __init__(self, results: Optional[Sequence[SpeedTestResult]] = None) -> None:
        self._results: List[SpeedTestResult] = list(results or [])
        self.save_count = 0

    def load(self) -> List[SpeedTestResult]:
        return list(self._results)

    def save(self, results: Sequence[SpeedTestResult]) -> None:
        self._results = list(results)
        self.save_count += 1


class JsonHistoryStore(HistoryStore):
    """JSON array on disk, written atomically (write-tmp then rename)."""

    def __init__(self, path: Optional[str] = None, limit: int = HISTORY_LIMIT) -> None:
        self.path = path or _history_path()
        self.limit = limit

    def load(self) -> List[SpeedTestResult]:
        if not os.path.isfile(self.path):
            return []

        try:
            with open(self.path, encoding="utf-8") as fh:
                raw = json.load(fh)
        except (json.JSONDecodeError, OSError) as exc:
            logger.warning("Ignoring unreadable history file %s: %s", self.path, exc)
            return []

        if not isinstance(raw, list):
            return []

        results: List[SpeedTestResult] = []
        for entry in raw:
            if not isinstance(entry, dict):
                continue  # skip corrupt entries
            try:
                results.append(SpeedTestResult.from_dict(entry))
            except (TypeError, ValueError) as exc:
                logger.warning("Skipping corrupt history entry in %s: %s", self.path, exc)
        return results[: self.limit]

    def save(self, results: Sequence[SpeedTestResult]) -> None:
        dir_path = os.path.dirname(self.path) or "."
        os.makedirs(dir_path, exist_ok=True)
        tmp = os.path.join(dir_path, f".tmp_{os.path.basename(self.path)}")

        try:
            with open(tmp, "w", encoding="utf-8") as fh:
                json.dump([r.to_dict() for r in results], fh, indent=2, ensure_ascii=False)
            os.replace(tmp, self.path)
        except OSError:
            try:
                os.unlink(tmp)
            except OSError:
                pass
            raise


# ---------------------------------------------------------------------------
# Write
# ---------------------------------------------------------------------------

def record_result(
    store: HistoryStore,
    result: SpeedTestResult,
    limit: int = HISTORY_LIMIT,
) -> List[SpeedTestResult]:
    """Prepend *result*, drop anything past *limit*, and save.  Returns the new list."""
    updated = [result, *store.load()][:limit]
    store.save(updated)
    return updated


# ---------------------------------------------------------------------------
# Display helpers
# ---------------------------------------------------------------------------

def format_history_table(results: Sequence[SpeedTestResult]) -> List[Dict[str, Any]]:
    """
    Transform results into a flat list of dicts suitable for tabular
    display.  Each dict has: timestamp, ping, jitter, loss, download, upload.
    """
    rows = []
    for r in results:
        rows.append({
            "timestamp": r.timestamp_utc.strftime("%Y-%m-%d %H:%M"),
            "ping": r.ping_ms,
            "jitter": r.jitter_ms,
            "loss": r.packet_loss_pct,
            "download": r.download_mbps,
            "upload": r.upload_mbps,
        })
    return rows


def sparkline(values: Sequence[float]) -> str:
    """Single-line Unicode sparkline chart."""
    if not values:
        return ""
    bars = "▁▂▃▄▅▆▇█"
    lo, hi = min(values), max(values)
    span = hi - lo if hi > lo else 1.0
    return "".join(
        bars[min(int((v - lo) / span * (len(bars) - 1)), len(bars) - 1)]
        for v in values
    )
