"""
Phase controller: Ping -> Download -> Upload -> Complete.

Owns the state machine, the per-run ``CancelToken`` and the remapping of
probe progress into the overall 0-100 range::

    Idle -> Ping (0-30%) -> Download (30-70%) -> Upload (70-100%) -> Complete

Any running phase may end in ``Cancelled`` instead.

Only one run may be active per controller.  A result is built and written
to history exactly once, when a run reaches ``Complete``.
"""
from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Callable, Optional, Sequence

from .cancel import CancelToken
from .config import Settings
from .errors import AllSamplesFailed, ConcurrentStart, HistoryError, TestCancelled
from .history import HistoryStore, record_result
from .latency import PingProbe
from .progress import Phase, ProgressCallback, ProgressTracker
from .result import SpeedTestResult, build_result
from .stats import PingStats, ThroughputStats
from .throughput import Direction, ThroughputProbe
from .transport import Transport

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PhaseController:
    """Runs one speed test at a time and reports progress through a callback."""

    def __init__(
        self,
        transport: Transport,
        history: Optional[HistoryStore] = None,
        settings: Optional[Settings] = None,
        on_progress: Optional[ProgressCallback] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self.transport = transport
        self.history = history
        self.settings = settings or Settings()
        self.on_progress = on_progress
        self.clock = clock or _utcnow
        self.last_result: Optional[SpeedTestResult] = None

        self._phase = Phase.IDLE
        self._token: Optional[CancelToken] = None
        self._running = False

    # -- State --------------------------------------------------------------

    @property
    def phase(self) -> Phase:
        return self._phase

    @property
    def running(self) -> bool:
        return self._running

    def _enter(self, target: Phase) -> None:
        previous = self._phase
        self._phase = previous.transition(target)
        logger.info("Phase %s -> %s", previous.value, target.value)

    def _abort(self) -> None:
        if self._phase.active:
            self._enter(Phase.IDLE)

    # -- Public API ---------------------------------------------------------

    def cancel(self) -> None:
        """Signal the active run to stop.  Safe to call at any time."""
        if self._running and self._token is not None:
            logger.info("Cancellation requested during %s", self._phase.value)
            self._token.cancel()

    async def start(self) -> SpeedTestResult:
        """Run all phases and return the result.

        Raises ``ConcurrentStart`` if a run is already active,
        ``TestCancelled`` if ``cancel()`` was called, ``AllSamplesFailed``
        if a throughput phase produced no usable sample, and
        ``HistoryError`` if the finished result could not be saved.
        """
        if self._running:
            raise ConcurrentStart()

        self._running = True
        self._token = CancelToken()
        try:
            return await self._run(self._token, ProgressTracker(self.on_progress))
        finally:
            self._running = False
            self._token = None

    # -- Orchestration ------------------------------------------------------

    async def _run(self, token: CancelToken, tracker: ProgressTracker) -> SpeedTestResult:
        if self._phase.terminal:
            self._enter(Phase.IDLE)

        s = self.settings
        started_at = self.clock()

        try:
            ping = await self._ping_phase(token, tracker)
            download = await self._throughput_phase(
                token, tracker, Phase.DOWNLOAD, Direction.DOWNLOAD,
                s.download_sizes, s.download_delay,
            )
            upload = await self._throughput_phase(
                token, tracker, Phase.UPLOAD, Direction.UPLOAD,
                s.upload_sizes, s.upload_delay,
            )
            token.raise_if_cancelled()
        except (TestCancelled, asyncio.CancelledError):
            token.cancel()
            self._enter(Phase.CANCELLED)
            tracker.cancelled()
            raise
        except AllSamplesFailed as exc:
            logger.info("Aborting run: %s", exc)
            self._abort()
            raise
        except Exception:
            logger.debug("Run failed during %s", self._phase.value, exc_info=True)
            self._abort()
            raise

        finished_at = self.clock()
        self._enter(Phase.COMPLETE)

        result = build_result(ping, download, upload, started_at, finished_at)
        self.last_result = result
        tracker.complete()
        logger.info(
            "Complete in %.1f s: down %.2f Mbps, up %.2f Mbps, ping %.1f ms",
            result.test_duration_sec, result.download_mbps,
            result.upload_mbps, result.ping_ms,
        )

        if self.history is not None:
            try:
                record_result(self.history, result, limit=s.history_limit)
            except OSError as exc:
                logger.error("Could not save history: %s", exc)
                raise HistoryError(f"Could not save history: {exc}") from exc

        return result

    async def _ping_phase(self, token: CancelToken, tracker: ProgressTracker) -> PingStats:
        token.raise_if_cancelled()
        self._enter(Phase.PING)
        tracker.phase_started(Phase.PING)

        probe = PingProbe(
            self.transport,
            sample_count=self.settings.ping_count,
            delay=self.settings.ping_delay,
            penalty_ms=self.settings.penalty_ms,
        )
        return await probe.run(
            token,
            on_sample=lambda done, total, _rtt: tracker.update(Phase.PING, done, total),
        )

    async def _throughput_phase(
        self,
        token: CancelToken,
        tracker: ProgressTracker,
        phase: Phase,
        direction: Direction,
        sizes: Sequence[int],
        delay: float,
    ) -> ThroughputStats:
        token.raise_if_cancelled()
        self._enter(phase)
        tracker.phase_started(phase)

        probe = ThroughputProbe(self.transport, direction, sizes=sizes, delay=delay)
        return await probe.run(
            token,
            on_progress=lambda done, total, mbps: tracker.update(phase, done, total, mbps),
        )
