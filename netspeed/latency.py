"""
Latency measurement: round-trip time, jitter and packet loss.

Samples are taken strictly one after another with a short pause in between
so a single endpoint is never burst.  A failed ping is not dropped; it is
recorded as a penalty RTT so that it shows up in both jitter and loss.
"""
from __future__ import annotations

import logging
from typing import Callable, List, Optional

from .cancel import CancelToken
from .constants import DEFAULT_PING_COUNT, PENALTY_MS, PING_DELAY
from .errors import SampleFailure, TestCancelled
from .stats import PingStats, ProbeSample
from .transport import Transport

logger = logging.getLogger(__name__)

# (samples_done, samples_total, rtt_ms)
SampleCallback = Callable[[int, int, float], None]


class PingProbe:
    """Run a fixed number of ping samples through a ``Transport``."""

    def __init__(
        self,
        transport: Transport,
        sample_count: int = DEFAULT_PING_COUNT,
        delay: float = PING_DELAY,
        penalty_ms: float = PENALTY_MS,
    ) -> None:
        if sample_count < 1:
            raise ValueError("sample_count must be at least 1")
        self.transport = transport
        self.sample_count = sample_count
        self.delay = delay
        self.penalty_ms = penalty_ms

    async def run(
        self,
        token: CancelToken,
        on_sample: Optional[SampleCallback] = None,
    ) -> PingStats:
        samples: List[ProbeSample] = []

        try:
            for i in range(self.sample_count):
                token.raise_if_cancelled()
                samples.append(await self._ping_once(token))

                if on_sample:
                    on_sample(i + 1, self.sample_count, samples[-1].elapsed_ms)

                if i < self.sample_count - 1:
                    await token.sleep(self.delay)
        except TestCancelled as exc:
            logger.info("Ping cancelled after %d/%d samples", len(samples), self.sample_count)
            raise TestCancelled(partial=samples) from exc

        stats = PingStats.from_samples(samples, self.penalty_ms)
        logger.info(
            "Ping: avg %.1f ms, jitter %.2f ms, loss %.1f%%",
            stats.avg_ms, stats.jitter_ms, stats.packet_loss_pct,
        )
        return stats

    # -- Internals ----------------------------------------------------------

    async def _ping_once(self, token: CancelToken) -> ProbeSample:
        try:
            rtt = await self.transport.ping(token)
        except SampleFailure as exc:
            logger.debug("Ping failed (%s); recording %.0f ms penalty", exc, self.penalty_ms)
            return ProbeSample(size_bytes=0, elapsed_ms=self.penalty_ms, success=False)

        if rtt >= self.penalty_ms:
            return ProbeSample(size_bytes=0, elapsed_ms=self.penalty_ms, success=False)
        return ProbeSample(size_bytes=0, elapsed_ms=max(rtt, 0.0), success=True)
