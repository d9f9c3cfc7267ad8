"""
Download / upload throughput sampling.

One probe class serves both directions.  It walks an ascending list of
payload sizes, times one transfer per size, and averages the per-sample
Mbps of the transfers that succeeded.  A failed transfer is excluded,
never replaced by an estimate.
"""
from __future__ import annotations

import enum
import logging
from typing import Callable, List, Optional, Sequence

from .cancel import CancelToken
from .constants import DOWNLOAD_DELAY, DOWNLOAD_SIZES, UPLOAD_DELAY, UPLOAD_SIZES
from .errors import AllSamplesFailed, SampleFailure, TestCancelled
from .stats import ProbeSample, ThroughputStats, calculate_mbps
from .transport import Transport

logger = logging.getLogger(__name__)

# (samples_done, samples_total, current_mbps)
ProgressCallback = Callable[[int, int, float], None]


class Direction(enum.Enum):
    DOWNLOAD = "download"
    UPLOAD = "upload"

    @property
    def default_sizes(self) -> List[int]:
        return list(DOWNLOAD_SIZES if self is Direction.DOWNLOAD else UPLOAD_SIZES)

    @property
    def default_delay(self) -> float:
        return DOWNLOAD_DELAY if self is Direction.DOWNLOAD else UPLOAD_DELAY


def validate_sizes(sizes: Sequence[int]) -> List[int]:
    """Return *sizes* as a list, or raise ``ValueError`` if unusable."""
    sizes = list(sizes)
    if not sizes:
        raise ValueError("At least one payload size is required")
    if any(s <= 0 for s in sizes):
        raise ValueError("Payload sizes must be positive")
    if sizes != sorted(sizes):
        raise ValueError("Payload sizes must be in ascending order")
    return sizes


class ThroughputProbe:
    """
    Sequential throughput sampler.

    ``on_progress`` is invoked after every sample, successful or not, with
    the probe-local progress and the speed of the latest successful sample.
    """

    def __init__(
        self,
        transport: Transport,
        direction: Direction,
        sizes: Optional[Sequence[int]] = None,
        delay: Optional[float] = None,
    ) -> None:
        self.transport = transport
        self.direction = direction
        self.sizes = validate_sizes(direction.default_sizes if sizes is None else sizes)
        self.delay = direction.default_delay if delay is None else delay

    async def run(
        self,
        token: CancelToken,
        on_progress: Optional[ProgressCallback] = None,
    ) -> ThroughputStats:
        samples: List[ProbeSample] = []
        current = 0.0
        total = len(self.sizes)

        try:
            for i, size in enumerate(self.sizes):
                token.raise_if_cancelled()

                sample = await self._transfer(size, token)
                samples.append(sample)
                if sample.success:
                    current = sample.mbps

                logger.debug(
                    "%s sample %d/%d: %d bytes in %.1f ms (%s)",
                    self.direction.value, i + 1, total, size, sample.elapsed_ms,
                    f"{sample.mbps:.2f} Mbps" if sample.success else "failed",
                )

                if on_progress:
                    on_progress(i + 1, total, current)

                if i < total - 1:
                    await token.sleep(self.delay)
        except TestCancelled as exc:
            logger.info(
                "%s cancelled after %d/%d samples",
                self.direction.value.capitalize(), len(samples), total,
            )
            raise TestCancelled(partial=samples) from exc

        stats = ThroughputStats.from_samples(samples)
        if stats.all_failed:
            logger.warning("All %d %s samples failed", total, self.direction.value)
            raise AllSamplesFailed(self.direction, stats)

        logger.info(
            "%s: %.2f Mbps (%d samples, %d failed)",
            self.direction.value.capitalize(), stats.mbps,
            stats.sample_count, stats.failed_count,
        )
        return stats

    # -- Internals ----------------------------------------------------------

    async def _transfer(self, size: int, token: CancelToken) -> ProbeSample:
        call = (
            self.transport.download
            if self.direction is Direction.DOWNLOAD
            else self.transport.upload
        )
        try:
            elapsed = await call(size, token)
        except SampleFailure as exc:
            logger.debug("%s of %d bytes failed: %s", self.direction.value, size, exc)
            return ProbeSample(size_bytes=size, elapsed_ms=0.0, success=False)

        if calculate_mbps(size, elapsed) <= 0:
            return ProbeSample(size_bytes=size, elapsed_ms=elapsed, success=False)
        return ProbeSample(size_bytes=size, elapsed_ms=elapsed, success=True)
