from __future__ import annotations

import logging
from collections import deque
from dataclasses import replace
from typing import Deque

from gazewarp.core.types import ORIGIN, Sample

logger = logging.getLogger(__name__)


class TrajectoryWindow:
    """
    Fixed-capacity history of recent cursor samples, oldest first.

    The window is never short: it starts (and restarts after `reset`) with
    `size` dummy samples at the origin stamped 0..size-1, so oldest/newest
    are always defined. Order is arrival order; timestamps are stored on the
    samples and kept strictly increasing.
    """

    def __init__(self, size: int = 10) -> None:
        if size < 2:
            raise ValueError(f"window size must be >= 2, got {size}")
        self.size = size
        self._buf: Deque[Sample] = deque(maxlen=size)
        self.reset()

    def reset(self) -> None:
        self._buf.clear()
        for i in range(self.size):
            self._buf.append(Sample(t_ms=i, pos=ORIGIN))

    def push(self, sample: Sample) -> Sample:
        """Append `sample`, evicting the oldest. Returns the sample as stored."""
        last = self._buf[-1].t_ms
        if sample.t_ms <= last:
            logger.debug("timestamp %d not after %d, bumped", sample.t_ms, last)
            sample = replace(sample, t_ms=last + 1)
        self._buf.append(sample)
        return sample

    def oldest(self) -> Sample:
        return self._buf[0]

    def newest(self) -> Sample:
        return self._buf[-1]

    def second_newest(self) -> Sample:
        return self._buf[-2]

    def second_newest_timestamp(self) -> int:
        return self._buf[-2].t_ms

    @staticmethod
    def distance(a: Sample, b: Sample) -> float:
        return a.pos.distance(b.pos)

    def travel(self) -> float:
        """Straight-line distance from the oldest to the newest sample."""
        return self.distance(self.oldest(), self.newest())

    def samples(self) -> tuple[Sample, ...]:
        return tuple(self._buf)

    def __len__(self) -> int:
        return len(self._buf)
