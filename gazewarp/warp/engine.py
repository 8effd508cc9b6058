from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Optional, Sequence, Union

from gazewarp.core.config import WarpThresholds
from gazewarp.core.errors import CaptureUnavailable
from gazewarp.core.types import CursorMoveCommand, Decision, Point, Sample
from gazewarp.saliency.detector import SaliencyRefiner
from gazewarp.warp.trajectory import TrajectoryWindow
from gazewarp.warp.trigger import evaluate

logger = logging.getLogger(__name__)

PointLike = Union[Point, Sequence[float]]
Sink = Callable[[CursorMoveCommand], None]
WarpObserver = Callable[[Decision, tuple, Point, CursorMoveCommand], None]


def _as_point(p: PointLike) -> Point:
    return p if isinstance(p, Point) else Point(p[0], p[1])


class WarpEngine:
    """
    Owns one trajectory window and the current fixation.

    Every sample is pushed and, unless a warp is already being carried out,
    evaluated. A firing decision is optionally refined through the saliency
    refiner, sent to `sink` as a CursorMoveCommand, and then consumes the
    fixation and resets the window.

    All state sits behind one lock. The lock is dropped while the screen is
    captured and searched and taken again to emit. While a warp is in
    flight, new fixations are dropped and samples are recorded without
    being evaluated.
    """

    def __init__(
        self,
        thresholds: WarpThresholds,
        sink: Sink,
        refiner: Optional[SaliencyRefiner] = None,
        window_size: int = 10,
        on_warp: Optional[WarpObserver] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.thresholds = thresholds
        self.refiner = refiner
        self.on_warp = on_warp
        self._sink = sink
        self._clock = clock
        self._lock = threading.Lock()
        self._window = TrajectoryWindow(window_size)
        self._fixation: Optional[Point] = None
        self._in_flight = False
        self._t0 = clock()

        self.last_decision: Optional[Decision] = None
        # consecutive refinement attempts that could not capture the screen
        self.capture_failures = 0
        self.warps = 0

    # ---------------- fixation source ----------------

    def on_fixation(self, point: PointLike) -> bool:
        """Store the fixation. Returns False if dropped because a warp is in flight."""
        with self._lock:
            if self._in_flight:
                logger.debug("fixation %s dropped: warp in flight", point)
                return False
            self._fixation = _as_point(point)
            return True

    def set_fixation(self, x: int, y: int) -> bool:
        return self.on_fixation(Point(x, y))

    def clear_fixation(self) -> None:
        with self._lock:
            self._fixation = None
            self._reset_window()

    @property
    def fixation(self) -> Optional[Point]:
        with self._lock:
            return self._fixation

    # ---------------- pointer samples ----------------

    def push_sample(self, x: int, y: int, timestamp: Optional[int] = None) -> Optional[CursorMoveCommand]:
        return self.on_sample(Point(x, y), timestamp)

    def on_sample(self, position: PointLike, t_ms: Optional[int] = None) -> Optional[CursorMoveCommand]:
        pos = _as_point(position)
        with self._lock:
            if t_ms is None:
                t_ms = self._now_ms()
            self._window.push(Sample(t_ms=t_ms, pos=pos))
            if self._in_flight:
                return None

            decision = evaluate(self._window, self._fixation, self.thresholds)
            self.last_decision = decision
            target = decision.target if decision.fires else None
            if target is None:
                return None

            self._in_flight = True
            fixation = self._fixation
            history = self._window.samples()
            refiner = self.refiner

        try:
            cmd = self._carry_out(decision, target, refiner)
        finally:
            with self._lock:
                self._in_flight = False

        if self.on_warp is not None:
            # the cursor has already moved
            try:
                self.on_warp(decision, history, fixation, cmd)
            except Exception:
                logger.exception("warp observer failed")
        return cmd

    def _carry_out(self, decision: Decision, target: Point,
                   refiner: Optional[SaliencyRefiner]) -> CursorMoveCommand:
        final = target
        captured = None
        if refiner is not None:
            try:
                final = refiner.refine(target)
                captured = True
            except CaptureUnavailable as exc:
                logger.warning("capture unavailable, warping unrefined: %s", exc)
                captured = False

        with self._lock:
            if captured is True:
                self.capture_failures = 0
            elif captured is False:
                self.capture_failures += 1

            x, y = final.rounded()
            cmd = CursorMoveCommand(x=x, y=y, unrefined=target)
            self.warps += 1
            logger.info("warp to (%d,%d), offset %.0f px from fixation", x, y, decision.set_radius or 0.0)
            try:
                self._sink(cmd)
            finally:
                self._fixation = None
                self._reset_window()
        return cmd

    # ---------------- housekeeping ----------------

    def reset(self) -> None:
        """Forget the fixation and the trajectory."""
        with self._lock:
            self._fixation = None
            self._reset_window()

    def samples(self) -> tuple[Sample, ...]:
        with self._lock:
            return self._window.samples()

    def _reset_window(self) -> None:
        self._window.reset()
        self._t0 = self._clock()

    def _now_ms(self) -> int:
        return int((self._clock() - self._t0) * 1000)
