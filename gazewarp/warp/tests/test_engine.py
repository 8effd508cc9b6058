import logging

import pytest
from PIL import Image

from gazewarp.core.config import WarpThresholds
from gazewarp.core.errors import CaptureUnavailable
from gazewarp.core.types import ORIGIN, Offset, Point, Region
from gazewarp.saliency.detector import SaliencyRefiner
from gazewarp.warp.engine import WarpEngine

THR = WarpThresholds(angle_deg=10, distance_px=50, home_radius_px=20)


class FixedDetector:
    def __init__(self, off):
        self.off = off

    def analyse(self, image):
        return self.off


def approach(engine, t0=0):
    """Drag left from (1000,500) to (900,500); fixation expected at (600,500)."""
    out = []
    for i in range(10):
        out.append(engine.push_sample(1000 - round(100 * i / 9), 500, t0 + 20 * i))
    return out


def test_warp_emits_once_and_consumes_fixation():
    sent = []
    eng = WarpEngine(THR, sink=sent.append)
    eng.set_fixation(600, 500)

    cmds = approach(eng)

    assert cmds[:-1] == [None] * 9
    assert cmds[-1] is not None
    assert (cmds[-1].x, cmds[-1].y) == (700, 500)
    assert sent == [cmds[-1]]
    assert eng.fixation is None
    assert all(s.pos == ORIGIN for s in eng.samples())
    assert eng.warps == 1


def test_no_second_warp_from_stale_history():
    sent = []
    eng = WarpEngine(THR, sink=sent.append)
    eng.set_fixation(600, 500)
    approach(eng)
    # keep dragging; no new fixation arrives
    for i in range(10):
        eng.push_sample(890 - 10 * i, 500, 1000 + 20 * i)
    assert len(sent) == 1


def test_refinement_offset_is_added():
    regions = []

    def capture(region):
        regions.append(region)
        return Image.new("L", (region.width, region.height), 255)

    sent = []
    refiner = SaliencyRefiner(capture=capture, radius_px=50, detector=FixedDetector(Offset(3, -2)))
    eng = WarpEngine(THR, sink=sent.append, refiner=refiner)
    eng.set_fixation(600, 500)
    approach(eng)

    assert regions == [Region(left=650, top=450, width=100, height=100)]
    assert (sent[0].x, sent[0].y) == (703, 498)
    assert sent[0].unrefined.x == pytest.approx(700.0)
    assert eng.capture_failures == 0


def test_capture_failure_warps_unrefined(caplog):
    def capture(region):
        raise CaptureUnavailable("no display")

    sent = []
    eng = WarpEngine(THR, sink=sent.append, refiner=SaliencyRefiner(capture=capture))
    eng.set_fixation(600, 500)
    with caplog.at_level(logging.WARNING):
        approach(eng)

    assert (sent[0].x, sent[0].y) == (700, 500)
    assert eng.capture_failures == 1
    assert "capture unavailable" in caplog.text


def test_fixation_during_refinement_is_dropped():
    seen = {}

    def capture(region):
        # runs with the engine lock released
        seen["accepted"] = eng.on_fixation(Point(10, 10))
        seen["cmd"] = eng.on_sample(Point(640, 480))
        return Image.new("L", (region.width, region.height), 0)

    sent = []
    eng = WarpEngine(THR, sink=sent.append, refiner=SaliencyRefiner(capture=capture))
    eng.set_fixation(600, 500)
    approach(eng)

    assert seen == {"accepted": False, "cmd": None}
    assert len(sent) == 1
    assert eng.fixation is None
    # fixations are accepted again afterwards
    assert eng.set_fixation(5, 5) is True


def test_clear_fixation_resets_history():
    eng = WarpEngine(THR, sink=lambda cmd: None)
    eng.set_fixation(600, 500)
    for i in range(5):
        eng.push_sample(1000 - 20 * i, 500, 20 * i)
    eng.clear_fixation()
    assert eng.fixation is None
    assert all(s.pos == ORIGIN for s in eng.samples())


def test_sink_error_still_consumes_fixation():
    def sink(cmd):
        raise RuntimeError("pointer gone")

    eng = WarpEngine(THR, sink=sink)
    eng.set_fixation(600, 500)
    with pytest.raises(RuntimeError):
        approach(eng)
    assert eng.fixation is None
    assert eng.set_fixation(600, 500) is True


def test_observer_sees_history_and_fixation():
    calls = []
    eng = WarpEngine(THR, sink=lambda cmd: None, on_warp=lambda *a: calls.append(a))
    eng.set_fixation(600, 500)
    approach(eng)

    decision, history, fixation, cmd = calls[0]
    assert decision.fires
    assert fixation == Point(600, 500)
    assert history[0].pos == Point(1000, 500)
    assert history[-1].pos == Point(900, 500)
    assert (cmd.x, cmd.y) == (700, 500)


def test_failing_observer_does_not_undo_the_warp(caplog):
    def broken(*a):
        raise RuntimeError("observer down")

    sent = []
    eng = WarpEngine(THR, sink=sent.append, on_warp=broken)
    eng.set_fixation(600, 500)
    with caplog.at_level(logging.ERROR):
        cmds = approach(eng)

    assert sent == [cmds[-1]]
    assert eng.warps == 1
    assert "warp observer failed" in caplog.text


def test_default_timestamps_come_from_clock():
    now = [100.0]
    eng = WarpEngine(THR, sink=lambda cmd: None, clock=lambda: now[0])
    now[0] = 100.5
    eng.push_sample(1, 1)
    assert eng.samples()[-1].t_ms == 500
    # same instant again still moves forward
    eng.push_sample(2, 2)
    assert eng.samples()[-1].t_ms == 501


def test_last_decision_explains_noop():
    eng = WarpEngine(THR, sink=lambda cmd: None)
    eng.push_sample(10, 10, 0)
    assert eng.last_decision.reason.value == "NO_FIXATION"
