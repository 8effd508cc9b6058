import logging

import pytest
from PIL import Image

from gazewarp.core.config import DEFAULT_PRESET
from gazewarp.core import ipc_state
from gazewarp.core.control import ControlState
from gazewarp.core.errors import CaptureUnavailable
from gazewarp.core.types import CursorMoveCommand, Offset, Point
from gazewarp.runtime.click_to import ClickTo
from gazewarp.runtime.kill_switch import KillSwitch
from gazewarp.runtime.run_loop import build, parse_screen
from gazewarp.saliency.detector import SaliencyRefiner
from gazewarp.warp.engine import WarpEngine


class FakePointer:
    def __init__(self, path=()):
        self.path = list(path)
        self.moves = []
        self.clicks = 0

    def position(self):
        return self.path.pop(0) if self.path else Point(0, 0)

    def move_cursor(self, x, y):
        self.moves.append((x, y))

    def click(self):
        self.clicks += 1


class BrokenPointer(FakePointer):
    def move_cursor(self, x, y):
        raise OSError("display closed")


class FixedDetector:
    def __init__(self, off):
        self.off = off

    def analyse(self, image):
        return self.off


def blank(region):
    return Image.new("L", (region.width, region.height), 255)


def leftward_drag():
    return [Point(1000 - round(100 * i / 9), 500) for i in range(10)]


# ---------------- kill switch ----------------

def test_kill_switch_drops_moves_when_off():
    state = ControlState()
    ptr = FakePointer()
    ks = KillSwitch(state=state, engine=WarpEngine(DEFAULT_PRESET.thresholds, sink=lambda c: None), pointer=ptr)

    ks.apply(CursorMoveCommand(10, 20))
    state.set_enabled(False)
    ks.apply(CursorMoveCommand(30, 40))

    assert ptr.moves == [(10, 20)]
    assert ks.dropped == 1


def test_kill_switch_off_transition_resets_engine():
    state = ControlState()
    eng = WarpEngine(DEFAULT_PRESET.thresholds, sink=lambda c: None)
    ks = KillSwitch(state=state, engine=eng, pointer=FakePointer())
    eng.set_fixation(600, 500)

    ks.guard()
    assert eng.fixation == Point(600, 500)

    state.set_enabled(False)
    ks.guard()
    assert eng.fixation is None


def test_kill_switch_logs_sink_errors(caplog):
    ks = KillSwitch(state=ControlState(), engine=WarpEngine(DEFAULT_PRESET.thresholds, sink=lambda c: None),
                    pointer=BrokenPointer())
    with caplog.at_level(logging.ERROR):
        ks.apply(CursorMoveCommand(1, 2))
    assert ks.failed == 1
    assert "cursor move to (1,2) failed" in caplog.text


# ---------------- click-to ----------------

def test_click_to_refines_fixation_and_clicks():
    refiner = SaliencyRefiner(capture=blank, detector=FixedDetector(Offset(-4, 2)))
    eng = WarpEngine(DEFAULT_PRESET.thresholds, sink=lambda c: None, refiner=refiner)
    ptr = FakePointer()
    eng.set_fixation(300, 200)

    assert ClickTo(engine=eng, pointer=ptr).fire() == Point(296, 202)
    assert ptr.moves == [(296, 202)]
    assert ptr.clicks == 1
    assert eng.fixation is None


def test_click_to_without_fixation_does_nothing():
    ptr = FakePointer()
    eng = WarpEngine(DEFAULT_PRESET.thresholds, sink=lambda c: None)
    assert ClickTo(engine=eng, pointer=ptr).fire() is None
    assert ptr.moves == [] and ptr.clicks == 0


def test_click_to_falls_back_to_raw_fixation():
    def capture(region):
        raise CaptureUnavailable("headless")

    ptr = FakePointer()
    eng = WarpEngine(DEFAULT_PRESET.thresholds, sink=lambda c: None, refiner=SaliencyRefiner(capture=capture))
    eng.set_fixation(300, 200)
    ClickTo(engine=eng, pointer=ptr).fire()
    assert ptr.moves == [(300, 200)]


# ---------------- run loop ----------------

@pytest.fixture
def loop_factory(monkeypatch):
    monkeypatch.delenv("GAZEWARP_SNAPSHOT_DIR", raising=False)

    def make(path, refiner=None):
        state = ControlState()
        ptr = FakePointer(path)
        loop = build(DEFAULT_PRESET, ptr, state)
        loop.sync_ipc = False
        # never grab the real screen
        loop.refiner = refiner
        loop.engine.refiner = refiner
        return loop, ptr, state
    return make


def test_run_loop_warps_through_kill_switch(loop_factory):
    loop, ptr, state = loop_factory(leftward_drag())
    loop.engine.set_fixation(600, 500)

    cmds = [loop.tick() for _ in range(10)]

    assert cmds[:-1] == [None] * 9
    assert (cmds[-1].x, cmds[-1].y) == (700, 500)
    assert ptr.moves == [(700, 500)]


def test_run_loop_idle_while_off(loop_factory):
    loop, ptr, state = loop_factory(leftward_drag())
    loop.engine.set_fixation(600, 500)
    state.set_enabled(False)

    assert [loop.tick() for _ in range(10)] == [None] * 10
    assert ptr.moves == []
    # pointer not even polled
    assert len(ptr.path) == 10


def failing(region):
    raise CaptureUnavailable("headless")


def test_run_loop_turns_refinement_off_after_repeated_failures(loop_factory):
    limit = DEFAULT_PRESET.saliency.max_capture_failures
    refiner = SaliencyRefiner(capture=failing)
    loop, ptr, state = loop_factory(leftward_drag() * limit + [Point(1, 1)], refiner=refiner)

    for _ in range(limit):
        loop.engine.set_fixation(600, 500)
        cmds = [loop.tick() for _ in range(10)]
        # still warps, just unrefined
        assert (cmds[-1].x, cmds[-1].y) == (700, 500)
        assert loop.engine.refiner is refiner
    assert loop.engine.capture_failures == limit
    assert len(ptr.moves) == limit

    loop.tick()
    assert loop.engine.refiner is None
    assert state.refine_enabled() is False


def test_switching_refinement_back_on_forgets_old_failures(loop_factory):
    refiner = SaliencyRefiner(capture=blank)
    loop, ptr, state = loop_factory([Point(1, 1)] * 2, refiner=refiner)
    loop.engine.capture_failures = DEFAULT_PRESET.saliency.max_capture_failures
    loop.tick()
    assert loop.engine.refiner is None

    state.set_refine(True)
    loop.tick()
    assert loop.engine.refiner is refiner
    assert loop.engine.capture_failures == 0


def test_click_to_skips_capture_once_refinement_is_off(loop_factory):
    grabs = []

    def capture(region):
        grabs.append(region)
        return blank(region)

    refiner = SaliencyRefiner(capture=capture, detector=FixedDetector(Offset(5, 5)))
    loop, ptr, state = loop_factory([Point(1, 1)], refiner=refiner)
    loop.engine.capture_failures = DEFAULT_PRESET.saliency.max_capture_failures
    loop.tick()
    loop.engine.set_fixation(300, 200)

    assert loop.click_to.fire() == Point(300, 200)
    assert grabs == []


def test_run_loop_shares_state_with_the_daemon(loop_factory, tmp_path, monkeypatch):
    for name in ("STATE_PATH", "REFINE_PATH", "WARPS_PATH"):
        monkeypatch.setattr(ipc_state, name, tmp_path / name.lower())
    loop, ptr, state = loop_factory(leftward_drag() + [Point(1, 1)])
    loop.sync_ipc = True
    loop.engine.set_fixation(600, 500)

    for _ in range(10):
        loop.tick()
    assert ipc_state.read_warps() == 1

    ipc_state.set_enabled(False)
    assert loop.tick() is None
    assert state.is_enabled() is False


def test_separate_mover_places_the_cursor(monkeypatch):
    monkeypatch.delenv("GAZEWARP_SNAPSHOT_DIR", raising=False)
    polled, mover = FakePointer(leftward_drag()), FakePointer()
    loop = build(DEFAULT_PRESET, polled, ControlState(), mover=mover)
    loop.sync_ipc = False
    loop.refiner = loop.engine.refiner = None
    loop.engine.set_fixation(600, 500)

    for _ in range(10):
        loop.tick()
    assert mover.moves == [(700, 500)]
    assert polled.moves == []


def test_click_to_goes_through_the_mover(monkeypatch):
    monkeypatch.delenv("GAZEWARP_SNAPSHOT_DIR", raising=False)
    polled, mover = FakePointer(), FakePointer()
    loop = build(DEFAULT_PRESET, polled, ControlState(), mover=mover)
    loop.engine.refiner = None
    loop.engine.set_fixation(300, 200)

    assert loop.click_to.fire() == Point(300, 200)
    assert mover.moves == [(300, 200)] and mover.clicks == 1
    assert polled.moves == [] and polled.clicks == 0


def test_parse_screen():
    assert parse_screen("2560x1440") == (2560, 1440)
    with pytest.raises(ValueError):
        parse_screen("2560")
