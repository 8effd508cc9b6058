from __future__ import annotations

import logging
import os
import threading
import time
from dataclasses import dataclass, field
from typing import Optional, Protocol

from gazewarp.core.config import Preset, load_preset
from gazewarp.core.control import ControlState
from gazewarp.core.ipc_state import get_enabled, get_refine, init_enabled, publish_warps, set_refine
from gazewarp.core.types import CursorMoveCommand, Point
from gazewarp.runtime.click_to import ClickingPointer, ClickTo
from gazewarp.runtime.kill_switch import KillSwitch
from gazewarp.saliency.detector import SaliencyRefiner
from gazewarp.sensor.fixation_udp import UdpFixationSource, parse_dest
from gazewarp.sensor.screen import ScreenGrabber
from gazewarp.tools.warp_snapshot import WarpSnapshot
from gazewarp.warp.engine import WarpEngine

logger = logging.getLogger(__name__)


class PolledPointer(Protocol):
    def position(self) -> Point: ...
    def move_cursor(self, x: int, y: int) -> None: ...
    def click(self) -> None: ...


@dataclass
class RunLoop:
    """
    One poll of the pointer per tick. The engine never rate-limits itself;
    the tick interval is the sampling rate.
    """
    preset: Preset
    state: ControlState
    engine: WarpEngine
    ks: KillSwitch
    pointer: PolledPointer
    refiner: Optional[SaliencyRefiner] = None
    click_to: Optional[ClickTo] = None
    sync_ipc: bool = True
    _refine_was: bool = field(default=True, repr=False)

    def _gate_refinement(self) -> None:
        refine = self.state.refine_enabled()
        if refine and not self._refine_was:
            # switched back on by hand: old failures no longer count
            self.engine.capture_failures = 0
        if (self.refiner is not None and refine
                and self.engine.capture_failures >= self.preset.saliency.max_capture_failures):
            logger.warning("%d capture failures in a row, saliency refinement disabled",
                           self.engine.capture_failures)
            self.state.set_refine(False)
            if self.sync_ipc:
                set_refine(False)
            refine = False
        self._refine_was = refine
        self.engine.refiner = self.refiner if refine else None

    def tick(self) -> Optional[CursorMoveCommand]:
        if self.sync_ipc:
            # daemon may have toggled them
            self.state.set_enabled(get_enabled())
            self.state.set_refine(get_refine())
        self.ks.guard()
        if not self.ks.allow():
            return None
        self._gate_refinement()
        cmd = self.engine.on_sample(self.pointer.position())
        if cmd is not None and self.sync_ipc:
            publish_warps(self.engine.warps)
        return cmd

    def run(self) -> None:
        interval = self.preset.sampling.poll_interval_ms / 1000.0
        while True:
            started = time.monotonic()
            self.tick()
            time.sleep(max(0.0, interval - (time.monotonic() - started)))


def parse_screen(raw: str) -> tuple[int, int]:
    w_s, sep, h_s = raw.lower().partition("x")
    if not sep:
        raise ValueError(f"screen size must look like 1920x1080, got {raw!r}")
    return int(w_s), int(h_s)


def build(preset: Preset, pointer: PolledPointer, state: ControlState,
          mover: Optional[ClickingPointer] = None) -> RunLoop:
    """`mover` places the cursor and clicks when given; `pointer` is then only polled."""
    refiner = None
    if preset.saliency.enabled:
        refiner = SaliencyRefiner(capture=ScreenGrabber(), radius_px=preset.saliency.capture_radius_px)
    hand = mover or pointer

    def sink(cmd: CursorMoveCommand) -> None:
        ks.apply(cmd)

    engine = WarpEngine(
        preset.thresholds,
        sink=sink,
        refiner=refiner,
        window_size=preset.sampling.window_size,
        on_warp=WarpSnapshot.from_env(),
    )
    ks = KillSwitch(state=state, engine=engine, pointer=hand)
    return RunLoop(preset=preset, state=state, engine=engine, ks=ks, pointer=pointer,
                   refiner=refiner, click_to=ClickTo(engine=engine, pointer=hand))


def run():
    # pynput needs a display at import time
    from gazewarp.injector.pynput_pointer import PynputPointer
    from gazewarp.ui.hotkeys import run_hotkeys

    logging.basicConfig(level=os.environ.get("GAZEWARP_LOG", "INFO"),
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    preset = load_preset()
    state = ControlState(_enabled=True)
    # initialize and sync with file-based IPC
    init_enabled(True)
    state.set_enabled(get_enabled())
    publish_warps(0)

    pointer = PynputPointer()
    mover = None
    if os.environ.get("GAZEWARP_INJECTOR") == "uinput":
        from gazewarp.injector.uinput_pointer import UInputPointer
        w, h = parse_screen(os.environ.get("GAZEWARP_SCREEN", "1920x1080"))
        mover = UInputPointer.create(w, h)
    loop = build(preset, pointer, state, mover=mover)
    host, port = parse_dest(os.environ.get("GAZEWARP_FIXATION_ADDR", "127.0.0.1:5555"))
    src = UdpFixationSource(engine=loop.engine, host=host, port=port)
    src.start()

    # toggles live in control_daemon; only click-to is bound here
    threading.Thread(target=run_hotkeys, args=(state,),
                     kwargs={"click_to": loop.click_to.fire, "toggles": False}, daemon=True).start()

    t = preset.thresholds
    print(f"[gazewarp] Run loop, preset {preset.name.value}: angle {t.angle_deg}°, "
          f"distance {t.distance_px}px, home {t.home_radius_px}px. Ctrl+C to exit.")
    print(f"[gazewarp] Fixations: JSON datagrams on udp://{host}:{port}")
    print("Tip: run control_daemon in another terminal to toggle warping and edge snapping.")

    try:
        loop.run()
    except KeyboardInterrupt:
        print("\n[gazewarp] exiting")
    finally:
        src.stop()
        loop.engine.reset()
        if mover is not None:
            mover.close()
        print(f"[gazewarp] {loop.engine.warps} warps this session")


if __name__ == "__main__":
    run()
