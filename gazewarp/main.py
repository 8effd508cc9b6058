from __future__ import annotations

import logging

from PIL import Image, ImageDraw

from gazewarp.core.config import DEFAULT_PRESET
from gazewarp.core.types import CursorMoveCommand, Point, Region
from gazewarp.saliency.detector import SaliencyRefiner
from gazewarp.warp.engine import WarpEngine


def fake_screen(w: int = 1280, h: int = 800) -> Image.Image:
    """White desktop with one dark button just below where the user looks."""
    img = Image.new("L", (w, h), 255)
    d = ImageDraw.Draw(img)
    d.rectangle((600, 512, 720, 540), fill=30)
    return img


def main():
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    screen = fake_screen()

    def capture(region: Region) -> Image.Image:
        return screen.crop(region.bbox)

    def sink(cmd: CursorMoveCommand) -> None:
        print(f"  -> move cursor to ({cmd.x},{cmd.y}), unrefined {cmd.unrefined}")

    preset = DEFAULT_PRESET
    engine = WarpEngine(
        preset.thresholds,
        sink=sink,
        refiner=SaliencyRefiner(capture=capture, radius_px=preset.saliency.capture_radius_px),
        window_size=preset.sampling.window_size,
    )

    print("gazewarp scripted demo: user looks at (900,500), drags the mouse right from (300,500).")
    engine.set_fixation(900, 500)

    t = 0
    x = 300
    while x < 900:
        cmd = engine.push_sample(x, 500, t)
        d = engine.last_decision
        print(f"t={t:4d}ms cursor=({x},500) {d.type.value}{'' if d.fires else ' ' + d.reason.value}")
        if cmd is not None:
            break
        x += 30
        t += preset.sampling.poll_interval_ms

    print(f"done: {engine.warps} warp(s), fixation now {engine.fixation}")


if __name__ == "__main__":
    main()
