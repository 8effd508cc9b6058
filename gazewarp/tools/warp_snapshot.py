from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Sequence

from PIL import Image, ImageDraw

from gazewarp.core.errors import CaptureUnavailable
from gazewarp.core.types import CursorMoveCommand, Decision, Point, Sample
from gazewarp.sensor.screen import ScreenGrabber

"""
gazewarp Warp Snapshots
Writes one PNG per warp to $GAZEWARP_SNAPSHOT_DIR: the screen with the
trajectory (blue, numbered oldest first), the fixation (red, with both
heading angles) and the landing point (green).
"""

logger = logging.getLogger(__name__)

RED = (255, 0, 0, 255)
BLUE = (0, 0, 255, 255)
GREEN = (0, 200, 0, 255)
R = 5


def _ring(d: ImageDraw.ImageDraw, p: Point, color) -> None:
    d.ellipse((p.x - R, p.y - R, p.x + R, p.y + R), outline=color, width=2)


def render(
    screen: Image.Image,
    decision: Decision,
    history: Sequence[Sample],
    fixation: Point,
    cmd: CursorMoveCommand,
) -> Image.Image:
    img = screen.convert("RGBA")
    d = ImageDraw.Draw(img)

    pts = [s.pos for s in history]
    for i, p in enumerate(pts):
        _ring(d, p, BLUE)
        d.text((p.x + 12, p.y + 12), str(i), fill=BLUE)
    if len(pts) > 1:
        d.line([(p.x, p.y) for p in pts], fill=BLUE, width=1)

    _ring(d, fixation, RED)
    d.text((fixation.x + 12, fixation.y + 12), "fixation", fill=RED)
    d.text((fixation.x + 12, fixation.y + 24), f"{decision.angle_first or 0.0:.1f}", fill=RED)
    d.text((fixation.x + 12, fixation.y + 36), f"{decision.angle_second or 0.0:.1f}", fill=RED)

    landing = Point(cmd.x, cmd.y)
    _ring(d, landing, GREEN)
    d.text((landing.x + 12, landing.y + 12), "set point", fill=GREEN)
    return img


@dataclass
class WarpSnapshot:
    """Warp observer that saves a debug picture of each warp."""
    outdir: Path
    grabber: ScreenGrabber = field(default_factory=ScreenGrabber)

    @classmethod
    def from_env(cls) -> Optional["WarpSnapshot"]:
        raw = os.environ.get("GAZEWARP_SNAPSHOT_DIR")
        if not raw:
            return None
        outdir = Path(raw).expanduser()
        outdir.mkdir(parents=True, exist_ok=True)
        return cls(outdir=outdir)

    def path_for(self) -> Path:
        return self.outdir / f"warp_{int(time.time() * 1000)}.png"

    def __call__(self, decision: Decision, history, fixation: Point, cmd: CursorMoveCommand) -> Optional[Path]:
        try:
            screen = self.grabber.full()
        except CaptureUnavailable as exc:
            logger.warning("snapshot skipped: %s", exc)
            return None
        p = self.path_for()
        try:
            render(screen, decision, history, fixation, cmd).save(p)
        except OSError as exc:
            logger.warning("snapshot not written to %s: %s", p, exc)
            return None
        logger.debug("snapshot written to %s", p)
        return p
