from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Protocol

from gazewarp.core.errors import CaptureUnavailable
from gazewarp.core.types import Point
from gazewarp.warp.engine import WarpEngine

logger = logging.getLogger(__name__)


class ClickingPointer(Protocol):
    def move_cursor(self, x: int, y: int) -> None: ...
    def click(self) -> None: ...


@dataclass
class ClickTo:
    """
    Hotkey action: put the cursor on whatever the user is looking at and
    click it. The fixation is refined onto the nearest edge with whatever
    refiner the engine is currently using; if there is none, or the screen
    can't be captured, the raw fixation is used.
    """
    engine: WarpEngine
    pointer: ClickingPointer

    def fire(self) -> Optional[Point]:
        fixation = self.engine.fixation
        if fixation is None:
            logger.info("click-to: no fixation")
            return None

        target = fixation
        refiner = self.engine.refiner
        if refiner is not None:
            try:
                target = refiner.refine(fixation)
            except CaptureUnavailable as exc:
                logger.warning("click-to: capture unavailable, clicking raw fixation: %s", exc)

        x, y = target.rounded()
        self.pointer.move_cursor(x, y)
        self.pointer.click()
        # the click used up this fixation
        self.engine.clear_fixation()
        logger.info("click-to at (%d,%d)", x, y)
        return Point(x, y)
