from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Protocol

from gazewarp.core.errors import CaptureUnavailable
from gazewarp.core.types import Offset, Point, Region
from gazewarp.saliency.gradient import derive
from gazewarp.saliency.spiral import search

logger = logging.getLogger(__name__)


class SaliencyDetector(Protocol):
    def analyse(self, image) -> Offset:
        """Offset from the image center to the feature worth pointing at."""
        ...


class VerticalEdgeDetector:
    """
    Finds the nearest vertical-contrast edge to the middle of a capture.
    Stateless; safe to share between threads.
    """

    def analyse(self, image) -> Offset:
        return search(derive(image))


Capture = Callable[[Region], object]


@dataclass
class SaliencyRefiner:
    """
    Captures a square around a point and asks the detector where the
    nearest feature is. Each call allocates its own capture and grid.
    """
    capture: Capture
    radius_px: int = 50
    detector: SaliencyDetector = field(default_factory=VerticalEdgeDetector)

    def offset_for(self, target: Point) -> Offset:
        """Raises CaptureUnavailable when the screen can't be grabbed."""
        region = Region.around(target, self.radius_px)
        image = self.capture(region)
        if image is None:
            raise CaptureUnavailable(f"no image for {region}")
        off = self.detector.analyse(image)
        logger.debug("saliency offset %s around %s", off, target)
        return off

    def refine(self, target: Point) -> Point:
        return target.shifted(self.offset_for(target))
