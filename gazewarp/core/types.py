"""
gazewarp: core contracts

Shared value types passed between the fixation source, the warp engine,
the saliency refiner and the pointer injectors.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Protocol


# ============================================================
# Geometry
# ============================================================

@dataclass(frozen=True)
class Point:
    """Screen position in pixels. Floats are allowed for computed targets."""
    x: float
    y: float

    def distance(self, other: "Point") -> float:
        return math.hypot(self.x - other.x, self.y - other.y)

    def shifted(self, offset: "Offset") -> "Point":
        return Point(self.x + offset.dx, self.y + offset.dy)

    def rounded(self) -> tuple[int, int]:
        return int(round(self.x)), int(round(self.y))


@dataclass(frozen=True)
class Offset:
    """Integer displacement returned by the saliency search."""
    dx: int = 0
    dy: int = 0

    def is_zero(self) -> bool:
        return self.dx == 0 and self.dy == 0


ORIGIN = Point(0, 0)


@dataclass(frozen=True)
class Region:
    """Axis-aligned screen rectangle, (left, top) inclusive."""
    left: int
    top: int
    width: int
    height: int

    @classmethod
    def around(cls, center: Point, radius: int) -> "Region":
        cx, cy = center.rounded()
        return cls(left=cx - radius, top=cy - radius, width=2 * radius, height=2 * radius)

    @property
    def bbox(self) -> tuple[int, int, int, int]:
        return self.left, self.top, self.left + self.width, self.top + self.height


# ============================================================
# Pointer samples → engine
# ============================================================

@dataclass(frozen=True)
class Sample:
    """A timestamped cursor position."""
    t_ms: int
    pos: Point


# ============================================================
# Engine → pointer sink
# ============================================================

class DecisionType(str, Enum):
    NOOP = "NOOP"
    WARP = "WARP"


class NoOpReason(str, Enum):
    NO_FIXATION = "NO_FIXATION"
    HOME = "HOME"                  # cursor already inside home radius
    TRAVEL = "TRAVEL"              # not enough motion in the window
    ANGLE_FIRST = "ANGLE_FIRST"    # whole-window heading misses the fixation
    ANGLE_SECOND = "ANGLE_SECOND"  # latest step heading misses the fixation
    OVERSHOOT = "OVERSHOOT"        # landing point would be farther than the cursor


@dataclass(frozen=True)
class Decision:
    """
    Result of one trigger evaluation.

    `target` is set only for WARP; `reason` only for NOOP.
    Angles are filled in once the trigger got far enough to compute them.
    """
    type: DecisionType
    target: Optional[Point] = None
    reason: Optional[NoOpReason] = None
    set_radius: Optional[float] = None
    angle_first: Optional[float] = None
    angle_second: Optional[float] = None

    @property
    def fires(self) -> bool:
        return self.type == DecisionType.WARP


def noop(reason: NoOpReason, **kw) -> Decision:
    return Decision(type=DecisionType.NOOP, reason=reason, **kw)


@dataclass(frozen=True)
class CursorMoveCommand:
    """Absolute move, integer screen pixels."""
    x: int
    y: int
    # landing point before saliency refinement
    unrefined: Optional[Point] = None


class CursorSink(Protocol):
    def move_cursor(self, x: int, y: int) -> None: ...
