"""
Expanding square spiral over a GradientImage.

From the center the walk goes down, left, up, right, down, ... The leg
length starts at 1 and grows by one after every left leg and every right
leg, which gives the usual 1,1,2,2,3,3,... square spiral. Every step moves
first and tests second, so the center cell itself is never reported.

The walk stays within side//2 - 1 of the center on each axis and stops once
the leg length reaches the side or an axis offset reaches side//2.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Iterator, Optional

from gazewarp.core.types import Offset
from gazewarp.saliency.gradient import GradientImage


class Direction(IntEnum):
    DOWN = 0
    LEFT = 1
    UP = 2
    RIGHT = 3


_STEP = {
    Direction.DOWN: (0, 1),
    Direction.LEFT: (-1, 0),
    Direction.UP: (0, -1),
    Direction.RIGHT: (1, 0),
}

# leg grows when leaving these
_GROW_AFTER = (Direction.LEFT, Direction.RIGHT)


@dataclass
class _SearchState:
    direction: Direction = Direction.DOWN
    leg_size: int = 1
    dx: int = 0
    dy: int = 0

    def can_step(self, limit: int) -> bool:
        if self.direction == Direction.DOWN:
            return self.dy < limit
        if self.direction == Direction.LEFT:
            return -self.dx < limit
        if self.direction == Direction.UP:
            return -self.dy < limit
        return self.dx < limit

    def step(self) -> None:
        sx, sy = _STEP[self.direction]
        self.dx += sx
        self.dy += sy

    def turn(self) -> None:
        if self.direction in _GROW_AFTER:
            self.leg_size += 1
        self.direction = Direction((self.direction + 1) % 4)


def spiral_path(side: int) -> Iterator[Offset]:
    """Offsets in visiting order for a grid of the given side."""
    half = side // 2
    limit = half - 1
    st = _SearchState()
    while st.leg_size < side and abs(st.dx) < half and abs(st.dy) < half:
        for _ in range(st.leg_size):
            if not st.can_step(limit):
                break
            st.step()
            yield Offset(st.dx, st.dy)
        st.turn()


def search(gradient: GradientImage, center: Optional[tuple[int, int]] = None) -> Offset:
    """
    First non-background cell in spiral order, as an offset from `center`.

    `center` defaults to (side//2, side//2), the capture's middle. Returns
    Offset(0, 0) when nothing is found. The winner is the earliest in
    visiting order, which is not always the closest by Euclidean distance.
    """
    side = gradient.side
    cx, cy = center if center is not None else (side // 2, side // 2)
    for off in spiral_path(side):
        if gradient.at(cx + off.dx, cy + off.dy) != 0:
            return off
    return Offset(0, 0)
