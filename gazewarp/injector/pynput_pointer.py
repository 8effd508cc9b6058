from __future__ import annotations

from dataclasses import dataclass, field

from pynput import mouse

from gazewarp.core.types import Point


@dataclass
class PynputPointer:
    """
    Reads and places the system cursor through pynput.
    Works on X11, macOS and Windows. Absolute positioning only.
    """
    ctl: mouse.Controller = field(default_factory=mouse.Controller)

    def position(self) -> Point:
        x, y = self.ctl.position
        return Point(int(x), int(y))

    def move_cursor(self, x: int, y: int) -> None:
        self.ctl.position = (int(x), int(y))

    def click(self) -> None:
        self.ctl.click(mouse.Button.left, 1)
