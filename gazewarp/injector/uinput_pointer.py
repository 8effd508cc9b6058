from __future__ import annotations

from dataclasses import dataclass
from evdev import AbsInfo, UInput, ecodes as e


@dataclass
class UInputPointer:
    """
    Absolute-axis virtual pointer using Linux uinput.
    For Wayland sessions where pynput can't place the cursor.
    Write-only: position still has to come from elsewhere.
    """
    ui: UInput
    width: int
    height: int

    @classmethod
    def create(cls, width: int, height: int) -> "UInputPointer":
        caps = {
            e.EV_KEY: [e.BTN_LEFT, e.BTN_RIGHT],
            e.EV_ABS: [
                (e.ABS_X, AbsInfo(value=0, min=0, max=width - 1, fuzz=0, flat=0, resolution=0)),
                (e.ABS_Y, AbsInfo(value=0, min=0, max=height - 1, fuzz=0, flat=0, resolution=0)),
            ],
        }
        ui = UInput(caps, name="gazewarp Virtual Pointer")
        return cls(ui=ui, width=width, height=height)

    def move_cursor(self, x: int, y: int) -> None:
        x = min(max(int(x), 0), self.width - 1)
        y = min(max(int(y), 0), self.height - 1)
        self.ui.write(e.EV_ABS, e.ABS_X, x)
        self.ui.write(e.EV_ABS, e.ABS_Y, y)
        self.ui.syn()

    def click(self) -> None:
        self.ui.write(e.EV_KEY, e.BTN_LEFT, 1)
        self.ui.syn()
        self.ui.write(e.EV_KEY, e.BTN_LEFT, 0)
        self.ui.syn()

    def close(self) -> None:
        self.ui.close()
