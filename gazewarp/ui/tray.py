from __future__ import annotations

import threading
import time
from typing import Callable

import pystray
from PIL import Image, ImageDraw

from gazewarp.core.control import ControlState
from gazewarp.core.ipc_state import set_enabled, set_refine


def _make_icon(enabled: bool, refine: bool) -> Image.Image:
    # eye: pupil solid while warping, crosshair while snapping to edges
    img = Image.new("RGBA", (64, 64), (0, 0, 0, 0))
    d = ImageDraw.Draw(img)
    white = (255, 255, 255, 220)

    d.ellipse((8, 20, 56, 44), outline=white, width=3)
    d.ellipse((26, 26, 38, 38), fill=(255, 255, 255, 255 if enabled else 80))
    if refine:
        d.line((32, 4, 32, 16), fill=white, width=2)
        d.line((32, 48, 32, 60), fill=white, width=2)
    return img


def run_tray(state: ControlState, stop_flag: threading.Event, warps: Callable[[], int]) -> None:
    """
    Tray menu: warp count, warping on/off, edge snapping on/off, quit.
    `warps` reads the run loop's published count.
    """
    icon = pystray.Icon("gazewarp")

    def refresh():
        icon.icon = _make_icon(state.is_enabled(), state.refine_enabled())
        icon.title = f"gazewarp: {state.summary(warps())}"
        icon.update_menu()

    def on_warping(_icon, _item):
        set_enabled(state.toggle())
        refresh()

    def on_snapping(_icon, _item):
        set_refine(state.toggle_refine())
        refresh()

    def on_quit(_icon, _item):
        stop_flag.set()
        icon.stop()

    icon.menu = pystray.Menu(
        pystray.MenuItem(lambda _item: f"Warps this session: {warps()}", None, enabled=False),
        pystray.Menu.SEPARATOR,
        pystray.MenuItem("Warping", on_warping, checked=lambda _item: state.is_enabled()),
        pystray.MenuItem("Snap to edges", on_snapping, checked=lambda _item: state.refine_enabled()),
        pystray.Menu.SEPARATOR,
        pystray.MenuItem("Quit", on_quit),
    )

    icon.icon = _make_icon(state.is_enabled(), state.refine_enabled())
    icon.title = f"gazewarp: {state.summary(warps())}"

    # hotkeys and the run loop change things behind the menu's back
    def watcher():
        last = icon.title
        while not stop_flag.is_set():
            cur = f"gazewarp: {state.summary(warps())}"
            if cur != last:
                refresh()
                last = cur
            time.sleep(0.2)

    threading.Thread(target=watcher, daemon=True).start()
    try:
        icon.run()
    except Exception as e:
        # Tray backends can be fragile; do not kill the app.
        print(f"[gazewarp] Tray backend crashed: {e}")
        stop_flag.set()
