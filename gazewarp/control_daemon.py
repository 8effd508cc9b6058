from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field
from typing import Optional

from gazewarp.core.control import ControlState
from gazewarp.core.ipc_state import get_refine, init_enabled, read_warps, set_enabled


@dataclass
class ControlDaemon:
    """
    Owns the user-facing switches. The run loop lives in another process;
    the two meet in the ipc_state files. Edge snapping is read back each
    poll since the run loop turns it off after repeated capture failures.
    """
    state: ControlState = field(default_factory=ControlState)
    stop: threading.Event = field(default_factory=threading.Event)
    warps: int = 0
    _last: Optional[str] = field(default=None, repr=False)

    def sync(self) -> Optional[str]:
        """Pull run-loop state; the new status line if anything changed."""
        self.state.set_refine(get_refine())
        self.warps = read_warps()
        status = self.state.summary(self.warps)
        if status == self._last:
            return None
        self._last = status
        return status

    def run(self, poll_s: float = 0.5) -> None:
        while not self.stop.is_set():
            status = self.sync()
            if status is not None:
                print(f"[gazewarp] {status}")
            time.sleep(poll_s)


def main():
    # pynput needs a display at import time
    from gazewarp.ui.hotkeys import run_hotkeys

    daemon = ControlDaemon(state=ControlState(_enabled=True))

    # initialize file-based IPC state and set ON
    init_enabled(True)
    set_enabled(True)
    daemon.sync()

    # Hotkeys always-on (never dependent on tray)
    threading.Thread(target=run_hotkeys, args=(daemon.state,), daemon=True).start()

    print("[gazewarp] Control daemon started.")
    print("  Hotkeys:")
    print("   - Ctrl+Alt+Space = Toggle warping ON/OFF")
    print("   - Ctrl+Alt+Esc   = PANIC OFF")
    print("   - Ctrl+Alt+R     = Toggle edge snapping")
    print("   - Ctrl+Alt+C     = Click where you look (bound by the run loop)")

    # Tray: best effort. If it can't load, keep hotkeys alive.
    try:
        from gazewarp.ui.tray import run_tray
    except Exception as e:
        print(f"  Tray: unavailable ({e}). Hotkeys only.")
    else:
        print("  Tray: warp count / Warping / Snap to edges / Quit")
        threading.Thread(target=run_tray, args=(daemon.state, daemon.stop, lambda: daemon.warps),
                         daemon=True).start()

    try:
        daemon.run()
    except KeyboardInterrupt:
        daemon.stop.set()
    print(f"\n[gazewarp] control daemon exiting ({daemon.warps} warps)")


if __name__ == "__main__":
    main()
