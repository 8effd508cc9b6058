from __future__ import annotations

import logging
from dataclasses import dataclass

from gazewarp.core.control import ControlState
from gazewarp.core.types import CursorMoveCommand, CursorSink
from gazewarp.warp.engine import WarpEngine

logger = logging.getLogger(__name__)


@dataclass
class KillSwitch:
    """
    Central safety gate between the engine and the OS pointer.
    If ControlState is OFF, we:
      - forget the engine's fixation and trajectory
      - drop every move command
    """
    state: ControlState
    engine: WarpEngine
    pointer: CursorSink

    _last_enabled: bool = True
    dropped: int = 0
    failed: int = 0

    def guard(self) -> None:
        enabled = self.state.is_enabled()
        if enabled == self._last_enabled:
            return

        self._last_enabled = enabled
        if not enabled:
            # ON -> OFF: stale history must not fire once we're back
            self.engine.reset()
            logger.info("warping OFF")
        else:
            logger.info("warping ON")

    def allow(self) -> bool:
        return self.state.is_enabled()

    def apply(self, cmd: CursorMoveCommand) -> None:
        """
        Move the pointer ONLY if enabled. Sink errors are logged, not retried.
        """
        if not self.allow():
            self.dropped += 1
            return
        try:
            self.pointer.move_cursor(cmd.x, cmd.y)
        except Exception:
            self.failed += 1
            logger.exception("cursor move to (%d,%d) failed", cmd.x, cmd.y)
