from __future__ import annotations
from dataclasses import dataclass, field
from threading import Lock


@dataclass
class ControlState:
    """
    Shared control plane.
    enabled=False means warping is OFF (no cursor moves reach the OS).
    refine=False means warps land unrefined (saliency search skipped).
    """
    _enabled: bool = True
    _refine: bool = True
    _lock: Lock = field(default_factory=Lock, repr=False)

    def is_enabled(self) -> bool:
        with self._lock:
            return self._enabled

    def set_enabled(self, value: bool) -> None:
        with self._lock:
            self._enabled = value

    def toggle(self) -> bool:
        with self._lock:
            self._enabled = not self._enabled
            return self._enabled

    def refine_enabled(self) -> bool:
        with self._lock:
            return self._refine

    def set_refine(self, value: bool) -> None:
        with self._lock:
            self._refine = value

    def toggle_refine(self) -> bool:
        with self._lock:
            self._refine = not self._refine
            return self._refine

    def summary(self, warps: int) -> str:
        """One-line status for the tray title and the daemon console."""
        with self._lock:
            enabled, refine = self._enabled, self._refine
        return (f"{'ON' if enabled else 'OFF'}, "
                f"{'snapping to edges' if refine else 'raw fixation'}, "
                f"{warps} warp{'' if warps == 1 else 's'}")
