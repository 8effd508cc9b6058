from __future__ import annotations

import os
from pathlib import Path

# control_daemon writes the flags, run_loop polls them and publishes its warp count
STATE_PATH = Path(os.environ.get("GAZEWARP_STATE_PATH", "/tmp/gazewarp_enabled"))
REFINE_PATH = Path(os.environ.get("GAZEWARP_REFINE_PATH", "/tmp/gazewarp_refine"))
WARPS_PATH = Path(os.environ.get("GAZEWARP_WARPS_PATH", "/tmp/gazewarp_warps"))


def _write_flag(path: Path, value: bool) -> None:
    path.write_text("1" if value else "0")


def _read_flag(path: Path) -> bool:
    try:
        return path.read_text().strip() == "1"
    except FileNotFoundError:
        return True


def init_enabled(default: bool = True, path: Path | None = None) -> None:
    if not (path or STATE_PATH).exists():
        set_enabled(default, path)


def set_enabled(enabled: bool, path: Path | None = None) -> None:
    _write_flag(path or STATE_PATH, enabled)


def get_enabled(path: Path | None = None) -> bool:
    return _read_flag(path or STATE_PATH)


def set_refine(refine: bool, path: Path | None = None) -> None:
    _write_flag(path or REFINE_PATH, refine)


def get_refine(path: Path | None = None) -> bool:
    return _read_flag(path or REFINE_PATH)


def publish_warps(count: int, path: Path | None = None) -> None:
    (path or WARPS_PATH).write_text(str(count))


def read_warps(path: Path | None = None) -> int:
    """Warps the run loop has made this session; 0 if it never published."""
    try:
        return int((path or WARPS_PATH).read_text().strip())
    except (FileNotFoundError, ValueError):
        return 0
