"""
gazewarp: defaults (presets)

Values are read once at session start. Nothing here is mutated afterwards;
a different tuning means a different Preset instance.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path
from typing import Optional

from gazewarp.core.errors import ConfigurationInvalid


def _require(cond: bool, msg: str) -> None:
    if not cond:
        raise ConfigurationInvalid(msg)


def _is_number(v) -> bool:
    return isinstance(v, (int, float)) and not isinstance(v, bool)


class PresetName(str, Enum):
    DEFAULT = "Default"
    EAGER = "Eager"
    CAUTIOUS = "Cautious"


@dataclass(frozen=True)
class WarpThresholds:
    angle_deg: float = 10
    distance_px: float = 50
    home_radius_px: float = 20

    def __post_init__(self) -> None:
        for name in ("angle_deg", "distance_px", "home_radius_px"):
            _require(_is_number(getattr(self, name)), f"{name} must be a number, got {getattr(self, name)!r}")
        _require(0 <= self.angle_deg <= 180, f"angle_deg must be in [0, 180], got {self.angle_deg}")
        _require(self.distance_px >= 0, f"distance_px must be >= 0, got {self.distance_px}")
        _require(self.home_radius_px >= 0, f"home_radius_px must be >= 0, got {self.home_radius_px}")


@dataclass(frozen=True)
class SaliencyTuning:
    enabled: bool = True
    capture_radius_px: int = 50      # capture is a square of side 2*radius
    max_capture_failures: int = 5    # run loop turns refinement off after this many in a row

    def __post_init__(self) -> None:
        _require(isinstance(self.capture_radius_px, int) and self.capture_radius_px >= 2,
                 f"capture_radius_px must be an int >= 2, got {self.capture_radius_px!r}")
        _require(isinstance(self.max_capture_failures, int) and self.max_capture_failures >= 1,
                 f"max_capture_failures must be an int >= 1, got {self.max_capture_failures!r}")


@dataclass(frozen=True)
class SamplingTuning:
    window_size: int = 10
    poll_interval_ms: int = 20

    def __post_init__(self) -> None:
        _require(isinstance(self.window_size, int) and self.window_size >= 2,
                 f"window_size must be an int >= 2, got {self.window_size!r}")
        _require(isinstance(self.poll_interval_ms, int) and self.poll_interval_ms > 0,
                 f"poll_interval_ms must be a positive int, got {self.poll_interval_ms!r}")


@dataclass(frozen=True)
class Preset:
    name: PresetName
    thresholds: WarpThresholds
    saliency: SaliencyTuning = field(default_factory=SaliencyTuning)
    sampling: SamplingTuning = field(default_factory=SamplingTuning)


DEFAULT_PRESET = Preset(
    name=PresetName.DEFAULT,
    thresholds=WarpThresholds(angle_deg=10, distance_px=50, home_radius_px=20),
)

# Warps on shorter, less straight strokes. Useful on large or multi-monitor desks.
EAGER_PRESET = Preset(
    name=PresetName.EAGER,
    thresholds=WarpThresholds(angle_deg=15, distance_px=30, home_radius_px=15),
    saliency=SaliencyTuning(capture_radius_px=40),
)

CAUTIOUS_PRESET = Preset(
    name=PresetName.CAUTIOUS,
    thresholds=WarpThresholds(angle_deg=7, distance_px=80, home_radius_px=30),
    saliency=SaliencyTuning(capture_radius_px=60),
    sampling=SamplingTuning(window_size=12),
)

PRESETS = {
    PresetName.DEFAULT: DEFAULT_PRESET,
    PresetName.EAGER: EAGER_PRESET,
    PresetName.CAUTIOUS: CAUTIOUS_PRESET,
}


def profile_path() -> Path:
    return Path.home() / ".config" / "gazewarp" / "thresholds.json"


def apply_overrides(preset: Preset, prof: dict) -> Preset:
    """
    Overlay a flat dict of values onto a preset.

    Known keys: angle_deg, distance_px, home_radius_px, saliency_enabled,
    capture_radius_px, max_capture_failures, window_size, poll_interval_ms.
    Unknown keys are rejected so typos do not pass silently.
    """
    thr_keys = {"angle_deg", "distance_px", "home_radius_px"}
    sal_keys = {"saliency_enabled": "enabled", "capture_radius_px": "capture_radius_px",
                "max_capture_failures": "max_capture_failures"}
    smp_keys = {"window_size", "poll_interval_ms"}

    unknown = set(prof) - thr_keys - set(sal_keys) - smp_keys - {"preset"}
    if unknown:
        raise ConfigurationInvalid(f"unknown configuration keys: {sorted(unknown)}")

    thresholds = replace(preset.thresholds, **{k: prof[k] for k in thr_keys if k in prof})
    saliency = replace(preset.saliency, **{v: prof[k] for k, v in sal_keys.items() if k in prof})
    sampling = replace(preset.sampling, **{k: prof[k] for k in smp_keys if k in prof})
    return replace(preset, thresholds=thresholds, saliency=saliency, sampling=sampling)


def load_preset(name: Optional[str] = None, path: Optional[Path] = None) -> Preset:
    """
    Resolve the session preset.

    Order: explicit `name`, then the "preset" key of the profile file, then
    $GAZEWARP_PRESET, then Default. Values in the profile file override the
    chosen preset.
    """
    p = path if path is not None else profile_path()
    prof: dict = {}
    if p.exists():
        try:
            prof = json.loads(p.read_text())
        except json.JSONDecodeError as exc:
            raise ConfigurationInvalid(f"{p}: {exc}") from exc
        if not isinstance(prof, dict):
            raise ConfigurationInvalid(f"{p}: expected a JSON object")

    raw = name or prof.get("preset") or os.environ.get("GAZEWARP_PRESET") or PresetName.DEFAULT.value
    try:
        preset = PRESETS[PresetName(raw)]
    except ValueError as exc:
        raise ConfigurationInvalid(f"unknown preset {raw!r}") from exc

    return apply_overrides(preset, prof) if prof else preset
