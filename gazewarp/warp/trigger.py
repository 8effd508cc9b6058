"""
Warp trigger: decides from recent cursor motion whether the user is heading
for the current fixation, and where the cursor should land if so.

Gates, in order (first failure wins):
  1. a fixation is known
  2. cursor is outside the home radius around the fixation
  3. cursor travelled at least distance_px across the window
  4. both the whole-window heading and the latest-step heading point at the
     fixation within angle_deg
  5. the landing point, set_radius = travel away from the fixation along the
     fixation→cursor ray, is not farther from the fixation than the cursor is
"""

from __future__ import annotations

import math
from typing import Optional

from gazewarp.core.config import WarpThresholds
from gazewarp.core.types import Decision, DecisionType, NoOpReason, Point, noop
from gazewarp.warp.trajectory import TrajectoryWindow


def heading_angle(start: Point, stop: Point, fixation: Point) -> float:
    """
    Angle in degrees between start→stop and start→fixation.

    Computed as the absolute difference of the two atan2 headings without
    folding into [0, 180]: rays on either side of the ±180° seam can come
    out larger than 180 and therefore fail any threshold.
    """
    mouse_heading = math.atan2(start.y - stop.y, start.x - stop.x)
    gaze_heading = math.atan2(start.y - fixation.y, start.x - fixation.x)
    return abs((gaze_heading - mouse_heading) * 180 / math.pi)


def landing_point(fixation: Point, cursor: Point, set_radius: float) -> Point:
    phi = math.atan2(cursor.y - fixation.y, cursor.x - fixation.x)
    return Point(fixation.x + set_radius * math.cos(phi), fixation.y + set_radius * math.sin(phi))


def evaluate(window: TrajectoryWindow, fixation: Optional[Point], thresholds: WarpThresholds) -> Decision:
    if fixation is None:
        return noop(NoOpReason.NO_FIXATION)

    newest = window.newest()
    oldest = window.oldest()

    distance_to_fix = newest.pos.distance(fixation)
    if distance_to_fix < thresholds.home_radius_px:
        return noop(NoOpReason.HOME)

    travel = window.distance(newest, oldest)
    if travel < thresholds.distance_px:
        return noop(NoOpReason.TRAVEL)

    angle_first = heading_angle(oldest.pos, newest.pos, fixation)
    if angle_first > thresholds.angle_deg:
        return noop(NoOpReason.ANGLE_FIRST, angle_first=angle_first)

    angle_second = heading_angle(window.second_newest().pos, newest.pos, fixation)
    if angle_second > thresholds.angle_deg:
        return noop(NoOpReason.ANGLE_SECOND, angle_first=angle_first, angle_second=angle_second)

    set_radius = travel
    target = landing_point(fixation, newest.pos, set_radius)
    if set_radius > distance_to_fix:
        return noop(NoOpReason.OVERSHOOT, set_radius=set_radius,
                    angle_first=angle_first, angle_second=angle_second)

    return Decision(
        type=DecisionType.WARP,
        target=target,
        set_radius=set_radius,
        angle_first=angle_first,
        angle_second=angle_second,
    )
