"""
Compass math for directional guidance.

Given where the user is, where the target is, and which way the device points, we
produce a turn instruction:
- target bearing: great-circle initial bearing user -> target
- turn: signed difference target - heading, wrapped to the shorter rotation
- a deadband around 0 reads as "straight" so walking roughly toward the target
  does not flap between left and right

Everything here is pure. `compute_guidance` returns None instead of raising when
inputs are missing; guidance is an optional enhancement, never a hard failure.
"""

from __future__ import annotations

from math import floor

from travelmode.config.settings import GuidanceSettings
from travelmode.core.geo import bearing_difference, initial_bearing_deg, is_coordinate, round_half_up
from travelmode.domain.models import CardinalDirection, GuidanceResult, TurnDirection

CARDINAL_DIRECTIONS: tuple[CardinalDirection, ...] = ("N", "NE", "E", "SE", "S", "SW", "W", "NW")


def alpha_to_heading(alpha: float) -> int:
    """Convert device-orientation `alpha` to a compass heading in whole degrees.

    `alpha` grows counter-clockwise, compass bearings grow clockwise from north, so the
    heading is `(360 - alpha) mod 360`.
    """
    return round_half_up((360 - alpha) % 360) % 360


def cardinal_direction(heading_deg: float) -> CardinalDirection:
    """Bucket a heading into one of 8 compass points.

    Each point owns the 45° sector starting at it: N is [0, 45), NE is [45, 90), ...
    360 wraps back to N. Sectors are not centred on the points, so 350° reads NW
    rather than N.
    """
    return CARDINAL_DIRECTIONS[int(floor(heading_deg / 45)) % 8]


def classify_turn(diff_deg: float, *, deadband_deg: float = 10) -> TurnDirection:
    if abs(diff_deg) <= deadband_deg:
        return "straight"
    return "right" if diff_deg > 0 else "left"


def guidance_text(turn: TurnDirection, diff_deg: float, distance_m: float) -> str:
    meters = round_half_up(distance_m)
    if turn == "straight":
        return f"Continue straight for {meters}m"
    return f"Turn {round_half_up(abs(diff_deg))}° {turn} - {meters}m"


def compute_guidance(
    user_lat: float | None,
    user_lng: float | None,
    target_lat: float | None,
    target_lng: float | None,
    distance_m: float | None,
    current_heading_deg: float | None,
    *,
    settings: GuidanceSettings | None = None,
) -> GuidanceResult | None:
    """Directional guidance from user to target, or None when it cannot be computed."""
    values = (user_lat, user_lng, target_lat, target_lng, distance_m, current_heading_deg)
    if not all(is_coordinate(v) for v in values):
        return None
    if distance_m < 0:
        return None

    cfg = settings or GuidanceSettings()
    target_bearing = initial_bearing_deg(user_lat, user_lng, target_lat, target_lng)
    diff = bearing_difference(current_heading_deg % 360, target_bearing)
    turn = classify_turn(diff, deadband_deg=cfg.straight_deadband_deg)
    angle = abs(diff)

    return GuidanceResult(
        target_bearing_deg=target_bearing,
        current_heading_deg=current_heading_deg,
        turn_direction=turn,
        turn_angle_deg=angle,
        distance_m=distance_m,
        guidance_text=guidance_text(turn, diff, distance_m),
        cardinal_direction=cardinal_direction(current_heading_deg),
        large_turn=angle > cfg.large_turn_deg,
    )
