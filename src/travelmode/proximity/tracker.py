"""
Near/far tracking with hysteresis for saved places.

GPS fixes jitter, so a place does not flip between "near" and "far" on a single reading:
- while FAR, a reading within the `near` threshold votes to become near,
- while NEAR, a reading within the (larger) `far` threshold votes to stay near,
- a flip happens only after `consecutive_required` readings in a row vote for it;
  any reading agreeing with the current state resets the count.

Arrival fires once per place, when the place is stably near and the distance is
within the adaptive arrival radius. Callers use that signal to offer visit confirmation.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable

from travelmode.config.settings import Settings
from travelmode.core.geo import GeoPoint as CoreGeoPoint, haversine_m
from travelmode.domain.models import GeoPoint, PlaceDescriptor, PlaceProximityStatus, SavedPlace
from travelmode.proximity.radius import RadiusClassifier

logger = logging.getLogger(__name__)


@dataclass
class _PlaceState:
    is_near: bool = False
    consecutive_count: int = 0
    arrived: bool = False


class ProximityTracker:
    """Per-place hysteresis state machine driven by distance readings."""

    def __init__(self, classifier: RadiusClassifier, *, consecutive_required: int = 2):
        if consecutive_required < 1:
            raise ValueError("consecutive_required must be >= 1")
        self._classifier = classifier
        self._consecutive_required = consecutive_required
        self._states: dict[str, _PlaceState] = {}

    @classmethod
    def from_settings(cls, settings: Settings) -> "ProximityTracker":
        return cls(
            RadiusClassifier.from_settings(settings),
            consecutive_required=settings.proximity.consecutive_required,
        )

    def is_near(self, place_id: str) -> bool:
        state = self._states.get(place_id)
        return bool(state and state.is_near)

    def reset(self, place_id: str | None = None) -> None:
        """Forget one place (or all places)."""
        if place_id is None:
            self._states.clear()
        else:
            self._states.pop(place_id, None)

    def observe(self, place_id: str, place: PlaceDescriptor, distance_m: float) -> PlaceProximityStatus:
        """Feed one distance reading for a place and return its updated status."""
        thresholds = self._classifier.proximity_thresholds(place)
        state = self._states.setdefault(place_id, _PlaceState())

        if state.is_near:
            wants_near = distance_m <= thresholds.far
        else:
            wants_near = distance_m <= thresholds.near

        changed = False
        if wants_near == state.is_near:
            state.consecutive_count = 0
        else:
            state.consecutive_count += 1
            if state.consecutive_count >= self._consecutive_required:
                state.is_near = wants_near
                state.consecutive_count = 0
                changed = True
                logger.info(
                    "%s: state changed to %s after %s consecutive readings (%.0fm)",
                    place.name or place_id,
                    "NEAR" if wants_near else "FAR",
                    self._consecutive_required,
                    distance_m,
                )

        arrived_now = False
        if state.is_near and distance_m <= thresholds.arrival and not state.arrived:
            state.arrived = True
            arrived_now = True
            logger.info("Arrived at %s (%.0fm, radius %sm)", place.name or place_id, distance_m, thresholds.arrival)

        return PlaceProximityStatus(
            place_id=place_id,
            distance_m=distance_m,
            thresholds=thresholds,
            is_near=state.is_near,
            consecutive_count=state.consecutive_count,
            state_changed=changed,
            arrived=arrived_now,
        )

    def observe_location(self, user: GeoPoint, places: Iterable[SavedPlace]) -> list[PlaceProximityStatus]:
        """Compute distance from `user` to every place with coordinates and observe it."""
        origin = CoreGeoPoint(lat=user.lat, lng=user.lng)
        out: list[PlaceProximityStatus] = []
        for place in places:
            if not place.has_coordinates:
                continue
            distance = haversine_m(origin, CoreGeoPoint(lat=place.lat, lng=place.lng))
            out.append(self.observe(place.id, place, distance))
        return out
