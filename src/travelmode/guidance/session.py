"""
Live guidance session.

A `GuidanceSession` owns the heading subscription for one target at a time:
- `activate()` subscribes to the injected heading source,
- every heading reading (and every location update) recomputes guidance when a
  target and a user location are known and the target is inside the guidance band,
- `deactivate()` releases the subscription synchronously.

Failure policy:
- A missing compass is "feature unsupported": `activate()` returns False, `result` stays None.
- Anything going wrong after activation degrades to "no guidance"; errors never reach
  the caller. Visit confirmation does not depend on guidance.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

from travelmode.config.settings import GuidanceSettings
from travelmode.domain.models import GeoPoint, GuidanceResult, TargetPlace
from travelmode.guidance.compass import compute_guidance
from travelmode.guidance.heading import HeadingReading, HeadingSource, Unsubscribe

logger = logging.getLogger(__name__)

GuidanceListener = Callable[[GuidanceResult | None], None]


@dataclass
class ProximityState:
    """Mutable per-session state; reset whenever the target changes."""

    target: TargetPlace | None = None
    user_location: GeoPoint | None = None
    heading_deg: float | None = None


class GuidanceSession:
    def __init__(
        self,
        heading_source: HeadingSource | None,
        *,
        settings: GuidanceSettings | None = None,
        on_update: GuidanceListener | None = None,
    ):
        self._source = heading_source
        self._settings = settings or GuidanceSettings()
        self._on_update = on_update
        self._unsubscribe: Unsubscribe | None = None
        self._active = False
        self._state = ProximityState()
        self._result: GuidanceResult | None = None

    @property
    def active(self) -> bool:
        return self._active

    @property
    def supported(self) -> bool:
        return self._source is not None

    @property
    def state(self) -> ProximityState:
        return self._state

    @property
    def result(self) -> GuidanceResult | None:
        return self._result

    def activate(self) -> bool:
        """Start listening for headings; False means no compass is available."""
        if self._active:
            return True
        if self._source is None:
            logger.info("No heading source available; directional guidance disabled")
            return False

        # Mark active first: some sources deliver the current heading during subscribe().
        self._active = True
        try:
            self._unsubscribe = self._source.subscribe(self._handle_reading, on_error=self._handle_error)
        except Exception:
            logger.warning("Failed to subscribe to heading source; guidance disabled", exc_info=True)
            self._active = False
            self._unsubscribe = None
            self._publish(None)
            return False
        return True

    def deactivate(self) -> None:
        """Stop listening; no readings are processed after this returns."""
        self._active = False
        unsubscribe, self._unsubscribe = self._unsubscribe, None
        if unsubscribe is not None:
            try:
                unsubscribe()
            except Exception:
                logger.warning("Heading source unsubscribe failed", exc_info=True)
        self._state = ProximityState()
        self._publish(None)

    def set_target(self, target: TargetPlace | None) -> None:
        """Point the session at a new target (or none); previous guidance is discarded."""
        self._state = ProximityState(
            target=target,
            user_location=self._state.user_location,
            heading_deg=self._state.heading_deg,
        )
        self._recompute()

    def update_location(self, user_location: GeoPoint | None, distance_m: float | None = None) -> None:
        """Record a new user fix and (optionally) the caller-computed distance to the target."""
        self._state.user_location = user_location
        if distance_m is not None and self._state.target is not None:
            self._state.target = self._state.target.model_copy(update={"distance_m": distance_m})
        self._recompute()

    def heading_unavailable(self) -> None:
        """The heading stream broke after activation: drop guidance until readings resume."""
        logger.warning("Heading source reported an error; guidance paused")
        self._state.heading_deg = None
        self._publish(None)

    def _handle_error(self, error: Exception) -> None:
        if not self._active:
            return
        self.heading_unavailable()

    def _handle_reading(self, reading: HeadingReading) -> None:
        if not self._active:
            return
        self._state.heading_deg = reading.heading_deg
        self._recompute()

    def _in_band(self) -> bool:
        target = self._state.target
        return (
            target is not None
            and self._state.user_location is not None
            and target.distance_m < self._settings.band_m
        )

    def _recompute(self) -> None:
        if not self._active or not self._in_band():
            self._publish(None)
            return

        target = self._state.target
        user = self._state.user_location
        try:
            result = compute_guidance(
                user.lat,
                user.lng,
                target.lat,
                target.lng,
                target.distance_m,
                self._state.heading_deg,
                settings=self._settings,
            )
        except Exception:
            logger.warning("Guidance computation failed for %r", target.name, exc_info=True)
            result = None
        self._publish(result)

    def _publish(self, result: GuidanceResult | None) -> None:
        changed = result != self._result
        self._result = result
        if changed and self._on_update is not None:
            self._on_update(result)
