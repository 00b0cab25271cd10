"""
Visit confirmation.

Confirming a visit is a two-step flow:
1. Client-side check: the reported distance must be within the place's adaptive radius
   (large venues get a larger radius, see `travelmode.proximity.radius`).
   Beyond it we answer with a failed result and never call the backend.
2. The backend `confirm_place_visit` RPC records the visit and returns its own verdict.

Errors (backend down, bad payload, not configured) are logged and returned as
`VisitResult(success=False, error=...)`; this module does not raise to the UI layer.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import ValidationError

from travelmode.config.settings import Settings
from travelmode.core.geo import round_half_up
from travelmode.domain.models import PlaceDescriptor, VisitResult
from travelmode.proximity.radius import RadiusClassifier
from travelmode.visits.client import BackendNotConfiguredError, BackendRpcClient

logger = logging.getLogger(__name__)


class VisitService:
    def __init__(self, settings: Settings, client: BackendRpcClient, *, classifier: RadiusClassifier | None = None):
        self._settings = settings
        self._client = client
        self._classifier = classifier or RadiusClassifier.from_settings(settings)

    def confirm_visit(
        self,
        *,
        place_id: str,
        place: PlaceDescriptor,
        distance_m: float,
        user_lat: float,
        user_lng: float,
    ) -> VisitResult:
        radius = self._classifier.classify(place)
        logger.info("Confirming visit to %s (%.0fm, radius %sm)", place.name or place_id, distance_m, radius)

        if distance_m > radius:
            logger.warning(
                "Distance %.0fm exceeds adaptive radius %sm for %s", distance_m, radius, place.name or place_id
            )
            return VisitResult(
                success=False,
                place_name=place.name,
                category=place.category,
                error=(
                    f"You are {round_half_up(distance_m)}m from the place. "
                    f"You need to be within {radius}m to confirm the visit."
                ),
            )

        params = {
            "p_saved_place_id": place_id,
            "p_confirmation_distance": distance_m,
            "p_location_lat": user_lat,
            "p_location_lng": user_lng,
        }
        try:
            data = self._client.rpc(self._settings.backend.confirm_visit_rpc, params)
            result = self._parse_result(data)
        except (httpx.HTTPError, BackendNotConfiguredError, ValueError) as e:
            logger.error("Failed to confirm visit to %s: %s", place_id, e)
            return VisitResult(success=False, error=str(e) or e.__class__.__name__)

        if not result.success:
            logger.warning("Visit confirmation rejected for %s: %s", place_id, result.error)
            return result

        logger.info("Visit confirmed: %s", result.place_name or place_id)
        return result

    def is_place_visited(self, *, place_id: str, user_id: str | None) -> bool:
        """Whether `user_id` already has a visit recorded for the place (False on any failure)."""
        if not user_id:
            return False
        try:
            data = self._client.rpc(
                self._settings.backend.is_visited_rpc,
                {"p_saved_place_id": place_id, "p_user_id": user_id},
            )
        except (httpx.HTTPError, BackendNotConfiguredError, ValueError) as e:
            logger.error("Error checking if place %s is visited: %s", place_id, e)
            return False
        return bool(data)

    @staticmethod
    def _parse_result(data: Any) -> VisitResult:
        if not isinstance(data, dict):
            raise ValueError(f"Unexpected confirm_place_visit response: {data!r}")
        try:
            return VisitResult.model_validate(data)
        except ValidationError as e:
            raise ValueError(f"Invalid confirm_place_visit response: {e}") from e
