"""
API routes.

Endpoints:
- GET  `/api/radius-rules`: ordered radius rule table + default radius.
- POST `/api/radius`: place metadata -> arrival radius (with the matching rule).
- POST `/api/thresholds`: place metadata -> near/far/arrival thresholds.
- POST `/api/guidance`: positions + heading -> turn guidance (or null when unavailable).
- POST `/api/heading`: device-orientation alpha -> compass heading + cardinal point.
- GET  `/api/settings`: public settings (secrets redacted).
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from travelmode.config.overrides import apply_settings_overrides
from travelmode.config.settings import Settings, get_settings
from travelmode.domain.models import (
    CardinalDirection,
    GeoPoint,
    GuidanceResult,
    PlaceDescriptor,
    ProximityThresholds,
    RadiusMatch,
)
from travelmode.guidance.compass import alpha_to_heading, cardinal_direction, compute_guidance
from travelmode.proximity.radius import RadiusClassifier

router = APIRouter()


class PlaceRequest(PlaceDescriptor):
    settings_overrides: dict[str, Any] | None = None


class GuidanceRequest(BaseModel):
    user: GeoPoint
    target: GeoPoint | None = None
    distance_m: float
    heading_deg: float | None = None
    settings_overrides: dict[str, Any] | None = None


class GuidanceResponse(BaseModel):
    guidance: GuidanceResult | None = None


class HeadingRequest(BaseModel):
    alpha: float = Field(..., ge=0, le=360)


class HeadingResponse(BaseModel):
    heading_deg: int
    cardinal_direction: CardinalDirection


def _settings_for(overrides: dict[str, Any] | None) -> Settings:
    try:
        return apply_settings_overrides(get_settings(), overrides)
    except ValueError as e:
        raise HTTPException(
            status_code=400,
            detail={"code": "VALIDATION_ERROR", "message": str(e)},
        ) from e


def _classifier_for(settings: Settings) -> RadiusClassifier:
    return RadiusClassifier.from_settings(settings)


def _place(req: PlaceRequest) -> PlaceDescriptor:
    return PlaceDescriptor.model_validate(req.model_dump(exclude={"settings_overrides"}))


@router.get("/api/radius-rules")
def get_radius_rules() -> dict:
    """Return the ordered rule table used for adaptive visit radii."""
    classifier = _classifier_for(get_settings())
    return {
        "default_radius_m": classifier.default_radius_m,
        "rules": [rule.as_dict() for rule in classifier.rules],
    }


@router.post("/api/radius", response_model=RadiusMatch)
def post_radius(req: PlaceRequest) -> RadiusMatch:
    """Classify a place into an arrival radius."""
    settings = _settings_for(req.settings_overrides)
    return _classifier_for(settings).explain(_place(req))


@router.post("/api/thresholds", response_model=ProximityThresholds)
def post_thresholds(req: PlaceRequest) -> ProximityThresholds:
    """Derive near/far/arrival thresholds for a place."""
    settings = _settings_for(req.settings_overrides)
    return _classifier_for(settings).proximity_thresholds(_place(req))


@router.post("/api/guidance", response_model=GuidanceResponse)
def post_guidance(req: GuidanceRequest) -> GuidanceResponse:
    """Compute directional guidance; `guidance` is null when inputs are insufficient."""
    settings = _settings_for(req.settings_overrides)
    if req.target is None:
        return GuidanceResponse(guidance=None)
    result = compute_guidance(
        req.user.lat,
        req.user.lng,
        req.target.lat,
        req.target.lng,
        req.distance_m,
        req.heading_deg,
        settings=settings.guidance,
    )
    return GuidanceResponse(guidance=result)


@router.post("/api/heading", response_model=HeadingResponse)
def post_heading(req: HeadingRequest) -> HeadingResponse:
    """Convert a device-orientation alpha into a compass heading."""
    heading = alpha_to_heading(req.alpha)
    return HeadingResponse(heading_deg=heading, cardinal_direction=cardinal_direction(heading))


@router.get("/api/settings")
def get_public_settings() -> dict:
    """Return settings for clients with backend secrets redacted."""
    payload = get_settings().model_dump(mode="json")
    backend = payload.get("backend") or {}
    if backend.get("api_key"):
        backend["api_key"] = "***"
    return payload
