"""
Domain models (Pydantic).

These types represent the stable "contract" between layers:
- place metadata fed to the radius classifier (`PlaceDescriptor`, `SavedPlace`)
- threshold and guidance outputs (`ProximityThresholds`, `GuidanceResult`)
- tracker/visit outputs consumed by the UI layer (`PlaceProximityStatus`, `VisitResult`)

Keeping these models in one place helps:
- validation (reject bad API inputs early),
- consistent JSON output across CLI/API.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

TurnDirection = Literal["left", "right", "straight"]
CardinalDirection = Literal["N", "NE", "E", "SE", "S", "SW", "W", "NW"]
MatchKind = Literal["category", "keyword", "default"]


class GeoPoint(BaseModel):
    """A geographic point in decimal degrees."""

    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)


class PlaceDescriptor(BaseModel):
    """Descriptive metadata used to pick a visit radius. Every field is optional."""

    model_config = ConfigDict(extra="ignore")

    name: str | None = None
    category: str | None = None
    description: str | None = None
    types: list[str] = Field(default_factory=list)

    @field_validator("types", mode="before")
    @classmethod
    def _none_types_to_empty(cls, value: Any) -> Any:
        return [] if value is None else value


class SavedPlace(PlaceDescriptor):
    """A saved place as delivered by the saved-places store."""

    id: str
    lat: float | None = Field(default=None, ge=-90, le=90)
    lng: float | None = Field(default=None, ge=-180, le=180)

    @property
    def has_coordinates(self) -> bool:
        return self.lat is not None and self.lng is not None


class RadiusMatch(BaseModel):
    """Chosen arrival radius plus which rule (if any) produced it."""

    radius_m: int
    kind: MatchKind
    rule_key: str | None = None
    keyword: str | None = None


class ProximityThresholds(BaseModel):
    """Distances (meters) that drive guidance UI and visit confirmation."""

    near: int
    far: int
    arrival: int


class TargetPlace(BaseModel):
    """The place guidance is pointing at; coordinates may be missing."""

    id: str | None = None
    name: str = ""
    lat: float | None = None
    lng: float | None = None
    category: str | None = None
    distance_m: float


class GuidanceResult(BaseModel):
    """Directional guidance for one heading/location sample."""

    target_bearing_deg: float
    current_heading_deg: float
    turn_direction: TurnDirection
    turn_angle_deg: float = Field(..., ge=0, le=180)
    distance_m: float
    guidance_text: str
    cardinal_direction: CardinalDirection
    large_turn: bool = False


class PlaceProximityStatus(BaseModel):
    """Tracker verdict for one place after one distance reading."""

    place_id: str
    distance_m: float
    thresholds: ProximityThresholds
    is_near: bool
    consecutive_count: int
    state_changed: bool = False
    arrived: bool = False


class VisitResult(BaseModel):
    """Outcome of a visit confirmation attempt.

    The backend RPC answers in camelCase (`visitId`, `placeName`); both spellings are accepted.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    success: bool
    visit_id: str | None = None
    place_name: str | None = None
    category: str | None = None
    error: str | None = None
