# src/travelmode/proximity/radius.py
"""
Adaptive visit radius (place metadata -> arrival radius in meters).

Large venues (airports, campuses, malls) cannot use the same arrival radius as a cafe,
so each place is classified against an ordered rule table:
- For each rule, in declaration order:
  - the place `category` containing the rule key wins immediately,
  - otherwise any rule keyword found in the combined text (name, category, description,
    types) wins.
- Nothing matched: the default radius.

Important ordering note:
- Category and keyword checks are interleaved per rule. An early rule's keyword match
  beats a later rule's category match. Do not turn this into a two-phase scan.
- Matching is plain substring containment ("barrio" matches "bar").

The rule table comes from settings (`proximity.radius_rules`) so it can be tuned in YAML.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Iterable, Mapping

from pydantic import ValidationError

from travelmode.config.settings import ProximitySettings, Settings, get_settings
from travelmode.core.geo import round_half_up
from travelmode.domain.models import PlaceDescriptor, ProximityThresholds, RadiusMatch

logger = logging.getLogger(__name__)

DEFAULT_RADIUS_M = 15


@dataclass(frozen=True)
class RadiusRule:
    """One ordered row of the radius table."""

    category_key: str
    radius_m: int
    keywords: tuple[str, ...]

    def as_dict(self) -> dict[str, Any]:
        return {"category_key": self.category_key, "radius_m": self.radius_m, "keywords": list(self.keywords)}


def rules_from_settings(proximity: ProximitySettings) -> list[RadiusRule]:
    """Convert validated settings rows into classifier rules (order preserved)."""
    return [
        RadiusRule(
            category_key=r.category_key,
            radius_m=int(r.radius_m),
            keywords=tuple(r.keywords),
        )
        for r in proximity.radius_rules
    ]


def _search_text(place: PlaceDescriptor) -> str:
    parts = [
        place.name or "",
        place.category or "",
        place.description or "",
        " ".join(t for t in place.types if t),
    ]
    return " ".join(parts).lower()


class RadiusClassifier:
    """Maps a `PlaceDescriptor` to an arrival radius using an ordered rule table."""

    def __init__(
        self,
        rules: Iterable[RadiusRule],
        *,
        default_radius_m: int = DEFAULT_RADIUS_M,
        proximity: ProximitySettings | None = None,
    ):
        self._rules: list[RadiusRule] = []
        for rule in rules:
            if rule.radius_m <= 0:
                raise ValueError(f"radius rule '{rule.category_key}' must have a positive radius")
            if not rule.category_key.strip():
                # An empty key would match every category.
                raise ValueError("radius rule category_key must not be empty")
            self._rules.append(
                RadiusRule(
                    category_key=rule.category_key.lower(),
                    radius_m=rule.radius_m,
                    keywords=tuple(k.lower() for k in rule.keywords),
                )
            )
        self._default_radius_m = int(default_radius_m)
        self._proximity = proximity or ProximitySettings(default_radius_m=self._default_radius_m)

    @classmethod
    def from_settings(cls, settings: Settings) -> "RadiusClassifier":
        proximity = settings.proximity
        return cls(
            rules_from_settings(proximity),
            default_radius_m=proximity.default_radius_m,
            proximity=proximity,
        )

    @property
    def rules(self) -> list[RadiusRule]:
        return list(self._rules)

    @property
    def default_radius_m(self) -> int:
        return self._default_radius_m

    def explain(self, place: PlaceDescriptor | Mapping[str, Any] | None) -> RadiusMatch:
        """Return the chosen radius together with the rule/keyword that produced it."""
        if isinstance(place, Mapping):
            try:
                place = PlaceDescriptor.model_validate(place)
            except ValidationError:
                logger.warning("Malformed place record; using default radius %sm", self._default_radius_m, exc_info=True)
                place = None
        if place is None:
            return RadiusMatch(radius_m=self._default_radius_m, kind="default")

        category = (place.category or "").lower()
        text = _search_text(place)

        for rule in self._rules:
            if rule.category_key in category:
                logger.debug("Category match for %r: %s -> %sm", place.name, rule.category_key, rule.radius_m)
                return RadiusMatch(radius_m=rule.radius_m, kind="category", rule_key=rule.category_key)

            keyword = next((k for k in rule.keywords if k in text), None)
            if keyword is not None:
                logger.debug(
                    "Keyword match for %r: %r -> %s -> %sm", place.name, keyword, rule.category_key, rule.radius_m
                )
                return RadiusMatch(
                    radius_m=rule.radius_m, kind="keyword", rule_key=rule.category_key, keyword=keyword
                )

        logger.debug("No radius rule matched %r; default %sm", place.name, self._default_radius_m)
        return RadiusMatch(radius_m=self._default_radius_m, kind="default")

    def classify(self, place: PlaceDescriptor | Mapping[str, Any] | None) -> int:
        """Arrival radius in meters for `place` (never fails)."""
        return self.explain(place).radius_m

    def proximity_thresholds(self, place: PlaceDescriptor | Mapping[str, Any] | None) -> ProximityThresholds:
        """Near/far/arrival distances scaled from the arrival radius, with floors."""
        cfg = self._proximity.thresholds
        arrival = self.classify(place)
        near = max(cfg.near_min_m, round_half_up(arrival * cfg.near_factor))
        far = max(cfg.far_min_m, round_half_up(arrival * cfg.far_factor))
        return ProximityThresholds(near=near, far=far, arrival=arrival)


@lru_cache
def default_classifier() -> RadiusClassifier:
    """Classifier built from the process-wide settings (cached)."""
    return RadiusClassifier.from_settings(get_settings())


def classify(place: PlaceDescriptor | Mapping[str, Any] | None) -> int:
    """Arrival radius for `place` using the configured rule table."""
    return default_classifier().classify(place)


def proximity_thresholds(place: PlaceDescriptor | Mapping[str, Any] | None) -> ProximityThresholds:
    """Near/far/arrival thresholds for `place` using the configured rule table."""
    return default_classifier().proximity_thresholds(place)
