"""
TravelMode CLI entrypoint.

This CLI is intended for quick local checks of radius classification and compass
guidance without a device. All logic lives in `travelmode.proximity` / `travelmode.guidance`.
"""

from __future__ import annotations

import argparse
import json
from typing import Any

from travelmode.config.settings import get_settings
from travelmode.core.logging import configure_logging
from travelmode.domain.models import PlaceDescriptor
from travelmode.guidance.compass import alpha_to_heading, cardinal_direction, compute_guidance
from travelmode.proximity.radius import RadiusClassifier


def _print_json(payload: Any) -> None:
    print(json.dumps(payload, ensure_ascii=False, indent=2))


def _cmd_radius(args: argparse.Namespace) -> int:
    """Handle the `radius` subcommand."""
    classifier = RadiusClassifier.from_settings(get_settings())
    place = PlaceDescriptor(
        name=args.name,
        category=args.category,
        description=args.description,
        types=args.type or [],
    )
    match = classifier.explain(place)
    thresholds = classifier.proximity_thresholds(place)

    if args.json:
        _print_json({"match": match.model_dump(mode="json"), "thresholds": thresholds.model_dump(mode="json")})
        return 0

    source = match.kind
    if match.kind == "keyword":
        source = f"keyword '{match.keyword}' ({match.rule_key})"
    elif match.kind == "category":
        source = f"category ({match.rule_key})"
    print(f"Arrival radius: {match.radius_m}m  via {source}")
    print(f"Thresholds: near={thresholds.near}m far={thresholds.far}m arrival={thresholds.arrival}m")
    return 0


def _cmd_guidance(args: argparse.Namespace) -> int:
    """Handle the `guidance` subcommand."""
    settings = get_settings()
    result = compute_guidance(
        args.user_lat,
        args.user_lng,
        args.target_lat,
        args.target_lng,
        args.distance,
        args.heading,
        settings=settings.guidance,
    )

    if args.json:
        _print_json({"guidance": result.model_dump(mode="json") if result else None})
        return 0

    if result is None:
        print("No guidance available.")
        return 1
    print(result.guidance_text)
    print(
        f"  bearing={result.target_bearing_deg:.1f}° heading={result.current_heading_deg:.0f}° "
        f"({result.cardinal_direction}) turn={result.turn_direction} {result.turn_angle_deg:.0f}°"
    )
    if result.large_turn:
        print("  Large turn required - consider checking your route")
    return 0


def _cmd_heading(args: argparse.Namespace) -> int:
    heading = alpha_to_heading(args.alpha)
    cardinal = cardinal_direction(heading)
    if args.json:
        _print_json({"heading_deg": heading, "cardinal_direction": cardinal})
        return 0
    print(f"{heading}° {cardinal}")
    return 0


def _cmd_rules(args: argparse.Namespace) -> int:
    classifier = RadiusClassifier.from_settings(get_settings())
    if args.json:
        _print_json(
            {
                "default_radius_m": classifier.default_radius_m,
                "rules": [rule.as_dict() for rule in classifier.rules],
            }
        )
        return 0
    for i, rule in enumerate(classifier.rules, start=1):
        print(f"{i:>2}. {rule.category_key:<18} {rule.radius_m:>4}m  {', '.join(rule.keywords)}")
    print(f"    default            {classifier.default_radius_m:>4}m")
    return 0


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the TravelMode CLI."""
    parser = argparse.ArgumentParser(prog="travelmode")
    sub = parser.add_subparsers(dest="command", required=True)

    rad = sub.add_parser("radius", help="Classify a place into an arrival radius and thresholds.")
    rad.add_argument("--name", type=str, default=None)
    rad.add_argument("--category", type=str, default=None)
    rad.add_argument("--description", type=str, default=None)
    rad.add_argument("--type", action="append", default=[], help="Repeatable place type tag.")
    rad.add_argument("--json", action="store_true", help="Output machine-readable JSON")
    rad.set_defaults(func=_cmd_radius)

    gd = sub.add_parser("guidance", help="Turn guidance from a position and compass heading.")
    gd.add_argument("--user-lat", required=True, type=float)
    gd.add_argument("--user-lng", required=True, type=float)
    gd.add_argument("--target-lat", required=True, type=float)
    gd.add_argument("--target-lng", required=True, type=float)
    gd.add_argument("--distance", required=True, type=float, help="Distance to target in meters")
    gd.add_argument("--heading", required=True, type=float, help="Compass heading in degrees (0 = north)")
    gd.add_argument("--json", action="store_true", help="Output machine-readable JSON")
    gd.set_defaults(func=_cmd_guidance)

    hd = sub.add_parser("heading", help="Convert device-orientation alpha to a compass heading.")
    hd.add_argument("--alpha", required=True, type=float)
    hd.add_argument("--json", action="store_true", help="Output machine-readable JSON")
    hd.set_defaults(func=_cmd_heading)

    rules = sub.add_parser("rules", help="List the ordered radius rule table.")
    rules.add_argument("--json", action="store_true", help="Output machine-readable JSON")
    rules.set_defaults(func=_cmd_rules)
    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entrypoint callable used by `python -m travelmode.cli`."""
    configure_logging()
    parser = build_parser()
    args = parser.parse_args(argv)
    func: Any = getattr(args, "func")
    return int(func(args))


if __name__ == "__main__":
    raise SystemExit(main())
