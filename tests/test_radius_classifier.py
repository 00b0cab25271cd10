import pytest

from travelmode.config.settings import get_settings
from travelmode.domain.models import PlaceDescriptor
from travelmode.proximity.radius import RadiusClassifier, RadiusRule, classify, proximity_thresholds

# Keywords whose own text contains a keyword of an earlier rule ("theme park" contains "park").
# First match wins, so these resolve to the earlier rule.
SHADOWED_KEYWORDS = {"theme park": "park", "parque temático": "park"}


def _all_keywords() -> list[tuple[str, str, int]]:
    rows = []
    for rule in get_settings().proximity.radius_rules:
        for kw in rule.keywords:
            rows.append((kw, rule.category_key, rule.radius_m))
    return rows


@pytest.mark.parametrize(
    "keyword,rule_key,radius_m",
    [row for row in _all_keywords() if row[0] not in SHADOWED_KEYWORDS],
)
def test_every_keyword_as_name_maps_to_its_rule(keyword, rule_key, radius_m):
    classifier = RadiusClassifier.from_settings(get_settings())
    match = classifier.explain(PlaceDescriptor(name=keyword))
    assert match.radius_m == radius_m
    assert match.rule_key == rule_key
    assert match.kind == "keyword"


def test_shadowed_keywords_resolve_to_earlier_rule():
    classifier = RadiusClassifier.from_settings(get_settings())
    for keyword, earlier_key in SHADOWED_KEYWORDS.items():
        match = classifier.explain(PlaceDescriptor(name=keyword))
        assert match.rule_key == earlier_key
        assert match.radius_m == 200


def test_known_radii_from_default_table():
    assert classify(PlaceDescriptor(name="airport")) == 300
    assert classify(PlaceDescriptor(name="Disneyland Paris")) == 500
    assert classify(PlaceDescriptor(name="El Corte Inglés", category="shopping_mall")) == 150
    assert classify(PlaceDescriptor(name="Blue Bottle", category="cafe")) == 15


def test_default_fallback_for_unmatched_place():
    assert classify(PlaceDescriptor(name="xyzzy_unmatched_venue")) == 15
    assert classify(PlaceDescriptor()) == 15
    assert classify(None) == 15


def test_all_fields_none_degrade_to_default():
    place = PlaceDescriptor.model_validate({"name": None, "category": None, "description": None, "types": None})
    assert classify(place) == 15


def test_category_of_later_rule_loses_to_keyword_of_earlier_rule():
    # "restaurant" is a later rule's category; "airport" is an earlier rule's keyword.
    place = PlaceDescriptor(name="Airport Lounge Grill", category="restaurant")
    classifier = RadiusClassifier.from_settings(get_settings())
    match = classifier.explain(place)
    assert match.rule_key == "airport"
    assert match.kind == "keyword"
    assert match.radius_m == 300


def test_category_match_beats_keyword_of_same_or_later_rule():
    classifier = RadiusClassifier.from_settings(get_settings())
    match = classifier.explain(PlaceDescriptor(name="Corner Bar", category="museum"))
    assert match.kind == "category"
    assert match.rule_key == "museum"
    assert match.radius_m == 40


def test_category_is_substring_matched_case_insensitively():
    assert classify(PlaceDescriptor(category="Big_SUPERMARKET_chain")) == 80


def test_keywords_are_found_in_description_and_types():
    assert classify(PlaceDescriptor(name="Rosa", description="Family run Hotel near the beach")) == 30
    assert classify(PlaceDescriptor(name="Rosa", types=["point_of_interest", "gym"])) == 30


def test_substring_matching_is_not_word_bounded():
    # "barrio" contains "bar"; kept as-is (see DESIGN.md open questions).
    assert classify(PlaceDescriptor(name="barrio")) == 12


def test_rules_are_evaluated_in_declaration_order():
    rules = [
        RadiusRule(category_key="first", radius_m=111, keywords=("shared",)),
        RadiusRule(category_key="second", radius_m=222, keywords=("shared", "other")),
    ]
    classifier = RadiusClassifier(rules, default_radius_m=9)
    assert classifier.classify(PlaceDescriptor(name="shared thing")) == 111
    assert classifier.classify(PlaceDescriptor(name="other thing")) == 222
    assert classifier.classify(PlaceDescriptor(name="nothing")) == 9

    reversed_classifier = RadiusClassifier(list(reversed(rules)), default_radius_m=9)
    assert reversed_classifier.classify(PlaceDescriptor(name="shared thing")) == 222


def test_rule_keywords_are_matched_case_insensitively():
    classifier = RadiusClassifier([RadiusRule(category_key="Pier", radius_m=60, keywords=("WHARF",))])
    assert classifier.classify(PlaceDescriptor(name="Fisherman's Wharf")) == 60
    assert classifier.classify(PlaceDescriptor(category="PIER_39")) == 60


def test_invalid_rules_are_rejected():
    with pytest.raises(ValueError):
        RadiusClassifier([RadiusRule(category_key="x", radius_m=0, keywords=())])
    with pytest.raises(ValueError):
        RadiusClassifier([RadiusRule(category_key="  ", radius_m=10, keywords=())])


def test_thresholds_for_large_venue():
    t = proximity_thresholds(PlaceDescriptor(name="airport"))
    assert (t.near, t.far, t.arrival) == (150, 225, 300)


def test_thresholds_clamp_to_minimums_for_default_radius():
    t = proximity_thresholds(PlaceDescriptor(name="xyzzy_unmatched_venue"))
    assert (t.near, t.far, t.arrival) == (15, 25, 15)


def test_thresholds_round_halves_up():
    # 150 * 0.75 = 112.5 -> 113 (not banker's 112)
    t = proximity_thresholds(PlaceDescriptor(category="shopping_mall"))
    assert (t.near, t.far, t.arrival) == (75, 113, 150)
    # 35 * 0.5 = 17.5 -> 18
    t = proximity_thresholds(PlaceDescriptor(name="iglesia"))
    assert (t.near, t.far, t.arrival) == (18, 26, 35)


def test_plain_mapping_is_accepted():
    assert classify({"name": "Hospital General", "category": None}) == 100
    t = proximity_thresholds({"name": "airport"})
    assert t.arrival == 300


def test_malformed_mapping_falls_back_to_default():
    assert classify({"name": 123}) == 15
    assert classify({"types": "airport"}) == 15
    match = RadiusClassifier.from_settings(get_settings()).explain({"name": ["x"], "category": "airport"})
    assert match.kind == "default"
    assert proximity_thresholds({"description": object()}).arrival == 15


def test_rules_property_keeps_declaration_order():
    classifier = RadiusClassifier.from_settings(get_settings())
    keys = [rule.category_key for rule in classifier.rules]
    assert keys == [r.category_key for r in get_settings().proximity.radius_rules]
    assert classifier.default_radius_m == 15
    assert classifier.rules[0].as_dict()["radius_m"] == 300
