import math

from travelmode.config.settings import get_settings
from travelmode.domain.models import GeoPoint, TargetPlace
from travelmode.guidance.heading import DeviceOrientationSource, HeadingReading, StaticHeadingSource
from travelmode.guidance.session import GuidanceSession

USER = GeoPoint(lat=0.0, lng=0.0)


def _target(distance_m: float = 100.0, **kwargs) -> TargetPlace:
    # Due east of USER, so the target bearing is 90°.
    payload = {"id": "p1", "name": "Cafe Sol", "lat": 0.0, "lng": 0.0009, "distance_m": distance_m}
    payload.update(kwargs)
    return TargetPlace(**payload)


def _session(source, updates: list | None = None) -> GuidanceSession:
    on_update = updates.append if updates is not None else None
    return GuidanceSession(source, settings=get_settings().guidance, on_update=on_update)


def test_missing_compass_reports_unsupported_without_error():
    session = _session(None)
    assert session.supported is False
    assert session.activate() is False
    session.set_target(_target())
    session.update_location(USER)
    assert session.result is None


def test_heading_updates_drive_guidance():
    source = DeviceOrientationSource()
    session = _session(source)
    assert session.activate() is True
    session.set_target(_target())
    session.update_location(USER)
    # No heading yet.
    assert session.result is None

    source.push_alpha(270)  # heading 90: facing the target
    assert session.result is not None
    assert session.result.turn_direction == "straight"
    assert session.result.cardinal_direction == "E"

    source.push_alpha(0)  # heading 0: target is 90° to the right
    assert session.result.turn_direction == "right"
    assert session.result.guidance_text == "Turn 90° right - 100m"

    source.push_alpha(None)  # sensor not ready: ignored
    assert session.result.turn_direction == "right"


def test_no_readings_after_deactivation():
    source = DeviceOrientationSource()
    updates: list = []
    session = _session(source, updates)
    session.activate()
    session.set_target(_target())
    session.update_location(USER)
    source.push_alpha(0)
    assert source.subscriber_count == 1
    assert updates and updates[-1] is not None

    session.deactivate()
    assert source.subscriber_count == 0
    assert session.result is None
    seen = len(updates)

    source.push_alpha(270)
    assert len(updates) == seen
    assert session.result is None
    assert session.state.heading_deg is None


def test_reactivation_registers_again():
    source = DeviceOrientationSource()
    session = _session(source)
    session.activate()
    session.deactivate()
    session.deactivate()  # idempotent
    assert session.activate() is True
    assert source.subscriber_count == 1
    assert session.activate() is True
    assert source.subscriber_count == 1


def test_guidance_only_inside_band():
    source = StaticHeadingSource(0)
    session = _session(source)
    session.activate()
    session.set_target(_target(distance_m=150.0))
    session.update_location(USER)
    assert session.result is None

    session.update_location(USER, distance_m=149.0)
    assert session.result is not None
    assert session.result.distance_m == 149.0

    session.update_location(USER, distance_m=400.0)
    assert session.result is None


def test_target_without_coordinates_yields_no_guidance():
    source = StaticHeadingSource(0)
    session = _session(source)
    session.activate()
    session.set_target(_target(lat=None, lng=None))
    session.update_location(USER)
    assert session.result is None


def test_changing_target_resets_guidance():
    source = StaticHeadingSource(0)
    updates: list = []
    session = _session(source, updates)
    session.activate()
    session.set_target(_target())
    session.update_location(USER)
    assert session.result is not None

    session.set_target(None)
    assert session.result is None
    assert updates[-1] is None

    # Due north of USER; facing north is straight ahead.
    session.set_target(TargetPlace(name="North Gate", lat=0.0009, lng=0.0, distance_m=100.0))
    assert session.result.turn_direction == "straight"


def test_subscribe_failure_degrades_silently():
    class BrokenSource:
        def subscribe(self, callback, on_error=None):
            raise RuntimeError("orientation permission denied")

    session = _session(BrokenSource())
    assert session.activate() is False
    assert session.active is False
    assert session.result is None


def test_heading_error_after_activation_drops_guidance():
    source = StaticHeadingSource(0)
    session = _session(source)
    session.activate()
    session.set_target(_target())
    session.update_location(USER)
    assert session.result is not None

    session.heading_unavailable()
    assert session.result is None

    source.set_heading(90)
    assert session.result.turn_direction == "straight"


def test_sessions_do_not_share_state():
    a_source = StaticHeadingSource(0)
    b_source = StaticHeadingSource(90)
    a = _session(a_source)
    b = _session(b_source)
    for s in (a, b):
        s.activate()
        s.set_target(_target())
        s.update_location(USER)
    assert a.result.turn_direction == "right"
    assert b.result.turn_direction == "straight"


def test_callback_may_unsubscribe_during_emit():
    source = DeviceOrientationSource()
    seen: list[HeadingReading] = []
    handles = {}

    def once(reading: HeadingReading) -> None:
        seen.append(reading)
        handles["once"]()

    handles["once"] = source.subscribe(once)
    source.push_alpha(10)
    source.push_alpha(20)
    assert [r.heading_deg for r in seen] == [350]
    assert source.subscriber_count == 0


def test_non_finite_alpha_drops_guidance_without_raising():
    source = DeviceOrientationSource()
    updates: list = []
    session = _session(source, updates)
    session.activate()
    session.set_target(_target())
    session.update_location(USER)
    source.push_alpha(0)
    assert session.result is not None

    source.push_alpha(math.nan)
    assert session.result is None
    assert updates[-1] is None
    assert session.state.heading_deg is None

    source.push_alpha(math.inf)
    assert session.result is None

    source.push_alpha(270)
    assert session.result.turn_direction == "straight"


def test_source_error_reaches_active_session_only():
    source = DeviceOrientationSource()
    session = _session(source)
    session.activate()
    session.set_target(_target())
    session.update_location(USER)
    source.push_alpha(0)

    source.push_error(RuntimeError("sensor fault"))
    assert session.result is None

    session.deactivate()
    source.push_error(RuntimeError("sensor fault"))
    assert session.result is None
    assert source.subscriber_count == 0


def test_failing_subscriber_does_not_starve_others():
    source = DeviceOrientationSource()
    seen: list[float] = []

    def broken(reading: HeadingReading) -> None:
        raise RuntimeError("boom")

    def broken_error_handler(error: Exception) -> None:
        raise RuntimeError("boom")

    source.subscribe(broken, on_error=broken_error_handler)
    source.subscribe(lambda r: seen.append(r.heading_deg))

    source.push_alpha(90)
    source.push_alpha(math.nan)
    assert seen == [270]
