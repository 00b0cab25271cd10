"""
Heading sources.

A heading source pushes compass readings to subscribers:

    unsubscribe = source.subscribe(callback, on_error=handle_error)
    ...
    unsubscribe()  # no callback invocations after this returns

`on_error` is optional and receives the exception when the stream breaks (sensor
failure, garbage values). Readings may resume afterwards.

Sources are plain objects handed to whoever needs them (no module-level singleton), so
tests can drive them directly and two guidance sessions never share hidden state.
"""

from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass, field
from typing import Callable, Protocol

from travelmode.guidance.compass import alpha_to_heading

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HeadingReading:
    """One compass sample; `heading_deg` is a compass bearing (0 = north, clockwise)."""

    heading_deg: float
    accuracy: float = 0.0
    timestamp: float = field(default_factory=time.time)


HeadingCallback = Callable[[HeadingReading], None]
ErrorCallback = Callable[[Exception], None]
Unsubscribe = Callable[[], None]


class HeadingSource(Protocol):
    def subscribe(self, callback: HeadingCallback, on_error: ErrorCallback | None = None) -> Unsubscribe: ...


@dataclass(eq=False)
class _Subscription:
    callback: HeadingCallback
    on_error: ErrorCallback | None = None


class _CallbackRegistry:
    """Subscriber list with idempotent, per-callback unsubscribe handles.

    One failing subscriber is logged and skipped; the others still get the event.
    """

    def __init__(self) -> None:
        self._subs: list[_Subscription] = []

    def add(self, callback: HeadingCallback, on_error: ErrorCallback | None = None) -> Unsubscribe:
        sub = _Subscription(callback, on_error)
        self._subs.append(sub)

        def unsubscribe() -> None:
            if sub in self._subs:
                self._subs.remove(sub)

        return unsubscribe

    def emit(self, reading: HeadingReading) -> None:
        # Snapshot: a callback may unsubscribe itself (or others) while we iterate.
        for sub in list(self._subs):
            if sub not in self._subs:
                continue
            try:
                sub.callback(reading)
            except Exception:
                logger.warning("Heading subscriber failed", exc_info=True)

    def emit_error(self, error: Exception) -> None:
        for sub in list(self._subs):
            if sub not in self._subs or sub.on_error is None:
                continue
            try:
                sub.on_error(error)
            except Exception:
                logger.warning("Heading error handler failed", exc_info=True)

    def __len__(self) -> int:
        return len(self._subs)


class DeviceOrientationSource:
    """Adapts raw device-orientation events (`alpha`) into compass readings.

    The host runtime feeds events in through `push_alpha`; readings with no alpha
    (sensor not ready) are dropped. A non-finite alpha is reported to subscribers as
    an error instead of a reading.
    """

    def __init__(self) -> None:
        self._registry = _CallbackRegistry()

    @property
    def subscriber_count(self) -> int:
        return len(self._registry)

    def subscribe(self, callback: HeadingCallback, on_error: ErrorCallback | None = None) -> Unsubscribe:
        return self._registry.add(callback, on_error)

    def push_alpha(self, alpha: float | None, *, accuracy: float = 0.0, timestamp: float | None = None) -> None:
        if alpha is None:
            return
        if not math.isfinite(alpha):
            self.push_error(ValueError(f"non-finite orientation alpha: {alpha!r}"))
            return
        reading = HeadingReading(
            heading_deg=alpha_to_heading(alpha),
            accuracy=accuracy,
            timestamp=time.time() if timestamp is None else timestamp,
        )
        self._registry.emit(reading)

    def push_error(self, error: Exception) -> None:
        """Report a broken orientation stream (permission revoked, sensor fault)."""
        logger.warning("Orientation source error: %s", error)
        self._registry.emit_error(error)


class StaticHeadingSource:
    """A heading source whose value is set explicitly (CLI, tests, simulators)."""

    def __init__(self, heading_deg: float | None = None) -> None:
        self._registry = _CallbackRegistry()
        self._heading = heading_deg

    @property
    def subscriber_count(self) -> int:
        return len(self._registry)

    def subscribe(self, callback: HeadingCallback, on_error: ErrorCallback | None = None) -> Unsubscribe:
        unsubscribe = self._registry.add(callback, on_error)
        if self._heading is not None:
            callback(HeadingReading(heading_deg=self._heading))
        return unsubscribe

    def set_heading(self, heading_deg: float) -> None:
        self._heading = heading_deg
        self._registry.emit(HeadingReading(heading_deg=heading_deg))

    def push_error(self, error: Exception) -> None:
        self._heading = None
        self._registry.emit_error(error)
