"""
Audio Parameters - Automation timelines for gain control.

An AudioParam holds a default value plus a time-ordered list of
automation events, following the Web Audio model:

    set_value_at_time(v, t)              - step to v at t
    linear_ramp_to_value_at_time(v, t)   - ramp linearly from the previous
                                           event to v, arriving at t
    cancel_scheduled_values(t)           - drop every event at or after t

Values are evaluated for whole render blocks at once with np.interp.

fade_param() is the one fade algorithm used everywhere: snapshot the
current value, cancel what was scheduled, and ramp from the snapshot.
Interrupting a fade half way therefore never makes the gain jump.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

import numpy as np


# History kept behind the clock for a renderer that runs late
RENDER_LAG_SECONDS = 1.0


class AutomationKind(Enum):
    SET = "set"
    RAMP = "ramp"


@dataclass(frozen=True)
class AutomationEvent:
    kind: AutomationKind
    time: float
    value: float


class AudioParam:
    """A controllable value with scheduled automation.

    Example:
        gain = AudioParam(0.0)
        gain.set_value_at_time(0.0, 1.0)
        gain.linear_ramp_to_value_at_time(0.5, 3.5)

        gain.value_at(2.25)   # 0.25
    """

    def __init__(self, default: float = 1.0, name: str = "gain"):
        self.name = name
        self._default = float(default)
        self._events: list[AutomationEvent] = []

    @property
    def default(self) -> float:
        return self._default

    @property
    def events(self) -> tuple[AutomationEvent, ...]:
        return tuple(self._events)

    def _insert(self, event: AutomationEvent) -> None:
        # Events at the same time keep insertion order
        index = len(self._events)
        while index > 0 and self._events[index - 1].time > event.time:
            index -= 1
        self._events.insert(index, event)

    def set_value_at_time(self, value: float, when: float) -> None:
        self._insert(AutomationEvent(AutomationKind.SET, float(when), float(value)))

    def linear_ramp_to_value_at_time(self, value: float, end_time: float) -> None:
        self._insert(AutomationEvent(AutomationKind.RAMP, float(end_time), float(value)))

    def cancel_scheduled_values(self, start_time: float) -> None:
        self._events = [e for e in self._events if e.time < start_time]

    def discard_before(self, when: float) -> None:
        """Forget history older than when, keeping the last event before it.

        That last event anchors any ramp still in progress.
        """
        older = [i for i, e in enumerate(self._events) if e.time < when]
        if len(older) > 1:
            del self._events[: older[-1]]

    def _breakpoints(self) -> tuple[np.ndarray, np.ndarray]:
        xs: list[float] = []
        ys: list[float] = []
        current = self._default

        for event in self._events:
            if event.kind is AutomationKind.SET:
                # Hold the previous value right up to the step
                hold = float(np.nextafter(event.time, -np.inf))
                if not xs or hold > xs[-1]:
                    xs.append(hold)
                    ys.append(current)
            if xs and event.time <= xs[-1]:
                ys[-1] = event.value
            else:
                xs.append(event.time)
                ys.append(event.value)
            current = event.value

        return np.asarray(xs, dtype=np.float64), np.asarray(ys, dtype=np.float64)

    def value_at(self, when: float) -> float:
        """Value at an instant."""
        if not self._events:
            return self._default
        xs, ys = self._breakpoints()
        return float(np.interp(when, xs, ys))

    def values(self, times: np.ndarray) -> np.ndarray:
        """Values at many instants (one per sample of a block)."""
        if not self._events:
            return np.full(len(times), self._default, dtype=np.float32)
        xs, ys = self._breakpoints()
        return np.interp(times, xs, ys).astype(np.float32)

    def is_ramping(self, when: float) -> bool:
        """True if automation is still scheduled after when."""
        return any(e.time > when for e in self._events)

    def final_value(self) -> float:
        """Value once all scheduled automation has completed."""
        return self._events[-1].value if self._events else self._default

    def __repr__(self) -> str:
        return f"AudioParam({self.name!r}, default={self._default}, events={len(self._events)})"


def fade_param(
    param: AudioParam,
    target: float,
    duration: float,
    now: float,
    start_value: float | None = None,
) -> None:
    """Fade a parameter to target over duration, starting at now.

    Args:
        param: Parameter to automate.
        target: Value to arrive at.
        duration: Ramp length in seconds (0 = step immediately).
        now: Current engine time.
        start_value: Force the ramp's starting value instead of the
            parameter's current value.
    """
    param.discard_before(now - RENDER_LAG_SECONDS)
    current = param.value_at(now) if start_value is None else float(start_value)
    param.cancel_scheduled_values(now)
    param.set_value_at_time(current, now)
    if duration > 0:
        param.linear_ramp_to_value_at_time(target, now + duration)
    else:
        param.set_value_at_time(target, now)


__all__ = ["RENDER_LAG_SECONDS", "AutomationKind", "AutomationEvent", "AudioParam", "fade_param"]
