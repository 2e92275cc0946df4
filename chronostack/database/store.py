"""JSON codec between the timer model and the keyed-record gateway.

Records use the camelCase keys of the web app this one replaces, so a
saved ``chronos_timers`` blob looks like::

    [{"id": "...", "type": "TIMER", "label": "Timer 1",
      "initialDuration": 300, "remainingTime": 300, "elapsedTime": 0,
      "isRunning": false, "isCompleted": false, "createdAt": 1700000000000}]

Loading never raises: unreadable timer data falls back to one default
countdown, unreadable stacks or presets to an empty collection.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Callable, Iterable

from . import db
from ..errors import ChronoStackError
from ..timer.models import (
    PomodoroType, Preset, StackedTimer, Timer, TimerKind, TimerStack, new_id,
)


logger = logging.getLogger(__name__)

TIMERS_KEY = "chronos_timers"
STACKS_KEY = "chronos_stacks"
PRESETS_KEY = "chronos_presets"

DEFAULT_TIMER_LABEL = "Timer 1"
DEFAULT_TIMER_DURATION = 300


# ── encode ────────────────────────────────────────────────────────────────


def _drop_none(data: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in data.items() if v is not None}


def phase_to_dict(phase: StackedTimer) -> dict[str, Any]:
    return _drop_none({
        "id": phase.id,
        "duration": phase.duration,
        "note": phase.note,
        "description": phase.description,
        "order": phase.order,
    })


def timer_to_dict(timer: Timer) -> dict[str, Any]:
    return _drop_none({
        "id": timer.id,
        "type": timer.kind.value,
        "label": timer.label,
        "initialDuration": timer.initial_duration,
        "remainingTime": timer.remaining_time,
        "elapsedTime": timer.elapsed_time,
        "isRunning": timer.is_running,
        "isCompleted": timer.is_completed,
        "createdAt": timer.created_at,
        "pomodoroType": timer.pomodoro_type.value if timer.pomodoro_type else None,
        "note": timer.note,
        "stackId": timer.stack_id,
        "stackName": timer.stack_name,
        "stackPhases": (
            [phase_to_dict(p) for p in timer.stack_phases]
            if timer.stack_phases is not None else None
        ),
        "currentPhaseIndex": timer.current_phase_index,
    })


def stack_to_dict(stack: TimerStack) -> dict[str, Any]:
    return {
        "id": stack.id,
        "name": stack.name,
        "timers": [phase_to_dict(p) for p in stack.timers],
        "isRecurring": stack.is_recurring,
        "createdAt": stack.created_at,
    }


def preset_to_dict(preset: Preset) -> dict[str, Any]:
    return _drop_none({
        "label": preset.label,
        "duration": preset.duration,
        "type": preset.kind.value,
        "note": preset.note,
    })


# ── decode ────────────────────────────────────────────────────────────────


def phase_from_dict(data: dict[str, Any]) -> StackedTimer:
    return StackedTimer(
        id=str(data["id"]),
        duration=float(data["duration"]),
        note=data.get("note"),
        description=data.get("description"),
        order=int(data["order"]),
    )


def timer_from_dict(data: dict[str, Any]) -> Timer:
    phases = data.get("stackPhases")
    pomodoro = data.get("pomodoroType")
    index = data.get("currentPhaseIndex")
    kind = TimerKind(data["type"])
    remaining = float(data.get("remainingTime", 0))
    completed = bool(data.get("isCompleted", False))
    if completed and kind.counts_down:
        remaining = 0.0
    return Timer(
        id=str(data["id"]),
        kind=kind,
        label=str(data["label"]),
        initial_duration=float(data["initialDuration"]),
        remaining_time=remaining,
        elapsed_time=float(data.get("elapsedTime", 0)),
        # the web app could save a completed timer as running; completed wins
        is_running=bool(data.get("isRunning", False)) and not completed,
        is_completed=completed,
        created_at=int(data["createdAt"]),
        note=data.get("note"),
        pomodoro_type=PomodoroType(pomodoro) if pomodoro else None,
        stack_id=data.get("stackId"),
        stack_name=data.get("stackName"),
        stack_phases=(
            tuple(phase_from_dict(p) for p in phases)
            if phases is not None else None
        ),
        current_phase_index=int(index) if index is not None else None,
    )


def stack_from_dict(data: dict[str, Any]) -> TimerStack:
    return TimerStack(
        id=str(data["id"]),
        name=str(data["name"]),
        timers=tuple(phase_from_dict(p) for p in data["timers"]),
        is_recurring=bool(data.get("isRecurring", False)),
        created_at=int(data["createdAt"]),
    )


def preset_from_dict(data: dict[str, Any]) -> Preset:
    return Preset(
        label=str(data["label"]),
        duration=float(data["duration"]),
        kind=TimerKind(data["type"]),
        note=data.get("note"),
    )


def default_timers(
    label: str = DEFAULT_TIMER_LABEL,
    duration: float = DEFAULT_TIMER_DURATION,
) -> tuple[Timer, ...]:
    """The single stopped countdown used when nothing usable is stored."""
    return (Timer(
        id=new_id(),
        kind=TimerKind.COUNTDOWN,
        label=label,
        initial_duration=float(duration),
        remaining_time=float(duration),
    ),)


# ── store ─────────────────────────────────────────────────────────────────


class TimerStore:
    """Loads and saves the three collections through ``db.load``/``db.save``."""

    def __init__(
        self,
        *,
        default_label: str = DEFAULT_TIMER_LABEL,
        default_duration: float = DEFAULT_TIMER_DURATION,
    ) -> None:
        self._default_label = default_label
        self._default_duration = default_duration

    def load_timers(self) -> tuple[Timer, ...]:
        timers = self._load_list(TIMERS_KEY, timer_from_dict)
        if not timers:
            logger.info("no stored timers, starting with %r", self._default_label)
            return default_timers(self._default_label, self._default_duration)
        return timers

    def load_stacks(self) -> tuple[TimerStack, ...]:
        return self._load_list(STACKS_KEY, stack_from_dict)

    def load_presets(self) -> tuple[Preset, ...]:
        return self._load_list(PRESETS_KEY, preset_from_dict)

    def save_timers(self, timers: Iterable[Timer]) -> None:
        timers = list(timers)
        if not timers:
            return  # an empty list would reload as the default timer anyway
        db.save(TIMERS_KEY, json.dumps([timer_to_dict(t) for t in timers]))

    def save_stacks(self, stacks: Iterable[TimerStack]) -> None:
        db.save(STACKS_KEY, json.dumps([stack_to_dict(s) for s in stacks]))

    def save_presets(self, presets: Iterable[Preset]) -> None:
        db.save(PRESETS_KEY, json.dumps([preset_to_dict(p) for p in presets]))

    def _load_list(self, key: str, decode: Callable[[dict], Any]) -> tuple:
        blob = db.load(key)
        if not blob:
            return ()
        try:
            data = json.loads(blob)
            if not isinstance(data, list):
                raise TypeError(f"expected a list, got {type(data).__name__}")
            return tuple(self._decode_items(key, decode, data))
        except (ValueError, TypeError, KeyError, AttributeError) as exc:
            logger.warning("discarding unreadable %s record: %s", key, exc)
            return ()

    @staticmethod
    def _decode_items(
        key: str, decode: Callable[[dict], Any], items: list,
    ) -> list:
        decoded = []
        for position, item in enumerate(items):
            try:
                decoded.append(decode(item))
            except ChronoStackError as exc:
                logger.warning("skipping %s item %d: %s", key, position, exc)
        return decoded
