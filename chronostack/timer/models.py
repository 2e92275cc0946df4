"""Data model for timers, stack phases, stacks and presets.

All records are frozen dataclasses.  The registry replaces a record with
``dataclasses.replace`` instead of mutating it, so any tuple of timers
handed out is a stable snapshot.

Timer invariants (checked in ``Timer.__post_init__``)
-----------------------------------------------------
- never running and completed at the same time
- a completed countdown has ``remaining_time == 0``
- times are never negative
- only countdown-style timers carry ``stack_phases``
- ``current_phase_index`` is set iff ``stack_phases`` is, and indexes it
"""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field
from enum import Enum

from ..errors import TimerStateError


# ── enums ─────────────────────────────────────────────────────────────────


class TimerKind(Enum):
    COUNTDOWN = "TIMER"
    STOPWATCH = "STOPWATCH"
    POMODORO = "POMODORO"

    @property
    def counts_down(self) -> bool:
        return self is not TimerKind.STOPWATCH


class PomodoroType(Enum):
    FOCUS = "FOCUS"
    SHORT_BREAK = "SHORT_BREAK"
    LONG_BREAK = "LONG_BREAK"


# ── helpers ───────────────────────────────────────────────────────────────

_last_created_at = 0


def new_id() -> str:
    return str(uuid.uuid4())


def now_ms() -> int:
    """Epoch milliseconds, strictly increasing within this process."""
    global _last_created_at
    stamp = max(int(time.time() * 1000), _last_created_at + 1)
    _last_created_at = stamp
    return stamp


# ── phases & stacks ───────────────────────────────────────────────────────


@dataclass(frozen=True)
class StackedTimer:
    """One phase of a stack."""

    id: str
    duration: float  # seconds
    note: str | None = None  # phase name
    description: str | None = None
    order: int = 0


@dataclass(frozen=True)
class TimerStack:
    id: str
    name: str
    timers: tuple[StackedTimer, ...]
    is_recurring: bool = False
    created_at: int = field(default_factory=now_ms)

    def __post_init__(self) -> None:
        if not self.timers:
            raise TimerStateError(f"stack {self.name!r} has no phases")
        for index, phase in enumerate(self.timers):
            if phase.order != index:
                raise TimerStateError(
                    f"phase {phase.id!r} has order {phase.order}, "
                    f"expected {index}"
                )

    @property
    def total_duration(self) -> float:
        return sum(phase.duration for phase in self.timers)


@dataclass(frozen=True)
class PhaseSource:
    """What a sequential stack hands to a new timer."""

    stack_id: str
    stack_name: str
    phases: tuple[StackedTimer, ...]


# ── timer ─────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class Timer:
    id: str
    kind: TimerKind
    label: str
    initial_duration: float
    remaining_time: float = 0.0
    elapsed_time: float = 0.0
    is_running: bool = False
    is_completed: bool = False
    created_at: int = field(default_factory=now_ms)
    note: str | None = None
    pomodoro_type: PomodoroType | None = None
    stack_id: str | None = None
    stack_name: str | None = None
    stack_phases: tuple[StackedTimer, ...] | None = None
    current_phase_index: int | None = None

    def __post_init__(self) -> None:
        if self.is_running and self.is_completed:
            raise TimerStateError(f"timer {self.id} is running and completed")
        if self.remaining_time < 0 or self.elapsed_time < 0:
            raise TimerStateError(f"timer {self.id} has a negative time")
        if (
            self.is_completed
            and self.kind.counts_down
            and self.remaining_time != 0
        ):
            raise TimerStateError(
                f"completed timer {self.id} has time remaining"
            )
        if self.stack_phases is None:
            if self.current_phase_index is not None:
                raise TimerStateError(
                    f"timer {self.id} has a phase index but no phases"
                )
            return
        if not self.kind.counts_down:
            raise TimerStateError("a stopwatch cannot carry stack phases")
        if not self.stack_phases:
            raise TimerStateError(f"timer {self.id} has an empty phase list")
        index = self.current_phase_index
        if index is None or not 0 <= index < len(self.stack_phases):
            raise TimerStateError(
                f"timer {self.id} phase index {index} out of range"
            )

    @property
    def has_phases(self) -> bool:
        return self.stack_phases is not None

    @property
    def current_phase(self) -> StackedTimer | None:
        if self.stack_phases is None or self.current_phase_index is None:
            return None
        return self.stack_phases[self.current_phase_index]


# ── presets ───────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class Preset:
    label: str
    duration: float  # seconds
    kind: TimerKind
    note: str | None = None


PRESETS: tuple[Preset, ...] = (
    Preset("Pomodoro", 25 * 60, TimerKind.POMODORO),
    Preset("Short Break", 5 * 60, TimerKind.POMODORO),
    Preset("Long Break", 15 * 60, TimerKind.POMODORO),
    Preset("1 Hour", 60 * 60, TimerKind.COUNTDOWN),
    Preset("3 Hours", 3 * 60 * 60, TimerKind.COUNTDOWN),
    Preset("Stopwatch", 0, TimerKind.STOPWATCH),
)
