"""Phase-stack engine.

Pure functions that turn a ``TimerStack`` into the arguments for a new
timer (``materialize``) and compute the next state of a stack timer whose
current phase has run out (``advance``).

Sequential stacks become one timer that walks its phases in order and
stays running across phase boundaries.  Recurring stacks are flattened into
a single countdown of the summed duration; they never loop on their own.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Iterable

from ..errors import InvalidDurationError, InvalidStackError, PhaseStateError
from .models import (
    PhaseSource, StackedTimer, Timer, TimerKind, TimerStack, new_id,
)


LABEL_SEPARATOR = " - "


@dataclass(frozen=True)
class Materialized:
    """Arguments for ``TimerRegistry.create`` produced from a stack."""

    kind: TimerKind
    duration: float
    label: str
    note: str | None
    phase_source: PhaseSource | None = None


# ── labels ────────────────────────────────────────────────────────────────


def phase_name(phase: StackedTimer, index: int) -> str:
    """The phase's note, or ``Phase N`` (1-based) when it has none."""
    return phase.note or f"Phase {index + 1}"


def phase_label(stack_name: str, phase: StackedTimer, index: int) -> str:
    return f"{stack_name}{LABEL_SEPARATOR}{phase_name(phase, index)}"


def stack_name_of(timer: Timer) -> str:
    """Name of the stack a timer was run from.

    Timers saved before the name was stored on its own only have it as
    the label prefix, so fall back to that.
    """
    if timer.stack_name is not None:
        return timer.stack_name
    return timer.label.split(LABEL_SEPARATOR)[0]


def recurring_note(stack: TimerStack) -> str:
    lines = [
        f"{i + 1}. {phase_name(phase, i)} ({int(phase.duration // 60)}m)"
        for i, phase in enumerate(stack.timers)
    ]
    return "Recurring Stack\n\n" + "\n".join(lines)


# ── engine ────────────────────────────────────────────────────────────────


def advance(timer: Timer) -> Timer:
    """Next state of a stack timer whose current phase has reached zero."""
    if timer.stack_phases is None or timer.current_phase_index is None:
        raise PhaseStateError(f"timer {timer.id} has no stack phases")

    next_index = timer.current_phase_index + 1
    if next_index >= len(timer.stack_phases):
        return replace(
            timer, remaining_time=0.0, is_completed=True, is_running=False,
        )

    phase = timer.stack_phases[next_index]
    return replace(
        timer,
        label=phase_label(stack_name_of(timer), phase, next_index),
        note=phase.description or None,
        initial_duration=phase.duration,
        remaining_time=phase.duration,
        current_phase_index=next_index,
        is_completed=False,
        is_running=True,
    )


def materialize(stack: TimerStack) -> Materialized:
    if stack.is_recurring:
        return Materialized(
            kind=TimerKind.COUNTDOWN,
            duration=stack.total_duration,
            label=stack.name,
            note=recurring_note(stack),
        )

    first = stack.timers[0]
    return Materialized(
        kind=TimerKind.COUNTDOWN,
        duration=first.duration,
        label=phase_label(stack.name, first, 0),
        note=first.description or None,
        phase_source=PhaseSource(
            stack_id=stack.id,
            stack_name=stack.name,
            phases=tuple(stack.timers),
        ),
    )


# ── building stacks ───────────────────────────────────────────────────────


def build_stack(
    name: str,
    phases: Iterable[tuple[float, str | None, str | None]],
    is_recurring: bool = False,
) -> TimerStack:
    """Assemble a stack from ``(duration, name, description)`` entries.

    Unnamed phases get ``Phase N``; ``order`` follows list position.
    """
    name = name.strip()
    if not name:
        raise InvalidStackError("a stack needs a name")

    built: list[StackedTimer] = []
    for index, (duration, note, description) in enumerate(phases):
        if duration <= 0:
            raise InvalidDurationError(
                f"phase {index + 1} of {name!r} must be longer than 0 s"
            )
        built.append(StackedTimer(
            id=new_id(),
            duration=float(duration),
            note=note or f"Phase {index + 1}",
            description=description or None,
            order=index,
        ))
    if not built:
        raise InvalidStackError(f"stack {name!r} has no phases")

    return TimerStack(
        id=new_id(),
        name=name,
        timers=tuple(built),
        is_recurring=is_recurring,
    )
