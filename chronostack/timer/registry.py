"""Timer registry — owner of the timer, stack and preset collections.

Each collection is a tuple of frozen records.  Every command builds a new
tuple and swaps it in under one lock, then emits the matching
``*_changed`` signal with the new snapshot.  Readers never see a
half-applied change, and a scheduler batch (``commit``) replaces the whole
timer tuple in one step.

Commands addressed to an unknown id are silent no-ops.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import fields, replace
from typing import Any, Callable, Iterable

from PyQt6.QtCore import QObject, pyqtSignal

from ..errors import TimerStateError
from .models import (
    PhaseSource, PomodoroType, Preset, Timer, TimerKind, TimerStack, new_id,
)
from .phases import phase_label


logger = logging.getLogger(__name__)

# Fields ``patch`` never overwrites.
IMMUTABLE_FIELDS = frozenset({"id", "created_at", "stack_phases"})
_TIMER_FIELDS = frozenset(f.name for f in fields(Timer))


class TimerRegistry(QObject):
    """In-memory store of timers, stacks and presets.

    Signals
    -------
    timers_changed(timers: tuple[Timer, ...])
    stacks_changed(stacks: tuple[TimerStack, ...])
    presets_changed(presets: tuple[Preset, ...])
    """

    timers_changed = pyqtSignal(object)
    stacks_changed = pyqtSignal(object)
    presets_changed = pyqtSignal(object)

    def __init__(self, parent: QObject | None = None) -> None:
        super().__init__(parent)
        self._lock = threading.RLock()
        self._timers: tuple[Timer, ...] = ()
        self._stacks: tuple[TimerStack, ...] = ()
        self._presets: tuple[Preset, ...] = ()

    # ══════════════════════════════════════════════════════════════════
    #  SNAPSHOTS
    # ══════════════════════════════════════════════════════════════════

    @property
    def timers(self) -> tuple[Timer, ...]:
        return self._timers

    @property
    def stacks(self) -> tuple[TimerStack, ...]:
        return self._stacks

    @property
    def presets(self) -> tuple[Preset, ...]:
        return self._presets

    def get(self, timer_id: str) -> Timer | None:
        for timer in self._timers:
            if timer.id == timer_id:
                return timer
        return None

    def get_stack(self, stack_id: str) -> TimerStack | None:
        for stack in self._stacks:
            if stack.id == stack_id:
                return stack
        return None

    # ══════════════════════════════════════════════════════════════════
    #  TIMER COMMANDS
    # ══════════════════════════════════════════════════════════════════

    def create(
        self,
        kind: TimerKind,
        duration: float,
        label: str,
        note: str | None = None,
        phase_source: PhaseSource | None = None,
    ) -> str:
        """Add a stopped timer and return its id.

        With a ``phase_source`` the timer starts on the first phase: its
        duration, label and (absent an explicit note) note come from it.
        """
        extra: dict[str, Any] = {}
        if phase_source is not None:
            first = phase_source.phases[0]
            duration = first.duration
            label = phase_label(phase_source.stack_name, first, 0)
            if note is None:
                note = first.description or None
            extra = {
                "stack_id": phase_source.stack_id,
                "stack_name": phase_source.stack_name,
                "stack_phases": tuple(phase_source.phases),
                "current_phase_index": 0,
            }

        counts_down = kind.counts_down
        timer = Timer(
            id=new_id(),
            kind=kind,
            label=label,
            initial_duration=float(duration) if counts_down else 0.0,
            remaining_time=float(duration) if counts_down else 0.0,
            elapsed_time=0.0,
            note=note,
            pomodoro_type=(
                PomodoroType.FOCUS if kind is TimerKind.POMODORO else None
            ),
            **extra,
        )
        with self._lock:
            self._timers = self._timers + (timer,)
            snapshot = self._timers
        logger.debug("created %s timer %s (%r)", kind.name, timer.id, label)
        self.timers_changed.emit(snapshot)
        return timer.id

    def toggle(self, timer_id: str) -> None:
        """Flip ``is_running``.  Completed timers stay stopped."""
        self._update(
            timer_id,
            lambda t: t if t.is_completed else replace(
                t, is_running=not t.is_running,
            ),
        )

    def reset(self, timer_id: str) -> None:
        """Rewind the current phase (or the whole timer) and stop it."""
        self._update(
            timer_id,
            lambda t: replace(
                t,
                remaining_time=t.initial_duration,
                elapsed_time=0.0,
                is_running=False,
                is_completed=False,
            ),
        )

    def delete(self, timer_id: str) -> None:
        with self._lock:
            remaining = tuple(t for t in self._timers if t.id != timer_id)
            if len(remaining) == len(self._timers):
                return
            self._timers = remaining
        logger.debug("deleted timer %s", timer_id)
        self.timers_changed.emit(remaining)

    def patch(self, timer_id: str, **changes: Any) -> None:
        """Merge ``changes`` into a timer.

        ``id``, ``created_at`` and ``stack_phases`` are ignored.  A patch
        that leaves the timer both running and completed is normalized to
        completed; a completed countdown is pinned to zero remaining.
        An unknown id is a no-op.  For a known id, unknown fields, a
        decreasing phase index, or any other illegal result raise
        ``TimerStateError``.
        """
        changes = {
            k: v for k, v in changes.items() if k not in IMMUTABLE_FIELDS
        }
        if changes:
            self._update(timer_id, lambda t: _merge(t, changes))

    def commit(self, timers: Iterable[Timer]) -> None:
        """Swap in a whole new timer tuple (one scheduler tick)."""
        with self._lock:
            self._timers = tuple(timers)
            snapshot = self._timers
        self.timers_changed.emit(snapshot)

    def transact(
        self, fn: Callable[[tuple[Timer, ...]], tuple[Timer, ...]],
    ) -> tuple[Timer, ...]:
        """Compute and swap the timer tuple while holding the lock.

        ``fn`` receives the current snapshot and returns its replacement,
        so a tick cannot drop a timer created between read and write.
        """
        with self._lock:
            self._timers = tuple(fn(self._timers))
            snapshot = self._timers
        self.timers_changed.emit(snapshot)
        return snapshot

    def replace_all(
        self,
        timers: Iterable[Timer] = (),
        stacks: Iterable[TimerStack] = (),
        presets: Iterable[Preset] = (),
    ) -> None:
        """Seed every collection, e.g. from storage at start-up."""
        with self._lock:
            self._timers = tuple(timers)
            self._stacks = tuple(stacks)
            self._presets = tuple(presets)
        self.timers_changed.emit(self._timers)
        self.stacks_changed.emit(self._stacks)
        self.presets_changed.emit(self._presets)

    # ══════════════════════════════════════════════════════════════════
    #  STACKS & PRESETS
    # ══════════════════════════════════════════════════════════════════

    def add_stack(self, stack: TimerStack) -> None:
        with self._lock:
            self._stacks = self._stacks + (stack,)
            snapshot = self._stacks
        self.stacks_changed.emit(snapshot)

    def remove_stack(self, stack_id: str) -> None:
        """Forget a stack.  Timers already run from it keep their phases."""
        with self._lock:
            remaining = tuple(s for s in self._stacks if s.id != stack_id)
            if len(remaining) == len(self._stacks):
                return
            self._stacks = remaining
        self.stacks_changed.emit(remaining)

    def add_preset(self, preset: Preset) -> None:
        with self._lock:
            self._presets = self._presets + (preset,)
            snapshot = self._presets
        self.presets_changed.emit(snapshot)

    def remove_preset(self, label: str) -> None:
        with self._lock:
            remaining = tuple(p for p in self._presets if p.label != label)
            if len(remaining) == len(self._presets):
                return
            self._presets = remaining
        self.presets_changed.emit(remaining)

    # ══════════════════════════════════════════════════════════════════
    #  INTERNAL
    # ══════════════════════════════════════════════════════════════════

    def _update(self, timer_id: str, fn: Callable[[Timer], Timer]) -> None:
        with self._lock:
            for index, timer in enumerate(self._timers):
                if timer.id == timer_id:
                    break
            else:
                return
            updated = fn(timer)
            if updated is timer:
                return
            timers = list(self._timers)
            timers[index] = updated
            self._timers = tuple(timers)
            snapshot = self._timers
        self.timers_changed.emit(snapshot)


def _merge(timer: Timer, changes: dict[str, Any]) -> Timer:
    unknown = set(changes) - _TIMER_FIELDS
    if unknown:
        raise TimerStateError(
            f"unknown timer field(s): {', '.join(sorted(unknown))}"
        )

    merged = {f.name: getattr(timer, f.name) for f in fields(Timer)}
    merged.update(changes)

    old_index = timer.current_phase_index
    new_index = merged["current_phase_index"]
    if old_index is not None and (new_index is None or new_index < old_index):
        raise TimerStateError(
            f"timer {timer.id} phase index cannot move back "
            f"from {old_index} to {new_index}"
        )

    if merged["is_completed"]:
        merged["is_running"] = False
        if merged["kind"].counts_down:
            merged["remaining_time"] = 0.0
    return Timer(**merged)
