"""Action API — what the window and keyboard shortcuts call.

Thin orchestration over the registry and the phase engine.  Durations are
validated here, before anything reaches the registry, and every mutation
is snapshotted to the attached ``TimerStore`` (if any).
"""

from __future__ import annotations

import logging
from typing import Any

from PyQt6.QtCore import QObject, pyqtSignal

from .database.store import TimerStore
from .errors import InvalidDurationError
from .timer.models import PhaseSource, Preset, Timer, TimerKind, TimerStack
from .timer.phases import materialize
from .timer.registry import TimerRegistry


logger = logging.getLogger(__name__)


class TimerActions(QObject):
    """Facade over ``TimerRegistry`` for UI and keyboard callers.

    Signals
    -------
    stack_started(timer_id: str)
        Emitted after ``run_stack`` created and started a timer.
    """

    stack_started = pyqtSignal(str)

    def __init__(
        self,
        registry: TimerRegistry,
        store: TimerStore | None = None,
        parent: QObject | None = None,
    ) -> None:
        super().__init__(parent)
        self._registry = registry
        self._store = store

    @property
    def registry(self) -> TimerRegistry:
        return self._registry

    # ══════════════════════════════════════════════════════════════════
    #  TIMERS
    # ══════════════════════════════════════════════════════════════════

    def add_timer(
        self,
        kind: TimerKind,
        duration_seconds: float,
        label: str,
        note: str | None = None,
        phase_source: PhaseSource | None = None,
    ) -> str:
        """Create a stopped timer.

        Countdown and pomodoro timers need a positive duration; a
        stopwatch ignores it.  Raises ``InvalidDurationError`` otherwise.
        """
        if phase_source is not None:
            for phase in phase_source.phases:
                if phase.duration <= 0:
                    raise InvalidDurationError(
                        f"phase {phase.order + 1} must be longer than 0 s"
                    )
        elif kind.counts_down and duration_seconds <= 0:
            raise InvalidDurationError(
                f"{label!r} needs a duration longer than 0 s"
            )
        timer_id = self._registry.create(
            kind, duration_seconds, label, note, phase_source,
        )
        self._save_timers()
        return timer_id

    def add_from_preset(self, preset: Preset) -> str:
        return self.add_timer(preset.kind, preset.duration, preset.label, preset.note)

    def toggle_timer(self, timer_id: str) -> None:
        self._registry.toggle(timer_id)
        self._save_timers()

    def reset_timer(self, timer_id: str) -> None:
        self._registry.reset(timer_id)
        self._save_timers()

    def delete_timer(self, timer_id: str) -> None:
        self._registry.delete(timer_id)
        self._save_timers()

    def update_timer(self, timer_id: str, **changes: Any) -> None:
        self._registry.patch(timer_id, **changes)
        self._save_timers()

    # ── keyboard targets ──────────────────────────────────────────────

    def shortcut_target(self) -> Timer | None:
        """The running timer, else the first one, else None."""
        timers = self._registry.timers
        for timer in timers:
            if timer.is_running:
                return timer
        return timers[0] if timers else None

    def toggle_active(self) -> None:
        target = self.shortcut_target()
        if target is not None:
            self.toggle_timer(target.id)

    def reset_active(self) -> None:
        target = self.shortcut_target()
        if target is not None:
            self.reset_timer(target.id)

    # ══════════════════════════════════════════════════════════════════
    #  STACKS
    # ══════════════════════════════════════════════════════════════════

    def create_stack(self, stack: TimerStack) -> None:
        for phase in stack.timers:
            if phase.duration <= 0:
                raise InvalidDurationError(
                    f"phase {phase.order + 1} of {stack.name!r} "
                    "must be longer than 0 s"
                )
        self._registry.add_stack(stack)
        self._save_stacks()

    def delete_stack(self, stack_id: str) -> None:
        self._registry.remove_stack(stack_id)
        self._save_stacks()

    def run_stack(self, stack_id: str) -> str | None:
        """Materialize a stack into a new running timer.

        Returns the timer id, or None when the stack is unknown.
        """
        stack = self._registry.get_stack(stack_id)
        if stack is None:
            logger.debug("run_stack: no stack %s", stack_id)
            return None

        m = materialize(stack)
        timer_id = self._registry.create(
            m.kind, m.duration, m.label, m.note, m.phase_source,
        )
        self._registry.toggle(timer_id)
        self._save_timers()
        logger.info(
            "started %s stack %r as timer %s",
            "recurring" if stack.is_recurring else "sequential",
            stack.name, timer_id,
        )
        self.stack_started.emit(timer_id)
        return timer_id

    # ══════════════════════════════════════════════════════════════════
    #  PRESETS
    # ══════════════════════════════════════════════════════════════════

    def save_preset(self, preset: Preset) -> None:
        if preset.kind.counts_down and preset.duration <= 0:
            raise InvalidDurationError(
                f"preset {preset.label!r} needs a duration longer than 0 s"
            )
        self._registry.add_preset(preset)
        self._save_presets()

    def delete_preset(self, label: str) -> None:
        self._registry.remove_preset(label)
        self._save_presets()

    # ══════════════════════════════════════════════════════════════════
    #  PERSISTENCE
    # ══════════════════════════════════════════════════════════════════

    def save_all(self) -> None:
        self._save_timers()
        self._save_stacks()
        self._save_presets()

    def _save_timers(self) -> None:
        if self._store is not None:
            self._store.save_timers(self._registry.timers)

    def _save_stacks(self) -> None:
        if self._store is not None:
            self._store.save_stacks(self._registry.stacks)

    def _save_presets(self) -> None:
        if self._store is not None:
            self._store.save_presets(self._registry.presets)
