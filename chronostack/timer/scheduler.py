"""Tick scheduler.

A ``QTimer`` fires every ``interval_ms``.  Each firing measures the real
time since the previous one with an injectable clock and applies that
delta to every running timer, so late or throttled ticks never lose or
gain time.  All timers are updated from one delta and committed to the
registry as a single new tuple.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, replace
from typing import Callable, Iterable

from PyQt6.QtCore import QObject, QTimer, pyqtSignal

from .models import Timer, TimerKind
from .phases import advance
from .registry import TimerRegistry


logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_MS = 100

Clock = Callable[[], float]


@dataclass(frozen=True)
class TickResult:
    timers: tuple[Timer, ...]
    completed: tuple[str, ...] = ()
    advanced: tuple[tuple[str, int], ...] = ()  # (timer id, new phase index)


def tick_timer(timer: Timer, delta: float) -> Timer:
    """State of one timer ``delta`` seconds later."""
    if not timer.is_running or timer.is_completed:
        return timer

    if timer.kind is TimerKind.STOPWATCH:
        return replace(timer, elapsed_time=timer.elapsed_time + delta)

    remaining = max(0.0, timer.remaining_time - delta)
    if remaining > 0:
        return replace(timer, remaining_time=remaining)
    if timer.has_phases:
        return advance(timer)
    return replace(
        timer, remaining_time=0.0, is_completed=True, is_running=False,
    )


def apply_tick(timers: Iterable[Timer], delta: float) -> TickResult:
    """Advance every running timer by ``delta`` seconds."""
    delta = max(0.0, delta)
    updated: list[Timer] = []
    completed: list[str] = []
    advanced: list[tuple[str, int]] = []

    for timer in timers:
        new = tick_timer(timer, delta)
        if new is not timer:
            if new.is_completed:
                completed.append(new.id)
            elif new.current_phase_index != timer.current_phase_index:
                advanced.append((new.id, new.current_phase_index))
        updated.append(new)

    return TickResult(tuple(updated), tuple(completed), tuple(advanced))


class TickScheduler(QObject):
    """Drives a ``TimerRegistry`` from a periodic ``QTimer``.

    Signals
    -------
    ticked(delta: float)
        Emitted after every tick with the measured delta in seconds.
    timer_completed(timer_id: str)
        A countdown (or the last phase of a stack) ran out.
    phase_advanced(timer_id: str, phase_index: int)
        A stack timer moved on to its next phase.
    """

    ticked = pyqtSignal(float)
    timer_completed = pyqtSignal(str)
    phase_advanced = pyqtSignal(str, int)

    def __init__(
        self,
        registry: TimerRegistry,
        parent: QObject | None = None,
        *,
        interval_ms: int = DEFAULT_INTERVAL_MS,
        clock: Clock = time.monotonic,
    ) -> None:
        super().__init__(parent)
        self._registry = registry
        self._clock = clock
        self._last_tick: float = clock()

        self._qt_timer = QTimer(self)
        self._qt_timer.setInterval(interval_ms)
        self._qt_timer.timeout.connect(self.tick)

    @property
    def interval_ms(self) -> int:
        return self._qt_timer.interval()

    @property
    def is_active(self) -> bool:
        return self._qt_timer.isActive()

    def start(self) -> None:
        self._last_tick = self._clock()
        self._qt_timer.start()
        logger.debug("tick scheduler started (%d ms)", self.interval_ms)

    def stop(self) -> None:
        self._qt_timer.stop()
        logger.debug("tick scheduler stopped")

    def tick(self) -> TickResult:
        now = self._clock()
        delta = now - self._last_tick
        self._last_tick = now

        result = TickResult(timers=())

        def _apply(timers: tuple[Timer, ...]) -> tuple[Timer, ...]:
            nonlocal result
            result = apply_tick(timers, delta)
            return result.timers

        self._registry.transact(_apply)

        self.ticked.emit(max(0.0, delta))
        for timer_id, index in result.advanced:
            logger.info("timer %s advanced to phase %d", timer_id, index + 1)
            self.phase_advanced.emit(timer_id, index)
        for timer_id in result.completed:
            logger.info("timer %s completed", timer_id)
            self.timer_completed.emit(timer_id)
        return result
