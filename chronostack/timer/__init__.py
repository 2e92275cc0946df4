"""Timer package."""

from .models import (
    Timer,
    TimerKind,
    PomodoroType,
    StackedTimer,
    TimerStack,
    PhaseSource,
    Preset,
    PRESETS,
)
from .phases import advance, materialize, build_stack
from .registry import TimerRegistry
from .scheduler import TickScheduler, apply_tick, DEFAULT_INTERVAL_MS

__all__ = [
    "Timer",
    "TimerKind",
    "PomodoroType",
    "StackedTimer",
    "TimerStack",
    "PhaseSource",
    "Preset",
    "PRESETS",
    "advance",
    "materialize",
    "build_stack",
    "TimerRegistry",
    "TickScheduler",
    "apply_tick",
    "DEFAULT_INTERVAL_MS",
]
