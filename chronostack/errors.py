"""Exception hierarchy for ChronoStack."""


class ChronoStackError(Exception):
    """Base class for all ChronoStack errors."""


class TimerStateError(ChronoStackError, ValueError):
    """A timer would be built or patched into an illegal state."""


class InvalidDurationError(ChronoStackError, ValueError):
    """A countdown or phase was given a non-positive duration."""


class InvalidStackError(ChronoStackError, ValueError):
    """A stack definition is missing its name or phases."""


class PhaseStateError(ChronoStackError, RuntimeError):
    """Phase advance requested on a timer that has no phases.

    The scheduler only advances timers that carry phases, so this is a
    programming error and is never caught.
    """
