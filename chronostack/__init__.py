"""ChronoStack — concurrent timers and phase stacks."""

__version__ = "0.1.0"
