"""Shared test helpers for ChronoStack."""

from chronostack.timer.scheduler import TickScheduler


class SignalCollector:
    """Utility to capture pyqtSignal emissions into a list."""

    def __init__(self):
        self.items: list = []

    def slot(self, *args):
        self.items.append(args if len(args) > 1 else args[0] if args else None)

    def __call__(self, *args):
        self.slot(*args)

    def __len__(self):
        return len(self.items)

    def __getitem__(self, idx):
        return self.items[idx]

    @property
    def last(self):
        return self.items[-1] if self.items else None

    def clear(self):
        self.items.clear()


class FakeClock:
    """Monotonic clock the test moves by hand."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def run_for(scheduler: TickScheduler, clock: FakeClock, seconds: float,
            step: float = 0.25) -> None:
    """Tick ``scheduler`` every ``step`` seconds for ``seconds`` in total."""
    ticks = int(round(seconds / step))
    for _ in range(ticks):
        clock.advance(step)
        scheduler.tick()
