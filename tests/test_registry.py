"""Tests for the timer registry: create, toggle, reset, delete, patch."""

import pytest

from chronostack.errors import TimerStateError
from chronostack.timer.models import (
    PhaseSource, PomodoroType, Preset, StackedTimer, TimerKind, TimerStack,
)

from helpers import SignalCollector


def _phases(*durations):
    return tuple(
        StackedTimer(id=f"p{i}", duration=d, note=f"P{i}", order=i)
        for i, d in enumerate(durations)
    )


# ═══════════════════════════════════════════════════════════════════════════
#  CREATE
# ═══════════════════════════════════════════════════════════════════════════


class TestCreate:

    def test_countdown_starts_full_and_stopped(self, registry):
        tid = registry.create(TimerKind.COUNTDOWN, 300, "Tea")
        t = registry.get(tid)
        assert t.initial_duration == 300
        assert t.remaining_time == 300
        assert t.elapsed_time == 0
        assert t.is_running is False
        assert t.is_completed is False
        assert t.pomodoro_type is None

    def test_stopwatch_starts_at_zero(self, registry):
        t = registry.get(registry.create(TimerKind.STOPWATCH, 0, "Run"))
        assert t.elapsed_time == 0
        assert t.remaining_time == 0

    def test_pomodoro_defaults_to_focus(self, registry):
        t = registry.get(registry.create(TimerKind.POMODORO, 1500, "Pomodoro"))
        assert t.pomodoro_type is PomodoroType.FOCUS

    def test_phase_source_seeds_first_phase(self, registry):
        src = PhaseSource("s1", "Study", _phases(10, 20))
        t = registry.get(registry.create(TimerKind.COUNTDOWN, 999, "ignored",
                                         phase_source=src))
        assert t.current_phase_index == 0
        assert t.stack_phases == src.phases
        assert t.remaining_time == 10
        assert t.label == "Study - P0"
        assert t.stack_id == "s1"
        assert t.stack_name == "Study"

    def test_ids_are_unique_and_order_kept(self, registry):
        a = registry.create(TimerKind.COUNTDOWN, 1, "a")
        b = registry.create(TimerKind.COUNTDOWN, 1, "b")
        assert a != b
        assert [t.id for t in registry.timers] == [a, b]
        assert registry.timers[0].created_at < registry.timers[1].created_at

    def test_emits_snapshot(self, registry):
        c = SignalCollector()
        registry.timers_changed.connect(c)
        registry.create(TimerKind.COUNTDOWN, 5, "x")
        assert len(c) == 1
        assert isinstance(c.last, tuple)
        assert c.last == registry.timers


# ═══════════════════════════════════════════════════════════════════════════
#  TOGGLE / RESET / DELETE
# ═══════════════════════════════════════════════════════════════════════════


class TestCommands:

    def test_toggle_flips_running_only(self, registry):
        tid = registry.create(TimerKind.COUNTDOWN, 60, "x")
        registry.patch(tid, remaining_time=42.5)
        registry.toggle(tid)
        t = registry.get(tid)
        assert t.is_running is True
        assert t.remaining_time == 42.5
        registry.toggle(tid)
        assert registry.get(tid).is_running is False
        assert registry.get(tid).remaining_time == 42.5

    def test_toggle_leaves_completed_timer_stopped(self, registry):
        tid = registry.create(TimerKind.COUNTDOWN, 60, "x")
        registry.patch(tid, is_completed=True)
        registry.toggle(tid)
        t = registry.get(tid)
        assert t.is_running is False
        assert t.is_completed is True

    def test_reset_restores_initial(self, registry):
        tid = registry.create(TimerKind.COUNTDOWN, 60, "x")
        registry.patch(tid, is_completed=True)
        registry.reset(tid)
        t = registry.get(tid)
        assert t.remaining_time == 60
        assert t.is_completed is False
        assert t.is_running is False

    def test_reset_is_idempotent(self, registry):
        tid = registry.create(TimerKind.STOPWATCH, 0, "sw")
        registry.toggle(tid)
        registry.patch(tid, elapsed_time=12.0)
        registry.reset(tid)
        once = registry.get(tid)
        registry.reset(tid)
        assert registry.get(tid) == once

    def test_reset_keeps_current_phase(self, registry):
        src = PhaseSource("s1", "Study", _phases(10, 20))
        tid = registry.create(TimerKind.COUNTDOWN, 10, "", phase_source=src)
        registry.patch(tid, current_phase_index=1, initial_duration=20,
                       remaining_time=3)
        registry.reset(tid)
        t = registry.get(tid)
        assert t.current_phase_index == 1
        assert t.remaining_time == 20

    def test_delete_removes(self, registry):
        a = registry.create(TimerKind.COUNTDOWN, 1, "a")
        b = registry.create(TimerKind.COUNTDOWN, 1, "b")
        registry.delete(a)
        assert [t.id for t in registry.timers] == [b]

    def test_unknown_ids_are_noops(self, registry):
        registry.create(TimerKind.COUNTDOWN, 1, "a")
        before = registry.timers
        c = SignalCollector()
        registry.timers_changed.connect(c)

        registry.toggle("nope")
        registry.reset("nope")
        registry.delete("nope")
        registry.patch("nope", label="x")

        assert registry.timers is before
        assert len(c) == 0


# ═══════════════════════════════════════════════════════════════════════════
#  PATCH
# ═══════════════════════════════════════════════════════════════════════════


class TestPatch:

    def test_merges_fields(self, registry):
        tid = registry.create(TimerKind.COUNTDOWN, 60, "x")
        registry.patch(tid, label="Renamed", note="hi")
        t = registry.get(tid)
        assert (t.label, t.note) == ("Renamed", "hi")

    def test_running_and_completed_normalized(self, registry):
        tid = registry.create(TimerKind.COUNTDOWN, 60, "x")
        registry.patch(tid, is_running=True, is_completed=True)
        t = registry.get(tid)
        assert t.is_completed is True
        assert t.is_running is False
        assert t.remaining_time == 0

    def test_immutable_fields_ignored(self, registry):
        tid = registry.create(TimerKind.COUNTDOWN, 60, "x")
        created = registry.get(tid).created_at
        registry.patch(tid, id="other", created_at=1)
        t = registry.get(tid)
        assert t.id == tid
        assert t.created_at == created

    def test_phase_index_cannot_decrease(self, registry):
        src = PhaseSource("s1", "Study", _phases(10, 20))
        tid = registry.create(TimerKind.COUNTDOWN, 10, "", phase_source=src)
        registry.patch(tid, current_phase_index=1)
        with pytest.raises(TimerStateError):
            registry.patch(tid, current_phase_index=0)

    def test_illegal_result_rejected(self, registry):
        tid = registry.create(TimerKind.COUNTDOWN, 60, "x")
        with pytest.raises(TimerStateError):
            registry.patch(tid, remaining_time=-5)
        assert registry.get(tid).remaining_time == 60

    def test_unknown_field_rejected(self, registry):
        tid = registry.create(TimerKind.COUNTDOWN, 60, "x")
        with pytest.raises(TimerStateError):
            registry.patch(tid, colour="red")

    def test_unknown_id_with_unknown_field_is_noop(self, registry):
        registry.create(TimerKind.COUNTDOWN, 60, "x")
        before = registry.timers
        registry.patch("missing", colour="red")
        assert registry.timers is before


# ═══════════════════════════════════════════════════════════════════════════
#  STACKS / PRESETS / SNAPSHOTS
# ═══════════════════════════════════════════════════════════════════════════


class TestCollections:

    def test_stack_add_remove(self, registry):
        stack = TimerStack(id="s1", name="S", timers=_phases(5))
        c = SignalCollector()
        registry.stacks_changed.connect(c)
        registry.add_stack(stack)
        assert registry.get_stack("s1") is stack
        registry.remove_stack("s1")
        assert registry.get_stack("s1") is None
        assert len(c) == 2

    def test_removing_stack_keeps_materialized_timer(self, registry):
        stack = TimerStack(id="s1", name="S", timers=_phases(5, 6))
        registry.add_stack(stack)
        tid = registry.create(
            TimerKind.COUNTDOWN, 5, "",
            phase_source=PhaseSource(stack.id, stack.name, stack.timers),
        )
        registry.remove_stack("s1")
        assert registry.get(tid).stack_phases == stack.timers

    def test_preset_remove_by_label(self, registry):
        registry.add_preset(Preset("Tea", 180, TimerKind.COUNTDOWN))
        registry.add_preset(Preset("Nap", 1200, TimerKind.COUNTDOWN))
        registry.remove_preset("Tea")
        assert [p.label for p in registry.presets] == ["Nap"]

    def test_snapshots_are_not_mutated(self, registry):
        tid = registry.create(TimerKind.COUNTDOWN, 60, "x")
        snapshot = registry.timers
        registry.toggle(tid)
        assert snapshot[0].is_running is False
        assert registry.timers[0].is_running is True

    def test_replace_all(self, registry):
        stack = TimerStack(id="s1", name="S", timers=_phases(5))
        registry.replace_all(stacks=[stack])
        assert registry.timers == ()
        assert registry.stacks == (stack,)
