"""Main application window for ChronoStack."""

from __future__ import annotations

import logging

from PyQt6.QtCore import Qt, QTimer
from PyQt6.QtWidgets import (
    QMainWindow, QWidget, QVBoxLayout, QHBoxLayout, QLabel, QListWidget,
    QListWidgetItem, QLineEdit, QComboBox, QPushButton, QSpinBox, QCheckBox,
    QFrame, QStatusBar, QAbstractSpinBox,
)

from .actions import TimerActions
from .database.store import TimerStore
from .errors import ChronoStackError
from .settings import Settings, load_settings, save_settings
from .timer.models import PRESETS, Timer, TimerKind
from .timer.phases import build_stack
from .timer.registry import TimerRegistry
from .timer.scheduler import TickScheduler


logger = logging.getLogger(__name__)


# ── helper: format seconds as h:mm:ss / m:ss ─────────────────────────────

def fmt_time(seconds: float) -> str:
    total = int(max(0.0, seconds))
    h, rest = divmod(total, 3600)
    m, s = divmod(rest, 60)
    if h:
        return f"{h}:{m:02d}:{s:02d}"
    return f"{m}:{s:02d}"


def describe(timer: Timer) -> str:
    """One list row: label, time and state."""
    if timer.kind is TimerKind.STOPWATCH:
        clock = fmt_time(timer.elapsed_time)
    else:
        clock = fmt_time(timer.remaining_time)
    if timer.is_completed:
        state = "done"
    elif timer.is_running:
        state = "running"
    else:
        state = "paused"
    phase = ""
    if timer.stack_phases is not None and timer.current_phase_index is not None:
        phase = f"  [{timer.current_phase_index + 1}/{len(timer.stack_phases)}]"
    return f"{timer.label}  {clock}  ({state}){phase}"


class ChronoStackApp(QMainWindow):
    """Main application window."""

    def __init__(self, settings: Settings | None = None) -> None:
        super().__init__()
        self.setWindowTitle("ChronoStack")

        # ── settings ──────────────────────────────────────────────────
        self._settings: Settings = settings or load_settings()
        self.resize(self._settings.window_width, self._settings.window_height)
        if self._settings.window_x is not None and self._settings.window_y is not None:
            self.move(self._settings.window_x, self._settings.window_y)
        if self._settings.always_on_top:
            self.setWindowFlag(Qt.WindowType.WindowStaysOnTopHint, True)

        # ── engines ───────────────────────────────────────────────────
        self._store = TimerStore(
            default_label=self._settings.default_timer_label,
            default_duration=self._settings.default_timer_duration,
        )
        self._registry = TimerRegistry(self)
        self._registry.replace_all(
            self._store.load_timers(),
            self._store.load_stacks(),
            self._store.load_presets(),
        )
        self._actions = TimerActions(self._registry, self._store, self)
        self._scheduler = TickScheduler(
            self._registry, self,
            interval_ms=self._settings.tick_interval_ms,
        )

        # ── autosave running timers ───────────────────────────────────
        self._autosave_timer = QTimer(self)
        self._autosave_timer.setInterval(self._settings.autosave_interval_ms)
        self._autosave_timer.timeout.connect(self._autosave)

        self._build_ui()
        self._connect_signals()
        self._refresh(self._registry.timers)

        self._scheduler.start()
        self._autosave_timer.start()

    # ── accessors ─────────────────────────────────────────────────────

    @property
    def actions(self) -> TimerActions:
        return self._actions

    @property
    def scheduler(self) -> TickScheduler:
        return self._scheduler

    # ── build ─────────────────────────────────────────────────────────

    def _build_ui(self) -> None:
        central = QWidget(self)
        layout = QVBoxLayout(central)
        layout.setContentsMargins(12, 10, 12, 10)
        layout.setSpacing(8)

        # ── timer list ────────────────────────────────────────────────
        self._list = QListWidget(central)
        self._list.setFocusPolicy(Qt.FocusPolicy.NoFocus)
        layout.addWidget(self._list)

        # ── presets: add / delete ─────────────────────────────────────
        row = QHBoxLayout()
        self.preset_combo = QComboBox(central)
        self.add_button = self._button("Add", central, self._on_add_preset)
        self.delete_button = self._button(
            "Delete", central, self._on_delete_selected,
        )
        row.addWidget(self.preset_combo, 1)
        row.addWidget(self.add_button)
        row.addWidget(self.delete_button)
        layout.addLayout(row)

        # ── stack builder ─────────────────────────────────────────────
        builder = QFrame(central)
        builder.setObjectName("card")
        form = QVBoxLayout(builder)
        form.setContentsMargins(8, 8, 8, 8)

        self.stack_name_edit = QLineEdit(builder)
        self.stack_name_edit.setPlaceholderText("Stack name")
        form.addWidget(self.stack_name_edit)

        phase_row = QHBoxLayout()
        self.phase_minutes = QSpinBox(builder)
        self.phase_minutes.setRange(1, 24 * 60)
        self.phase_minutes.setValue(25)
        self.phase_minutes.setSuffix(" min")
        self.phase_name_edit = QLineEdit(builder)
        self.phase_name_edit.setPlaceholderText("Phase name")
        self.phase_desc_edit = QLineEdit(builder)
        self.phase_desc_edit.setPlaceholderText("Description")
        self.add_phase_button = self._button(
            "Add phase", builder, self._on_add_phase,
        )
        phase_row.addWidget(self.phase_minutes)
        phase_row.addWidget(self.phase_name_edit, 1)
        phase_row.addWidget(self.phase_desc_edit, 1)
        phase_row.addWidget(self.add_phase_button)
        form.addLayout(phase_row)

        self._phase_list = QLabel("No phases yet", builder)
        form.addWidget(self._phase_list)

        create_row = QHBoxLayout()
        self.recurring_check = QCheckBox("Recurring", builder)
        self.recurring_check.setFocusPolicy(Qt.FocusPolicy.NoFocus)
        self.create_stack_button = self._button(
            "Create stack", builder, self._on_create_stack,
        )
        create_row.addWidget(self.recurring_check)
        create_row.addStretch()
        create_row.addWidget(self.create_stack_button)
        form.addLayout(create_row)

        run_row = QHBoxLayout()
        self.stack_combo = QComboBox(builder)
        self.run_stack_button = self._button("Run", builder, self._on_run_stack)
        self.delete_stack_button = self._button(
            "Delete stack", builder, self._on_delete_stack,
        )
        run_row.addWidget(self.stack_combo, 1)
        run_row.addWidget(self.run_stack_button)
        run_row.addWidget(self.delete_stack_button)
        form.addLayout(run_row)
        layout.addWidget(builder)

        hint = QLabel("Space: start / pause    R: reset", central)
        hint.setAlignment(Qt.AlignmentFlag.AlignCenter)
        layout.addWidget(hint)
        self.setCentralWidget(central)

        self._status_bar = QStatusBar(self)
        self.setStatusBar(self._status_bar)

        self._pending_phases: list[tuple[float, str | None, str | None]] = []
        self._fill_presets(self._registry.presets)
        self._fill_stacks(self._registry.stacks)

    @staticmethod
    def _button(text: str, parent: QWidget, slot) -> QPushButton:
        btn = QPushButton(text, parent)
        btn.setFocusPolicy(Qt.FocusPolicy.NoFocus)
        btn.clicked.connect(slot)
        return btn

    def _connect_signals(self) -> None:
        self._registry.timers_changed.connect(self._refresh)
        self._registry.presets_changed.connect(self._fill_presets)
        self._registry.stacks_changed.connect(self._fill_stacks)
        self._scheduler.timer_completed.connect(self._autosave)
        self._scheduler.phase_advanced.connect(self._autosave)

    def _refresh(self, timers) -> None:
        selected = self._selected_timer_id()
        self._list.clear()
        for timer in timers:
            item = QListWidgetItem(describe(timer))
            item.setData(Qt.ItemDataRole.UserRole, timer.id)
            self._list.addItem(item)
            if timer.id == selected:
                self._list.setCurrentItem(item)

    def _fill_presets(self, presets) -> None:
        self.preset_combo.clear()
        for preset in PRESETS + tuple(presets):
            self.preset_combo.addItem(preset.label, preset)

    def _fill_stacks(self, stacks) -> None:
        self.stack_combo.clear()
        for stack in stacks:
            self.stack_combo.addItem(
                f"{stack.name} ({len(stack.timers)})", stack.id,
            )

    def _autosave(self, *_args) -> None:
        self._actions.save_all()

    # ══════════════════════════════════════════════════════════════════
    #  CONTROLS
    # ══════════════════════════════════════════════════════════════════

    def _selected_timer_id(self) -> str | None:
        item = self._list.currentItem()
        return item.data(Qt.ItemDataRole.UserRole) if item else None

    def _on_add_preset(self) -> None:
        preset = self.preset_combo.currentData()
        if preset is not None:
            self._actions.add_from_preset(preset)

    def _on_delete_selected(self) -> None:
        timer_id = self._selected_timer_id()
        if timer_id is not None:
            self._actions.delete_timer(timer_id)

    def _on_add_phase(self) -> None:
        self._pending_phases.append((
            self.phase_minutes.value() * 60,
            self.phase_name_edit.text().strip() or None,
            self.phase_desc_edit.text().strip() or None,
        ))
        self.phase_name_edit.clear()
        self.phase_desc_edit.clear()
        self._phase_list.setText(", ".join(
            f"{name or f'Phase {i + 1}'} {fmt_time(duration)}"
            for i, (duration, name, _desc) in enumerate(self._pending_phases)
        ))

    def _on_create_stack(self) -> None:
        try:
            stack = build_stack(
                self.stack_name_edit.text(),
                self._pending_phases,
                self.recurring_check.isChecked(),
            )
            self._actions.create_stack(stack)
        except ChronoStackError as exc:
            self._status_bar.showMessage(str(exc), 5000)
            return
        self._status_bar.showMessage(f"Created stack {stack.name!r}", 3000)
        self._pending_phases = []
        self._phase_list.setText("No phases yet")
        self.stack_name_edit.clear()
        self.recurring_check.setChecked(False)
        self.stack_combo.setCurrentIndex(self.stack_combo.count() - 1)

    def _on_run_stack(self) -> None:
        stack_id = self.stack_combo.currentData()
        if stack_id is not None:
            self._actions.run_stack(stack_id)

    def _on_delete_stack(self) -> None:
        stack_id = self.stack_combo.currentData()
        if stack_id is not None:
            self._actions.delete_stack(stack_id)

    # ══════════════════════════════════════════════════════════════════
    #  KEYBOARD
    # ══════════════════════════════════════════════════════════════════

    def _typing(self) -> bool:
        return isinstance(self.focusWidget(), (QLineEdit, QAbstractSpinBox))

    def keyPressEvent(self, event) -> None:  # type: ignore[override]
        """Space toggles and R resets the running (or first) timer."""
        key = event.key()
        if not self._typing() and not event.modifiers():
            if key == Qt.Key.Key_Space:
                self._actions.toggle_active()
                event.accept()
                return
            if key == Qt.Key.Key_R:
                self._actions.reset_active()
                event.accept()
                return
        super().keyPressEvent(event)

    # ══════════════════════════════════════════════════════════════════
    #  WINDOW EVENTS
    # ══════════════════════════════════════════════════════════════════

    def closeEvent(self, event) -> None:  # type: ignore[override]
        self._scheduler.stop()
        self._autosave_timer.stop()
        self._actions.save_all()
        geo = self.geometry()
        self._settings.window_x = geo.x()
        self._settings.window_y = geo.y()
        self._settings.window_width = geo.width()
        self._settings.window_height = geo.height()
        save_settings(self._settings)
        logger.info("saved timers and window geometry")
        event.accept()
