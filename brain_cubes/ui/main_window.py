from __future__ import annotations

from typing import Optional

from PySide6.QtCore import Qt
from PySide6.QtWidgets import (
    QHBoxLayout,
    QLabel,
    QListWidget,
    QListWidgetItem,
    QMainWindow,
    QMessageBox,
    QPushButton,
    QSpinBox,
    QStackedWidget,
    QVBoxLayout,
    QWidget,
)

from brain_cubes.core.models import Feedback, GuessResult, LevelResult
from brain_cubes.core.session import GameSession, SessionPhase
from brain_cubes.ui.colors import GameColors, blend_hex, mode_color

_ARROWS = {Feedback.HIGHER: "↑", Feedback.LOWER: "↓", Feedback.CORRECT: "✓"}


class MainWindow(QMainWindow):
    """Menu and game screens. Reads session snapshots, never patches state."""

    def __init__(self, session: GameSession) -> None:
        super().__init__()
        self._session = session
        self._shown_result: Optional[LevelResult] = session.last_result

        self._stack: Optional[QStackedWidget] = None
        self._menu_screen: Optional[QWidget] = None
        self._game_screen: Optional[QWidget] = None
        self._continue_button: Optional[QPushButton] = None
        self._stats_label: Optional[QLabel] = None
        self._level_label: Optional[QLabel] = None
        self._mode_label: Optional[QLabel] = None
        self._range_label: Optional[QLabel] = None
        self._attempts_label: Optional[QLabel] = None
        self._time_label: Optional[QLabel] = None
        self._history_list: Optional[QListWidget] = None
        self._guess_input: Optional[QSpinBox] = None
        self._guess_button: Optional[QPushButton] = None
        self._pause_button: Optional[QPushButton] = None
        self._result_label: Optional[QLabel] = None
        self._next_button: Optional[QPushButton] = None

        self.setWindowTitle("Brain Cubes")
        self.resize(480, 640)
        self._build_ui()
        self._session.subscribe(self._refresh)
        self._refresh()

    def _build_ui(self) -> None:
        self.setStyleSheet(f"""
            QMainWindow, QWidget {{ background: {GameColors.BG}; color: {GameColors.TEXT_PRIMARY}; }}
            QPushButton {{
                background: {GameColors.CARD_BG_ALT}; border: 1px solid {GameColors.BORDER};
                border-radius: 8px; padding: 8px 14px; font-weight: 700;
            }}
            QPushButton:disabled {{ color: {GameColors.TEXT_DISABLED}; }}
            QListWidget {{ background: {GameColors.CARD_BG}; border: none; border-radius: 8px; }}
        """)
        self._stack = QStackedWidget()
        self._menu_screen = self._build_menu_screen()
        self._game_screen = self._build_game_screen()
        self._stack.addWidget(self._menu_screen)
        self._stack.addWidget(self._game_screen)
        self.setCentralWidget(self._stack)

    def _build_menu_screen(self) -> QWidget:
        screen = QWidget()
        layout = QVBoxLayout(screen)
        layout.setAlignment(Qt.AlignmentFlag.AlignCenter)

        title = QLabel("BRAIN CUBES")
        title.setAlignment(Qt.AlignmentFlag.AlignCenter)
        title.setStyleSheet("font-size: 28px; font-weight: 900;")
        layout.addWidget(title)

        self._stats_label = QLabel()
        self._stats_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self._stats_label.setStyleSheet(f"color: {GameColors.TEXT_SECONDARY};")
        layout.addWidget(self._stats_label)

        self._continue_button = QPushButton("Continue")
        self._continue_button.clicked.connect(self._session.continue_game)
        layout.addWidget(self._continue_button)

        new_game = QPushButton("New Game")
        new_game.clicked.connect(self._session.start_new_game)
        layout.addWidget(new_game)

        reset = QPushButton("Reset Progress")
        reset.setStyleSheet(f"color: {GameColors.ERROR};")
        reset.clicked.connect(self._confirm_reset)
        layout.addWidget(reset)
        return screen

    def _build_game_screen(self) -> QWidget:
        screen = QWidget()
        layout = QVBoxLayout(screen)

        header = QHBoxLayout()
        self._level_label = QLabel()
        self._level_label.setStyleSheet("font-size: 18px; font-weight: 900;")
        self._mode_label = QLabel()
        header.addWidget(self._level_label)
        header.addStretch(1)
        header.addWidget(self._mode_label)
        layout.addLayout(header)

        info = QHBoxLayout()
        self._range_label = QLabel()
        self._attempts_label = QLabel()
        self._time_label = QLabel()
        self._time_label.setStyleSheet("font-family: monospace;")
        for label in (self._range_label, self._attempts_label, self._time_label):
            info.addWidget(label)
        layout.addLayout(info)

        self._history_list = QListWidget()
        layout.addWidget(self._history_list, 1)

        self._result_label = QLabel()
        self._result_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self._result_label.setStyleSheet("font-size: 18px; font-weight: 800;")
        layout.addWidget(self._result_label)

        self._next_button = QPushButton()
        self._next_button.clicked.connect(self._on_next)
        layout.addWidget(self._next_button)

        guess_row = QHBoxLayout()
        self._guess_input = QSpinBox()
        self._guess_input.setMaximum(9999)
        self._guess_button = QPushButton("Guess")
        self._guess_button.clicked.connect(self._submit_guess)
        guess_row.addWidget(self._guess_input, 1)
        guess_row.addWidget(self._guess_button)
        layout.addLayout(guess_row)

        controls = QHBoxLayout()
        self._pause_button = QPushButton("Pause")
        self._pause_button.clicked.connect(self._toggle_pause)
        restart = QPushButton("Restart Level")
        restart.clicked.connect(self._restart)
        menu = QPushButton("Main Menu")
        menu.clicked.connect(self._go_to_menu)
        for button in (self._pause_button, restart, menu):
            controls.addWidget(button)
        layout.addLayout(controls)
        return screen

    def _refresh(self) -> None:
        session = self._session
        state = session.state
        result = session.last_result
        finished = result is not None and result is not self._shown_result
        on_game = state.is_playing or finished

        stats = session.stats
        self._stats_label.setText(
            f"Level {session.level_number}  •  {stats.levels_won} won  •  best streak {stats.best_streak}"
        )
        self._continue_button.setEnabled(session.has_saved_game)
        self._stack.setCurrentWidget(self._game_screen if on_game else self._menu_screen)
        if not on_game:
            return

        self._show_result(result if finished else None)
        level = state.current_level
        if level is None:
            return
        level_number = result.level_number if finished and result.won else session.level_number
        self._level_label.setText(f"Level {level_number}")
        shown_mode = result.game_mode if finished else level.game_mode
        self._mode_label.setText(shown_mode.value.title())
        self._mode_label.setStyleSheet(f"color: {mode_color(shown_mode)}; font-weight: 800;")
        self._range_label.setText(f"{level.range_min} – {level.range_max}")
        self._attempts_label.setText(f"{session.attempts_left} left")
        self._guess_input.setRange(level.range_min, level.range_max)

        remaining = session.time_remaining
        if remaining is None:
            self._time_label.setText(f"{state.elapsed_time}s")
            self._time_label.setStyleSheet("font-family: monospace;")
        else:
            fraction = 1.0 - remaining / level.time_limit
            color = blend_hex(GameColors.TEXT_PRIMARY, GameColors.ERROR, fraction)
            self._time_label.setText(f"{remaining}s")
            self._time_label.setStyleSheet(f"font-family: monospace; color: {color};")

        if not finished:
            self._fill_history(state.current_guesses)
        active = session.phase is SessionPhase.ACTIVE and not session.completion_pending
        self._guess_input.setEnabled(active)
        self._guess_button.setEnabled(active)
        self._pause_button.setText("Resume" if state.is_paused else "Pause")
        self._pause_button.setEnabled(state.is_playing)

    def _fill_history(self, guesses: tuple[GuessResult, ...]) -> None:
        self._history_list.clear()
        for guess in guesses:
            text = f"{guess.guess}   {_ARROWS[guess.feedback]}"
            if guess.hint:
                text += f"   {guess.hint}"
            item = QListWidgetItem(text)
            if guess.feedback is Feedback.CORRECT:
                item.setForeground(Qt.GlobalColor.green)
            self._history_list.addItem(item)

    def _show_result(self, result: Optional[LevelResult]) -> None:
        if result is None:
            self._result_label.hide()
            self._next_button.hide()
            return
        if result.won:
            text = f"Correct! {result.attempts_used}/{result.max_attempts} attempts, {result.time_used}s"
            color = GameColors.SUCCESS
        else:
            text = f"Game Over. The number was {result.target_number}"
            color = GameColors.ERROR
        self._result_label.setText(text)
        self._result_label.setStyleSheet(f"font-size: 18px; font-weight: 800; color: {color};")
        self._next_button.setText("Next Level" if result.won else "Try Again")
        self._result_label.show()
        self._next_button.show()

    def _submit_guess(self) -> None:
        state = self._session.state
        level = state.current_level
        if level is None:
            return
        guess = self._guess_input.value()
        if not level.range_min <= guess <= level.range_max:
            return
        if any(g.guess == guess for g in state.current_guesses):
            self._result_label.setText(f"Already tried {guess}")
            self._result_label.show()
            return
        self._session.make_guess(guess)

    def _toggle_pause(self) -> None:
        if self._session.state.is_paused:
            self._session.resume_game()
        else:
            self._session.pause_game()

    def _on_next(self) -> None:
        self._shown_result = self._session.last_result
        self._session.continue_game()

    def _restart(self) -> None:
        self._shown_result = self._session.last_result
        self._session.restart_level()

    def _go_to_menu(self) -> None:
        self._shown_result = self._session.last_result
        self._session.go_to_main_menu()

    def _confirm_reset(self) -> None:
        answer = QMessageBox.question(
            self,
            "Reset progress",
            "Erase all levels, statistics and history?",
        )
        if answer == QMessageBox.StandardButton.Yes:
            self._shown_result = None
            self._session.reset_progress()

    def closeEvent(self, event) -> None:
        self._session.unsubscribe(self._refresh)
        super().closeEvent(event)
