"""Application entry point and setup for the Brain Cubes guessing game."""

import logging
import sys
from typing import Optional

from PySide6.QtCore import QObject
from PySide6.QtWidgets import QApplication

from brain_cubes.config import GameConfig, load_config
from brain_cubes.core.levels import LevelGenerator
from brain_cubes.core.progress import ProgressStore
from brain_cubes.core.session import GameSession
from brain_cubes.core.timer import QtScheduler
from brain_cubes.ui.main_window import MainWindow


def configure_logging(level: str = "INFO") -> None:
    """Configure application-wide logging with a standard format."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def create_session(config: GameConfig, parent: Optional[QObject] = None) -> GameSession:
    """Wire the session to its store, level generator and Qt scheduler, then load the save file."""
    session = GameSession(
        store=ProgressStore(config.data_dir),
        generator=LevelGenerator(),
        scheduler=QtScheduler(parent),
        config=config,
    )
    session.load()
    return session


def run() -> None:
    """Load settings and saved progress, then start the main window."""
    config = load_config()
    configure_logging(config.log_level)
    app = QApplication(sys.argv)
    app.setApplicationName("Brain Cubes")
    app.setApplicationDisplayName("Brain Cubes")

    session = create_session(config, parent=app)
    app.aboutToQuit.connect(session.shutdown)
    logging.info("Save file: %s", config.data_dir)

    window = MainWindow(session=session)
    window.show()

    sys.exit(app.exec())


if __name__ == "__main__":
    run()
