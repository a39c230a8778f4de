import argparse
import sys
from pathlib import Path
from typing import Optional

from PySide6.QtCore import QByteArray
from PySide6.QtGui import QAction, QCloseEvent, QKeySequence
from PySide6.QtWidgets import QApplication, QMainWindow

from audio.level_source import duration_seconds
from core.config_manager import ConfigManager
from core.peak_aggregator import PeakAggregator
from ui.style_manager import StyleManager
from ui.widgets.waveform_widget import WaveformWidget
from utils.error_handler import safe_operation
from utils.logger import get_logger, setup_logging

logger = get_logger(__name__)


class MainWindow(QMainWindow):
    def __init__(self, config: ConfigManager):
        super().__init__()
        self.config = config
        self.setWindowTitle("scrubwave")
        self.resize(900, 160)
        geometry = config.get("ui.window_geometry")
        if geometry:
            with safe_operation("Restoring window geometry", silent=True):
                self.restoreGeometry(QByteArray.fromHex(geometry.encode()))

        self.waveform = WaveformWidget(self)
        self.setCentralWidget(self.waveform)

        self.aggregator = PeakAggregator()
        self.aggregator.on_peaks_changed(self.waveform.set_peaks)

        self.waveform.gesture_pressed.connect(self._on_gesture_pressed)
        self.waveform.position_changed.connect(self._on_position_changed)

        self.current_uri: Optional[str] = None

        # Shortcuts
        contrast_action = QAction("Toggle high contrast", self)
        contrast_action.setShortcut(QKeySequence("Ctrl+H"))
        contrast_action.triggered.connect(self.toggle_high_contrast)
        self.addAction(contrast_action)

        reload_action = QAction("Regenerate peaks", self)
        reload_action.setShortcut(QKeySequence("Ctrl+R"))
        reload_action.triggered.connect(self.reload)
        self.addAction(reload_action)

    def load(self, path: str) -> bool:
        uri = Path(path).resolve().as_uri()
        duration = 0.0
        try:
            with safe_operation(f"Reading duration of {path}"):
                duration = duration_seconds(uri)
        except (RuntimeError, OSError) as e:
            self.statusBar().showMessage(f"Cannot open {path}: {e}")
            return False

        self.current_uri = uri
        self.waveform.position = 0.0
        self.aggregator.start(uri, duration)
        self.config.set("ui.last_file", str(path))
        self.statusBar().showMessage(f"{Path(path).name} ({duration:.1f}s)")
        return True

    def reload(self):
        if self.current_uri is None:
            return
        self.aggregator.start(self.current_uri, self.aggregator.duration)

    def toggle_high_contrast(self):
        enabled = not StyleManager.is_high_contrast()
        StyleManager.set_high_contrast(enabled)
        StyleManager.setup_theme(QApplication.instance())
        self.config.set("ui.high_contrast", enabled)

    def _on_gesture_pressed(self):
        logger.debug("Scrub started")

    def _on_position_changed(self, position: float):
        duration = self.aggregator.duration or 0.0
        logger.info(f"Seek to {position:.3f} ({position * duration:.2f}s)")
        self.statusBar().showMessage(f"Position {position * duration:.2f}s")

    def closeEvent(self, event: QCloseEvent):
        self.aggregator.stop()
        if not self.aggregator.wait(5000):
            logger.warning("Decoder thread did not finish before shutdown")
        with safe_operation("Saving window geometry", silent=True):
            self.config.set("ui.window_geometry", self.saveGeometry().toHex().data().decode())
        event.accept()


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Scrubbable waveform viewer")
    parser.add_argument("audio", nargs="?", help="audio file to display")
    parser.add_argument("--config", default="config/settings.json", help="settings file")
    parser.add_argument("--high-contrast", action="store_true", help="start with the high contrast palette")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)

    config = ConfigManager.get_instance(args.config)
    setup_logging(
        level=config.get("logging.level", "INFO"),
        log_to_file=config.get("logging.to_file", False),
        log_dir=config.get("paths.logs_root", "logs"),
    )

    app = QApplication(sys.argv[:1])
    StyleManager.set_high_contrast(args.high_contrast or config.get("ui.high_contrast", False))
    StyleManager.setup_theme(app)

    window = MainWindow(config)
    audio = args.audio or config.get("ui.last_file")
    if audio:
        window.load(audio)
    else:
        logger.warning("No audio file given")
    window.show()
    return app.exec()


if __name__ == "__main__":
    sys.exit(main())
