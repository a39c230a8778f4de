from typing import Optional, Tuple

from PySide6.QtCore import QObject, Qt, Signal
from PySide6.QtGui import QColor, QPalette

from utils.logger import get_logger

logger = get_logger(__name__)


class ThemeNotifier(QObject):
    """Emits ``theme_changed`` when the active palette is swapped."""
    theme_changed = Signal()


class StyleManager:
    """
    Centralized style manager.

    Acts as the waveform's theme provider: ``get_foreground`` and
    ``lookup_color`` are the two lookups ``WaveformView.render`` uses.
    """

    PALETTE = {
        # BACKGROUND
        "bg_base": "rgb(29, 35, 67)",       # Deep Midnight Blue (main background)
        "bg_panel": "rgb(43, 52, 95)",      # Royal Blue Dark (panels)

        # WAVEFORM ROLES
        "foreground": "rgb(209, 213, 219)",      # Cool Gray (played bars)
        "dimmed": "rgba(209, 213, 219, 0.35)",   # Faded Gray (upcoming bars)
        "accent": "rgb(255, 171, 0)",            # Amber (divider)

        # TEXT
        "text_bright": "#FFFFFF",
        "text_normal": "#D1D5DB",
    }

    HIGH_CONTRAST_PALETTE = {
        "bg_base": "#000000",
        "bg_panel": "#000000",
        "foreground": "#FFFFFF",
        "dimmed": "rgb(160, 160, 160)",
        "accent": "rgb(255, 214, 0)",
        "text_bright": "#FFFFFF",
        "text_normal": "#FFFFFF",
    }

    _high_contrast = False
    _notifier: Optional[ThemeNotifier] = None

    @classmethod
    def _active_palette(cls) -> dict:
        return cls.HIGH_CONTRAST_PALETTE if cls._high_contrast else cls.PALETTE

    @staticmethod
    def parse_color(color_str: str) -> QColor:
        """Build a QColor from ``rgb(...)``, ``rgba(...)`` or a named/hex color."""
        if "rgba" in color_str:
            parts = color_str.replace("rgba(", "").replace(")", "").split(",")
            return QColor(int(parts[0]), int(parts[1]), int(parts[2]), int(float(parts[3]) * 255))
        elif "rgb" in color_str:
            parts = color_str.replace("rgb(", "").replace(")", "").split(",")
            return QColor(int(parts[0]), int(parts[1]), int(parts[2]))
        return QColor(color_str)

    @classmethod
    def lookup_color(cls, color_name: str) -> Tuple[bool, QColor]:
        """Return ``(found, color)``; ``color`` is the foreground when not found."""
        color_str = cls._active_palette().get(color_name)
        if color_str is None:
            logger.debug(f"Theme has no '{color_name}' color")
            return False, cls.get_foreground()
        return True, cls.parse_color(color_str)

    @classmethod
    def get_color(cls, color_name: str) -> QColor:
        return cls.lookup_color(color_name)[1]

    @classmethod
    def get_foreground(cls) -> QColor:
        return cls.parse_color(cls._active_palette().get("foreground", "#FFFFFF"))

    @classmethod
    def notifier(cls) -> ThemeNotifier:
        if cls._notifier is None:
            cls._notifier = ThemeNotifier()
        return cls._notifier

    @classmethod
    def is_high_contrast(cls) -> bool:
        return cls._high_contrast

    @classmethod
    def set_high_contrast(cls, enabled: bool) -> None:
        enabled = bool(enabled)
        if enabled == cls._high_contrast:
            return
        cls._high_contrast = enabled
        logger.info(f"High contrast {'enabled' if enabled else 'disabled'}")
        cls.notifier().theme_changed.emit()

    @classmethod
    def setup_theme(cls, app):
        """Apply the active palette to the application."""
        palette = QPalette()
        palette.setColor(QPalette.Window, cls.get_color("bg_base"))
        palette.setColor(QPalette.WindowText, cls.get_color("text_normal"))
        palette.setColor(QPalette.Base, cls.get_color("bg_panel"))
        palette.setColor(QPalette.Text, cls.get_color("text_normal"))
        palette.setColor(QPalette.Highlight, cls.get_color("accent"))
        palette.setColor(QPalette.HighlightedText, Qt.black)
        app.setPalette(palette)
