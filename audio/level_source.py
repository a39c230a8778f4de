"""Level source: the decode side of peak generation.

Decodes a track with soundfile in ``INTERVAL``-sized blocks and reports one
peak level reading (dB full scale) per block, like a level meter sitting at
the end of a decode pipeline. Runs in a worker thread so the UI stays
responsive; readings are delivered back on the thread that created the
``LevelThread``.

Usage:
    source = LevelThread("file:///music/track.flac")
    source.level.connect(on_level)   # float, dBFS
    source.eos.connect(on_done)
    source.start()
"""
import math
from typing import Optional, Set
from urllib.parse import urlparse
from urllib.request import url2pathname

import numpy as np
import soundfile as sf
from PySide6.QtCore import QObject, QThread, Signal, Slot

from core.peak_aggregator import INTERVAL, INTERVAL_NS, NS_PER_SECOND
from utils.error_handler import log_exception
from utils.logger import get_logger

logger = get_logger(__name__)


def uri_to_path(uri: str) -> str:
    """Accept plain paths and ``file://`` URIs."""
    parsed = urlparse(uri)
    if parsed.scheme == "file":
        return url2pathname(parsed.path)
    return uri


def duration_seconds(uri: str) -> float:
    """Track duration in seconds, read from the file header."""
    info = sf.info(uri_to_path(uri))
    return float(info.duration)


def block_peak_db(block: np.ndarray) -> float:
    """Peak of a (frames, channels) block after mono downmix, in dBFS."""
    if block.size == 0:
        return -math.inf
    mono = block.mean(axis=1) if block.ndim > 1 else block
    peak = float(np.max(np.abs(mono)))
    if peak <= 0.0:
        return -math.inf
    return 20.0 * math.log10(peak)


def interval_frame_end(index: int, samplerate: int) -> int:
    """Frame offset where reading number ``index`` ends (exclusive).

    Boundaries are computed from the start of the track so fractional
    per-interval frame counts (e.g. 1102.5 at 11025 Hz) never accumulate
    into an extra reading.
    """
    return ((index + 1) * samplerate * INTERVAL_NS) // NS_PER_SECOND


def read_interval_blocks(f: sf.SoundFile):
    """Yield float32 (frames, channels) blocks, one per ``INTERVAL`` of audio."""
    index = 0
    position = 0
    while True:
        end = max(position + 1, interval_frame_end(index, f.samplerate))
        block = f.read(end - position, dtype='float32', always_2d=True)
        if len(block) == 0:
            return
        yield block
        position += len(block)
        index += 1


class LevelSourceSignals(QObject):
    """Signals emitted by ``LevelSource``.

    Signals:
        level: one peak reading in dBFS per ``INTERVAL`` of audio
        eos: decoding reached the end of the track (not emitted when stopped
            or on error)
        error: decoding failed, passes error message string
        finished: emitted last, regardless of outcome
    """
    level = Signal(float)
    eos = Signal()
    error = Signal(str)
    finished = Signal()


class LevelSource(QObject):
    """Worker decoding one track and emitting its level readings."""

    def __init__(self, uri: str):
        super().__init__()
        self.uri = uri
        self.signals = LevelSourceSignals()
        self._stop_requested = False

    def stop(self) -> None:
        """Ask ``run`` to stop at the next block boundary."""
        self._stop_requested = True

    @property
    def stop_requested(self) -> bool:
        return self._stop_requested

    @Slot()
    def run(self):
        path = uri_to_path(self.uri)
        try:
            with sf.SoundFile(path) as f:
                logger.debug(
                    f"Decoding {path}: {f.samplerate} Hz, {f.channels} ch, "
                    f"{f.samplerate * INTERVAL:g} frames per reading"
                )
                for block in read_interval_blocks(f):
                    if self._stop_requested:
                        logger.debug(f"Level source stopped: {path}")
                        return
                    self.signals.level.emit(block_peak_db(block))

            if not self._stop_requested:
                self.signals.eos.emit()
        except (RuntimeError, OSError, ValueError) as e:
            log_exception(e, f"Decoding {path}", level="warning")
            self.signals.error.emit(str(e))
        finally:
            self.signals.finished.emit()


class LevelThread(QObject):
    """Runs a ``LevelSource`` on its own QThread.

    ``level``, ``eos`` and ``error`` are re-emitted from this object, which
    lives on the creating thread, so connected callables run there.
    """

    level = Signal(float)
    eos = Signal()
    error = Signal(str)

    # Keeps threads alive until they finish even if the owner drops them
    _running: Set['LevelThread'] = set()

    def __init__(self, uri: str, parent: Optional[QObject] = None):
        super().__init__(parent)
        self.uri = uri
        self.worker = LevelSource(uri)
        self._qthread: Optional[QThread] = None

    def start(self) -> None:
        thread = QThread()
        self._qthread = thread
        self.worker.moveToThread(thread)

        thread.started.connect(self.worker.run)
        self.worker.signals.level.connect(self.level)
        self.worker.signals.eos.connect(self.eos)
        self.worker.signals.error.connect(self.error)
        self.worker.signals.finished.connect(thread.quit)
        thread.finished.connect(self._on_thread_finished)

        LevelThread._running.add(self)
        thread.start()

    def stop(self) -> None:
        self.worker.stop()

    def is_running(self) -> bool:
        return self._qthread is not None and self._qthread.isRunning()

    def wait(self, timeout_ms: int = 5000) -> bool:
        """Block until the worker thread exits (teardown and tests)."""
        if self._qthread is None:
            return True
        return self._qthread.wait(timeout_ms)

    def _on_thread_finished(self) -> None:
        LevelThread._running.discard(self)
