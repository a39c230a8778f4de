"""PeakAggregator

Turns the stream of level readings produced while decoding a track into the
peak array drawn by the waveform.

Responsibilities:
- Convert each dB reading to a linear peak and accumulate it
- Publish an interim array padded with zeros to the duration-derived length,
  rate limited to one notification per ``THROTTLE_MS`` window
- Publish the exact, unpadded array once the decoder reports end-of-stream

Non-responsibilities (explicit):
- Decoding and level metering (see ``audio.level_source``)
- Painting (see ``core.waveform_view``)

Peaks are published as tuples; a new tuple replaces the old one on every
change so observers never see a half-updated array.
"""
import math
from typing import Callable, List, Optional, Tuple

from core.observers import ObserverList
from core.throttle import Throttle
from utils.error_handler import safe_operation
from utils.logger import get_logger

logger = get_logger(__name__)

Peaks = Tuple[float, ...]

NS_PER_SECOND = 1_000_000_000
# Width of one peak bucket, in pipeline time
INTERVAL_NS = 100_000_000
INTERVAL = INTERVAL_NS / NS_PER_SECOND  # seconds
THROTTLE_MS = 100


def db_to_linear(db: float) -> float:
    """Convert a decibel reading to linear amplitude (0 dB -> 1.0)."""
    if db == -math.inf:
        return 0.0
    return math.pow(10.0, db / 20.0)


def peak_count_for_duration(duration: Optional[float]) -> int:
    """Number of ``INTERVAL`` buckets needed to cover ``duration`` seconds.

    Unknown (None, NaN, infinite) or non-positive durations give 0. The division is done
    on whole nanoseconds so exact multiples of the interval do not round up.
    """
    if duration is None or not math.isfinite(duration) or duration <= 0:
        return 0
    duration_ns = int(round(duration * NS_PER_SECOND))
    return -(-duration_ns // INTERVAL_NS)


def _default_source_factory(uri: str):
    from audio.level_source import LevelThread
    return LevelThread(uri)


class PeakAggregator:
    """Accumulates level samples for one track at a time.

    A session begins with ``start(uri, duration)``. The level source created
    for it is expected to expose connectable ``level(float)`` and ``eos()``
    signals (plus an optional ``error(str)``), and ``start()``/``stop()``.
    Its events must be delivered on the thread that owns the aggregator.
    """

    def __init__(self, source_factory: Optional[Callable] = None,
                 throttle_ms: int = THROTTLE_MS) -> None:
        self._source_factory = source_factory or _default_source_factory
        self._source = None
        # Last source handed off by stop(), end-of-stream or error; kept so its
        # worker thread can be joined
        self._released = None
        self._uri: Optional[str] = None
        self._duration: Optional[float] = None

        self._started: bool = False
        self._loaded: List[float] = []
        self._peaks: Peaks = ()

        self._peaks_observers = ObserverList("peaks observer")
        self._throttled_notify = Throttle(self._notify_peaks, throttle_ms)

    # ---------------------- Properties ----------------------
    @property
    def peaks(self) -> Peaks:
        return self._peaks

    @property
    def started(self) -> bool:
        return self._started

    @property
    def duration(self) -> Optional[float]:
        return self._duration

    @property
    def sample_count(self) -> int:
        return len(self._loaded)

    @property
    def uri(self) -> Optional[str]:
        return self._uri

    def on_peaks_changed(self, callback: Callable[[Peaks], None]) -> Callable[[], None]:
        """Register a callback receiving each published peak tuple.

        Returns:
            unsubscribe: a callable removing the callback.
        """
        return self._peaks_observers.add(callback)

    def _notify_peaks(self) -> None:
        self._peaks_observers.notify(self._peaks)

    def _set_peaks(self, peaks: Peaks) -> None:
        self._peaks = peaks
        self._notify_peaks()

    # ---------------------- Session control ----------------------
    def start(self, uri: str, duration: Optional[float]) -> None:
        """Begin aggregating peaks for ``uri``.

        Args:
            uri: source identifier handed to the level source factory
            duration: track length in seconds; None or <= 0 if unknown, in
                which case no interim arrays are published
        """
        self.restart()
        self.stop()

        self._uri = uri
        self._duration = duration
        logger.info(
            f"Generating peaks for {uri} "
            f"({peak_count_for_duration(duration)} buckets expected)"
        )

        source = self._source_factory(uri)
        source.level.connect(self.handle_level)
        source.eos.connect(self.handle_eos)
        if hasattr(source, "error"):
            source.error.connect(self.handle_error)
        self._source = source
        source.start()

    def restart(self) -> None:
        """Mark the session as started and drop everything accumulated so far.

        Safe at any time; the visible peaks are cleared synchronously.
        """
        self._started = True
        self._loaded = []
        self._throttled_notify.cancel()
        if self._peaks:
            self._set_peaks(())

    def stop(self) -> None:
        """Stop the running level source, if any.

        Returns immediately; call ``wait()`` to join the decoder thread.
        """
        source = self._source
        self._source = None
        if source is None:
            return
        self._released = source
        logger.debug(f"Stopping level source for {self._uri}")
        # Readings still queued from the old source must not reach a new session
        with safe_operation("Disconnecting level source", silent=True, log_level="debug"):
            source.level.disconnect(self.handle_level)
            source.eos.disconnect(self.handle_eos)
            if hasattr(source, "error"):
                source.error.disconnect(self.handle_error)
        source.stop()

    def wait(self, timeout_ms: int = 5000) -> bool:
        """Block until the current or last released source has finished.

        Returns True when there is nothing left running, False on timeout.
        Sources without a ``wait`` method are treated as finished.
        """
        source = self._source or self._released
        wait = getattr(source, "wait", None)
        if wait is None:
            return True
        finished = wait(timeout_ms)
        if finished and source is self._released:
            self._released = None
        return finished

    # ---------------------- Pipeline events ----------------------
    def handle_level(self, db: float) -> None:
        self._loaded.append(db_to_linear(db))

        peaks_number = peak_count_for_duration(self._duration)
        if peaks_number <= 0:
            return

        remaining = max(0, peaks_number - len(self._loaded))
        self._peaks = tuple(self._loaded) + (0.0,) * remaining
        self._throttled_notify()

    def handle_eos(self) -> None:
        self._throttled_notify.cancel()
        if self._started:
            self._set_peaks(tuple(self._loaded))
            logger.info(f"Peaks ready: {len(self._loaded)} buckets for {self._uri}")

        self._loaded = []
        self._release_source()

    def handle_error(self, message: str) -> None:
        logger.error(f"Level source failed for {self._uri}: {message}")
        self._release_source()

    def _release_source(self) -> None:
        if self._source is not None:
            self._released = self._source
        self._source = None
