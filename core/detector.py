"""
Detection logic.

Single Responsibility: Turn a loudness stream into debounced detection events.
"""
from dataclasses import dataclass
from typing import Optional

from logger import get_logger

log = get_logger(__name__)


@dataclass(frozen=True)
class DetectionEvent:
    """A confirmed threshold crossing."""
    value: int
    threshold: int
    at_time: float  # Unix timestamp


class DetectionTracker:
    """
    Rate-limits threshold crossings into detection events.

    There is no hysteresis band: dropping back below the threshold only
    stops further events until the next qualifying tick. The debounce window
    is wall-clock time so scheduling jitter does not change the spacing.
    """

    def __init__(self, config: dict):
        """
        Initialize detection tracker.

        Args:
            config: Configuration dictionary
        """
        self.debounce_window_sec = config["detection"]["debounce_window_sec"]
        self._last_detected_at: Optional[float] = None

    def on_tick(self, loudness: int, threshold: int, now: float) -> Optional[DetectionEvent]:
        """
        Process one loudness reading.

        Args:
            loudness: Loudness value for this tick
            threshold: Current threshold, read once per tick
            now: Tick timestamp

        Returns:
            DetectionEvent if a crossing is confirmed, None otherwise
        """
        if loudness < threshold:
            return None

        if (
            self._last_detected_at is not None
            and now - self._last_detected_at <= self.debounce_window_sec
        ):
            return None

        self._last_detected_at = now
        log.debug(f"Detection: {loudness} >= {threshold}")
        return DetectionEvent(value=loudness, threshold=threshold, at_time=now)

    def reset(self) -> None:
        """Forget the last detection (called at session start)."""
        self._last_detected_at = None

    @property
    def last_detected_at(self) -> Optional[float]:
        """Timestamp of the most recent emitted event."""
        return self._last_detected_at
