"""
Capture segmentation.

Single Responsibility: Decide when a recording segment opens, extends and
closes around detection episodes.

Detections arrive on the sampling cadence and raw chunks on the recording
cadence; neither order is assumed. Closing is decided purely by comparing
wall-clock time against ``armed_until``, which the driver checks through
``poll()`` on every tick.
"""
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from logger import get_logger
from .detector import DetectionEvent
from .encoding import ClipEncoding

log = get_logger(__name__)

REASON_WINDOW_ELAPSED = "window_elapsed"
REASON_STOPPED = "stopped"
REASON_SOURCE_FAILED = "source_failed"


class CapturePhase(Enum):
    IDLE = "idle"
    ARMED = "armed"
    EXTENDING = "extending"


@dataclass(frozen=True)
class FinalizedClip:
    """A completed capture segment, ready for the clip store."""
    audio: bytes
    encoding: str  # content type
    extension: str
    started_at: float
    finalized_at: float
    chunk_count: int
    pre_roll_count: int
    reason: str


class CaptureSegmenter:
    """
    Sliding-window capture state machine with pre-roll.

    Single Responsibility: Segment state (phase, deadline, buffers).
    """

    def __init__(self, config: dict, encoding: Optional[ClipEncoding]):
        """
        Initialize capture segmenter.

        Args:
            config: Configuration dictionary
            encoding: Negotiated clip encoding, or None to disable capture
        """
        capture_config = config["capture"]
        self.capture_window_sec = capture_config["capture_window_sec"]
        self.pre_roll_chunks = capture_config["pre_roll_chunks"]
        self.encoding = encoding

        self._phase = CapturePhase.IDLE
        self._armed_at: Optional[float] = None
        self._armed_until: Optional[float] = None
        self._pre_roll = deque(maxlen=self.pre_roll_chunks)
        self._pre_roll_snapshot: List[bytes] = []
        self._pending: List[bytes] = []

    @property
    def enabled(self) -> bool:
        return self.encoding is not None

    @property
    def phase(self) -> CapturePhase:
        return self._phase

    @property
    def armed_until(self) -> Optional[float]:
        return self._armed_until

    def on_detection(self, event: DetectionEvent) -> None:
        """Open a capture window, or slide the open one forward."""
        if not self.enabled:
            return

        deadline = event.at_time + self.capture_window_sec
        if self._phase is CapturePhase.IDLE:
            self._phase = CapturePhase.ARMED
            self._armed_at = event.at_time
            self._pre_roll_snapshot = list(self._pre_roll)
            self._pre_roll.clear()
            self._pending = []
            log.info(
                f"Capture armed at {event.value} (threshold {event.threshold}), "
                f"{len(self._pre_roll_snapshot)} pre-roll chunks"
            )
        else:
            self._phase = CapturePhase.EXTENDING
            log.debug(f"Capture extended to {deadline:.1f}")

        # A late-delivered detection never shortens the window
        if self._armed_until is None or deadline > self._armed_until:
            self._armed_until = deadline

    def on_chunk(self, chunk: bytes, now: float) -> Optional[FinalizedClip]:
        """
        Accept one raw audio chunk.

        Returns:
            FinalizedClip if the window had already elapsed, None otherwise
        """
        if not self.enabled:
            return None

        clip = self.poll(now)

        if self._phase is CapturePhase.IDLE:
            if self.pre_roll_chunks > 0:
                self._pre_roll.append(chunk)
        else:
            self._pending.append(chunk)
        return clip

    def poll(self, now: float) -> Optional[FinalizedClip]:
        """Finalize the open segment if its deadline has passed."""
        if self._phase is CapturePhase.IDLE or now < self._armed_until:
            return None
        return self._finalize(now, REASON_WINDOW_ELAPSED)

    def flush(self, now: float, reason: str = REASON_STOPPED) -> Optional[FinalizedClip]:
        """
        Finalize immediately with whatever has accumulated.

        Used on stop and when the chunk source fails; a no-op while idle.
        """
        if self._phase is CapturePhase.IDLE:
            self._pre_roll.clear()
            return None
        return self._finalize(now, reason)

    def _finalize(self, now: float, reason: str) -> Optional[FinalizedClip]:
        chunks = self._pre_roll_snapshot + self._pending
        clip = None
        if chunks:
            clip = FinalizedClip(
                audio=self.encoding.pack(chunks),
                encoding=self.encoding.content_type,
                extension=self.encoding.extension,
                started_at=self._armed_at,
                finalized_at=now,
                chunk_count=len(chunks),
                pre_roll_count=len(self._pre_roll_snapshot),
                reason=reason,
            )
            log.info(f"Capture finalized ({reason}): {len(chunks)} chunks")
        else:
            log.info(f"Capture closed ({reason}) with no audio, nothing to store")

        self._reset_state()
        return clip

    def _reset_state(self) -> None:
        self._phase = CapturePhase.IDLE
        self._armed_at = None
        self._armed_until = None
        self._pre_roll_snapshot = []
        self._pending = []
