#!/usr/bin/env python3
"""
Noise monitor: session controller and main loop.

A MonitorSession owns the meter, the detection tracker and the capture
segmenter, and hands every write to a StoreWriter so the sampling tick never
waits on disk. run_monitor() drives a session from arecord.
"""
import argparse
import logging
import sys
import time
from concurrent.futures import Future
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

import config_loader
from logger import get_logger, log_session_banner, setup_logging
from core import (
    AudioCapture,
    CaptureSegmenter,
    ChunkBuffer,
    ClipEncoding,
    ClipStore,
    DetectionTracker,
    EncodingUnsupported,
    EventLog,
    FinalizedClip,
    LevelMeter,
    LoudnessReading,
    SourceUnavailable,
    StoreWriter,
    negotiate_encoding,
)
from core.repository import KIND_DETECTION, KIND_EVENT
from core.segmenter import REASON_SOURCE_FAILED, REASON_STOPPED

log = get_logger(__name__)


@dataclass
class SessionOutcome:
    """Pending writes produced by a session boundary."""
    marker: Future  # resolves to the EVENT LogEntry
    clip: Optional[Future] = None  # resolves to the ClipSegment, if one was finalized


class MonitorSession:
    """
    One monitoring session.

    on_block() is the sampling tick and on_chunk() the recording cadence;
    both run on the caller's thread and neither raises. A multi-threaded host
    must call them from one thread.
    """

    def __init__(
        self,
        config: dict,
        event_log: EventLog,
        clip_store: ClipStore,
        writer: StoreWriter,
        encoding: Optional[ClipEncoding] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.config = config
        self.event_log = event_log
        self.clip_store = clip_store
        self.writer = writer
        self.clock = clock
        self.gain = config["audio"]["gain"]

        # Externally writable; read once per tick
        self.threshold: int = config["monitoring"]["threshold"]

        self.meter = LevelMeter(config)
        self.tracker = DetectionTracker(config)
        self.segmenter = CaptureSegmenter(config, encoding)

        self.last_reading: Optional[LoudnessReading] = None
        self._source = None
        self._monitoring = False

    @property
    def is_monitoring(self) -> bool:
        return self._monitoring

    def start(self, now: Optional[float] = None, source=None) -> SessionOutcome:
        """
        Begin monitoring.

        Args:
            now: Start time (default: clock)
            source: Optional audio source with start()/stop()

        Raises:
            SourceUnavailable: If the source cannot be acquired; the session
                stays idle
        """
        if self._monitoring:
            raise RuntimeError("Session already running")

        if source is not None:
            try:
                source.start()
            except SourceUnavailable as e:
                log.error(f"Cannot start monitoring: {e}")
                raise
            self._source = source

        if now is None:
            now = self.clock()

        self.tracker.reset()
        self.last_reading = None
        self._monitoring = True
        if not self.segmenter.enabled:
            log.warning("Clip capture disabled for this session; detection and logging continue")

        log.info(f"Monitoring started (threshold {self.threshold}, gain {self.gain})")
        marker = self._log_event(f"Monitoring started (gain: {self.gain})", now)
        return SessionOutcome(marker=marker)

    def stop(self, now: Optional[float] = None, reason: str = REASON_STOPPED) -> Optional[SessionOutcome]:
        """
        Stop monitoring, finalizing any open capture first.

        Returns:
            SessionOutcome, or None if the session was not running
        """
        if not self._monitoring:
            return None
        if now is None:
            now = self.clock()

        self._monitoring = False
        clip_future = self._persist_clip(self.segmenter.flush(now, reason))

        if self._source is not None:
            self._source.stop()
            self._source = None

        log.info("Monitoring stopped")
        marker = self._log_event("Monitoring stopped", now)
        return SessionOutcome(marker=marker, clip=clip_future)

    def source_failed(self, now: float, error) -> Optional[SessionOutcome]:
        """The audio source died mid-session: keep what was captured and stop."""
        log.error(f"Audio source failed: {error}")
        return self.stop(now, reason=REASON_SOURCE_FAILED)

    def on_block(self, samples, now: float) -> Optional[LoudnessReading]:
        """
        Run one sampling tick.

        Returns:
            The loudness reading, or None when not monitoring
        """
        if not self._monitoring:
            return None

        threshold = self.threshold
        reading = self.meter.read(samples, now)
        self.last_reading = reading

        event = self.tracker.on_tick(reading.value, threshold, now)
        if event is not None:
            self._submit(self.event_log.append, KIND_DETECTION, event.value, event.threshold, now)
            self.segmenter.on_detection(event)

        self._persist_clip(self.segmenter.poll(now))
        return reading

    def on_chunk(self, chunk: bytes, now: float) -> None:
        """Feed one recording chunk to the segmenter."""
        if not self._monitoring:
            return
        self._persist_clip(self.segmenter.on_chunk(chunk, now))

    def poll(self, now: float) -> None:
        """Check the capture deadline without new audio."""
        if not self._monitoring:
            return
        self._persist_clip(self.segmenter.poll(now))

    def _log_event(self, message: str, now: float) -> Future:
        return self._submit(self.event_log.append, KIND_EVENT, message, self.threshold, now)

    def _persist_clip(self, clip: Optional[FinalizedClip]) -> Optional[Future]:
        if clip is None:
            return None
        return self._submit(self.clip_store.append, clip.audio, clip.encoding, clip.finalized_at)

    def _submit(self, fn, *args) -> Future:
        future = self.writer.submit(fn, *args)
        future.add_done_callback(_warn_on_failure)
        return future


def _warn_on_failure(future: Future) -> None:
    error = future.exception()
    if error is not None:
        log.warning(f"Write failed: {error}")


def _open_store(store) -> None:
    try:
        store.open()
    except (OSError, ValueError, KeyError) as e:
        log.error(f"Could not open {type(store).__name__}: {e!r}; writes will be rejected")


def run_monitor(
    config_path: Optional[Path] = None,
    debug: bool = False,
    threshold: Optional[int] = None
) -> int:
    """
    Run the audio monitor until interrupted or the stream ends.

    Args:
        config_path: Optional path to config.json (defaults to ./config.json)
        debug: If True, enable DEBUG logging
        threshold: Override for monitoring.threshold

    Returns:
        Process exit code
    """
    config = config_loader.load_config(config_path)

    log_config = config["logging"]
    log_file = Path(log_config["log_file"]) if log_config["log_file"] else None
    setup_logging(log_file, log_config["level"], debug)
    log_session_banner(log, config)

    event_log = EventLog(config)
    clip_store = ClipStore(config)
    _open_store(event_log)
    _open_store(clip_store)

    try:
        encoding = negotiate_encoding(config["capture"]["preferred_encodings"], config["audio"])
    except EncodingUnsupported as e:
        log.warning(f"{e}; capture disabled")
        encoding = None

    writer = StoreWriter()
    writer.start()

    capture = AudioCapture(config)
    session = MonitorSession(config, event_log, clip_store, writer, encoding)
    if threshold is not None:
        session.threshold = threshold

    try:
        session.start(source=capture)
    except SourceUnavailable:
        writer.close()
        return 1

    chunker = ChunkBuffer(config["capture"]["chunk_interval_sec"])
    window = config["audio"]["analysis_window"]
    now = time.time()

    try:
        while session.is_monitoring:
            block = capture.read_block()
            if block is None:
                # Tail is stamped with the last block time so it lands in the open segment
                tail = chunker.drain()
                if tail is not None:
                    session.on_chunk(tail, now)
                session.source_failed(now, "audio stream ended")
                break

            now = block.timestamp
            reading = session.on_block(block.samples[-window:], now)
            chunk = chunker.push(block.raw_bytes, now)
            if chunk is not None:
                session.on_chunk(chunk, now)

            if log.isEnabledFor(logging.DEBUG):
                log.debug(
                    f"level {reading.value:3d} | threshold {session.threshold:3d} | "
                    f"capture {session.segmenter.phase.value}"
                )
    except KeyboardInterrupt:
        log.info("Stopping monitor (Ctrl+C received)...")
    finally:
        if session.is_monitoring:
            tail = chunker.drain()
            if tail is not None:
                session.on_chunk(tail, now)
            session.stop(time.time())
        writer.close()
        event_log.close()
        clip_store.close()
        log.info("Monitor stopped and cleaned up.")

    return 0


def main() -> None:
    parser = argparse.ArgumentParser(description="Monitor ambient noise and capture clips around loud episodes")
    parser.add_argument("--config", type=Path, default=None, help="Path to config.json")
    parser.add_argument("--threshold", type=int, default=None, help="Detection threshold (overrides config)")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    if args.threshold is not None and args.threshold < 0:
        parser.error("--threshold must be non-negative")

    sys.exit(run_monitor(args.config, debug=args.debug, threshold=args.threshold))


if __name__ == "__main__":
    main()
