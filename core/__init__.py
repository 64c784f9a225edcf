"""
Core components of the noise monitor.

Leaf-first: the level meter turns sample blocks into loudness, the detection
tracker rate-limits threshold crossings, the capture segmenter brackets
detection episodes with audio, and the repositories persist the event log
and clips.
"""

from .errors import (
    NoiseMonitorError,
    SourceUnavailable,
    PersistenceUnavailable,
    EncodingUnsupported,
)
from .audio import AudioBlock, AudioCapture, ChunkBuffer, apply_gain
from .level import LevelMeter, LoudnessReading, estimate
from .detector import DetectionEvent, DetectionTracker
from .encoding import ClipEncoding, WavEncoding, negotiate_encoding, extension_for
from .segmenter import CapturePhase, CaptureSegmenter, FinalizedClip
from .repository import (
    ClipSegment,
    ClipStore,
    EventLog,
    LogEntry,
    download_name,
)
from .writer import StoreWriter
from .reporting import (
    format_log_line,
    render_export,
    write_export,
    load_events,
    summarize_detections,
)

__all__ = [
    # Errors
    'NoiseMonitorError',
    'SourceUnavailable',
    'PersistenceUnavailable',
    'EncodingUnsupported',
    # Audio
    'AudioBlock',
    'AudioCapture',
    'ChunkBuffer',
    'apply_gain',
    # Level
    'LevelMeter',
    'LoudnessReading',
    'estimate',
    # Detector
    'DetectionEvent',
    'DetectionTracker',
    # Encoding
    'ClipEncoding',
    'WavEncoding',
    'negotiate_encoding',
    'extension_for',
    # Segmenter
    'CapturePhase',
    'CaptureSegmenter',
    'FinalizedClip',
    # Repository
    'ClipSegment',
    'ClipStore',
    'EventLog',
    'LogEntry',
    'download_name',
    # Writer
    'StoreWriter',
    # Reporting
    'format_log_line',
    'render_export',
    'write_export',
    'load_events',
    'summarize_detections',
]
