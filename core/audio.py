"""
Audio capture abstraction.

Single Responsibility: Handle audio input from hardware.
"""
import subprocess
import time
from dataclasses import dataclass
from typing import Optional, List

import numpy as np

from logger import get_logger
from .errors import SourceUnavailable

log = get_logger(__name__)


@dataclass
class AudioBlock:
    """One tick of captured audio."""
    samples: np.ndarray  # uint8 byte-domain samples, 128 = silence
    raw_bytes: bytes  # PCM bytes as recorded (post-gain)
    sample_rate: int
    timestamp: float  # Unix timestamp

    @property
    def duration_sec(self) -> float:
        """Duration of block in seconds."""
        return len(self.samples) / self.sample_rate


def apply_gain(samples: np.ndarray, gain: float) -> np.ndarray:
    """
    Amplify byte-domain samples around the 128 mid-point.

    Args:
        samples: uint8 samples
        gain: Linear amplification factor (1.0 = unchanged)

    Returns:
        uint8 samples clipped to [0, 255]
    """
    if gain == 1.0:
        return samples
    centered = samples.astype(np.float32) - 128.0
    amplified = np.clip(np.round(centered * gain + 128.0), 0, 255)
    return amplified.astype(np.uint8)


class ChunkBuffer:
    """
    Groups per-tick PCM into fixed-cadence recording chunks.

    Single Responsibility: Chunking cadence for the capture stream.
    """

    def __init__(self, chunk_interval_sec: float):
        self.chunk_interval_sec = chunk_interval_sec
        self._parts: List[bytes] = []
        self._started_at: Optional[float] = None

    def push(self, data: bytes, now: float) -> Optional[bytes]:
        """
        Add PCM bytes; return a completed chunk once the interval has elapsed.
        """
        if self._started_at is None:
            self._started_at = now
        self._parts.append(data)

        if now - self._started_at >= self.chunk_interval_sec:
            return self.drain()
        return None

    def drain(self) -> Optional[bytes]:
        """Return whatever has been buffered (None if empty) and reset."""
        if not self._parts:
            self._started_at = None
            return None
        chunk = b"".join(self._parts)
        self._parts = []
        self._started_at = None
        return chunk


class AudioCapture:
    """
    Handles audio capture from ALSA arecord.

    Single Responsibility: Audio I/O operations.
    """

    BYTES_PER_SAMPLE = 1

    def __init__(self, config: dict):
        """
        Initialize audio capture.

        Args:
            config: Configuration dictionary with audio settings
        """
        self.audio_config = config["audio"]
        self.sample_rate = self.audio_config["sample_rate"]
        self.channels = self.audio_config["channels"]
        self.gain = self.audio_config["gain"]
        self.tick_interval = config["monitoring"]["tick_interval_sec"]
        self.block_samples = int(self.sample_rate * self.tick_interval)
        self.block_bytes = self.block_samples * self.BYTES_PER_SAMPLE * self.channels

        self._process: Optional[subprocess.Popen] = None

    def start(self) -> None:
        """
        Start audio capture process.

        Raises:
            SourceUnavailable: If arecord is missing or exits immediately
        """
        if self._process is not None:
            raise RuntimeError("Audio capture already started")

        device = self.audio_config["device"]
        if not device or not isinstance(device, str):
            raise SourceUnavailable(
                f"Invalid audio device configuration: {device}. "
                f"Expected string like 'plughw:CARD=Device,DEV=0'"
            )

        cmd = [
            "arecord",
            "-D", device,
            "-f", self.audio_config["sample_format"],
            "-r", str(self.sample_rate),
            "-c", str(self.channels),
            "-q",
            "-t", "raw"
        ]

        try:
            self._process = subprocess.Popen(
                cmd,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE
            )
        except FileNotFoundError:
            raise SourceUnavailable(
                "arecord command not found. Install alsa-utils: "
                "sudo apt-get install alsa-utils"
            )
        except OSError as e:
            raise SourceUnavailable(
                f"Failed to start arecord process. Command: {' '.join(cmd)}. Error: {e}"
            )

        # Give process a moment to initialize
        time.sleep(0.1)

        if self._process.poll() is not None:
            stderr_msg = ""
            if self._process.stderr:
                stderr_msg = self._process.stderr.read().decode(errors="ignore").strip()
            self._process = None

            error_hints = {
                "Device or resource busy": "Audio device is in use by another process",
                "No such file or directory": f"Audio device '{device}' not found. Check with 'arecord -l'",
                "Permission denied": "No permission to access audio device. Add user to audio group: 'sudo usermod -a -G audio $USER'",
                "Invalid argument": f"Invalid audio device or format. Device: {device}, Format: {self.audio_config['sample_format']}"
            }

            hint = ""
            for key, msg in error_hints.items():
                if key in stderr_msg:
                    hint = f" Hint: {msg}"
                    break

            raise SourceUnavailable(
                f"arecord failed to start. Device: {device}. Error: {stderr_msg}.{hint}"
            )

        log.info(f"Audio capture started on {device}")

    def read_block(self) -> Optional[AudioBlock]:
        """
        Read the next tick of audio.

        Returns:
            AudioBlock or None if stream ended
        """
        if self._process is None:
            raise RuntimeError("Audio capture not started")

        if self._process.stdout is None:
            return None

        data = self._process.stdout.read(self.block_bytes)

        if not data or len(data) < self.block_bytes:
            return None

        samples = apply_gain(np.frombuffer(data, dtype=np.uint8), self.gain)

        return AudioBlock(
            samples=samples,
            raw_bytes=samples.tobytes(),
            sample_rate=self.sample_rate,
            timestamp=time.time()
        )

    def is_running(self) -> bool:
        """Check if capture process is still running."""
        if self._process is None:
            return False
        return self._process.poll() is None

    def stop(self) -> None:
        """Stop audio capture process."""
        if self._process is None:
            return

        if self._process.poll() is None:
            self._process.terminate()
            time.sleep(0.1)
            if self._process.poll() is None:
                self._process.kill()

        self._process = None
        log.info("Audio capture stopped")

    def __enter__(self):
        """Context manager entry."""
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.stop()
