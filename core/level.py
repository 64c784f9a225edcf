"""
Loudness estimation.

Single Responsibility: Convert one block of samples into a dB-like integer.

The scale is relative, not calibrated against a physical reference: a
full-scale square wave reads about 115 and digital silence reads 0.
"""
import math
from dataclasses import dataclass
from typing import Sequence, Union

import numpy as np

LEVEL_OFFSET_DB = 115
BYTE_MIDPOINT = 128.0


@dataclass(frozen=True)
class LoudnessReading:
    """A single loudness value taken at one sampling tick."""
    value: int
    at_time: float  # Unix timestamp


def normalize_block(block: Union[np.ndarray, bytes, Sequence[float]]) -> np.ndarray:
    """
    Map a sample block to signed amplitudes in [-1.0, 1.0].

    Byte-domain input (any integer dtype, bytes or bytearray, 0..255) is
    mapped via (raw / 128) - 1; floats are taken as already normalized.
    """
    if isinstance(block, (bytes, bytearray)):
        block = np.frombuffer(block, dtype=np.uint8)
    samples = np.asarray(block)
    if np.issubdtype(samples.dtype, np.integer):
        return samples.astype(np.float64) / BYTE_MIDPOINT - 1.0
    return samples.astype(np.float64)


def estimate(block: Union[np.ndarray, Sequence[float]], offset_db: float = LEVEL_OFFSET_DB) -> int:
    """
    Estimate loudness of a sample block.

    Args:
        block: uint8 byte-domain samples or normalized float samples
        offset_db: Calibration offset added to the dBFS value

    Returns:
        Non-negative integer loudness; 0 for silence, empty or non-finite input
    """
    samples = normalize_block(block)
    if samples.size == 0:
        return 0

    with np.errstate(over="ignore", invalid="ignore"):
        rms = float(np.sqrt(np.mean(samples ** 2)))

    if not math.isfinite(rms) or rms <= 0.0:
        return 0

    value = 20.0 * math.log10(rms) + offset_db
    # Half-up rounding, then clamp
    return max(0, int(math.floor(value + 0.5)))


class LevelMeter:
    """
    Stateless loudness meter bound to a configured offset.

    Single Responsibility: Level estimation.
    """

    def __init__(self, config: dict):
        self.offset_db = config["detection"]["level_offset_db"]

    def estimate(self, block) -> int:
        return estimate(block, self.offset_db)

    def read(self, block, now: float) -> LoudnessReading:
        """Estimate loudness and stamp it with the tick time."""
        return LoudnessReading(value=self.estimate(block), at_time=now)
