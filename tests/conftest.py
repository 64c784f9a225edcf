"""
Pytest configuration and shared fixtures.

This module provides:
- A configuration fixture with storage under a temporary directory
- Open event log / clip store fixtures
- Helpers for building sample blocks and a virtual clock
"""
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import config_loader
import pytest
import numpy as np

# Test constants
BLOCK_SIZE = 256
T0 = 1_700_000_000.0  # fixed Unix time for virtual clocks


@pytest.fixture
def project_root_path():
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def config(tmp_path):
    """Default configuration with all storage under tmp_path."""
    cfg = config_loader.get_default_config()
    cfg["storage"]["events_file"] = str(tmp_path / "events.csv")
    cfg["storage"]["clips_dir"] = str(tmp_path / "clips")
    cfg["storage"]["clips_index"] = str(tmp_path / "clips.csv")
    return cfg


@pytest.fixture
def event_log(config):
    from core import EventLog
    log = EventLog(config)
    log.open()
    yield log
    log.close()


@pytest.fixture
def clip_store(config):
    from core import ClipStore
    store = ClipStore(config)
    store.open()
    yield store
    store.close()


class VirtualClock:
    """Manually advanced clock for deadline tests."""

    def __init__(self, start: float = T0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> float:
        self.now += seconds
        return self.now


@pytest.fixture
def clock():
    return VirtualClock()


# Helper functions for test data creation

def silent_block(size: int = BLOCK_SIZE) -> np.ndarray:
    """Byte-domain block at the 128 mid-point (zero amplitude)."""
    return np.full(size, 128, dtype=np.uint8)


def square_block(size: int = BLOCK_SIZE) -> np.ndarray:
    """Full-scale byte-domain square wave [0, 255, 0, 255, ...]."""
    block = np.zeros(size, dtype=np.uint8)
    block[1::2] = 255
    return block


def sine_block(amplitude: float, size: int = BLOCK_SIZE) -> np.ndarray:
    """Normalized float sine block with the given peak amplitude."""
    t = np.arange(size)
    return (amplitude * np.sin(2 * np.pi * t / 32)).astype(np.float32)
