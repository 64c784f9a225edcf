"""
Tests for core.audio module.

Tests gain, chunk cadence and capture start failures.
"""
import subprocess

import numpy as np
import pytest

from core.audio import AudioCapture, ChunkBuffer, apply_gain
from core.errors import SourceUnavailable

from tests.conftest import T0


class TestApplyGain:
    """Test amplification around the mid-point."""

    def test_unity_gain_unchanged(self):
        samples = np.array([0, 100, 128, 200, 255], dtype=np.uint8)
        assert np.array_equal(apply_gain(samples, 1.0), samples)

    def test_gain_doubles_distance_from_midpoint(self):
        samples = np.array([118, 128, 138], dtype=np.uint8)
        assert list(apply_gain(samples, 2.0)) == [108, 128, 148]

    def test_gain_clips(self):
        samples = np.array([10, 250], dtype=np.uint8)
        result = apply_gain(samples, 4.0)
        assert result.dtype == np.uint8
        assert list(result) == [0, 255]


class TestChunkBuffer:
    """Test the recording cadence."""

    def test_emits_after_interval(self):
        buffer = ChunkBuffer(1.0)
        for i in range(10):
            assert buffer.push(b"x", T0 + i * 0.1) is None
        assert buffer.push(b"y", T0 + 1.0) == b"x" * 10 + b"y"

    def test_restarts_after_emit(self):
        buffer = ChunkBuffer(1.0)
        buffer.push(b"a", T0)
        assert buffer.push(b"b", T0 + 1.0) == b"ab"
        assert buffer.push(b"c", T0 + 1.1) is None

    def test_drain_partial(self):
        buffer = ChunkBuffer(1.0)
        buffer.push(b"a", T0)
        buffer.push(b"b", T0 + 0.1)
        assert buffer.drain() == b"ab"
        assert buffer.drain() is None


class TestAudioCapture:
    """Test capture start failures."""

    def test_block_size_from_tick(self, config):
        capture = AudioCapture(config)
        assert capture.block_samples == 800
        assert capture.block_bytes == 800

    def test_missing_arecord(self, config, monkeypatch):
        def fake_popen(*args, **kwargs):
            raise FileNotFoundError("arecord")

        monkeypatch.setattr(subprocess, "Popen", fake_popen)
        capture = AudioCapture(config)
        with pytest.raises(SourceUnavailable, match="arecord command not found"):
            capture.start()
        assert not capture.is_running()

    def test_invalid_device(self, config):
        config["audio"]["device"] = ""
        with pytest.raises(SourceUnavailable):
            AudioCapture(config).start()

    def test_read_before_start(self, config):
        with pytest.raises(RuntimeError):
            AudioCapture(config).read_block()
