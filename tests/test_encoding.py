"""
Tests for core.encoding module.

Tests content-type negotiation and filename extensions.
"""
import pytest

from core.encoding import (
    ClipEncoding,
    WavEncoding,
    extension_for,
    negotiate_encoding,
)
from core.errors import EncodingUnsupported

AUDIO = {"sample_rate": 8000, "channels": 1}


class TestNegotiateEncoding:
    """Test encoding negotiation."""

    def test_first_preferred_wins(self):
        encoding = negotiate_encoding(["audio/wav", "audio/x-raw"], AUDIO)
        assert isinstance(encoding, WavEncoding)
        assert encoding.sample_rate == 8000

    def test_skips_unsupported_preference(self):
        encoding = negotiate_encoding(["audio/webm;codecs=opus", "audio/x-raw"], AUDIO)
        assert encoding.content_type == "audio/x-raw"

    def test_host_restricts_supported(self):
        encoding = negotiate_encoding(
            ["audio/wav", "audio/x-raw"], AUDIO, supported=["audio/x-raw"]
        )
        assert encoding.content_type == "audio/x-raw"

    def test_fallback_when_no_preference_matches(self):
        encoding = negotiate_encoding(
            ["audio/ogg"], AUDIO, supported=["application/octet-stream"]
        )
        assert encoding.content_type == "application/octet-stream"

    def test_nothing_supported_raises(self):
        with pytest.raises(EncodingUnsupported):
            negotiate_encoding(["audio/wav"], AUDIO, supported=[])


class TestClipEncoding:
    """Test packing."""

    def test_opaque_concatenation(self):
        encoding = ClipEncoding("application/octet-stream", "bin")
        assert encoding.pack([b"ab", b"", b"cd"]) == b"abcd"

    def test_wav_header(self):
        data = WavEncoding(8000, 1).pack([b"\x80" * 10])
        assert data[:4] == b"RIFF"
        assert data[8:12] == b"WAVE"


class TestExtensionFor:
    """Test download extensions."""

    @pytest.mark.parametrize("content_type,expected", [
        ("audio/wav", "wav"),
        ("audio/x-raw", "raw"),
        ("audio/mp4", "m4a"),
        ("audio/webm;codecs=opus", "webm"),
        ("audio/ogg", "ogg"),
        ("application/octet-stream", "bin"),
    ])
    def test_extension(self, content_type, expected):
        assert extension_for(content_type) == expected
