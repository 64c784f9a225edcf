"""
Clip encodings and content-type negotiation.

Single Responsibility: Turn accumulated raw chunks into one clip blob.
"""
import io
import wave
from typing import Dict, Iterable, List, Optional

from logger import get_logger
from .errors import EncodingUnsupported

log = get_logger(__name__)


class ClipEncoding:
    """Concatenates chunks as opaque bytes."""

    def __init__(self, content_type: str, extension: str):
        self.content_type = content_type
        self.extension = extension

    def pack(self, chunks: Iterable[bytes]) -> bytes:
        return b"".join(chunks)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.content_type!r})"


class WavEncoding(ClipEncoding):
    """Wraps concatenated PCM chunks in a WAV container."""

    def __init__(self, sample_rate: int, channels: int, sample_width: int = 1):
        super().__init__("audio/wav", "wav")
        self.sample_rate = sample_rate
        self.channels = channels
        self.sample_width = sample_width

    def pack(self, chunks: Iterable[bytes]) -> bytes:
        buf = io.BytesIO()
        with wave.open(buf, "wb") as wf:
            wf.setnchannels(self.channels)
            wf.setsampwidth(self.sample_width)
            wf.setframerate(self.sample_rate)
            for chunk in chunks:
                wf.writeframes(chunk)
        return buf.getvalue()


def available_encodings(audio_config: dict) -> Dict[str, ClipEncoding]:
    """Encodings this host can produce, keyed by content type."""
    return {
        "audio/wav": WavEncoding(audio_config["sample_rate"], audio_config["channels"]),
        "audio/x-raw": ClipEncoding("audio/x-raw", "raw"),
        "application/octet-stream": ClipEncoding("application/octet-stream", "bin"),
    }


def negotiate_encoding(
    preferred: List[str],
    audio_config: dict,
    supported: Optional[Iterable[str]] = None
) -> ClipEncoding:
    """
    Pick the clip encoding for a session.

    Args:
        preferred: Content types in order of preference
        audio_config: Audio section of the configuration
        supported: Content types the host accepts (default: all available)

    Returns:
        First preferred supported encoding, else the first supported one

    Raises:
        EncodingUnsupported: If nothing at all can be produced
    """
    encodings = available_encodings(audio_config)
    if supported is not None:
        allowed = set(supported)
        encodings = {k: v for k, v in encodings.items() if k in allowed}

    for content_type in preferred:
        if content_type in encodings:
            return encodings[content_type]

    if encodings:
        fallback = next(iter(encodings.values()))
        log.warning(
            f"None of {preferred} supported, falling back to {fallback.content_type}"
        )
        return fallback

    raise EncodingUnsupported(f"No clip encoding available (preferred: {preferred})")


def extension_for(content_type: str) -> str:
    """Filename extension matching a stored content type."""
    if "wav" in content_type:
        return "wav"
    if "x-raw" in content_type:
        return "raw"
    if "mp4" in content_type:
        return "m4a"
    if "webm" in content_type:
        return "webm"
    if "ogg" in content_type:
        return "ogg"
    return "bin"
