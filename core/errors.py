"""
Error taxonomy for the noise monitor.

Loudness estimation never raises: an all-silent or pathological block is
clamped to 0 by the level meter, so there is no exception for it here.
"""


class NoiseMonitorError(Exception):
    """Base class for noise monitor errors."""


class SourceUnavailable(NoiseMonitorError):
    """The audio source could not be acquired (missing device, permission denied)."""


class PersistenceUnavailable(NoiseMonitorError):
    """The durable store is not open when a read or write is attempted."""


class EncodingUnsupported(NoiseMonitorError):
    """No content type could be negotiated for clip capture."""
