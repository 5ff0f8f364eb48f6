"""Exceptions raised by the voice command core."""


class PodcastVoiceError(Exception):
    """Base class for all package errors."""


class FormatError(PodcastVoiceError):
    """Transcript body could not be interpreted in the requested format."""


class CapabilityError(PodcastVoiceError):
    """An external playback or transport capability failed."""


class NotConnectedError(PodcastVoiceError):
    """Voice session operation requires an established connection."""


class AuthenticationError(PodcastVoiceError):
    """Token issuance for the voice transport failed."""


class ResponseTimeoutError(PodcastVoiceError):
    """No response arrived from the voice session before the deadline."""
