"""Transcript providers."""

from .base import TranscriptProvider
from .http import HttpTranscriptProvider

__all__ = ["TranscriptProvider", "HttpTranscriptProvider"]
