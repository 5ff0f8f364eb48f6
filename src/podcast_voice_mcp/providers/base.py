"""Abstract base for transcript providers."""

from abc import ABC, abstractmethod

from podcast_voice_mcp.models import Transcript


class TranscriptProvider(ABC):
    @abstractmethod
    async def fetch_transcript(
        self, episode_id: str, url: str, mime_type: str = "application/srt"
    ) -> Transcript:
        """Fetch and parse the transcript published for an episode."""
        ...

    @abstractmethod
    async def close(self) -> None:
        """Clean up resources."""
        ...
