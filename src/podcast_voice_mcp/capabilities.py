"""Interfaces to the collaborators the voice core drives.

Audio playback, application state, token issuance and the real-time voice
transport all live outside this package; hosts pass implementations of these
classes into the executor and the voice session.
"""

from abc import ABC, abstractmethod
from typing import Callable

from podcast_voice_mcp.models import (
    Bookmark,
    Episode,
    PlaybackState,
    TransportEvent,
    VoiceContext,
)


class PlaybackControl(ABC):
    """Transport controls of the audio engine. Positions are in milliseconds."""

    seek_interval_ms: int = 15000

    @abstractmethod
    async def play(self) -> None: ...

    @abstractmethod
    async def pause(self) -> None: ...

    @abstractmethod
    async def seek_to(self, position_ms: int) -> None: ...

    @abstractmethod
    async def seek_by(self, delta_ms: int) -> None: ...

    @abstractmethod
    async def set_rate(self, rate: float) -> None: ...

    @abstractmethod
    async def get_position(self) -> int: ...

    async def jump_forward(self) -> None:
        await self.seek_by(self.seek_interval_ms)

    async def jump_backward(self) -> None:
        await self.seek_by(-self.seek_interval_ms)


class ApplicationState(ABC):
    """Narrow view of application state used by the command executor."""

    @abstractmethod
    def get_playback(self) -> PlaybackState:
        """Current playback snapshot."""

    @abstractmethod
    def set_playing(self, is_playing: bool) -> None: ...

    @abstractmethod
    def set_rate(self, rate: float) -> None: ...

    @abstractmethod
    def set_position(self, position: int) -> None: ...

    @abstractmethod
    def get_episode(self, episode_id: str) -> Episode | None: ...

    @abstractmethod
    def add_bookmark(self, episode_id: str, timestamp: int, note: str | None = None) -> Bookmark: ...

    @abstractmethod
    def bookmarks_for(self, episode_id: str) -> list[Bookmark]:
        """Bookmarks of one episode, ascending by timestamp."""


class TokenIssuer(ABC):
    @abstractmethod
    async def issue_token(
        self,
        room_name: str,
        participant_name: str,
        context: VoiceContext | None = None,
    ) -> str:
        """Return a short-lived bearer credential or raise AuthenticationError."""

    async def close(self) -> None:
        """Release client resources. Default: nothing to release."""


class TransportSession(ABC):
    """Real-time voice room connection."""

    @abstractmethod
    async def connect(self, url: str, token: str) -> None: ...

    @abstractmethod
    async def disconnect(self) -> None: ...

    @abstractmethod
    async def enable_local_audio(self, enabled: bool) -> None: ...

    @abstractmethod
    def set_event_handler(self, handler: Callable[[TransportEvent], None] | None) -> None:
        """Register the single observer for room lifecycle events."""

    async def start_audio_session(self) -> None:
        """Acquire the device audio session. No-op unless the platform needs it."""

    async def stop_audio_session(self) -> None:
        """Release the device audio session."""
