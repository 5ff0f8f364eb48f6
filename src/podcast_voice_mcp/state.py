"""Reference in-memory application state."""

from typing import Callable

from podcast_voice_mcp.capabilities import ApplicationState
from podcast_voice_mcp.models import Bookmark, Episode, PlaybackState, now_ms


class InMemoryApplicationState(ApplicationState):
    def __init__(self, clock: Callable[[], int] = now_ms):
        self._clock = clock
        self._playback = PlaybackState()
        self._episodes: dict[str, Episode] = {}
        self._bookmarks: dict[str, Bookmark] = {}

    # -- playback --

    def get_playback(self) -> PlaybackState:
        return self._playback.model_copy()

    def set_playback(self, **changes) -> None:
        self._playback = self._playback.model_copy(update=changes)

    def set_playing(self, is_playing: bool) -> None:
        self.set_playback(is_playing=is_playing)

    def set_rate(self, rate: float) -> None:
        self.set_playback(rate=rate)

    def set_position(self, position: int) -> None:
        self.set_playback(position=position)

    def seek_by(self, delta_ms: int) -> None:
        """Move the stored position, clamped to [0, duration]."""
        position = self._playback.position + delta_ms
        self.set_position(max(0, min(self._playback.duration, position)))

    def reset(self) -> None:
        self._playback = PlaybackState()

    # -- episodes --

    def add_episode(self, episode: Episode) -> None:
        self._episodes[episode.id] = episode

    def get_episode(self, episode_id: str) -> Episode | None:
        return self._episodes.get(episode_id)

    # -- bookmarks --

    def add_bookmark(self, episode_id: str, timestamp: int, note: str | None = None) -> Bookmark:
        # Two bookmarks for one episode in the same millisecond share an id;
        # the later one replaces the earlier.
        created_at = self._clock()
        bookmark = Bookmark(
            id=f"{episode_id}_{created_at}",
            episode_id=episode_id,
            timestamp=timestamp,
            created_at=created_at,
            note=note,
        )
        self._bookmarks[bookmark.id] = bookmark
        return bookmark

    def remove_bookmark(self, bookmark_id: str) -> None:
        self._bookmarks.pop(bookmark_id, None)

    def bookmarks_for(self, episode_id: str) -> list[Bookmark]:
        return sorted(
            (b for b in self._bookmarks.values() if b.episode_id == episode_id),
            key=lambda b: b.timestamp,
        )

    def all_bookmarks(self) -> list[Bookmark]:
        return sorted(self._bookmarks.values(), key=lambda b: b.created_at, reverse=True)
