"""In-memory transcript store keyed by episode."""

from cachetools import TTLCache

from podcast_voice_mcp.models import Transcript, TranscriptSegment
from podcast_voice_mcp.transcript import (
    DEFAULT_CONTEXT_WINDOW_MS,
    search_segments,
    segment_at,
    segments_near,
)


class TranscriptStore:
    def __init__(
        self,
        max_size: int = 100,
        ttl: int = 86400,
        context_window_ms: int = DEFAULT_CONTEXT_WINDOW_MS,
    ):
        self._cache: TTLCache = TTLCache(maxsize=max_size, ttl=ttl)
        self._context_window_ms = context_window_ms
        self._hits = 0
        self._misses = 0

    def get(self, episode_id: str) -> Transcript | None:
        result = self._cache.get(episode_id)
        if result is not None:
            self._hits += 1
        else:
            self._misses += 1
        return result

    def put(self, transcript: Transcript) -> None:
        """Store a transcript, replacing any previous one for the episode."""
        self._cache[transcript.episode_id] = transcript

    def remove(self, episode_id: str) -> None:
        self._cache.pop(episode_id, None)

    def clear(self) -> None:
        self._cache.clear()
        self._hits = 0
        self._misses = 0

    def __contains__(self, episode_id: str) -> bool:
        return episode_id in self._cache

    def segment_at(self, episode_id: str, timestamp_ms: int) -> TranscriptSegment | None:
        transcript = self.get(episode_id)
        if transcript is None:
            return None
        return segment_at(transcript, timestamp_ms)

    def segments_near(
        self, episode_id: str, timestamp_ms: int, window_ms: int | None = None
    ) -> list[TranscriptSegment]:
        transcript = self.get(episode_id)
        if transcript is None:
            return []
        if window_ms is None:
            window_ms = self._context_window_ms
        return segments_near(transcript, timestamp_ms, window_ms)

    def search(self, episode_id: str, query: str) -> list[TranscriptSegment]:
        transcript = self.get(episode_id)
        if transcript is None:
            return []
        return search_segments(transcript, query)

    def stats(self) -> dict:
        return {
            "size": len(self._cache),
            "max_size": self._cache.maxsize,
            "hits": self._hits,
            "misses": self._misses,
            "hit_rate": round(self._hits / max(self._hits + self._misses, 1) * 100, 1),
        }
