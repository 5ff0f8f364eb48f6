"""HTTP provider for published transcripts and on-demand ASR."""

import logging

import httpx

from podcast_voice_mcp.errors import FormatError
from podcast_voice_mcp.models import Transcript, TranscriptFormat
from podcast_voice_mcp.transcript import parse_transcript, segments_from_entries
from .base import TranscriptProvider

logger = logging.getLogger(__name__)

MIME_FORMATS = {
    "application/srt": TranscriptFormat.SRT,
    "application/x-subrip": TranscriptFormat.SRT,
    "text/vtt": TranscriptFormat.VTT,
    "application/json": TranscriptFormat.JSON,
}


class HttpTranscriptProvider(TranscriptProvider):
    def __init__(self, asr_base_url: str = "", timeout: float = 60.0):
        self._asr_base_url = asr_base_url.rstrip("/")
        self._client = httpx.AsyncClient(timeout=timeout, follow_redirects=True)

    async def fetch_transcript(
        self, episode_id: str, url: str, mime_type: str = "application/srt"
    ) -> Transcript:
        fmt = MIME_FORMATS.get(mime_type)
        if fmt is None:
            raise FormatError(f"Unsupported transcript type: {mime_type}")

        resp = await self._client.get(url)
        resp.raise_for_status()

        segments = parse_transcript(resp.text, fmt)
        logger.info(
            "Fetched %s transcript for %s (%d segments)", fmt.value, episode_id, len(segments)
        )
        return Transcript(episode_id=episode_id, segments=segments, format=fmt)

    async def request_asr(self, episode_id: str, audio_url: str) -> Transcript:
        """Ask the ASR server to transcribe an episode; its segments are in ms."""
        resp = await self._client.post(
            f"{self._asr_base_url}/asr",
            json={"episodeId": episode_id, "audioUrl": audio_url},
        )
        resp.raise_for_status()
        data = resp.json()

        entries = data.get("segments") if isinstance(data, dict) else None
        if not isinstance(entries, list):
            raise FormatError("Unrecognized ASR response")

        segments = segments_from_entries(entries, start_key="startTime", end_key="endTime", scale=1)
        logger.info("Transcribed %s via ASR (%d segments)", episode_id, len(segments))
        return Transcript(
            episode_id=episode_id, segments=segments, format=TranscriptFormat.JSON
        )

    async def close(self) -> None:
        await self._client.aclose()
