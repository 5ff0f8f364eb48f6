"""Tests for the HTTP transcript provider with httpx mocking."""

import json

import httpx
import pytest
import respx

from podcast_voice_mcp.errors import FormatError
from podcast_voice_mcp.models import TranscriptFormat
from podcast_voice_mcp.providers.http import HttpTranscriptProvider

TRANSCRIPT_URL = "https://feeds.test/ep1.srt"


@pytest.fixture
def provider():
    return HttpTranscriptProvider(asr_base_url="http://asr.test/")


class TestFetchTranscript:
    @respx.mock
    @pytest.mark.asyncio
    async def test_srt(self, provider, sample_srt):
        respx.get(TRANSCRIPT_URL).mock(return_value=httpx.Response(200, text=sample_srt))
        transcript = await provider.fetch_transcript("ep1", TRANSCRIPT_URL, "application/srt")
        assert transcript.episode_id == "ep1"
        assert transcript.format == TranscriptFormat.SRT
        assert len(transcript.segments) == 3
        await provider.close()

    @respx.mock
    @pytest.mark.asyncio
    async def test_json(self, provider):
        body = {"segments": [{"start": 1.5, "end": 3, "text": "hi", "speaker": "Host"}]}
        respx.get("https://feeds.test/ep1.json").mock(return_value=httpx.Response(200, json=body))
        transcript = await provider.fetch_transcript(
            "ep1", "https://feeds.test/ep1.json", "application/json"
        )
        assert transcript.format == TranscriptFormat.JSON
        assert transcript.segments[0].start_time == 1500
        assert transcript.segments[0].speaker == "Host"
        await provider.close()

    @respx.mock
    @pytest.mark.asyncio
    async def test_unrecognized_json_shape(self, provider):
        respx.get("https://feeds.test/ep1.json").mock(
            return_value=httpx.Response(200, text=json.dumps({"cues": []}))
        )
        with pytest.raises(FormatError):
            await provider.fetch_transcript("ep1", "https://feeds.test/ep1.json", "application/json")
        await provider.close()

    @pytest.mark.asyncio
    async def test_unsupported_type(self, provider):
        with pytest.raises(FormatError, match="Unsupported transcript type"):
            await provider.fetch_transcript("ep1", TRANSCRIPT_URL, "text/html")
        await provider.close()

    @respx.mock
    @pytest.mark.asyncio
    async def test_http_error(self, provider):
        respx.get(TRANSCRIPT_URL).mock(return_value=httpx.Response(404))
        with pytest.raises(httpx.HTTPStatusError):
            await provider.fetch_transcript("ep1", TRANSCRIPT_URL)
        await provider.close()


class TestRequestAsr:
    @respx.mock
    @pytest.mark.asyncio
    async def test_request_asr(self, provider):
        route = respx.post("http://asr.test/asr").mock(
            return_value=httpx.Response(200, json={
                "segments": [
                    {"startTime": 0, "endTime": 4000, "text": "Transcribed"},
                    {"startTime": 4000, "endTime": 4000, "text": "empty"},
                    {"startTime": 5000, "text": "no end"},
                ],
            })
        )
        transcript = await provider.request_asr("ep1", "https://cdn.test/ep1.mp3")
        assert json.loads(route.calls.last.request.content) == {
            "episodeId": "ep1",
            "audioUrl": "https://cdn.test/ep1.mp3",
        }
        assert transcript.format == TranscriptFormat.JSON
        assert [s.text for s in transcript.segments] == ["Transcribed"]
        assert transcript.segments[0].end_time == 4000
        await provider.close()

    @respx.mock
    @pytest.mark.asyncio
    async def test_request_asr_failure(self, provider):
        respx.post("http://asr.test/asr").mock(return_value=httpx.Response(503))
        with pytest.raises(httpx.HTTPStatusError):
            await provider.request_asr("ep1", "https://cdn.test/ep1.mp3")
        await provider.close()

    @respx.mock
    @pytest.mark.asyncio
    async def test_request_asr_unrecognized_response(self, provider):
        respx.post("http://asr.test/asr").mock(return_value=httpx.Response(200, json=["no", "segments"]))
        with pytest.raises(FormatError, match="Unrecognized ASR response"):
            await provider.request_asr("ep1", "https://cdn.test/ep1.mp3")
        await provider.close()
