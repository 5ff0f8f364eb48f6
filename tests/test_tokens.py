"""Tests for the HTTP token issuer."""

import json

import httpx
import pytest
import respx

from podcast_voice_mcp.errors import AuthenticationError
from podcast_voice_mcp.models import VoiceContext
from podcast_voice_mcp.tokens import HttpTokenIssuer

ENDPOINT = "http://tokens.test/functions/v1/swift-endpoint"


@pytest.fixture
def issuer():
    return HttpTokenIssuer(ENDPOINT, api_key="anon-key")


class TestHttpTokenIssuer:
    @respx.mock
    @pytest.mark.asyncio
    async def test_issue_token(self, issuer):
        route = respx.post(ENDPOINT).mock(return_value=httpx.Response(200, json={"token": "jwt"}))
        token = await issuer.issue_token("room-1", "user")
        assert token == "jwt"
        request = route.calls.last.request
        assert json.loads(request.content) == {"roomName": "room-1", "participantName": "user"}
        assert request.headers["Authorization"] == "Bearer anon-key"
        await issuer.close()

    @respx.mock
    @pytest.mark.asyncio
    async def test_context_forwarded(self, issuer):
        route = respx.post(ENDPOINT).mock(return_value=httpx.Response(200, json={"token": "jwt"}))
        context = VoiceContext(
            podcast_rss_url="https://feeds.test/show.xml",
            current_timestamp=0,
        )
        await issuer.issue_token("room-1", "user", context)
        body = json.loads(route.calls.last.request.content)
        assert body["podcastRssUrl"] == "https://feeds.test/show.xml"
        assert body["currentTimestamp"] == 0
        assert "episodeUrl" not in body
        await issuer.close()

    @respx.mock
    @pytest.mark.asyncio
    async def test_http_error(self, issuer):
        respx.post(ENDPOINT).mock(return_value=httpx.Response(500, json={"error": "boom"}))
        with pytest.raises(AuthenticationError, match="Failed to authenticate"):
            await issuer.issue_token("room-1", "user")
        await issuer.close()

    @respx.mock
    @pytest.mark.asyncio
    async def test_transport_error(self, issuer):
        respx.post(ENDPOINT).mock(side_effect=httpx.ConnectError("refused"))
        with pytest.raises(AuthenticationError):
            await issuer.issue_token("room-1", "user")
        await issuer.close()

    @respx.mock
    @pytest.mark.asyncio
    async def test_missing_token(self, issuer):
        respx.post(ENDPOINT).mock(return_value=httpx.Response(200, json={"token": 42}))
        with pytest.raises(AuthenticationError):
            await issuer.issue_token("room-1", "user")
        await issuer.close()
