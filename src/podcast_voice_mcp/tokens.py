"""Token issuance for the real-time voice room."""

import logging

import httpx

from podcast_voice_mcp.capabilities import TokenIssuer
from podcast_voice_mcp.errors import AuthenticationError
from podcast_voice_mcp.models import VoiceContext

logger = logging.getLogger(__name__)


class HttpTokenIssuer(TokenIssuer):
    """Requests room tokens from an HTTP token endpoint."""

    def __init__(self, endpoint_url: str, api_key: str = "", timeout: float = 10.0):
        self._endpoint_url = endpoint_url
        self._headers = {}
        if api_key:
            self._headers["Authorization"] = f"Bearer {api_key}"
        self._client = httpx.AsyncClient(headers=self._headers, timeout=timeout)

    async def issue_token(
        self,
        room_name: str,
        participant_name: str,
        context: VoiceContext | None = None,
    ) -> str:
        body = {"roomName": room_name, "participantName": participant_name}
        if context is not None:
            if context.podcast_rss_url:
                body["podcastRssUrl"] = context.podcast_rss_url
            if context.episode_url:
                body["episodeUrl"] = context.episode_url
            if context.current_timestamp is not None:
                body["currentTimestamp"] = context.current_timestamp

        try:
            resp = await self._client.post(self._endpoint_url, json=body)
            resp.raise_for_status()
            data = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error("Token request for room %s failed: %s", room_name, e)
            raise AuthenticationError("Failed to authenticate with voice service") from e

        token = data.get("token") if isinstance(data, dict) else None
        if not isinstance(token, str) or not token:
            logger.error("Token endpoint returned no token for room %s", room_name)
            raise AuthenticationError("Failed to authenticate with voice service")
        return token

    async def close(self) -> None:
        await self._client.aclose()
