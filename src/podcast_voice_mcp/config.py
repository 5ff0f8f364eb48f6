"""Configuration via environment variables."""

from enum import Enum
from pydantic_settings import BaseSettings


class Transport(str, Enum):
    STDIO = "stdio"
    STREAMABLE_HTTP = "streamable-http"


class Settings(BaseSettings):
    model_config = {"env_prefix": "PODVOICE_"}

    seek_interval_ms: int = 15000
    transcript_context_window_ms: int = 120000
    command_timeout_ms: int = 500
    qa_timeout_ms: int = 3000
    voice_url: str = "wss://localhost:7880"
    token_endpoint_url: str = "http://localhost:54321/functions/v1/swift-endpoint"
    token_api_key: str = ""
    asr_server_url: str = "http://localhost:3000"
    transcript_cache_max_size: int = 100
    transcript_cache_ttl_seconds: int = 86400
    rate_limit_per_minute: int = 60
    transport: Transport = Transport.STDIO


settings = Settings()
