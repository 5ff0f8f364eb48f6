"""HTTP runner for MCP server (remote deployment)."""
from mcp.server.fastmcp import FastMCP
from mcp.server.fastmcp.server import TransportSecuritySettings
from podcast_voice_mcp.server import (
    app_lifespan,
    load_transcript,
    transcribe_episode,
    transcript_at,
    transcript_context,
    search_transcript,
    interpret_command,
    help_resource,
    TOOL_ANNOTATIONS,
    FETCH_ANNOTATIONS,
)

server = FastMCP(
    "Podcast Voice",
    instructions="Load podcast transcripts, query them by time or text, and interpret voice commands",
    lifespan=app_lifespan,
    host="0.0.0.0",
    port=8402,
    transport_security=TransportSecuritySettings(enable_dns_rebinding_protection=False),
)

# Register tools with annotations
server.tool(annotations=FETCH_ANNOTATIONS)(load_transcript)
server.tool(annotations=FETCH_ANNOTATIONS)(transcribe_episode)
server.tool(annotations=TOOL_ANNOTATIONS)(transcript_at)
server.tool(annotations=TOOL_ANNOTATIONS)(transcript_context)
server.tool(annotations=TOOL_ANNOTATIONS)(search_transcript)
server.tool(annotations=TOOL_ANNOTATIONS)(interpret_command)

# Register resources
server.resource("podcast://voice-commands")(help_resource)

server.run(transport="streamable-http")
