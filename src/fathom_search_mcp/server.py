"""Fathom meeting search MCP server (FastMCP v2)."""

from contextlib import asynccontextmanager

from fastmcp import FastMCP

from .config import Config
from .events import configure_logging
from .source import create_source

# ---------------------------------------------------------------------------
# Lifespan: settings, logging and the pooled API client
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(server: FastMCP):
    config = Config()
    configure_logging(config.log_level)

    # Without a key the server still starts; calls fail with source_auth_error.
    source = create_source(config) if config.api_key else None
    try:
        yield {"config": config, "source": source}
    finally:
        if source is not None:
            source.close()


# ---------------------------------------------------------------------------
# Server instance
# ---------------------------------------------------------------------------

mcp = FastMCP("fathom-search", lifespan=lifespan)

# Importing tool modules triggers @mcp.tool() registration
from fathom_search_mcp.tools import meeting_ops  # noqa: E402, F401

# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main():
    mcp.run()
