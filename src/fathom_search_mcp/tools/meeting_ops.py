"""MCP tool for searching Fathom meetings."""

import asyncio
import logging
from typing import Annotated, Any

from fastmcp import Context
from fastmcp.exceptions import ToolError
from pydantic import Field

from fathom_search_mcp.config import Config
from fathom_search_mcp.errors import SearchError, SourceAuthError
from fathom_search_mcp.pipeline import parse_request, run_search
from fathom_search_mcp.server import mcp
from fathom_search_mcp.source import RecordSource

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _get_state(ctx: Context) -> tuple[RecordSource, Config]:
    """Extract the API client and settings from lifespan context."""
    lc: dict[str, Any] = ctx.request_context.lifespan_context
    source = lc["source"]
    if source is None:
        raise SourceAuthError("FATHOM_API_KEY is not configured on the server.")
    return source, lc["config"]


_TOOL_ANNOTATIONS = {
    "readOnlyHint": True,
    "destructiveHint": False,
    "idempotentHint": True,
    "openWorldHint": True,
}


# ---------------------------------------------------------------------------
# Tools
# ---------------------------------------------------------------------------


@mcp.tool(annotations=_TOOL_ANNOTATIONS)
async def search_meetings(
    search_term: Annotated[
        str,
        Field(
            description=(
                "Search term to find in meeting titles, summaries, action items "
                "or attendees. Emails, domains (acme.com), team names, "
                '@agent("x") and "last N" are recognised.'
            )
        ),
    ],
    ctx: Context,
    limit: Annotated[
        int, Field(description="Maximum number of meetings to return (max: 100)", ge=1)
    ] = 50,
    days_back: Annotated[
        int | None,
        Field(description="Days to look back from today (default: 180, max: 365)", ge=1),
    ] = None,
    created_after: Annotated[
        str | None,
        Field(description="Only meetings created after this ISO 8601 date; overrides days_back"),
    ] = None,
    created_before: Annotated[
        str | None,
        Field(description="Only meetings created before this ISO 8601 date"),
    ] = None,
    exclude_teams: Annotated[
        list[str] | None,
        Field(
            description=(
                "Additional teams to exclude. Executive, Personal, No Team and "
                "private calls are always excluded."
            )
        ),
    ] = None,
    include_transcript: Annotated[
        bool, Field(description="Include full transcripts (can be very large)")
    ] = False,
    include_summary: Annotated[bool, Field(description="Include meeting summaries")] = True,
    include_action_items: Annotated[bool, Field(description="Include action items")] = True,
    calendar_invitees: Annotated[
        list[str] | None, Field(description="Filter by attendee email addresses")
    ] = None,
    calendar_invitees_domains: Annotated[
        list[str] | None, Field(description="Filter by company domains")
    ] = None,
    recorded_by: Annotated[
        list[str] | None, Field(description="Filter by meeting owner email addresses")
    ] = None,
) -> dict[str, Any]:
    """Search Fathom meetings with filtering.

    Sensitive recordings (Executive, Personal, No Team, private) are never
    returned, whatever the arguments.
    """
    params: dict[str, Any] = {
        "search_term": search_term,
        "limit": limit,
        "days_back": days_back,
        "created_after": created_after,
        "created_before": created_before,
        "exclude_teams": exclude_teams or [],
        "include_transcript": include_transcript,
        "include_summary": include_summary,
        "include_action_items": include_action_items,
        "calendar_invitees": calendar_invitees or [],
        "calendar_invitees_domains": calendar_invitees_domains or [],
        "recorded_by": recorded_by or [],
    }

    try:
        request = parse_request(params)
        source, config = _get_state(ctx)
        # API calls block; keep them off the event loop.
        response = await asyncio.to_thread(run_search, request, source, config)
    except SearchError as e:
        raise ToolError(f"[{e.code}] {e.message}") from e
    except Exception as e:
        logger.exception("search_meetings failed")
        raise ToolError(f"[internal_error] {e}") from e

    return response.model_dump(mode="json")
