"""The search pipeline: plan, fetch, safety filter, match, shape."""

from datetime import datetime
from typing import Any

from pydantic import ValidationError

from .aggregator import aggregate
from .config import Config
from .errors import InvalidRequest
from .events import EventHook, log_event
from .matching import match_records
from .planner import build_plan
from .safety import apply_safety_filter
from .shaping import build_response
from .source import RecordSource
from .types import SearchRequest, SearchResponse


def parse_request(params: dict[str, Any] | None) -> SearchRequest:
    """Validate raw call parameters. Fails before any fetch is made."""
    if not params or not isinstance(params, dict):
        raise InvalidRequest("search_term is required")
    try:
        return SearchRequest.model_validate(params)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'params'}: {err['msg']}"
            for err in e.errors()
        )
        raise InvalidRequest(f"Invalid search parameters: {problems}") from e


def run_search(
    request: SearchRequest,
    source: RecordSource,
    config: Config | None = None,
    on_event: EventHook = log_event,
    now: datetime | None = None,
) -> SearchResponse:
    """Execute one search request end to end.

    Source errors propagate unchanged; zero matches is a normal response.
    """
    config = config or Config()

    plan = build_plan(request, now=now, on_event=on_event)
    candidates = aggregate(
        source,
        plan,
        max_records=config.max_fetch_records,
        max_pages=config.max_fetch_pages,
        on_event=on_event,
    )

    safe, dropped = apply_safety_filter(candidates.records, plan.exclude_teams)
    on_event("safety.excluded", {"excluded": dropped, "remaining": len(safe)})

    matches = match_records(
        safe,
        plan.residual_term,
        required_attendees=plan.required_attendees,
        include_transcript=plan.filters.include_transcript,
    )
    on_event("match.done", {"term": plan.residual_term, "matches": len(matches)})

    response = build_response(
        request.search_term,
        matches,
        plan,
        truncated=candidates.truncated,
        source_order=config.source_order,
    )
    on_event(
        "search.done",
        {
            "total_found": response.total_found,
            "showing": response.showing,
            "has_more": response.has_more,
        },
    )
    return response
