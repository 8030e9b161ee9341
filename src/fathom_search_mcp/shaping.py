"""Select the page of matches to return and build the response envelope."""

from typing import Any, Literal

from .types import MeetingRecord, QueryPlan, SearchResponse, ShapedMeeting

SourceOrder = Literal["oldest_first", "newest_first"]


def select(
    matches: list[MeetingRecord],
    plan: QueryPlan,
    source_order: SourceOrder = "oldest_first",
) -> list[MeetingRecord]:
    """Apply first-N / last-N.

    ``last_n`` returns the most recent matches in chronological order, so a
    newest-first source is reversed before slicing.
    """
    if plan.ordering == "last_n":
        chronological = matches[::-1] if source_order == "newest_first" else matches
        return chronological[-plan.count :] if plan.count else []
    return matches[: plan.count]


def shape_meeting(record: MeetingRecord, plan: QueryPlan) -> ShapedMeeting:
    filters = plan.filters
    return ShapedMeeting(
        title=record.title or record.meeting_title,
        date=record.scheduled_start_time or record.created_at,
        url=record.share_url or record.url,
        attendees=record.calendar_invitees,
        recorded_by=record.recorded_by,
        summary=record.default_summary if filters.include_summary else None,
        action_items=record.action_items if filters.include_action_items else None,
        transcript=record.transcript if filters.include_transcript else None,
    )


def filters_applied(plan: QueryPlan) -> dict[str, Any]:
    """The resolved filter set, so callers can audit what was searched."""
    filters = plan.filters
    return {
        "exclude_teams": list(plan.exclude_teams),
        "days_back": plan.days_back,
        "created_after": filters.created_after.isoformat()
        if filters.created_after
        else None,
        "created_before": filters.created_before.isoformat()
        if filters.created_before
        else None,
        "include_summary": filters.include_summary,
        "include_action_items": filters.include_action_items,
        "include_transcript": filters.include_transcript,
        "calendar_invitees": list(plan.per_email or filters.calendar_invitees),
        "calendar_invitees_domains": list(filters.calendar_invitees_domains),
        "recorded_by": list(filters.recorded_by),
        "teams": list(filters.teams),
        "residual_term": plan.residual_term,
        "ordering": plan.ordering,
        "pagination": plan.pagination,
    }


def build_response(
    search_term: str,
    matches: list[MeetingRecord],
    plan: QueryPlan,
    truncated: bool = False,
    source_order: SourceOrder = "oldest_first",
) -> SearchResponse:
    selected = select(matches, plan, source_order)
    return SearchResponse(
        search_term=search_term,
        total_found=len(matches),
        showing=len(selected),
        has_more=len(matches) > len(selected) or truncated,
        truncated=truncated,
        filters_applied=filters_applied(plan),
        meetings=[shape_meeting(record, plan) for record in selected],
    )
