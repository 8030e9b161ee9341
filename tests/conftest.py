"""Shared fixtures for tests."""

from collections.abc import Callable
from typing import Any

import httpx
import pytest

from fathom_search_mcp.types import MeetingRecord, SourceFilters, SourcePage

# Sample data matching the Fathom /meetings item format, oldest first.
SAMPLE_MEETINGS: list[dict[str, Any]] = [
    {
        "recording_id": 101,
        "title": "Legalstart onboarding",
        "meeting_title": "Onboarding - Legalstart",
        "url": "https://fathom.video/calls/101",
        "share_url": "https://fathom.video/share/101",
        "created_at": "2024-01-10T10:00:00Z",
        "scheduled_start_time": "2024-01-10T09:30:00Z",
        "calendar_invitees": [
            {
                "name": "Claire Martin",
                "email": "claire@legalstart.fr",
                "email_domain": "legalstart.fr",
                "is_external": True,
            },
            {
                "name": "Alice Smith",
                "email": "alice@example.com",
                "email_domain": "example.com",
                "is_external": False,
            },
        ],
        "recorded_by": {
            "name": "Alice Smith",
            "email": "alice@example.com",
            "email_domain": "example.com",
            "team": "Sales",
        },
        "default_summary": {
            "template_name": "General",
            "markdown_formatted": "## Summary\nKickoff of the pricing review.",
        },
        "action_items": [
            {"description": "Send the contract draft", "completed": False},
        ],
    },
    {
        "recording_id": 102,
        "title": "Board prep",
        "url": "https://fathom.video/calls/102",
        "share_url": "https://fathom.video/share/102",
        "created_at": "2024-01-12T10:00:00Z",
        "calendar_invitees": [
            {"name": "Alice Smith", "email": "alice@example.com"},
        ],
        "recorded_by": {"name": "Eve", "email": "eve@example.com", "team": "Executive"},
    },
    {
        "recording_id": 103,
        "title": "Doctor appointment",
        "url": "https://fathom.video/calls/103",
        "created_at": "2024-01-13T10:00:00Z",
        "calendar_invitees": [],
        "recorded_by": {"name": "Bob", "email": "bob@example.com", "team": "Personal"},
    },
    {
        "recording_id": 104,
        "title": "Quick sync",
        "url": "https://fathom.video/calls/104",
        "created_at": "2024-01-14T10:00:00Z",
        "calendar_invitees": [{"name": "Bob Jones", "email": "bob@example.com"}],
        "recorded_by": {"name": "Bob", "email": "bob@example.com", "team": None},
    },
    {
        "recording_id": 105,
        "title": "Pricing review",
        "url": "https://fathom.video/calls/105",
        "share_url": "https://fathom.video/share/105",
        "created_at": "2024-02-01T10:00:00Z",
        "calendar_invitees": [
            {"name": "Alice Smith", "email": "alice@example.com"},
            {"name": "Bob Jones", "email": "bob@example.com"},
        ],
        "recorded_by": {"name": "Bob", "email": "bob@example.com", "team": "Product"},
        "action_items": [
            {
                "description": "Update the pricing page",
                "completed": True,
                "assignee": {"name": "Bob Jones", "email": "bob@example.com"},
            },
        ],
        "transcript": [
            {
                "speaker": {"display_name": "Bob Jones"},
                "text": "The churn numbers look better this quarter.",
                "timestamp": "00:01:05",
            },
        ],
    },
    {
        "recording_id": 106,
        "title": "Hiring loop",
        "url": "https://fathom.video/calls/106",
        "created_at": "2024-02-03T10:00:00Z",
        "calendar_invitees": [{"name": "Dan Brown", "email": "dan@example.com"}],
        "recorded_by": {"name": "Dan", "email": "dan@example.com", "team": "No Team"},
    },
    {
        "recording_id": 107,
        "title": "Weekly customer call",
        "url": "https://fathom.video/calls/107",
        "created_at": "2024-02-05T10:00:00Z",
        "calendar_invitees": [
            {"name": "Bob Jones", "email": "bob@example.com"},
            {"name": "Claire Martin", "email": "claire@legalstart.fr"},
        ],
        "recorded_by": {"name": "Bob", "email": "bob@example.com", "team": "Sales"},
    },
]


def _attendee_emails(item: dict[str, Any]) -> set[str]:
    return {(a.get("email") or "").lower() for a in item.get("calendar_invitees", [])}


def _attendee_domains(item: dict[str, Any]) -> set[str]:
    return {e.split("@", 1)[1] for e in _attendee_emails(item) if "@" in e}


def filter_items(
    items: list[dict[str, Any]],
    invitees: list[str],
    domains: list[str],
    owners: list[str],
    teams: list[str],
) -> list[dict[str, Any]]:
    """Server-side filtering the way the meetings endpoint applies it."""
    result = []
    for item in items:
        owner = item.get("recorded_by") or {}
        if invitees and not _attendee_emails(item) & set(invitees):
            continue
        if domains and not _attendee_domains(item) & set(domains):
            continue
        if owners and (owner.get("email") or "").lower() not in owners:
            continue
        if teams and owner.get("team") not in teams:
            continue
        result.append(item)
    return result


class FakeSource:
    """In-memory record source paging over a list of raw items."""

    def __init__(
        self,
        items: list[dict[str, Any]] | None = None,
        page_size: int = 2,
        endless: bool = False,
    ) -> None:
        self.items = SAMPLE_MEETINGS if items is None else items
        self.page_size = page_size
        self.endless = endless
        self.calls: list[tuple[SourceFilters, str | None]] = []

    def fetch(self, filters: SourceFilters, cursor: str | None = None) -> SourcePage:
        self.calls.append((filters, cursor))
        matching = filter_items(
            self.items,
            list(filters.calendar_invitees),
            list(filters.calendar_invitees_domains),
            list(filters.recorded_by),
            list(filters.teams),
        )
        offset = int(cursor) if cursor else 0
        if self.endless:
            # Same page forever, with fresh identifiers each time.
            chunk = [
                {**item, "recording_id": offset + i}
                for i, item in enumerate(matching[: self.page_size])
            ]
            return SourcePage(items=chunk, next_cursor=str(offset + len(chunk)))
        chunk = matching[offset : offset + self.page_size]
        end = offset + len(chunk)
        return SourcePage(
            items=chunk, next_cursor=str(end) if end < len(matching) else None
        )


@pytest.fixture
def fake_source() -> FakeSource:
    return FakeSource()


@pytest.fixture
def make_source() -> Callable[..., FakeSource]:
    return FakeSource


@pytest.fixture
def make_record() -> Callable[..., MeetingRecord]:
    """Build a MeetingRecord with sensible defaults."""

    def _make(recording_id: int = 1, team: str | None = "Sales", **fields: Any):
        data: dict[str, Any] = {
            "recording_id": recording_id,
            "title": f"Meeting {recording_id}",
            "url": f"https://fathom.video/calls/{recording_id}",
            "created_at": "2024-01-01T10:00:00Z",
            "recorded_by": {"name": "Owner", "email": "owner@example.com", "team": team},
        }
        data.update(fields)
        return MeetingRecord.model_validate(data)

    return _make


def meetings_api_handler(request: httpx.Request) -> httpx.Response:
    """httpx.MockTransport handler emulating GET /meetings."""
    if request.headers.get("X-Api-Key") != "test-key":
        return httpx.Response(401, json={"message": "Unauthorized"})
    params = request.url.params
    matching = filter_items(
        SAMPLE_MEETINGS,
        params.get_list("calendar_invitees[]"),
        params.get_list("calendar_invitees_domains[]"),
        params.get_list("recorded_by[]"),
        params.get_list("teams[]"),
    )
    offset = int(params.get("cursor", "0"))
    page_size = 3
    chunk = matching[offset : offset + page_size]
    end = offset + len(chunk)
    if params.get("include_transcript") != "true":
        chunk = [{k: v for k, v in item.items() if k != "transcript"} for item in chunk]
    body: dict[str, Any] = {"items": chunk, "limit": page_size}
    if end < len(matching):
        body["next_cursor"] = str(end)
    return httpx.Response(200, json=body)


@pytest.fixture
def api_transport() -> httpx.MockTransport:
    return httpx.MockTransport(meetings_api_handler)
