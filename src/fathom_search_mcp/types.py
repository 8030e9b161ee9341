"""Data models for Fathom meeting records and search requests."""

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Attendee(BaseModel):
    """Calendar invitee of a meeting."""

    name: str | None = None
    email: str | None = None
    email_domain: str | None = None
    is_external: bool = False
    matched_speaker_display_name: str | None = None


class Owner(BaseModel):
    """The user who recorded the meeting."""

    name: str | None = None
    email: str | None = None
    email_domain: str | None = None
    team: str | None = None


class Assignee(BaseModel):
    name: str | None = None
    email: str | None = None
    team: str | None = None


class ActionItem(BaseModel):
    description: str | None = None
    user_generated: bool = False
    completed: bool = False
    recording_timestamp: str | None = None
    recording_playback_url: str | None = None
    assignee: Assignee | None = None


class Speaker(BaseModel):
    display_name: str | None = None
    matched_calendar_invitee_email: str | None = None


class TranscriptEntry(BaseModel):
    """One speaker turn of a transcript."""

    speaker: Speaker = Speaker()
    text: str | None = None
    timestamp: str | None = None


class Summary(BaseModel):
    template_name: str | None = None
    markdown_formatted: str | None = None


class MeetingRecord(BaseModel):
    """A meeting as returned by the Fathom ``/meetings`` endpoint."""

    recording_id: int | str
    title: str | None = None
    meeting_title: str | None = None
    url: str | None = None
    share_url: str | None = None
    created_at: datetime
    scheduled_start_time: datetime | None = None
    scheduled_end_time: datetime | None = None
    recording_start_time: datetime | None = None
    recording_end_time: datetime | None = None
    calendar_invitees_domains_type: str | None = None
    transcript_language: str | None = None
    transcript: list[TranscriptEntry] | None = None
    default_summary: Summary | None = None
    action_items: list[ActionItem] | None = None
    calendar_invitees: list[Attendee] = []
    recorded_by: Owner = Owner()
    crm_matches: dict[str, Any] | None = None

    @property
    def team(self) -> str | None:
        return self.recorded_by.team


class SourceFilters(BaseModel):
    """Filter parameters understood by the meetings endpoint."""

    model_config = ConfigDict(frozen=True)

    created_after: datetime | None = None
    created_before: datetime | None = None
    calendar_invitees: tuple[str, ...] = ()
    calendar_invitees_domains: tuple[str, ...] = ()
    recorded_by: tuple[str, ...] = ()
    teams: tuple[str, ...] = ()
    include_summary: bool = True
    include_action_items: bool = True
    include_transcript: bool = False
    include_crm_matches: bool = False

    @property
    def narrows(self) -> bool:
        """True when any filter restricts the set server-side."""
        return bool(
            self.calendar_invitees
            or self.calendar_invitees_domains
            or self.recorded_by
            or self.teams
        )


class SourcePage(BaseModel):
    items: list[MeetingRecord] = []
    next_cursor: str | None = None


class SearchRequest(BaseModel):
    """Parameters of one ``search`` call."""

    search_term: str
    limit: int = Field(default=50, ge=1)
    days_back: int | None = Field(default=None, ge=1)
    created_after: datetime | None = None
    created_before: datetime | None = None
    exclude_teams: list[str] = []
    include_summary: bool = True
    include_action_items: bool = True
    include_transcript: bool = False
    calendar_invitees: list[str] = []
    calendar_invitees_domains: list[str] = []
    recorded_by: list[str] = []

    @field_validator("search_term")
    @classmethod
    def _require_term(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("search_term must not be blank")
        return value


Ordering = Literal["first_n", "last_n"]
Pagination = Literal["single_page", "exhaustive"]


class QueryPlan(BaseModel):
    """How one search request is executed. Built once, then discarded."""

    model_config = ConfigDict(frozen=True)

    filters: SourceFilters
    per_email: tuple[str, ...] = ()
    residual_term: str = ""
    required_attendees: tuple[str, ...] = ()
    ordering: Ordering = "first_n"
    count: int = 50
    pagination: Pagination = "single_page"
    exclude_teams: tuple[str, ...] = ()
    days_back: int | None = None
    rules_applied: tuple[str, ...] = ()


class AggregatedResultSet(BaseModel):
    records: list[MeetingRecord] = []
    truncated: bool = False
    pages_fetched: int = 0


class ShapedMeeting(BaseModel):
    title: str | None = None
    date: datetime
    url: str | None = None
    attendees: list[Attendee] = []
    recorded_by: Owner
    summary: Summary | None = None
    action_items: list[ActionItem] | None = None
    transcript: list[TranscriptEntry] | None = None


class SearchResponse(BaseModel):
    search_term: str
    total_found: int
    showing: int
    has_more: bool
    truncated: bool = False
    filters_applied: dict[str, Any]
    meetings: list[ShapedMeeting] = []
