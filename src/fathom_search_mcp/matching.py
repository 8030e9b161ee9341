"""Client-side matching of the residual search term."""

from collections.abc import Iterable, Iterator

from .types import MeetingRecord


def _searchable_text(record: MeetingRecord, include_transcript: bool) -> Iterator[str]:
    yield record.title or ""
    yield record.meeting_title or ""
    if record.default_summary is not None:
        yield record.default_summary.markdown_formatted or ""
    for item in record.action_items or ():
        yield item.description or ""
    for attendee in record.calendar_invitees:
        yield attendee.name or ""
        yield attendee.email or ""
    if include_transcript:
        for entry in record.transcript or ():
            yield entry.text or ""


def matches_term(
    record: MeetingRecord, term: str, include_transcript: bool = False
) -> bool:
    """Case-insensitive substring match against any searchable field.

    An empty term matches everything. Transcript text is only searched
    when the transcript was requested from the source.
    """
    needle = term.strip().lower()
    if not needle:
        return True
    return any(
        needle in text.lower()
        for text in _searchable_text(record, include_transcript)
    )


def has_attendee(record: MeetingRecord, emails: Iterable[str]) -> bool:
    """True when one of *emails* is an invitee. No emails means no constraint."""
    wanted = {e.lower() for e in emails}
    if not wanted:
        return True
    return any(
        (attendee.email or "").lower() in wanted for attendee in record.calendar_invitees
    )


def match_records(
    records: Iterable[MeetingRecord],
    term: str,
    required_attendees: Iterable[str] = (),
    include_transcript: bool = False,
) -> list[MeetingRecord]:
    """Filter *records* in order; no ranking is applied."""
    required = tuple(required_attendees)
    return [
        record
        for record in records
        if has_attendee(record, required)
        and matches_term(record, term, include_transcript)
    ]
