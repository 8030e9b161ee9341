"""Mandatory exclusion of sensitive recordings.

Meetings recorded by the Executive, Personal and No Team teams, and private
recordings with no team at all, are never returned. Callers may add teams
to exclude but cannot remove any of these.
"""

from collections.abc import Iterable

from .types import MeetingRecord

ALWAYS_EXCLUDED_TEAMS: tuple[str, ...] = ("Executive", "Personal", "No Team")


def exclusion_list(extra: Iterable[str] = ()) -> tuple[str, ...]:
    """Fixed exclusions followed by caller additions, case-insensitively unique."""
    result: list[str] = []
    seen: set[str] = set()
    for team in (*ALWAYS_EXCLUDED_TEAMS, *extra):
        cleaned = team.strip()
        if cleaned and cleaned.lower() not in seen:
            seen.add(cleaned.lower())
            result.append(cleaned)
    return tuple(result)


def is_excluded(record: MeetingRecord, exclusions: Iterable[str]) -> bool:
    team = (record.team or "").strip().lower()
    if not team:
        return True
    return any(term.lower() in team for term in exclusions)


def apply_safety_filter(
    records: Iterable[MeetingRecord], extra_exclusions: Iterable[str] = ()
) -> tuple[list[MeetingRecord], int]:
    """Return the records that may be shown and how many were dropped.

    The fixed exclusions apply whatever *extra_exclusions* contains.
    """
    exclusions = exclusion_list(extra_exclusions)
    kept: list[MeetingRecord] = []
    dropped = 0
    for record in records:
        if is_excluded(record, exclusions):
            dropped += 1
        else:
            kept.append(record)
    return kept, dropped
