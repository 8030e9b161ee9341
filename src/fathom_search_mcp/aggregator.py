"""Collect the candidate set for a plan from the paginated source."""

from collections.abc import Iterable

from .events import EventHook, null_hook
from .source import RecordSource
from .types import AggregatedResultSet, MeetingRecord, QueryPlan, SourceFilters

DEFAULT_MAX_RECORDS = 1000
DEFAULT_MAX_PAGES = 100


def fetch_all(
    source: RecordSource,
    filters: SourceFilters,
    max_records: int = DEFAULT_MAX_RECORDS,
    max_pages: int = DEFAULT_MAX_PAGES,
    on_event: EventHook = null_hook,
) -> AggregatedResultSet:
    """Follow continuation tokens until exhausted or a cap is hit.

    Hitting a cap is not an error: the result is cut at *max_records* and
    flagged ``truncated``.
    """
    records: list[MeetingRecord] = []
    cursor: str | None = None
    pages = 0

    while True:
        page = source.fetch(filters, cursor)
        pages += 1
        records.extend(page.items)
        cursor = page.next_cursor
        on_event(
            "fetch.page",
            {"page": pages, "items": len(page.items), "total": len(records)},
        )
        if not cursor:
            break
        if len(records) >= max_records or pages >= max_pages:
            on_event(
                "fetch.cap_reached",
                {"pages": pages, "records": len(records), "max_records": max_records},
            )
            return AggregatedResultSet(
                records=records[:max_records], truncated=True, pages_fetched=pages
            )

    truncated = len(records) > max_records
    return AggregatedResultSet(
        records=records[:max_records], truncated=truncated, pages_fetched=pages
    )


def fetch_page(
    source: RecordSource, filters: SourceFilters, on_event: EventHook = null_hook
) -> AggregatedResultSet:
    """One request only; a leftover continuation token marks it truncated."""
    page = source.fetch(filters)
    on_event("fetch.page", {"page": 1, "items": len(page.items), "total": len(page.items)})
    return AggregatedResultSet(
        records=list(page.items), truncated=bool(page.next_cursor), pages_fetched=1
    )


def dedupe(records: Iterable[MeetingRecord]) -> list[MeetingRecord]:
    """Keep the first record seen for each ``recording_id``."""
    seen: set[str] = set()
    unique: list[MeetingRecord] = []
    for record in records:
        key = str(record.recording_id)
        if key not in seen:
            seen.add(key)
            unique.append(record)
    return unique


def aggregate(
    source: RecordSource,
    plan: QueryPlan,
    max_records: int = DEFAULT_MAX_RECORDS,
    max_pages: int = DEFAULT_MAX_PAGES,
    on_event: EventHook = null_hook,
) -> AggregatedResultSet:
    """Run the fetches a plan calls for and merge them by identifier.

    Plans naming several attendee emails get one exhaustive fetch per email,
    since the endpoint cannot OR them safely.
    """
    if plan.per_email:
        parts = []
        for email in plan.per_email:
            on_event("fetch.email", {"email": email})
            filters = plan.filters.model_copy(update={"calendar_invitees": (email,)})
            parts.append(fetch_all(source, filters, max_records, max_pages, on_event))
        merged = AggregatedResultSet(
            records=dedupe(r for part in parts for r in part.records),
            truncated=any(part.truncated for part in parts),
            pages_fetched=sum(part.pages_fetched for part in parts),
        )
    elif plan.pagination == "exhaustive":
        result = fetch_all(source, plan.filters, max_records, max_pages, on_event)
        merged = result.model_copy(update={"records": dedupe(result.records)})
    else:
        result = fetch_page(source, plan.filters, on_event)
        merged = result.model_copy(update={"records": dedupe(result.records)})

    on_event(
        "fetch.done",
        {
            "records": len(merged.records),
            "pages": merged.pages_fetched,
            "truncated": merged.truncated,
        },
    )
    return merged
