"""Turn a free-text search request into a :class:`QueryPlan`.

The search term is run through an ordered chain of rules. Each rule is a
pure function from a frozen :class:`Draft` to a new draft (it fired) or
``None`` (it did not apply). Rules remove the text they consume, so a token
claimed by an earlier rule is never seen by a later one.

What a rule extracts either becomes a filter pushed to the meetings
endpoint (emails, domains, teams) or shapes the result ("last N"). The
text left at the end is the residual term matched client-side.
"""

import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass, replace
from datetime import datetime, timedelta, timezone

from .events import EventHook, null_hook
from .safety import exclusion_list
from .types import Ordering, QueryPlan, SearchRequest, SourceFilters

DEFAULT_DAYS_BACK = 180
MAX_DAYS_BACK = 365
MAX_LIMIT = 100

_LAST_N_RE = re.compile(r"\b(?:last|derni[eè]re?s?)\s+(\d+)\b", re.IGNORECASE)
_AGENT_RE = re.compile(r"""@agent\(\s*["']?([^"')]+?)["']?\s*\)""", re.IGNORECASE)
_EMAIL_RE = re.compile(
    r"[A-Za-z0-9._%+-]+@[A-Za-z0-9-]+(?:\.[A-Za-z0-9-]+)*\.[A-Za-z]{2,}"
)
_DOMAIN_RE = re.compile(r"(?:[a-z0-9](?:[a-z0-9-]*[a-z0-9])?\.)+[a-z]{2,}")
_TEAM_WORDS = ("team", "department", "group")
_EDGE_PUNCT = ".,;:!?()[]{}<>\"'"

FILLER_WORDS = frozenset(
    {
        "find", "show", "list", "get", "search", "all", "any", "my", "me",
        "the", "a", "an", "with", "from", "for", "of", "and", "in", "about",
        "please", "meeting", "meetings", "call", "calls", "recording",
        "recordings",
    }
)  # fmt: skip


@dataclass(frozen=True)
class Draft:
    """Intermediate planner state; rules return modified copies."""

    text: str
    ordering: Ordering = "first_n"
    last_count: int | None = None
    attendee_emails: tuple[str, ...] = ()
    domains: tuple[str, ...] = ()
    teams: tuple[str, ...] = ()
    person_name: bool = False
    rules: tuple[str, ...] = ()

    @property
    def extracted(self) -> bool:
        return bool(
            self.last_count or self.attendee_emails or self.domains or self.teams
        )


Rule = Callable[[Draft], Draft | None]


def _squash(text: str) -> str:
    return " ".join(text.split())


def _dedupe(values: Iterable[str]) -> tuple[str, ...]:
    seen: dict[str, None] = {}
    for value in values:
        if value and value not in seen:
            seen[value] = None
    return tuple(seen)


# ---------------------------------------------------------------------------
# Rules
# ---------------------------------------------------------------------------


def detect_last_n(draft: Draft) -> Draft | None:
    """``last 5`` / ``derniers 5``: keep the N most recent matches."""
    match = _LAST_N_RE.search(draft.text)
    if not match or int(match.group(1)) < 1:
        return None
    text = draft.text[: match.start()] + " " + draft.text[match.end() :]
    return replace(
        draft, text=_squash(text), ordering="last_n", last_count=int(match.group(1))
    )


def detect_agent_directive(draft: Draft) -> Draft | None:
    """``@agent("x")`` names an attendee email or a domain explicitly."""
    match = _AGENT_RE.search(draft.text)
    if not match:
        return None
    target = match.group(1).strip().lower()
    text = _squash(draft.text[: match.start()] + " " + draft.text[match.end() :])
    if "@" in target:
        return replace(
            draft, text=text, attendee_emails=_dedupe((*draft.attendee_emails, target))
        )
    return replace(draft, text=text, domains=_dedupe((*draft.domains, target)))


def detect_emails(draft: Draft) -> Draft | None:
    """Email addresses become attendee filters; their domains, domain filters."""
    emails = [m.lower() for m in _EMAIL_RE.findall(draft.text)]
    if not emails:
        return None
    return replace(
        draft,
        text=_squash(_EMAIL_RE.sub(" ", draft.text)),
        attendee_emails=_dedupe((*draft.attendee_emails, *emails)),
        domains=_dedupe((*draft.domains, *(e.split("@", 1)[1] for e in emails))),
    )


def detect_domains(draft: Draft) -> Draft | None:
    """Bare ``name.tld`` tokens become domain filters."""
    kept: list[str] = []
    found: list[str] = []
    for token in draft.text.split():
        candidate = token.strip(_EDGE_PUNCT).lower()
        if "@" not in candidate and _DOMAIN_RE.fullmatch(candidate):
            found.append(candidate)
        else:
            kept.append(token)
    if not found:
        return None
    return replace(
        draft, text=" ".join(kept), domains=_dedupe((*draft.domains, *found))
    )


def strip_filler(draft: Draft) -> Draft | None:
    """Drop conversational words ("find calls with") around real content.

    A term made only of filler words is left alone unless something else was
    extracted, so a bare search for "call" still matches titles.
    """
    tokens = draft.text.split()
    kept = [t for t in tokens if t.strip(_EDGE_PUNCT).lower() not in FILLER_WORDS]
    if len(kept) == len(tokens):
        return None
    if not kept and not draft.extracted:
        return None
    return replace(draft, text=" ".join(kept))


def detect_single_domain(draft: Draft) -> Draft | None:
    """A lone dotted token without ``@`` is taken as a domain."""
    token = draft.text.strip()
    if not token or " " in token or "@" in token or "." not in token:
        return None
    domain = token.strip(_EDGE_PUNCT).lower()
    if "." not in domain:
        return None
    return replace(draft, text="", domains=_dedupe((*draft.domains, domain)))


def detect_team(draft: Draft) -> Draft | None:
    lowered = draft.text.lower()
    if not any(word in lowered for word in _TEAM_WORDS):
        return None
    return replace(draft, text="", teams=_dedupe((*draft.teams, draft.text.strip())))


def detect_person_name(draft: Draft) -> Draft | None:
    """Two or more words: probably a person, matched against attendees."""
    if len(draft.text.split()) < 2:
        return None
    return replace(draft, person_name=True)


RULES: tuple[tuple[str, Rule], ...] = (
    ("last_n", detect_last_n),
    ("agent_directive", detect_agent_directive),
    ("emails", detect_emails),
    ("domains", detect_domains),
    ("filler", strip_filler),
    ("single_domain", detect_single_domain),
    ("team", detect_team),
    ("person_name", detect_person_name),
)


def interpret(search_term: str, rules: tuple[tuple[str, Rule], ...] = RULES) -> Draft:
    """Run the rule chain over a search term."""
    draft = Draft(text=_squash(search_term))
    for name, rule in rules:
        result = rule(draft)
        if result is not None:
            draft = replace(result, rules=(*draft.rules, name))
    return replace(draft, text=_squash(draft.text))


# ---------------------------------------------------------------------------
# Plan construction
# ---------------------------------------------------------------------------


def _valid_email(value: str) -> bool:
    return "@" in value and "." in value


def build_plan(
    request: SearchRequest,
    now: datetime | None = None,
    on_event: EventHook = null_hook,
) -> QueryPlan:
    """Build the execution plan for one search request."""
    draft = interpret(request.search_term)

    explicit = [e.strip().lower() for e in request.calendar_invitees if e.strip()]
    ignored = [e for e in explicit if not _valid_email(e)]
    if ignored:
        on_event("plan.ignored_invitees", {"entries": ignored})
    emails = _dedupe((*draft.attendee_emails, *(e for e in explicit if _valid_email(e))))

    domains = _dedupe(
        (
            *draft.domains,
            *(d.strip().lower() for d in request.calendar_invitees_domains),
        )
    )
    owners = _dedupe(o.strip().lower() for o in request.recorded_by)

    now = now or datetime.now(timezone.utc)
    if request.created_after is not None:
        created_after = request.created_after
        days_back = None
    else:
        days_back = min(request.days_back or DEFAULT_DAYS_BACK, MAX_DAYS_BACK)
        created_after = now - timedelta(days=days_back)

    filters = SourceFilters(
        created_after=created_after,
        created_before=request.created_before,
        calendar_invitees=emails if len(emails) == 1 else (),
        calendar_invitees_domains=domains,
        recorded_by=owners,
        teams=draft.teams,
        include_summary=request.include_summary,
        include_action_items=request.include_action_items,
        include_transcript=request.include_transcript,
    )
    per_email = emails if len(emails) > 1 else ()

    if draft.ordering == "last_n" and draft.last_count:
        count = draft.last_count
    else:
        count = min(request.limit, MAX_LIMIT)

    exhaustive = draft.ordering == "last_n" or filters.narrows or bool(per_email)

    plan = QueryPlan(
        filters=filters,
        per_email=per_email,
        residual_term=draft.text,
        required_attendees=emails,
        ordering=draft.ordering,
        count=count,
        pagination="exhaustive" if exhaustive else "single_page",
        exclude_teams=exclusion_list(request.exclude_teams),
        days_back=days_back,
        rules_applied=draft.rules,
    )
    on_event(
        "plan.built",
        {
            "rules": list(plan.rules_applied),
            "residual": plan.residual_term,
            "emails": list(emails),
            "domains": list(domains),
            "teams": list(plan.filters.teams),
            "ordering": plan.ordering,
            "count": plan.count,
            "pagination": plan.pagination,
        },
    )
    return plan
