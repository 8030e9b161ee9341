"""Method dispatch with request-id correlation and an error envelope."""

import json
import logging
import sys
from datetime import datetime
from typing import Any

from .config import Config
from .errors import SearchError, UnknownCapability
from .events import EventHook, configure_logging, log_event
from .pipeline import parse_request, run_search
from .source import RecordSource, create_source

logger = logging.getLogger(__name__)

SEARCH_METHODS = frozenset({"search", "search_meetings"})


def handle_call(
    request_id: Any,
    method: str,
    params: dict[str, Any] | None,
    source: RecordSource,
    config: Config | None = None,
    on_event: EventHook = log_event,
    now: datetime | None = None,
) -> dict[str, Any]:
    """Run one call and wrap the outcome.

    Returns ``{"id", "result"}`` on success or ``{"id", "error"}`` with a
    machine code and message. The two are never mixed.
    """
    try:
        if method not in SEARCH_METHODS:
            raise UnknownCapability(f"Unknown method: {method}")
        request = parse_request(params)
        response = run_search(request, source, config, on_event=on_event, now=now)
        return {"id": request_id, "result": response.model_dump(mode="json")}
    except SearchError as e:
        logger.warning("Call %s failed: [%s] %s", request_id, e.code, e.message)
        return {"id": request_id, "error": e.to_dict()}
    except Exception as e:
        logger.exception("Call %s failed with an internal error", request_id)
        return {
            "id": request_id,
            "error": {"code": "internal_error", "message": str(e) or type(e).__name__},
        }


def main() -> None:
    """CLI entry point for ``fathom-search-call``.

    Reads one ``{"id", "method", "params"}`` object from the first argument
    or stdin and prints the response envelope.
    """
    config = Config()
    configure_logging(config.log_level)

    raw = sys.argv[1] if len(sys.argv) > 1 else sys.stdin.read()
    try:
        call = json.loads(raw)
    except json.JSONDecodeError as e:
        error = {"code": "invalid_request", "message": f"Malformed call: {e}"}
        print(json.dumps({"id": None, "error": error}))
        sys.exit(1)
    if not isinstance(call, dict):
        call = {}

    if not config.api_key:
        print("FATHOM_API_KEY is not set", file=sys.stderr)
        sys.exit(1)

    with create_source(config) as source:
        envelope = handle_call(
            call.get("id"), call.get("method", ""), call.get("params"), source, config
        )

    print(json.dumps(envelope, indent=2, ensure_ascii=False))
    if "error" in envelope:
        sys.exit(1)
