"""Observability hook and logging setup.

Pipeline stages never log directly. They call an :data:`EventHook` with an
event name and a dict of fields; the default hook forwards to ``logging``.
"""

import logging
import sys
from collections.abc import Callable
from typing import Any

EventHook = Callable[[str, dict[str, Any]], None]

logger = logging.getLogger("fathom_search_mcp.events")

# Events worth surfacing at INFO; everything else is DEBUG.
_INFO_EVENTS = frozenset(
    {"plan.built", "fetch.cap_reached", "safety.excluded", "search.done"}
)


def log_event(name: str, fields: dict[str, Any]) -> None:
    """Default hook: one log line per event."""
    level = logging.INFO if name in _INFO_EVENTS else logging.DEBUG
    if logger.isEnabledFor(level):
        detail = " ".join(f"{k}={v!r}" for k, v in fields.items())
        logger.log(level, "%s %s", name, detail)


def null_hook(name: str, fields: dict[str, Any]) -> None:
    return None


def configure_logging(level: str = "info") -> None:
    """Route package logs to stderr; stdout belongs to the stdio transport."""
    formatter = logging.Formatter("[%(asctime)s] [%(name)s] %(message)s", "%H:%M:%S")
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)
    handler.name = "fathom_search_mcp_stream"

    pkg_logger = logging.getLogger("fathom_search_mcp")
    pkg_logger.handlers = [h for h in pkg_logger.handlers if h.name != handler.name]
    pkg_logger.addHandler(handler)
    pkg_logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    pkg_logger.propagate = False
