"""Record source: the Fathom ``/meetings`` list endpoint."""

from datetime import datetime, timezone
from typing import Any, Protocol

import httpx
from pydantic import ValidationError

from .config import Config
from .errors import (
    SourceAuthError,
    SourceRateLimited,
    SourceRequestError,
    SourceUnavailable,
)
from .types import SourceFilters, SourcePage

_ARRAY_PARAMS = (
    "calendar_invitees",
    "calendar_invitees_domains",
    "recorded_by",
    "teams",
)
_FLAG_PARAMS = (
    "include_summary",
    "include_action_items",
    "include_transcript",
    "include_crm_matches",
)


def _iso(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def build_params(
    filters: SourceFilters,
    cursor: str | None = None,
    page_size: int | None = None,
) -> dict[str, Any]:
    """Translate filters into query parameters.

    Multi-value filters use the ``name[]`` form and are omitted when empty.
    ``page_size`` is sent as ``limit``; the endpoint default is used otherwise.
    """
    params: dict[str, Any] = {}
    if page_size is not None:
        params["limit"] = page_size
    for name in _ARRAY_PARAMS:
        values = getattr(filters, name)
        if values:
            params[f"{name}[]"] = list(values)
    if filters.created_after is not None:
        params["created_after"] = _iso(filters.created_after)
    if filters.created_before is not None:
        params["created_before"] = _iso(filters.created_before)
    for name in _FLAG_PARAMS:
        params[name] = "true" if getattr(filters, name) else "false"
    if cursor:
        params["cursor"] = cursor
    return params


class RecordSource(Protocol):
    """Anything that can deliver one page of meetings for a filter set."""

    def fetch(
        self, filters: SourceFilters, cursor: str | None = None
    ) -> SourcePage: ...


class FathomClient:
    """Fetches single pages of meetings. Errors are raised, never retried."""

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.fathom.ai/external/v1",
        timeout: float = 30.0,
        page_size: int | None = 100,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        if not api_key:
            raise ValueError("Fathom API key is required")
        self._page_size = page_size
        self._client = httpx.Client(
            base_url=base_url,
            headers={"X-Api-Key": api_key, "Accept": "application/json"},
            timeout=timeout,
            transport=transport,
        )

    def fetch(self, filters: SourceFilters, cursor: str | None = None) -> SourcePage:
        try:
            response = self._client.get(
                "/meetings", params=build_params(filters, cursor, self._page_size)
            )
        except httpx.TimeoutException as e:
            raise SourceUnavailable(f"Fathom API timed out: {e}") from e
        except httpx.RequestError as e:
            raise SourceUnavailable(f"Could not reach Fathom API: {e}") from e

        _raise_for_status(response)

        try:
            return SourcePage.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise SourceUnavailable(f"Unexpected response from Fathom API: {e}") from e

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "FathomClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def _raise_for_status(response: httpx.Response) -> None:
    status = response.status_code
    if status < 400:
        return
    if status == 401:
        raise SourceAuthError(
            "Invalid API key. Please check your Fathom API key.", status_code=status
        )
    if status == 429:
        raise SourceRateLimited(
            "Rate limit exceeded. Please try again later.", status_code=status
        )
    if status >= 500:
        raise SourceUnavailable(
            f"Fathom API unavailable (HTTP {status})", status_code=status
        )

    message = None
    try:
        body = response.json()
        if isinstance(body, dict):
            message = body.get("message")
    except ValueError:
        pass
    raise SourceRequestError(
        f"Fathom API error: {message or f'HTTP {status}'}", status_code=status
    )


def create_source(config: Config) -> FathomClient:
    """Build the source client from settings."""
    return FathomClient(
        config.api_key,
        base_url=config.base_url,
        timeout=config.timeout_seconds,
        page_size=config.page_size,
    )
