"""Error taxonomy for the search pipeline.

Every error carries a machine ``code`` so the transport can tell "no source
access" apart from "bad request" without parsing messages.
"""


class SearchError(Exception):
    code = "search_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, str]:
        return {"code": self.code, "message": self.message}


class InvalidRequest(SearchError):
    code = "invalid_request"


class UnknownCapability(SearchError):
    code = "unknown_capability"


class SourceError(SearchError):
    """Raised by the record source; never retried inside the pipeline."""

    code = "source_error"

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class SourceAuthError(SourceError):
    code = "source_auth_error"


class SourceRateLimited(SourceError):
    code = "source_rate_limited"


class SourceUnavailable(SourceError):
    code = "source_unavailable"


class SourceRequestError(SourceError):
    code = "source_request_error"
