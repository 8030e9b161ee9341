"""Application settings via pydantic-settings."""

from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_BASE_URL = "https://api.fathom.ai/external/v1"


class Config(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="FATHOM_")

    api_key: str = Field(default="", description="Fathom API key (X-Api-Key)")
    base_url: str = Field(
        default=DEFAULT_BASE_URL,
        description="Base URL of the Fathom external API.",
    )
    timeout_seconds: float = Field(
        default=30.0, description="Timeout for a single page request."
    )
    log_level: str = Field(default="info", description="Logging level")
    page_size: int = Field(
        default=100,
        description="Records requested per page from the meetings endpoint.",
    )
    max_fetch_records: int = Field(
        default=1000,
        description="Upper bound on records collected by one paginated fetch.",
    )
    max_fetch_pages: int = Field(
        default=100,
        description="Upper bound on pages requested by one paginated fetch.",
    )
    source_order: Literal["oldest_first", "newest_first"] = Field(
        default="oldest_first",
        description=(
            "Order in which the meetings endpoint delivers records. "
            "Decides which end of the match list 'last N' takes from."
        ),
    )

    @model_validator(mode="after")
    def _check_caps(self) -> "Config":
        if self.page_size < 1:
            raise ValueError("page_size must be >= 1")
        if self.max_fetch_records < 1:
            raise ValueError("max_fetch_records must be >= 1")
        if self.max_fetch_pages < 1:
            raise ValueError("max_fetch_pages must be >= 1")
        object.__setattr__(self, "base_url", self.base_url.rstrip("/"))
        return self
