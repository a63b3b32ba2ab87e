from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel

# The sync API speaks camelCase on the wire
camel_config = ConfigDict(
    alias_generator=to_camel, populate_by_name=True, from_attributes=True
)


def parse_positive_int(value: Any) -> int | None:
    """Parse a page size, returning None for junk or values below 1."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = int(value)
    except (TypeError, ValueError, OverflowError):
        return None
    return number if number >= 1 else None


class SyncRequest(BaseModel):
    limit: int | None = None
    status: str | None = None

    @field_validator("limit", mode="before")
    @classmethod
    def _positive_limit_or_default(cls, value: Any) -> int | None:
        # Missing, junk or non-positive limits fall back to the default page size
        return parse_positive_int(value)


class SyncResult(BaseModel):
    records_processed: int = 0
    records_added: int = 0
    records_updated: int = 0
    records_deleted: int = 0

    model_config = camel_config

    def counts(self) -> dict[str, int]:
        return self.model_dump()


class SyncResponse(SyncResult):
    success: bool = True
    message: str = "MLS sync completed successfully"


class SyncErrorResponse(BaseModel):
    success: bool = False
    error: str


class SyncLogResponse(BaseModel):
    id: int
    sync_type: str
    status: str
    records_processed: int
    records_added: int
    records_updated: int
    records_deleted: int
    error_message: str | None
    started_at: datetime
    completed_at: datetime | None

    model_config = camel_config


class SyncLogListResponse(BaseModel):
    logs: list[SyncLogResponse]


class MLSConfigResponse(BaseModel):
    configured: bool
    api_url: str
    has_api_key: bool

    model_config = camel_config
