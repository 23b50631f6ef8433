from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def check_iso_date(value: str) -> str:
    """Accept YYYY-MM-DD (or a full ISO datetime) and return it unchanged."""
    try:
        datetime.fromisoformat(value)
    except ValueError:
        raise ValueError(f"not an ISO date: {value!r}") from None
    return value


class PageRequest(BaseModel):
    """Parameters for fetching one page of an account's transactions."""

    model_config = ConfigDict(frozen=True)

    as_of_date_cutoff: str  # YYYY-MM-DD, compared as a string against valueDate
    authorization_token: str
    secondary_token: Optional[str] = None  # jws, only present after some logins
    account_id: int = Field(gt=0)
    page_number: int = Field(default=1, ge=1)

    @field_validator("as_of_date_cutoff")
    @classmethod
    def check_cutoff(cls, value: str) -> str:
        return check_iso_date(value)

    def next_page(self) -> "PageRequest":
        return self.model_copy(update={"page_number": self.page_number + 1})


class PageResponse(BaseModel):
    """
    Result of one transport call.

    body is kept as the raw decoded JSON object so the paginator can
    validate the shape of the transaction list itself.
    """

    status_code: int
    body: Optional[dict[str, Any]] = None


# ── Request / Response schemas for API ────────────────────────────────────────

class FetchTransactionsRequest(BaseModel):
    from_date: str = Field(description="Stop once a page ends on or before this date, e.g. '2024-01-01'")
    page: int = Field(default=1, ge=1, description="First page to fetch")

    @field_validator("from_date")
    @classmethod
    def check_from_date(cls, value: str) -> str:
        return check_iso_date(value)


class FetchTransactionsResponse(BaseModel):
    account_id: int
    count: int
    transactions: list[dict[str, Any]]


class FetchErrorResponse(BaseModel):
    function: str
    status_code: str  # always "CRASH"
    kind: str
    detail: str
