from enum import Enum
from typing import Optional


class FetchErrorKind(str, Enum):
    TRANSPORT = "transport"
    UNEXPECTED_RESPONSE = "unexpected_response"
    EMPTY_PAGE_ANOMALY = "empty_page_anomaly"
    MALFORMED_TRANSACTION_LIST = "malformed_transaction_list"
    INTERNAL = "internal"


class TransportError(Exception):
    """Raised by a transport when the HTTP call itself fails (network, timeout, protocol)."""


class PageError(Exception):
    """Raised when a fetched page fails validation."""

    def __init__(self, kind: FetchErrorKind, message: str):
        super().__init__(message)
        self.kind = kind


class TransactionFetchError(Exception):
    """
    Uniform wrapper for every failure of a paginated transaction fetch.

    Callers match on `kind` rather than on exception subclasses.
    `cause` is the original exception, also available as `__cause__`.
    """

    def __init__(
        self,
        kind: FetchErrorKind,
        cause: Optional[BaseException] = None,
        operation: str = "fetch_transactions",
        status_code: str = "CRASH",
    ):
        super().__init__(f"{operation} failed ({kind.value}): {cause}")
        self.kind = kind
        self.cause = cause
        self.operation = operation
        self.status_code = status_code

    @classmethod
    def wrap(cls, error: Exception) -> "TransactionFetchError":
        if isinstance(error, TransportError):
            kind = FetchErrorKind.TRANSPORT
        elif isinstance(error, PageError):
            kind = error.kind
        else:
            kind = FetchErrorKind.INTERNAL
        return cls(kind, cause=error)

    def to_dict(self) -> dict:
        return {
            "function": self.operation,
            "status_code": self.status_code,
            "kind": self.kind.value,
            "detail": str(self.cause) if self.cause is not None else "",
        }
