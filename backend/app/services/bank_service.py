import logging
from dataclasses import dataclass
from typing import Any, Optional

from app.config import BANK_API_DOMAIN, MALFORMED_PAGE_POLICY, SERVICE_NAME
from app.models.transaction import PageRequest, PageResponse
from app.services.bank_transport import HttpxTransport, Transport
from app.services.errors import FetchErrorKind, PageError, TransactionFetchError

logger = logging.getLogger(__name__)

MALFORMED_PAGE_POLICIES = ("truncate", "fail")


@dataclass(frozen=True)
class BankClientConfig:
    """Everything the paginator needs from the outside world."""

    domain: str
    transport: Transport
    logger: logging.Logger = logger
    service_name: str = SERVICE_NAME
    malformed_page_policy: str = "truncate"

    def __post_init__(self):
        if self.malformed_page_policy not in MALFORMED_PAGE_POLICIES:
            raise ValueError(
                f"malformed_page_policy must be one of {MALFORMED_PAGE_POLICIES}, "
                f"got {self.malformed_page_policy!r}"
            )

    @classmethod
    def from_settings(cls, transport: Transport) -> "BankClientConfig":
        return cls(
            domain=BANK_API_DOMAIN,
            transport=transport,
            malformed_page_policy=MALFORMED_PAGE_POLICY,
        )


# ── Helpers ────────────────────────────────────────────────────────────────────

def build_headers(authorization_token: str, secondary_token: Optional[str] = None) -> dict[str, str]:
    headers = {
        "Authorization": authorization_token,
        "Content-Type": "application/json",
        "Accept": "application/json",
    }
    if secondary_token:
        headers["jws"] = secondary_token
    return headers


def is_success_response(response: Optional[PageResponse]) -> bool:
    return response is not None and response.status_code == 200 and bool(response.body)


def has_next_page(body: dict[str, Any]) -> bool:
    pagination = body.get("pagination")
    return isinstance(pagination, dict) and bool(pagination.get("hasMore"))


def has_dated_last_entry(transactions: Any) -> bool:
    """A non-empty list whose last entry is a mapping carrying a string valueDate."""
    return (
        isinstance(transactions, list)
        and bool(transactions)
        and isinstance(transactions[-1], dict)
        and isinstance(transactions[-1].get("valueDate"), str)
    )


def is_well_formed(transactions: Any) -> bool:
    """Every entry is a mapping and the last one carries a string valueDate."""
    return has_dated_last_entry(transactions) and all(isinstance(tx, dict) for tx in transactions)


# ── Paginator ──────────────────────────────────────────────────────────────────

class TransactionPaginator:
    """
    Fetches an account's transactions page by page, newest first.

    Pagination stops when the API reports no more pages, or as soon as a page
    ends with a transaction dated on or before the cutoff (that page is kept).
    Pages are fetched strictly one after another since each stop decision
    depends on the previous page's content.
    """

    def __init__(self, config: BankClientConfig):
        self.config = config

    def page_url(self, request: PageRequest) -> str:
        return f"{self.config.domain}/accounts/{request.account_id}/transactions?page={request.page_number}"

    async def fetch_transaction_page(self, request: PageRequest) -> list[dict]:
        """
        Fetch `request.page_number` and every following page up to the cutoff.

        Returns the transactions of all fetched pages in page order.
        Raises TransactionFetchError for any failure; no partial result is returned.
        """
        transactions: list[dict] = []
        current: Optional[PageRequest] = request
        page_request = request
        try:
            while current is not None:
                page_request = current
                current = await self._fetch_one(page_request, transactions)
        except Exception as e:
            error = TransactionFetchError.wrap(e)
            self._log(
                logging.ERROR,
                "transactions_fetch_crashed",
                account_id=request.account_id,
                page=page_request.page_number,
                kind=error.kind.value,
                error=str(e),
            )
            raise error from e

        self._log(
            logging.DEBUG,
            "transactions_fetch_complete",
            account_id=request.account_id,
            first_page=request.page_number,
            last_page=page_request.page_number,
            count=len(transactions),
        )
        return transactions

    async def _fetch_one(self, request: PageRequest, accumulated: list[dict]) -> Optional[PageRequest]:
        """Fetch one page into `accumulated`; return the next page's request, or None to stop."""
        page = request.page_number
        self._log(logging.DEBUG, "transactions_page_fetching", account_id=request.account_id, page=page)

        response = await self.config.transport.send(
            "GET",
            self.page_url(request),
            build_headers(request.authorization_token, request.secondary_token),
        )
        if not is_success_response(response):
            raise PageError(
                FetchErrorKind.UNEXPECTED_RESPONSE,
                f"Unexpected response for page {page}: status {getattr(response, 'status_code', None)}",
            )

        transactions = response.body.get("transactions")
        more = has_next_page(response.body)
        self._log(
            logging.DEBUG,
            "transactions_page_received",
            account_id=request.account_id,
            page=page,
            count=len(transactions) if isinstance(transactions, list) else None,
            has_more=more,
        )

        if not more:
            if not isinstance(transactions, list):
                self._malformed(request, transactions)
                return None
            accumulated.extend(transactions)
            self._log(logging.DEBUG, "transactions_last_page", account_id=request.account_id, page=page)
            return None

        if isinstance(transactions, list) and not transactions:
            self._log(
                logging.ERROR,
                "transactions_empty_page_anomaly",
                account_id=request.account_id,
                page=page,
                accumulated=len(accumulated),
            )
            raise PageError(
                FetchErrorKind.EMPTY_PAGE_ANOMALY,
                f"Empty list of transactions on page {page} although more pages are announced",
            )

        if not has_dated_last_entry(transactions):
            self._malformed(request, transactions)
            return None

        last_value_date = transactions[-1]["valueDate"]
        if last_value_date <= request.as_of_date_cutoff:
            accumulated.extend(transactions)
            self._log(
                logging.DEBUG,
                "transactions_cutoff_reached",
                account_id=request.account_id,
                page=page,
                last_value_date=last_value_date,
                cutoff=request.as_of_date_cutoff,
            )
            return None

        if not is_well_formed(transactions):
            self._malformed(request, transactions)
            return None

        accumulated.extend(transactions)

        self._log(
            logging.DEBUG,
            "transactions_page_accumulated",
            account_id=request.account_id,
            page=page,
            accumulated=len(accumulated),
        )
        return request.next_page()

    def _malformed(self, request: PageRequest, transactions: Any) -> None:
        """Log a malformed page; raise only under the "fail" policy."""
        self._log(
            logging.ERROR,
            "transactions_malformed_list",
            account_id=request.account_id,
            page=request.page_number,
            received_type=type(transactions).__name__,
            policy=self.config.malformed_page_policy,
        )
        if self.config.malformed_page_policy == "fail":
            raise PageError(
                FetchErrorKind.MALFORMED_TRANSACTION_LIST,
                f"Failed to validate transactions on page {request.page_number}",
            )

    def _log(self, level: int, event: str, **fields) -> None:
        self.config.logger.log(level, event, extra={"service": self.config.service_name, **fields})


# ── Public entry point ─────────────────────────────────────────────────────────

async def fetch_transactions(
    from_date: str,
    authorization: str,
    secondary_token: Optional[str],
    account_id: int,
    page: int = 1,
    config: Optional[BankClientConfig] = None,
) -> list[dict]:
    """
    Fetch an account's transactions from `page` back to `from_date`.

    Without an explicit config, an httpx transport is opened against the
    configured bank domain for the duration of the call.
    Raises pydantic.ValidationError for invalid arguments (before any request)
    and TransactionFetchError for any failure while paginating.
    """
    request = PageRequest(
        as_of_date_cutoff=from_date,
        authorization_token=authorization,
        secondary_token=secondary_token,
        account_id=account_id,
        page_number=page,
    )
    if config is not None:
        return await TransactionPaginator(config).fetch_transaction_page(request)

    async with HttpxTransport() as transport:
        return await TransactionPaginator(BankClientConfig.from_settings(transport)).fetch_transaction_page(request)
