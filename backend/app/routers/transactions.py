import logging
from typing import AsyncIterator, Optional

from fastapi import APIRouter, Depends, Header, Path

from app.models.transaction import (
    FetchErrorResponse,
    FetchTransactionsRequest,
    FetchTransactionsResponse,
)
from app.services.bank_service import BankClientConfig, fetch_transactions
from app.services.bank_transport import HttpxTransport

logger = logging.getLogger(__name__)
router = APIRouter()


async def get_bank_config() -> AsyncIterator[BankClientConfig]:
    """One httpx transport per request, closed once the response is sent."""
    async with HttpxTransport() as transport:
        yield BankClientConfig.from_settings(transport)


@router.post(
    "/{account_id}/transactions/fetch",
    response_model=FetchTransactionsResponse,
    responses={502: {"model": FetchErrorResponse}},
)
async def fetch_account_transactions(
    body: FetchTransactionsRequest,
    account_id: int = Path(gt=0),
    authorization: str = Header(...),
    jws: Optional[str] = Header(default=None),
    config: BankClientConfig = Depends(get_bank_config),
):
    """
    Fetch the account's transactions from the bank, newest first,
    starting at `page` and stopping once a page ends on or before `from_date`.

    The caller's Authorization header (and jws token, when the bank issued one)
    are forwarded to the bank API as-is. Nothing is stored.
    """
    logger.info(
        "transactions_fetch_requested",
        extra={"account_id": account_id, "from_date": body.from_date, "page": body.page, "has_jws": bool(jws)},
    )
    result = await fetch_transactions(
        body.from_date,
        authorization,
        jws,
        account_id,
        page=body.page,
        config=config,
    )
    logger.info("transactions_fetch_done", extra={"account_id": account_id, "count": len(result)})
    return FetchTransactionsResponse(account_id=account_id, count=len(result), transactions=result)
