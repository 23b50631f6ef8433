import logging

import pytest

from app.models.transaction import PageResponse
from app.services.bank_service import BankClientConfig

TEST_DOMAIN = "https://bank.test"


class FakeTransport:
    """Replays canned responses in order and records every call."""

    def __init__(self, responses):
        self.responses = list(responses)
        self.calls: list[tuple[str, str, dict]] = []

    async def send(self, method: str, url: str, headers: dict[str, str]) -> PageResponse:
        self.calls.append((method, url, headers))
        if not self.responses:
            raise AssertionError(f"unexpected request: {method} {url}")
        response = self.responses.pop(0)
        if isinstance(response, BaseException):
            raise response
        return response

    @property
    def urls(self) -> list[str]:
        return [url for _, url, _ in self.calls]


def _page(value_dates, has_more: bool, status_code: int = 200, prefix: str = "tx") -> PageResponse:
    transactions = [
        {"id": f"{prefix}-{i}", "valueDate": value_date, "amount": -10.0 * (i + 1), "label": f"CB SHOP {i}"}
        for i, value_date in enumerate(value_dates)
    ]
    return PageResponse(
        status_code=status_code,
        body={"transactions": transactions, "pagination": {"hasMore": has_more}},
    )


@pytest.fixture
def make_page():
    """Build a PageResponse whose transactions carry the given value dates."""
    return _page


@pytest.fixture
def fake_transport():
    return FakeTransport


@pytest.fixture
def make_config():
    def _make(transport, **overrides) -> BankClientConfig:
        params = {
            "domain": TEST_DOMAIN,
            "transport": transport,
            "logger": logging.getLogger("tests.bank"),
            "service_name": "bankin-test",
        }
        params.update(overrides)
        return BankClientConfig(**params)

    return _make
