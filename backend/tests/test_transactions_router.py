import logging

import pytest
from fastapi.testclient import TestClient

from app.main import app
from app.models.transaction import PageResponse
from app.routers.transactions import get_bank_config

URL = "/api/accounts/42/transactions/fetch"


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def _override(config):
    def _get_bank_config():
        return config

    return _get_bank_config


def test_fetch_returns_merged_transactions(client, fake_transport, make_config, make_page):
    transport = fake_transport([
        make_page(["2024-03-01", "2024-02-01"], has_more=True, prefix="p1"),
        make_page(["2024-01-15", "2023-12-01"], has_more=True, prefix="p2"),
    ])
    app.dependency_overrides[get_bank_config] = _override(make_config(transport))

    resp = client.post(
        URL,
        json={"from_date": "2024-01-01"},
        headers={"Authorization": "Bearer abc", "jws": "jws-token"},
    )

    assert resp.status_code == 200
    data = resp.json()
    assert data["account_id"] == 42
    assert data["count"] == 4
    assert [tx["id"] for tx in data["transactions"]] == ["p1-0", "p1-1", "p2-0", "p2-1"]
    _, url, headers = transport.calls[0]
    assert url == "https://bank.test/accounts/42/transactions?page=1"
    assert headers["Authorization"] == "Bearer abc"
    assert headers["jws"] == "jws-token"


def test_fetch_failure_maps_to_bad_gateway(client, fake_transport, make_config):
    transport = fake_transport([PageResponse(status_code=404, body=None)])
    app.dependency_overrides[get_bank_config] = _override(make_config(transport))

    resp = client.post(URL, json={"from_date": "2024-01-01"}, headers={"Authorization": "Bearer abc"})

    assert resp.status_code == 502
    assert resp.json()["function"] == "fetch_transactions"
    assert resp.json()["status_code"] == "CRASH"
    assert resp.json()["kind"] == "unexpected_response"


def test_fetch_failure_is_logged_once_as_error(client, fake_transport, make_config, caplog):
    transport = fake_transport([PageResponse(status_code=404, body=None)])
    app.dependency_overrides[get_bank_config] = _override(make_config(transport))

    with caplog.at_level(logging.DEBUG, logger="tests.bank"):
        client.post(URL, json={"from_date": "2024-01-01"}, headers={"Authorization": "Bearer abc"})

    errors = [record.getMessage() for record in caplog.records if record.levelno >= logging.ERROR]
    handled = [record for record in caplog.records if record.getMessage() == "transaction_fetch_failed"]
    assert errors == ["transactions_fetch_crashed"]
    assert [record.levelno for record in handled] == [logging.WARNING]


def test_missing_authorization_is_rejected(client, fake_transport, make_config):
    transport = fake_transport([])
    app.dependency_overrides[get_bank_config] = _override(make_config(transport))

    resp = client.post(URL, json={"from_date": "2024-01-01"})

    assert resp.status_code == 422
    assert transport.calls == []


@pytest.mark.parametrize(
    "url, body",
    [
        (URL, {"from_date": "yesterday"}),
        (URL, {"from_date": "2024-01-01", "page": 0}),
        ("/api/accounts/0/transactions/fetch", {"from_date": "2024-01-01"}),
    ],
)
def test_invalid_input_is_rejected(client, fake_transport, make_config, url, body):
    transport = fake_transport([])
    app.dependency_overrides[get_bank_config] = _override(make_config(transport))

    resp = client.post(url, json=body, headers={"Authorization": "Bearer abc"})

    assert resp.status_code == 422
    assert transport.calls == []


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}
