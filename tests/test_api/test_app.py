"""Tests for the HTTP operation transport."""

import pytest
from fastapi.testclient import TestClient

from src.api.app import create_app
from src.tools.registry import ToolContext
from tests.fakes import TOKEN, USDC, FakeReader, mint


@pytest.fixture
def client() -> TestClient:
    reader = FakeReader(mints=[mint(TOKEN, 2_500_000, decimals=3)])
    context = ToolContext(
        reader=reader,
        quote_mints=frozenset({USDC}),
        quote_decimals=6,
        activity_quote_mint=USDC,
        lp_locker_owners=frozenset(),
        dev_large_transfer_sol=50.0,
        revival_multiplier=3.0,
    )
    return TestClient(create_app(context))


def test_health(client):
    resp = client.get("/api/v1/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


def test_list_tools(client):
    resp = client.get("/api/v1/tools")
    assert resp.status_code == 200
    names = {t["name"] for t in resp.json()}
    assert "score.compute" in names
    assert "holders.top" in names


def test_invoke_tool(client):
    resp = client.post("/api/v1/tools/token.supply", json={"mint": TOKEN})
    assert resp.status_code == 200
    assert resp.json()["result"] == {
        "mint": TOKEN,
        "decimals": 3,
        "raw_supply": 2_500_000,
        "ui_supply": 2500.0,
    }


def test_validation_error_maps_to_422(client):
    resp = client.post("/api/v1/tools/token.supply", json={"mint": "x"})
    assert resp.status_code == 422
    assert resp.json()["error"] == "ValidationError"


def test_missing_account_maps_to_404(client):
    resp = client.post("/api/v1/tools/token.supply", json={"mint": USDC})
    assert resp.status_code == 404
