"""
Integration tests for the buys and Birdeye passthrough endpoints.
"""

from wallet_proxy.utils.errors import UpstreamError
from tests.fixtures.common import BONK_MINT, OWNER, price_table


def test_buys_for_token(api_client, mock_birdeye_client):
    mock_birdeye_client.get_trades.return_value = [
        {"tx_hash": "sig1", "side": "buy", "to": {"address": BONK_MINT, "ui_amount": 10}, "volume_usd": 3},
        {"tx_hash": "sig2", "side": "sell", "to": {"address": BONK_MINT, "ui_amount": 10}},
    ]

    response = api_client.get("/buys", params={"type": "token", "address": BONK_MINT, "limit": 10})

    assert response.status_code == 200
    body = response.json()
    assert body["type"] == "token"
    assert body["count"] == 1
    buy = body["buys"][0]
    assert buy["signature"] == "sig1"
    assert buy["isBuy"] is True
    assert buy["usdValue"] == 3
    assert buy["symbol"] == "Bonk"
    assert "amountToken" in buy


def test_buys_min_usd_filter(api_client, mock_birdeye_client, mock_jupiter_client):
    mock_birdeye_client.get_trades.return_value = [
        {"side": "buy", "mint": BONK_MINT, "amount": 100},
    ]
    mock_jupiter_client.get_prices.side_effect = price_table({BONK_MINT: 2.0})

    kept = api_client.get("/buys", params={"type": "wallet", "address": OWNER, "minUsd": 150}).json()
    dropped = api_client.get("/buys", params={"type": "wallet", "address": OWNER, "minUsd": 250}).json()

    assert kept["buys"][0]["usdValue"] == 200
    assert dropped["buys"] == []


def test_buys_provider_failure_is_200_with_empty_list(api_client, mock_birdeye_client):
    mock_birdeye_client.get_trades.side_effect = UpstreamError("All trade endpoints failed")

    response = api_client.get("/buys", params={"type": "token", "address": BONK_MINT})

    assert response.status_code == 200
    assert response.json()["buys"] == []
    assert response.json()["warning"]


def test_buys_requires_address(api_client):
    response = api_client.get("/buys", params={"type": "token"})

    assert response.status_code == 400


def test_buys_unknown_type_is_200_with_warning(api_client, mock_birdeye_client):
    response = api_client.get("/buys", params={"type": "nft", "address": BONK_MINT})

    assert response.status_code == 200
    assert response.json()["buys"] == []
    assert "nft" in response.json()["warning"]
    mock_birdeye_client.get_trades.assert_not_awaited()


def test_buys_defaults_type_and_tolerates_bad_numbers(api_client, mock_birdeye_client):
    response = api_client.get("/buys", params={"address": BONK_MINT, "limit": "ten", "minUsd": ""})

    assert response.status_code == 200
    assert response.json()["type"] == "token"
    mock_birdeye_client.get_trades.assert_awaited_once_with("token", BONK_MINT, 20)


def test_birdeye_passthrough_returns_raw_payload(api_client, mock_birdeye_client):
    mock_birdeye_client.passthrough.return_value = {"success": True, "data": {"value": 0.00002}}

    first = api_client.get("/birdeye", params={"type": "price", "address": BONK_MINT})
    second = api_client.get("/birdeye", params={"type": "price", "address": BONK_MINT})

    assert first.status_code == 200
    assert first.json() == {"success": True, "data": {"value": 0.00002}}
    assert second.json() == first.json()
    mock_birdeye_client.passthrough.assert_awaited_once_with("price", BONK_MINT, 50)


def test_birdeye_passthrough_rejects_unknown_type(api_client):
    response = api_client.get("/birdeye", params={"type": "everything", "address": BONK_MINT})

    assert response.status_code == 400


def test_birdeye_passthrough_upstream_failure_is_502(api_client, mock_birdeye_client):
    mock_birdeye_client.passthrough.side_effect = UpstreamError("down", service="birdeye", upstream_status=500)

    response = api_client.get("/birdeye", params={"type": "markets", "address": BONK_MINT})

    assert response.status_code == 502
    assert response.json()["error"] == "down"
