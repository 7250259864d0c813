import pytest
from decimal import Decimal

from app.services.market_data_client import MarketDataError


def register(client, username="alice"):
    response = client.post("/users/register", json={
        "email": f"{username}@example.com",
        "username": username,
        "password": "password1",
    })
    assert response.status_code == 201
    return {"X-User-Id": str(response.json()["id"])}


def balance(client, headers, currency):
    wallets = {w["currency"]: w for w in client.get("/wallets", headers=headers).json()}
    return Decimal(wallets[currency]["available_balance"]), Decimal(wallets[currency]["locked_balance"])


class TestHealthAndIdentity:
    """Health check and identity header handling."""

    def test_health_endpoint(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_missing_user_header(self, client):
        assert client.get("/wallets").status_code == 422

    def test_error_handling_invalid_json(self, client):
        headers = register(client)
        response = client.post(
            "/trading/order",
            content="invalid json",
            headers={**headers, "Content-Type": "application/json"},
        )
        assert response.status_code == 422


class TestUserEndpoints:
    def test_register_and_profile(self, client):
        headers = register(client)

        profile = client.get("/users/profile", headers=headers)
        assert profile.status_code == 200
        assert profile.json()["username"] == "alice"
        assert "password_hash" not in profile.json()

    def test_duplicate_registration(self, client):
        register(client)
        response = client.post("/users/register", json={
            "email": "alice@example.com", "username": "alice2", "password": "password1",
        })
        assert response.status_code == 422
        assert response.json()["detail"]["error"] == "ValidationError"

    def test_unknown_profile(self, client):
        assert client.get("/users/profile", headers={"X-User-Id": "999"}).status_code == 404


class TestWalletEndpoints:
    def test_demo_balances(self, client):
        headers = register(client)
        assert balance(client, headers, "USD") == (Decimal("50000"), Decimal("0"))
        assert balance(client, headers, "BTC") == (Decimal("1"), Decimal("0"))

    def test_deposit_withdraw_and_history(self, client):
        headers = register(client)

        deposit = client.post("/wallets/deposit", json={"currency": "usd", "amount": "500"}, headers=headers)
        withdraw = client.post("/wallets/withdraw", json={"currency": "USD", "amount": "500"}, headers=headers)

        assert deposit.status_code == 200
        assert withdraw.status_code == 200
        assert Decimal(withdraw.json()["amount"]) == Decimal("500")
        assert balance(client, headers, "USD")[0] == Decimal("50000")

        history = client.get("/wallets/transactions", params={"limit": 2}, headers=headers).json()
        assert [Decimal(t["amount"]) for t in history] == [Decimal("-500"), Decimal("500")]

        demo = client.get("/wallets/transactions", params={"type": "deposit"}, headers=headers).json()
        assert len(demo) == 4

    def test_withdraw_too_much(self, client):
        headers = register(client)
        response = client.post("/wallets/withdraw", json={"currency": "BTC", "amount": "1.5"}, headers=headers)

        assert response.status_code == 400
        assert response.json()["detail"]["error"] == "InsufficientFundsError"

    def test_unsupported_currency(self, client):
        headers = register(client)
        response = client.post("/wallets/deposit", json={"currency": "XYZ", "amount": "1"}, headers=headers)
        assert response.status_code == 422

    def test_invalid_page(self, client):
        headers = register(client)
        response = client.get("/wallets/transactions", params={"limit": 0}, headers=headers)
        assert response.status_code == 422

    def test_deposit_below_smallest_unit(self, client):
        headers = register(client)
        response = client.post(
            "/wallets/deposit", json={"currency": "USD", "amount": "0.000000001"}, headers=headers
        )

        assert response.status_code == 422
        assert response.json()["detail"]["details"]["field"] == "amount"


class TestTradingEndpoints:
    def test_buy_order(self, client, sample_order_data):
        headers = register(client)
        response = client.post("/trading/order", json=sample_order_data, headers=headers)

        assert response.status_code == 200
        trade = response.json()
        assert trade["symbol"] == "BTC"
        assert Decimal(trade["total"]) == Decimal("22500")
        assert Decimal(trade["fee"]) == Decimal("22.5")
        assert balance(client, headers, "USD")[0] == Decimal("27477.5")
        assert balance(client, headers, "BTC")[0] == Decimal("1.5")

    def test_insufficient_funds(self, client):
        headers = register(client)
        response = client.post(
            "/trading/order",
            json={"symbol": "BTC", "side": "buy", "amount": "2", "price": "45000"},
            headers=headers,
        )

        assert response.status_code == 400
        assert balance(client, headers, "USD")[0] == Decimal("50000")
        assert client.get("/trading/trades", headers=headers).json() == []

    @pytest.mark.parametrize("payload", [
        {"symbol": "BTC", "side": "buy", "amount": "0", "price": "100"},
        {"symbol": "BTC", "side": "hold", "amount": "1", "price": "100"},
        {"symbol": "BTC", "side": "buy", "amount": "1", "price": "-1"},
        {"symbol": "", "side": "buy", "amount": "1", "price": "100"},
    ])
    def test_validation(self, client, payload):
        headers = register(client)
        assert client.post("/trading/order", json=payload, headers=headers).status_code == 422

    def test_trades_and_stats(self, client):
        headers = register(client)
        client.post("/trading/order", json={"symbol": "ETH", "side": "buy", "amount": "1", "price": "100"},
                    headers=headers)
        client.post("/trading/order", json={"symbol": "ETH", "side": "sell", "amount": "1", "price": "150"},
                    headers=headers)

        trades = client.get("/trading/trades", headers=headers).json()
        assert [t["side"] for t in trades] == ["sell", "buy"]

        stats = client.get("/trading/stats", params={"timeframe": "7d"}, headers=headers).json()
        assert stats["total_trades"] == 2
        assert Decimal(stats["win_rate"]) == Decimal("50")
        assert Decimal(stats["total_pnl"]) == Decimal("49.75")

        alias = client.get("/trading/analytics", params={"timeframe": "7d"}, headers=headers)
        assert alias.json() == stats

    def test_stats_without_trades(self, client):
        headers = register(client)
        stats = client.get("/trading/stats", params={"timeframe": "all"}, headers=headers).json()
        assert stats["total_trades"] == 0
        assert Decimal(stats["win_rate"]) == Decimal("0")

    def test_stats_bad_timeframe(self, client):
        headers = register(client)
        assert client.get("/trading/stats", params={"timeframe": "2w"}, headers=headers).status_code == 422


class TestPositionEndpoints:
    def test_open_list_close(self, client, sample_position_data):
        headers = register(client)

        opened = client.post("/positions", json=sample_position_data, headers=headers)
        assert opened.status_code == 200
        position_id = opened.json()["id"]
        assert balance(client, headers, "USD") == (Decimal("49899.9"), Decimal("100"))
        assert [p["id"] for p in client.get("/positions", headers=headers).json()] == [position_id]

        closed = client.post(f"/positions/{position_id}/close", json={"current_price": "1100"}, headers=headers)
        assert closed.status_code == 200
        assert Decimal(closed.json()["pnl"]) == Decimal("1000")
        assert closed.json()["position"]["status"] == "closed"
        assert balance(client, headers, "USD") == (Decimal("50999.9"), Decimal("0"))

        again = client.post(f"/positions/{position_id}/close", json={"current_price": "1100"}, headers=headers)
        assert again.status_code == 404
        assert client.get("/positions", headers=headers).json() == []
        assert len(client.get("/positions", params={"status": "all"}, headers=headers).json()) == 1

    def test_close_at_market_price(self, client, sample_position_data, market_data_client):
        headers = register(client)
        position_id = client.post("/positions", json=sample_position_data, headers=headers).json()["id"]

        closed = client.post(f"/positions/{position_id}/close", headers=headers)

        assert closed.status_code == 200
        market_data_client.get_price.assert_called_once_with("ETH")
        assert Decimal(closed.json()["position"]["current_price"]) == Decimal("1100")

    def test_market_data_unavailable(self, client, sample_position_data, market_data_client):
        market_data_client.get_price.side_effect = MarketDataError("upstream down")
        headers = register(client)
        position_id = client.post("/positions", json=sample_position_data, headers=headers).json()["id"]

        response = client.post(f"/positions/{position_id}/close", headers=headers)

        assert response.status_code == 503
        assert balance(client, headers, "USD")[1] == Decimal("100")

    def test_closed_position_is_not_found_without_price_lookup(self, client, sample_position_data,
                                                               market_data_client):
        market_data_client.get_price.side_effect = MarketDataError("upstream down")
        headers = register(client)
        position_id = client.post("/positions", json=sample_position_data, headers=headers).json()["id"]
        client.post(f"/positions/{position_id}/close", json={"current_price": "1000"}, headers=headers)

        again = client.post(f"/positions/{position_id}/close", headers=headers)
        unknown = client.post("/positions/9999/close", headers=headers)

        assert again.status_code == 404
        assert unknown.status_code == 404
        market_data_client.get_price.assert_not_called()

    def test_leverage_out_of_range(self, client, sample_position_data):
        headers = register(client)
        payload = {**sample_position_data, "leverage": 101}
        assert client.post("/positions", json=payload, headers=headers).status_code == 422

    def test_insufficient_margin(self, client, sample_position_data):
        headers = register(client)
        payload = {**sample_position_data, "amount": "1000", "leverage": 1}
        assert client.post("/positions", json=payload, headers=headers).status_code == 400

    def test_orders_cancel(self, client, sample_position_data):
        headers = register(client)
        client.post("/positions", json={**sample_position_data, "order_type": "limit"}, headers=headers)

        orders = client.get("/positions/orders", headers=headers).json()
        assert len(orders) == 1
        assert orders[0]["status"] == "pending"

        cancelled = client.post(f"/positions/orders/{orders[0]['id']}/cancel", headers=headers)
        assert cancelled.status_code == 200
        assert cancelled.json()["status"] == "cancelled"
        assert client.post(f"/positions/orders/{orders[0]['id']}/cancel", headers=headers).status_code == 404
        assert client.get("/positions/orders", params={"status": "pending"}, headers=headers).json() == []

    def test_cannot_touch_other_users_position(self, client, sample_position_data):
        owner = register(client, "owner")
        intruder = register(client, "intruder")
        position_id = client.post("/positions", json=sample_position_data, headers=owner).json()["id"]

        response = client.post(f"/positions/{position_id}/close", json={"current_price": "1"}, headers=intruder)
        assert response.status_code == 404
