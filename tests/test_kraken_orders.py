from __future__ import annotations

import pytest
from pydantic import ValidationError

from krakenapi.integrations.kraken.kraken_helpers import _format_decimal, _join_csv, _set_if
from krakenapi.integrations.kraken.kraken_orders import OrderRequest


@pytest.mark.parametrize(
    "value, expected",
    [
        (37500.0, "37500"),
        (1.25, "1.25"),
        (1e-08, "0.00000001"),
        (0.1, "0.1"),
        (100, "100"),
    ],
)
def test_format_decimal_uses_plain_notation(value: float, expected: str) -> None:
    assert _format_decimal(value) == expected


def test_join_csv() -> None:
    assert _join_csv("XBT,ETH") == "XBT,ETH"
    assert _join_csv(["XBT", " ETH ", ""]) == "XBT,ETH"
    assert _join_csv([]) == ""


def test_set_if_skips_unset_values() -> None:
    params = {}
    _set_if(params, "a", "")
    _set_if(params, "b", 0)
    _set_if(params, "c", False)
    _set_if(params, "d", None)
    _set_if(params, "e", True)
    _set_if(params, "f", 60)
    _set_if(params, "g", 0.5)
    assert params == {"e": "true", "f": "60", "g": "0.5"}


def test_limit_order_params() -> None:
    order = OrderRequest(pair="XBTUSD", side="buy", order_type="limit", volume=1.25, price=37500)
    assert order.to_params() == {
        "pair": "XBTUSD",
        "type": "buy",
        "ordertype": "limit",
        "volume": "1.25",
        "price": "37500",
    }


def test_market_order_carries_no_price() -> None:
    order = OrderRequest(pair="XBTUSD", side="sell", order_type="market", volume=0.5, price=30000)
    params = order.to_params()
    assert "price" not in params
    assert params["ordertype"] == "market"


def test_secondary_price_is_sent_from_price2() -> None:
    order = OrderRequest(
        pair="XBTUSD",
        side="sell",
        order_type="stop-loss-limit",
        volume=1,
        price=29000,
        price2=28950.5,
    )
    params = order.to_params()
    assert params["price"] == "29000"
    assert params["price2"] == "28950.5"


def test_optional_fields_are_forwarded() -> None:
    order = OrderRequest(
        pair="XBTUSD",
        side="buy",
        volume=2,
        price=30000,
        leverage="2:1",
        oflags=["post", "fciq"],
        starttm="0",
        expiretm="+3600",
        userref=-12,
        validate_only=True,
    )
    params = order.to_params()
    assert params["leverage"] == "2:1"
    assert params["oflags"] == "post,fciq"
    assert params["starttm"] == "0"
    assert params["expiretm"] == "+3600"
    assert params["userref"] == "-12"
    assert params["validate"] == "true"


def test_validate_is_omitted_by_default() -> None:
    params = OrderRequest(pair="XBTUSD", side="buy", volume=1, price=1).to_params()
    assert "validate" not in params
    assert "userref" not in params


def test_conditional_close_params() -> None:
    order = OrderRequest(
        pair="XBTUSD",
        side="buy",
        volume=1,
        price=30000,
        close_order_type="stop-loss-limit",
        close_price=29000,
        close_price2=28900,
    )
    params = order.to_params()
    assert params["close[ordertype]"] == "stop-loss-limit"
    assert params["close[price]"] == "29000"
    assert params["close[price2]"] == "28900"


def test_close_prices_need_a_close_order_type() -> None:
    params = OrderRequest(pair="XBTUSD", side="buy", volume=1, price=1, close_price=2).to_params()
    assert not any(key.startswith("close[") for key in params)


@pytest.mark.parametrize(
    "overrides",
    [
        {"volume": 0},
        {"volume": -1},
        {"pair": ""},
        {"side": "hold"},
        {"order_type": "iceberg"},
    ],
)
def test_invalid_orders_are_rejected(overrides: dict) -> None:
    fields = {"pair": "XBTUSD", "side": "buy", "volume": 1, "price": 1}
    fields.update(overrides)
    with pytest.raises(ValidationError):
        OrderRequest(**fields)


@pytest.mark.parametrize("field_name", ["volume", "price", "price2", "close_price", "close_price2"])
@pytest.mark.parametrize("value", [float("nan"), float("inf"), float("-inf")])
def test_non_finite_amounts_are_rejected(field_name: str, value: float) -> None:
    fields = {"pair": "XBTUSD", "side": "buy", "volume": 1, "price": 1, "close_order_type": "limit"}
    fields[field_name] = value
    with pytest.raises(ValidationError):
        OrderRequest(**fields)
