from __future__ import annotations

from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from krakenapi.integrations.kraken.kraken_helpers import _format_decimal, _join_csv, _set_if

OrderSide = Literal["buy", "sell"]

OrderType = Literal[
    "market",
    "limit",
    "stop-loss",
    "take-profit",
    "stop-loss-profit",
    "stop-loss-profit-limit",
    "stop-loss-limit",
    "take-profit-limit",
    "trailing-stop",
    "trailing-stop-limit",
    "stop-loss-and-limit",
    "settle-position",
]


class OrderRequest(BaseModel):
    """
    Input of the AddOrder endpoint.

    price/price2 meaning depends on the order type, e.g. for stop-loss-limit
    price is the trigger price and price2 the triggered limit price.
    """
    pair: str = Field(..., min_length=1, description="Asset pair, e.g. XXBTZEUR.")
    side: OrderSide = Field(..., description="Order direction.")
    order_type: OrderType = Field("limit", description="Kraken order type.")
    volume: float = Field(..., gt=0, allow_inf_nan=False, description="Order volume in lots.")
    price: Optional[float] = Field(None, allow_inf_nan=False, description="Primary price, ignored for market orders.")
    price2: Optional[float] = Field(None, allow_inf_nan=False, description="Secondary price.")
    leverage: Optional[str] = Field(None, description="Amount of leverage desired, e.g. '2:1'.")
    oflags: List[str] = Field(default_factory=list, description="Order flags: viqc, fcib, fciq, nompp, post.")
    starttm: Optional[str] = Field(None, description="Scheduled start: 0, +<n> seconds or unix timestamp.")
    expiretm: Optional[str] = Field(None, description="Expiration: 0, +<n> seconds or unix timestamp.")
    userref: Optional[int] = Field(None, description="User reference id, 32-bit signed.")
    validate_only: bool = Field(False, description="Validate inputs only, do not submit the order.")
    close_order_type: Optional[OrderType] = Field(None, description="Conditional close order type.")
    close_price: Optional[float] = Field(None, allow_inf_nan=False, description="Conditional close price.")
    close_price2: Optional[float] = Field(None, allow_inf_nan=False, description="Conditional close secondary price.")

    def to_params(self) -> Dict[str, str]:
        """Render the form parameters sent to AddOrder."""
        params: Dict[str, str] = {
            "pair": self.pair,
            "type": self.side,
            "ordertype": self.order_type,
            "volume": _format_decimal(self.volume),
        }
        if self.order_type != "market" and self.price is not None:
            params["price"] = _format_decimal(self.price)
        if self.price2 is not None:
            params["price2"] = _format_decimal(self.price2)

        _set_if(params, "leverage", self.leverage)
        _set_if(params, "oflags", _join_csv(self.oflags))
        _set_if(params, "starttm", self.starttm)
        _set_if(params, "expiretm", self.expiretm)
        if self.userref is not None:
            params["userref"] = str(self.userref)
        _set_if(params, "validate", self.validate_only)

        if self.close_order_type is not None:
            params["close[ordertype]"] = self.close_order_type
            if self.close_price is not None:
                params["close[price]"] = _format_decimal(self.close_price)
            if self.close_price2 is not None:
                params["close[price2]"] = _format_decimal(self.close_price2)
        return params
