from __future__ import annotations

from typing import Dict, Iterable, Mapping, Optional, TypeVar, Union

import httpx

from krakenapi.integrations.kraken.kraken_constants import (
    BASE_URL,
    FORM_CONTENT_TYPE,
    HTTP_CONNECT_TIMEOUT_SECONDS,
    HTTP_TIMEOUT_SECONDS,
    USER_AGENT,
    Endpoint,
)
from krakenapi.integrations.kraken.kraken_decoder import CursorPage, Shape, decode
from krakenapi.integrations.kraken.kraken_errors import MissingCredentials
from krakenapi.integrations.kraken.kraken_helpers import _http_get, _http_post_form, _join_csv, _set_if
from krakenapi.integrations.kraken.kraken_orders import OrderRequest
from krakenapi.integrations.kraken.kraken_signature import Credentials, NonceSource, Signer
from krakenapi.integrations.kraken.kraken_structures import (
    ADD_ORDER_SHAPE,
    ASSET_PAIRS_SHAPE,
    ASSETS_SHAPE,
    BALANCE_SHAPE,
    CANCEL_ORDER_SHAPE,
    CLOSED_ORDERS_SHAPE,
    LEDGERS_SHAPE,
    OHLC_SHAPE,
    OPEN_ORDERS_SHAPE,
    OPEN_POSITIONS_SHAPE,
    ORDER_BOOK_SHAPE,
    QUERY_LEDGERS_SHAPE,
    QUERY_ORDERS_SHAPE,
    QUERY_TRADES_SHAPE,
    RECENT_TRADES_SHAPE,
    SERVER_TIME_SHAPE,
    SPREAD_SHAPE,
    TICKER_SHAPE,
    TRADE_BALANCE_SHAPE,
    TRADE_VOLUME_SHAPE,
    TRADES_HISTORY_SHAPE,
    AddOrderResult,
    Asset,
    AssetPair,
    CancelResult,
    ClosedOrders,
    Ledger,
    LedgersResult,
    OHLCEntry,
    OpenOrders,
    OpenPosition,
    Order,
    OrderBook,
    RecentTrade,
    ServerTime,
    Spread,
    Ticker,
    Trade,
    TradeBalance,
    TradesHistory,
    TradeVolume,
)
from krakenapi.logging.logger import get_logger

log = get_logger(__name__)

T = TypeVar("T")

Identifiers = Union[str, Iterable[str]]


class KrakenClient:
    """
    Synchronous client for the Kraken REST API.

    Public endpoints are plain GETs; private endpoints are POSTed with a fresh
    nonce and the API-Key/API-Sign headers. Every call issues exactly one
    request and never retries. A single instance can be shared between
    threads: nonces stay strictly increasing.
    """

    def __init__(
            self,
            api_key: str = "",
            api_secret: str = "",
            *,
            base_url: str = BASE_URL,
            user_agent: str = USER_AGENT,
            timeout: float = HTTP_TIMEOUT_SECONDS,
            http_client: Optional[httpx.Client] = None,
            nonce_source: Optional[NonceSource] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.user_agent = user_agent
        self.credentials = Credentials(api_key=api_key, api_secret=api_secret)
        self.signer = Signer(self.credentials, nonce_source)
        self._owns_http_client = http_client is None
        self._http = http_client or httpx.Client(
            timeout=httpx.Timeout(timeout, connect=HTTP_CONNECT_TIMEOUT_SECONDS),
        )

    def __enter__(self) -> "KrakenClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_http_client:
            self._http.close()

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def query(self, endpoint: Endpoint, params: Optional[Mapping[str, str]] = None) -> bytes:
        """
        Send one request to an endpoint and return the raw response body.

        Raises:
            MissingCredentials: for a private endpoint without key/secret.
            InvalidSecret: if the API secret is not valid base64.
            httpx.HTTPStatusError / httpx.RequestError: transport failures.
        """
        url = f"{self.base_url}{endpoint.path}"
        headers: Dict[str, str] = {}
        if self.user_agent:
            headers["User-Agent"] = self.user_agent

        if not endpoint.requires_signature:
            log.debug("[KRAKEN][QUERY] GET %s params=%s", endpoint.path, sorted((params or {}).keys()))
            return _http_get(self._http, url, params or {}, headers)

        if not self.credentials.is_complete:
            raise MissingCredentials(f"{endpoint.path} requires an API key and secret.")

        signed = self.signer.sign_request(endpoint.path, params or {})
        headers.update(signed.headers)
        headers["Content-Type"] = FORM_CONTENT_TYPE
        log.debug("[KRAKEN][QUERY] POST %s params=%s", endpoint.path, sorted(signed.params.keys()))
        return _http_post_form(self._http, url, signed.body, headers)

    def _call(self, endpoint: Endpoint, shape: Shape[T], params: Optional[Mapping[str, str]] = None) -> T:
        raw = self.query(endpoint, params)
        return decode(raw, shape)

    # ------------------------------------------------------------------
    # Public market data
    # ------------------------------------------------------------------

    def server_time(self) -> ServerTime:
        return self._call(Endpoint.SERVER_TIME, SERVER_TIME_SHAPE)

    def assets(self, assets: Identifiers = "", aclass: str = "", info: str = "") -> Dict[str, Asset]:
        params: Dict[str, str] = {}
        _set_if(params, "asset", _join_csv(assets))
        _set_if(params, "aclass", aclass)
        _set_if(params, "info", info)
        return self._call(Endpoint.ASSETS, ASSETS_SHAPE, params)

    def asset_pairs(self, pairs: Identifiers = "", info: str = "") -> Dict[str, AssetPair]:
        params: Dict[str, str] = {}
        _set_if(params, "pair", _join_csv(pairs))
        _set_if(params, "info", info)
        return self._call(Endpoint.ASSET_PAIRS, ASSET_PAIRS_SHAPE, params)

    def ticker(self, pairs: Identifiers) -> Dict[str, Ticker]:
        params = {"pair": _join_csv(pairs)}
        return self._call(Endpoint.TICKER, TICKER_SHAPE, params)

    def ohlc(self, pair: str, interval: int = 0, since: Union[int, str] = 0) -> CursorPage[OHLCEntry]:
        """
        Candles for a pair. The last row is the current, not-yet-committed
        frame; `page.cursor` is the id to pass as `since` when polling.
        """
        params = {"pair": pair}
        _set_if(params, "interval", interval)
        _set_if(params, "since", since)
        return self._call(Endpoint.OHLC, OHLC_SHAPE, params)

    def order_book(self, pair: str, count: int = 0) -> Dict[str, OrderBook]:
        params = {"pair": pair}
        _set_if(params, "count", count)
        return self._call(Endpoint.ORDER_BOOK, ORDER_BOOK_SHAPE, params)

    def recent_trades(self, pair: str, since: str = "") -> CursorPage[RecentTrade]:
        """Public trades after `since`. Poll with `since=page.cursor`: the id is a nanosecond timestamp."""
        params = {"pair": pair}
        _set_if(params, "since", since)
        return self._call(Endpoint.RECENT_TRADES, RECENT_TRADES_SHAPE, params)

    def spread(self, pair: str, since: str = "") -> CursorPage[Spread]:
        """Recent spreads. `since` is inclusive on this endpoint."""
        params = {"pair": pair}
        _set_if(params, "since", since)
        return self._call(Endpoint.SPREAD, SPREAD_SHAPE, params)

    # ------------------------------------------------------------------
    # Private account data
    # ------------------------------------------------------------------

    def balance(self) -> Dict[str, float]:
        return self._call(Endpoint.BALANCE, BALANCE_SHAPE)

    def trade_balance(self, asset: str = "", aclass: str = "") -> TradeBalance:
        params: Dict[str, str] = {}
        _set_if(params, "asset", asset)
        _set_if(params, "aclass", aclass)
        return self._call(Endpoint.TRADE_BALANCE, TRADE_BALANCE_SHAPE, params)

    def open_orders(self, trades: bool = False, userref: str = "") -> OpenOrders:
        params: Dict[str, str] = {}
        _set_if(params, "trades", trades)
        _set_if(params, "userref", userref)
        return self._call(Endpoint.OPEN_ORDERS, OPEN_ORDERS_SHAPE, params)

    def closed_orders(
            self,
            trades: bool = False,
            userref: str = "",
            start: str = "",
            end: str = "",
            ofs: int = 0,
            closetime: str = "",
    ) -> ClosedOrders:
        params: Dict[str, str] = {}
        _set_if(params, "trades", trades)
        _set_if(params, "userref", userref)
        _set_if(params, "start", start)
        _set_if(params, "end", end)
        _set_if(params, "ofs", ofs)
        _set_if(params, "closetime", closetime)
        return self._call(Endpoint.CLOSED_ORDERS, CLOSED_ORDERS_SHAPE, params)

    def query_orders(self, txids: Identifiers, trades: bool = False, userref: str = "") -> Dict[str, Order]:
        params = {"txid": _join_csv(txids)}
        _set_if(params, "trades", trades)
        _set_if(params, "userref", userref)
        return self._call(Endpoint.QUERY_ORDERS, QUERY_ORDERS_SHAPE, params)

    def trades_history(
            self,
            trade_type: str = "",
            trades: bool = False,
            start: str = "",
            end: str = "",
            ofs: int = 0,
    ) -> TradesHistory:
        params: Dict[str, str] = {}
        _set_if(params, "type", trade_type)
        _set_if(params, "trades", trades)
        _set_if(params, "start", start)
        _set_if(params, "end", end)
        _set_if(params, "ofs", ofs)
        return self._call(Endpoint.TRADES_HISTORY, TRADES_HISTORY_SHAPE, params)

    def query_trades(self, txids: Identifiers, trades: bool = False) -> Dict[str, Trade]:
        params = {"txid": _join_csv(txids)}
        _set_if(params, "trades", trades)
        return self._call(Endpoint.QUERY_TRADES, QUERY_TRADES_SHAPE, params)

    def open_positions(self, txids: Identifiers = "", docalcs: bool = False) -> Dict[str, OpenPosition]:
        params: Dict[str, str] = {}
        _set_if(params, "txid", _join_csv(txids))
        _set_if(params, "docalcs", docalcs)
        return self._call(Endpoint.OPEN_POSITIONS, OPEN_POSITIONS_SHAPE, params)

    def ledgers(
            self,
            assets: Identifiers = "",
            ledger_type: str = "",
            start: str = "",
            end: str = "",
            ofs: int = 0,
            aclass: str = "",
    ) -> LedgersResult:
        params: Dict[str, str] = {}
        _set_if(params, "asset", _join_csv(assets))
        _set_if(params, "type", ledger_type)
        _set_if(params, "start", start)
        _set_if(params, "end", end)
        _set_if(params, "ofs", ofs)
        _set_if(params, "aclass", aclass)
        return self._call(Endpoint.LEDGERS, LEDGERS_SHAPE, params)

    def query_ledgers(self, ids: Identifiers) -> Dict[str, Ledger]:
        params = {"id": _join_csv(ids)}
        return self._call(Endpoint.QUERY_LEDGERS, QUERY_LEDGERS_SHAPE, params)

    def trade_volume(self, pairs: Identifiers = "", fee_info: bool = False) -> TradeVolume:
        params: Dict[str, str] = {}
        _set_if(params, "pair", _join_csv(pairs))
        _set_if(params, "fee-info", fee_info)
        return self._call(Endpoint.TRADE_VOLUME, TRADE_VOLUME_SHAPE, params)

    def add_order(self, order: OrderRequest) -> AddOrderResult:
        params = order.to_params()
        log.info(
            "[KRAKEN][ORDER][ADD] pair=%s side=%s type=%s volume=%s validate=%s",
            order.pair,
            order.side,
            order.order_type,
            params["volume"],
            order.validate_only,
        )
        result: AddOrderResult = self._call(Endpoint.ADD_ORDER, ADD_ORDER_SHAPE, params)
        log.info("[KRAKEN][ORDER][ADD] Accepted txid=%s", ",".join(result.txid) or "-")
        return result

    def cancel_order(self, txid: str) -> CancelResult:
        result: CancelResult = self._call(Endpoint.CANCEL_ORDER, CANCEL_ORDER_SHAPE, {"txid": txid})
        log.info("[KRAKEN][ORDER][CANCEL] txid=%s count=%d pending=%s", txid, result.count, result.pending)
        return result

