from enum import Enum
from typing import Dict, List, Union

from krakenapi.configuration.config import settings

BASE_URL: str = settings.KRAKEN_API_URL.rstrip("/")
USER_AGENT: str = settings.KRAKEN_USER_AGENT
HTTP_TIMEOUT_SECONDS: float = max(0.1, float(settings.KRAKEN_HTTP_TIMEOUT_SECONDS))
HTTP_CONNECT_TIMEOUT_SECONDS: float = max(0.1, float(settings.KRAKEN_HTTP_CONNECT_TIMEOUT_SECONDS))

API_KEY_HEADER: str = "API-Key"
API_SIGN_HEADER: str = "API-Sign"
FORM_CONTENT_TYPE: str = "application/x-www-form-urlencoded"

NONCE_PARAMETER: str = "nonce"
CURSOR_KEY: str = "last"

JSONScalar = Union[str, int, float, bool, None]
JSON = Union[JSONScalar, Dict[str, "JSON"], List["JSON"]]


class Endpoint(Enum):
    """REST endpoints with their path and whether the call must be signed."""

    SERVER_TIME = ("/0/public/Time", False)
    ASSETS = ("/0/public/Assets", False)
    ASSET_PAIRS = ("/0/public/AssetPairs", False)
    TICKER = ("/0/public/Ticker", False)
    OHLC = ("/0/public/OHLC", False)
    ORDER_BOOK = ("/0/public/Depth", False)
    RECENT_TRADES = ("/0/public/Trades", False)
    SPREAD = ("/0/public/Spread", False)

    BALANCE = ("/0/private/Balance", True)
    TRADE_BALANCE = ("/0/private/TradeBalance", True)
    OPEN_ORDERS = ("/0/private/OpenOrders", True)
    CLOSED_ORDERS = ("/0/private/ClosedOrders", True)
    QUERY_ORDERS = ("/0/private/QueryOrders", True)
    TRADES_HISTORY = ("/0/private/TradesHistory", True)
    QUERY_TRADES = ("/0/private/QueryTrades", True)
    OPEN_POSITIONS = ("/0/private/OpenPositions", True)
    LEDGERS = ("/0/private/Ledgers", True)
    QUERY_LEDGERS = ("/0/private/QueryLedgers", True)
    TRADE_VOLUME = ("/0/private/TradeVolume", True)
    ADD_ORDER = ("/0/private/AddOrder", True)
    CANCEL_ORDER = ("/0/private/CancelOrder", True)

    def __init__(self, path: str, requires_signature: bool) -> None:
        self.path = path
        self.requires_signature = requires_signature
