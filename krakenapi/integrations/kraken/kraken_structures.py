from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any, Dict, List

from krakenapi.core.utils.date_utils import epoch_to_local_datetime
from krakenapi.integrations.kraken.kraken_decoder import (
    CursorMap,
    JsonRecord,
    JsonTuple,
    MappingOf,
    Positional,
    Record,
    ScalarKind,
    SequenceOf,
    field,
)

STRING_FLOAT = ScalarKind.STRING_FLOAT
FLOAT = ScalarKind.FLOAT
STRING = ScalarKind.STRING
INTEGER = ScalarKind.INTEGER
BOOLEAN = ScalarKind.BOOLEAN


# ---------------------------------------------------------------------------
# Public market data
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ServerTime(JsonRecord):
    unixtime: int
    rfc1123: str

    FIELDS = (
        field("unixtime", INTEGER),
        field("rfc1123", STRING),
    )

    def as_datetime(self) -> datetime:
        return epoch_to_local_datetime(self.unixtime)


@dataclass(frozen=True)
class Asset(JsonRecord):
    altname: str
    aclass: str
    decimals: int
    display_decimals: int

    FIELDS = (
        field("altname", STRING),
        field("aclass", STRING),
        field("decimals", INTEGER),
        field("display_decimals", INTEGER),
    )


@dataclass(frozen=True)
class FeeTier(JsonTuple):
    """Fee schedule entry: [<volume>, <percent fee>]."""
    volume: float
    percent_fee: float

    POSITIONS = (
        ("volume", FLOAT),
        ("percent_fee", FLOAT),
    )


@dataclass(frozen=True)
class AssetPair(JsonRecord):
    altname: str
    aclass_base: str
    base: str
    aclass_quote: str
    quote: str
    lot: str
    pair_decimals: int
    lot_decimals: int
    lot_multiplier: int
    leverage_buy: List[int]
    leverage_sell: List[int]
    fees: List[FeeTier]
    fees_maker: List[FeeTier]
    fee_volume_currency: str
    margin_call: int
    margin_stop: int
    ordermin: float

    FIELDS = (
        field("altname", STRING),
        field("aclass_base", STRING),
        field("base", STRING),
        field("aclass_quote", STRING),
        field("quote", STRING),
        field("lot", STRING),
        field("pair_decimals", INTEGER),
        field("lot_decimals", INTEGER),
        field("lot_multiplier", INTEGER),
        field("leverage_buy", SequenceOf(INTEGER)),
        field("leverage_sell", SequenceOf(INTEGER)),
        field("fees", SequenceOf(Positional(FeeTier))),
        field("fees_maker", SequenceOf(Positional(FeeTier))),
        field("fee_volume_currency", STRING),
        field("margin_call", INTEGER),
        field("margin_stop", INTEGER),
        field("ordermin", STRING_FLOAT),
    )


@dataclass(frozen=True)
class AskBid(JsonTuple):
    """Best quote: [<price>, <whole lot volume>, <lot volume>]."""
    price: float
    whole_lot_volume: float
    lot_volume: float

    POSITIONS = (
        ("price", STRING_FLOAT),
        ("whole_lot_volume", STRING_FLOAT),
        ("lot_volume", STRING_FLOAT),
    )


@dataclass(frozen=True)
class LastTrade(JsonTuple):
    """Last trade closed: [<price>, <lot volume>]."""
    price: float
    volume: float

    POSITIONS = (
        ("price", STRING_FLOAT),
        ("volume", STRING_FLOAT),
    )


@dataclass(frozen=True)
class TodayAnd24Hours(JsonTuple):
    """[<today>, <last 24 hours>] where today starts at 00:00:00 UTC."""
    today: float
    last_24_hours: float

    POSITIONS = (
        ("today", STRING_FLOAT),
        ("last_24_hours", STRING_FLOAT),
    )


@dataclass(frozen=True)
class TradeCountToday(JsonTuple):
    today: int
    last_24_hours: int

    POSITIONS = (
        ("today", INTEGER),
        ("last_24_hours", INTEGER),
    )


@dataclass(frozen=True)
class Ticker(JsonRecord):
    ask: AskBid
    bid: AskBid
    last_trade: LastTrade
    volume: TodayAnd24Hours
    vwap: TodayAnd24Hours
    trades: TradeCountToday
    low: TodayAnd24Hours
    high: TodayAnd24Hours
    opening_price: float

    FIELDS = (
        field("a", Positional(AskBid), "ask"),
        field("b", Positional(AskBid), "bid"),
        field("c", Positional(LastTrade), "last_trade"),
        field("v", Positional(TodayAnd24Hours), "volume"),
        field("p", Positional(TodayAnd24Hours), "vwap"),
        field("t", Positional(TradeCountToday), "trades"),
        field("l", Positional(TodayAnd24Hours), "low"),
        field("h", Positional(TodayAnd24Hours), "high"),
        field("o", STRING_FLOAT, "opening_price"),
    )


@dataclass(frozen=True)
class OHLCEntry(JsonTuple):
    """Candle: [<time>, <open>, <high>, <low>, <close>, <vwap>, <volume>, <count>]."""
    time: float
    open: float
    high: float
    low: float
    close: float
    vwap: float
    volume: float
    count: int

    POSITIONS = (
        ("time", FLOAT),
        ("open", STRING_FLOAT),
        ("high", STRING_FLOAT),
        ("low", STRING_FLOAT),
        ("close", STRING_FLOAT),
        ("vwap", STRING_FLOAT),
        ("volume", STRING_FLOAT),
        ("count", INTEGER),
    )


@dataclass(frozen=True)
class OrderBookLevel(JsonTuple):
    """Book level: [<price>, <volume>, <timestamp>]."""
    price: float
    volume: float
    time: float

    POSITIONS = (
        ("price", STRING_FLOAT),
        ("volume", STRING_FLOAT),
        ("time", FLOAT),
    )


@dataclass(frozen=True)
class OrderBook(JsonRecord):
    asks: List[OrderBookLevel]
    bids: List[OrderBookLevel]

    FIELDS = (
        field("asks", SequenceOf(Positional(OrderBookLevel))),
        field("bids", SequenceOf(Positional(OrderBookLevel))),
    )

    def best_ask(self) -> OrderBookLevel | None:
        return self.asks[0] if self.asks else None

    def best_bid(self) -> OrderBookLevel | None:
        return self.bids[0] if self.bids else None


@dataclass(frozen=True)
class RecentTrade(JsonTuple):
    """
    Public trade: [<price>, <volume>, <time>, <buy/sell>, <market/limit>, <miscellaneous>, <trade id>].

    The exchange appended the trade id as a seventh entry; older six-entry rows
    are rejected like any other arity mismatch.
    """
    price: float
    volume: float
    time: float
    side: str
    order_type: str
    misc: str
    trade_id: int

    POSITIONS = (
        ("price", STRING_FLOAT),
        ("volume", STRING_FLOAT),
        ("time", FLOAT),
        ("side", STRING),
        ("order_type", STRING),
        ("misc", STRING),
        ("trade_id", INTEGER),
    )


@dataclass(frozen=True)
class Spread(JsonTuple):
    """Spread snapshot: [<time>, <bid>, <ask>]."""
    time: float
    bid: float
    ask: float

    POSITIONS = (
        ("time", FLOAT),
        ("bid", STRING_FLOAT),
        ("ask", STRING_FLOAT),
    )


# ---------------------------------------------------------------------------
# Private account data
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TradeBalance(JsonRecord):
    equivalent_balance: float
    trade_balance: float
    margin: float
    unrealized_net: float
    cost_basis: float
    valuation: float
    equity: float
    free_margin: float
    margin_level: float

    FIELDS = (
        field("eb", STRING_FLOAT, "equivalent_balance"),
        field("tb", STRING_FLOAT, "trade_balance"),
        field("m", STRING_FLOAT, "margin"),
        field("n", STRING_FLOAT, "unrealized_net"),
        field("c", STRING_FLOAT, "cost_basis"),
        field("v", STRING_FLOAT, "valuation"),
        field("e", STRING_FLOAT, "equity"),
        field("mf", STRING_FLOAT, "free_margin"),
        field("ml", STRING_FLOAT, "margin_level"),
    )


@dataclass(frozen=True)
class OrderDescription(JsonRecord):
    pair: str
    type: str
    ordertype: str
    price: float
    price2: float
    leverage: str
    order: str
    close: str

    FIELDS = (
        field("pair", STRING),
        field("type", STRING),
        field("ordertype", STRING),
        field("price", STRING_FLOAT),
        field("price2", STRING_FLOAT),
        field("leverage", STRING),
        field("order", STRING),
        field("close", STRING),
    )


@dataclass(frozen=True)
class Order(JsonRecord):
    refid: str
    userref: int
    status: str
    opentm: float
    starttm: float
    expiretm: float
    descr: OrderDescription
    vol: float
    vol_exec: float
    cost: float
    fee: float
    price: float
    stopprice: float
    limitprice: float
    misc: str
    oflags: str
    trades: List[str]
    closetm: float
    reason: str

    FIELDS = (
        field("refid", STRING),
        field("userref", INTEGER),
        field("status", STRING),
        field("opentm", FLOAT),
        field("starttm", FLOAT),
        field("expiretm", FLOAT),
        field("descr", Record(OrderDescription)),
        field("vol", STRING_FLOAT),
        field("vol_exec", STRING_FLOAT),
        field("cost", STRING_FLOAT),
        field("fee", STRING_FLOAT),
        field("price", STRING_FLOAT),
        field("stopprice", STRING_FLOAT),
        field("limitprice", STRING_FLOAT),
        field("misc", STRING),
        field("oflags", STRING),
        field("trades", SequenceOf(STRING)),
        field("closetm", FLOAT),
        field("reason", STRING),
    )

    @property
    def remaining_volume(self) -> float:
        return max(self.vol - self.vol_exec, 0.0)


@dataclass(frozen=True)
class OpenOrders(JsonRecord):
    open: Dict[str, Order]

    FIELDS = (
        field("open", MappingOf(Record(Order))),
    )


@dataclass(frozen=True)
class ClosedOrders(JsonRecord):
    closed: Dict[str, Order]
    count: int

    FIELDS = (
        field("closed", MappingOf(Record(Order))),
        field("count", INTEGER),
    )


@dataclass(frozen=True)
class Trade(JsonRecord):
    ordertxid: str
    pair: str
    time: float
    type: str
    ordertype: str
    price: float
    cost: float
    fee: float
    vol: float
    margin: float
    misc: str
    posstatus: str
    cprice: float
    ccost: float
    cfee: float
    cvol: float
    cmargin: float
    net: float
    trades: List[str]

    FIELDS = (
        field("ordertxid", STRING),
        field("pair", STRING),
        field("time", FLOAT),
        field("type", STRING),
        field("ordertype", STRING),
        field("price", STRING_FLOAT),
        field("cost", STRING_FLOAT),
        field("fee", STRING_FLOAT),
        field("vol", STRING_FLOAT),
        field("margin", STRING_FLOAT),
        field("misc", STRING),
        field("posstatus", STRING),
        field("cprice", STRING_FLOAT),
        field("ccost", STRING_FLOAT),
        field("cfee", STRING_FLOAT),
        field("cvol", STRING_FLOAT),
        field("cmargin", STRING_FLOAT),
        field("net", STRING_FLOAT),
        field("trades", SequenceOf(STRING)),
    )


@dataclass(frozen=True)
class TradesHistory(JsonRecord):
    trades: Dict[str, Trade]
    count: int

    FIELDS = (
        field("trades", MappingOf(Record(Trade))),
        field("count", INTEGER),
    )


@dataclass(frozen=True)
class OpenPosition(JsonRecord):
    ordertxid: str
    posstatus: str
    pair: str
    time: float
    type: str
    ordertype: str
    cost: float
    fee: float
    vol: float
    vol_closed: float
    margin: float
    value: float
    net: float
    misc: str
    terms: str
    oflags: str
    rollovertm: float

    FIELDS = (
        field("ordertxid", STRING),
        field("posstatus", STRING),
        field("pair", STRING),
        field("time", FLOAT),
        field("type", STRING),
        field("ordertype", STRING),
        field("cost", STRING_FLOAT),
        field("fee", STRING_FLOAT),
        field("vol", STRING_FLOAT),
        field("vol_closed", STRING_FLOAT),
        field("margin", STRING_FLOAT),
        field("value", STRING_FLOAT),
        field("net", STRING_FLOAT),
        field("misc", STRING),
        field("terms", STRING),
        field("oflags", STRING),
        field("rollovertm", STRING_FLOAT),
    )


@dataclass(frozen=True)
class Ledger(JsonRecord):
    refid: str
    time: float
    type: str
    aclass: str
    asset: str
    amount: float
    fee: float
    balance: float

    FIELDS = (
        field("refid", STRING),
        field("time", FLOAT),
        field("type", STRING),
        field("aclass", STRING),
        field("asset", STRING),
        field("amount", STRING_FLOAT),
        field("fee", STRING_FLOAT),
        field("balance", STRING_FLOAT),
    )


@dataclass(frozen=True)
class LedgersResult(JsonRecord):
    ledger: Dict[str, Ledger]
    count: int

    FIELDS = (
        field("ledger", MappingOf(Record(Ledger))),
        field("count", INTEGER),
    )


@dataclass(frozen=True)
class TradeVolumeFee(JsonRecord):
    fee: float
    minfee: float
    maxfee: float
    nextfee: float
    nextvolume: float
    tiervolume: float

    FIELDS = (
        field("fee", STRING_FLOAT),
        field("minfee", STRING_FLOAT),
        field("maxfee", STRING_FLOAT),
        field("nextfee", STRING_FLOAT),
        field("nextvolume", STRING_FLOAT),
        field("tiervolume", STRING_FLOAT),
    )


@dataclass(frozen=True)
class TradeVolume(JsonRecord):
    currency: str
    volume: float
    fees: Dict[str, TradeVolumeFee]
    fees_maker: Dict[str, TradeVolumeFee]

    FIELDS = (
        field("currency", STRING),
        field("volume", STRING_FLOAT),
        field("fees", MappingOf(Record(TradeVolumeFee))),
        field("fees_maker", MappingOf(Record(TradeVolumeFee))),
    )


@dataclass(frozen=True)
class AddOrderDescription(JsonRecord):
    order: str
    close: str

    FIELDS = (
        field("order", STRING),
        field("close", STRING),
    )


@dataclass(frozen=True)
class AddOrderResult(JsonRecord):
    descr: AddOrderDescription
    txid: List[str]

    FIELDS = (
        field("descr", Record(AddOrderDescription)),
        field("txid", SequenceOf(STRING)),
    )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to a plain JSON-friendly dict."""
        return asdict(self)


@dataclass(frozen=True)
class CancelResult(JsonRecord):
    count: int
    pending: bool

    FIELDS = (
        field("count", INTEGER),
        field("pending", BOOLEAN),
    )


# ---------------------------------------------------------------------------
# Result shapes, one per endpoint
# ---------------------------------------------------------------------------

SERVER_TIME_SHAPE = Record(ServerTime)
ASSETS_SHAPE = MappingOf(Record(Asset))
ASSET_PAIRS_SHAPE = MappingOf(Record(AssetPair))
TICKER_SHAPE = MappingOf(Record(Ticker))
OHLC_SHAPE = CursorMap(Positional(OHLCEntry), cursor_kind=FLOAT)
ORDER_BOOK_SHAPE = MappingOf(Record(OrderBook))
RECENT_TRADES_SHAPE = CursorMap(Positional(RecentTrade), cursor_kind=STRING_FLOAT)
SPREAD_SHAPE = CursorMap(Positional(Spread), cursor_kind=FLOAT)

BALANCE_SHAPE = MappingOf(STRING_FLOAT)
TRADE_BALANCE_SHAPE = Record(TradeBalance)
OPEN_ORDERS_SHAPE = Record(OpenOrders)
CLOSED_ORDERS_SHAPE = Record(ClosedOrders)
QUERY_ORDERS_SHAPE = MappingOf(Record(Order))
TRADES_HISTORY_SHAPE = Record(TradesHistory)
QUERY_TRADES_SHAPE = MappingOf(Record(Trade))
OPEN_POSITIONS_SHAPE = MappingOf(Record(OpenPosition))
LEDGERS_SHAPE = Record(LedgersResult)
QUERY_LEDGERS_SHAPE = MappingOf(Record(Ledger))
TRADE_VOLUME_SHAPE = Record(TradeVolume)
ADD_ORDER_SHAPE = Record(AddOrderResult)
CANCEL_ORDER_SHAPE = Record(CancelResult)
