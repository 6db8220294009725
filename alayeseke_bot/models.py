"""Typed views over analytics API payloads.

Every ``from_json`` accepts whatever the API returned and never raises:
numbers are coerced with ``to_float`` (non-finite or missing become 0),
strings default to "", and lists default to [].
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .utils import to_float, to_int, to_str


def _obj(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _items(data: Any, *keys: str) -> List[Dict[str, Any]]:
    """Return the list payload, whether it is the body itself or under one of ``keys``."""
    if isinstance(data, list):
        return [item for item in data if isinstance(item, dict)]
    payload = _obj(data)
    for key in keys:
        value = payload.get(key)
        if isinstance(value, list):
            return [item for item in value if isinstance(item, dict)]
    return []


def _first(payload: Dict[str, Any], *keys: str) -> Any:
    for key in keys:
        value = payload.get(key)
        if value not in (None, ""):
            return value
    return None


@dataclass
class TokenRef:
    symbol: str
    address: str

    @classmethod
    def from_json(cls, data: Any) -> Optional["TokenRef"]:
        payload = _obj(data)
        if not payload:
            return None
        return cls(
            symbol=to_str(_first(payload, "tokenSymbol", "symbol")),
            address=to_str(_first(payload, "tokenAddress", "mintAddress")),
        )


@dataclass
class PnlSummary:
    # winRate arrives already on the 0-100 scale from the PnL endpoint and is
    # displayed as-is; it is never multiplied by 100.
    win_rate_pct: float = 0.0
    realized_pnl_usd: float = 0.0
    unrealized_pnl_usd: float = 0.0
    unique_tokens_traded: int = 0
    average_trade_usd: float = 0.0
    trades_count: int = 0
    winning_trades_count: int = 0
    losing_trades_count: int = 0
    trades_volume_usd: float = 0.0
    best_token: Optional[TokenRef] = None
    worst_token: Optional[TokenRef] = None

    @classmethod
    def from_json(cls, data: Any) -> "PnlSummary":
        payload = _obj(data)
        return cls(
            win_rate_pct=to_float(payload.get("winRate")),
            realized_pnl_usd=to_float(payload.get("realizedPnlUsd")),
            unrealized_pnl_usd=to_float(payload.get("unrealizedPnlUsd")),
            unique_tokens_traded=to_int(payload.get("uniqueTokensTraded")),
            average_trade_usd=to_float(payload.get("averageTradeUsd")),
            trades_count=to_int(payload.get("tradesCount")),
            winning_trades_count=to_int(payload.get("winningTradesCount")),
            losing_trades_count=to_int(payload.get("losingTradesCount")),
            trades_volume_usd=to_float(payload.get("tradesVolumeUsd")),
            best_token=TokenRef.from_json(payload.get("bestPerformingToken")),
            worst_token=TokenRef.from_json(payload.get("worstPerformingToken")),
        )


@dataclass
class TokenPnl:
    symbol: str
    address: str
    realized_pnl_usd: float
    unrealized_pnl_usd: float

    @classmethod
    def from_json(cls, data: Any) -> "TokenPnl":
        payload = _obj(data)
        return cls(
            symbol=to_str(_first(payload, "tokenSymbol", "symbol")),
            address=to_str(_first(payload, "tokenAddress", "mintAddress")),
            realized_pnl_usd=to_float(payload.get("realizedPnlUsd")),
            unrealized_pnl_usd=to_float(payload.get("unrealizedPnlUsd")),
        )

    @property
    def total_pnl_usd(self) -> float:
        return self.realized_pnl_usd + self.unrealized_pnl_usd


@dataclass
class WalletPnl:
    summary: PnlSummary
    tokens: List[TokenPnl] = field(default_factory=list)

    @classmethod
    def from_json(cls, data: Any) -> "WalletPnl":
        payload = _obj(data)
        return cls(
            summary=PnlSummary.from_json(payload.get("summary")),
            tokens=[TokenPnl.from_json(item) for item in _items(payload, "tokenMetrics")],
        )


@dataclass
class WalletToken:
    symbol: str
    name: str
    mint: str
    amount: float
    value_usd: float
    price_usd: float

    @classmethod
    def from_json(cls, data: Any) -> "WalletToken":
        payload = _obj(data)
        return cls(
            symbol=to_str(payload.get("symbol")),
            name=to_str(payload.get("name")),
            mint=to_str(_first(payload, "mintAddress", "tokenAddress")),
            amount=to_float(payload.get("amount")),
            value_usd=to_float(payload.get("valueUsd")),
            price_usd=to_float(payload.get("priceUsd")),
        )


@dataclass
class WalletTokens:
    tokens: List[WalletToken]
    total_token_value_usd: float
    # fraction (0.05 == +5%), displayed multiplied by 100
    total_value_change_1d: float
    total_token_count: int
    sol_balance: float
    sol_value_usd: float

    @classmethod
    def from_json(cls, data: Any) -> "WalletTokens":
        payload = _obj(data)
        tokens = [WalletToken.from_json(item) for item in _items(payload, "data")]
        count = to_int(payload.get("totalTokenCount"), len(tokens))
        return cls(
            tokens=tokens,
            total_token_value_usd=to_float(payload.get("totalTokenValueUsd")),
            total_value_change_1d=to_float(payload.get("totalTokenValueUsd1dChange")),
            total_token_count=count,
            sol_balance=to_float(payload.get("solBalance")),
            sol_value_usd=to_float(payload.get("solValueUsd")),
        )

    @property
    def total_value_usd(self) -> float:
        return self.total_token_value_usd + self.sol_value_usd


@dataclass
class NftCollection:
    name: str
    collection: str
    items: int
    value_usd: float
    floor_price_usd: float

    @classmethod
    def from_json(cls, data: Any) -> "NftCollection":
        payload = _obj(data)
        return cls(
            name=to_str(payload.get("name")),
            collection=to_str(_first(payload, "collectionName", "collectionAddress")),
            items=to_int(payload.get("totalItems"), 1),
            value_usd=to_float(payload.get("valueUsd")),
            floor_price_usd=to_float(_first(payload, "floorPriceUsd", "priceUsd")),
        )


@dataclass
class WalletNfts:
    collections: List[NftCollection]
    total_usd: float
    collection_count: int

    @classmethod
    def from_json(cls, data: Any) -> "WalletNfts":
        payload = _obj(data)
        collections = [NftCollection.from_json(item) for item in _items(data, "data")]
        total = payload.get("totalUsd")
        total_usd = to_float(total) if total is not None else sum(c.value_usd for c in collections)
        return cls(
            collections=collections,
            total_usd=total_usd,
            collection_count=to_int(payload.get("totalNftCollectionCount"), len(collections)),
        )


@dataclass
class BalancePoint:
    timestamp: int
    total_value_usd: float
    top_tokens: List[WalletToken] = field(default_factory=list)

    @classmethod
    def from_json(cls, data: Any) -> "BalancePoint":
        payload = _obj(data)
        return cls(
            timestamp=to_int(_first(payload, "blockTime", "timestamp", "time")),
            total_value_usd=to_float(_first(payload, "totalTokenValueUsd", "totalValueUsd")),
            top_tokens=[WalletToken.from_json(item) for item in _items(payload, "tokens")],
        )


@dataclass
class TopHolder:
    owner_address: str
    owner_name: str
    balance: float
    value_usd: float
    supply_pct: float
    token_symbol: str

    @classmethod
    def from_json(cls, data: Any) -> "TopHolder":
        payload = _obj(data)
        return cls(
            owner_address=to_str(payload.get("ownerAddress")),
            owner_name=to_str(payload.get("ownerName")),
            balance=to_float(payload.get("balance")),
            value_usd=to_float(payload.get("valueUsd")),
            supply_pct=to_float(payload.get("percentageOfSupplyHeld")),
            token_symbol=to_str(payload.get("tokenSymbol")),
        )


@dataclass
class TokenInfo:
    mint: str
    name: str
    symbol: str

    @classmethod
    def from_json(cls, data: Any) -> "TokenInfo":
        payload = _obj(data)
        if isinstance(payload.get("data"), dict):
            payload = payload["data"]
        return cls(
            mint=to_str(_first(payload, "mintAddress", "address")),
            name=to_str(payload.get("name")),
            symbol=to_str(payload.get("symbol")),
        )


@dataclass
class Candle:
    time: int
    open: float
    high: float
    low: float
    close: float
    volume: float

    @classmethod
    def from_json(cls, data: Any) -> "Candle":
        payload = _obj(data)
        return cls(
            time=to_int(_first(payload, "time", "timeBucketStart", "timestamp")),
            open=to_float(payload.get("open")),
            high=to_float(payload.get("high")),
            low=to_float(payload.get("low")),
            close=to_float(payload.get("close")),
            volume=to_float(_first(payload, "volumeUsd", "volume")),
        )


def candles_from_json(data: Any) -> List[Candle]:
    return [Candle.from_json(item) for item in _items(data, "data")]


@dataclass
class ProgramInfo:
    program_id: str
    name: str
    description: str
    website: str
    labels: List[str]
    transactions_1d: int
    instructions_1d: int
    active_users_1d: int

    @classmethod
    def from_json(cls, data: Any) -> "ProgramInfo":
        payload = _obj(data)
        if isinstance(payload.get("data"), dict):
            payload = payload["data"]
        stats = _obj(payload.get("stats"))
        labels = payload.get("labels")
        return cls(
            program_id=to_str(_first(payload, "programId", "programAddress")),
            name=to_str(_first(payload, "friendlyName", "name")),
            description=to_str(_first(payload, "programDescription", "description")),
            website=to_str(_first(payload, "dApp", "website")),
            labels=[to_str(label) for label in labels if to_str(label)] if isinstance(labels, list) else [],
            transactions_1d=to_int(_first(payload, "transactions1d") or stats.get("transactionCount")),
            instructions_1d=to_int(_first(payload, "instructions1d") or stats.get("instructionCount")),
            active_users_1d=to_int(_first(payload, "dau") or stats.get("activeUsers")),
        )


@dataclass
class TvlPoint:
    time: int
    tvl_usd: float

    @classmethod
    def from_json(cls, data: Any) -> "TvlPoint":
        payload = _obj(data)
        return cls(
            time=to_int(_first(payload, "blockTime", "time", "timestamp")),
            tvl_usd=to_float(_first(payload, "tvl", "tvlUsd")),
        )


def tvl_from_json(data: Any) -> List[TvlPoint]:
    return [TvlPoint.from_json(item) for item in _items(data, "data")]


@dataclass
class ActiveUsersPoint:
    time: int
    active_users: int

    @classmethod
    def from_json(cls, data: Any) -> "ActiveUsersPoint":
        payload = _obj(data)
        return cls(
            time=to_int(_first(payload, "blockTime", "timestamp", "time")),
            active_users=to_int(_first(payload, "dau", "activeUsers")),
        )


def active_users_from_json(data: Any) -> List[ActiveUsersPoint]:
    return [ActiveUsersPoint.from_json(item) for item in _items(data, "data")]


@dataclass
class Transfer:
    symbol: str
    mint: str
    sender: str
    receiver: str
    amount: float
    value_usd: float
    time: int
    signature: str

    @classmethod
    def from_json(cls, data: Any) -> "Transfer":
        payload = _obj(data)
        return cls(
            symbol=to_str(payload.get("tokenSymbol")),
            mint=to_str(payload.get("mintAddress")),
            sender=to_str(payload.get("senderAddress")),
            receiver=to_str(payload.get("receiverAddress")),
            amount=to_float(_first(payload, "calculatedAmount", "amount")),
            value_usd=to_float(_first(payload, "valueUsd", "usdAmount")),
            time=to_int(_first(payload, "blockTime", "time")),
            signature=to_str(payload.get("signature")),
        )


def transfers_from_json(data: Any) -> List[Transfer]:
    return [Transfer.from_json(item) for item in _items(data, "transfers", "data")]


@dataclass
class Trade:
    base_symbol: str
    quote_symbol: str
    base_mint: str
    quote_mint: str
    side: str
    base_amount: float
    quote_amount: float
    price: float
    time: int
    signature: str

    @classmethod
    def from_json(cls, data: Any) -> "Trade":
        payload = _obj(data)
        return cls(
            base_symbol=to_str(payload.get("baseSymbol")),
            quote_symbol=to_str(payload.get("quoteSymbol")),
            base_mint=to_str(payload.get("baseMintAddress")),
            quote_mint=to_str(payload.get("quoteMintAddress")),
            side=to_str(payload.get("side")).lower(),
            base_amount=to_float(_first(payload, "baseSize", "baseAmount")),
            quote_amount=to_float(_first(payload, "quoteSize", "quoteAmount")),
            price=to_float(payload.get("price")),
            time=to_int(_first(payload, "blockTime", "time")),
            signature=to_str(payload.get("signature")),
        )


def trades_from_json(data: Any) -> List[Trade]:
    return [Trade.from_json(item) for item in _items(data, "data", "trades")]


def top_holders_from_json(data: Any) -> List[TopHolder]:
    return [TopHolder.from_json(item) for item in _items(data, "data")]


def balance_history_from_json(data: Any) -> List[BalancePoint]:
    return [BalancePoint.from_json(item) for item in _items(data, "data")]
