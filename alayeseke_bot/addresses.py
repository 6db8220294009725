from __future__ import annotations

import re
from dataclasses import dataclass
from types import MappingProxyType
from typing import List, Mapping, Optional, Sequence, Tuple

BASE58_ADDRESS_RE = re.compile(r"^[1-9A-HJ-NP-Za-km-z]{32,44}$")

KIND_ADDRESS = "address"
KIND_SYMBOL = "symbol"
KIND_UNKNOWN = "unknown"

KNOWN_SYMBOLS: Mapping[str, str] = MappingProxyType(
    {
        "SOL": "So11111111111111111111111111111111111111112",
        "USDC": "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v",
        "USDT": "Es9vMFrzaCERmJfrF4H2FYD4KCoNkY11McCe8BenwNYB",
        "BTC": "3NZ9JMVBmGAqocybic2c7LQCJScmgsAZ6vQqTDzcqmJh",
        "ETH": "7vfCXTUXx5WJV5JADk17DUJ4ksgau7utNKj4b963voxs",
        "BONK": "DezXAZ8z7PnrnRJjz3wXBoRgixCa6xjnB7YaB1pPB263",
        "SAMO": "7xKXtg2CW87d97TXJSDpbD5jBkheTqA83TZRuJosgAsU",
        "JTO": "jtojtomepa8beP8AuQc6eXt5FriJwfFMwQx2v2f9mCL",
    }
)


class UnknownSymbolError(ValueError):
    def __init__(self, token: str):
        super().__init__(f"unknown token symbol: {token}")
        self.token = token


def is_solana_address(value: str) -> bool:
    if not isinstance(value, str):
        return False
    return bool(BASE58_ADDRESS_RE.match(value))


def short_address(address: str, head: int = 4, tail: int = 4) -> str:
    if not address:
        return "?"
    if len(address) <= head + tail + 3:
        return address
    return f"{address[:head]}...{address[-tail:]}"


@dataclass(frozen=True)
class Classification:
    token: str
    kind: str
    address: Optional[str] = None
    symbol: Optional[str] = None

    @property
    def is_address(self) -> bool:
        return self.kind == KIND_ADDRESS

    @property
    def is_symbol(self) -> bool:
        return self.kind == KIND_SYMBOL

    @property
    def is_unknown(self) -> bool:
        return self.kind == KIND_UNKNOWN


class AddressClassifier:
    """Tells wallet/mint addresses apart from ticker symbols and resolves the latter."""

    def __init__(self, symbols: Optional[Mapping[str, str]] = None):
        table = dict(KNOWN_SYMBOLS)
        if symbols:
            table.update({key.upper(): value for key, value in symbols.items()})
        self.symbols: Mapping[str, str] = MappingProxyType(table)
        self.by_address: Mapping[str, str] = MappingProxyType(
            {address: symbol for symbol, address in table.items()}
        )

    def classify(self, token: str) -> Classification:
        token = (token or "").strip()
        if is_solana_address(token):
            return Classification(token, KIND_ADDRESS, token, self.by_address.get(token))
        symbol = token.upper()
        address = self.symbols.get(symbol)
        if address:
            return Classification(token, KIND_SYMBOL, address, symbol)
        return Classification(token, KIND_UNKNOWN)

    def resolve(self, token: str) -> str:
        result = self.classify(token)
        if result.address is None:
            raise UnknownSymbolError(token)
        return result.address

    def symbol_for(self, address: str) -> Optional[str]:
        return self.by_address.get(address)

    def display_name(self, address: str) -> str:
        return self.symbol_for(address) or short_address(address)


def parse_pair(args: Sequence[str]) -> Optional[Tuple[str, str, List[str]]]:
    """Accept ``BASE/QUOTE`` as one argument or ``BASE QUOTE`` as two.

    Returns the two tokens plus whatever arguments follow them.
    """
    if not args:
        return None
    first = args[0].strip()
    if "/" in first:
        base, _, quote = first.partition("/")
        base, quote = base.strip(), quote.strip()
        if base and quote:
            return base, quote, list(args[1:])
        return None
    if len(args) >= 2 and args[1].strip():
        return first, args[1].strip(), list(args[2:])
    return None
