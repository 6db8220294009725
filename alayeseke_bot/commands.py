from __future__ import annotations

import asyncio
from typing import Mapping, Optional, Sequence, Tuple

import aiohttp

from .addresses import AddressClassifier, UnknownSymbolError, is_solana_address, parse_pair
from .types import CommandRequest
from .utils import escape_html

OHLCV_RESOLUTIONS: Mapping[str, int] = {"1h": 3600, "4h": 14400, "1d": 86400, "1w": 604800}
PERIOD_RESOLUTIONS = ("1d", "7d", "30d")
ACTIVITY_RANGES = ("1d", "7d", "30d")
MAX_HISTORY_DAYS = 30

DEFAULT_OHLCV_RESOLUTION = "1d"
DEFAULT_PERIOD = "30d"
DEFAULT_ACTIVITY_RANGE = "7d"
DEFAULT_HISTORY_DAYS = 7

WALLET_COMMANDS = ("pnl", "report", "tokens", "nfts", "token_history", "holder_portfolio")
PROGRAM_COMMANDS = ("program", "program_tvl", "program_activity")
MINT_COMMANDS = ("top_holders", "price")
FLOW_COMMANDS = ("transfers", "trades")

USAGE = {
    "pnl": "/pnl <wallet_address> [1d|7d|30d]",
    "report": "/report <wallet_address>",
    "tokens": "/tokens <wallet_address>",
    "nfts": "/nfts <wallet_address>",
    "token_history": "/token_history <wallet_address> [days]",
    "holder_portfolio": "/holder_portfolio <wallet_address>",
    "top_holders": "/top_holders <mint_address|symbol>",
    "price": "/price <mint_address|symbol> [1h|4h|1d|1w]",
    "market": "/market <market_id> [1h|4h|1d|1w]",
    "pair": "/pair <BASE/QUOTE> [1h|4h|1d|1w]",
    "program": "/program <program_id>",
    "program_tvl": "/program_tvl <program_id> [1d|7d|30d]",
    "program_activity": "/program_activity <program_id> [1d|7d|30d]",
    "transfers": "/transfers <wallet_address|mint|symbol> [wallet|mint]",
    "trades": "/trades <wallet_address|mint|symbol> [wallet|mint]",
}

GENERIC_ERROR = "Something went wrong while talking to the analytics API. Please try again later."
STATUS_MESSAGES = {
    400: "The API rejected the request. Please check the address and try again.",
    401: "The bot's API credentials were rejected. Please contact the bot admin.",
    403: "The bot's API credentials were rejected. Please contact the bot admin.",
    404: "Nothing was found for that address.",
    429: "The analytics API is rate limiting requests. Please try again in a minute.",
    500: "The analytics API had a server error. Please try again later.",
}


class UsageError(ValueError):
    def __init__(self, command: str, reason: str = ""):
        self.command = command
        self.reason = reason
        super().__init__(reason or f"usage: {USAGE.get(command, command)}")

    def user_message(self) -> str:
        usage = escape_html(USAGE.get(self.command, f"/{self.command}"))
        if self.reason:
            return f"{escape_html(self.reason)}\nUsage: <code>{usage}</code>"
        return f"Usage: <code>{usage}</code>"


def user_message_for_error(exc: BaseException) -> str:
    if isinstance(exc, UsageError):
        return exc.user_message()
    if isinstance(exc, UnknownSymbolError):
        return (
            f"Unknown token <code>{escape_html(exc.token)}</code>. "
            "Use a mint address or one of the known symbols."
        )
    if isinstance(exc, (asyncio.TimeoutError, aiohttp.ClientError)):
        return GENERIC_ERROR
    status = getattr(exc, "status", None)
    if isinstance(status, int):
        return STATUS_MESSAGES.get(status, GENERIC_ERROR)
    return GENERIC_ERROR


def ohlcv_time_range(resolution: str, candles: int, now: int) -> Tuple[int, int]:
    step = OHLCV_RESOLUTIONS.get(resolution, OHLCV_RESOLUTIONS[DEFAULT_OHLCV_RESOLUTION])
    return now - step * max(1, candles), now


def _option(command: str, args: Sequence[str], index: int, allowed: Sequence[str], default: str) -> str:
    if len(args) <= index:
        return default
    value = args[index].strip().lower()
    if value not in allowed:
        raise UsageError(command, f"Unsupported option: {args[index]}")
    return value


def _require_address(command: str, value: str, what: str) -> str:
    if not is_solana_address(value):
        raise UsageError(command, f"That does not look like a Solana {what}.")
    return value


def parse_command(
    name: str, args: Optional[Sequence[str]], classifier: AddressClassifier
) -> CommandRequest:
    """Validate arguments and derive request parameters. No network access.

    Raises ``UsageError`` for missing or malformed arguments and
    ``UnknownSymbolError`` for symbols that are not in the table.
    """
    args = [arg for arg in (args or []) if arg.strip()]
    raw_args = " ".join(args)
    if not args:
        raise UsageError(name)
    subject = args[0].strip()
    request = CommandRequest(name=name, raw_args=raw_args, subject=subject, args=list(args))

    if name in WALLET_COMMANDS:
        request.address = _require_address(name, subject, "wallet address")
        if name == "pnl":
            request.resolution = _option(name, args, 1, PERIOD_RESOLUTIONS, DEFAULT_PERIOD)
        elif name == "token_history":
            request.days = DEFAULT_HISTORY_DAYS
            if len(args) > 1:
                try:
                    request.days = int(args[1])
                except ValueError:
                    raise UsageError(name, f"Invalid number of days: {args[1]}") from None
                if not 1 <= request.days <= MAX_HISTORY_DAYS:
                    raise UsageError(name, f"Days must be between 1 and {MAX_HISTORY_DAYS}.")
        return request

    if name in MINT_COMMANDS:
        request.address = classifier.resolve(subject)
        if name == "price":
            request.resolution = _option(
                name, args, 1, tuple(OHLCV_RESOLUTIONS), DEFAULT_OHLCV_RESOLUTION
            )
        return request

    if name in PROGRAM_COMMANDS:
        request.address = _require_address(name, subject, "program id")
        if name == "program_tvl":
            request.resolution = _option(name, args, 1, PERIOD_RESOLUTIONS, DEFAULT_PERIOD)
        elif name == "program_activity":
            request.resolution = _option(name, args, 1, ACTIVITY_RANGES, DEFAULT_ACTIVITY_RANGE)
        return request

    if name == "market":
        request.address = _require_address(name, subject, "market id")
        request.resolution = _option(
            name, args, 1, tuple(OHLCV_RESOLUTIONS), DEFAULT_OHLCV_RESOLUTION
        )
        return request

    if name == "pair":
        pair = parse_pair(args)
        if pair is None:
            raise UsageError(name)
        base, quote, rest = pair
        request.address = classifier.resolve(base)
        request.quote_address = classifier.resolve(quote)
        request.resolution = _option(
            name, rest, 0, tuple(OHLCV_RESOLUTIONS), DEFAULT_OHLCV_RESOLUTION
        )
        return request

    if name in FLOW_COMMANDS:
        classified = classifier.classify(subject)
        if classified.address is None:
            raise UnknownSymbolError(subject)
        request.address = classified.address
        default = "wallet" if classified.is_address else "mint"
        request.filter_key = _option(name, args, 1, ("wallet", "mint"), default)
        return request

    raise UsageError(name, f"Unknown command: /{name}")


def flow_params(request: CommandRequest, limit: int) -> dict:
    """Query parameters for the transfers/trades endpoints."""
    params = {"limit": limit, "sortByDesc": "blockTime"}
    if request.filter_key == "mint":
        params["mintAddress"] = request.address
    elif request.name == "trades":
        params["authorityAddress"] = request.address
    else:
        params["walletAddress"] = request.address
    return params
