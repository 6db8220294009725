from __future__ import annotations

from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, TypeVar

from .addresses import AddressClassifier, short_address
from .lookup import LookupTableIndex
from .models import (
    ActiveUsersPoint,
    BalancePoint,
    Candle,
    PnlSummary,
    ProgramInfo,
    TopHolder,
    Trade,
    Transfer,
    TvlPoint,
    WalletNfts,
    WalletPnl,
    WalletTokens,
)
from .utils import escape_html, format_date, format_ts, to_float

T = TypeVar("T")

WALLET_STYLE = "wallet"
MINT_STYLE = "mint"

EXPLORER_URL = "https://explorer.vybenetwork.com/address/{address}"

PNL_TITLE = "📊 PnL Summary"
NFT_TITLE = "🖼️ NFT Portfolio"
TOKEN_TITLE = "🪙 Token Balances"


def format_currency(value: Any) -> str:
    amount = to_float(value)
    sign = "-" if amount < 0 else ""
    amount = abs(amount)
    if amount >= 1e9:
        return f"{sign}${amount / 1e9:.2f}B"
    if amount >= 1e6:
        return f"{sign}${amount / 1e6:.2f}M"
    if amount >= 1e3:
        return f"{sign}${amount / 1e3:.2f}K"
    return f"{sign}${amount:.2f}"


def price_decimals(value: float) -> int:
    magnitude = abs(value)
    if magnitude < 0.001:
        return 6
    if magnitude < 0.01:
        return 5
    if magnitude < 0.1:
        return 4
    if magnitude < 1:
        return 3
    return 2


def format_decimal(value: Any) -> str:
    amount = to_float(value)
    return f"{amount:.{price_decimals(amount)}f}"


def format_price(price: Any) -> str:
    amount = to_float(price)
    sign = "-" if amount < 0 else ""
    return f"{sign}${format_decimal(abs(amount))}"


def format_pct(value: Any, signed: bool = True) -> str:
    amount = to_float(value)
    sign = "+" if signed and amount >= 0 else ""
    return f"{sign}{amount:.2f}%"


def format_amount(value: Any) -> str:
    text = f"{to_float(value):,.4f}".rstrip("0").rstrip(".")
    return "0" if text in ("", "-0") else text


def format_count(value: Any) -> str:
    return f"{int(to_float(value)):,}"


def truncate_address(address: str, style: str = WALLET_STYLE) -> str:
    if style == WALLET_STYLE:
        return short_address(address, 6, 4)
    return short_address(address, 4, 4)


def short_signature(signature: str) -> str:
    if not signature:
        return "n/a"
    return f"{signature[:8]}..."


def rank_list(items: Iterable[T], key: Callable[[T], Any], n: int) -> List[T]:
    """Top ``n`` items by ``key``, highest first; equal keys keep input order."""
    if n <= 0:
        return []
    return sorted(items, key=lambda item: to_float(key(item)), reverse=True)[:n]


def total_pnl(summary: PnlSummary) -> float:
    return summary.realized_pnl_usd + summary.unrealized_pnl_usd


def pct_change(old: Any, new: Any) -> Optional[float]:
    old_val = to_float(old)
    if old_val == 0:
        return None
    return (to_float(new) - old_val) / old_val * 100.0


def candle_change_pct(candles: Sequence[Candle]) -> Optional[float]:
    if len(candles) < 2:
        return None
    ordered = sorted(candles, key=lambda candle: candle.time)
    return pct_change(ordered[0].close, ordered[-1].close)


def _code(address: str, style: str = WALLET_STYLE) -> str:
    return f"<code>{escape_html(truncate_address(address, style))}</code>"


def _token_label(symbol: str, address: str, classifier: Optional[AddressClassifier] = None) -> str:
    if symbol:
        return escape_html(symbol)
    if classifier is not None and address:
        return escape_html(classifier.display_name(address))
    return escape_html(truncate_address(address, MINT_STYLE))


def unavailable_section(title: str) -> str:
    return f"<b>{escape_html(title)}</b>\nUnavailable right now. Please try again later."


def _pnl_lines(pnl: WalletPnl, limit: int) -> List[str]:
    summary = pnl.summary
    lines = [
        f"Win rate: {format_pct(summary.win_rate_pct, signed=False)}",
        f"Realized PnL: {format_currency(summary.realized_pnl_usd)}",
        f"Unrealized PnL: {format_currency(summary.unrealized_pnl_usd)}",
        f"Total PnL: {format_currency(total_pnl(summary))}",
        f"Trades: {format_count(summary.trades_count)} "
        f"({format_count(summary.winning_trades_count)} won / "
        f"{format_count(summary.losing_trades_count)} lost)",
        f"Trade volume: {format_currency(summary.trades_volume_usd)}",
    ]
    if summary.unique_tokens_traded:
        lines.append(f"Tokens traded: {format_count(summary.unique_tokens_traded)}")
    if summary.average_trade_usd:
        lines.append(f"Average trade: {format_currency(summary.average_trade_usd)}")
    best = summary.best_token
    worst = summary.worst_token
    lines.append(f"Best token: {_token_label(best.symbol, best.address) if best else 'N/A'}")
    lines.append(f"Worst token: {_token_label(worst.symbol, worst.address) if worst else 'N/A'}")

    top = rank_list(pnl.tokens, lambda token: token.total_pnl_usd, limit)
    if top:
        lines.append("")
        lines.append("<b>Top tokens by PnL</b>")
        for idx, token in enumerate(top, start=1):
            lines.append(
                f"{idx}. {_token_label(token.symbol, token.address)}: "
                f"{format_currency(token.total_pnl_usd)} "
                f"(realized {format_currency(token.realized_pnl_usd)})"
            )
    return lines


def format_pnl_section(pnl: WalletPnl, limit: int = 5) -> str:
    return "\n".join([f"<b>{PNL_TITLE}</b>"] + _pnl_lines(pnl, limit))


def format_pnl_report(address: str, pnl: WalletPnl, resolution: str, limit: int = 5) -> str:
    lines = [
        f"📊 <b>Wallet Performance</b> {_code(address)}",
        f"Period: {escape_html(resolution)}",
        "",
    ]
    lines.extend(_pnl_lines(pnl, limit))
    return "\n".join(lines)


def _nft_lines(nfts: WalletNfts, limit: int) -> List[str]:
    if not nfts.collections:
        return ["No NFTs found in this wallet."]
    lines = [
        f"Collections: {format_count(nfts.collection_count)} | "
        f"Total value: {format_currency(nfts.total_usd)}"
    ]
    for idx, nft in enumerate(rank_list(nfts.collections, lambda item: item.value_usd, limit), start=1):
        name = escape_html(nft.name or "Unnamed NFT")
        lines.append(f"{idx}. <b>{name}</b> ({format_count(nft.items)} items)")
        if nft.collection and nft.collection != nft.name:
            label = nft.collection
            if len(label) >= 32:
                label = truncate_address(label, MINT_STYLE)
            lines.append(f"   Collection: {escape_html(label)}")
        detail = f"   Value: {format_currency(nft.value_usd)}"
        if nft.floor_price_usd:
            detail += f" | Floor: {format_currency(nft.floor_price_usd)}"
        lines.append(detail)
    return lines


def format_nft_section(nfts: WalletNfts, limit: int = 10) -> str:
    return "\n".join([f"<b>{NFT_TITLE}</b>"] + _nft_lines(nfts, limit))


def format_nft_report(address: str, nfts: WalletNfts, limit: int = 10) -> str:
    lines = [f"🖼️ <b>NFT Portfolio</b> {_code(address)}", ""]
    lines.extend(_nft_lines(nfts, limit))
    return "\n".join(lines)


def _token_lines(tokens: WalletTokens, limit: int) -> List[str]:
    lines = [
        f"Total value: {format_currency(tokens.total_value_usd)}",
        f"  Tokens: {format_currency(tokens.total_token_value_usd)}",
        f"  SOL: {format_currency(tokens.sol_value_usd)} ({format_amount(tokens.sol_balance)} SOL)",
        f"24h change: {format_pct(tokens.total_value_change_1d * 100)}",
        f"Token count: {format_count(tokens.total_token_count)}",
    ]
    top = rank_list(tokens.tokens, lambda token: token.value_usd, limit)
    if not top:
        lines.append("No token balances found.")
        return lines
    for idx, token in enumerate(top, start=1):
        label = _token_label(token.symbol, token.mint)
        name = f" ({escape_html(token.name)})" if token.name and token.name != token.symbol else ""
        lines.append(f"{idx}. <b>{label}</b>{name}")
        lines.append(
            f"   Amount: {format_amount(token.amount)} | Value: {format_currency(token.value_usd)}"
            f" | Price: {format_price(token.price_usd)}"
        )
    return lines


def format_token_section(tokens: WalletTokens, limit: int = 10) -> str:
    return "\n".join([f"<b>{TOKEN_TITLE}</b>"] + _token_lines(tokens, limit))


def format_token_report(address: str, tokens: WalletTokens, limit: int = 10) -> str:
    lines = [f"🪙 <b>Token Report</b> {_code(address)}", ""]
    lines.extend(_token_lines(tokens, limit))
    return "\n".join(lines)


def format_token_history(address: str, points: Sequence[BalancePoint], days: int, tz_name: str = "UTC") -> str:
    lines = [f"📈 <b>Token Balance History</b> {_code(address)}"]
    if not points:
        lines.append("No token history found for this wallet.")
        return "\n".join(lines)
    lines.append(f"Last {days} days")
    lines.append("")
    ordered = sorted(points, key=lambda point: point.timestamp, reverse=True)
    for point in ordered:
        lines.append(f"<b>{format_date(point.timestamp, tz_name)}</b>: {format_currency(point.total_value_usd)}")
        for token in rank_list(point.top_tokens, lambda item: item.value_usd, 3):
            lines.append(f"  - {_token_label(token.symbol, token.mint)}: {format_currency(token.value_usd)}")
    change = pct_change(ordered[-1].total_value_usd, ordered[0].total_value_usd)
    if change is not None:
        lines.append("")
        lines.append(f"Change over period: {format_pct(change)}")
    return "\n".join(lines)


def format_top_holders(
    mint: str,
    token_name: str,
    holders: Sequence[TopHolder],
    portfolios: Dict[str, Optional[WalletTokens]],
    excluded: int = 0,
) -> str:
    title = escape_html(token_name) if token_name else _code(mint, MINT_STYLE)
    lines = [f"🏆 <b>Top Holders</b> {title}"]
    if excluded:
        lines.append(f"Known exchange/protocol accounts hidden: {excluded}")
    if not holders:
        lines.append("No holders found for this token.")
        return "\n".join(lines)
    lines.append("")
    for idx, holder in enumerate(holders, start=1):
        owner = _code(holder.owner_address)
        if holder.owner_name:
            owner += f" ({escape_html(holder.owner_name)})"
        lines.append(f"{idx}. {owner}")
        lines.append(
            f"   Holds: {format_pct(holder.supply_pct, signed=False)} of supply | "
            f"{format_amount(holder.balance)} ({format_currency(holder.value_usd)})"
        )
        portfolio = portfolios.get(holder.owner_address)
        if portfolio is None:
            lines.append("   Portfolio: unavailable")
            continue
        lines.append(
            f"   Portfolio: {format_currency(portfolio.total_value_usd)} | "
            f"SOL: {format_amount(portfolio.sol_balance)}"
        )
        top = rank_list(portfolio.tokens, lambda token: token.value_usd, 3)
        if top:
            parts = [f"{_token_label(t.symbol, t.mint)} {format_currency(t.value_usd)}" for t in top]
            lines.append(f"   Top: {', '.join(parts)}")
    return "\n".join(lines)


def format_holder_portfolio(
    address: str, tokens: WalletTokens, pnl: Optional[WalletPnl], limit: int = 5
) -> str:
    total = tokens.total_value_usd
    lines = [
        f"💰 <b>Portfolio Report</b> {_code(address)}",
        "",
        f"💎 Total value: <b>{format_currency(total)}</b>",
        f"  Tokens: {format_currency(tokens.total_token_value_usd)}",
        f"  SOL: {format_currency(tokens.sol_value_usd)} ({format_amount(tokens.sol_balance)} SOL)",
        f"📈 24h change: {format_pct(tokens.total_value_change_1d * 100)}",
        f"🔢 Token count: {format_count(tokens.total_token_count)}",
        "",
    ]
    if pnl is not None:
        summary = pnl.summary
        lines.extend(
            [
                "<b>📊 PnL</b>",
                f"Win rate: {format_pct(summary.win_rate_pct, signed=False)}",
                f"Realized: {format_currency(summary.realized_pnl_usd)} | "
                f"Unrealized: {format_currency(summary.unrealized_pnl_usd)}",
                f"Total: {format_currency(total_pnl(summary))}",
                "",
            ]
        )
    else:
        lines.extend(["<b>📊 PnL</b>", "Unavailable for this wallet.", ""])

    lines.append("<b>🪙 Top tokens</b>")
    top = rank_list(tokens.tokens, lambda token: token.value_usd, limit)
    if not top:
        lines.append("No token balances found.")
    for token in top:
        share = token.value_usd / total * 100 if total > 0 else 0.0
        lines.append(
            f"- {_token_label(token.symbol, token.mint)}: {format_currency(token.value_usd)} "
            f"({format_pct(share, signed=False)})"
        )
    lines.append("")
    url = EXPLORER_URL.format(address=escape_html(address))
    lines.append(f'🔍 <a href="{url}">View on Vybe Explorer</a>')
    return "\n".join(lines)


def format_candles(
    title: str,
    candles: Sequence[Candle],
    resolution: str,
    tz_name: str = "UTC",
    quote_label: Optional[str] = None,
) -> str:
    """OHLC summary; prices are USD unless ``quote_label`` names the quote token."""
    lines = [title]
    if not candles:
        lines.append("No price data found.")
        return "\n".join(lines)

    def price(value: float) -> str:
        if quote_label:
            return f"{format_decimal(value)} {escape_html(quote_label)}"
        return format_price(value)

    ordered = sorted(candles, key=lambda candle: candle.time)
    lines.append(f"Last {len(ordered)} candles ({escape_html(resolution)})")
    lines.append("")
    for candle in ordered:
        lines.append(f"<b>{format_ts(candle.time, tz_name)}</b>")
        lines.append(
            f"O: {price(candle.open)} | H: {price(candle.high)} | "
            f"L: {price(candle.low)} | C: {price(candle.close)}"
        )
        lines.append(f"Volume: {format_currency(candle.volume)}")
    lines.append("")
    lines.append(f"Period high: {price(max(c.high for c in ordered))}")
    lines.append(f"Period low: {price(min(c.low for c in ordered))}")
    lines.append(f"Last close: {price(ordered[-1].close)}")
    change = candle_change_pct(ordered)
    if change is not None:
        lines.append(f"Change over period: {format_pct(change)}")
    return "\n".join(lines)


def format_program(program_id: str, info: ProgramInfo, lookup: LookupTableIndex) -> str:
    name = info.name or lookup.resolve_program_name(program_id)
    lines = [
        f"🧩 <b>{escape_html(name)}</b>",
        f"Program: <code>{escape_html(program_id)}</code>",
    ]
    if info.description:
        lines.append(f"Description: {escape_html(info.description)}")
    if info.website:
        lines.append(f"Website: {escape_html(info.website)}")
    if info.labels:
        lines.append(f"Labels: {escape_html(', '.join(info.labels))}")
    lines.append("")
    lines.append("<b>Last 24h</b>")
    lines.append(f"Transactions: {format_count(info.transactions_1d)}")
    lines.append(f"Instructions: {format_count(info.instructions_1d)}")
    lines.append(f"Active users: {format_count(info.active_users_1d)}")
    return "\n".join(lines)


def format_program_tvl(
    name: str, points: Sequence[TvlPoint], resolution: str, tz_name: str = "UTC", limit: int = 10
) -> str:
    lines = [f"🏦 <b>TVL</b> {escape_html(name)} ({escape_html(resolution)})"]
    if not points:
        lines.append("No TVL data found for this program.")
        return "\n".join(lines)
    ordered = sorted(points, key=lambda point: point.time)
    lines.append(f"Current TVL: <b>{format_currency(ordered[-1].tvl_usd)}</b>")
    change = pct_change(ordered[0].tvl_usd, ordered[-1].tvl_usd)
    if change is not None:
        lines.append(f"Change over period: {format_pct(change)}")
    lines.append("")
    for point in ordered[-limit:]:
        lines.append(f"{format_date(point.time, tz_name)}: {format_currency(point.tvl_usd)}")
    return "\n".join(lines)


def format_program_activity(
    name: str, points: Sequence[ActiveUsersPoint], range_: str, tz_name: str = "UTC"
) -> str:
    lines = [f"📊 <b>Program Activity</b> {escape_html(name)} ({escape_html(range_)})"]
    if not points:
        lines.append("No activity data found for this program.")
        return "\n".join(lines)
    ordered = sorted(points, key=lambda point: point.time)
    lines.append("")
    for point in ordered:
        lines.append(f"{format_date(point.time, tz_name)}: {format_count(point.active_users)} active users")
    change = pct_change(ordered[0].active_users, ordered[-1].active_users)
    if change is not None:
        lines.append("")
        lines.append(f"Activity change over period: {format_pct(change)}")
    return "\n".join(lines)


def format_transfers(
    subject: str, transfers: Sequence[Transfer], classifier: AddressClassifier, tz_name: str = "UTC"
) -> str:
    lines = [f"🔄 <b>Token Transfers</b> {escape_html(subject)}"]
    if not transfers:
        lines.append("No transfers found for this address.")
        return "\n".join(lines)
    lines.append(f"Showing last {len(transfers)} transfers")
    for idx, transfer in enumerate(transfers, start=1):
        lines.append("")
        lines.append(f"<b>Transfer {idx}</b>: {_token_label(transfer.symbol, transfer.mint, classifier)}")
        lines.append(f"From: {_code(transfer.sender)} → To: {_code(transfer.receiver)}")
        amount = f"Amount: {format_amount(transfer.amount)}"
        if transfer.value_usd:
            amount += f" ({format_currency(transfer.value_usd)})"
        lines.append(amount)
        if transfer.time:
            lines.append(f"Time: {format_ts(transfer.time, tz_name)}")
        lines.append(f"Signature: <code>{escape_html(short_signature(transfer.signature))}</code>")
    return "\n".join(lines)


def format_trades(
    subject: str, trades: Sequence[Trade], classifier: AddressClassifier, tz_name: str = "UTC"
) -> str:
    lines = [f"💱 <b>Token Trades</b> {escape_html(subject)}"]
    if not trades:
        lines.append("No trades found for this address.")
        return "\n".join(lines)
    lines.append(f"Showing last {len(trades)} trades")
    for idx, trade in enumerate(trades, start=1):
        base = _token_label(trade.base_symbol, trade.base_mint, classifier)
        quote = _token_label(trade.quote_symbol, trade.quote_mint, classifier)
        side = "Buy 🟢" if trade.side == "buy" else "Sell 🔴"
        lines.append("")
        lines.append(f"<b>Trade {idx}</b>: {base}/{quote} {side}")
        lines.append(f"Amount: {format_amount(trade.base_amount)} {base}")
        lines.append(f"Price: {format_decimal(trade.price)} {quote}")
        lines.append(f"Value: {format_amount(trade.quote_amount)} {quote}")
        if trade.time:
            lines.append(f"Time: {format_ts(trade.time, tz_name)}")
        if trade.signature:
            lines.append(f"Signature: <code>{escape_html(short_signature(trade.signature))}</code>")
    return "\n".join(lines)
