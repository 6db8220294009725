from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Dict, Optional

from telegram import Update
from telegram.constants import ParseMode
from telegram.ext import Application, CommandHandler, ContextTypes

from .addresses import UnknownSymbolError
from .commands import (
    USAGE,
    UsageError,
    flow_params,
    ohlcv_time_range,
    parse_command,
    user_message_for_error,
)
from .formatting import (
    MINT_STYLE,
    format_candles,
    format_holder_portfolio,
    format_nft_report,
    format_pnl_report,
    format_program,
    format_program_activity,
    format_program_tvl,
    format_token_history,
    format_token_report,
    format_top_holders,
    format_trades,
    format_transfers,
    truncate_address,
)
from .logger import get_logger
from .pagination import send_paginated
from .types import AppContext, CommandRequest
from .utils import escape_html, utc_now_ts

Renderer = Callable[[AppContext, CommandRequest], Awaitable[str]]

WELCOME_TEXT = (
    "🚀 <b>Welcome to Alayeseke!</b>\n"
    "Your Solana wallet, token and program assistant, powered by Vybe.\n"
)

HELP_SECTIONS = (
    ("Portfolio", ("pnl", "report", "tokens", "nfts", "token_history", "holder_portfolio")),
    ("Tokens", ("top_holders", "price", "transfers", "trades")),
    ("Programs &amp; markets", ("program", "program_tvl", "program_activity", "market", "pair")),
)

DESCRIPTIONS = {
    "pnl": "wallet profit and loss",
    "report": "PnL, NFTs and token balances in one report",
    "tokens": "token balances",
    "nfts": "NFT portfolio",
    "token_history": "token balance history",
    "holder_portfolio": "a single holder's portfolio",
    "top_holders": "top holders of a token",
    "price": "token price with OHLC candles",
    "transfers": "recent token transfers",
    "trades": "recent token trades",
    "program": "program details",
    "program_tvl": "program TVL",
    "program_activity": "program daily active users",
    "market": "market OHLC candles",
    "pair": "trading pair OHLC candles",
}

STARTING_TEXT = "Bot is starting, try again in a moment."


def build_help_text() -> str:
    lines = []
    for title, names in HELP_SECTIONS:
        lines.append(f"<b>{title}</b>")
        for name in names:
            lines.append(f"• <code>{escape_html(USAGE[name])}</code> - {DESCRIPTIONS[name]}")
        lines.append("")
    lines.append("• /help - show this message")
    return "\n".join(lines)


def get_app_ctx(context: ContextTypes.DEFAULT_TYPE) -> Optional[AppContext]:
    return context.application.bot_data.get("app_ctx")


async def render_pnl(ctx: AppContext, request: CommandRequest) -> str:
    pnl = await ctx.client.get_wallet_pnl(request.address, request.resolution)
    return format_pnl_report(request.address, pnl, request.resolution, ctx.config.list_limit)


async def render_report(ctx: AppContext, request: CommandRequest) -> str:
    report = await ctx.aggregator.build_report(request.address)
    return report.render()


async def render_tokens(ctx: AppContext, request: CommandRequest) -> str:
    tokens = await ctx.client.get_wallet_tokens(request.address)
    return format_token_report(request.address, tokens, ctx.config.list_limit)


async def render_nfts(ctx: AppContext, request: CommandRequest) -> str:
    nfts = await ctx.client.get_wallet_nfts(request.address, ctx.config.list_limit)
    return format_nft_report(request.address, nfts, ctx.config.list_limit)


async def render_token_history(ctx: AppContext, request: CommandRequest) -> str:
    points = await ctx.client.get_wallet_token_history(request.address, request.days)
    return format_token_history(request.address, points, request.days, ctx.config.display_timezone)


async def render_holder_portfolio(ctx: AppContext, request: CommandRequest) -> str:
    tokens = await ctx.client.get_wallet_tokens(request.address)
    try:
        pnl = await ctx.client.get_wallet_pnl(request.address)
    except Exception as exc:
        ctx.logger.warning(
            "holder_pnl_unavailable", extra={"address": request.address, "error": repr(exc)}
        )
        pnl = None
    return format_holder_portfolio(request.address, tokens, pnl, ctx.config.list_limit)


async def render_top_holders(ctx: AppContext, request: CommandRequest) -> str:
    limit = ctx.config.top_holders_limit
    fetch_limit = limit * 2 if ctx.lookup.has_accounts else limit
    holders = await ctx.client.get_top_holders(request.address, fetch_limit)
    visible = ctx.lookup.filter_unknown(holders)
    excluded = len(holders) - len(visible)
    visible = visible[:limit]

    portfolios = {}
    for idx, holder in enumerate(visible):
        if idx and ctx.config.holder_portfolio_delay_sec > 0:
            await asyncio.sleep(ctx.config.holder_portfolio_delay_sec)
        try:
            portfolios[holder.owner_address] = await ctx.client.get_wallet_tokens(
                holder.owner_address
            )
        except Exception as exc:
            ctx.logger.warning(
                "holder_portfolio_failed",
                extra={"owner": holder.owner_address, "error": repr(exc)},
            )
            portfolios[holder.owner_address] = None

    token_name = ctx.classifier.symbol_for(request.address) or ""
    if not token_name and holders:
        token_name = holders[0].token_symbol
    return format_top_holders(request.address, token_name, visible, portfolios, excluded)


async def render_price(ctx: AppContext, request: CommandRequest) -> str:
    try:
        info = await ctx.client.get_token(request.address)
    except Exception as exc:
        ctx.logger.warning("token_info_unavailable", extra={"mint": request.address, "error": repr(exc)})
        info = None
    start, end = ohlcv_time_range(request.resolution, ctx.config.ohlcv_candles, utc_now_ts())
    candles = await ctx.client.get_token_ohlcv(
        request.address, request.resolution, start, end, ctx.config.ohlcv_candles
    )
    if info is not None and info.symbol:
        label = f"{info.name} ({info.symbol})" if info.name else info.symbol
    else:
        label = ctx.classifier.display_name(request.address)
    title = f"💰 <b>{escape_html(label)}</b> <code>{escape_html(truncate_address(request.address, MINT_STYLE))}</code>"
    return format_candles(title, candles, request.resolution, ctx.config.display_timezone)


async def render_market(ctx: AppContext, request: CommandRequest) -> str:
    start, end = ohlcv_time_range(request.resolution, ctx.config.ohlcv_candles, utc_now_ts())
    candles = await ctx.client.get_market_ohlcv(
        request.address, request.resolution, start, end, ctx.config.ohlcv_candles
    )
    title = f"📉 <b>Market</b> <code>{escape_html(truncate_address(request.address, MINT_STYLE))}</code>"
    return format_candles(title, candles, request.resolution, ctx.config.display_timezone)


async def render_pair(ctx: AppContext, request: CommandRequest) -> str:
    start, end = ohlcv_time_range(request.resolution, ctx.config.ohlcv_candles, utc_now_ts())
    candles = await ctx.client.get_pair_ohlcv(
        request.address,
        request.quote_address,
        request.resolution,
        start,
        end,
        ctx.config.ohlcv_candles,
    )
    base = ctx.classifier.display_name(request.address)
    quote = ctx.classifier.display_name(request.quote_address)
    title = f"⚖️ <b>{escape_html(base)}/{escape_html(quote)}</b>"
    return format_candles(
        title, candles, request.resolution, ctx.config.display_timezone, quote_label=quote
    )


async def render_program(ctx: AppContext, request: CommandRequest) -> str:
    info = await ctx.client.get_program(request.address)
    return format_program(request.address, info, ctx.lookup)


async def render_program_tvl(ctx: AppContext, request: CommandRequest) -> str:
    points = await ctx.client.get_program_tvl(request.address, request.resolution)
    name = ctx.lookup.resolve_program_name(request.address)
    return format_program_tvl(
        name, points, request.resolution, ctx.config.display_timezone, ctx.config.list_limit
    )


async def render_program_activity(ctx: AppContext, request: CommandRequest) -> str:
    points = await ctx.client.get_program_active_users(request.address, request.resolution)
    name = ctx.lookup.resolve_program_name(request.address)
    return format_program_activity(name, points, request.resolution, ctx.config.display_timezone)


def _flow_subject(ctx: AppContext, request: CommandRequest) -> str:
    symbol = ctx.classifier.symbol_for(request.address)
    if symbol:
        return symbol
    return truncate_address(request.address)


async def render_transfers(ctx: AppContext, request: CommandRequest) -> str:
    transfers = await ctx.client.get_token_transfers(flow_params(request, ctx.config.list_limit))
    return format_transfers(
        _flow_subject(ctx, request), transfers, ctx.classifier, ctx.config.display_timezone
    )


async def render_trades(ctx: AppContext, request: CommandRequest) -> str:
    trades = await ctx.client.get_token_trades(flow_params(request, ctx.config.list_limit))
    return format_trades(
        _flow_subject(ctx, request), trades, ctx.classifier, ctx.config.display_timezone
    )


RENDERERS: Dict[str, Renderer] = {
    "pnl": render_pnl,
    "report": render_report,
    "tokens": render_tokens,
    "nfts": render_nfts,
    "token_history": render_token_history,
    "holder_portfolio": render_holder_portfolio,
    "top_holders": render_top_holders,
    "price": render_price,
    "market": render_market,
    "pair": render_pair,
    "program": render_program,
    "program_tvl": render_program_tvl,
    "program_activity": render_program_activity,
    "transfers": render_transfers,
    "trades": render_trades,
}


async def run_command(ctx: AppContext, message, name: str, args, renderer: Renderer) -> None:
    try:
        request = parse_command(name, args, ctx.classifier)
    except (UsageError, UnknownSymbolError) as exc:
        await message.reply_text(user_message_for_error(exc), parse_mode=ParseMode.HTML)
        return

    ctx.logger.info("command_received", extra={"command": name, "subject": request.subject})
    try:
        text = await renderer(ctx, request)
    except Exception as exc:
        ctx.logger.exception(
            "command_failed", extra={"command": name, "subject": request.subject}
        )
        await message.reply_text(user_message_for_error(exc), parse_mode=ParseMode.HTML)
        return
    await send_paginated(message, text, ctx.config.message_max_length)


def make_command_handler(name: str, renderer: Renderer):
    async def handler(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        message = update.effective_message
        if message is None:
            return
        ctx = get_app_ctx(context)
        if ctx is None:
            await message.reply_text(STARTING_TEXT)
            return
        await run_command(ctx, message, name, context.args, renderer)

    handler.__name__ = f"cmd_{name}"
    return handler


async def cmd_start(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    if update.effective_message is None:
        return
    await update.effective_message.reply_text(
        f"{WELCOME_TEXT}\n{build_help_text()}", parse_mode=ParseMode.HTML
    )


async def cmd_help(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    if update.effective_message is None:
        return
    await update.effective_message.reply_text(build_help_text(), parse_mode=ParseMode.HTML)


async def on_error(update: object, context: ContextTypes.DEFAULT_TYPE) -> None:
    ctx = get_app_ctx(context)
    logger = ctx.logger if ctx else get_logger()
    logger.error("handler_error", exc_info=context.error)


def register_handlers(application: Application) -> None:
    application.add_handler(CommandHandler("start", cmd_start))
    application.add_handler(CommandHandler("help", cmd_help))
    for name, renderer in RENDERERS.items():
        application.add_handler(CommandHandler(name, make_command_handler(name, renderer)))

    application.add_error_handler(on_error)
