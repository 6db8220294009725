import asyncio
import logging
from types import SimpleNamespace

from alayeseke_bot.addresses import AddressClassifier
from alayeseke_bot.bot import RENDERERS, build_help_text, on_error, render_top_holders, run_command
from alayeseke_bot.config import Config
from alayeseke_bot.logger import get_logger
from alayeseke_bot.lookup import LookupTableIndex
from alayeseke_bot.models import TopHolder, WalletTokens
from alayeseke_bot.report import ReportAggregator
from alayeseke_bot.types import AppContext, CommandRequest
from alayeseke_bot.vybe import VybeApiError

WALLET = "9xQeWvG816bUx9EPjHmaT23yvVM2ZWbrrpZb9PusVFin"
EXCHANGE = "5Q544fKrFoe6tsEbD7S8EmxGTJYAKtTVhAW5Q5pge4j1"
HOLDER = "7dHbWXmci3dT8UFYWYZweBLXgycu7Y3iL6trKn1Y7ARj"
BONK = "DezXAZ8z7PnrnRJjz3wXBoRgixCa6xjnB7YaB1pPB263"


class FakeMessage:
    def __init__(self):
        self.replies = []

    async def reply_text(self, text, **kwargs):
        self.replies.append(text)


class FakeClient:
    def __init__(self, tokens_error=None):
        self.calls = []
        self.tokens_error = tokens_error

    async def get_wallet_tokens(self, address, *args, **kwargs):
        self.calls.append(("tokens", address))
        if self.tokens_error is not None:
            raise self.tokens_error
        return WalletTokens.from_json({"data": [], "solBalance": "2", "solValueUsd": "300"})

    async def get_top_holders(self, mint, limit):
        self.calls.append(("holders", mint))
        return [
            TopHolder.from_json({"rank": 1, "ownerAddress": EXCHANGE, "percentageOfSupplyHeld": 20}),
            TopHolder.from_json({"rank": 2, "ownerAddress": HOLDER, "percentageOfSupplyHeld": 5}),
        ]


def make_ctx(client, lookup=None, **config_overrides):
    config = Config(bot_token="t", vybe_api_key="k", holder_portfolio_delay_sec=0, **config_overrides)
    logger = logging.getLogger("test_bot")
    return AppContext(
        config=config,
        logger=logger,
        session=None,
        client=client,
        classifier=AddressClassifier(),
        lookup=lookup or LookupTableIndex(),
        aggregator=ReportAggregator(client, logger),
    )


def test_usage_error_replies_without_api_call():
    client = FakeClient()
    message = FakeMessage()
    asyncio.run(run_command(make_ctx(client), message, "tokens", [], RENDERERS["tokens"]))
    assert client.calls == []
    assert message.replies and "Usage" in message.replies[0]


def test_unknown_symbol_replies_without_api_call():
    client = FakeClient()
    message = FakeMessage()
    asyncio.run(run_command(make_ctx(client), message, "top_holders", ["XYZXYZ"], RENDERERS["top_holders"]))
    assert client.calls == []
    assert "Unknown token" in message.replies[0]


def test_upstream_error_is_mapped_not_leaked():
    client = FakeClient(tokens_error=VybeApiError(403, "invalid api key abc123"))
    message = FakeMessage()
    asyncio.run(run_command(make_ctx(client), message, "tokens", [WALLET], RENDERERS["tokens"]))
    assert len(message.replies) == 1
    assert "credentials" in message.replies[0]
    assert "abc123" not in message.replies[0]


def test_long_reply_is_paginated():
    client = FakeClient()
    message = FakeMessage()
    ctx = make_ctx(client, message_max_length=60)
    asyncio.run(run_command(ctx, message, "tokens", [WALLET], RENDERERS["tokens"]))
    assert len(message.replies) > 1
    assert all(len(reply) <= 60 for reply in message.replies)


def test_top_holders_excludes_known_accounts():
    client = FakeClient()
    lookup = LookupTableIndex(accounts=frozenset({EXCHANGE}))
    ctx = make_ctx(client, lookup=lookup)
    request = CommandRequest(name="top_holders", raw_args="bonk", subject="bonk", address=BONK)
    text = asyncio.run(render_top_holders(ctx, request))
    assert ("tokens", EXCHANGE) not in client.calls
    assert ("tokens", HOLDER) in client.calls
    assert "Known exchange/protocol accounts hidden: 1" in text
    assert "BONK" in text


def test_top_holders_tolerates_portfolio_failures():
    client = FakeClient(tokens_error=VybeApiError(500))
    ctx = make_ctx(client)
    request = CommandRequest(name="top_holders", raw_args="bonk", subject="bonk", address=BONK)
    text = asyncio.run(render_top_holders(ctx, request))
    assert text.count("Portfolio: unavailable") == 2


def test_help_lists_every_command():
    text = build_help_text()
    for name in RENDERERS:
        assert f"/{name}" in text


class RecordingHandler(logging.Handler):
    def __init__(self):
        super().__init__()
        self.records = []

    def emit(self, record):
        self.records.append(record)


def test_error_handler_logs_before_startup_finishes():
    handler = RecordingHandler()
    logger = get_logger()
    logger.addHandler(handler)
    try:
        context = SimpleNamespace(
            application=SimpleNamespace(bot_data={}), error=RuntimeError("boom")
        )
        asyncio.run(on_error(None, context))
    finally:
        logger.removeHandler(handler)

    assert [record.getMessage() for record in handler.records] == ["handler_error"]
    assert handler.records[0].exc_info[1] is context.error
