import asyncio
import logging

from alayeseke_bot.formatting import NFT_TITLE, PNL_TITLE, TOKEN_TITLE, unavailable_section
from alayeseke_bot.models import WalletNfts, WalletPnl, WalletTokens
from alayeseke_bot.report import ReportAggregator, gather_settled
from alayeseke_bot.vybe import VybeApiError

WALLET = "9xQeWvG816bUx9EPjHmaT23yvVM2ZWbrrpZb9PusVFin"

logger = logging.getLogger("test_report")


class FakeClient:
    def __init__(self, fail=(), delays=None):
        self.fail = set(fail)
        self.delays = delays or {}
        self.calls = []

    async def _maybe(self, name, value):
        self.calls.append(name)
        await asyncio.sleep(self.delays.get(name, 0))
        if name in self.fail:
            raise VybeApiError(500, f"{name} down")
        return value

    async def get_wallet_pnl(self, address, resolution="30d"):
        return await self._maybe(
            "pnl",
            WalletPnl.from_json({"summary": {"winRate": 40, "realizedPnlUsd": 10, "unrealizedPnlUsd": 5}}),
        )

    async def get_wallet_nfts(self, address, limit=10):
        return await self._maybe(
            "nfts",
            WalletNfts.from_json({"data": [{"name": "Mad Lads", "valueUsd": "1200", "totalItems": 2}]}),
        )

    async def get_wallet_tokens(self, address, *args, **kwargs):
        return await self._maybe(
            "tokens",
            WalletTokens.from_json({"data": [{"symbol": "JTO", "valueUsd": "40", "amount": "10"}]}),
        )


def build(client):
    return asyncio.run(ReportAggregator(client, logger).build_report(WALLET))


def test_all_sections_render():
    client = FakeClient()
    report = build(client)
    assert sorted(client.calls) == ["nfts", "pnl", "tokens"]
    assert report.failed == ()
    assert "Win rate: 40.00%" in report.pnl
    assert "Mad Lads" in report.nfts
    assert "JTO" in report.tokens


def test_pnl_failure_is_isolated():
    report = build(FakeClient(fail={"pnl"}))
    assert report.pnl == unavailable_section(PNL_TITLE)
    assert "Mad Lads" in report.nfts
    assert "JTO" in report.tokens
    assert report.failed == (PNL_TITLE,)


def test_all_failures_still_produce_a_report():
    report = build(FakeClient(fail={"pnl", "nfts", "tokens"}))
    assert report.sections() == (
        unavailable_section(PNL_TITLE),
        unavailable_section(NFT_TITLE),
        unavailable_section(TOKEN_TITLE),
    )
    assert "Wallet Report" in report.render()


def test_section_order_ignores_completion_order():
    client = FakeClient(delays={"pnl": 0.05, "nfts": 0.02, "tokens": 0})
    report = build(client)
    rendered = report.render()
    assert rendered.index(PNL_TITLE) < rendered.index(NFT_TITLE) < rendered.index(TOKEN_TITLE)


def test_fetches_run_concurrently():
    client = FakeClient(delays={"pnl": 0.2, "nfts": 0.2, "tokens": 0.2})

    async def _run():
        loop = asyncio.get_running_loop()
        start = loop.time()
        await ReportAggregator(client, logger).build_report(WALLET)
        return loop.time() - start

    assert asyncio.run(_run()) < 0.5


def test_gather_settled_keeps_input_order():
    async def ok(value, delay):
        await asyncio.sleep(delay)
        return value

    async def boom():
        raise ValueError("nope")

    async def _run():
        return await gather_settled(ok("a", 0.02), boom(), ok("c", 0))

    outcomes = asyncio.run(_run())
    assert [o.ok for o in outcomes] == [True, False, True]
    assert outcomes[0].value == "a"
    assert isinstance(outcomes[1].error, ValueError)
    assert outcomes[2].value == "c"



class MalformedNftClient(FakeClient):
    async def get_wallet_nfts(self, address, limit=10):
        self.calls.append("nfts")
        return None


def test_section_render_failure_is_isolated():
    report = build(MalformedNftClient())
    assert report.nfts == unavailable_section(NFT_TITLE)
    assert "Win rate: 40.00%" in report.pnl
    assert "JTO" in report.tokens
    assert report.failed == (NFT_TITLE,)
