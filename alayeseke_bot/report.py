from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generic, List, Optional, Tuple, TypeVar

from .formatting import (
    NFT_TITLE,
    PNL_TITLE,
    TOKEN_TITLE,
    format_nft_section,
    format_pnl_section,
    format_token_section,
    truncate_address,
    unavailable_section,
)
from .utils import escape_html

T = TypeVar("T")


@dataclass(frozen=True)
class Outcome(Generic[T]):
    value: Optional[T] = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None


async def gather_settled(*aws: Awaitable[Any]) -> List[Outcome]:
    """Run awaitables concurrently; one Outcome per input, in input order.

    A failing task never cancels or hides the others. Cancellation of the
    caller is still propagated.
    """
    results = await asyncio.gather(*aws, return_exceptions=True)
    outcomes: List[Outcome] = []
    for result in results:
        if isinstance(result, asyncio.CancelledError):
            raise result
        if isinstance(result, BaseException):
            outcomes.append(Outcome(error=result))
        else:
            outcomes.append(Outcome(value=result))
    return outcomes


@dataclass(frozen=True)
class WalletReport:
    address: str
    pnl: str
    nfts: str
    tokens: str
    failed: Tuple[str, ...] = ()

    def sections(self) -> Tuple[str, str, str]:
        return (self.pnl, self.nfts, self.tokens)

    def render(self) -> str:
        header = f"📋 <b>Wallet Report</b> <code>{escape_html(truncate_address(self.address))}</code>"
        return "\n\n".join((header,) + self.sections())


class ReportAggregator:
    """Builds the three-section wallet report with per-section failure isolation."""

    def __init__(self, client, logger, list_limit: int = 5, pnl_resolution: str = "30d"):
        self.client = client
        self.logger = logger
        self.list_limit = list_limit
        self.pnl_resolution = pnl_resolution

    async def build_report(self, address: str) -> WalletReport:
        sections: List[Tuple[str, Callable[[], Awaitable[Any]], Callable[[Any], str]]] = [
            (
                PNL_TITLE,
                lambda: self.client.get_wallet_pnl(address, self.pnl_resolution),
                lambda data: format_pnl_section(data, self.list_limit),
            ),
            (
                NFT_TITLE,
                lambda: self.client.get_wallet_nfts(address, self.list_limit),
                lambda data: format_nft_section(data, self.list_limit),
            ),
            (
                TOKEN_TITLE,
                lambda: self.client.get_wallet_tokens(address),
                lambda data: format_token_section(data, self.list_limit),
            ),
        ]
        outcomes = await gather_settled(*(fetch() for _title, fetch, _fmt in sections))

        rendered: List[str] = []
        failed: List[str] = []
        for (title, _fetch, fmt), outcome in zip(sections, outcomes):
            error = outcome.error
            if outcome.ok:
                try:
                    rendered.append(fmt(outcome.value))
                    continue
                except Exception as exc:
                    error = exc
            failed.append(title)
            self.logger.warning(
                "report_section_failed",
                extra={"section": title, "address": address, "error": repr(error)},
            )
            rendered.append(unavailable_section(title))

        if failed:
            self.logger.info(
                "report_degraded", extra={"address": address, "failed_sections": failed}
            )
        return WalletReport(address, rendered[0], rendered[1], rendered[2], tuple(failed))
