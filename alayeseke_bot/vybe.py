from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional
from urllib.parse import quote

import aiohttp

from .config import Config
from .models import (
    ActiveUsersPoint,
    BalancePoint,
    Candle,
    ProgramInfo,
    TokenInfo,
    TopHolder,
    Trade,
    Transfer,
    TvlPoint,
    WalletNfts,
    WalletPnl,
    WalletTokens,
    active_users_from_json,
    balance_history_from_json,
    candles_from_json,
    top_holders_from_json,
    trades_from_json,
    transfers_from_json,
    tvl_from_json,
)
from .retry import fetch_with_retry


class VybeApiError(Exception):
    def __init__(self, status: int, message: str = "", path: str = ""):
        super().__init__(f"status {status}: {message}")
        self.status = status
        self.message = message
        self.path = path


def _query(params: Mapping[str, Any]) -> Dict[str, str]:
    query: Dict[str, str] = {}
    for key, value in params.items():
        if value is None:
            continue
        if isinstance(value, bool):
            query[key] = "true" if value else "false"
        else:
            query[key] = str(value)
    return query


def _segment(value: str) -> str:
    return quote(value, safe="")


class VybeClient:
    """Async client for the Vybe analytics API.

    Each endpoint call is retried through ``fetch_with_retry`` using the
    configured policy; the API key is supplied once at construction.
    """

    def __init__(self, session: aiohttp.ClientSession, config: Config, logger):
        self.session = session
        self.logger = logger
        self.base_url = config.vybe_base_url
        self.retry_policy = config.retry
        self.headers = {"X-API-KEY": config.vybe_api_key, "Accept": "application/json"}

    async def _request(self, path: str, params: Optional[Mapping[str, Any]] = None) -> Any:
        url = f"{self.base_url}{path}"
        async with self.session.get(url, params=_query(params or {}), headers=self.headers) as resp:
            if resp.status != 200:
                text = await resp.text()
                raise VybeApiError(resp.status, text[:200], path)
            return await resp.json(content_type=None)

    async def fetch_json(self, path: str, params: Optional[Mapping[str, Any]] = None) -> Any:
        return await fetch_with_retry(
            lambda: self._request(path, params),
            self.retry_policy,
            logger=self.logger,
            label=path,
        )

    async def get_wallet_pnl(self, address: str, resolution: str = "30d") -> WalletPnl:
        data = await self.fetch_json(
            f"/account/pnl/{_segment(address)}", {"resolution": resolution}
        )
        return WalletPnl.from_json(data)

    async def get_wallet_tokens(
        self,
        address: str,
        min_value: float = 0,
        max_value: float = 1_000_000,
        sort: str = "valueUsd",
    ) -> WalletTokens:
        data = await self.fetch_json(
            f"/account/token-balance/{_segment(address)}",
            {
                "minAssetValue": min_value,
                "maxAssetValue": max_value,
                "includeNoPriceBalance": True,
                "sortByDesc": sort,
            },
        )
        return WalletTokens.from_json(data)

    async def get_wallet_nfts(self, address: str, limit: int = 10) -> WalletNfts:
        data = await self.fetch_json(
            f"/account/nft-balance/{_segment(address)}",
            {"includeNoPriceBalance": True, "limit": limit},
        )
        return WalletNfts.from_json(data)

    async def get_wallet_token_history(self, address: str, days: int = 7) -> List[BalancePoint]:
        data = await self.fetch_json(
            f"/account/token-balance-ts/{_segment(address)}", {"days": days}
        )
        return balance_history_from_json(data)

    async def get_top_holders(self, mint: str, limit: int = 10) -> List[TopHolder]:
        data = await self.fetch_json(
            f"/token/{_segment(mint)}/top-holders",
            {"limit": limit, "sortByAsc": "rank"},
        )
        return top_holders_from_json(data)

    async def get_token(self, mint: str) -> TokenInfo:
        data = await self.fetch_json(f"/token/{_segment(mint)}")
        return TokenInfo.from_json(data)

    async def get_token_ohlcv(
        self,
        mint: str,
        resolution: str,
        time_start: Optional[int] = None,
        time_end: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> List[Candle]:
        data = await self.fetch_json(
            f"/price/{_segment(mint)}/token-ohlcv",
            {"resolution": resolution, "timeStart": time_start, "timeEnd": time_end, "limit": limit},
        )
        return candles_from_json(data)

    async def get_program(self, program_id: str) -> ProgramInfo:
        data = await self.fetch_json(f"/program/{_segment(program_id)}")
        return ProgramInfo.from_json(data)

    async def get_program_tvl(self, program_id: str, resolution: str = "30d") -> List[TvlPoint]:
        data = await self.fetch_json(
            f"/program/{_segment(program_id)}/tvl", {"resolution": resolution}
        )
        return tvl_from_json(data)

    async def get_program_active_users(
        self, program_id: str, range_: str = "7d"
    ) -> List[ActiveUsersPoint]:
        data = await self.fetch_json(
            f"/program/{_segment(program_id)}/active-users-ts", {"range": range_}
        )
        return active_users_from_json(data)

    async def get_market_ohlcv(
        self,
        market_id: str,
        resolution: str,
        time_start: Optional[int] = None,
        time_end: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> List[Candle]:
        data = await self.fetch_json(
            f"/price/{_segment(market_id)}/market-ohlcv",
            {"resolution": resolution, "timeStart": time_start, "timeEnd": time_end, "limit": limit},
        )
        return candles_from_json(data)

    async def get_pair_ohlcv(
        self,
        base_mint: str,
        quote_mint: str,
        resolution: str,
        time_start: Optional[int] = None,
        time_end: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> List[Candle]:
        data = await self.fetch_json(
            f"/price/{_segment(base_mint)}+{_segment(quote_mint)}/pair-ohlcv",
            {"resolution": resolution, "timeStart": time_start, "timeEnd": time_end, "limit": limit},
        )
        return candles_from_json(data)

    async def get_token_transfers(self, params: Mapping[str, Any]) -> List[Transfer]:
        data = await self.fetch_json("/token/transfers", params)
        return transfers_from_json(data)

    async def get_token_trades(self, params: Mapping[str, Any]) -> List[Trade]:
        data = await self.fetch_json("/token/trades", params)
        return trades_from_json(data)
