from __future__ import annotations

from dataclasses import dataclass, field
import os

from .retry import RetryPolicy

DATA_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "data")


@dataclass(frozen=True)
class Config:
    bot_token: str
    vybe_api_key: str
    vybe_base_url: str = "https://api.vybenetwork.xyz"
    vybe_timeout_sec: int = 15
    retry: RetryPolicy = field(default_factory=RetryPolicy)
    known_programs_path: str = os.path.join(DATA_DIR, "known_programs.json")
    known_accounts_path: str = os.path.join(DATA_DIR, "known_accounts.json")
    top_holders_limit: int = 10
    holder_portfolio_delay_sec: float = 0.5
    ohlcv_candles: int = 7
    list_limit: int = 10
    message_max_length: int = 4096
    display_timezone: str = "UTC"
    log_level: str = "INFO"


def load_config() -> Config:
    bot_token = os.getenv("TELEGRAM_TOKEN", os.getenv("BOT_TOKEN", "")).strip()
    if not bot_token:
        raise RuntimeError("TELEGRAM_TOKEN is required")
    vybe_api_key = os.getenv("VYBE_API_KEY", "").strip()
    if not vybe_api_key:
        raise RuntimeError("VYBE_API_KEY is required")

    vybe_base_url = os.getenv("VYBE_BASE_URL", "https://api.vybenetwork.xyz").strip().rstrip("/")
    vybe_timeout_sec = int(os.getenv("VYBE_TIMEOUT_SEC", "15"))

    retry = RetryPolicy(
        max_retries=max(0, int(os.getenv("RETRY_MAX_RETRIES", "3"))),
        base_delay_sec=float(os.getenv("RETRY_BASE_DELAY_MS", "1000")) / 1000.0,
    )

    known_programs_path = os.getenv("KNOWN_PROGRAMS_PATH", "").strip()
    if not known_programs_path:
        known_programs_path = os.path.join(DATA_DIR, "known_programs.json")
    known_accounts_path = os.getenv("KNOWN_ACCOUNTS_PATH", "").strip()
    if not known_accounts_path:
        known_accounts_path = os.path.join(DATA_DIR, "known_accounts.json")

    top_holders_limit = int(os.getenv("TOP_HOLDERS_LIMIT", "10"))
    holder_portfolio_delay_sec = float(os.getenv("HOLDER_PORTFOLIO_DELAY_SEC", "0.5"))
    ohlcv_candles = int(os.getenv("OHLCV_CANDLES", "7"))
    list_limit = int(os.getenv("LIST_LIMIT", "10"))
    message_max_length = int(os.getenv("MESSAGE_MAX_LENGTH", "4096"))
    display_timezone = os.getenv("DISPLAY_TIMEZONE", "UTC").strip()
    log_level = os.getenv("LOG_LEVEL", "INFO").upper()

    return Config(
        bot_token=bot_token,
        vybe_api_key=vybe_api_key,
        vybe_base_url=vybe_base_url,
        vybe_timeout_sec=vybe_timeout_sec,
        retry=retry,
        known_programs_path=known_programs_path,
        known_accounts_path=known_accounts_path,
        top_holders_limit=top_holders_limit,
        holder_portfolio_delay_sec=holder_portfolio_delay_sec,
        ohlcv_candles=ohlcv_candles,
        list_limit=list_limit,
        message_max_length=message_max_length,
        display_timezone=display_timezone,
        log_level=log_level,
    )
