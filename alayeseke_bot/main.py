from __future__ import annotations

import signal

import aiohttp
from dotenv import load_dotenv
from telegram.ext import ApplicationBuilder

from .addresses import AddressClassifier
from .bot import register_handlers
from .config import load_config
from .logger import setup_logging
from .lookup import LookupTableIndex
from .report import ReportAggregator
from .types import AppContext
from .vybe import VybeClient


def main() -> None:
    load_dotenv()
    config = load_config()
    logger = setup_logging(config.log_level)

    lookup = LookupTableIndex.load(
        config.known_programs_path, config.known_accounts_path, logger
    )
    classifier = AddressClassifier()

    async def post_init(application):
        timeout = aiohttp.ClientTimeout(total=config.vybe_timeout_sec)
        session = aiohttp.ClientSession(timeout=timeout)
        client = VybeClient(session, config, logger)
        app_ctx = AppContext(
            config=config,
            logger=logger,
            session=session,
            client=client,
            classifier=classifier,
            lookup=lookup,
            aggregator=ReportAggregator(client, logger, list_limit=config.list_limit),
        )
        application.bot_data["app_ctx"] = app_ctx
        logger.info(
            "bot_ready",
            extra={
                "vybe_base_url": config.vybe_base_url,
                "max_retries": config.retry.max_retries,
                "retry_base_delay_sec": config.retry.base_delay_sec,
                "known_programs": lookup.has_programs,
                "known_accounts": lookup.has_accounts,
            },
        )

    async def post_shutdown(application):
        app_ctx = application.bot_data.get("app_ctx")
        if app_ctx:
            await app_ctx.session.close()
            logger.info("bot_shutdown")

    application = (
        ApplicationBuilder()
        .token(config.bot_token)
        .post_init(post_init)
        .post_shutdown(post_shutdown)
        .build()
    )

    register_handlers(application)
    application.run_polling(stop_signals=(signal.SIGINT, signal.SIGTERM))


if __name__ == "__main__":
    main()
