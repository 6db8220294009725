from __future__ import annotations

import json
import logging
from datetime import datetime, timezone

LOGGER_NAME = "alayeseke_bot"

# third-party loggers that only report warnings and above
QUIET_LOGGERS = ("telegram", "httpx", "aiohttp")

STANDARD_ATTRS = set(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {"message", "asctime"}


class JsonFormatter(logging.Formatter):
    """One JSON object per line; ``extra=`` fields become top-level keys."""

    def format(self, record: logging.LogRecord) -> str:
        data = {
            "time": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "event": record.getMessage(),
            "logger": record.name,
        }
        if record.exc_info:
            data["exc_info"] = self.formatException(record.exc_info)
        data.update(
            (key, value) for key, value in record.__dict__.items() if key not in STANDARD_ATTRS
        )
        # API payloads and exceptions may land in extra fields
        return json.dumps(data, ensure_ascii=True, default=repr)


def get_logger() -> logging.Logger:
    return logging.getLogger(LOGGER_NAME)


def setup_logging(level: str) -> logging.Logger:
    logger = get_logger()
    logger.setLevel(level)
    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    logger.handlers = [handler]
    logger.propagate = False

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    return logger
