from __future__ import annotations

from typing import List, Optional

from telegram.constants import MessageLimit, ParseMode

TELEGRAM_MAX_LENGTH = int(MessageLimit.MAX_TEXT_LENGTH)


def paginate(text: str, max_length: int = TELEGRAM_MAX_LENGTH) -> List[str]:
    """Split ``text`` into chunks of at most ``max_length`` characters.

    Splits happen only between lines, so ``"\\n".join(chunks) == text`` for any
    text whose lines each fit. A single line longer than ``max_length`` is
    cut into fixed-size slices.
    """
    if max_length < 1:
        raise ValueError("max_length must be positive")
    if not text:
        return []

    chunks: List[str] = []
    current: Optional[List[str]] = None
    size = 0

    for line in text.split("\n"):
        if len(line) > max_length:
            if current is not None:
                chunks.append("\n".join(current))
                current = None
            for start in range(0, len(line), max_length):
                chunks.append(line[start:start + max_length])
            continue
        if current is None:
            current, size = [line], len(line)
        elif size + 1 + len(line) > max_length:
            chunks.append("\n".join(current))
            current, size = [line], len(line)
        else:
            current.append(line)
            size += 1 + len(line)

    if current is not None:
        chunks.append("\n".join(current))
    return chunks


async def send_paginated(message, text: str, max_length: int = TELEGRAM_MAX_LENGTH) -> int:
    """Reply with ``text`` one chunk at a time, in order. Returns the number of messages sent."""
    sent = 0
    for chunk in paginate(text, max_length):
        if not chunk.strip():
            continue
        await message.reply_text(
            chunk, parse_mode=ParseMode.HTML, disable_web_page_preview=True
        )
        sent += 1
    return sent
