import telegram
import os
import logging
import asyncio
from typing import List, Optional, Tuple

from curator.interfaces import Publisher

logger = logging.getLogger(__name__)

MAX_MESSAGE_LENGTH = 4096


def split_message(text: str, limit: int = MAX_MESSAGE_LENGTH) -> List[str]:
    """
    Break text into chunks of at most limit characters, preferring paragraph
    and then line boundaries.
    """
    text = text.replace('\u200b', '').replace('\ufeff', '')
    chunks = []
    remaining = text.strip()
    while len(remaining) > limit:
        cut = remaining.rfind('\n\n', 0, limit)
        if cut <= 0:
            cut = remaining.rfind('\n', 0, limit)
        if cut <= 0:
            cut = limit
        chunks.append(remaining[:cut].rstrip())
        remaining = remaining[cut:].lstrip()
    if remaining:
        chunks.append(remaining)
    return chunks


class TelegramPublisher(Publisher):
    def __init__(self, bot_configs: Optional[List[Tuple[telegram.Bot, List[str]]]] = None,
                 delay: float = 3.0, max_retries: int = 3):
        """
        Sends digests to Telegram chats. Supports:
        1. Single bot + one or more groups (TELEGRAM_BOT_TOKEN / TELEGRAM_CHAT_ID)
        2. Multiple bots with their respective groups (TELEGRAM_BOT_TOKEN_n / TELEGRAM_CHAT_IDS_n)
        """
        self.delay = delay
        self.max_retries = max_retries
        if bot_configs is not None:
            self.bot_configs = bot_configs
        else:
            self.bot_configs = self._load_numbered_bots() or self._load_simple_config()
        if not self.bot_configs:
            logger.warning("No Telegram credentials found. Publishing will fail.")

    def _load_numbered_bots(self) -> List[Tuple[telegram.Bot, List[str]]]:
        configs = []
        bot_num = 1
        while True:
            token = os.getenv(f"TELEGRAM_BOT_TOKEN_{bot_num}")
            if not token:
                break
            chat_ids_str = os.getenv(f"TELEGRAM_CHAT_IDS_{bot_num}")
            if not chat_ids_str:
                logger.warning(f"TELEGRAM_BOT_TOKEN_{bot_num} found but TELEGRAM_CHAT_IDS_{bot_num} is missing. Skipping.")
                bot_num += 1
                continue
            chat_ids = [cid.strip() for cid in chat_ids_str.split(',') if cid.strip()]
            if chat_ids:
                configs.append((telegram.Bot(token=token), chat_ids))
            bot_num += 1
        return configs

    def _load_simple_config(self) -> List[Tuple[telegram.Bot, List[str]]]:
        token = os.getenv("TELEGRAM_BOT_TOKEN")
        chat_id_str = os.getenv("TELEGRAM_CHAT_ID")
        if not token or not chat_id_str:
            return []
        chat_ids = [cid.strip() for cid in chat_id_str.split(',') if cid.strip()]
        if not chat_ids:
            return []
        return [(telegram.Bot(token=token), chat_ids)]

    async def _send(self, bot: telegram.Bot, chat_id: str, text: str):
        for attempt in range(self.max_retries):
            try:
                await bot.send_message(
                    chat_id=chat_id,
                    text=text,
                    disable_web_page_preview=True,
                )
                return
            except telegram.error.RetryAfter as e:
                if attempt == self.max_retries - 1:
                    raise
                retry_after = e.retry_after
                wait_time = retry_after.total_seconds() if hasattr(retry_after, "total_seconds") else retry_after
                logger.warning(f"Rate limit hit. Waiting {wait_time}s before retry {attempt + 1}/{self.max_retries}...")
                await asyncio.sleep(wait_time + 1)

    async def publish(self, markdown: str) -> bool:
        """
        Send the digest to every configured chat. Succeeds when at least one chat
        received all of it.
        """
        if not self.bot_configs:
            logger.error("No Telegram bots configured.")
            return False

        chunks = split_message(markdown)
        if not chunks:
            logger.error("Digest is empty, nothing to publish.")
            return False

        total_groups = sum(len(chat_ids) for _, chat_ids in self.bot_configs)
        delivered = 0
        for bot_idx, (bot, chat_ids) in enumerate(self.bot_configs, 1):
            for chat_id in chat_ids:
                try:
                    for chunk in chunks:
                        await self._send(bot, chat_id, chunk)
                        # Telegram allows about one message per second per chat
                        await asyncio.sleep(self.delay)
                    delivered += 1
                    logger.info(f"Published digest to bot {bot_idx}, group {chat_id}")
                except telegram.error.TelegramError as e:
                    logger.error(f"Error publishing to bot {bot_idx}, group {chat_id}: {e}")

        if delivered:
            logger.info(f"Digest published to {delivered}/{total_groups} group(s)")
        else:
            logger.error("Digest failed to publish to any group")
        return delivered > 0
