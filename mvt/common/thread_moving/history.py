from __future__ import annotations

from typing import TYPE_CHECKING

import discord as dc
from loguru import logger

from mvt.errors import RetrievalFailed

if TYPE_CHECKING:
    from discord.abc import Messageable

# The maximum number of messages Discord returns per request.
PAGE_SIZE = 100

# Non-system-message types taken from the description of
# https://discordpy.readthedocs.io/en/stable/api.html#discord.Message.system_content.
# However, also include bot commands, despite them being system messages.
NON_SYSTEM_MESSAGE_TYPES = frozenset({
    dc.MessageType.default,
    dc.MessageType.reply,
    dc.MessageType.chat_input_command,
    dc.MessageType.context_menu_command,
})


def message_can_be_moved(message: dc.Message) -> bool:
    return message.type in NON_SYSTEM_MESSAGE_TYPES


async def fetch_history(channel: Messageable) -> list[dc.Message]:
    """
    Fetch every message in `channel` that wasn't sent by a bot (or a webhook), oldest
    first.

    Pages are requested backwards from the most recent message. Fetching stops at the
    first empty page; a failed request stops it too, keeping the messages fetched so
    far. RetrievalFailed is only raised when not even the first page could be fetched.
    """
    messages: list[dc.Message] = []
    before: dc.Message | None = None
    while True:
        try:
            # Pages are returned newest-first.
            page = [m async for m in channel.history(limit=PAGE_SIZE, before=before)]
        except dc.HTTPException as e:
            if before is None:
                raise RetrievalFailed(str(e)) from e
            logger.warning(
                "stopped fetching history of {} early after {} messages: {}",
                channel,
                len(messages),
                e,
            )
            break
        if not page:
            break
        messages.extend(m for m in page if not m.author.bot)
        before = page[-1]

    messages.reverse()
    return messages
