from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, final

import discord as dc
import httpx
from loguru import logger

from .history import fetch_history, message_can_be_moved
from .identity import resolve_identity
from .webhooks import get_or_create_webhook, send_as
from mvt.errors import NoMessages, SendFailed
from mvt.utils import attachment_client, format_or_file, rehost_attachments, truncate

if TYPE_CHECKING:
    from collections.abc import Sequence

DEFAULT_THREAD_NAME = "Thread"
MAX_THREAD_NAME_LENGTH = 100
MAX_FILES_PER_MESSAGE = 10


@final
@dataclass(slots=True)
class MigrationReport:
    thread_id: int
    thread_name: str
    posted: int = 0
    skipped: int = 0
    skipped_attachments: int = 0

    @property
    def thread_mention(self) -> str:
        # The destination thread is rarely cached, so its mention is built by hand.
        return f"<#{self.thread_id}>"

    def summary(self) -> str:
        summary = f"Moved {self.posted} message{'s' * (self.posted != 1)}"
        if self.skipped:
            summary += f" (failed to move {self.skipped})"
        return summary


def _embeds_of(message: dc.Message) -> list[dc.Embed]:
    # Embeds with a URL are link previews, which Discord regenerates from the content.
    return [e for e in message.embeds if not e.url]


def _matching_tags(
    source: dc.Thread, destination: dc.ForumChannel
) -> Sequence[dc.ForumTag]:
    names = {tag.name.casefold() for tag in source.applied_tags}
    return [tag for tag in destination.available_tags if tag.name.casefold() in names]


async def _prepare(
    client: httpx.AsyncClient, message: dc.Message, *, template: str | None = None
) -> tuple[str, list[dc.File], int]:
    files, skipped = await rehost_attachments(client, message.attachments)
    content, file = format_or_file(message.content, template=template)
    if file:
        # Overly long content takes the place of the last attachment.
        kept = MAX_FILES_PER_MESSAGE - 1
        skipped += len(files[kept:])
        files = [*files[:kept], file]
    return content, files, skipped


async def _post_seed(
    client: httpx.AsyncClient,
    webhook: dc.Webhook,
    seed: dc.Message,
    *,
    thread_name: str,
    applied_tags: Sequence[dc.ForumTag],
) -> tuple[dc.WebhookMessage, int]:
    content, files, skipped = await _prepare(
        client, seed, template=f"{{}}\n||OP: {seed.author.mention}||"
    )
    try:
        msg = await send_as(
            webhook,
            resolve_identity(seed.author),
            content,
            files=files,
            embeds=_embeds_of(seed),
            thread_name=thread_name,
            applied_tags=applied_tags,
            suppress_mentions=True,
            wait=True,
        )
    # discord.py raises ValueError for payloads it refuses to send.
    except (dc.HTTPException, ValueError) as e:
        raise SendFailed(f"unable to send the first message ({e})") from e
    return msg, skipped


async def _replay(
    client: httpx.AsyncClient,
    webhook: dc.Webhook,
    message: dc.Message,
    thread: dc.abc.Snowflake,
    report: MigrationReport,
) -> None:
    content, files, skipped = await _prepare(client, message)
    report.skipped_attachments += skipped
    try:
        await send_as(
            webhook,
            resolve_identity(message.author),
            content,
            files=files,
            embeds=_embeds_of(message),
            thread=thread,
        )
    except (dc.HTTPException, ValueError) as e:
        report.skipped += 1
        logger.warning("failed to move message {}: {}", message.jump_url, e)
        return
    report.posted += 1


async def migrate_thread(
    source: dc.Thread, destination: dc.ForumChannel
) -> MigrationReport:
    """
    Recreate `source` as a new post in `destination`, re-posting every message
    through a webhook under its author's name and avatar.

    The first message must make it, as it creates the new post; the rest are moved
    on a best-effort basis and counted in the returned report. Nothing is rolled
    back if the migration fails partway through.
    """
    webhook = await get_or_create_webhook(destination)

    history = [m for m in await fetch_history(source) if message_can_be_moved(m)]
    if not history:
        raise NoMessages
    seed, *replies = history
    logger.info(
        "moving {} messages from {} to {}", len(history), source.id, destination.id
    )

    thread_name = truncate(source.name or DEFAULT_THREAD_NAME, MAX_THREAD_NAME_LENGTH)
    async with attachment_client() as client:
        seed_message, skipped_attachments = await _post_seed(
            client,
            webhook,
            seed,
            thread_name=thread_name,
            applied_tags=_matching_tags(source, destination),
        )
        # The seed message lives in the newly created post.
        report = MigrationReport(
            thread_id=seed_message.channel.id,
            thread_name=thread_name,
            posted=1,
            skipped_attachments=skipped_attachments,
        )

        thread = dc.Object(report.thread_id)
        for message in replies:
            await _replay(client, webhook, message, thread, report)

    logger.info(
        "moved {} to {}: {} posted, {} skipped, {} attachments skipped",
        source.id,
        report.thread_id,
        report.posted,
        report.skipped,
        report.skipped_attachments,
    )
    return report
