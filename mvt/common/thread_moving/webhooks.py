from __future__ import annotations

from typing import TYPE_CHECKING, Literal, overload

import discord as dc
from loguru import logger

from mvt.errors import WebhookCreationFailed

if TYPE_CHECKING:
    from collections.abc import Sequence

    from .identity import AuthorIdentity

# Webhooks are looked up by this name before creating a new one, so that every
# migration into a channel reuses the same webhook.
WEBHOOK_NAME = "mvt-migrator"


async def get_or_create_webhook(
    channel: dc.ForumChannel | dc.TextChannel, name: str = WEBHOOK_NAME
) -> dc.Webhook:
    try:
        for webhook in await channel.webhooks():
            if webhook.name != name:
                continue
            if webhook.token is not None:
                return webhook
            # Webhooks created by other applications come without a token and can't
            # be used to send messages.
            logger.info("deleting unusable webhook {} in {}", webhook.id, channel)
            await webhook.delete()

        logger.info("creating {!r} webhook in {}", name, channel)
        return await channel.create_webhook(name=name)
    except dc.HTTPException as e:
        raise WebhookCreationFailed(str(e)) from e


@overload
async def send_as(
    webhook: dc.Webhook,
    identity: AuthorIdentity,
    content: str,
    *,
    files: Sequence[dc.File] = ...,
    embeds: Sequence[dc.Embed] = ...,
    thread: dc.abc.Snowflake = ...,
    thread_name: str = ...,
    applied_tags: Sequence[dc.ForumTag] = ...,
    suppress_mentions: bool = ...,
    wait: Literal[True],
) -> dc.WebhookMessage: ...


@overload
async def send_as(
    webhook: dc.Webhook,
    identity: AuthorIdentity,
    content: str,
    *,
    files: Sequence[dc.File] = ...,
    embeds: Sequence[dc.Embed] = ...,
    thread: dc.abc.Snowflake = ...,
    thread_name: str = ...,
    applied_tags: Sequence[dc.ForumTag] = ...,
    suppress_mentions: bool = ...,
    wait: Literal[False] = False,
) -> None: ...


async def send_as(  # noqa: PLR0913
    webhook: dc.Webhook,
    identity: AuthorIdentity,
    content: str,
    *,
    files: Sequence[dc.File] = (),
    embeds: Sequence[dc.Embed] = (),
    thread: dc.abc.Snowflake = dc.utils.MISSING,
    thread_name: str = dc.utils.MISSING,
    applied_tags: Sequence[dc.ForumTag] = dc.utils.MISSING,
    suppress_mentions: bool = False,
    wait: bool = False,
) -> dc.WebhookMessage | None:
    """
    Post `content` through `webhook` under `identity`.

    Pass `thread_name` to start a new thread (in a forum channel); with `wait=True`,
    the returned message lives in that thread. Pass `thread` to post into an existing
    one. Without `suppress_mentions`, the bot's default allowed mentions apply.

    Raises dc.HTTPException when Discord rejects the message.
    """
    return await webhook.send(
        content=content,
        username=identity.webhook_username,
        avatar_url=identity.avatar_url or dc.utils.MISSING,
        allowed_mentions=(
            dc.AllowedMentions.none() if suppress_mentions else dc.utils.MISSING
        ),
        files=list(files),
        embeds=list(embeds),
        thread=thread,
        thread_name=thread_name,
        applied_tags=(
            list(applied_tags) if applied_tags is not dc.utils.MISSING else applied_tags
        ),
        wait=wait,
    )
