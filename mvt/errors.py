from typing import ClassVar, override

import discord as dc
from loguru import logger


def handle_error(error: BaseException) -> None:
    logger.exception(error)
    for note in getattr(error, "__notes__", []):
        logger.error(note)
    if isinstance(error, dc.app_commands.CommandInvokeError):
        handle_error(error.original)


async def interaction_error_handler(
    interaction: dc.Interaction, error: dc.app_commands.AppCommandError, /
) -> None:
    if isinstance(error, dc.app_commands.CommandNotFound):
        # Commands registered by an older version of the bot; not ours to answer.
        logger.debug("ignoring unknown command {!r}", error.name)
        return
    content = f"{interaction.user.mention} Something went wrong :("
    if not interaction.response.is_done():
        await interaction.response.send_message(content, ephemeral=True)
    else:
        await interaction.followup.send(content, ephemeral=True)
    handle_error(error)


class MigrationError(Exception):
    """
    Base class of every expected failure of a thread migration. These are never
    reported as errors: str() of the exception is shown to the invoking member.
    """

    summary: ClassVar[str] = "Unable to move the thread"

    def __init__(self, reason: str | None = None) -> None:
        super().__init__(reason)
        self.reason = reason

    @override
    def __str__(self) -> str:
        if self.reason:
            return f"{self.summary}: {self.reason}"
        return self.summary


class NoChannel(MigrationError):
    summary = "No channel found"


class NoMessages(MigrationError):
    summary = "No messages found"


class RetrievalFailed(MigrationError):
    summary = "Unable to retrieve the messages"


class SendFailed(MigrationError):
    summary = "Unable to send the message"


class WebhookCreationFailed(MigrationError):
    summary = "Unable to create the webhook"


class NotAllowed(MigrationError):
    summary = "Not allowed"


class AlreadyProcessing(MigrationError):
    summary = "Already processing"


class UnsupportedContext(MigrationError):
    """The command was used outside a forum thread, or aimed at a non-forum."""

    summary = "Unsupported channel"

    @override
    def __str__(self) -> str:
        return self.reason or self.summary
