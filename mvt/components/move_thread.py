from typing import TYPE_CHECKING, final

import discord as dc
from discord import app_commands
from discord.ext import commands
from loguru import logger

from mvt.common.thread_moving import migrate_thread
from mvt.errors import MigrationError, NoChannel, NotAllowed, UnsupportedContext
from mvt.utils import pretty_print_account

if TYPE_CHECKING:
    from mvt.bot import MigratorBot
    from mvt.common.thread_moving import SingleFlight
    from mvt.config import Config
    from mvt.utils import Account

NOT_A_FORUM_THREAD = "Invoke the command from a forum thread"
TARGET_NOT_A_FORUM = "Target channel is not a forum"


def can_move_threads(user: "Account", config: "Config") -> bool:
    return isinstance(user, dc.Member) and user.get_role(config.role_id) is not None


async def get_source_thread(interaction: dc.Interaction) -> dc.Thread:
    if (thread := interaction.channel) is None:
        raise NoChannel
    if (
        not isinstance(thread, dc.Thread)
        or thread.type is not dc.ChannelType.public_thread
    ):
        raise UnsupportedContext(NOT_A_FORUM_THREAD)
    if (parent := thread.parent) is None:
        # The parent isn't cached; ask Discord instead.
        try:
            parent = await interaction.client.fetch_channel(thread.parent_id)
        except (dc.NotFound, dc.Forbidden) as e:
            raise UnsupportedContext(NOT_A_FORUM_THREAD) from e
    if not isinstance(parent, dc.ForumChannel):
        raise UnsupportedContext(NOT_A_FORUM_THREAD)
    return thread


async def get_destination(
    channel: app_commands.AppCommandChannel | None,
) -> dc.ForumChannel:
    if channel is None or channel.type is not dc.ChannelType.forum:
        raise UnsupportedContext(TARGET_NOT_A_FORUM)
    destination = channel.resolve() or await channel.fetch()
    if not isinstance(destination, dc.ForumChannel):
        raise UnsupportedContext(TARGET_NOT_A_FORUM)
    return destination


async def move_thread(
    interaction: dc.Interaction,
    channel: app_commands.AppCommandChannel | None,
    *,
    config: "Config",
    guard: "SingleFlight",
) -> str:
    """
    Check that the member may move the current thread into `channel`, then move it.
    Every expected failure is raised as a MigrationError.
    """
    if not can_move_threads(interaction.user, config):
        raise NotAllowed
    source = await get_source_thread(interaction)
    destination = await get_destination(channel)

    async with guard.claim():
        logger.info(
            "{} is moving {} to {}",
            pretty_print_account(interaction.user),
            source.id,
            destination.id,
        )
        report = await migrate_thread(source, destination)

    return (
        f"{report.summary()} to {report.thread_mention} in {destination.mention}."
    )


@final
class MoveThread(commands.Cog):
    def __init__(self, bot: "MigratorBot") -> None:
        self.bot = bot

    @app_commands.command(name="mv", description="Move a thread to another channel")
    @app_commands.describe(
        channel="The target channel you want to move this thread to"
    )
    @app_commands.guild_only()
    async def mv(
        self,
        interaction: dc.Interaction,
        channel: app_commands.AppCommandChannel | None = None,
    ) -> None:
        # Moving a thread can take a while; acknowledge the interaction right away.
        await interaction.response.defer(ephemeral=True, thinking=True)
        try:
            status = await move_thread(
                interaction,
                channel,
                config=self.bot.config,
                guard=self.bot.migration_guard,
            )
        except MigrationError as e:
            logger.info(
                "{} failed to move {}: {}",
                pretty_print_account(interaction.user),
                interaction.channel_id,
                e,
            )
            status = str(e)
        await interaction.followup.send(
            f"{interaction.user.mention} {status}", ephemeral=True
        )


async def setup(bot: "MigratorBot") -> None:
    await bot.add_cog(MoveThread(bot))
