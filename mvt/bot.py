from __future__ import annotations

import sys
from pathlib import Path
from typing import TYPE_CHECKING, Any, cast, final, override

import discord as dc
from discord.ext import commands
from loguru import logger

from mvt.common.thread_moving import SingleFlight
from mvt.errors import handle_error, interaction_error_handler

if TYPE_CHECKING:
    from mvt.config import Config


@final
class MigratorBot(commands.Bot):
    def __init__(self, config: Config) -> None:
        intents = dc.Intents.default()
        intents.members = True
        # Needed to read the content of the messages being moved.
        intents.message_content = True
        super().__init__(
            command_prefix=commands.when_mentioned,
            intents=intents,
            allowed_mentions=dc.AllowedMentions(everyone=False, roles=False),
        )

        self.tree.on_error = interaction_error_handler
        self.config = config
        # Only one thread may be moved at a time, across all guilds and channels.
        self.migration_guard = SingleFlight()
        self._commands_synced = False

    @override
    async def on_error(self, event_method: str, /, *args: Any, **kwargs: Any) -> None:
        handle_error(cast("BaseException", sys.exception()))

    @override
    async def setup_hook(self) -> None:
        for file in (Path(__file__).parent / "components").iterdir():
            if file.suffix == ".py" and not file.name.startswith("_"):
                await self.load_extension(f"mvt.components.{file.stem}")

    async def on_ready(self) -> None:
        logger.info("logged in as {}", self.user)
        if not self._commands_synced:
            await self.sync_commands()
            self._commands_synced = True

    async def sync_commands(self) -> None:
        """
        Register the command tree to the configured guild only, removing global
        registrations left behind by earlier deployments.
        """
        guild = dc.Object(self.config.guild_id)
        self.tree.copy_global_to(guild=guild)
        self.tree.clear_commands(guild=None)
        await self.tree.sync()
        synced = await self.tree.sync(guild=guild)
        logger.info(
            "synced {} to guild {}",
            ", ".join(f"/{command.name}" for command in synced),
            guild.id,
        )
