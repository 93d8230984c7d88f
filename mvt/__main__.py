import asyncio
import sys
from contextlib import suppress

from loguru import logger
from pydantic import ValidationError

from mvt import log
from mvt.bot import MigratorBot
from mvt.config import Config, load_config


async def main(config: Config) -> None:
    async with MigratorBot(config) as bot:
        await bot.start(config.token.get_secret_value())


log.setup()
try:
    config = load_config()
except ValidationError as e:
    logger.error("invalid configuration: {}", e)
    sys.exit(1)
log.setup_sentry(config)

with suppress(KeyboardInterrupt):
    asyncio.run(main(config))
