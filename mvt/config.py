import sys

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Config(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="BOT_", env_file=".env", frozen=True)

    token: SecretStr
    sentry_dsn: SecretStr | None = None

    guild_id: int
    # Members holding this role are allowed to move threads.
    role_id: int


if "pytest" in sys.modules:
    Config.model_config["env_file"] = ".env.example"


def load_config() -> Config:
    # https://github.com/pydantic/pydantic-settings/issues/201
    return Config()  # pyright: ignore[reportCallIssue]
