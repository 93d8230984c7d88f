from .config import bot_env, config

__all__ = ("bot_env", "config")
