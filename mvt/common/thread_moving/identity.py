from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

import discord as dc

from mvt.utils import truncate

if TYPE_CHECKING:
    from mvt.utils import Account

# Discord rejects webhook usernames longer than this.
MAX_WEBHOOK_USERNAME_LENGTH = 80


@dataclass(frozen=True, slots=True)
class AuthorIdentity:
    username: str
    display_name: str
    avatar_url: str | None
    bot: bool

    @property
    def webhook_username(self) -> str:
        return truncate(
            f"{self.display_name} - ({self.username})", MAX_WEBHOOK_USERNAME_LENGTH
        )


def resolve_identity(author: Account) -> AuthorIdentity:
    """
    Pick the name and avatar to post as. Guild-specific overrides (nickname, server
    avatar) win over the global profile; an author without any avatar gets None,
    which leaves the webhook's own avatar in place.
    """
    display_name = author.global_name or author.name
    avatar = author.avatar
    if isinstance(author, dc.Member):
        display_name = author.nick or display_name
        avatar = author.guild_avatar or avatar
    return AuthorIdentity(
        username=author.name,
        display_name=display_name,
        avatar_url=avatar.url if avatar is not None else None,
        bot=author.bot,
    )
