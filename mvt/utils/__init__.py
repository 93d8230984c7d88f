from __future__ import annotations

from io import BytesIO

import discord as dc

from .attachments import MAX_ATTACHMENT_SIZE, attachment_client, rehost_attachments

__all__ = (
    "MAX_ATTACHMENT_SIZE",
    "Account",
    "attachment_client",
    "format_or_file",
    "pretty_print_account",
    "rehost_attachments",
    "truncate",
)

type Account = dc.User | dc.Member


def truncate(s: str, length: int, *, suffix: str = "…") -> str:
    if len(s) <= length:
        return s
    return s[: length - len(suffix)] + suffix


def format_or_file(
    message: str, *, template: str | None = None
) -> tuple[str, dc.File | None]:
    """
    Format `message` into `template`. If the result doesn't fit in a Discord message,
    the template is filled with an empty string instead and `message` is returned as
    a file.
    """
    if template is None:
        template = "{}"

    full_message = template.format(message)
    if len(full_message) > 2000:
        return template.format(""), dc.File(
            BytesIO(message.encode()), filename="content.md"
        )
    return full_message, None


def pretty_print_account(user: Account) -> str:
    return f"<{user.name} - {user.id}>"
