from .guard import SingleFlight
from .history import (
    NON_SYSTEM_MESSAGE_TYPES,
    PAGE_SIZE,
    fetch_history,
    message_can_be_moved,
)
from .identity import AuthorIdentity, resolve_identity
from .migration import DEFAULT_THREAD_NAME, MigrationReport, migrate_thread
from .webhooks import WEBHOOK_NAME, get_or_create_webhook, send_as

__all__ = (
    "DEFAULT_THREAD_NAME",
    "NON_SYSTEM_MESSAGE_TYPES",
    "PAGE_SIZE",
    "WEBHOOK_NAME",
    "AuthorIdentity",
    "MigrationReport",
    "SingleFlight",
    "fetch_history",
    "get_or_create_webhook",
    "message_can_be_moved",
    "migrate_thread",
    "resolve_identity",
    "send_as",
)
