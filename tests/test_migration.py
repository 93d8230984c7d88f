from __future__ import annotations

from io import BytesIO
from typing import TYPE_CHECKING, Any
from unittest.mock import AsyncMock, Mock

import discord as dc
import pytest

from tests.fixtures.discord import (
    THREAD_ID,
    http_error,
    spawn_author,
    spawn_forum,
    spawn_message,
    spawn_thread,
    spawn_webhook,
)

from mvt.common.thread_moving import (
    DEFAULT_THREAD_NAME,
    WEBHOOK_NAME,
    MigrationReport,
    migrate_thread,
)
from mvt.errors import NoMessages, SendFailed

if TYPE_CHECKING:
    from unittest.mock import _Call


def sent_messages(webhook: dc.Webhook) -> list[dict[str, Any]]:
    calls: list[_Call] = webhook.send.await_args_list
    return [call.kwargs for call in calls]


@pytest.mark.asyncio
async def test_thread_is_moved() -> None:
    op = spawn_author("alice", nick="Ally")
    helper = spawn_author("bob", global_name="Bob")
    messages = [
        spawn_message("My build fails, @everyone help", author=op),
        spawn_message("Which version?", author=helper),
        spawn_message("1.2.3", author=op),
    ]
    thread = spawn_thread([messages[::-1]], name="Build failure")
    webhook = spawn_webhook()
    forum = spawn_forum(created_webhook=webhook)

    report = await migrate_thread(thread, forum)

    forum.create_webhook.assert_awaited_once_with(name=WEBHOOK_NAME)
    seed, *replies = sent_messages(webhook)
    assert seed["content"] == (
        f"My build fails, @everyone help\n||OP: <@{op.id}>||"
    )
    assert seed["thread_name"] == "Build failure"
    assert seed["username"] == "Ally - (alice)"
    assert seed["wait"] is True
    mentions = seed["allowed_mentions"]
    assert not (mentions.everyone or mentions.users or mentions.roles)

    assert [reply["content"] for reply in replies] == ["Which version?", "1.2.3"]
    assert [reply["username"] for reply in replies] == [
        "Bob - (bob)",
        "Ally - (alice)",
    ]
    for reply in replies:
        assert reply["thread"].id == THREAD_ID
        assert reply["thread_name"] is dc.utils.MISSING
        assert reply["allowed_mentions"] is dc.utils.MISSING

    assert report == MigrationReport(
        thread_id=THREAD_ID, thread_name="Build failure", posted=3
    )
    assert report.thread_mention == f"<#{THREAD_ID}>"


@pytest.mark.asyncio
async def test_existing_webhook_is_used() -> None:
    webhook = spawn_webhook()
    forum = spawn_forum([webhook])
    thread = spawn_thread([[spawn_message("hi")]])

    await migrate_thread(thread, forum)

    forum.create_webhook.assert_not_awaited()
    assert webhook.send.await_count == 1


@pytest.mark.asyncio
async def test_no_messages() -> None:
    webhook = spawn_webhook()
    forum = spawn_forum(created_webhook=webhook)
    thread = spawn_thread([])

    with pytest.raises(NoMessages, match="No messages found"):
        await migrate_thread(thread, forum)
    webhook.send.assert_not_awaited()


@pytest.mark.asyncio
async def test_only_bot_and_system_messages() -> None:
    webhook = spawn_webhook()
    forum = spawn_forum([webhook])
    thread = spawn_thread([
        [
            spawn_message("beep", author=spawn_author("robot", bot=True)),
            spawn_message(type=dc.MessageType.pins_add),
        ]
    ])

    with pytest.raises(NoMessages):
        await migrate_thread(thread, forum)
    webhook.send.assert_not_awaited()


@pytest.mark.asyncio
async def test_system_messages_are_skipped() -> None:
    webhook = spawn_webhook()
    forum = spawn_forum([webhook])
    messages = [
        spawn_message("question"),
        spawn_message(type=dc.MessageType.pins_add),
        spawn_message("answer"),
    ]
    thread = spawn_thread([messages[::-1]])

    report = await migrate_thread(thread, forum)

    assert [m["content"] for m in sent_messages(webhook)][1:] == ["answer"]
    assert report.posted == 2


@pytest.mark.asyncio
async def test_seed_failure_is_fatal() -> None:
    webhook = spawn_webhook()
    webhook.send = AsyncMock(side_effect=http_error(400))
    forum = spawn_forum([webhook])
    thread = spawn_thread([[spawn_message("b"), spawn_message("a")]])

    with pytest.raises(SendFailed, match="Unable to send the message"):
        await migrate_thread(thread, forum)
    assert webhook.send.await_count == 1


@pytest.mark.asyncio
async def test_reply_failures_are_skipped() -> None:
    webhook = spawn_webhook()
    original_send = webhook.send.side_effect

    async def send(**kwargs: Any) -> dc.WebhookMessage | None:
        if kwargs["content"] == "broken":
            raise http_error(400)
        return await original_send(**kwargs)

    webhook.send = AsyncMock(side_effect=send)
    forum = spawn_forum([webhook])
    messages = [spawn_message("op"), spawn_message("broken"), spawn_message("fine")]
    thread = spawn_thread([messages[::-1]])

    report = await migrate_thread(thread, forum)

    assert webhook.send.await_count == 3
    assert report.posted == 2
    assert report.skipped == 1
    assert report.summary() == "Moved 2 messages (failed to move 1)"


@pytest.mark.asyncio
async def test_unnamed_thread_gets_default_name() -> None:
    webhook = spawn_webhook()
    thread = spawn_thread([[spawn_message("hi")]], name=None)

    report = await migrate_thread(thread, spawn_forum([webhook]))

    assert sent_messages(webhook)[0]["thread_name"] == DEFAULT_THREAD_NAME
    assert report.thread_name == DEFAULT_THREAD_NAME


@pytest.mark.asyncio
async def test_long_thread_name_is_truncated() -> None:
    webhook = spawn_webhook()
    thread = spawn_thread([[spawn_message("hi")]], name="a" * 120)

    await migrate_thread(thread, spawn_forum([webhook]))

    assert sent_messages(webhook)[0]["thread_name"] == "a" * 99 + "…"


@pytest.mark.asyncio
async def test_tags_are_carried_over_by_name() -> None:
    webhook = spawn_webhook()
    bug, feature = dc.ForumTag(name="bug"), dc.ForumTag(name="feature")
    forum = spawn_forum([webhook], available_tags=[bug, feature])
    thread = spawn_thread(
        [[spawn_message("hi")]],
        applied_tags=[dc.ForumTag(name="Bug"), dc.ForumTag(name="macOS")],
    )

    await migrate_thread(thread, forum)

    assert sent_messages(webhook)[0]["applied_tags"] == [bug]


@pytest.mark.asyncio
async def test_long_content_is_attached() -> None:
    webhook = spawn_webhook()
    messages = [spawn_message("op"), spawn_message("x" * 2500)]
    thread = spawn_thread([messages[::-1]])

    await migrate_thread(thread, spawn_forum([webhook]))

    reply = sent_messages(webhook)[1]
    assert reply["content"] == ""
    assert [f.filename for f in reply["files"]] == ["content.md"]


@pytest.mark.asyncio
async def test_link_previews_are_not_reposted() -> None:
    webhook = spawn_webhook()
    preview = dc.Embed(title="Example", url="https://example.com")
    rich = dc.Embed(title="Rich", description="no url")
    thread = spawn_thread([[spawn_message("hi", embeds=[preview, rich])]])

    await migrate_thread(thread, spawn_forum([webhook]))

    assert sent_messages(webhook)[0]["embeds"] == [rich]


@pytest.mark.asyncio
async def test_attachments_are_rehosted(monkeypatch: pytest.MonkeyPatch) -> None:
    file = dc.File(BytesIO(b"error: oops"), filename="log.txt")
    rehost = AsyncMock(return_value=([file], 1))
    monkeypatch.setattr("mvt.common.thread_moving.migration.rehost_attachments", rehost)
    webhook = spawn_webhook()
    attachments = [Mock(dc.Attachment), Mock(dc.Attachment)]
    thread = spawn_thread([[spawn_message("see logs", attachments=attachments)]])

    report = await migrate_thread(thread, spawn_forum([webhook]))

    assert rehost.await_args.args[1] == attachments
    assert sent_messages(webhook)[0]["files"] == [file]
    assert report.skipped_attachments == 1


async def rehost_everything(
    _client: object, attachments: list[dc.Attachment]
) -> tuple[list[dc.File], int]:
    files = [
        dc.File(BytesIO(b"\x89PNG"), filename=f"screenshot-{i}.png")
        for i in range(len(attachments))
    ]
    return files, 0


@pytest.mark.asyncio
async def test_long_content_with_ten_attachments(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setattr(
        "mvt.common.thread_moving.migration.rehost_attachments",
        AsyncMock(side_effect=rehost_everything),
    )
    webhook = spawn_webhook()
    attachments = [Mock(dc.Attachment) for _ in range(10)]
    messages = [
        spawn_message("op"),
        spawn_message("y" * 2500, attachments=attachments),
        spawn_message("after"),
    ]
    thread = spawn_thread([messages[::-1]])

    report = await migrate_thread(thread, spawn_forum([webhook]))

    _, long_reply, after = sent_messages(webhook)
    filenames = [f.filename for f in long_reply["files"]]
    assert len(filenames) == 10
    assert filenames[-1] == "content.md"
    assert "screenshot-9.png" not in filenames
    assert after["content"] == "after"
    assert report.posted == 3
    assert report.skipped_attachments == 1


@pytest.mark.asyncio
async def test_rejected_reply_payload_is_skipped() -> None:
    webhook = spawn_webhook()
    original_send = webhook.send.side_effect

    async def send(**kwargs: Any) -> dc.WebhookMessage | None:
        if kwargs["content"] == "rejected":
            raise ValueError("files parameter must be a list of up to 10 elements")
        return await original_send(**kwargs)

    webhook.send = AsyncMock(side_effect=send)
    messages = [spawn_message("op"), spawn_message("rejected"), spawn_message("ok")]
    thread = spawn_thread([messages[::-1]])

    report = await migrate_thread(thread, spawn_forum([webhook]))

    assert [m["content"] for m in sent_messages(webhook)][-1] == "ok"
    assert report.posted == 2
    assert report.skipped == 1


@pytest.mark.asyncio
async def test_rejected_seed_payload_fails() -> None:
    webhook = spawn_webhook()
    webhook.send = AsyncMock(side_effect=ValueError("too many files"))
    thread = spawn_thread([[spawn_message("op")]])

    with pytest.raises(SendFailed, match="too many files"):
        await migrate_thread(thread, spawn_forum([webhook]))
