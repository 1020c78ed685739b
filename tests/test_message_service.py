"""
Tests for posting, editing and soft-deleting messages
"""
import asyncio
import json

import pytest

from teamchat.config import settings
from teamchat.exceptions import AuthorizationError, NotFoundError, ValidationError
from tests.helpers import drain

GENERAL = 1


@pytest.fixture
def subscribed(services, connect):
    async def _subscribed(user, channel_id=GENERAL):
        connection = connect(user)
        await services.sessions.subscribe(connection, channel_id)
        drain(connection)
        return connection
    return _subscribed


class TestPost:

    @pytest.mark.asyncio
    async def test_post_reaches_subscribers_including_sender(self, services, connect, subscribed, alice, bob, carol):
        alice_conn, bob_conn = await subscribed(alice), await subscribed(bob)
        carol_conn = connect(carol)

        message = await services.messages.post(alice_conn, GENERAL, "hi all")

        for connection in (alice_conn, bob_conn):
            events = drain(connection, "new_message")
            assert [e["data"]["id"] for e in events] == [message.id]
            assert events[0]["data"]["username"] == "alice"
            assert events[0]["data"]["color"] == "#3b82f6"
        assert drain(carol_conn) == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("content", ["", "   ", "\n\t", None])
    async def test_blank_content_is_a_silent_noop(self, services, database, subscribed, alice, content):
        alice_conn = await subscribed(alice)

        assert await services.messages.post(alice_conn, GENERAL, content) is None
        assert drain(alice_conn) == []
        assert await database.get_recent_messages(GENERAL) == []

    @pytest.mark.asyncio
    async def test_overlong_content_is_rejected(self, services, subscribed, alice):
        alice_conn = await subscribed(alice)

        with pytest.raises(ValidationError):
            await services.messages.post(alice_conn, GENERAL, "x" * (settings.MAX_MESSAGE_LENGTH + 1))

    @pytest.mark.asyncio
    async def test_post_to_missing_channel_is_rejected(self, services, connect, alice):
        with pytest.raises(NotFoundError):
            await services.messages.post(connect(alice), 999, "hello?")

    @pytest.mark.asyncio
    async def test_post_to_foreign_private_channel_is_rejected(self, services, connect, database, alice, bob, carol):
        channel = await services.channels.create_channel(alice, "secret-plans", [bob.id])

        with pytest.raises(AuthorizationError):
            await services.messages.post(connect(carol), channel.id, "let me in")
        assert await database.get_recent_messages(channel.id) == []

    @pytest.mark.asyncio
    async def test_reply_carries_replied_to_metadata(self, services, subscribed, alice, bob):
        alice_conn, bob_conn = await subscribed(alice), await subscribed(bob)
        question = await services.messages.post(bob_conn, GENERAL, "ship it?")

        answer = await services.messages.post(alice_conn, GENERAL, "yes", reply_to=question.id)

        assert answer.reply_to == question.id
        assert answer.reply_content == "ship it?"
        assert answer.reply_username == "bob"

    @pytest.mark.asyncio
    async def test_reply_to_other_channel_is_rejected(self, services, subscribed, alice):
        other = await services.channels.create_channel(alice, "random", None)
        alice_conn = await subscribed(alice)
        elsewhere = await services.messages.post(alice_conn, GENERAL, "over here")

        with pytest.raises(ValidationError):
            await services.messages.post(alice_conn, other.id, "reply", reply_to=elsewhere.id)
        with pytest.raises(ValidationError):
            await services.messages.post(alice_conn, GENERAL, "reply", reply_to=9999)

    @pytest.mark.asyncio
    async def test_fanout_preserves_creation_order(self, services, subscribed, alice, bob, carol):
        alice_conn, bob_conn = await subscribed(alice), await subscribed(bob)
        observer = await subscribed(carol)

        await asyncio.gather(*[
            services.messages.post(alice_conn if i % 2 else bob_conn, GENERAL, f"message {i}")
            for i in range(20)
        ])

        ids = [e["data"]["id"] for e in drain(observer, "new_message")]
        assert len(ids) == 20
        assert ids == sorted(ids)
        assert len(services.messages._channel_locks) == 0

    @pytest.mark.asyncio
    async def test_attachment_content_is_decoded(self, services, subscribed, alice):
        alice_conn = await subscribed(alice)
        content = json.dumps({
            "text": "the mockups",
            "attachment": {"name": "mock.png", "url": "https://files.example/mock.png", "mimeType": "image/png", "size": 2048},
        })

        message = await services.messages.post(alice_conn, GENERAL, content)

        assert message.attachment is not None
        assert message.attachment.name == "mock.png"
        assert message.attachment.size == 2048
        event = drain(alice_conn, "new_message")[0]
        assert event["data"]["attachment"]["url"] == "https://files.example/mock.png"

    @pytest.mark.asyncio
    async def test_plain_text_has_no_attachment(self, services, subscribed, alice):
        alice_conn = await subscribed(alice)

        message = await services.messages.post(alice_conn, GENERAL, "{not json")

        assert message.attachment is None


class TestEdit:

    @pytest.mark.asyncio
    async def test_author_edit_applies_and_broadcasts(self, services, database, subscribed, alice, bob):
        alice_conn, bob_conn = await subscribed(alice), await subscribed(bob)
        message = await services.messages.post(alice_conn, GENERAL, "teh plan")
        drain(bob_conn)

        assert await services.messages.edit(alice_conn, message.id, GENERAL, "the plan") is True

        stored = await database.get_message_view(message.id)
        assert stored["content"] == "the plan"
        assert stored["edited"] == 1
        events = drain(bob_conn, "message_edited")
        assert events[0]["data"] == {"messageId": message.id, "channelId": GENERAL, "content": "the plan", "edited": True}

    @pytest.mark.asyncio
    async def test_foreign_edit_changes_nothing(self, services, database, subscribed, alice, bob):
        alice_conn, bob_conn = await subscribed(alice), await subscribed(bob)
        message = await services.messages.post(alice_conn, GENERAL, "mine")
        drain(alice_conn)

        assert await services.messages.edit(bob_conn, message.id, GENERAL, "yours now") is False

        stored = await database.get_message_view(message.id)
        assert stored["content"] == "mine"
        assert stored["edited"] == 0
        assert drain(alice_conn, "message_edited") == []

    @pytest.mark.asyncio
    async def test_edit_of_missing_message_is_rejected(self, services, subscribed, alice):
        alice_conn = await subscribed(alice)

        with pytest.raises(NotFoundError):
            await services.messages.edit(alice_conn, 4242, GENERAL, "nope")

    @pytest.mark.asyncio
    async def test_edit_with_wrong_channel_is_rejected(self, services, subscribed, alice):
        other = await services.channels.create_channel(alice, "random", None)
        alice_conn = await subscribed(alice)
        message = await services.messages.post(alice_conn, GENERAL, "here")

        with pytest.raises(NotFoundError):
            await services.messages.edit(alice_conn, message.id, other.id, "there")

    @pytest.mark.asyncio
    async def test_blank_edit_is_rejected(self, services, subscribed, alice):
        alice_conn = await subscribed(alice)
        message = await services.messages.post(alice_conn, GENERAL, "keep me")

        with pytest.raises(ValidationError):
            await services.messages.edit(alice_conn, message.id, GENERAL, "  ")


class TestSoftDelete:

    @pytest.mark.asyncio
    async def test_author_delete_replaces_content(self, services, connect, subscribed, alice, bob):
        alice_conn, bob_conn = await subscribed(alice), await subscribed(bob)
        message = await services.messages.post(alice_conn, GENERAL, "regrettable")
        drain(bob_conn)

        assert await services.messages.delete(alice_conn, message.id, GENERAL) is True

        events = drain(bob_conn, "message_deleted")
        assert events[0]["data"] == {
            "messageId": message.id,
            "channelId": GENERAL,
            "content": settings.DELETED_MESSAGE_PLACEHOLDER,
        }

        late = connect(bob)
        history = await services.sessions.subscribe(late, GENERAL)
        assert history[-1].deleted is True
        assert history[-1].content == settings.DELETED_MESSAGE_PLACEHOLDER
        assert "regrettable" not in json.dumps(drain(late))

    @pytest.mark.asyncio
    async def test_reply_to_deleted_message_shows_placeholder(self, services, subscribed, alice, bob):
        alice_conn, bob_conn = await subscribed(alice), await subscribed(bob)
        original = await services.messages.post(alice_conn, GENERAL, "regrettable")
        await services.messages.post(bob_conn, GENERAL, "wow", reply_to=original.id)

        await services.messages.delete(alice_conn, original.id, GENERAL)

        history = await services.sessions.history(GENERAL)
        assert history[-1].reply_content == settings.DELETED_MESSAGE_PLACEHOLDER

    @pytest.mark.asyncio
    async def test_non_author_cannot_delete(self, services, database, subscribed, alice, bob):
        alice_conn, bob_conn = await subscribed(alice), await subscribed(bob)
        message = await services.messages.post(alice_conn, GENERAL, "mine")
        drain(alice_conn)

        with pytest.raises(AuthorizationError):
            await services.messages.delete(bob_conn, message.id, GENERAL)

        stored = await database.get_message(message.id)
        assert stored["content"] == "mine"
        assert stored["deleted"] == 0
        assert drain(alice_conn) == []

    @pytest.mark.asyncio
    async def test_admin_can_delete_any_message(self, services, database, make_user, subscribed, alice):
        moderator = await make_user("admin_mod")
        alice_conn, admin_conn = await subscribed(alice), await subscribed(moderator)
        message = await services.messages.post(alice_conn, GENERAL, "spam spam spam")

        assert await services.messages.delete(admin_conn, message.id, GENERAL) is True
        assert (await database.get_message(message.id))["deleted"] == 1

    @pytest.mark.asyncio
    async def test_second_delete_does_not_broadcast(self, services, subscribed, alice):
        alice_conn = await subscribed(alice)
        message = await services.messages.post(alice_conn, GENERAL, "once")
        await services.messages.delete(alice_conn, message.id, GENERAL)
        drain(alice_conn)

        assert await services.messages.delete(alice_conn, message.id, GENERAL) is False
        assert drain(alice_conn) == []

    @pytest.mark.asyncio
    async def test_deleted_message_cannot_be_edited(self, services, database, subscribed, alice):
        alice_conn = await subscribed(alice)
        message = await services.messages.post(alice_conn, GENERAL, "gone soon")
        await services.messages.delete(alice_conn, message.id, GENERAL)

        assert await services.messages.edit(alice_conn, message.id, GENERAL, "back!") is False
        assert (await database.get_message(message.id))["content"] == settings.DELETED_MESSAGE_PLACEHOLDER
