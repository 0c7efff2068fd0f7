import uuid

import pytest
from sqlalchemy import func, select, text

from api.features.conversation.entities.conversation import Message, MessageSender
from api.features.conversation.service import ConversationStore, MessageStore
from api.shared.exceptions import ConstraintViolationError, StorageError


async def test_create_conversation(db_session):
    store = ConversationStore(db_session)

    conversation = await store.create()

    uuid.UUID(conversation.id)
    assert conversation.created_at == conversation.updated_at
    assert conversation.metadata == {}


async def test_find_by_id(db_session):
    store = ConversationStore(db_session)
    created = await store.create()

    found = await store.find_by_id(created.id)

    assert found == created


async def test_find_by_id_unknown_returns_none(db_session):
    store = ConversationStore(db_session)
    await store.create()

    assert await store.find_by_id(str(uuid.uuid4())) is None


async def test_touch_moves_updated_at_forward(db_session):
    store = ConversationStore(db_session)
    created = await store.create()

    touched = await store.touch(created.id)

    assert touched.updated_at > created.updated_at
    assert touched.created_at == created.created_at
    assert (await store.find_by_id(created.id)).updated_at == touched.updated_at


async def test_touch_unknown_conversation_raises(db_session):
    with pytest.raises(StorageError):
        await ConversationStore(db_session).touch(str(uuid.uuid4()))


async def test_append_and_list_all_in_order(db_session):
    conversation = await ConversationStore(db_session).create()
    store = MessageStore(db_session)

    first = await store.append(conversation.id, MessageSender.USER, "Hi")
    second = await store.append(conversation.id, MessageSender.AI, "Hello! How can I help?")

    messages = await store.list_all(conversation.id)

    assert [m.id for m in messages] == [first.id, second.id]
    assert [m.sender for m in messages] == [MessageSender.USER, MessageSender.AI]
    assert first.created_at < second.created_at
    assert messages[0].conversation_id == conversation.id
    assert messages[0].metadata == {}


async def test_list_all_empty_conversation(db_session):
    conversation = await ConversationStore(db_session).create()

    assert await MessageStore(db_session).list_all(conversation.id) == []


async def test_append_to_unknown_conversation_violates_foreign_key(db_session):
    store = MessageStore(db_session)

    with pytest.raises(ConstraintViolationError):
        await store.append(str(uuid.uuid4()), MessageSender.USER, "orphan")

    # the session stays usable after the rollback
    conversation = await ConversationStore(db_session).create()
    await store.append(conversation.id, MessageSender.USER, "Hi")
    assert len(await store.list_all(conversation.id)) == 1


async def test_list_recent_returns_chronological_tail(db_session):
    conversation = await ConversationStore(db_session).create()
    store = MessageStore(db_session)
    for i in range(13):
        sender = MessageSender.USER if i % 2 == 0 else MessageSender.AI
        await store.append(conversation.id, sender, f"message {i}")

    recent = await store.list_recent(conversation.id)
    everything = await store.list_all(conversation.id)

    assert len(recent) == 10
    assert recent == everything[-10:]
    assert recent[0].text == "message 3"
    assert recent[-1].text == "message 12"


async def test_list_recent_with_fewer_messages_than_limit(db_session):
    conversation = await ConversationStore(db_session).create()
    store = MessageStore(db_session)
    await store.append(conversation.id, MessageSender.USER, "one")
    await store.append(conversation.id, MessageSender.AI, "two")

    recent = await store.list_recent(conversation.id, limit=5)

    assert [m.text for m in recent] == ["one", "two"]
    assert await store.list_recent(conversation.id, limit=0) == []


async def test_list_recent_is_scoped_to_conversation(db_session):
    conversations = ConversationStore(db_session)
    first = await conversations.create()
    second = await conversations.create()
    store = MessageStore(db_session)
    await store.append(first.id, MessageSender.USER, "first thread")
    await store.append(second.id, MessageSender.USER, "second thread")

    recent = await store.list_recent(first.id)

    assert [m.text for m in recent] == ["first thread"]


async def test_metadata_defaults_to_empty_object_in_schema(db_session):
    conversation_id = str(uuid.uuid4())

    await db_session.execute(
        text(
            "INSERT INTO conversations (id, created_at, updated_at) "
            "VALUES (:id, '2026-10-16 09:00:00.000000', '2026-10-16 09:00:00.000000')"
        ),
        {"id": conversation_id},
    )
    await db_session.commit()

    stored = await db_session.scalar(
        text("SELECT metadata FROM conversations WHERE id = :id"), {"id": conversation_id}
    )
    assert stored == "{}"


async def test_deleting_conversation_cascades_to_messages(db_session):
    conversation = await ConversationStore(db_session).create()
    await MessageStore(db_session).append(conversation.id, MessageSender.USER, "Hi")

    await db_session.execute(
        text("DELETE FROM conversations WHERE id = :id"), {"id": conversation.id}
    )
    await db_session.commit()

    remaining = await db_session.scalar(
        select(func.count()).select_from(Message).where(Message.conversation_id == conversation.id)
    )
    assert remaining == 0
