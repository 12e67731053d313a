"""Test suite for the store and history cache composition."""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from hanibot_chat.domain.errors import MessageNotFound, StoreIOError
from hanibot_chat.domain.models import Message, MessagePatch, Role
from hanibot_chat.repositories import InMemoryMessageStore, JsonFileMessageStore
from hanibot_chat.services.conversation import ConversationService
from hanibot_chat.services.history import HistoryCache, role_classifier

RESERVED = {"hanibot", "chatbot"}


def make_service(store, clock=None):
    history = HistoryCache(role_classifier(RESERVED))
    if clock is None:
        return ConversationService(store, history)
    return ConversationService(store, history, clock=clock)


class FailingStore(InMemoryMessageStore):
    async def extend(self, messages):
        raise StoreIOError("disk full")


@pytest.mark.asyncio
async def test_hydration_classifies_roles():
    store = InMemoryMessageStore(
        [
            Message(text="hej", sender="Maria"),
            Message(text="Halløj løve!", sender="Hanibot"),
            Message(text="gammel bot", sender="CHATBOT"),
        ]
    )
    service = make_service(store)
    await service.hydrate()
    history = await service.list_history()
    assert [e.role for e in history] == [Role.USER, Role.BOT, Role.BOT]
    assert [e.name for e in history] == ["Maria", "Hanibot", "CHATBOT"]


@pytest.mark.asyncio
async def test_hydrate_reads_store_once():
    store = InMemoryMessageStore([Message(text="hej", sender="Maria")])
    service = make_service(store)
    await service.hydrate()
    await store.append(Message(text="udenom", sender="Ali"))
    await service.hydrate()
    assert len(await service.list_history()) == 1


@pytest.mark.asyncio
async def test_record_turn_writes_store_and_cache(tmp_path):
    store = JsonFileMessageStore(tmp_path / "messages.json")
    service = make_service(store)

    turn = await service.record_turn("hej", "Maria", "Halløj løve!", "Hanibot")

    assert turn.user_message.role == Role.USER
    assert turn.bot_message.role == Role.BOT
    stored = await store.read_all()
    assert [m.id for m in stored] == [turn.user_message.id, turn.bot_message.id]
    assert [e.id for e in await service.list_history()] == [m.id for m in stored]


@pytest.mark.asyncio
async def test_timestamps_never_move_backward():
    start = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
    ticks = iter([start, start - timedelta(seconds=5), start - timedelta(seconds=10), start + timedelta(seconds=1)])
    service = make_service(InMemoryMessageStore(), clock=lambda: next(ticks))

    first = await service.record_turn("a", "Maria", "b", "Hanibot")
    second = await service.record_turn("c", "Maria", "d", "Hanibot")

    stamps = [
        first.user_message.timestamp,
        first.bot_message.timestamp,
        second.user_message.timestamp,
        second.bot_message.timestamp,
    ]
    assert stamps == sorted(stamps)


@pytest.mark.asyncio
async def test_failed_store_write_leaves_cache_untouched():
    service = make_service(FailingStore())
    with pytest.raises(StoreIOError):
        await service.record_turn("hej", "Maria", "svar", "Hanibot")
    assert await service.list_history() == []


@pytest.mark.asyncio
async def test_update_and_delete_mirror_into_cache(tmp_path):
    store = JsonFileMessageStore(tmp_path / "messages.json")
    service = make_service(store)
    turn = await service.record_turn("hej", "Maria", "svar", "Hanibot")

    entry = await service.update_message(turn.user_message.id, MessagePatch(sender="Mona"))
    assert entry.name == "Mona"
    assert entry.text == "hej"
    assert (await service.list_history())[0].name == "Mona"

    await service.delete_message(turn.bot_message.id)
    assert [e.id for e in await service.list_history()] == [turn.user_message.id]
    with pytest.raises(MessageNotFound):
        await service.delete_message(turn.bot_message.id)


@pytest.mark.asyncio
async def test_cache_matches_store_after_restart(tmp_path):
    """Test that a fresh process hydrates the same history the old one held."""
    path = tmp_path / "messages.json"
    service = make_service(JsonFileMessageStore(path))
    for i in range(3):
        await service.record_turn(f"spørgsmål {i}", "Maria", f"svar {i}", "Hanibot")
    await service.delete_message((await service.list_history())[2].id)
    await service.update_message((await service.list_history())[0].id, MessagePatch(text="rettet"))

    restarted = make_service(JsonFileMessageStore(path))
    await restarted.hydrate()
    assert await restarted.list_history() == await service.list_history()


@pytest.mark.asyncio
async def test_concurrent_turns_do_not_lose_updates(tmp_path):
    """Test that concurrent read-modify-write cycles are serialized."""
    store = JsonFileMessageStore(tmp_path / "messages.json")
    service = make_service(store)

    await asyncio.gather(
        *[service.record_turn(f"besked {i}", "Maria", f"svar {i}", "Hanibot") for i in range(20)]
    )

    stored = await store.read_all()
    assert len(stored) == 40
    assert [m.id for m in stored] == [e.id for e in await service.list_history()]
    # Each user message is directly followed by its own reply.
    for user, bot in zip(stored[::2], stored[1::2]):
        assert user.text.replace("besked", "svar") == bot.text
