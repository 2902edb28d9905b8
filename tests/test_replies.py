import asyncio

import pytest

from mockchat.config import CONCISE_TONE, DEFAULT_TONE, FRIENDLY_TONE
from mockchat.conversation.models import Message
from mockchat.conversation.replies import (
    CANCELLED,
    DONE,
    GREETING,
    StreamRegistry,
    compose_reply,
    stream_reply,
    tokenize,
)
from mockchat.conversation.store import ConversationStore


@pytest.fixture
def store() -> ConversationStore:
    return ConversationStore()


@pytest.fixture
def registry() -> StreamRegistry:
    return StreamRegistry()


async def _collect(gen) -> list[str]:
    return [event async for event in gen]


def test_compose_reply_tones():
    assert compose_reply("hello", FRIENDLY_TONE) == 'Mocked streaming reply to: "hello" 😊 (Friendly tone)'
    assert compose_reply("hello", CONCISE_TONE) == 'Mocked streaming reply to: "hello" (Concise tone)'
    assert compose_reply("hello", DEFAULT_TONE) == 'Mocked streaming reply to: "hello"'
    assert compose_reply("hello", None) == 'Mocked streaming reply to: "hello"'
    # Exact match only
    assert compose_reply("hello", "be friendly and casual") == 'Mocked streaming reply to: "hello"'


def test_compose_reply_empty_prompt_greets():
    assert compose_reply("", FRIENDLY_TONE) == GREETING


def test_tokenize_collapses_whitespace():
    assert tokenize("  a  b\tc\n") == ["a", "b", "c"]


async def test_stream_emits_tokens_then_done_and_saves(store, registry):
    store.append("u1", "c1", [Message(role="user", content="hello")])
    expected = tokenize(compose_reply("hello", FRIENDLY_TONE))

    events = await _collect(
        stream_reply(store, registry, "u1", "c1", prompt="hello", system_prompt=FRIENDLY_TONE, interval=0)
    )

    assert events == expected + [DONE]
    msgs = store.get("u1", "c1")
    assert len(msgs) == 2
    assert msgs[-1].role == "assistant"
    assert msgs[-1].content == " ".join(expected)


async def test_restream_replaces_trailing_assistant(store, registry):
    store.append("u1", "c1", [Message(role="user", content="hello")])
    await _collect(stream_reply(store, registry, "u1", "c1", prompt="hello", interval=0))
    first_len = len(store.get("u1", "c1"))

    await _collect(stream_reply(store, registry, "u1", "c1", prompt="hello", system_prompt=CONCISE_TONE, interval=0))

    msgs = store.get("u1", "c1")
    assert len(msgs) == first_len
    assert msgs[-1].content.endswith("(Concise tone)")
    assert sum(1 for m in msgs if m.role == "assistant") == 1


async def test_stream_into_unknown_conversation_creates_it(store, registry):
    events = await _collect(stream_reply(store, registry, "u1", "fresh", interval=0))
    assert events[-1] == DONE
    assert [m.content for m in store.get("u1", "fresh")] == [GREETING]


async def test_closing_early_saves_nothing(store, registry):
    store.append("u1", "c1", [Message(role="user", content="hello")])
    gen = stream_reply(store, registry, "u1", "c1", prompt="hello", interval=0)

    first = await gen.__anext__()
    assert first == "Mocked"
    await gen.aclose()

    assert len(store.get("u1", "c1")) == 1
    assert not registry.is_active(("u1", "c1"))


async def test_cancel_stops_before_next_tick(store, registry):
    store.append("u1", "c1", [Message(role="user", content="hello")])
    gen = stream_reply(store, registry, "u1", "c1", prompt="hello", interval=0)

    await gen.__anext__()
    assert registry.cancel(("u1", "c1"))
    rest = await _collect(gen)

    assert rest == [CANCELLED]
    assert len(store.get("u1", "c1")) == 1
    assert not registry.cancel(("u1", "c1"))


async def test_same_conversation_streams_run_one_after_another(store, registry):
    store.append("u1", "c1", [Message(role="user", content="hello")])
    order: list[str] = []

    async def consume(name: str, prompt: str):
        async for event in stream_reply(store, registry, "u1", "c1", prompt=prompt, interval=0.001):
            order.append(name)

    await asyncio.gather(consume("a", "first"), consume("b", "second"))

    # Every event of the first stream precedes the second one
    first_b = order.index("b")
    assert "a" not in order[first_b:]
    msgs = store.get("u1", "c1")
    assert len(msgs) == 2
    assert msgs[-1].content == 'Mocked streaming reply to: "second"'


async def test_different_conversations_stream_independently(store, registry):
    results = await asyncio.gather(
        _collect(stream_reply(store, registry, "u1", "c1", prompt="one", interval=0)),
        _collect(stream_reply(store, registry, "u1", "c2", prompt="two", interval=0)),
    )
    assert all(events[-1] == DONE for events in results)
    assert store.get("u1", "c1")[-1].content == 'Mocked streaming reply to: "one"'
    assert store.get("u1", "c2")[-1].content == 'Mocked streaming reply to: "two"'
