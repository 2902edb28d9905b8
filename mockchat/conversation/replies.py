"""Mock reply synthesis and the token producer behind the SSE endpoint."""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, AsyncIterator, Optional

from ..config import CONCISE_TONE, FRIENDLY_TONE
from .store import ConversationStore

logger = logging.getLogger(__name__)

DONE = "[DONE]"
CANCELLED = "[CANCELLED]"
ERROR_PREFIX = "[ERROR]"

GREETING = "Hello! 👋 This is your new chat — how can I help?"
REPLY_TEMPLATE = 'Mocked streaming reply to: "{prompt}"'

_TONE_SUFFIXES: dict[str, str] = {
    CONCISE_TONE: " (Concise tone)",
    FRIENDLY_TONE: " 😊 (Friendly tone)",
}


def tone_suffix(system_prompt: Optional[str]) -> str:
    return _TONE_SUFFIXES.get(system_prompt or "", "")


def compose_reply(prompt: str, system_prompt: Optional[str] = None) -> str:
    if not prompt:
        return GREETING
    return REPLY_TEMPLATE.format(prompt=prompt) + tone_suffix(system_prompt)


def tokenize(text: str) -> list[str]:
    return text.split()


class StreamRegistry:
    """Per-conversation stream bookkeeping.

    Streams on the same (scope, conversation) key run one at a time. Each
    running stream owns a cancel event that ``cancel`` sets.
    """

    def __init__(self):
        self._locks: dict[tuple[str, str], asyncio.Lock] = {}
        self._cancel_events: dict[tuple[str, str], asyncio.Event] = {}

    @asynccontextmanager
    async def session(self, key: tuple[str, str]) -> AsyncIterator[asyncio.Event]:
        lock = self._locks.setdefault(key, asyncio.Lock())
        if lock.locked():
            logger.info("Stream for %s/%s waiting for the active one", *key)
        async with lock:
            cancel_event = asyncio.Event()
            self._cancel_events[key] = cancel_event
            try:
                yield cancel_event
            finally:
                self._cancel_events.pop(key, None)

    def cancel(self, key: tuple[str, str]) -> bool:
        event = self._cancel_events.get(key)
        if event:
            event.set()
            return True
        return False

    def is_active(self, key: tuple[str, str]) -> bool:
        return key in self._cancel_events


async def stream_reply(
    store: ConversationStore,
    registry: StreamRegistry,
    user_id: Optional[str],
    conv_id: str,
    prompt: str = "",
    system_prompt: Optional[str] = None,
    interval: float = 0.12,
) -> AsyncGenerator[str, None]:
    """Yield the reply one token per tick, then persist it and yield DONE.

    If the consumer goes away the generator is closed at its current await and
    nothing is persisted.
    """
    key = (store.scope_key(user_id), conv_id)
    tokens = tokenize(compose_reply(prompt, system_prompt))

    async with registry.session(key) as cancel_event:
        logger.info("Streaming %d tokens to %s/%s", len(tokens), *key)
        streamed: list[str] = []
        try:
            for token in tokens:
                await asyncio.sleep(interval)
                if cancel_event.is_set():
                    logger.info("Stream %s/%s stopped after %d tokens", *key, len(streamed))
                    yield CANCELLED
                    return
                streamed.append(token)
                yield token

            await asyncio.sleep(interval)
            if cancel_event.is_set():
                logger.info("Stream %s/%s stopped before saving", *key)
                yield CANCELLED
                return
            store.upsert_assistant_reply(user_id, conv_id, " ".join(streamed).strip())
            logger.info("Saved assistant reply for %s/%s", *key)
            yield DONE
        except (asyncio.CancelledError, GeneratorExit):
            logger.info("Client left stream %s/%s after %d tokens", *key, len(streamed))
            raise
