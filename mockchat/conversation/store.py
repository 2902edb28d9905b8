from __future__ import annotations

import logging
from typing import Literal, Optional

from .models import ConversationMeta, ConversationSummary, Message, new_id, now_ms
from .titles import generate_title

logger = logging.getLogger(__name__)

GLOBAL_SCOPE = "_global"
LIST_PREVIEW_CHARS = 60
UNTITLED = "Conversation"


class ConversationStore:
    """In-process message store keyed by (scope, conversation id).

    With ``scope="user"`` every user id gets its own partition. With
    ``scope="global"`` the user id is ignored and all clients share one.
    Unknown keys always read as empty; nothing here raises for a missing id.
    """

    def __init__(self, scope: Literal["user", "global"] = "user"):
        self.scope = scope
        self._messages: dict[str, dict[str, list[Message]]] = {}
        self._meta: dict[str, dict[str, ConversationMeta]] = {}

    def scope_key(self, user_id: Optional[str]) -> str:
        if self.scope == "global":
            return GLOBAL_SCOPE
        return user_id or ""

    def _ensure(self, user_id: Optional[str], conv_id: str) -> tuple[list[Message], ConversationMeta]:
        key = self.scope_key(user_id)
        convs = self._messages.setdefault(key, {})
        metas = self._meta.setdefault(key, {})
        if conv_id not in convs:
            logger.info("Created conversation %s/%s", key, conv_id)
        msgs = convs.setdefault(conv_id, [])
        meta = metas.setdefault(conv_id, ConversationMeta())
        return msgs, meta

    # ---- writes ----

    def append(self, user_id: Optional[str], conv_id: str, messages: list[Message]) -> list[Message]:
        msgs, _ = self._ensure(user_id, conv_id)
        msgs.extend(messages)
        return list(msgs)

    def set_system_prompt(self, user_id: Optional[str], conv_id: str, system_prompt: Optional[str]) -> None:
        _, meta = self._ensure(user_id, conv_id)
        meta.system_prompt = system_prompt

    def set_title(self, user_id: Optional[str], conv_id: str, title: Optional[str] = None) -> str:
        """Set an explicit title, or recompute it from the messages when none is given."""
        # Only metadata; conversations are created by appending messages
        key = self.scope_key(user_id)
        meta = self._meta.setdefault(key, {}).setdefault(conv_id, ConversationMeta())
        meta.title = title or generate_title(self.get(user_id, conv_id))
        return meta.title

    def upsert_assistant_reply(self, user_id: Optional[str], conv_id: str, content: str) -> Message:
        """Replace a trailing assistant message, or append a new one."""
        msgs, _ = self._ensure(user_id, conv_id)
        ts = now_ms()
        if msgs and msgs[-1].role == "assistant":
            last = msgs[-1]
            last.content = content
            last.ts = ts
            return last
        reply = Message(id=new_id("a"), role="assistant", content=content, ts=ts)
        msgs.append(reply)
        return reply

    def clear(self) -> None:
        self._messages.clear()
        self._meta.clear()
        logger.info("Cleared all conversations")

    # ---- reads ----

    def get(self, user_id: Optional[str], conv_id: str) -> list[Message]:
        return list(self._messages.get(self.scope_key(user_id), {}).get(conv_id, []))

    def get_meta(self, user_id: Optional[str], conv_id: str) -> ConversationMeta:
        meta = self._meta.get(self.scope_key(user_id), {}).get(conv_id)
        return meta.model_copy() if meta else ConversationMeta()

    def list(self, user_id: Optional[str]) -> list[ConversationSummary]:
        """Return conversation summaries, newest last-message first."""
        key = self.scope_key(user_id)
        convs = self._messages.get(key, {})
        metas = self._meta.get(key, {})
        summaries = []
        for conv_id, msgs in convs.items():
            last = msgs[-1] if msgs else None
            meta = metas.get(conv_id)
            summaries.append(
                ConversationSummary(
                    id=conv_id,
                    title=(meta.title if meta else None) or UNTITLED,
                    last=last.content[:LIST_PREVIEW_CHARS] if last else "",
                    ts=last.ts if last else None,
                )
            )
        summaries.sort(key=lambda s: s.ts or 0, reverse=True)
        return summaries
