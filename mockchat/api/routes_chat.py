import logging
from contextlib import aclosing
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, ConfigDict, Field

from ..config import AppConfig
from ..conversation.models import Message, now_ms
from ..conversation.replies import ERROR_PREFIX, StreamRegistry, stream_reply
from ..conversation.store import ConversationStore
from .deps import get_app_config, get_store, get_streams, require_user_id

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/chat", tags=["chat"])

_SSE_HEADERS = {"Cache-Control": "no-cache", "X-Accel-Buffering": "no"}


class ChatRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: Optional[str] = Field(default=None, alias="userId")
    conversation_id: Optional[str] = Field(default=None, alias="conversationId")
    messages: list[Message] = []
    system_prompt: Optional[str] = Field(default=None, alias="systemPrompt")


def _sse(data: str) -> str:
    return f"data: {data}\n\n"


def _new_conversation_id() -> str:
    return f"c_{now_ms()}"


@router.post("")
async def chat(
    req: ChatRequest,
    store: ConversationStore = Depends(get_store),
    config: AppConfig = Depends(get_app_config),
):
    """Append the client's messages and echo the conversation back."""
    require_user_id(config, req.user_id)

    conv_id = req.conversation_id or _new_conversation_id()
    messages = store.append(req.user_id, conv_id, req.messages)
    store.set_system_prompt(req.user_id, conv_id, req.system_prompt)

    # Keep titles the user (or an earlier keyword match) already settled on
    title = store.get_meta(req.user_id, conv_id).title
    if not title or title.startswith("New"):
        store.set_title(req.user_id, conv_id)

    return {
        "conversationId": conv_id,
        "messages": [m.model_dump(exclude_none=True) for m in messages],
    }


@router.get("/sse")
async def stream_chat(
    user_id: Optional[str] = Query(default=None, alias="userId"),
    conversation_id: Optional[str] = Query(default=None, alias="conversationId"),
    prompt: str = "",
    system_prompt: Optional[str] = Query(default=None, alias="systemPrompt"),
    store: ConversationStore = Depends(get_store),
    streams: StreamRegistry = Depends(get_streams),
    config: AppConfig = Depends(get_app_config),
):
    missing_user = config.requires_user_id and not user_id
    if missing_user or not conversation_id:
        async def error_stream():
            yield _sse(f"{ERROR_PREFIX} Missing userId or conversationId")

        return StreamingResponse(error_stream(), media_type="text/event-stream", headers=_SSE_HEADERS)

    interval = config.stream_interval_ms / 1000

    async def event_stream():
        replies = stream_reply(
            store,
            streams,
            user_id,
            conversation_id,
            prompt=prompt,
            system_prompt=system_prompt,
            interval=interval,
        )
        try:
            async with aclosing(replies) as events:
                async for event in events:
                    yield _sse(event)
        except Exception as e:
            logger.error("Stream error for %s: %s", conversation_id, e, exc_info=True)
            yield _sse(f"{ERROR_PREFIX} {e}")

    return StreamingResponse(event_stream(), media_type="text/event-stream", headers=_SSE_HEADERS)


@router.post("/stop")
async def stop_generation(
    user_id: Optional[str] = Query(default=None, alias="userId"),
    conversation_id: str = Query(alias="conversationId"),
    store: ConversationStore = Depends(get_store),
    streams: StreamRegistry = Depends(get_streams),
):
    if streams.cancel((store.scope_key(user_id), conversation_id)):
        return {"status": "stopped"}
    return {"status": "no_active_generation"}
