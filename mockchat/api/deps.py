from typing import Optional

from fastapi import HTTPException, Request

from ..config import AppConfig
from ..conversation.replies import StreamRegistry
from ..conversation.store import ConversationStore


async def get_store(request: Request) -> ConversationStore:
    if getattr(request.app.state, "store", None) is None:
        raise RuntimeError("Conversation store not initialized on app.state")
    return request.app.state.store


async def get_streams(request: Request) -> StreamRegistry:
    if getattr(request.app.state, "streams", None) is None:
        raise RuntimeError("Stream registry not initialized on app.state")
    return request.app.state.streams


async def get_app_config(request: Request) -> AppConfig:
    return request.app.state.config


def require_user_id(config: AppConfig, user_id: Optional[str]) -> None:
    """Reject requests without a user id when the store is partitioned per user."""
    if config.requires_user_id and not user_id:
        raise HTTPException(status_code=400, detail="Missing userId")
