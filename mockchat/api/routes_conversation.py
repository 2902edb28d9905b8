from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict, Field

from ..config import AppConfig
from ..conversation.store import ConversationStore
from .deps import get_app_config, get_store, require_user_id

router = APIRouter(prefix="/api/conversations", tags=["conversations"])


class TitleRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: Optional[str] = Field(default=None, alias="userId")
    title: Optional[str] = None  # Recomputed from the messages when omitted


@router.get("")
async def list_conversations(
    user_id: Optional[str] = Query(default=None, alias="userId"),
    store: ConversationStore = Depends(get_store),
    config: AppConfig = Depends(get_app_config),
):
    if config.requires_user_id and not user_id:
        return []
    return [s.model_dump() for s in store.list(user_id)]


@router.get("/{conv_id}")
async def get_conversation(
    conv_id: str,
    user_id: Optional[str] = Query(default=None, alias="userId"),
    store: ConversationStore = Depends(get_store),
    config: AppConfig = Depends(get_app_config),
):
    if config.requires_user_id and not user_id:
        return []
    return [m.model_dump(exclude_none=True) for m in store.get(user_id, conv_id)]


@router.post("/{conv_id}/title")
async def update_title(
    conv_id: str,
    req: TitleRequest,
    store: ConversationStore = Depends(get_store),
    config: AppConfig = Depends(get_app_config),
):
    require_user_id(config, req.user_id)
    return {"title": store.set_title(req.user_id, conv_id, req.title)}
