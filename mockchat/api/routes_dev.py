"""Dev-only routes. Mounted by the app factory in development environments only."""

from fastapi import APIRouter, Depends

from ..conversation.store import ConversationStore
from .deps import get_store

router = APIRouter(prefix="/api", tags=["dev"])


@router.post("/clear")
async def clear_conversations(store: ConversationStore = Depends(get_store)):
    store.clear()
    return {"status": "All user conversations cleared."}
