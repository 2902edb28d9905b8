from fastapi import APIRouter, Depends

from ..config import AppConfig
from .deps import get_app_config

router = APIRouter(prefix="/api", tags=["client"])


@router.get("/client-config")
async def client_config(config: AppConfig = Depends(get_app_config)):
    """Return ONLY the settings the browser client needs.

    The full AppConfig stays server-side; the client gets its API base URL and
    the tone selector values it may send back as ``systemPrompt``.
    """
    return {"apiBaseUrl": config.api_base_url, "tones": config.tones}
