import logging
import sys
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from mockchat.api.routes_chat import router as chat_router
from mockchat.api.routes_client import router as client_router
from mockchat.api.routes_conversation import router as conversation_router
from mockchat.api.routes_dev import router as dev_router
from mockchat.config import AppConfig, get_config
from mockchat.conversation.replies import StreamRegistry
from mockchat.conversation.store import ConversationStore

VERSION = "0.1.0"

logger = logging.getLogger(__name__)


def setup_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        stream=sys.stdout,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    config: AppConfig = app.state.config
    logger.info(
        "mockchat %s up (env=%s, scope=%s, tick=%dms)",
        VERSION,
        config.environment,
        config.store_scope,
        config.stream_interval_ms,
    )
    yield
    app.state.store.clear()


def create_app(config: Optional[AppConfig] = None) -> FastAPI:
    config = config or get_config()

    app = FastAPI(title="mockchat", version=VERSION, lifespan=lifespan)
    app.state.config = config
    app.state.store = ConversationStore(scope=config.store_scope)
    app.state.streams = StreamRegistry()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=False,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type"],
    )

    app.include_router(chat_router)
    app.include_router(conversation_router)
    app.include_router(client_router)
    if config.is_dev:
        app.include_router(dev_router)

    @app.get("/api/health")
    async def health_check():
        return {"status": "ok", "version": VERSION}

    return app


setup_logging(get_config().log_level)
app = create_app()
