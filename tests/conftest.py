from typing import AsyncGenerator

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from mockchat.config import AppConfig
from mockchat.main import create_app


@pytest.fixture
def config() -> AppConfig:
    return AppConfig(environment="test", stream_interval_ms=0)


@pytest.fixture
def app(config: AppConfig) -> FastAPI:
    return create_app(config)


@pytest.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c
