"""集成测试共享 fixture"""

import os
from collections.abc import AsyncGenerator
from pathlib import Path

import pytest_asyncio
from httpx import ASGITransport, AsyncClient


@pytest_asyncio.fixture
async def integration_app(seeded_config_path: Path):
    """集成测试用 FastAPI app"""
    os.environ["LOGFIRE_SEND_TO_LOGFIRE"] = "false"

    from bosun.core.config import DaemonConfig
    from bosun.daemon.main import create_app, install_services

    app = create_app()
    install_services(app, DaemonConfig(config_path=seeded_config_path))

    yield app

    await app.state.task_repository.shutdown()
    os.environ.pop("LOGFIRE_SEND_TO_LOGFIRE", None)


@pytest_asyncio.fixture
async def client(integration_app) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(
        transport=ASGITransport(app=integration_app),
        base_url="http://test",
    ) as ac:
        yield ac
