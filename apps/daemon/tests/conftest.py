"""apps/daemon 测试配置 -- FastAPI app + httpx AsyncClient"""

import os
from collections.abc import AsyncGenerator
from pathlib import Path

import pytest_asyncio
from httpx import ASGITransport, AsyncClient


@pytest_asyncio.fixture
async def test_app(seeded_config_path: Path):
    """创建测试用 app，手动挂载服务（绕过 lifespan）"""
    os.environ["LOGFIRE_SEND_TO_LOGFIRE"] = "false"

    from bosun.core.config import DaemonConfig
    from bosun.daemon.main import create_app, install_services

    app = create_app()
    install_services(app, DaemonConfig(config_path=seeded_config_path))

    yield app

    await app.state.task_repository.shutdown()
    os.environ.pop("LOGFIRE_SEND_TO_LOGFIRE", None)


@pytest_asyncio.fixture
async def client(test_app) -> AsyncGenerator[AsyncClient, None]:
    """提供 httpx AsyncClient 用于测试"""
    async with AsyncClient(
        transport=ASGITransport(app=test_app),
        base_url="http://test",
    ) as ac:
        yield ac
