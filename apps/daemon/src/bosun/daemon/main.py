"""FastAPI 应用主文件

app 创建 + lifespan 管理：配置加载、服务初始化、周期清理终态任务、
关闭时等待在途任务结束。
"""

import asyncio
import contextlib
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import timedelta

import structlog
from bosun.config import ConfigStore, SecurityService
from bosun.core.config import DaemonConfig, load_daemon_config
from bosun.core.tasks import TaskRepository
from fastapi import FastAPI

from .middleware.logging_config import setup_logfire, setup_logging
from .middleware.logging_mw import LoggingMiddleware
from .middleware.trace_mw import TraceMiddleware
from .routes import health, security, tasks

log = structlog.get_logger()


def install_services(app: FastAPI, config: DaemonConfig) -> None:
    """在 app.state 上挂载服务实例（lifespan 与测试共用）"""
    config_store = ConfigStore(config.config_path)
    app.state.daemon_config = config
    app.state.config_store = config_store
    app.state.security_service = SecurityService(config_store)
    app.state.task_repository = TaskRepository()


async def reap_periodically(repository: TaskRepository, config: DaemonConfig) -> None:
    """周期清理超过保留时长的终态任务"""
    retention = timedelta(seconds=config.task_retention_s)
    while True:
        await asyncio.sleep(config.reap_interval_s)
        repository.reap(retention)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """应用生命周期管理"""
    config = load_daemon_config()
    install_services(app, config)
    reaper = asyncio.create_task(
        reap_periodically(app.state.task_repository, config)
    )
    log.info(
        "daemon_started",
        config_path=str(config.config_path),
        default_severity=config.default_severity.value,
        reject_severity=config.reject_severity.value,
    )

    yield

    reaper.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await reaper
    await app.state.task_repository.shutdown()
    log.info("daemon_stopped")


def create_app() -> FastAPI:
    """创建 FastAPI 应用实例"""
    app = FastAPI(
        title="Bosun Daemon",
        version="0.1.0",
        description="部署安全配置的异步任务化读写 API",
        lifespan=lifespan,
    )

    # 注册中间件（顺序：先 Trace 后 Logging，Logging 在最外层）
    app.add_middleware(TraceMiddleware)
    app.add_middleware(LoggingMiddleware)

    setup_logging()
    setup_logfire()

    app.include_router(security.router, tags=["security"])
    app.include_router(tasks.router, tags=["tasks"])
    app.include_router(health.router, tags=["health"])

    return app


# 默认 app 实例（uvicorn 入口）
app = create_app()
