"""依赖注入模块 -- 通过 FastAPI Depends 注入服务实例

服务实例挂在 app.state 上，由 lifespan（或测试）通过 install_services 初始化。
"""

from bosun.config import ConfigStore, SecurityService
from bosun.core.config import DaemonConfig
from bosun.core.models import Severity
from bosun.core.tasks import TaskRepository
from fastapi import Query, Request
from pydantic import BaseModel


class RequestOptions(BaseModel):
    """单个请求的校验选项"""

    run_validation: bool
    severity: Severity
    reject_severity: Severity


def get_daemon_config(request: Request) -> DaemonConfig:
    return request.app.state.daemon_config


def get_task_repository(request: Request) -> TaskRepository:
    return request.app.state.task_repository


def get_config_store(request: Request) -> ConfigStore:
    return request.app.state.config_store


def get_security_service(request: Request) -> SecurityService:
    return request.app.state.security_service


def get_request_options(
    request: Request,
    validate: bool | None = Query(default=None, description="是否执行校验"),
    severity: Severity | None = Query(default=None, description="报告问题的最低严重度"),
    reject_severity: Severity | None = Query(
        default=None,
        description="问题达到此严重度即拒绝变更（仅写请求）",
    ),
) -> RequestOptions:
    """未显式给出的参数取 DaemonConfig 中的默认值"""
    config: DaemonConfig = request.app.state.daemon_config
    return RequestOptions(
        run_validation=config.default_validate if validate is None else validate,
        severity=severity or config.default_severity,
        reject_severity=reject_severity or config.reject_severity,
    )
