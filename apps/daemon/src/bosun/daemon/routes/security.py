"""部署安全配置路由

每个请求都被包装为任务提交，立即返回 202 + RUNNING 快照，客户端通过
/v1/tasks/{task_id} 轮询结果。

GET  /security/                          读安全配置
PUT  /security/                          写安全配置
GET  /security/authn/{method_name}       读认证方式
PUT  /security/authn/{method_name}       写认证方式（请求体类型由 method_name 决定）
PUT  /security/authn/{method_name}/enabled/  启用/停用认证方式
"""

from typing import Any

from bosun.config import (
    ConfigStore,
    Security,
    SecurityService,
    UnknownAuthnMethodError,
    translate_authn_method_name,
)
from bosun.core.models import Task
from bosun.core.tasks import StaticRequestBuilder, TaskRepository, UpdateRequestBuilder
from fastapi import APIRouter, Body, Depends
from pydantic import ValidationError
from starlette.responses import JSONResponse

from ..deps import (
    RequestOptions,
    get_config_store,
    get_request_options,
    get_security_service,
    get_task_repository,
)
from .tasks import serialize_task

router = APIRouter(prefix="/v1/config/deployments/{deployment_name}/security")


def _accepted(task: Task) -> JSONResponse:
    return JSONResponse(status_code=202, content=serialize_task(task))


def _error(status_code: int, code: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": {"code": code, "message": message}},
    )


def _invalid_body(e: ValidationError) -> JSONResponse:
    return _error(422, "INVALID_BODY", str(e))


def _submit_update(
    repository: TaskRepository,
    config_store: ConfigStore,
    options: RequestOptions,
    name: str,
    update,
    validate,
) -> JSONResponse:
    """写请求公共部分：回滚 = 丢弃内存修改，持久化 = 写回配置文件"""
    builder = UpdateRequestBuilder(
        severity=options.severity,
        reject_severity=options.reject_severity,
        update=update,
        validate_update=validate if options.run_validation else None,
        revert=config_store.undo_changes,
        save=config_store.save_config,
    )
    return _accepted(repository.submit(builder.build, name=name))


@router.get("/")
async def get_security(
    deployment_name: str,
    options: RequestOptions = Depends(get_request_options),
    security_service: SecurityService = Depends(get_security_service),
    repository: TaskRepository = Depends(get_task_repository),
):
    builder = StaticRequestBuilder(
        severity=options.severity,
        build_response=lambda: security_service.get_security(deployment_name),
        validate_response=(
            (lambda: security_service.validate_security(deployment_name))
            if options.run_validation
            else None
        ),
    )
    task = repository.submit(builder.build, name=f"Get security of {deployment_name}")
    return _accepted(task)


@router.put("/")
async def set_security(
    deployment_name: str,
    raw_security: dict[str, Any] = Body(...),
    options: RequestOptions = Depends(get_request_options),
    security_service: SecurityService = Depends(get_security_service),
    config_store: ConfigStore = Depends(get_config_store),
    repository: TaskRepository = Depends(get_task_repository),
):
    try:
        security = Security.model_validate(raw_security)
    except ValidationError as e:
        return _invalid_body(e)

    return _submit_update(
        repository,
        config_store,
        options,
        name=f"Edit security of {deployment_name}",
        update=lambda: security_service.set_security(deployment_name, security),
        validate=lambda: security_service.validate_security(deployment_name),
    )


@router.get("/authn/{method_name}")
async def get_authn_method(
    deployment_name: str,
    method_name: str,
    options: RequestOptions = Depends(get_request_options),
    security_service: SecurityService = Depends(get_security_service),
    repository: TaskRepository = Depends(get_task_repository),
):
    try:
        translate_authn_method_name(method_name)
    except UnknownAuthnMethodError as e:
        return _error(404, "AUTHN_METHOD_NOT_FOUND", str(e))

    builder = StaticRequestBuilder(
        severity=options.severity,
        build_response=lambda: security_service.get_authn_method(
            deployment_name, method_name
        ),
        validate_response=(
            (
                lambda: security_service.validate_authn_method(
                    deployment_name, method_name
                )
            )
            if options.run_validation
            else None
        ),
    )
    task = repository.submit(
        builder.build,
        name=f"Get {method_name} authentication of {deployment_name}",
    )
    return _accepted(task)


@router.put("/authn/{method_name}")
async def set_authn_method(
    deployment_name: str,
    method_name: str,
    raw_method: dict[str, Any] = Body(...),
    options: RequestOptions = Depends(get_request_options),
    security_service: SecurityService = Depends(get_security_service),
    config_store: ConfigStore = Depends(get_config_store),
    repository: TaskRepository = Depends(get_task_repository),
):
    try:
        method_cls = translate_authn_method_name(method_name)
    except UnknownAuthnMethodError as e:
        return _error(404, "AUTHN_METHOD_NOT_FOUND", str(e))
    try:
        method = method_cls.model_validate(raw_method)
    except ValidationError as e:
        return _invalid_body(e)

    return _submit_update(
        repository,
        config_store,
        options,
        name=f"Edit {method_name} authentication of {deployment_name}",
        update=lambda: security_service.set_authn_method(deployment_name, method),
        validate=lambda: security_service.validate_authn_method(
            deployment_name, method_name
        ),
    )


@router.put("/authn/{method_name}/enabled/")
async def set_authn_method_enabled(
    deployment_name: str,
    method_name: str,
    enabled: bool = Body(...),
    options: RequestOptions = Depends(get_request_options),
    security_service: SecurityService = Depends(get_security_service),
    config_store: ConfigStore = Depends(get_config_store),
    repository: TaskRepository = Depends(get_task_repository),
):
    try:
        translate_authn_method_name(method_name)
    except UnknownAuthnMethodError as e:
        return _error(404, "AUTHN_METHOD_NOT_FOUND", str(e))

    return _submit_update(
        repository,
        config_store,
        options,
        name=f"Edit {method_name} authentication of {deployment_name}",
        update=lambda: security_service.set_authn_method_enabled(
            deployment_name, method_name, enabled
        ),
        validate=lambda: security_service.validate_authn_method(
            deployment_name, method_name
        ),
    )
