"""健康检查路由

GET /health: Liveness 检查，永远返回 200。
GET /ready: Readiness 检查，包含配置文件可解析性、配置目录、任务仓库、磁盘空间。
"""

import shutil

import structlog
from bosun.core.models import TaskStatus
from fastapi import APIRouter, Request
from starlette.responses import JSONResponse

log = structlog.get_logger()

router = APIRouter()


@router.get("/health")
async def health():
    """Liveness 检查 -- 永远返回 200"""
    return {"status": "ok"}


@router.get("/ready")
async def ready(request: Request):
    """Readiness 检查 -- 验证核心依赖可用性

    检查项：
    1. config_file: 磁盘上的配置可被解析（不存在视为空配置）
    2. config_dir: 配置所在目录存在或可创建
    3. task_repository: 已初始化，附带运行中任务数
    4. disk_space_mb: 磁盘剩余空间
    """
    checks = {}
    all_ok = True

    # 1. 配置文件
    config_store = getattr(request.app.state, "config_store", None)
    if config_store is None:
        checks["config_file"] = "error: config store not initialized"
        all_ok = False
    elif config_store.is_readable():
        checks["config_file"] = "ok"
    else:
        checks["config_file"] = "error: config file cannot be parsed"
        all_ok = False

    # 2. 配置目录
    if config_store is not None:
        try:
            config_dir = config_store.path.parent
            config_dir.mkdir(parents=True, exist_ok=True)
            checks["config_dir"] = "ok"
        except OSError as e:
            checks["config_dir"] = f"error: {e}"
            all_ok = False

    # 3. 任务仓库
    repository = getattr(request.app.state, "task_repository", None)
    if repository is None:
        checks["task_repository"] = "error: task repository not initialized"
        all_ok = False
    else:
        checks["task_repository"] = "ok"
        checks["running_tasks"] = len(repository.list_tasks(TaskStatus.RUNNING))

    # 4. 磁盘空间
    try:
        disk_usage = shutil.disk_usage("/")
        checks["disk_space_mb"] = disk_usage.free // (1024 * 1024)
    except OSError as e:
        log.warning("disk_usage_check_failed", error=str(e))
        checks["disk_space_mb"] = 0
        all_ok = False

    status_code = 200 if all_ok else 503
    status_text = "ready" if all_ok else "not_ready"

    return JSONResponse(
        status_code=status_code,
        content={
            "status": status_text,
            "checks": checks,
        },
    )
