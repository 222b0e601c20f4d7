"""TraceMiddleware -- 任务轮询请求绑定 trace_id

从 /v1/tasks/{task_id} 路径提取 task_id，绑定 trace_id=trace-{task_id}，
使轮询日志与任务执行日志可关联。
"""

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# ULID 字符串长度
_TASK_ID_LENGTH = 26


def extract_task_id(path: str) -> str | None:
    """从路径中提取 task_id，不是任务路径时返回 None"""
    parts = [part for part in path.split("/") if part]
    for i, part in enumerate(parts):
        if part == "tasks" and i + 1 < len(parts):
            candidate = parts[i + 1]
            if len(candidate) == _TASK_ID_LENGTH:
                return candidate
    return None


class TraceMiddleware(BaseHTTPMiddleware):
    """任务级追踪中间件"""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        task_id = extract_task_id(request.url.path)
        if task_id:
            structlog.contextvars.bind_contextvars(trace_id=f"trace-{task_id}")

        return await call_next(request)
