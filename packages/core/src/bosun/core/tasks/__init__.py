"""Bosun Core Tasks -- 任务仓库与请求构建器

提交 -> 异步执行 -> 轮询的公开接口。
"""

from .builders import StaticRequestBuilder, UpdateRequestBuilder, invoke
from .repository import TaskReporter, TaskRepository, TaskWork, get_task_repository

__all__ = [
    "TaskRepository",
    "TaskReporter",
    "TaskWork",
    "get_task_repository",
    "StaticRequestBuilder",
    "UpdateRequestBuilder",
    "invoke",
]
