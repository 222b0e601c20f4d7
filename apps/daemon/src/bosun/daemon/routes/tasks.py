"""任务轮询路由

GET /v1/tasks/: 任务列表查询，支持 status 筛选。
GET /v1/tasks/{task_id}: 任务快照查询（状态、结果、问题集、错误、阶段事件）。

轮询从不阻塞：只返回提交或执行路径最近一次写入的快照。
"""

from typing import Any

from bosun.core.exceptions import TaskNotFoundError
from bosun.core.models import Task, TaskStatus
from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from starlette.responses import JSONResponse

from ..deps import get_task_repository

router = APIRouter(prefix="/v1/tasks")


class TaskSummary(BaseModel):
    """任务摘要（列表项）"""

    task_id: str
    name: str
    status: str
    stage: str
    created_at: str
    updated_at: str
    rejected: bool


class TaskListResponse(BaseModel):
    """任务列表响应"""

    tasks: list[TaskSummary]


def serialize_task(task: Task) -> dict[str, Any]:
    """Task 快照 -> JSON 可序列化 dict（原始异常对象不输出）"""
    return task.model_dump(mode="json")


def task_not_found(task_id: str) -> JSONResponse:
    return JSONResponse(
        status_code=404,
        content={
            "error": {
                "code": "TASK_NOT_FOUND",
                "message": f"Task with id {task_id} does not exist",
            }
        },
    )


@router.get("/", response_model=TaskListResponse)
async def list_tasks(
    status: TaskStatus | None = Query(default=None, description="按状态筛选"),
    repository=Depends(get_task_repository),
):
    """查询任务列表，按 created_at 倒序"""
    tasks = repository.list_tasks(status)
    return TaskListResponse(
        tasks=[
            TaskSummary(
                task_id=t.task_id,
                name=t.name,
                status=t.status.value,
                stage=t.stage.value,
                created_at=t.created_at.isoformat(),
                updated_at=t.updated_at.isoformat(),
                rejected=t.rejected,
            )
            for t in tasks
        ]
    )


@router.get("/{task_id}")
async def get_task(
    task_id: str,
    repository=Depends(get_task_repository),
):
    """查询任务快照"""
    try:
        task = repository.get(task_id)
    except TaskNotFoundError:
        return task_not_found(task_id)
    return serialize_task(task)
