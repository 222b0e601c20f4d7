"""Task Domain Model

Task 是仓库内部执行记录的不可变快照：读取方只能观察，
只有持有该任务的执行路径能推进状态。
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from .. import exceptions
from .enums import TERMINAL_STATES, TaskStage, TaskStatus
from .problem import ProblemSet


class TaskEvent(BaseModel):
    """任务阶段事件"""

    model_config = ConfigDict(frozen=True)

    seq: int = Field(description="任务内序号，严格单调递增")
    ts: datetime = Field(description="事件时间戳")
    stage: TaskStage = Field(description="到达的阶段")
    message: str = Field(default="", description="阶段说明")


class TaskError(BaseModel):
    """FAILED 任务的错误记录"""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    error_type: str = Field(description="异常类型名")
    message: str = Field(description="异常描述")
    stage: TaskStage | None = Field(default=None, description="出错时所处阶段")
    cause: BaseException | None = Field(
        default=None,
        exclude=True,
        description="原始异常对象，仅供进程内检查，不序列化",
    )


class TaskResponse(BaseModel):
    """执行协议成功返回的内容"""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    response_body: Any = Field(default=None, description="领域结果，变更请求为 None")
    problems: ProblemSet = Field(default_factory=ProblemSet)
    validated: bool = Field(default=False, description="是否实际执行了校验")
    rejected: bool = Field(default=False, description="变更是否被校验拒绝并回滚")


class Task(BaseModel):
    """Task 快照

    response_body 仅在 SUCCEEDED 时存在，error 仅在 FAILED 时存在。
    validated=False 时 problems 一定为空：区分"未校验"与"校验无问题"。
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    task_id: str = Field(description="唯一标识，ULID 格式")
    name: str = Field(default="", description="任务描述")
    status: TaskStatus = Field(default=TaskStatus.RUNNING, description="当前状态")
    created_at: datetime = Field(description="提交时间")
    updated_at: datetime = Field(description="最近一次变化时间")
    response_body: Any = Field(default=None)
    problems: ProblemSet = Field(default_factory=ProblemSet)
    validated: bool = Field(default=False)
    rejected: bool = Field(default=False)
    stage: TaskStage = Field(default=TaskStage.PENDING, description="最近到达的阶段")
    error: TaskError | None = Field(default=None)
    events: list[TaskEvent] = Field(default_factory=list)

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATES

    def result(self) -> Any:
        """取领域结果

        Raises:
            TaskNotReadyError: 任务仍在 RUNNING
            TaskFailedError: 任务已 FAILED，cause 为原始错误
        """
        if self.status == TaskStatus.RUNNING:
            raise exceptions.TaskNotReadyError(self.task_id)
        if self.status == TaskStatus.FAILED:
            error = self.error or TaskError(error_type="Unknown", message="")
            raise exceptions.TaskFailedError(
                self.task_id,
                error.error_type,
                error.message,
                error.cause,
            ) from error.cause
        return self.response_body
