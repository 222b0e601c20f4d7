"""Bosun Core Domain Models -- 公共类型导出

所有公共模型类型从此入口导入。
"""

from .enums import (
    TERMINAL_STATES,
    VALID_TRANSITIONS,
    Severity,
    TaskStage,
    TaskStatus,
    lower_severity,
    validate_transition,
)
from .problem import Problem, ProblemSet
from .task import Task, TaskError, TaskEvent, TaskResponse

__all__ = [
    # 枚举
    "Severity",
    "TaskStatus",
    "TaskStage",
    "lower_severity",
    # 状态机
    "VALID_TRANSITIONS",
    "TERMINAL_STATES",
    "validate_transition",
    # Problem
    "Problem",
    "ProblemSet",
    # Task
    "Task",
    "TaskError",
    "TaskEvent",
    "TaskResponse",
]
