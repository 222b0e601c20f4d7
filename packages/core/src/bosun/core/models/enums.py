"""枚举定义

包含 Severity 严重度、TaskStatus 状态机、TaskStage 执行阶段，
以及 VALID_TRANSITIONS 合法流转映射和 TERMINAL_STATES 终态集合。
"""

from enum import StrEnum


class Severity(StrEnum):
    """问题严重度 -- 全序：NONE < WARNING < ERROR < FATAL

    既作为单个 Problem 的属性，也作为请求的过滤/拒绝阈值。
    """

    NONE = "NONE"
    WARNING = "WARNING"
    ERROR = "ERROR"
    FATAL = "FATAL"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]

    def at_least(self, threshold: "Severity") -> bool:
        """是否达到（含）给定阈值"""
        return self.rank >= threshold.rank


_SEVERITY_RANK: dict[Severity, int] = {
    severity: rank for rank, severity in enumerate(Severity)
}


def lower_severity(a: Severity, b: Severity) -> Severity:
    """返回两者中较低的严重度"""
    return a if a.rank <= b.rank else b


class TaskStatus(StrEnum):
    """Task 状态机"""

    RUNNING = "RUNNING"

    # 终态
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"


VALID_TRANSITIONS: dict[TaskStatus, set[TaskStatus]] = {
    TaskStatus.RUNNING: {TaskStatus.SUCCEEDED, TaskStatus.FAILED},
    # 终态不可再流转
    TaskStatus.SUCCEEDED: set(),
    TaskStatus.FAILED: set(),
}

TERMINAL_STATES: set[TaskStatus] = {
    TaskStatus.SUCCEEDED,
    TaskStatus.FAILED,
}


class TaskStage(StrEnum):
    """执行阶段 -- 记录在 TaskEvent 中，供轮询方观察进度"""

    PENDING = "PENDING"

    # 读协议
    BUILT = "BUILT"
    BUILD_FAILED = "BUILD_FAILED"

    # 写协议（变更协调器）
    UPDATED = "UPDATED"
    UPDATE_FAILED = "UPDATE_FAILED"
    VALIDATED = "VALIDATED"
    VALIDATE_FAILED = "VALIDATE_FAILED"
    REVERTED = "REVERTED"
    REVERT_FAILED = "REVERT_FAILED"
    SAVED = "SAVED"
    SAVE_FAILED = "SAVE_FAILED"


def validate_transition(from_status: TaskStatus, to_status: TaskStatus) -> bool:
    """验证状态流转是否合法

    Args:
        from_status: 当前状态
        to_status: 目标状态

    Returns:
        True 如果流转合法，否则 False
    """
    allowed = VALID_TRANSITIONS.get(from_status, set())
    return to_status in allowed
