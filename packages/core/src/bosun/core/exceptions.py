"""Bosun Core 异常体系

回调异常（UpdateError / ValidateError / SaveError / RevertError）由执行路径捕获，
转换为 Task 的 FAILED 终态并保留原始异常；校验拒绝不是异常。
"""

from .models.enums import TaskStage


class BosunError(Exception):
    """Bosun 基础异常"""


class CallbackError(BosunError):
    """请求回调执行失败

    原始异常保存在 original 上，同时通过 raise ... from 链接为 __cause__。
    """

    action = "callback"
    stage = TaskStage.PENDING

    def __init__(self, original: BaseException) -> None:
        super().__init__(f"{self.action} failed: {original}")
        self.original = original
        # 补偿回滚本身失败时记录在此，不覆盖主错误
        self.revert_error: BaseException | None = None


class UpdateError(CallbackError):
    """变更回调失败，配置视为未改动"""

    action = "update"
    stage = TaskStage.UPDATE_FAILED


class ValidateError(CallbackError):
    """校验回调自身崩溃（不同于校验发现问题）"""

    action = "validate"
    stage = TaskStage.VALIDATE_FAILED


class SaveError(CallbackError):
    """持久化失败，已执行补偿回滚"""

    action = "save"
    stage = TaskStage.SAVE_FAILED


class RevertError(CallbackError):
    """拒绝路径上的回滚失败"""

    action = "revert"
    stage = TaskStage.REVERT_FAILED


class RequestConsumedError(BosunError):
    """请求构建器只能执行一次"""

    def __init__(self, builder_name: str) -> None:
        super().__init__(f"{builder_name} has already been executed")


class TaskNotFoundError(BosunError):
    """任务 ID 从未提交过（或已被清理）"""

    def __init__(self, task_id: str) -> None:
        super().__init__(f"Task with id {task_id} does not exist")
        self.task_id = task_id


class TaskNotReadyError(BosunError):
    """任务仍在 RUNNING，结果尚不可用"""

    def __init__(self, task_id: str) -> None:
        super().__init__(f"Task {task_id} is still running")
        self.task_id = task_id


class TaskFailedError(BosunError):
    """任务以 FAILED 结束，cause 为捕获到的原始错误"""

    def __init__(
        self,
        task_id: str,
        error_type: str,
        message: str,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(f"Task {task_id} failed with {error_type}: {message}")
        self.task_id = task_id
        self.error_type = error_type
        self.cause = cause
