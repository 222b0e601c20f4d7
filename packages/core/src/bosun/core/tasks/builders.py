"""请求构建器 -- 读协议与写协议

构建器通过显式关键字参数一次性装配、装配后不可修改，且只能执行一次。
执行时按固定顺序调用回调：

读协议（StaticRequestBuilder）:
    build_response -> [validate_response] -> SUCCEEDED(结果 + 过滤后的问题)

写协议（UpdateRequestBuilder，变更协调器）:
    update -> [validate_update] -> 拒绝: revert
                                -> 接受: save，失败时补偿 revert

同步回调经 asyncio.to_thread 在线程池执行，避免阻塞轮询；协程回调直接 await。
"""

import asyncio
import inspect
from collections.abc import Callable
from typing import Any

import structlog
from pydantic import BaseModel, ConfigDict, Field, PrivateAttr

from ..exceptions import (
    CallbackError,
    RequestConsumedError,
    RevertError,
    SaveError,
    UpdateError,
    ValidateError,
)
from ..models import ProblemSet, Severity, TaskResponse, TaskStage, lower_severity
from .repository import TaskReporter

log = structlog.get_logger()


async def invoke(callback: Callable[[], Any]) -> Any:
    """调用零参回调，兼容同步与异步实现"""
    if inspect.iscoroutinefunction(callback):
        return await callback()
    result = await asyncio.to_thread(callback)
    if inspect.isawaitable(result):
        result = await result
    return result


def _mark(reporter: TaskReporter | None, stage: TaskStage, message: str = "") -> None:
    if reporter is not None:
        reporter.stage(stage, message)


def _task_id(reporter: TaskReporter | None) -> str | None:
    return reporter.task_id if reporter is not None else None


def _expect_problem_set(value: Any) -> ProblemSet:
    if not isinstance(value, ProblemSet):
        raise TypeError(
            f"validator must return a ProblemSet, got {type(value).__name__}"
        )
    return value


class _RequestBuilder(BaseModel):
    """构建器基类：冻结字段 + 单次执行"""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    severity: Severity = Field(default=Severity.WARNING, description="报告阈值")

    _consumed: bool = PrivateAttr(default=False)

    def _consume(self) -> None:
        if self._consumed:
            raise RequestConsumedError(type(self).__name__)
        self._consumed = True

    @property
    def consumed(self) -> bool:
        return self._consumed


class StaticRequestBuilder(_RequestBuilder):
    """读请求：构建结果，可选校验，问题随结果一并返回，不会因问题而失败"""

    build_response: Callable[[], Any]
    validate_response: Callable[[], ProblemSet] | None = None

    async def build(self, reporter: TaskReporter | None = None) -> TaskResponse:
        self._consume()
        _mark(reporter, TaskStage.PENDING)

        try:
            body = await invoke(self.build_response)
        except Exception as e:
            _mark(reporter, TaskStage.BUILD_FAILED, str(e))
            raise
        _mark(reporter, TaskStage.BUILT)

        if self.validate_response is None:
            return TaskResponse(response_body=body)

        try:
            problems = _expect_problem_set(await invoke(self.validate_response))
        except Exception as e:
            _mark(reporter, TaskStage.VALIDATE_FAILED, str(e))
            raise ValidateError(e) from e
        reported = problems.filter_by_severity(self.severity)
        _mark(reporter, TaskStage.VALIDATED, f"{len(reported)} problem(s) reported")
        return TaskResponse(response_body=body, problems=reported, validated=True)


class UpdateRequestBuilder(_RequestBuilder):
    """写请求：变更 -> 校验 -> 拒绝则回滚 / 接受则持久化

    validate_update 为 None 表示未请求校验，此时问题集为空且 validated=False。
    revert 可能在 update 部分生效后被调用，实现方需保证其可重复安全执行。
    """

    reject_severity: Severity = Field(
        default=Severity.ERROR,
        description="问题达到此严重度即拒绝变更",
    )
    update: Callable[[], Any]
    validate_update: Callable[[], ProblemSet] | None = None
    revert: Callable[[], Any]
    save: Callable[[], Any]

    async def build(self, reporter: TaskReporter | None = None) -> TaskResponse:
        self._consume()
        task_id = _task_id(reporter)
        _mark(reporter, TaskStage.PENDING)

        # 1. 应用变更
        try:
            await invoke(self.update)
        except Exception as e:
            _mark(reporter, TaskStage.UPDATE_FAILED, str(e))
            raise UpdateError(e) from e
        _mark(reporter, TaskStage.UPDATED)

        # 2. 校验变更后的内存状态
        problems = ProblemSet()
        validated = self.validate_update is not None
        if self.validate_update is not None:
            try:
                problems = _expect_problem_set(await invoke(self.validate_update))
            except Exception as e:
                _mark(reporter, TaskStage.VALIDATE_FAILED, str(e))
                error = ValidateError(e)
                await self._compensate(reporter, error)
                raise error from e

        # 拒绝原因必须对调用方可见
        reported = problems.filter_by_severity(
            lower_severity(self.severity, self.reject_severity)
        )
        _mark(reporter, TaskStage.VALIDATED, f"{len(problems)} problem(s) found")

        # 3. 拒绝 -> 回滚，不持久化
        if problems.has_severity_at_least(self.reject_severity):
            log.info(
                "mutation_rejected",
                task_id=task_id,
                max_severity=problems.max_severity().value,
                reject_severity=self.reject_severity.value,
            )
            try:
                await invoke(self.revert)
            except Exception as e:
                _mark(reporter, TaskStage.REVERT_FAILED, str(e))
                log.error(
                    "mutation_revert_failed",
                    task_id=task_id,
                    error_type=type(e).__name__,
                )
                raise RevertError(e) from e
            _mark(reporter, TaskStage.REVERTED, "rejected by validation")
            return TaskResponse(problems=reported, validated=True, rejected=True)

        # 4. 接受 -> 持久化，失败则补偿回滚
        try:
            await invoke(self.save)
        except Exception as e:
            _mark(reporter, TaskStage.SAVE_FAILED, str(e))
            error = SaveError(e)
            await self._compensate(reporter, error)
            raise error from e
        _mark(reporter, TaskStage.SAVED)

        return TaskResponse(problems=reported, validated=validated)

    async def _compensate(self, reporter: TaskReporter | None, error: CallbackError) -> None:
        """补偿回滚；回滚失败只附加到主错误上"""
        try:
            await invoke(self.revert)
        except Exception as e:
            _mark(reporter, TaskStage.REVERT_FAILED, str(e))
            log.error(
                "mutation_revert_failed",
                task_id=_task_id(reporter),
                error_type=type(e).__name__,
                during=error.action,
            )
            error.revert_error = e
            return
        _mark(reporter, TaskStage.REVERTED, f"compensating {error.action} failure")
