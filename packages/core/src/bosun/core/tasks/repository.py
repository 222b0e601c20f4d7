"""TaskRepository -- 进程级任务注册表

submit 立即返回 RUNNING 快照，工作在事件循环上以独立 asyncio.Task 执行；
get / list_tasks 只返回不可变快照，从不阻塞。

所有状态流转都在事件循环线程上发生，注册表额外由 threading.Lock 保护，
保证其他线程读取时索引一致。
"""

import asyncio
import threading
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime, timedelta
from typing import Any

import structlog
from ulid import ULID

from ..exceptions import CallbackError, TaskNotFoundError
from ..models import (
    TERMINAL_STATES,
    Task,
    TaskError,
    TaskEvent,
    TaskResponse,
    TaskStage,
    TaskStatus,
    validate_transition,
)

log = structlog.get_logger()


class _TaskRecord:
    """任务的可变内部记录，只在仓库锁内修改"""

    def __init__(self, task_id: str, name: str, now: datetime) -> None:
        self.task_id = task_id
        self.name = name
        self.status = TaskStatus.RUNNING
        self.created_at = now
        self.updated_at = now
        self.stage = TaskStage.PENDING
        self.response: TaskResponse | None = None
        self.error: TaskError | None = None
        self.events: list[TaskEvent] = []
        self.runner: asyncio.Task | None = None

    def snapshot(self) -> Task:
        response = self.response or TaskResponse()
        return Task(
            task_id=self.task_id,
            name=self.name,
            status=self.status,
            created_at=self.created_at,
            updated_at=self.updated_at,
            response_body=response.response_body,
            problems=response.problems.model_copy(deep=True),
            validated=response.validated,
            rejected=response.rejected,
            stage=self.stage,
            error=self.error,
            events=list(self.events),
        )


class TaskReporter:
    """执行路径专用句柄 -- 追加阶段事件"""

    def __init__(self, repository: "TaskRepository", record: _TaskRecord) -> None:
        self._repository = repository
        self._record = record

    @property
    def task_id(self) -> str:
        return self._record.task_id

    def stage(self, stage: TaskStage, message: str = "") -> None:
        self._repository._append_event(self._record, stage, message)


TaskWork = Callable[[TaskReporter], Awaitable[Any]]


class TaskRepository:
    """任务仓库"""

    def __init__(self) -> None:
        self._records: dict[str, _TaskRecord] = {}
        self._lock = threading.Lock()

    def submit(self, work: TaskWork, name: str = "") -> Task:
        """提交工作并立即返回 RUNNING 快照

        必须在运行中的事件循环内调用。

        Args:
            work: 接收 TaskReporter 的异步可调用对象，返回 TaskResponse 或领域结果
            name: 任务描述

        Returns:
            提交时刻的 Task 快照
        """
        loop = asyncio.get_running_loop()
        record = _TaskRecord(str(ULID()), name, datetime.now(UTC))

        with self._lock:
            self._records[record.task_id] = record
            snapshot = record.snapshot()

        record.runner = loop.create_task(
            self._run(record, work),
            name=f"bosun-task-{record.task_id}",
        )
        log.info("task_submitted", task_id=record.task_id, name=name)
        return snapshot

    def get(self, task_id: str) -> Task:
        """查询任务快照

        Raises:
            TaskNotFoundError: 任务不存在
        """
        with self._lock:
            return self._get_record(task_id).snapshot()

    def list_tasks(self, status: TaskStatus | None = None) -> list[Task]:
        """查询任务列表，支持按状态筛选，按 created_at 倒序"""
        with self._lock:
            records = [
                r for r in self._records.values() if status is None or r.status == status
            ]
            records.sort(key=lambda r: (r.created_at, r.task_id), reverse=True)
            return [r.snapshot() for r in records]

    async def wait(self, task_id: str, timeout: float | None = None) -> Task:
        """等待任务到达终态并返回快照

        超时抛出 TimeoutError，但不会取消任务本身。
        """
        with self._lock:
            runner = self._get_record(task_id).runner
        if runner is not None:
            _, pending = await asyncio.wait({runner}, timeout=timeout)
            if pending:
                raise TimeoutError(f"Task {task_id} still running after {timeout}s")
        return self.get(task_id)

    def reap(self, max_age: timedelta) -> int:
        """清理最近更新早于 max_age 的终态任务，RUNNING 任务不受影响

        Returns:
            被清理的任务数
        """
        cutoff = datetime.now(UTC) - max_age
        with self._lock:
            expired = [
                task_id
                for task_id, record in self._records.items()
                if record.status in TERMINAL_STATES and record.updated_at <= cutoff
            ]
            for task_id in expired:
                del self._records[task_id]
        if expired:
            log.info("tasks_reaped", count=len(expired))
        return len(expired)

    async def shutdown(self) -> None:
        """等待所有在途任务结束"""
        with self._lock:
            runners = [
                r.runner
                for r in self._records.values()
                if r.runner is not None and not r.runner.done()
            ]
        if runners:
            log.info("task_repository_draining", in_flight=len(runners))
            await asyncio.gather(*runners, return_exceptions=True)

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def _get_record(self, task_id: str) -> _TaskRecord:
        record = self._records.get(task_id)
        if record is None:
            raise TaskNotFoundError(task_id)
        return record

    async def _run(self, record: _TaskRecord, work: TaskWork) -> None:
        """执行单元：任何回调异常都在此收敛为 FAILED，不外泄

        取消等 BaseException 同样记录为 FAILED 后再向上抛出，任务不会停留在 RUNNING。
        """
        # asyncio.Task 持有独立的 context 副本，绑定不会泄漏到提交方
        structlog.contextvars.bind_contextvars(trace_id=f"trace-{record.task_id}")
        reporter = TaskReporter(self, record)
        try:
            outcome = await work(reporter)
        except Exception as e:
            self._fail(record, e)
            return
        except BaseException as e:
            self._fail(record, e)
            raise

        if isinstance(outcome, TaskResponse):
            response = outcome
        else:
            response = TaskResponse(response_body=outcome)
        self._succeed(record, response)

    def _append_event(self, record: _TaskRecord, stage: TaskStage, message: str) -> None:
        with self._lock:
            if record.status in TERMINAL_STATES:
                log.warning(
                    "task_event_after_terminal",
                    task_id=record.task_id,
                    stage=stage.value,
                )
                return
            now = datetime.now(UTC)
            record.events.append(
                TaskEvent(
                    seq=len(record.events) + 1,
                    ts=now,
                    stage=stage,
                    message=message,
                )
            )
            record.stage = stage
            record.updated_at = now

        # 同一任务后续的日志都带上当前阶段
        structlog.contextvars.bind_contextvars(task_stage=stage.value)
        log.debug("task_stage_reached", task_id=record.task_id, stage=stage.value)

    def _transition(self, record: _TaskRecord, to_status: TaskStatus) -> bool:
        """调用方需持有锁"""
        if not validate_transition(record.status, to_status):
            log.warning(
                "task_transition_refused",
                task_id=record.task_id,
                from_status=record.status.value,
                to_status=to_status.value,
            )
            return False
        record.status = to_status
        record.updated_at = datetime.now(UTC)
        return True

    def _succeed(self, record: _TaskRecord, response: TaskResponse) -> None:
        with self._lock:
            if not self._transition(record, TaskStatus.SUCCEEDED):
                return
            record.response = response
        log.info(
            "task_succeeded",
            task_id=record.task_id,
            problem_count=len(response.problems),
            rejected=response.rejected,
        )

    def _fail(self, record: _TaskRecord, error: BaseException) -> None:
        stage = error.stage if isinstance(error, CallbackError) else record.stage
        with self._lock:
            if not self._transition(record, TaskStatus.FAILED):
                return
            record.error = TaskError(
                error_type=type(error).__name__,
                message=str(error) or type(error).__name__,
                stage=stage,
                cause=error,
            )
        log.error(
            "task_failed",
            task_id=record.task_id,
            error_type=type(error).__name__,
            stage=stage.value,
        )


_default_repository: TaskRepository | None = None
_default_repository_guard = threading.Lock()


def get_task_repository() -> TaskRepository:
    """进程级默认仓库"""
    global _default_repository
    with _default_repository_guard:
        if _default_repository is None:
            _default_repository = TaskRepository()
        return _default_repository
