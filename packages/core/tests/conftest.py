"""packages/core 测试配置 -- 任务仓库与可观测的共享状态"""

import pytest
import pytest_asyncio
from bosun.core.tasks import TaskRepository


class FlagConfig:
    """模拟共享配置：一个布尔开关 + 回调调用计数"""

    def __init__(self) -> None:
        self.flag = False
        self._saved_flag = False
        self.calls: list[str] = []

    def update(self) -> None:
        self.calls.append("update")
        self.flag = True

    def revert(self) -> None:
        self.calls.append("revert")
        self.flag = self._saved_flag

    def save(self) -> None:
        self.calls.append("save")
        self._saved_flag = self.flag

    def count(self, name: str) -> int:
        return self.calls.count(name)


@pytest.fixture
def flag_config() -> FlagConfig:
    return FlagConfig()


@pytest_asyncio.fixture
async def repository():
    repo = TaskRepository()
    yield repo
    await repo.shutdown()
