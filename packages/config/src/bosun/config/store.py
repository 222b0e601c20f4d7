"""ConfigStore -- 文件持久化的共享配置

内存中的 BosunConfig 被所有请求回调共享：
- get_config(): 惰性从磁盘加载
- undo_changes(): 丢弃内存修改，下次访问重新加载（幂等，作为 revert 回调）
- save_config(): 原子写回磁盘（临时文件 + os.replace，作为 save 回调）

RLock 只保证单次操作内的一致性；跨任务的变更不做隔离。
"""

import os
import threading
from pathlib import Path

import structlog
from pydantic import ValidationError

from .exceptions import ConfigDiscardedError, ConfigLoadError, DeploymentNotFoundError
from .models import BosunConfig, DeploymentConfiguration

log = structlog.get_logger()


class ConfigStore:
    """部署配置存储"""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._lock = threading.RLock()
        self._config: BosunConfig | None = None

    @property
    def path(self) -> Path:
        return self._path

    @property
    def lock(self) -> threading.RLock:
        return self._lock

    def get_config(self) -> BosunConfig:
        with self._lock:
            if self._config is None:
                self._config = self._load()
            return self._config

    def get_deployment(self, deployment_name: str) -> DeploymentConfiguration:
        """按名称查找部署

        Raises:
            DeploymentNotFoundError: 部署不存在
        """
        with self._lock:
            for deployment in self.get_config().deployment_configurations:
                if deployment.name == deployment_name:
                    return deployment
        raise DeploymentNotFoundError(deployment_name)

    def undo_changes(self) -> None:
        """丢弃未保存的内存修改"""
        with self._lock:
            self._config = None
        log.info("config_changes_discarded", path=str(self._path))

    def save_config(self) -> None:
        """原子写回磁盘

        Raises:
            ConfigDiscardedError: 内存中没有可保存的配置（未加载或已被 undo_changes 丢弃）
        """
        with self._lock:
            if self._config is None:
                log.warning("config_save_after_discard", path=str(self._path))
                raise ConfigDiscardedError(str(self._path))
            content = self._config.model_dump_json(indent=2)
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = self._path.with_name(self._path.name + ".tmp")
            tmp_path.write_text(content, encoding="utf-8")
            os.replace(tmp_path, self._path)
        log.info("config_saved", path=str(self._path), size=len(content))

    def is_readable(self) -> bool:
        """磁盘上的配置可被解析（文件不存在视为空配置）"""
        try:
            self._load()
        except ConfigLoadError:
            return False
        return True

    def _load(self) -> BosunConfig:
        if not self._path.exists():
            log.info("config_file_missing", path=str(self._path))
            return BosunConfig()
        try:
            return BosunConfig.model_validate_json(
                self._path.read_text(encoding="utf-8")
            )
        except (OSError, ValidationError) as e:
            raise ConfigLoadError(str(self._path), e) from e
