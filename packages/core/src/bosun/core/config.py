"""DaemonConfig -- 守护进程配置加载

从环境变量加载配置；非法取值记录告警并回落默认值，不阻塞启动。
"""

import os
from pathlib import Path

import structlog
from pydantic import BaseModel, Field

from .models.enums import Severity

log = structlog.get_logger()

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def _get_base_dir() -> Path:
    """获取 data 基础目录"""
    return Path(os.environ.get("BOSUN_DATA_DIR", "data"))


def get_config_path() -> Path:
    """获取部署配置文件路径"""
    return Path(
        os.environ.get(
            "BOSUN_CONFIG_PATH",
            str(_get_base_dir() / "bosun.json"),
        )
    )


class DaemonConfig(BaseModel):
    """守护进程配置

    环境变量:
        BOSUN_CONFIG_PATH: 部署配置文件路径（默认 $BOSUN_DATA_DIR/bosun.json）
        BOSUN_DEFAULT_SEVERITY: 请求未指定 severity 时的报告阈值
        BOSUN_DEFAULT_VALIDATE: 请求未指定 validate 时是否校验
        BOSUN_REJECT_SEVERITY: 变更被拒绝的最低严重度
        BOSUN_TASK_RETENTION_S: 终态任务保留时长（秒）
        BOSUN_REAP_INTERVAL_S: 清理周期（秒）
    """

    config_path: Path = Field(
        default_factory=get_config_path,
        description="部署配置文件路径",
    )
    default_severity: Severity = Field(
        default=Severity.WARNING,
        description="默认报告阈值",
    )
    default_validate: bool = Field(default=True, description="默认是否执行校验")
    reject_severity: Severity = Field(
        default=Severity.ERROR,
        description="变更拒绝阈值",
    )
    task_retention_s: int = Field(default=3600, ge=1, description="终态任务保留时长（秒）")
    reap_interval_s: int = Field(default=60, ge=1, description="清理周期（秒）")


def _parse_severity(env_var: str, value: str) -> Severity | None:
    try:
        return Severity(value.upper())
    except ValueError:
        log.warning("invalid_severity_config", env_var=env_var, value=value)
        return None


def _parse_bool(env_var: str, value: str) -> bool | None:
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    log.warning("invalid_bool_config", env_var=env_var, value=value)
    return None


def _parse_positive_int(env_var: str, value: str) -> int | None:
    try:
        parsed = int(value)
    except ValueError:
        parsed = 0
    if parsed < 1:
        log.warning("invalid_int_config", env_var=env_var, value=value)
        return None
    return parsed


def load_daemon_config() -> DaemonConfig:
    """从环境变量加载 DaemonConfig

    Returns:
        DaemonConfig 实例
    """
    kwargs: dict = {}

    if val := os.environ.get("BOSUN_CONFIG_PATH"):
        kwargs["config_path"] = Path(val)

    for env_var, field in (
        ("BOSUN_DEFAULT_SEVERITY", "default_severity"),
        ("BOSUN_REJECT_SEVERITY", "reject_severity"),
    ):
        if (val := os.environ.get(env_var)) and (
            severity := _parse_severity(env_var, val)
        ) is not None:
            kwargs[field] = severity

    if val := os.environ.get("BOSUN_DEFAULT_VALIDATE"):
        if (flag := _parse_bool("BOSUN_DEFAULT_VALIDATE", val)) is not None:
            kwargs["default_validate"] = flag

    for env_var, field in (
        ("BOSUN_TASK_RETENTION_S", "task_retention_s"),
        ("BOSUN_REAP_INTERVAL_S", "reap_interval_s"),
    ):
        if (val := os.environ.get(env_var)) and (
            seconds := _parse_positive_int(env_var, val)
        ) is not None:
            kwargs[field] = seconds

    return DaemonConfig(**kwargs)
