"""structlog 配置模块

dev 模式：控制台可读输出；json 模式：结构化 JSON 输出（异常展开为 dict）。
任务执行日志与轮询日志共享 trace_id，并附带 task_id / task_stage 便于按任务检索。
Logfire APM 由 LOGFIRE_SEND_TO_LOGFIRE 控制，未启用或初始化失败时只保留本地日志。
"""

import logging
import os

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

_TRACE_PREFIX = "trace-"

# 请求日志由 LoggingMiddleware 输出，uvicorn 的 access 日志重复
_QUIET_LOGGERS = ("uvicorn.access",)


def add_task_context(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """由 trace_id 还原 task_id，使任务日志可按 task_id 过滤"""
    trace_id = event_dict.get("trace_id")
    if isinstance(trace_id, str) and trace_id.startswith(_TRACE_PREFIX):
        event_dict.setdefault("task_id", trace_id[len(_TRACE_PREFIX) :])
    return event_dict


def drop_color_message(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """uvicorn 在 extra 中附带带颜色码的 color_message，与 event 重复"""
    event_dict.pop("color_message", None)
    return event_dict


def build_processors(log_format: str) -> tuple[list[Processor], Processor]:
    """返回 (共享处理器链, 渲染器)"""
    shared: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        add_task_context,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.ExtraAdder(),
        drop_color_message,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if log_format == "json":
        shared.append(structlog.processors.dict_tracebacks)
        renderer: Processor = structlog.processors.JSONRenderer(ensure_ascii=False)
    else:
        renderer = structlog.dev.ConsoleRenderer()
    return shared, renderer


def setup_logging(log_format: str | None = None, log_level: str | None = None) -> None:
    """初始化 structlog 配置

    参数缺省时读取环境变量：
    - BOSUN_LOG_FORMAT: "json" 输出 JSON，其他值（默认 "dev"）输出控制台格式
    - BOSUN_LOG_LEVEL: 日志级别，默认 INFO
    """
    log_format = log_format or os.environ.get("BOSUN_LOG_FORMAT", "dev")
    log_level = log_level or os.environ.get("BOSUN_LOG_LEVEL", "INFO")
    level = getattr(logging, log_level.upper(), logging.INFO)

    shared_processors, renderer = build_processors(log_format)

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    # 标准库 logging（uvicorn 等第三方日志）走同一渲染器
    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
        foreign_pre_chain=shared_processors,
    )

    handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


def setup_logfire() -> None:
    """Logfire 可选初始化

    LOGFIRE_SEND_TO_LOGFIRE="true" 时启用（需要 LOGFIRE_TOKEN），默认关闭。
    """
    send_to_logfire = os.environ.get("LOGFIRE_SEND_TO_LOGFIRE", "false").lower()
    if send_to_logfire != "true":
        return
    try:
        import logfire

        logfire.configure(service_name="bosun-daemon")
        logfire.instrument_fastapi()
    except Exception as e:
        structlog.get_logger().warning(
            "logfire_init_failed",
            error_type=type(e).__name__,
            message="Logfire 初始化失败，降级为纯本地日志",
        )
