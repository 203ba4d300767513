"""structlog 日志配置

CLI 与宿主进程启动时调用 setup_logging()；库代码只使用 structlog.get_logger()。
未调用时 structlog 使用默认配置输出到 stdout。
"""

import logging
import os

import structlog

# 第三方库日志默认只保留 warning 以上
_QUIET_LOGGERS = ("aiosqlite", "asyncio")


def _renderer(log_format: str) -> structlog.types.Processor:
    if log_format == "json":
        return structlog.processors.JSONRenderer(ensure_ascii=False)
    return structlog.dev.ConsoleRenderer()


def setup_logging(log_format: str | None = None, log_level: str | None = None) -> None:
    """配置 structlog + 标准库 logging

    Args:
        log_format: "json" 或 "dev"，默认取 CASEFLOW_LOG_FORMAT（未设置为 dev）
        log_level: 日志级别名称，默认取 CASEFLOW_LOG_LEVEL（未设置为 INFO）；
            无法识别时使用 INFO
    """
    log_format = log_format or os.environ.get("CASEFLOW_LOG_FORMAT", "dev")
    log_level = log_level or os.environ.get("CASEFLOW_LOG_LEVEL", "INFO")
    level = getattr(logging, log_level.upper(), None)
    if not isinstance(level, int):
        level = logging.INFO

    pre_chain: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *pre_chain,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler()
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=_renderer(log_format),
            foreign_pre_chain=pre_chain,
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
