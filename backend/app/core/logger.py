"""
全局日志配置
backend/app/core/logger.py
- 控制台输出始终开启；LOG_TO_FILE_FLAG=True时追加按大小轮转的文件输出
- 每条日志注入request_id（由请求中间件写入上下文变量，请求外显示unknown）
- 第三方库（uvicorn）日志统一传播到根logger，使用同一格式
"""
import logging
from contextvars import ContextVar
from datetime import datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path

from app.core.config import settings, DEFAULT_TZ

# 请求ID上下文变量（中间件写入，日志过滤器读取）
request_id_ctx: ContextVar[str] = ContextVar("request_id", default="")

LOG_FORMAT = "%(asctime)s | %(request_id)s | %(name)s | %(levelname)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S %z"


class RequestIDFilter(logging.Filter):
    """注入request_id，无则显示unknown"""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_ctx.get() or "unknown"
        return True


class TZFormatter(logging.Formatter):
    """日志时间使用全局时区"""

    def formatTime(self, record: logging.LogRecord, datefmt: str | None = None) -> str:
        dt = datetime.fromtimestamp(record.created, DEFAULT_TZ)
        return dt.strftime(datefmt or LOG_DATE_FORMAT)


def init_global_logger() -> logging.Logger:
    """初始化全局日志（重复调用直接返回根logger）"""
    root_logger = logging.getLogger()
    if getattr(root_logger, "_kadmin_configured", False):
        return root_logger

    log_level = logging.DEBUG if settings.ENVIRONMENT == "local" else getattr(
        logging, settings.LOG_LEVEL.upper(), logging.INFO
    )
    formatter = TZFormatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
    request_id_filter = RequestIDFilter()

    # 1. 控制台处理器
    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(formatter)
    stream_handler.addFilter(request_id_filter)
    root_logger.addHandler(stream_handler)

    # 2. 文件处理器（按大小轮转）
    if settings.LOG_TO_FILE_FLAG:
        log_dir = Path(settings.LOG_DIR)
        log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            filename=str(log_dir / "app.log"),
            maxBytes=settings.LOG_MAX_BYTES,
            backupCount=settings.LOG_BACKUP_COUNT,
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        file_handler.addFilter(request_id_filter)
        root_logger.addHandler(file_handler)

    root_logger.setLevel(log_level)

    # 3. uvicorn日志交给根logger统一格式
    for logger_name in ("uvicorn", "uvicorn.access", "uvicorn.error"):
        third_logger = logging.getLogger(logger_name)
        third_logger.handlers.clear()
        third_logger.propagate = True

    # SQLAlchemy日志仅保留警告以上
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

    root_logger._kadmin_configured = True  # type: ignore[attr-defined]
    root_logger.info(
        f"日志初始化完成 | 环境：{settings.ENVIRONMENT} | 级别：{logging.getLevelName(log_level)} "
        f"| 落文件：{settings.LOG_TO_FILE_FLAG}"
    )
    return root_logger
