"""
日志工具模块

提供结构化日志功能
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from floe.core.config import get_settings

# LogRecord 自带属性，其余视为通过 extra= 传入的结构化字段
_RESERVED_ATTRS = set(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__.keys()
) | {"message", "asctime"}


def setup_logging(
    level: Optional[str] = None,
    format_type: Optional[str] = None,
) -> logging.Logger:
    """
    配置日志系统

    Args:
        level: 日志级别（DEBUG, INFO, WARNING, ERROR, CRITICAL）
        format_type: 日志格式（json, text）

    Returns:
        根日志器
    """
    settings = get_settings()
    log_level = (level or settings.log_level).upper()
    log_format = format_type or settings.log_format

    logger = logging.getLogger("floe")
    logger.setLevel(getattr(logging, log_level))

    # 清除已有处理器
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(getattr(logging, log_level))

    if log_format == "json":
        formatter: logging.Formatter = JsonFormatter()
    else:
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    handler.setFormatter(formatter)
    logger.addHandler(handler)

    return logger


class JsonFormatter(logging.Formatter):
    """JSON格式化器"""

    def format(self, record: logging.LogRecord) -> str:
        """格式化日志记录为JSON"""
        log_data: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        # 添加额外字段
        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS and not key.startswith("_"):
                log_data[key] = value

        # 添加异常信息
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, ensure_ascii=False, default=str)


def get_logger(name: str) -> logging.Logger:
    """
    获取日志器

    Args:
        name: 日志器名称

    Returns:
        日志器实例
    """
    return logging.getLogger(f"floe.{name}")


def get_null_logger() -> logging.Logger:
    """
    获取空日志器（丢弃所有日志）

    Returns:
        不输出、不向上传播的日志器
    """
    null_logger = logging.getLogger("floe.null")
    if not null_logger.handlers:
        null_logger.addHandler(logging.NullHandler())
    null_logger.propagate = False
    return null_logger


# 默认日志器
logger = get_logger("main")
