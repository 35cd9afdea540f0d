"""
File: userhub/core/logging.py
Description: 全局日志配置模块 (Loguru)

本模块负责：
1. 接管标准库 logging（Uvicorn / FastAPI / SQLAlchemy）
2. 配置 Loguru 输出格式（开发环境文本，生产环境 JSON）
3. 对 extra 中的敏感字段统一脱敏（令牌、密码、验证码不落日志）
4. 确保所有日志包含 request_id 与 operation（由中间件 / Service 注入）

Created: 2026-03-02
"""

import logging
import sys
from pathlib import Path
from typing import Any

from loguru import logger

from userhub.core.config import settings
from userhub.utils.masking import mask_sensitive_data


class InterceptHandler(logging.Handler):
    """
    将 Python 标准库 logging 拦截并转发到 Loguru 的 Handler。
    """

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # 回溯到真正的调用方，保证行号正确
        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            if frame.f_back:
                frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(
            level, record.getMessage()
        )


def _mask_extra(record: dict[str, Any]) -> None:
    """Loguru patcher: 写出前对 extra 做递归脱敏。"""
    record["extra"].update(mask_sensitive_data(record["extra"]))


def format_record(record: dict[str, Any]) -> str:
    """
    文本格式：基础字段 + operation + request_id。
    """
    format_string = (
        "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
        "<level>{level: <8}</level> | "
        "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
        "<level>{message}</level>"
    )

    if record["extra"].get("operation"):
        format_string += " | <yellow>op={extra[operation]}</yellow>"

    if record["extra"].get("request_id"):
        format_string += " | <magenta>req_id={extra[request_id]}</magenta>"

    format_string += "\n{exception}"
    return format_string


def setup_logging() -> None:
    """
    初始化日志配置。
    应在应用 lifespan 启动阶段调用。
    """
    # 1. 拦截标准库日志
    logging.root.handlers = [InterceptHandler()]
    logging.root.setLevel(settings.LOG_LEVEL)

    for name in logging.root.manager.loggerDict.keys():
        if name.startswith(("uvicorn.", "fastapi.", "sqlalchemy.")):
            logging.getLogger(name).handlers = []
            logging.getLogger(name).propagate = True

    # 2. 重建 Loguru Sink
    logger.remove()
    logger.configure(patcher=_mask_extra)  # type: ignore[arg-type]

    base_config: dict[str, Any] = {
        "level": settings.LOG_LEVEL,
        "enqueue": True,
        "backtrace": True,
        "diagnose": settings.LOG_DIAGNOSE,
    }

    # Sink 1: 控制台
    console_config = base_config.copy()
    if settings.LOG_JSON_FORMAT:
        console_config["serialize"] = True
    else:
        console_config["format"] = format_record
        console_config["colorize"] = True

    logger.add(sys.stdout, **console_config)

    # Sink 2: 文件 (按配置启用)
    if settings.LOG_FILE_ENABLED:
        log_dir = Path(settings.LOG_DIR)
        log_dir.mkdir(parents=True, exist_ok=True)
        log_path = log_dir / "userhub_{time:YYYY-MM-DD_HH}.log"

        file_config = base_config.copy()
        file_config.update(
            {
                "rotation": settings.LOG_ROTATION,
                "retention": settings.LOG_RETENTION,
                "compression": settings.LOG_COMPRESSION,
            }
        )
        if settings.LOG_JSON_FORMAT:
            file_config["serialize"] = True
        else:
            file_config["format"] = format_record

        logger.add(str(log_path), **file_config)

    logger.info("Logging configured successfully")
