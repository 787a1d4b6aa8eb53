"""
로깅 설정

사용법:
    from gagyebu.core.logging import get_logger
    logger = get_logger(__name__)

레벨은 settings.LOG_LEVEL (환경변수 GAGYEBU_LOG_LEVEL)로 정합니다.
"""

import logging
import sys

from .config import settings

ROOT_LOGGER_NAME = "gagyebu"

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
LOG_FORMAT_DEBUG = "%(asctime)s %(levelname)s [%(name)s:%(lineno)d] %(message)s"

_LEVEL_MAP = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "WARN": logging.WARNING,
    "ERROR": logging.ERROR,
}

_handler: logging.Handler | None = None


def _resolve_level(value: str | int | None) -> int:
    if isinstance(value, int):
        return value
    return _LEVEL_MAP.get((value or "").upper(), logging.INFO)


def configure_logging(level: str | int | None = None) -> None:
    """
    gagyebu 네임스페이스 로거 설정 (한 번만 적용)

    Args:
        level: 로그 레벨. None이면 settings.LOG_LEVEL 사용
    """
    global _handler

    if _handler is not None:
        return

    resolved = _resolve_level(level if level is not None else settings.LOG_LEVEL)
    log_format = LOG_FORMAT_DEBUG if resolved == logging.DEBUG else LOG_FORMAT

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(log_format))

    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    root_logger.setLevel(resolved)
    root_logger.addHandler(handler)
    root_logger.propagate = False

    _handler = handler


def get_logger(name: str) -> logging.Logger:
    """모듈 이름으로 로거 반환 (gagyebu.* 하위)"""
    configure_logging()
    if name == ROOT_LOGGER_NAME or name.startswith(f"{ROOT_LOGGER_NAME}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


def set_log_level(level: str | int) -> None:
    """런타임 로그 레벨 변경"""
    resolved = _resolve_level(level)
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(resolved)
    if _handler is not None:
        fmt = LOG_FORMAT_DEBUG if resolved == logging.DEBUG else LOG_FORMAT
        _handler.setFormatter(logging.Formatter(fmt))
