"""
Utility helpers: logging setup, retry decorator.

Вспомогательные функции: настройка логирования и ретраи подключения.
"""

from __future__ import annotations

import asyncio
import logging
from functools import wraps
from logging.handlers import RotatingFileHandler
from typing import Any, Awaitable, Callable, Iterator, TypeVar

from .config import LoggingConfig, get_settings


T = TypeVar("T")

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LOG_FILE_NAME = "nexus_watch.log"

# Эти логгеры слишком болтливы на INFO
NOISY_LOGGERS = ("aiogram.event", "asyncio")


def setup_logging(logging_cfg: LoggingConfig | None = None) -> None:
    """
    Send logs to logs/nexus_watch.log (rotated) and to the console.

    Повторный вызов заменяет обработчики, а не добавляет новые.
    """
    cfg = logging_cfg or get_settings().logging
    cfg.logs_dir.mkdir(parents=True, exist_ok=True)

    handlers: list[logging.Handler] = [
        RotatingFileHandler(
            cfg.logs_dir / LOG_FILE_NAME,
            maxBytes=cfg.max_bytes,
            backupCount=cfg.backup_count,
            encoding="utf-8",
        ),
        logging.StreamHandler(),
    ]
    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
    root = logging.getLogger()
    root.handlers.clear()
    for handler in handlers:
        handler.setFormatter(formatter)
        root.addHandler(handler)
    root.setLevel(cfg.log_level.upper())

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def backoff_delays(attempts: int, base_delay: float, max_delay: float) -> Iterator[float]:
    """Pauses between attempts: base, 2*base, 4*base ... capped at max_delay."""
    delay = base_delay
    for _ in range(attempts - 1):
        yield min(delay, max_delay)
        delay *= 2


def async_retry(
    attempts: int = 3,
    base_delay: float = 2.0,
    max_delay: float = 60.0,
    retry_on: tuple[type[BaseException], ...] = (Exception,),
) -> Callable[[Callable[..., Awaitable[T]]], Callable[..., Awaitable[T]]]:
    """
    Retry a coroutine function on ``retry_on`` errors with exponential backoff.

    Ошибки других типов пробрасываются сразу, последняя попытка — тоже.
    """
    if attempts < 1:
        raise ValueError("attempts must be >= 1")

    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        log = logging.getLogger(func.__module__)

        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> T:
            for attempt, delay in enumerate(backoff_delays(attempts, base_delay, max_delay), start=1):
                try:
                    return await func(*args, **kwargs)
                except retry_on as exc:  # type: ignore[misc]
                    log.warning(
                        "%s: attempt %s/%s failed (%s), retrying in %.1fs",
                        func.__qualname__,
                        attempt,
                        attempts,
                        exc,
                        delay,
                    )
                    await asyncio.sleep(delay)
            return await func(*args, **kwargs)

        return wrapper

    return decorator


__all__ = ["setup_logging", "async_retry", "backoff_delays", "LOG_FORMAT"]
