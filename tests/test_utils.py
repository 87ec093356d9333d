from __future__ import annotations

import logging

import pytest

from nexus_watch.config import LoggingConfig
from nexus_watch.utils import LOG_FILE_NAME, async_retry, backoff_delays, setup_logging


def test_backoff_delays_double_and_cap() -> None:
    assert list(backoff_delays(5, 2.0, 10.0)) == [2.0, 4.0, 8.0, 10.0]
    assert list(backoff_delays(1, 2.0, 10.0)) == []


@pytest.mark.asyncio
async def test_retry_recovers_after_transient_failures() -> None:
    calls = 0

    @async_retry(attempts=3, base_delay=0)
    async def flaky() -> str:
        nonlocal calls
        calls += 1
        if calls < 3:
            raise ConnectionError("refused")
        return "connected"

    assert await flaky() == "connected"
    assert calls == 3


@pytest.mark.asyncio
async def test_retry_gives_up_after_last_attempt() -> None:
    calls = 0

    @async_retry(attempts=2, base_delay=0)
    async def down() -> None:
        nonlocal calls
        calls += 1
        raise ConnectionError("refused")

    with pytest.raises(ConnectionError):
        await down()
    assert calls == 2


@pytest.mark.asyncio
async def test_retry_does_not_catch_other_errors() -> None:
    calls = 0

    @async_retry(attempts=3, base_delay=0, retry_on=(ConnectionError,))
    async def misconfigured() -> None:
        nonlocal calls
        calls += 1
        raise RuntimeError("not started")

    with pytest.raises(RuntimeError):
        await misconfigured()
    assert calls == 1


def test_retry_rejects_zero_attempts() -> None:
    with pytest.raises(ValueError):
        async_retry(attempts=0)


def test_setup_logging_replaces_handlers(tmp_path) -> None:
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    cfg = LoggingConfig(logs_dir=tmp_path / "logs", log_level="debug")
    try:
        setup_logging(cfg)
        setup_logging(cfg)

        assert len(root.handlers) == 2
        assert root.level == logging.DEBUG
        assert (tmp_path / "logs" / LOG_FILE_NAME).exists()
        assert logging.getLogger("aiogram.event").level == logging.WARNING
    finally:
        for handler in root.handlers:
            handler.close()
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)
