"""
Config loading via Pydantic v2 and python-dotenv.

Загрузка конфигурации из .env и базовая валидация.
"""

from __future__ import annotations

from functools import lru_cache
import os
from pathlib import Path
from typing import Literal, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError


BASE_DIR = Path(__file__).resolve().parent.parent
ENV_PATH = BASE_DIR / ".env"

# Явно загружаем переменные окружения из .env, если файл существует
if ENV_PATH.exists():
    load_dotenv(ENV_PATH, override=False)


DEFAULT_SCHEDULER_URL = "https://ttp.cbp.dhs.gov/schedulerui/schedule-interview/location"
DEFAULT_ALERT_AUDIO_URL = "https://media.geeksforgeeks.org/wp-content/uploads/20190531135120/beep.mp3"


class BotConfig(BaseModel):
    token: str = Field(min_length=1)
    admin_chat_id: int


class BrowserConfig(BaseModel):
    # Пустая строка — запускаем свой Chromium вместо подключения по CDP
    cdp_url: str = "http://127.0.0.1:9222"
    scheduler_url: str = DEFAULT_SCHEDULER_URL
    headless: bool = False


class WatchConfig(BaseModel):
    loading_poll_interval: float = Field(default=0.1, gt=0)
    loading_timeout: float = Field(
        default=60.0,
        ge=0,
        description="Максимум ожидания спиннера в секундах. 0 — ждать без ограничения.",
    )
    probe_delay: float = Field(default=1.0, ge=0)
    error_budget: int = Field(default=3, ge=1)
    alert_pulses: int = Field(default=5, ge=1)
    alert_spacing: float = Field(default=1.0, ge=0)
    alert_audio_url: str = DEFAULT_ALERT_AUDIO_URL
    week_starts_on: Literal["sunday", "monday"] = "sunday"


class LoggingConfig(BaseModel):
    logs_dir: Path = Field(default_factory=lambda: BASE_DIR / "logs")
    log_level: str = Field(default="INFO")
    max_bytes: int = Field(default=5 * 1024 * 1024)  # 5 MB
    backup_count: int = Field(default=5)


class Settings(BaseModel):
    browser: BrowserConfig = BrowserConfig()
    watch: WatchConfig = WatchConfig()
    bot: Optional[BotConfig] = None
    logging: LoggingConfig = LoggingConfig()


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes")


def load_settings(env: Optional[dict[str, str]] = None) -> Settings:
    """
    Build settings from environment mapping.

    Raises ValidationError if values are invalid.
    """
    # Собираем значения из окружения вручную, чтобы не зависеть от pydantic-settings
    if env is None:
        env = dict(os.environ)

    browser = BrowserConfig(
        cdp_url=env.get("NEXUS_CHROME_CDP_URL", "http://127.0.0.1:9222").strip(),
        scheduler_url=env.get("NEXUS_SCHEDULER_URL", DEFAULT_SCHEDULER_URL),
        headless=_parse_bool(env.get("NEXUS_HEADLESS", "0")),
    )
    watch = WatchConfig(
        loading_poll_interval=float(env.get("NEXUS_LOADING_POLL_INTERVAL", "0.1")),
        loading_timeout=float(env.get("NEXUS_LOADING_TIMEOUT", "60")),
        probe_delay=float(env.get("NEXUS_PROBE_DELAY", "1.0")),
        error_budget=int(env.get("NEXUS_ERROR_BUDGET", "3")),
        alert_pulses=int(env.get("NEXUS_ALERT_PULSES", "5")),
        alert_spacing=float(env.get("NEXUS_ALERT_SPACING", "1.0")),
        alert_audio_url=env.get("NEXUS_ALERT_AUDIO_URL", DEFAULT_ALERT_AUDIO_URL),
        week_starts_on=env.get("NEXUS_WEEK_STARTS_ON", "sunday").strip().lower(),
    )

    # Бот нужен только для режима `bot`, консольный режим работает без токена
    bot: Optional[BotConfig] = None
    token = env.get("BOT_TOKEN", "").strip()
    if token:
        bot = BotConfig(
            token=token,
            admin_chat_id=int(env.get("ADMIN_CHAT_ID", "0") or "0"),
        )

    logging_cfg = LoggingConfig(log_level=env.get("LOG_LEVEL", "INFO"))
    try:
        return Settings(browser=browser, watch=watch, bot=bot, logging=logging_cfg)
    except ValidationError:
        # Пробрасываем дальше, чтобы верхний уровень мог вывести аккуратную ошибку
        raise


@lru_cache
def get_settings() -> Settings:
    """
    Load and cache settings.

    Raises ValidationError if .env is incomplete or invalid.
    """
    return load_settings()


__all__ = [
    "BotConfig",
    "BrowserConfig",
    "WatchConfig",
    "LoggingConfig",
    "Settings",
    "load_settings",
    "get_settings",
    "BASE_DIR",
]
