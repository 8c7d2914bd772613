"""
Настройки подсистемы бронирования.

Значения читаются из переменных окружения с префиксом BOOKING_
и из файла .env, если он есть.
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BookingSettings(BaseSettings):
    """Настройки приложения с поддержкой переменных окружения."""

    model_config = SettingsConfigDict(
        env_prefix="BOOKING_", env_file=".env", extra="ignore"
    )

    # База данных
    database_url: str = "sqlite+aiosqlite:///./booking.db"
    database_echo: bool = False
    # SELECT ... FOR UPDATE на номер при проверке вместимости
    lock_rooms: bool = True

    # Бизнес-правила
    recheck_eligibility_on_change: bool = False

    # Логирование
    log_level: str = Field(default="INFO", pattern="^(DEBUG|INFO|WARNING|ERROR)$")
    log_json: bool = False


@lru_cache()
def get_settings() -> BookingSettings:
    """Возвращает закешированный экземпляр настроек."""
    return BookingSettings()
