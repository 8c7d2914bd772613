"""
Основные доменные типы и утилиты общего ядра.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import ClassVar, Optional

from pydantic import BaseModel, Field

# Идентификаторы во всех контекстах целочисленные (их выдает хранилище)
EntityId = int


class Address(BaseModel):
    """Почтовый адрес участника мероприятия."""

    street: str
    number: str
    city: str
    state: str = Field(..., max_length=2, description="Код штата/региона")
    postal_code: str
    neighborhood: str
    detail: Optional[str] = None


class TicketStatus(str, Enum):
    """Статусы билета."""

    RESERVED = "RESERVED"
    PAID = "PAID"


class ErrorKind(str, Enum):
    """Закрытый набор видов ошибок, которые видит граница приложения."""

    NOT_FOUND = "not_found"
    FORBIDDEN = "forbidden"
    UNAUTHORIZED = "unauthorized"
    STORAGE = "storage"
    CONFLICT = "conflict"


# Общие исключения
class DomainException(Exception):
    """Базовое исключение для доменных ошибок."""

    pass


class BookingError(DomainException):
    """
    Базовый класс типизированных отказов.

    Каждый наследник соответствует ровно одному значению ErrorKind.
    """

    kind: ClassVar[ErrorKind]
    default_message: ClassVar[str] = "Операция не может быть выполнена"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class NotFoundError(BookingError):
    """Запись не найдена (запись на мероприятие, билет, номер, бронирование)."""

    kind = ErrorKind.NOT_FOUND
    default_message = "По данному запросу ничего не найдено"


class ForbiddenError(BookingError):
    """Действие запрещено бизнес-правилами (билет не подходит, нет мест)."""

    kind = ErrorKind.FORBIDDEN
    default_message = "Действие запрещено"


class UnauthorizedError(BookingError):
    """Пользователь не владеет бронированием, которое пытается изменить."""

    kind = ErrorKind.UNAUTHORIZED
    default_message = "Нет прав на изменение этого бронирования"


class StorageError(BookingError):
    """Сбой хранилища: потеря соединения, ошибка драйвера. Можно повторить."""

    kind = ErrorKind.STORAGE
    default_message = "Ошибка хранилища, повторите попытку позже"


class ConstraintViolationError(StorageError):
    """Нарушено ограничение хранилища (уникальность, внешний ключ). Повтор не поможет."""

    kind = ErrorKind.CONFLICT
    default_message = "Запись противоречит ограничениям хранилища"


# Общие утилиты
def now() -> datetime:
    """Возвращает текущую дату и время в UTC."""
    return datetime.now(timezone.utc)


def isoformat_utc(value: datetime) -> str:
    """
    Форматирует момент времени как 2026-10-19T18:00:00.000Z.

    Наивные значения (SQLite возвращает такие) считаются UTC.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"
