"""
Общее ядро (Shared Kernel) подсистемы бронирования гостиниц.

Содержит общие типы данных, таксономию ошибок и утилиты.
"""

from .domain import (
    Address,
    BookingError,
    ConstraintViolationError,
    DomainException,
    # Базовые типы
    EntityId,
    # Перечисления
    ErrorKind,
    # Исключения
    ForbiddenError,
    NotFoundError,
    StorageError,
    TicketStatus,
    UnauthorizedError,
    # Утилиты
    now,
    isoformat_utc,
)
from .logger import StandardLogger

__all__ = [
    # Базовые типы
    "EntityId",
    "Address",
    # Перечисления
    "ErrorKind",
    "TicketStatus",
    # Исключения
    "DomainException",
    "BookingError",
    "NotFoundError",
    "ForbiddenError",
    "UnauthorizedError",
    "StorageError",
    "ConstraintViolationError",
    # Утилиты
    "now",
    "isoformat_utc",
    "StandardLogger",
]
