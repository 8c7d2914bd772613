"""
Модуль контекста бронирования (Booking Context).

Отвечает за бронирование номеров в гостинице участниками мероприятия:
- Просмотр текущего бронирования пользователя
- Создание бронирования с проверкой билета и вместимости номера
- Смену номера в существующем бронировании
"""

from . import api, application, domain, infrastructure, interfaces, orm

__all__ = [
    'api',
    'application',
    'domain',
    'infrastructure',
    'interfaces',
    'orm',
]
