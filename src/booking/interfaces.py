"""
Интерфейсы (порты) для контекста бронирования.
"""

from __future__ import annotations

from typing import Any, Protocol

from shared_kernel import EntityId

from .domain import Booking, Enrollment, Room, Ticket


class ILogger(Protocol):
    """Интерфейс для логгера."""

    def info(self, message: str, **kwargs: Any) -> None: ...
    def error(self, message: str, **kwargs: Any) -> None: ...
    def warning(self, message: str, **kwargs: Any) -> None: ...
    def debug(self, message: str, **kwargs: Any) -> None: ...


class IBookingRepository(Protocol):
    """Шлюз доступа к бронированиям и номерам."""

    async def get_booking_for_user(self, user_id: EntityId) -> Booking | None: ...
    async def find_room(self, room_id: EntityId) -> Room | None: ...
    async def count_active_bookings_for_room(self, room_id: EntityId) -> int: ...
    async def create_booking(self, user_id: EntityId, room_id: EntityId) -> Booking: ...
    async def update_booking_room(
        self, booking_id: EntityId, room_id: EntityId
    ) -> Booking: ...


class IEnrollmentRepository(Protocol):
    """Интерфейс репозитория записей на мероприятие."""

    async def find_with_address_by_user_id(
        self, user_id: EntityId
    ) -> Enrollment | None: ...


class ITicketRepository(Protocol):
    """Интерфейс репозитория билетов."""

    async def find_by_enrollment_id(self, enrollment_id: EntityId) -> Ticket | None: ...


class IBookingUnitOfWork(Protocol):
    """Интерфейс Unit of Work для контекста Booking."""

    @property
    def bookings(self) -> IBookingRepository: ...
    @property
    def enrollments(self) -> IEnrollmentRepository: ...
    @property
    def tickets(self) -> ITicketRepository: ...

    async def __aenter__(self) -> IBookingUnitOfWork: ...
    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None: ...
    async def commit(self) -> None: ...
    async def rollback(self) -> None: ...
