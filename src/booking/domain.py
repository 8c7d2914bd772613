"""
Доменная модель контекста бронирования.

Содержит сущности (номер, бронирование, запись на мероприятие, билет)
и доменные сервисы проверки права на бронирование и вместимости номера.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Optional

from pydantic import BaseModel, ConfigDict, Field
from shared_kernel import (
    Address,
    EntityId,
    ForbiddenError,
    NotFoundError,
    TicketStatus,
    now,
)

if TYPE_CHECKING:
    from .interfaces import (
        IBookingRepository,
        IEnrollmentRepository,
        ITicketRepository,
    )


class Room(BaseModel):
    """Номер в гостинице."""

    model_config = ConfigDict(from_attributes=True)

    id: EntityId
    name: str
    capacity: int = Field(..., gt=0)  # Максимум одновременных бронирований
    hotel_id: EntityId
    created_at: datetime = Field(default_factory=now)
    updated_at: datetime = Field(default_factory=now)


class Booking(BaseModel):
    """Бронирование номера пользователем."""

    model_config = ConfigDict(from_attributes=True)

    id: EntityId
    user_id: EntityId
    room_id: EntityId
    room: Optional[Room] = None
    created_at: datetime = Field(default_factory=now)
    updated_at: datetime = Field(default_factory=now)


class Enrollment(BaseModel):
    """Запись пользователя на мероприятие."""

    model_config = ConfigDict(from_attributes=True)

    id: EntityId
    user_id: EntityId
    name: str
    address: Optional[Address] = None


class TicketType(BaseModel):
    """Тип билета."""

    model_config = ConfigDict(from_attributes=True)

    id: EntityId
    name: str
    price: int = Field(..., ge=0)
    is_remote: bool
    includes_hotel: bool


class Ticket(BaseModel):
    """Билет, привязанный к записи на мероприятие."""

    model_config = ConfigDict(from_attributes=True)

    id: EntityId
    enrollment_id: EntityId
    status: TicketStatus
    ticket_type: TicketType

    def allows_hotel_booking(self) -> bool:
        """Оплачен, очный и включает проживание."""
        return (
            self.status != TicketStatus.RESERVED
            and not self.ticket_type.is_remote
            and self.ticket_type.includes_hotel
        )


class EligibilityChecker:
    """Доменный сервис: может ли пользователь вообще бронировать номер."""

    def __init__(
        self,
        enrollment_repository: "IEnrollmentRepository",
        ticket_repository: "ITicketRepository",
    ):
        self.enrollment_repository = enrollment_repository
        self.ticket_repository = ticket_repository

    async def check_eligibility(self, user_id: EntityId) -> None:
        """Проверяет запись на мероприятие и билет пользователя."""
        enrollment = await self.enrollment_repository.find_with_address_by_user_id(
            user_id
        )
        if enrollment is None:
            raise NotFoundError("Пользователь не записан на мероприятие")

        ticket = await self.ticket_repository.find_by_enrollment_id(enrollment.id)
        if ticket is None:
            raise NotFoundError("У пользователя нет билета")

        if not ticket.allows_hotel_booking():
            raise ForbiddenError("Билет не дает права на бронирование гостиницы")


class CapacityChecker:
    """Доменный сервис: есть ли в номере свободные места."""

    def __init__(self, booking_repository: "IBookingRepository"):
        self.booking_repository = booking_repository

    async def check_room_availability(self, room_id: EntityId) -> Room:
        """
        Возвращает номер, если в нем есть места.

        Допускается ровно capacity бронирований, следующее отклоняется.
        """
        room = await self.booking_repository.find_room(room_id)
        if room is None:
            raise NotFoundError(f"Номер {room_id} не найден")

        occupied = await self.booking_repository.count_active_bookings_for_room(
            room_id
        )
        if occupied >= room.capacity:
            raise ForbiddenError(f"В номере {room.name} нет свободных мест")

        return room
