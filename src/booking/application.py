"""
Прикладной слой контекста бронирования.

Содержит сервис приложения, который координирует проверки права
на бронирование и вместимости номера и изменения через шлюз данных.
"""

from typing import Callable, Optional

from pydantic import BaseModel, Field
from shared_kernel import (
    EntityId,
    NotFoundError,
    StandardLogger,
    UnauthorizedError,
    isoformat_utc,
)

from . import interfaces as ports
from .domain import Booking, CapacityChecker, EligibilityChecker, Room

# DTO (Data Transfer Objects) для входящих данных


class CreateBookingRequest(BaseModel):
    """Запрос на создание бронирования."""

    room_id: EntityId = Field(..., gt=0)


class ChangeBookingRequest(BaseModel):
    """Запрос на смену номера в бронировании."""

    room_id: EntityId = Field(..., gt=0)


# DTO для исходящих данных


class RoomDTO(BaseModel):
    """DTO для представления номера."""

    id: EntityId
    name: str
    capacity: int
    hotel_id: EntityId = Field(..., serialization_alias="hotelId")
    created_at: str = Field(..., serialization_alias="createdAt")
    updated_at: str = Field(..., serialization_alias="updatedAt")

    @classmethod
    def from_domain(cls, room: Room) -> "RoomDTO":
        """Создает DTO из доменной модели."""
        return cls(
            id=room.id,
            name=room.name,
            capacity=room.capacity,
            hotel_id=room.hotel_id,
            created_at=isoformat_utc(room.created_at),
            updated_at=isoformat_utc(room.updated_at),
        )


class BookingDTO(BaseModel):
    """DTO для представления бронирования вместе с номером."""

    id: EntityId
    room: RoomDTO = Field(..., serialization_alias="Room")

    @classmethod
    def from_domain(cls, booking: Booking) -> "BookingDTO":
        """Создает DTO из доменной модели."""
        if booking.room is None:
            raise ValueError(f"Бронирование {booking.id} загружено без номера")
        return cls(id=booking.id, room=RoomDTO.from_domain(booking.room))


class BookingIdDTO(BaseModel):
    """Идентификатор созданного или измененного бронирования."""

    booking_id: EntityId


UnitOfWorkFactory = Callable[[], ports.IBookingUnitOfWork]


# Сервисы приложения


class BookingApplicationService:
    """
    Сервис приложения для работы с бронированиями.

    Каждый вызов открывает собственную единицу работы: проверки и запись
    выполняются последовательно внутри одного запроса. Доменные ошибки
    не перехватываются и доходят до границы приложения как есть.
    """

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        logger: Optional[ports.ILogger] = None,
        recheck_eligibility_on_change: bool = False,
    ):
        """Инициализирует сервис."""
        self._uow_factory = uow_factory
        self._logger = logger or StandardLogger(__name__)
        self._recheck_eligibility_on_change = recheck_eligibility_on_change

    async def get_booking(self, user_id: EntityId) -> BookingDTO:
        """Возвращает бронирование пользователя."""
        async with self._uow_factory() as uow:
            booking = await uow.bookings.get_booking_for_user(user_id)
            if booking is None:
                raise NotFoundError("У пользователя нет бронирования")
            return BookingDTO.from_domain(booking)

    async def post_booking(
        self, user_id: EntityId, request: CreateBookingRequest
    ) -> BookingIdDTO:
        """Создает бронирование после проверки билета и вместимости номера."""
        async with self._uow_factory() as uow:
            await EligibilityChecker(uow.enrollments, uow.tickets).check_eligibility(
                user_id
            )
            await CapacityChecker(uow.bookings).check_room_availability(
                request.room_id
            )

            booking = await uow.bookings.create_booking(user_id, request.room_id)
            await uow.commit()

        self._logger.info(
            "Бронирование создано",
            booking_id=booking.id,
            user_id=user_id,
            room_id=request.room_id,
        )
        return BookingIdDTO(booking_id=booking.id)

    async def change_booking(
        self,
        user_id: EntityId,
        booking_id: EntityId,
        request: ChangeBookingRequest,
    ) -> BookingIdDTO:
        """Переносит бронирование пользователя в другой номер."""
        async with self._uow_factory() as uow:
            current = await uow.bookings.get_booking_for_user(user_id)
            if current is None or current.id != booking_id:
                raise UnauthorizedError(
                    f"Бронирование {booking_id} не принадлежит пользователю"
                )

            if self._recheck_eligibility_on_change:
                await EligibilityChecker(
                    uow.enrollments, uow.tickets
                ).check_eligibility(user_id)

            await CapacityChecker(uow.bookings).check_room_availability(
                request.room_id
            )

            booking = await uow.bookings.update_booking_room(
                booking_id, request.room_id
            )
            await uow.commit()

        self._logger.info(
            "Номер в бронировании изменен",
            booking_id=booking.id,
            user_id=user_id,
            from_room_id=current.room_id,
            to_room_id=request.room_id,
        )
        return BookingIdDTO(booking_id=booking.id)
