"""
Граница контекста бронирования.

Переводит результаты и типизированные ошибки сервиса приложения в пары
(HTTP-статус, тело). Маршрутизация, аутентификация и разбор тела запроса
остаются на стороне веб-фреймворка.
"""

from dataclasses import dataclass, field
from http import HTTPStatus
from typing import Any, Dict, Optional

from shared_kernel import BookingError, EntityId, ErrorKind, StandardLogger

from . import interfaces as ports
from .application import (
    BookingApplicationService,
    ChangeBookingRequest,
    CreateBookingRequest,
)

# Таблица покрывает каждый ErrorKind
STATUS_BY_ERROR_KIND: Dict[ErrorKind, HTTPStatus] = {
    ErrorKind.NOT_FOUND: HTTPStatus.NOT_FOUND,
    ErrorKind.FORBIDDEN: HTTPStatus.FORBIDDEN,
    ErrorKind.UNAUTHORIZED: HTTPStatus.FORBIDDEN,
    ErrorKind.STORAGE: HTTPStatus.SERVICE_UNAVAILABLE,
    ErrorKind.CONFLICT: HTTPStatus.CONFLICT,
}


@dataclass(frozen=True)
class ApiResponse:
    """Ответ, который веб-фреймворк отдает клиенту как есть."""

    status_code: int
    body: Dict[str, Any] = field(default_factory=dict)


def status_for(error: BookingError) -> HTTPStatus:
    """Возвращает HTTP-статус для типизированной ошибки."""
    return STATUS_BY_ERROR_KIND[error.kind]


def error_response(error: BookingError) -> ApiResponse:
    return ApiResponse(
        status_code=status_for(error),
        body={"error": error.kind.value, "message": error.message},
    )


class BookingController:
    """Обработчики GET /booking, POST /booking и PUT /booking/:bookingId."""

    def __init__(
        self,
        service: BookingApplicationService,
        logger: Optional[ports.ILogger] = None,
    ):
        self._service = service
        self._logger = logger or StandardLogger(__name__)

    async def get_booking(self, user_id: EntityId) -> ApiResponse:
        try:
            booking = await self._service.get_booking(user_id)
        except BookingError as e:
            return error_response(e)
        return ApiResponse(
            status_code=HTTPStatus.OK, body=booking.model_dump(by_alias=True)
        )

    async def post_booking(
        self, user_id: EntityId, request: CreateBookingRequest
    ) -> ApiResponse:
        try:
            result = await self._service.post_booking(user_id, request)
        except BookingError as e:
            self._logger.warning(
                "Бронирование отклонено",
                user_id=user_id,
                room_id=request.room_id,
                kind=e.kind.value,
            )
            return error_response(e)
        return ApiResponse(
            status_code=HTTPStatus.CREATED, body={"bookingId": result.booking_id}
        )

    async def change_booking(
        self,
        user_id: EntityId,
        booking_id: EntityId,
        request: ChangeBookingRequest,
    ) -> ApiResponse:
        try:
            result = await self._service.change_booking(user_id, booking_id, request)
        except BookingError as e:
            self._logger.warning(
                "Смена номера отклонена",
                user_id=user_id,
                booking_id=booking_id,
                room_id=request.room_id,
                kind=e.kind.value,
            )
            return error_response(e)
        return ApiResponse(
            status_code=HTTPStatus.OK, body={"bookingId": result.booking_id}
        )
