"""
Тесты доменной модели контекста бронирования:
билеты, проверка права на бронирование и проверка вместимости.
"""

from datetime import datetime, timedelta, timezone

import pytest
from booking.domain import (
    CapacityChecker,
    EligibilityChecker,
    Room,
    Ticket,
    TicketType,
)
from pydantic import ValidationError
from shared_kernel import (
    BookingError,
    ConstraintViolationError,
    ErrorKind,
    ForbiddenError,
    NotFoundError,
    StorageError,
    TicketStatus,
    UnauthorizedError,
    isoformat_utc,
)


def make_ticket(status=TicketStatus.PAID, is_remote=False, includes_hotel=True):
    return Ticket(
        id=1,
        enrollment_id=1,
        status=status,
        ticket_type=TicketType(
            id=1,
            name="Presencial",
            price=250,
            is_remote=is_remote,
            includes_hotel=includes_hotel,
        ),
    )


class TestTicket:
    """Тесты правил билета."""

    def test_paid_in_person_ticket_with_hotel_allows_booking(self):
        assert make_ticket().allows_hotel_booking()

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"status": TicketStatus.RESERVED},
            {"is_remote": True},
            {"includes_hotel": False},
        ],
    )
    def test_ineligible_tickets(self, kwargs):
        assert not make_ticket(**kwargs).allows_hotel_booking()


class TestRoom:
    def test_capacity_must_be_positive(self):
        with pytest.raises(ValidationError):
            Room(id=1, name="101", capacity=0, hotel_id=1)


class TestEligibilityChecker:
    """Тесты проверки права на бронирование."""

    @pytest.fixture
    def checker(self, uow):
        return EligibilityChecker(uow.enrollments, uow.tickets)

    async def test_user_without_enrollment_is_not_found(self, checker):
        with pytest.raises(NotFoundError):
            await checker.check_eligibility(1)

    async def test_user_without_ticket_is_not_found(self, checker, enroll_user):
        enroll_user(1, with_ticket=False)

        with pytest.raises(NotFoundError):
            await checker.check_eligibility(1)

    async def test_reserved_ticket_is_forbidden(self, checker, enroll_user):
        enroll_user(1, status=TicketStatus.RESERVED)

        with pytest.raises(ForbiddenError):
            await checker.check_eligibility(1)

    async def test_remote_ticket_is_forbidden(self, checker, enroll_user):
        enroll_user(1, is_remote=True)

        with pytest.raises(ForbiddenError):
            await checker.check_eligibility(1)

    async def test_ticket_without_hotel_is_forbidden(self, checker, enroll_user):
        enroll_user(1, includes_hotel=False)

        with pytest.raises(ForbiddenError):
            await checker.check_eligibility(1)

    async def test_eligible_user_passes(self, checker, enroll_user):
        enroll_user(1)

        assert await checker.check_eligibility(1) is None

    async def test_other_users_enrollment_does_not_count(self, checker, enroll_user):
        enroll_user(2)

        with pytest.raises(NotFoundError):
            await checker.check_eligibility(1)


class TestCapacityChecker:
    """Тесты проверки вместимости номера."""

    @pytest.fixture
    def checker(self, uow):
        return CapacityChecker(uow.bookings)

    async def test_missing_room_is_not_found(self, checker):
        with pytest.raises(NotFoundError):
            await checker.check_room_availability(404)

    async def test_room_with_vacancy_is_returned(self, checker, uow):
        room = uow.bookings.add_room("101", capacity=2)
        await uow.bookings.create_booking(1, room.id)

        assert await checker.check_room_availability(room.id) == room

    async def test_full_room_is_forbidden(self, checker, uow):
        room = uow.bookings.add_room("101", capacity=2)
        await uow.bookings.create_booking(1, room.id)
        await uow.bookings.create_booking(2, room.id)

        with pytest.raises(ForbiddenError):
            await checker.check_room_availability(room.id)


class TestErrorTaxonomy:
    """Каждый вид ошибки представлен ровно одним классом."""

    def test_every_kind_has_a_class(self):
        classes = [
            NotFoundError,
            ForbiddenError,
            UnauthorizedError,
            StorageError,
            ConstraintViolationError,
        ]

        assert {cls.kind for cls in classes} == set(ErrorKind)
        assert all(issubclass(cls, BookingError) for cls in classes)

    def test_default_message(self):
        error = NotFoundError()

        assert error.message == NotFoundError.default_message
        assert str(error) == error.message

    def test_constraint_violation_is_a_storage_error(self):
        error = ConstraintViolationError()

        assert isinstance(error, StorageError)
        assert error.kind == ErrorKind.CONFLICT


class TestIsoformatUtc:
    def test_naive_value_is_treated_as_utc(self):
        assert isoformat_utc(datetime(2026, 10, 19, 18, 0, 0)) == "2026-10-19T18:00:00.000Z"

    def test_aware_value_is_converted_to_utc(self):
        value = datetime(2026, 10, 19, 15, 0, 0, 123456, tzinfo=timezone(timedelta(hours=-3)))

        assert isoformat_utc(value) == "2026-10-19T18:00:00.123Z"
