"""
Конфигурация тестов для pytest.
Добавляет каталог src в PYTHONPATH и предоставляет общие фикстуры.
"""
import sys
from pathlib import Path

# Добавляем каталог с исходниками в PYTHONPATH
root_dir = str(Path(__file__).parent.parent / "src")
if root_dir not in sys.path:
    sys.path.insert(0, root_dir)

import pytest  # noqa: E402
from booking.application import BookingApplicationService  # noqa: E402
from booking.infrastructure import BookingUnitOfWork  # noqa: E402
from shared_kernel import Address, TicketStatus  # noqa: E402


@pytest.fixture
def uow() -> BookingUnitOfWork:
    """Единица работы с пустыми репозиториями в памяти."""
    return BookingUnitOfWork()


@pytest.fixture
def service(uow: BookingUnitOfWork) -> BookingApplicationService:
    """Сервис приложения поверх общей единицы работы в памяти."""
    return BookingApplicationService(lambda: uow)


@pytest.fixture
def address() -> Address:
    return Address(
        street="Rua das Flores",
        number="42",
        city="Recife",
        state="PE",
        postal_code="50000-000",
        neighborhood="Boa Viagem",
    )


@pytest.fixture
def enroll_user(uow: BookingUnitOfWork, address: Address):
    """
    Фабрика участника мероприятия.

    По умолчанию создает оплаченный очный билет с проживанием,
    то есть пользователь имеет право бронировать номер.
    """

    def _enroll(
        user_id: int,
        status: TicketStatus = TicketStatus.PAID,
        is_remote: bool = False,
        includes_hotel: bool = True,
        with_ticket: bool = True,
    ):
        enrollment = uow.enrollments.add_enrollment(
            user_id=user_id, name=f"Участник {user_id}", address=address
        )
        if with_ticket:
            ticket_type = uow.tickets.add_ticket_type(
                is_remote=is_remote, includes_hotel=includes_hotel
            )
            uow.tickets.add_ticket(enrollment.id, ticket_type, status)
        return enrollment

    return _enroll
