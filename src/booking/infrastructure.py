"""
Инфраструктурный слой контекста бронирования.

Содержит реализации репозиториев и единиц работы: в памяти (для тестов
и локального запуска) и поверх асинхронного SQLAlchemy.
"""

from contextlib import contextmanager
from typing import Dict, Iterator, Optional

from sqlalchemy import Select, event, func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from shared_kernel import (
    Address,
    ConstraintViolationError,
    EntityId,
    NotFoundError,
    StandardLogger,
    StorageError,
    TicketStatus,
    now,
)

from . import interfaces as ports
from .domain import Booking, Enrollment, Room, Ticket, TicketType
from .orm import (
    AddressRecord,
    Base,
    BookingRecord,
    EnrollmentRecord,
    RoomRecord,
    TicketRecord,
)


class InMemoryBookingRepository(ports.IBookingRepository):
    """Реализация шлюза бронирований и номеров в памяти."""

    def __init__(self):
        self._rooms: Dict[EntityId, Room] = {}
        self._bookings: Dict[EntityId, Booking] = {}
        self._next_room_id = 1
        self._next_booking_id = 1

    def add_room(self, name: str, capacity: int, hotel_id: EntityId = 1) -> Room:
        """Добавляет номер (наполнение тестовыми данными)."""
        room = Room(id=self._next_room_id, name=name, capacity=capacity, hotel_id=hotel_id)
        self._rooms[room.id] = room
        self._next_room_id += 1
        return room

    async def get_booking_for_user(self, user_id: EntityId) -> Optional[Booking]:
        for booking in self._bookings.values():
            if booking.user_id == user_id:
                return booking.model_copy(update={"room": self._rooms[booking.room_id]})
        return None

    async def find_room(self, room_id: EntityId) -> Optional[Room]:
        return self._rooms.get(room_id)

    async def count_active_bookings_for_room(self, room_id: EntityId) -> int:
        return sum(1 for booking in self._bookings.values() if booking.room_id == room_id)

    async def create_booking(self, user_id: EntityId, room_id: EntityId) -> Booking:
        if room_id not in self._rooms:
            raise ConstraintViolationError(f"Номер {room_id} не существует")
        # Не более одного бронирования на пользователя
        if any(booking.user_id == user_id for booking in self._bookings.values()):
            raise ConstraintViolationError(f"У пользователя {user_id} уже есть бронирование")

        booking = Booking(id=self._next_booking_id, user_id=user_id, room_id=room_id)
        self._bookings[booking.id] = booking
        self._next_booking_id += 1
        return booking

    async def update_booking_room(
        self, booking_id: EntityId, room_id: EntityId
    ) -> Booking:
        if booking_id not in self._bookings:
            raise NotFoundError(f"Бронирование {booking_id} не найдено")
        if room_id not in self._rooms:
            raise ConstraintViolationError(f"Номер {room_id} не существует")

        booking = self._bookings[booking_id].model_copy(
            update={"room_id": room_id, "updated_at": now()}
        )
        self._bookings[booking_id] = booking
        return booking


class InMemoryEnrollmentRepository(ports.IEnrollmentRepository):
    """Реализация репозитория записей на мероприятие в памяти."""

    def __init__(self):
        self._enrollments: Dict[EntityId, Enrollment] = {}
        self._next_id = 1

    def add_enrollment(
        self, user_id: EntityId, name: str, address: Optional[Address] = None
    ) -> Enrollment:
        enrollment = Enrollment(
            id=self._next_id, user_id=user_id, name=name, address=address
        )
        self._enrollments[enrollment.id] = enrollment
        self._next_id += 1
        return enrollment

    async def find_with_address_by_user_id(
        self, user_id: EntityId
    ) -> Optional[Enrollment]:
        for enrollment in self._enrollments.values():
            if enrollment.user_id == user_id:
                return enrollment
        return None


class InMemoryTicketRepository(ports.ITicketRepository):
    """Реализация репозитория билетов в памяти."""

    def __init__(self):
        self._tickets: Dict[EntityId, Ticket] = {}
        self._next_ticket_id = 1
        self._next_type_id = 1

    def add_ticket_type(
        self,
        name: str = "Presencial + Hotel",
        price: int = 600,
        is_remote: bool = False,
        includes_hotel: bool = True,
    ) -> TicketType:
        ticket_type = TicketType(
            id=self._next_type_id,
            name=name,
            price=price,
            is_remote=is_remote,
            includes_hotel=includes_hotel,
        )
        self._next_type_id += 1
        return ticket_type

    def add_ticket(
        self,
        enrollment_id: EntityId,
        ticket_type: TicketType,
        status: TicketStatus = TicketStatus.PAID,
    ) -> Ticket:
        ticket = Ticket(
            id=self._next_ticket_id,
            enrollment_id=enrollment_id,
            status=status,
            ticket_type=ticket_type,
        )
        self._tickets[ticket.id] = ticket
        self._next_ticket_id += 1
        return ticket

    async def find_by_enrollment_id(self, enrollment_id: EntityId) -> Optional[Ticket]:
        for ticket in self._tickets.values():
            if ticket.enrollment_id == enrollment_id:
                return ticket
        return None


class BookingUnitOfWork(ports.IBookingUnitOfWork):
    """Единица работы для контекста бронирования в памяти."""

    def __init__(
        self,
        bookings_repo: Optional[InMemoryBookingRepository] = None,
        enrollments_repo: Optional[InMemoryEnrollmentRepository] = None,
        tickets_repo: Optional[InMemoryTicketRepository] = None,
        logger: Optional[ports.ILogger] = None,
    ):
        self._bookings = bookings_repo or InMemoryBookingRepository()
        self._enrollments = enrollments_repo or InMemoryEnrollmentRepository()
        self._tickets = tickets_repo or InMemoryTicketRepository()
        self._logger = logger or StandardLogger(__name__)
        self._committed = False

    @property
    def bookings(self) -> InMemoryBookingRepository:
        return self._bookings

    @property
    def enrollments(self) -> InMemoryEnrollmentRepository:
        return self._enrollments

    @property
    def tickets(self) -> InMemoryTicketRepository:
        return self._tickets

    async def commit(self) -> None:
        """Фиксирует все изменения."""
        # Изменения в памяти применяются сразу, фиксировать нечего
        self._committed = True
        self._logger.debug("BookingUnitOfWork committed")

    async def rollback(self) -> None:
        """Откатывает все изменения."""
        self._committed = False
        self._logger.debug("BookingUnitOfWork rolled back")

    async def __aenter__(self) -> "BookingUnitOfWork":
        self._committed = False
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        if exc_type is not None:
            await self.rollback()


# Реализации поверх SQLAlchemy

_storage_logger = StandardLogger(__name__)


@contextmanager
def storage_errors() -> Iterator[None]:
    """
    Переводит ошибки драйвера в типизированные отказы.

    Нарушение ограничения становится ConstraintViolationError, любая другая
    ошибка SQLAlchemy - StorageError. Текст драйвера уходит только в лог.
    """
    try:
        yield
    except IntegrityError as e:
        _storage_logger.warning("Storage constraint violated", error=str(e.orig))
        raise ConstraintViolationError() from e
    except SQLAlchemyError as e:
        _storage_logger.error("Storage failure", exc_info=True, error=str(e))
        raise StorageError() from e


class SqlAlchemyBookingRepository(ports.IBookingRepository):
    """
    Шлюз бронирований поверх AsyncSession.

    При lock_rooms=True номер читается с SELECT ... FOR UPDATE, и проверка
    вместимости вместе с записью выполняется под блокировкой строки номера
    до конца транзакции. SQLite блокировку игнорирует.
    """

    def __init__(self, session: AsyncSession, lock_rooms: bool = True):
        self._session = session
        self._lock_rooms = lock_rooms

    async def get_booking_for_user(self, user_id: EntityId) -> Optional[Booking]:
        with storage_errors():
            result = await self._session.execute(
                select(BookingRecord).where(BookingRecord.user_id == user_id)
            )
            record = result.scalars().first()
        if record is None:
            return None
        return Booking(
            id=record.id,
            user_id=record.user_id,
            room_id=record.room_id,
            room=Room.model_validate(record.room),
            created_at=record.created_at,
            updated_at=record.updated_at,
        )

    def room_query(self, room_id: EntityId) -> Select:
        """Запрос номера; при lock_rooms=True с блокировкой строки."""
        query = select(RoomRecord).where(RoomRecord.id == room_id)
        if self._lock_rooms:
            query = query.with_for_update()
        return query

    async def find_room(self, room_id: EntityId) -> Optional[Room]:
        with storage_errors():
            record = (
                (await self._session.execute(self.room_query(room_id))).scalars().first()
            )
        return Room.model_validate(record) if record is not None else None

    async def count_active_bookings_for_room(self, room_id: EntityId) -> int:
        with storage_errors():
            result = await self._session.execute(
                select(func.count())
                .select_from(BookingRecord)
                .where(BookingRecord.room_id == room_id)
            )
            return result.scalar_one()

    async def create_booking(self, user_id: EntityId, room_id: EntityId) -> Booking:
        record = BookingRecord(user_id=user_id, room_id=room_id)
        with storage_errors():
            self._session.add(record)
            await self._session.flush()
            await self._session.refresh(record)
        return self._to_domain(record)

    async def update_booking_room(
        self, booking_id: EntityId, room_id: EntityId
    ) -> Booking:
        with storage_errors():
            record = await self._session.get(BookingRecord, booking_id)
            if record is None:
                raise NotFoundError(f"Бронирование {booking_id} не найдено")
            record.room_id = room_id
            await self._session.flush()
            await self._session.refresh(record)
        return self._to_domain(record)

    @staticmethod
    def _to_domain(record: BookingRecord) -> Booking:
        return Booking(
            id=record.id,
            user_id=record.user_id,
            room_id=record.room_id,
            created_at=record.created_at,
            updated_at=record.updated_at,
        )


class SqlAlchemyEnrollmentRepository(ports.IEnrollmentRepository):
    """Репозиторий записей на мероприятие поверх AsyncSession."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def find_with_address_by_user_id(
        self, user_id: EntityId
    ) -> Optional[Enrollment]:
        with storage_errors():
            result = await self._session.execute(
                select(EnrollmentRecord).where(EnrollmentRecord.user_id == user_id)
            )
            record = result.scalars().first()
        if record is None:
            return None

        address = None
        if record.addresses:
            address = self._address_to_domain(record.addresses[0])
        return Enrollment(
            id=record.id, user_id=record.user_id, name=record.name, address=address
        )

    @staticmethod
    def _address_to_domain(record: AddressRecord) -> Address:
        return Address(
            street=record.street,
            number=record.number,
            city=record.city,
            state=record.state,
            postal_code=record.postal_code,
            neighborhood=record.neighborhood,
            detail=record.detail,
        )


class SqlAlchemyTicketRepository(ports.ITicketRepository):
    """Репозиторий билетов поверх AsyncSession."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def find_by_enrollment_id(self, enrollment_id: EntityId) -> Optional[Ticket]:
        with storage_errors():
            result = await self._session.execute(
                select(TicketRecord).where(TicketRecord.enrollment_id == enrollment_id)
            )
            record = result.scalars().first()
        if record is None:
            return None
        return Ticket(
            id=record.id,
            enrollment_id=record.enrollment_id,
            status=TicketStatus(record.status),
            ticket_type=TicketType.model_validate(record.ticket_type),
        )


class SqlAlchemyBookingUnitOfWork(ports.IBookingUnitOfWork):
    """
    Единица работы поверх async_sessionmaker.

    Одна сессия и одна транзакция на запрос. Фабрика сессий передается
    снаружи, глобального клиента базы данных нет.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        logger: Optional[ports.ILogger] = None,
        lock_rooms: bool = True,
    ):
        self._session_factory = session_factory
        self._logger = logger or StandardLogger(__name__)
        self._lock_rooms = lock_rooms
        self._session: Optional[AsyncSession] = None
        self._bookings: Optional[SqlAlchemyBookingRepository] = None
        self._enrollments: Optional[SqlAlchemyEnrollmentRepository] = None
        self._tickets: Optional[SqlAlchemyTicketRepository] = None

    @property
    def bookings(self) -> Optional[SqlAlchemyBookingRepository]:
        return self._bookings

    @property
    def enrollments(self) -> Optional[SqlAlchemyEnrollmentRepository]:
        return self._enrollments

    @property
    def tickets(self) -> Optional[SqlAlchemyTicketRepository]:
        return self._tickets

    async def __aenter__(self) -> "SqlAlchemyBookingUnitOfWork":
        self._session = self._session_factory()
        self._bookings = SqlAlchemyBookingRepository(self._session, self._lock_rooms)
        self._enrollments = SqlAlchemyEnrollmentRepository(self._session)
        self._tickets = SqlAlchemyTicketRepository(self._session)
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        try:
            if exc_type is not None:
                await self.rollback()
        finally:
            await self._session.close()
            self._session = None

    async def commit(self) -> None:
        """Фиксирует транзакцию."""
        with storage_errors():
            await self._session.commit()
        self._logger.debug("SqlAlchemyBookingUnitOfWork committed")

    async def rollback(self) -> None:
        """Откатывает транзакцию."""
        await self._session.rollback()
        self._logger.debug("SqlAlchemyBookingUnitOfWork rolled back")


def build_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    """Создает асинхронный движок; для SQLite включает внешние ключи."""
    if database_url.startswith("sqlite"):
        kwargs = {}
        if ":memory:" in database_url:
            kwargs["poolclass"] = StaticPool
        engine = create_async_engine(database_url, echo=echo, **kwargs)

        @event.listens_for(engine.sync_engine, "connect")
        def enable_sqlite_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        return engine

    return create_async_engine(database_url, echo=echo, pool_pre_ping=True)


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, expire_on_commit=False, autoflush=False)


async def init_models(engine: AsyncEngine) -> None:
    """Создает таблицы, если их еще нет."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
