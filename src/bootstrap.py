import logging.config
from functools import partial
from typing import Any, Dict, Optional

from booking.api import BookingController
from booking.application import BookingApplicationService
from booking.infrastructure import (
    SqlAlchemyBookingUnitOfWork,
    build_engine,
    build_session_factory,
)
from settings import BookingSettings, get_settings
from shared_kernel import StandardLogger


def logging_config(settings: BookingSettings) -> Dict[str, Any]:
    """Собирает словарь для logging.config.dictConfig."""
    formatter = "json" if settings.log_json else "plain"
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "plain": {
                "format": "%(asctime)s %(levelname)s [%(name)s] %(message)s",
            },
            "json": {
                "()": "pythonjsonlogger.jsonlogger.JsonFormatter",
                "fmt": "%(asctime)s %(levelname)s %(name)s %(message)s",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": formatter,
            },
        },
        "loggers": {
            "booking": {"handlers": ["console"], "level": settings.log_level},
            "bootstrap": {"handlers": ["console"], "level": settings.log_level},
        },
    }


def configure_logging(settings: BookingSettings) -> None:
    logging.config.dictConfig(logging_config(settings))


def bootstrap_app(
    settings: Optional[BookingSettings] = None, uow_factory=None
) -> Dict[str, Any]:
    """Создает и настраивает все компоненты приложения."""
    settings = settings or get_settings()
    configure_logging(settings)
    logger = StandardLogger(__name__)

    # 1. Фабрика единиц работы: по умолчанию SQLAlchemy поверх настроек
    engine = None
    if uow_factory is None:
        engine = build_engine(settings.database_url, echo=settings.database_echo)
        uow_factory = partial(
            SqlAlchemyBookingUnitOfWork,
            build_session_factory(engine),
            logger=StandardLogger("booking.infrastructure"),
            lock_rooms=settings.lock_rooms,
        )

    # 2. Создаем сервисы, передавая им зависимости
    booking_service = BookingApplicationService(
        uow_factory,
        logger=StandardLogger("booking.application"),
        recheck_eligibility_on_change=settings.recheck_eligibility_on_change,
    )
    controller = BookingController(
        booking_service, logger=StandardLogger("booking.api")
    )

    logger.info(
        "Подсистема бронирования запущена",
        recheck_eligibility_on_change=settings.recheck_eligibility_on_change,
    )

    # Возвращаем настроенные компоненты
    return {
        "engine": engine,
        "booking_service": booking_service,
        "booking_controller": controller,
    }
