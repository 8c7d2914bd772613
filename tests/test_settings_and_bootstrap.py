"""
Тесты настроек, логирования и сборки приложения.
"""

import logging

import pytest
from booking.api import BookingController
from booking.application import CreateBookingRequest
from booking.infrastructure import init_models
from bootstrap import bootstrap_app, logging_config
from settings import BookingSettings, get_settings
from shared_kernel import StandardLogger


class TestBookingSettings:
    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("BOOKING_RECHECK_ELIGIBILITY_ON_CHANGE", raising=False)
        settings = BookingSettings()

        assert settings.database_url.startswith("sqlite+aiosqlite")
        assert settings.recheck_eligibility_on_change is False
        assert settings.lock_rooms is True
        assert settings.log_level == "INFO"

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("BOOKING_RECHECK_ELIGIBILITY_ON_CHANGE", "true")
        monkeypatch.setenv("BOOKING_LOG_LEVEL", "DEBUG")

        settings = BookingSettings()

        assert settings.recheck_eligibility_on_change is True
        assert settings.log_level == "DEBUG"

    def test_unknown_log_level_is_rejected(self):
        with pytest.raises(ValueError):
            BookingSettings(log_level="LOUD")

    def test_get_settings_is_cached(self):
        get_settings.cache_clear()

        assert get_settings() is get_settings()


class TestLogging:
    def test_json_formatter_is_selected(self):
        config = logging_config(BookingSettings(log_json=True))

        assert config["handlers"]["console"]["formatter"] == "json"
        assert config["loggers"]["booking"]["level"] == "INFO"

    def test_standard_logger_passes_context(self, caplog):
        logger = StandardLogger("booking.test")

        with caplog.at_level(logging.INFO, logger="booking.test"):
            logger.info("Бронирование создано", booking_id=5)

        record = caplog.records[-1]
        assert record.getMessage() == "Бронирование создано"
        assert record.context == {"booking_id": 5}


class TestBootstrap:
    async def test_wires_in_memory_components(self, uow, enroll_user):
        components = bootstrap_app(
            BookingSettings(log_level="DEBUG"), uow_factory=lambda: uow
        )
        controller = components["booking_controller"]
        enroll_user(1)
        room = uow.bookings.add_room("101", capacity=1)

        response = await controller.post_booking(1, CreateBookingRequest(room_id=room.id))

        assert isinstance(controller, BookingController)
        assert components["engine"] is None
        assert response.status_code == 201
        assert logging.getLogger("booking").level == logging.DEBUG

    async def test_builds_sqlalchemy_stack_from_settings(self):
        components = bootstrap_app(
            BookingSettings(database_url="sqlite+aiosqlite:///:memory:")
        )
        engine = components["engine"]
        await init_models(engine)

        response = await components["booking_controller"].get_booking(1)

        assert response.status_code == 404
        await engine.dispose()
