"""
Адаптер порта ILogger поверх стандартного модуля logging.
"""

import logging
from typing import Any, Optional


class StandardLogger:
    """Передает структурированный контекст в logging через extra."""

    def __init__(self, name: str = "booking", logger: Optional[logging.Logger] = None):
        self._logger = logger or logging.getLogger(name)

    def _log(self, level: int, message: str, kwargs: dict) -> None:
        exc_info = kwargs.pop("exc_info", None)
        self._logger.log(level, message, exc_info=exc_info, extra={"context": kwargs})

    def info(self, message: str, **kwargs: Any) -> None:
        self._log(logging.INFO, message, kwargs)

    def error(self, message: str, **kwargs: Any) -> None:
        self._log(logging.ERROR, message, kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        self._log(logging.WARNING, message, kwargs)

    def debug(self, message: str, **kwargs: Any) -> None:
        self._log(logging.DEBUG, message, kwargs)
