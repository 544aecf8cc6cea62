"""Shared logger instance for the OptionsKit backend."""

import logging
from typing import Any, Optional

LOGGER_NAME = "optionskit"


class PanelLogger:
    """Thin wrapper exposing the log/warn/error calls used across the backend."""

    def __init__(self, name: str = LOGGER_NAME) -> None:
        self._logger = logging.getLogger(name)

    def log(self, message: str, *args: Any) -> None:
        self._logger.info(message, *args)

    def debug(self, message: str, *args: Any) -> None:
        self._logger.debug(message, *args)

    def warn(self, message: str, *args: Any) -> None:
        self._logger.warning(message, *args)

    def error(self, message: str, *args: Any) -> None:
        self._logger.error(message, *args)

    def exception(self, message: str, *args: Any) -> None:
        self._logger.exception(message, *args)


_LOGGER_INSTANCE: Optional[PanelLogger] = None


def get_logger() -> PanelLogger:
    """Return a singleton PanelLogger instance."""
    global _LOGGER_INSTANCE
    if _LOGGER_INSTANCE is None:
        _LOGGER_INSTANCE = PanelLogger()
    return _LOGGER_INSTANCE


# Convenience alias so other modules can `from optionskit.logger import logger`
logger = get_logger()
