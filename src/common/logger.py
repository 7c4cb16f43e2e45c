from __future__ import annotations

import logging
import os
import sys
from typing import Optional

import structlog
from structlog.processors import CallsiteParameter, CallsiteParameterAdder


ENV_LOG_LEVEL = "RADAR_LOG_LEVEL"


def setup_logger(level: Optional[str] = None) -> None:
    """
    Configure structlog for console output with timestamp and log level.

    `level` falls back to `RADAR_LOG_LEVEL`, then "INFO". Unknown names map to INFO.
    """
    name = (level or os.environ.get(ENV_LOG_LEVEL) or "INFO").upper()
    log_level = getattr(logging, name, logging.INFO)

    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            # Attribute events to the instrumented module, not to LoggerService
            CallsiteParameterAdder([CallsiteParameter.MODULE], additional_ignores=[__name__]),
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: Optional[str] = None):
    return structlog.get_logger(name)


class LoggerService:
    """
    Marks method entry and exit for diagnostics.

    The method name defaults to the caller's function name. Never raises and
    never affects the caller's control flow.
    """

    def __init__(self, name: str = "radar", *, logger=None) -> None:
        self._logger = logger or structlog.get_logger(name)

    @staticmethod
    def _caller_name() -> str:
        # Only valid when called directly from start_method/end_method:
        # 0: _caller_name, 1: start_method/end_method, 2: the instrumented method.
        return sys._getframe(2).f_code.co_name

    def start_method(self, method: Optional[str] = None) -> None:
        self._logger.debug("method_start", method=method or self._caller_name())

    def end_method(self, method: Optional[str] = None) -> None:
        self._logger.debug("method_end", method=method or self._caller_name())
