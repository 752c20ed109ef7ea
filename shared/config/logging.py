"""
Structured logging for stockroom.

Loggers accept keyword context next to the message:

    logger = get_logger(__name__)
    logger.info("Item deleted", item_id=7)
    logger.error("Failed to delete item", item_id=7, exc_info=True)

Production writes one JSON object per line. Development renders through
rich with the context appended. When setup_logging() is given an
employee provider, every record also carries the logged-in employee id.
"""

import json
import logging
import sys
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

from rich.console import Console
from rich.logging import RichHandler

from shared.config.settings import settings

EmployeeProvider = Callable[[], "int | None"]


def _context_of(record: logging.LogRecord) -> dict[str, Any]:
    return getattr(record, "extra_data", None) or {}


class StructuredFormatter(logging.Formatter):
    """One JSON object per record, for log shippers."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "employee_id": getattr(record, "employee_id", None),
        }

        context = _context_of(record)
        if context:
            payload["data"] = context

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        if settings.debug:
            payload["source"] = f"{record.pathname}:{record.lineno} ({record.funcName})"

        return json.dumps(payload, default=str)


class ContextFormatter(logging.Formatter):
    """Message followed by its keyword context, for the rich console handler."""

    def format(self, record: logging.LogRecord) -> str:
        parts = [record.getMessage()]

        employee_id = getattr(record, "employee_id", None)
        if employee_id is not None:
            parts.insert(0, f"[emp:{employee_id}]")

        context = _context_of(record)
        if context:
            parts.append("(" + ", ".join(f"{key}={value}" for key, value in context.items()) + ")")

        return " ".join(parts)


class SessionLogFilter(logging.Filter):
    """
    Stamps each record with the logged-in employee id.

    The provider is asked on every record, so a re-login shows up
    immediately. A provider that fails leaves the id empty.
    """

    def __init__(self, employee_provider: EmployeeProvider):
        super().__init__()
        self._employee_provider = employee_provider

    def filter(self, record: logging.LogRecord) -> bool:
        try:
            record.employee_id = self._employee_provider()
        except Exception:
            record.employee_id = None
        return True


class StructuredLogger(logging.Logger):
    """Logger whose level methods take keyword context instead of %-args only."""

    def _log_with_context(
        self,
        level: int,
        msg: str,
        args: tuple,
        exc_info: Any = None,
        **context: Any,
    ) -> None:
        if not self.isEnabledFor(level):
            return
        # stacklevel 3 skips this frame and the level method
        super()._log(
            level,
            msg,
            args,
            exc_info=exc_info,
            extra={"extra_data": context or None},
            stacklevel=3,
        )

    def debug(self, msg: str, *args: Any, **context: Any) -> None:
        self._log_with_context(logging.DEBUG, msg, args, **context)

    def info(self, msg: str, *args: Any, **context: Any) -> None:
        self._log_with_context(logging.INFO, msg, args, **context)

    def warning(self, msg: str, *args: Any, **context: Any) -> None:
        self._log_with_context(logging.WARNING, msg, args, **context)

    def error(self, msg: str, *args: Any, **context: Any) -> None:
        self._log_with_context(logging.ERROR, msg, args, **context)

    def critical(self, msg: str, *args: Any, **context: Any) -> None:
        self._log_with_context(logging.CRITICAL, msg, args, **context)


logging.setLoggerClass(StructuredLogger)


def _build_handler() -> logging.Handler:
    if settings.environment == "production":
        handler: logging.Handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(StructuredFormatter())
        return handler

    handler = RichHandler(
        console=Console(stderr=True),
        show_path=settings.debug,
        rich_tracebacks=True,
        markup=False,
    )
    handler.setFormatter(ContextFormatter())
    return handler


def setup_logging(employee_provider: EmployeeProvider | None = None) -> None:
    """
    Configure the root logger. Call once at start-up.

    Args:
        employee_provider: Returns the logged-in employee id (or None).
    """
    if settings.debug:
        level = logging.DEBUG
    else:
        level = logging.getLevelName(settings.log_level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    handler = _build_handler()
    handler.setLevel(level)
    if employee_provider is not None:
        handler.addFilter(SessionLogFilter(employee_provider))

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()
    root.addHandler(handler)

    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if settings.db_echo else logging.WARNING
    )
    logging.getLogger("sqlalchemy.pool").setLevel(logging.WARNING)


def get_logger(name: str) -> StructuredLogger:
    """Module logger: logger = get_logger(__name__)."""
    return logging.getLogger(name)  # type: ignore[return-value]


def mask_email(email: str | None) -> str:
    """
    Hide most of the local part of an email for logs.

    "user@example.com" -> "us***@example.com"
    """
    if not email:
        return "<no-email>"

    local, sep, domain = email.partition("@")
    if not sep or not local:
        return "***@invalid"
    return f"{local[:2]}***@{domain}"
