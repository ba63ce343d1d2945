"""Logging configuration for the storefront.

stdlib logging owns the handlers (console plus rotating files); structlog
owns the event format. Storefront log events carry payment references,
SMTP credentials and shopper email addresses, so a masking processor runs
before rendering.
"""

import logging
import logging.handlers
import os
import sys
from pathlib import Path
from typing import Any

import structlog

LEVELS_BY_ENV = {
    "production": "INFO",
    "staging": "INFO",
    "development": "DEBUG",
    "test": "WARNING",
}

SECRET_KEYS = frozenset({"password", "smtp_password", "api_key", "client_secret", "webhook_secret", "card_number"})
EMAIL_KEYS = frozenset({"recipient", "email", "alert_email"})

_ROTATE_BYTES = 10 * 1024 * 1024
_ROTATE_BACKUPS = 5


def _environment() -> str:
    return (os.getenv("ENVIRONMENT") or os.getenv("PROTEAN_ENV") or "development").lower()


def get_log_level() -> str:
    """``LOG_LEVEL`` wins; otherwise the level follows the environment."""
    return os.getenv("LOG_LEVEL", LEVELS_BY_ENV.get(_environment(), "INFO"))


def _rotating_handler(path: Path, level: int | str) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(
        filename=path, maxBytes=_ROTATE_BYTES, backupCount=_ROTATE_BACKUPS, encoding="utf-8"
    )
    handler.setLevel(level)
    return handler


def setup_stdlib_logging(log_dir: str | None = None, log_file_prefix: str = "storefront") -> None:
    """Console output plus ``<prefix>.log`` and ``<prefix>_error.log`` under ``log_dir``."""
    level = get_log_level()
    log_path = Path(log_dir or os.getenv("LOG_DIR", "logs"))
    log_path.mkdir(parents=True, exist_ok=True)

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers = []

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(level)
    root.addHandler(console)
    root.addHandler(_rotating_handler(log_path / f"{log_file_prefix}.log", level))
    root.addHandler(_rotating_handler(log_path / f"{log_file_prefix}_error.log", logging.ERROR))

    for noisy in ("uvicorn.access", "sqlalchemy.engine", "asyncio", "smtplib"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def mask_sensitive(_logger: Any, _method: str, event_dict: dict) -> dict:
    """Blank secrets and reduce email addresses to ``j***@example.com``."""
    for key in SECRET_KEYS.intersection(event_dict):
        event_dict[key] = "***"
    for key in EMAIL_KEYS.intersection(event_dict):
        value = event_dict[key]
        if isinstance(value, str) and "@" in value:
            local, _, host = value.partition("@")
            event_dict[key] = f"{local[:1]}***@{host}"
    return event_dict


def setup_structlog() -> None:
    """JSON lines in production and staging, coloured console output elsewhere."""
    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        mask_sensitive,
    ]

    if _environment() in ("production", "staging"):
        processors.append(
            structlog.processors.CallsiteParameterAdder(
                parameters=[
                    structlog.processors.CallsiteParameter.MODULE,
                    structlog.processors.CallsiteParameter.FUNC_NAME,
                ]
            )
        )
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(
            structlog.dev.ConsoleRenderer(
                colors=True,
                exception_formatter=structlog.dev.RichTracebackFormatter(show_locals=False, max_frames=3),
            )
        )

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def configure_logging(log_dir: str | None = None, log_file_prefix: str = "storefront") -> None:
    setup_stdlib_logging(log_dir=log_dir, log_file_prefix=log_file_prefix)
    setup_structlog()


def add_context(**kwargs: Any) -> None:
    """Bind context variables onto every subsequent log line of the current request."""
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()
