"""Environment-aware logging setup.

Configuration by environment:
- Development/Local: Colored detailed console, DEBUG when verbose
- Staging: Structured console plus optional rotating file
- Production: JSON console, third-party loggers quieted
- Testing: Null handler at ERROR to keep test output clean
"""

import contextvars
import logging
import uuid
from typing import List, Optional

from ..config.settings import EnvironmentOption, Settings, get_settings
from .handlers import (
    create_console_handler,
    create_file_handler,
    create_null_handler,
)

query_id_var: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar("query_id", default=None)

NOISY_LOGGERS = {
    "httpx": logging.WARNING,
    "httpcore": logging.WARNING,
    "urllib3.connectionpool": logging.WARNING,
    "sentence_transformers": logging.WARNING,
    "filelock": logging.WARNING,
}


class QueryIdFilter(logging.Filter):
    """Stamp the current query id on every record passing through a handler."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "query_id"):
            record.query_id = query_id_var.get() or "no-query"
        return True


def set_query_id(query_id: str) -> contextvars.Token:
    """Bind a query id to the current context.

    Returns:
        Token that can be passed to reset_query_id
    """
    return query_id_var.set(query_id)


def reset_query_id(token: contextvars.Token) -> None:
    """Restore the query id that was active before set_query_id."""
    query_id_var.reset(token)


def get_query_id() -> Optional[str]:
    """Get the query id bound to the current context, if any."""
    return query_id_var.get()


def generate_query_id() -> str:
    """Generate a new query id."""
    return uuid.uuid4().hex[:12]


def setup_logging_configuration(settings: Optional[Settings] = None) -> None:
    """Configure the root logger from application settings.

    Should be called once at process start; get_logger calls it lazily.
    """
    settings = settings or get_settings()

    root_logger = logging.getLogger()
    root_logger.handlers.clear()

    if settings.ENVIRONMENT == EnvironmentOption.TESTING:
        configure_testing_logging()
        return

    if settings.ENVIRONMENT == EnvironmentOption.STAGING:
        handlers = _staging_handlers(settings)
    elif settings.ENVIRONMENT == EnvironmentOption.PRODUCTION:
        handlers = _production_handlers(settings)
    else:
        handlers = _development_handlers(settings)

    query_filter = QueryIdFilter()
    for handler in handlers:
        handler.addFilter(query_filter)
        root_logger.addHandler(handler)

    root_logger.setLevel(settings.LOG_LEVEL_INT)

    if settings.ENVIRONMENT == EnvironmentOption.PRODUCTION:
        _configure_noisy_loggers()


def _file_handler(settings: Settings) -> logging.Handler:
    return create_file_handler(
        filepath=settings.LOG_FILE_PATH,
        format_type="structured",
        level=logging.DEBUG,
        max_bytes=settings.LOG_FILE_MAX_SIZE,
        backup_count=settings.LOG_FILE_BACKUP_COUNT,
    )


def _development_handlers(settings: Settings) -> List[logging.Handler]:
    handlers = []

    if settings.LOG_CONSOLE_ENABLED:
        console_level = logging.DEBUG if settings.LOG_DEVELOPMENT_VERBOSE else settings.LOG_LEVEL_INT
        handlers.append(create_console_handler(format_type="detailed", level=console_level, use_colors=True))

    if settings.LOG_FILE_ENABLED:
        handlers.append(_file_handler(settings))

    return handlers


def _staging_handlers(settings: Settings) -> List[logging.Handler]:
    handlers = []

    if settings.LOG_CONSOLE_ENABLED:
        handlers.append(
            create_console_handler(format_type=settings.LOG_FORMAT, level=settings.LOG_LEVEL_INT, use_colors=False)
        )

    if settings.LOG_FILE_ENABLED:
        handlers.append(_file_handler(settings))

    return handlers


def _production_handlers(settings: Settings) -> List[logging.Handler]:
    handlers = []

    if settings.LOG_CONSOLE_ENABLED:
        console_level = logging.WARNING if settings.LOG_PRODUCTION_OPTIMIZE else settings.LOG_LEVEL_INT
        handlers.append(create_console_handler(format_type="json", level=console_level, use_colors=False))

    return handlers


def _configure_noisy_loggers() -> None:
    for logger_name, level in NOISY_LOGGERS.items():
        logging.getLogger(logger_name).setLevel(level)


def configure_testing_logging() -> None:
    """Configure minimal logging for test runs."""
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(create_null_handler())
    root_logger.setLevel(logging.ERROR)

    for logger_name in NOISY_LOGGERS:
        logging.getLogger(logger_name).setLevel(logging.ERROR)


def get_configured_logger(name: str) -> logging.Logger:
    """Get a logger that inherits the configured root handlers."""
    return logging.getLogger(name)
