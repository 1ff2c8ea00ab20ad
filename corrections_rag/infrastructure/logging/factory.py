"""Logger factory with automatic configuration.

Loggers obtained here trigger one-time, settings-driven configuration of the
root logger and auto-detect the calling module when no name is given.
"""

import inspect
import logging
from threading import Lock
from typing import Optional, Union

from ..config.settings import get_settings
from .config import get_configured_logger, setup_logging_configuration

_logging_configured = False
_configuration_lock = Lock()


def get_logger(name: Optional[str] = None, **extra_context) -> Union[logging.Logger, logging.LoggerAdapter]:
    """Get a configured logger.

    Args:
        name: Logger name. If None, detected from the calling module.
        **extra_context: Context added to every record from this logger.

    Returns:
        Logger, or a LoggerAdapter when extra context is given.

    Example:
        ```python
        logger = get_logger()
        logger.info("Index refreshed", extra={"chunk_count": 42})

        logger = get_logger(component="synthesis")
        ```
    """
    _ensure_logging_configured()

    if name is None:
        name = _detect_calling_module()

    base_logger = get_configured_logger(name)

    if extra_context:
        return logging.LoggerAdapter(base_logger, extra_context)
    return base_logger


def configure_logging() -> None:
    """Configure logging now instead of on first get_logger call."""
    global _logging_configured

    with _configuration_lock:
        if not _logging_configured:
            setup_logging_configuration()
            _logging_configured = True

            settings = get_settings()
            logging.getLogger(__name__).debug(
                f"Logging configured for {settings.ENVIRONMENT.value} environment",
                extra={"log_level": settings.LOG_LEVEL, "log_format": settings.LOG_FORMAT},
            )


def _ensure_logging_configured() -> None:
    if not _logging_configured:
        configure_logging()


def _detect_calling_module() -> str:
    """Return the module name of whoever called get_logger()."""
    frame = inspect.currentframe()

    try:
        for _ in range(2):
            if frame is None:
                break
            frame = frame.f_back

        if frame is not None:
            return str(frame.f_globals.get("__name__", "unknown"))
        return "unknown"

    finally:
        del frame
