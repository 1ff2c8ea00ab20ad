"""Centralized logging infrastructure.

Usage:
    ```python
    from corrections_rag.infrastructure.logging import get_logger

    logger = get_logger()  # Auto-detects module name
    logger.info("Query answered", extra={"backend": "openai"})
    ```

Every record passing through the configured handlers carries a `query_id`
field, bound per query with `set_query_id`.
"""

from .config import (
    QueryIdFilter,
    configure_testing_logging,
    generate_query_id,
    get_query_id,
    reset_query_id,
    set_query_id,
    setup_logging_configuration,
)
from .factory import configure_logging, get_logger

__all__ = [
    "get_logger",
    "configure_logging",
    "configure_testing_logging",
    "setup_logging_configuration",
    "QueryIdFilter",
    "generate_query_id",
    "get_query_id",
    "set_query_id",
    "reset_query_id",
]
