"""Logging infrastructure.

Basic usage:
    import logging

    logger = logging.getLogger(__name__)
    logger.info("Node moved", extra={"model": "Category", "node_id": 7})

    # Lazy evaluation for expensive debug output
    from nested_set.infra.logging import get_lazy_logger

    lazy_logger = get_lazy_logger(__name__)
    lazy_logger.debug(lambda: f"Plan: {plan!r}")  # Only built if DEBUG enabled
"""

from nested_set.infra.logging.config import configure_logging, setup_logging, shutdown
from nested_set.infra.logging.formatters import JSONFormatter
from nested_set.infra.logging.lazy import LazyLoggerAdapter, LazyString, get_lazy_logger, lazy

__all__ = [
    "JSONFormatter",
    "LazyLoggerAdapter",
    "LazyString",
    "configure_logging",
    "get_lazy_logger",
    "lazy",
    "setup_logging",
    "shutdown",
]
