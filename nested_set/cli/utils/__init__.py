"""CLI utilities for running async operations and formatting output."""

from nested_set.cli.utils.async_runner import coro
from nested_set.cli.utils.formatters import (
    error,
    header,
    info,
    success,
    tree_line,
    warning,
)

__all__ = [
    "coro",
    "error",
    "header",
    "info",
    "success",
    "tree_line",
    "warning",
]
