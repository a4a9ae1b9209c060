"""Database repository and tree exceptions.

Custom exceptions for repository and tree operations that provide better
error messages and typing than raw SQLAlchemy exceptions. Errors raised by
the database driver itself are never wrapped: they propagate unchanged after
the surrounding transaction has been rolled back.
"""
from __future__ import annotations

from typing import Any


class RepositoryError(Exception):
    """Base exception for repository operations.

    Raised when a repository operation fails due to programming
    errors, configuration issues, or unexpected states.
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        """Initialize repository error.

        Args:
            message: Error description
            details: Additional context about the error
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Format error message with details."""
        if self.details:
            details_str = ", ".join(f"{k}={v!r}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message


class NotFoundError(RepositoryError):
    """Entity not found in database.

    Raised when a node, its parent or a move target cannot be fetched by
    primary key. Tree mutations raise it before issuing any write.

    Attributes:
        model_name: Name of the model class that wasn't found
        identifier: The key/value that was searched for
    """

    def __init__(self, model_name: str, identifier: dict[str, Any]):
        self.model_name = model_name
        self.identifier = identifier

        id_str = ", ".join(f"{k}={v!r}" for k, v in identifier.items())
        message = f"{model_name} not found with {id_str}"

        super().__init__(message, details={"model": model_name, **identifier})

    def __repr__(self) -> str:
        """Repr for debugging."""
        return f"NotFoundError(model={self.model_name!r}, identifier={self.identifier!r})"


class InvalidMoveError(RepositoryError):
    """Structural change that would corrupt the tree.

    Raised for moving or deleting the root node, and for moving a node
    under itself or one of its own descendants.
    """

    def __init__(self, message: str, node_id: Any = None, target_id: Any = None):
        details: dict[str, Any] = {}
        if node_id is not None:
            details["node_id"] = node_id
        if target_id is not None:
            details["target_id"] = target_id
        super().__init__(message, details=details)


class InvalidIntervalError(RepositoryError):
    """A ``(left, right)`` pair that cannot belong to a nested-set tree."""

    def __init__(self, left: int, right: int, reason: str):
        super().__init__(f"Invalid interval: {reason}", details={"left": left, "right": right})


class TreeDepthExceededError(RepositoryError):
    """Nested tree construction went deeper than the configured cap.

    Raised for trees deeper than the cap and for parent references that
    form a cycle, so building stops instead of recursing indefinitely.
    """

    def __init__(self, max_depth: int, node_id: Any = None):
        self.max_depth = max_depth
        details: dict[str, Any] = {"max_depth": max_depth}
        if node_id is not None:
            details["node_id"] = node_id
        super().__init__("Nested tree exceeds maximum depth", details=details)


class TreeIntegrityError(RepositoryError):
    """Stored intervals violate the nested-set invariants."""

    def __init__(self, violations: list[str]):
        self.violations = violations
        summary = "; ".join(violations[:5])
        if len(violations) > 5:
            summary += f"; ... {len(violations) - 5} more"
        super().__init__(f"Tree integrity check failed: {summary}", details={"count": len(violations)})


__all__ = [
    "InvalidIntervalError",
    "InvalidMoveError",
    "NotFoundError",
    "RepositoryError",
    "TreeDepthExceededError",
    "TreeIntegrityError",
]
