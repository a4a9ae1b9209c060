"""Per-model nested-set configuration.

A model states which mapped attributes hold its interval and parent
reference, and which primary key value identifies the sentinel root. The
mutator, reader and mixin all resolve columns through this object instead
of hard-coding attribute names.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Any

from nested_set.core.settings import get_nested_set_settings

if TYPE_CHECKING:
    from sqlalchemy.orm import InstrumentedAttribute

    from nested_set.core.settings import NestedSetSettings


@dataclass(frozen=True, slots=True)
class NestedSetConfig:
    """Column mapping and behaviour switches for one nested-set model.

    Attributes:
        left_column: Mapped attribute holding the left bound
        right_column: Mapped attribute holding the right bound
        parent_id_column: Mapped attribute holding the parent's primary key
        root_id: Primary key value of the sentinel root node
        id_column: Mapped primary key attribute
        max_depth: Recursion cap for nested tree construction
        lock_parent_rows: Read parent rows FOR UPDATE before renumbering

    Example:
        class Category(Base, IntegerPKMixin, NestedSetMixin):
            __nested_set__ = NestedSetConfig(left_column="lft", right_column="rgt")
    """

    left_column: str = "left"
    right_column: str = "right"
    parent_id_column: str = "parent_id"
    root_id: Any = 1
    id_column: str = "id"
    max_depth: int = 256
    lock_parent_rows: bool = True

    @classmethod
    def from_settings(cls, settings: NestedSetSettings | None = None, **overrides: Any) -> NestedSetConfig:
        """Build a config from NESTED_SET_* settings plus explicit overrides."""
        settings = settings or get_nested_set_settings()
        config = cls(
            left_column=settings.left_column,
            right_column=settings.right_column,
            parent_id_column=settings.parent_id_column,
            root_id=settings.root_id,
            id_column=settings.id_column,
            max_depth=settings.max_depth,
            lock_parent_rows=settings.lock_parent_rows,
        )
        return replace(config, **overrides) if overrides else config

    # Attribute accessors against a mapped class

    def id_attr(self, model: type[Any]) -> InstrumentedAttribute[Any]:
        return getattr(model, self.id_column)

    def left_attr(self, model: type[Any]) -> InstrumentedAttribute[Any]:
        return getattr(model, self.left_column)

    def right_attr(self, model: type[Any]) -> InstrumentedAttribute[Any]:
        return getattr(model, self.right_column)

    def parent_attr(self, model: type[Any]) -> InstrumentedAttribute[Any]:
        return getattr(model, self.parent_id_column)

    # Instance accessors

    def id_of(self, node: Any) -> Any:
        return getattr(node, self.id_column)

    def parent_of(self, node: Any) -> Any:
        return getattr(node, self.parent_id_column)

    def interval_of(self, node: Any) -> tuple[int, int]:
        """Return the ``(left, right)`` pair currently held by ``node``."""
        return getattr(node, self.left_column), getattr(node, self.right_column)

    def is_root(self, node: Any) -> bool:
        return self.id_of(node) == self.root_id


def resolve_config(model: type[Any], config: NestedSetConfig | None = None) -> NestedSetConfig:
    """Pick the explicit config, the model's ``__nested_set__``, or settings defaults."""
    if config is not None:
        return config
    declared = getattr(model, "__nested_set__", None)
    if isinstance(declared, NestedSetConfig):
        return declared
    return NestedSetConfig.from_settings()


__all__ = ["NestedSetConfig", "resolve_config"]
