"""Category tree model."""

from __future__ import annotations

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from nested_set.core.database import Base, IntegerPKMixin, NestedSetMixin, TimestampMixin


class Category(Base, IntegerPKMixin, TimestampMixin, NestedSetMixin):
    """Category stored as a nested-set tree.

    Row ``id == 1`` is the sentinel root created by ``Category.create_root``.
    The interval columns carry plain indexes only; see NestedSetMixin.
    """

    __tablename__ = "categories"

    name: Mapped[str] = mapped_column(String(255), comment="Display name")
    parent_id: Mapped[int | None] = mapped_column(
        index=True,
        default=None,
        comment="Id of the parent category (NULL only for the root)",
    )
    left: Mapped[int] = mapped_column(index=True, comment="Nested-set left bound")
    right: Mapped[int] = mapped_column(index=True, comment="Nested-set right bound")

    def __repr__(self) -> str:
        return f"<Category id={self.id} name={self.name!r} ({self.left}, {self.right})>"
