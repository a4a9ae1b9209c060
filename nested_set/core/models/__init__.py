"""Mapped models shipped with the package."""

from nested_set.core.models.category import Category

__all__ = ["Category"]
