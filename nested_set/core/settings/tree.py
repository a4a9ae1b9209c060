"""Nested-set tree settings.

Defaults for every model that uses the nested-set mixin. A model can still
override any of these through its own ``__nested_set__`` configuration.
"""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class NestedSetSettings(BaseSettings):
    """Column mapping and behaviour defaults for nested-set trees.

    Environment variables use NESTED_SET_ prefix.
    Example: NESTED_SET_ROOT_ID=1, NESTED_SET_LEFT_COLUMN=lft
    """

    left_column: str = Field(default="left", min_length=1, description="Mapped attribute holding the left bound")
    right_column: str = Field(default="right", min_length=1, description="Mapped attribute holding the right bound")
    parent_id_column: str = Field(
        default="parent_id", min_length=1, description="Mapped attribute holding the parent's id"
    )
    id_column: str = Field(default="id", min_length=1, description="Mapped primary key attribute")
    root_id: int = Field(default=1, description="Primary key of the sentinel root node")

    max_depth: int = Field(
        default=256,
        ge=1,
        le=900,
        description="Recursion cap when building nested trees from flat rows",
    )
    lock_parent_rows: bool = Field(
        default=True,
        description="Read parent rows with SELECT ... FOR UPDATE before renumbering",
    )

    model_config = SettingsConfigDict(
        env_prefix="NESTED_SET_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        frozen=True,
        extra="ignore",
        env_ignore_empty=True,
    )
