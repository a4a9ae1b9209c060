"""Pydantic Settings v2 configuration.

Settings are split by domain (database, logging, nested-set defaults) and
read from environment variables and an optional .env file.

Import settings via cached loaders:
    from nested_set.core.settings import get_nested_set_settings

Configuration precedence (highest to lowest):
    1. init kwargs (testing/overrides)
    2. Environment variables
    3. .env file
    4. secrets_dir
"""

from __future__ import annotations

from .database import DatabaseSettings
from .loader import (
    clear_settings_cache,
    get_db_settings,
    get_logging_settings,
    get_nested_set_settings,
)
from .logs import LoggingSettings
from .tree import NestedSetSettings

__all__ = [
    "DatabaseSettings",
    "LoggingSettings",
    "NestedSetSettings",
    "clear_settings_cache",
    "get_db_settings",
    "get_logging_settings",
    "get_nested_set_settings",
]
