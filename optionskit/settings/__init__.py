"""Settings package exposing schema resolution, validation and persistence helpers."""

from .manager import PanelService
from .options import (
    Schema,
    Section,
    Setting,
    Tab,
    get_settings_schema,
)
from .resolver import SchemaResolver, get_default_tab, select_active_tab
from .store import (
    JsonFileBackend,
    MemoryBackend,
    OptionStore,
    PublishedOptions,
    SqliteBackend,
    get_published_options,
)
from .validators import register_validator, validate_setting_value

__all__ = [
    "JsonFileBackend",
    "MemoryBackend",
    "OptionStore",
    "PanelService",
    "PublishedOptions",
    "Schema",
    "SchemaResolver",
    "Section",
    "Setting",
    "SqliteBackend",
    "Tab",
    "get_default_tab",
    "get_published_options",
    "get_settings_schema",
    "register_validator",
    "select_active_tab",
    "validate_setting_value",
]
