"""Declare settings panels, resolve their schema and serve them to a browser renderer."""

from optionskit import http_client
from optionskit.api import create_app, create_blueprint
from optionskit.bootstrap import render_bootstrap_script
from optionskit.errors import (
    NotFound,
    OptionsKitError,
    PersistenceFailed,
    Unauthorized,
    ValidationFailed,
)
from optionskit.panel import ActionButton, OptionsKit
from optionskit.registry import ExtensionRegistry
from optionskit.settings import (
    JsonFileBackend,
    MemoryBackend,
    OptionStore,
    PanelService,
    SchemaResolver,
    SqliteBackend,
    get_published_options,
    select_active_tab,
)

__version__ = "1.0.0"

__all__ = [
    "ActionButton",
    "ExtensionRegistry",
    "JsonFileBackend",
    "MemoryBackend",
    "NotFound",
    "OptionStore",
    "OptionsKit",
    "OptionsKitError",
    "PanelService",
    "PersistenceFailed",
    "SchemaResolver",
    "SqliteBackend",
    "Unauthorized",
    "ValidationFailed",
    "create_app",
    "create_blueprint",
    "get_published_options",
    "http_client",
    "render_bootstrap_script",
    "select_active_tab",
]
