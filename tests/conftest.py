"""Shared fixtures: a fresh registry, an in-memory backend and a declared demo panel."""

import pytest

from optionskit.api import create_app
from optionskit.panel import OptionsKit
from optionskit.registry import (
    SETTINGS,
    SETTINGS_SECTIONS,
    SETTINGS_TABS,
    ExtensionRegistry,
)
from optionskit.settings.manager import PanelService
from optionskit.settings.store import MemoryBackend, OptionStore, PublishedOptions

PANEL = "demo-panel"


class RecordingBackend(MemoryBackend):
    """MemoryBackend that remembers every write."""

    def __init__(self, initial=None):
        super().__init__(initial)
        self.writes = []

    def set(self, key, value):
        self.writes.append((key, value))
        return super().set(key, value)


class FailingBackend(MemoryBackend):
    def set(self, key, value):
        return False


def declare_demo_panel(registry, panel_id=PANEL):
    """Two tabs, three sections, four settings."""
    registry.add(SETTINGS_TABS, panel_id, lambda tabs: {
        **tabs,
        "general": "General",
        "advanced": "Advanced",
    })
    registry.add(SETTINGS_SECTIONS, panel_id, lambda sections: {
        **sections,
        "general": {"main": "Main", "display": {"title": "Display"}},
        "advanced": {"main": "Expert"},
    })
    registry.add(SETTINGS, panel_id, lambda settings: {
        **settings,
        "site_name": {"type": "text", "name": "Site name", "section": "main", "tab": "general", "default": "My site"},
        "enabled": {"type": "checkbox", "name": "Enabled", "section": "main", "tab": "general"},
        "layout": {
            "type": "select",
            "name": "Layout",
            "section": "display",
            "options": {"grid": "Grid", "list": "List"},
            "default": "grid",
        },
        "retries": {"type": "number", "name": "Retries", "section": "main", "tab": "advanced", "min": 0, "max": 10, "default": 3},
    })


@pytest.fixture
def registry():
    return ExtensionRegistry()


@pytest.fixture
def backend():
    return RecordingBackend()


@pytest.fixture
def published():
    return PublishedOptions()


@pytest.fixture
def panel(registry):
    kit = OptionsKit(PANEL, registry, page_title="Demo Settings")
    declare_demo_panel(registry)
    return kit


@pytest.fixture
def make_service(registry, backend, published, panel):
    """Build a PanelService the way a request would: fresh OptionStore each time."""

    def factory(store_backend=None):
        store = OptionStore(store_backend or backend, published)
        return PanelService(registry, store, {panel.slug: panel})

    return factory


@pytest.fixture
def service(make_service):
    return make_service()


@pytest.fixture
def capability():
    """Mutable capability decision plus the capabilities that were checked."""
    return {"allowed": True, "checked": []}


@pytest.fixture
def app(panel, registry, backend, published, capability):
    def check(cap, checked_panel):
        capability["checked"].append(cap)
        return capability["allowed"]

    flask_app = create_app(
        [panel],
        registry=registry,
        backend=backend,
        capability_check=check,
        published=published,
        config={"SECRET_KEY": "test-secret", "TESTING": True},
    )
    return flask_app


@pytest.fixture
def client(app):
    return app.test_client()
