from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Dict, List, Optional

from optionskit.logger import logger
from optionskit.registry import (
    SETTINGS,
    SETTINGS_SECTIONS,
    SETTINGS_TABS,
    ExtensionRegistry,
)

from .options import Schema, Section, Setting, Tab, label_of, setting_from_definition


class SchemaResolver:
    """Merge tab, section and setting contributions into one ordered ``Schema``.

    Contributions are collected on every call; nothing is cached, so two calls
    with no registration in between return equal schemas.
    """

    def __init__(self, registry: ExtensionRegistry) -> None:
        self.registry = registry

    def _collect_mapping(self, point: str, panel_id: str) -> Dict[Any, Any]:
        value = self.registry.collect(point, panel_id, {})
        if isinstance(value, Mapping):
            return dict(value)
        logger.warn(
            f"OptionsKit: {panel_id} {point} resolved to {type(value).__name__}; expected a mapping"
        )
        return {}

    def get_settings_tabs(self, panel_id: str) -> Dict[Any, Any]:
        return self._collect_mapping(SETTINGS_TABS, panel_id)

    def get_registered_settings_sections(self, panel_id: str) -> Dict[Any, Any]:
        return self._collect_mapping(SETTINGS_SECTIONS, panel_id)

    def get_registered_settings(self, panel_id: str) -> Dict[Any, Any]:
        return self._collect_mapping(SETTINGS, panel_id)

    def resolve(self, panel_id: str) -> Schema:
        raw_tabs = self.get_settings_tabs(panel_id)
        raw_sections = self.get_registered_settings_sections(panel_id)
        raw_settings = self.get_registered_settings(panel_id)

        settings: Dict[str, Setting] = {}
        for key, definition in raw_settings.items():
            setting = setting_from_definition(key, definition)
            if setting is not None:
                settings[setting.key] = setting

        tab_ids = {str(key) for key in raw_tabs}
        for orphan in (str(key) for key in raw_sections if str(key) not in tab_ids):
            logger.log(f"OptionsKit: {panel_id} sections for unknown tab '{orphan}' dropped")

        tabs: Dict[str, Tab] = {}
        for key, definition in raw_tabs.items():
            tab_id = str(key)
            declared = raw_sections.get(key, raw_sections.get(tab_id))
            if declared is not None and not isinstance(declared, Mapping):
                logger.warn(f"OptionsKit: {panel_id} sections for tab '{tab_id}' must be a mapping")
                declared = None
            sections: List[Section] = [
                Section(
                    key=str(section_id),
                    label=label_of(section_definition),
                    settings=_settings_for(settings, tab_id, str(section_id)),
                )
                for section_id, section_definition in (declared or {}).items()
            ]
            tabs[tab_id] = Tab(key=tab_id, label=label_of(definition), sections=sections)

        return Schema(panel_id=panel_id, tabs=tabs, settings=settings)


def _settings_for(settings: Dict[str, Setting], tab_id: str, section_id: str) -> List[Setting]:
    return [
        setting
        for setting in settings.values()
        if setting.section == section_id and (not setting.tab or setting.tab == tab_id)
    ]


def get_default_tab(schema: Schema) -> str:
    """The default tab is the first declared one, or ``""`` when there are none."""
    return next(iter(schema.tabs), "")


def select_active_tab(schema: Schema, requested: Optional[Any] = None) -> str:
    if isinstance(requested, str) and requested in schema.tabs:
        return requested
    return get_default_tab(schema)
