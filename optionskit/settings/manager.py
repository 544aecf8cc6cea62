from __future__ import annotations

import copy
from collections.abc import Mapping
from typing import Any, Dict, List, Optional

from optionskit.errors import NotFound, PersistenceFailed, ValidationFailed
from optionskit.logger import logger
from optionskit.panel import OptionsKit
from optionskit.registry import SANITIZE_SETTINGS, ExtensionRegistry
from optionskit.utils import func_slug

from .options import Schema, get_settings_schema, serialize_sections, serialize_tabs
from .resolver import SchemaResolver, select_active_tab
from .store import OptionStore
from .validators import validate_setting_value


class PanelService:
    """Answers "what is the current schema and state" and "apply these changes".

    One instance per request: the underlying ``OptionStore`` loads each panel
    record once and keeps it for the lifetime of the service.
    """

    def __init__(
        self,
        registry: ExtensionRegistry,
        store: OptionStore,
        panels: Optional[Mapping] = None,
    ) -> None:
        self.registry = registry
        self.store = store
        self.resolver = SchemaResolver(registry)
        self.panels: Dict[str, OptionsKit] = dict(panels or {})

    def get_panel(self, panel_id: Any) -> Optional[OptionsKit]:
        if not isinstance(panel_id, str):
            return None
        panel = self.panels.get(panel_id)
        if panel is not None:
            return panel
        func = func_slug(panel_id)
        for candidate in self.panels.values():
            if candidate.func == func:
                return candidate
        return None

    def require_panel(self, panel_id: Any) -> OptionsKit:
        panel = self.get_panel(panel_id)
        if panel is None:
            raise NotFound(f"Unknown panel '{panel_id}'")
        return panel

    def get_schema(self, panel_id: str) -> Schema:
        return self.resolver.resolve(panel_id)

    def get_values(self, panel_id: str, schema: Optional[Schema] = None) -> Dict[str, Any]:
        schema = schema or self.get_schema(panel_id)
        return schema.resolve_values(self.store.load(panel_id))

    def get_tabs(self, panel_id: str) -> List[Dict[str, Any]]:
        return serialize_tabs(self.get_schema(panel_id))

    def get_tab_sections(self, panel_id: str, tab_id: Any) -> List[Dict[str, Any]]:
        sections = self.get_schema(panel_id).sections_for(tab_id)
        if sections is None:
            raise NotFound(f"Unknown tab '{tab_id}'")
        return serialize_sections(sections)

    def get_bootstrap_payload(self, panel_id: str, requested_tab: Any = None) -> Dict[str, Any]:
        """Everything the renderer needs to draw the panel without another request."""
        panel = self.get_panel(panel_id) or OptionsKit(panel_id, self.registry)
        schema = self.get_schema(panel_id)
        values = self.get_values(panel_id, schema)
        serialized = get_settings_schema(schema, values)
        return {
            "title": panel.page_title,
            "actionButtons": panel.get_action_buttons(),
            "labels": panel.get_labels(),
            "tabs": serialized["tabs"],
            "sections": serialized["sections"],
            "settings": serialized["settings"],
            "activeTab": select_active_tab(schema, requested_tab),
            "values": values,
        }

    def apply_settings(self, panel_id: str, changes: Any) -> Dict[str, Any]:
        """Validate and persist a batch of ``setting id -> value`` changes.

        Unknown ids and invalid values are reported in ``rejected``; everything
        else is written with a single save. The record is read once and written
        whole, so concurrent sessions changing disjoint settings overwrite each
        other (last writer wins).
        """
        self.require_panel(panel_id)
        if not isinstance(changes, Mapping):
            raise ValidationFailed("Settings payload must be an object")

        schema = self.get_schema(panel_id)
        stored = self.store.load(panel_id)
        previous = schema.resolve_values(stored)

        accepted: Dict[str, Any] = {}
        rejected: Dict[str, str] = {}
        for key, value in changes.items():
            setting = schema.settings.get(key) if isinstance(key, str) else None
            if setting is None:
                rejected[str(key)] = "Unknown setting"
                continue
            is_valid, normalised, error = validate_setting_value(setting, value)
            logger.debug(
                f"OptionsKit: validated {panel_id}.{key}, is_valid={is_valid}, "
                f"normalised={normalised!r}, error={error}"
            )
            if not is_valid:
                rejected[key] = error or "Invalid value"
                continue
            accepted[key] = normalised

        if accepted:
            accepted = self._sanitize(panel_id, schema, accepted, rejected)

        if not accepted:
            logger.log(f"OptionsKit: {panel_id} no changes accepted; nothing persisted")
            return {"accepted": [], "rejected": rejected, "values": previous}

        updated = {**stored, **accepted}
        if not self.store.save(panel_id, updated):
            raise PersistenceFailed(f"Failed to persist settings for '{panel_id}'")

        for key, value in accepted.items():
            if previous.get(key) != value:
                self.registry.notify_change(panel_id, key, previous.get(key), copy.deepcopy(value))

        logger.log(
            f"OptionsKit: {panel_id} applied {sorted(accepted)}; rejected {sorted(rejected)}"
        )
        return {
            "accepted": list(accepted),
            "rejected": rejected,
            "values": schema.resolve_values(self.store.load(panel_id)),
        }

    def _sanitize(
        self,
        panel_id: str,
        schema: Schema,
        accepted: Dict[str, Any],
        rejected: Dict[str, str],
    ) -> Dict[str, Any]:
        sanitized = self.registry.collect(SANITIZE_SETTINGS, panel_id, dict(accepted))
        if not isinstance(sanitized, Mapping):
            logger.warn(f"OptionsKit: {panel_id} {SANITIZE_SETTINGS} must return a mapping; ignored")
            return accepted

        result: Dict[str, Any] = {}
        for key, value in sanitized.items():
            if key not in schema.settings:
                logger.warn(f"OptionsKit: {panel_id} sanitize added unknown setting '{key}'; dropped")
                continue
            result[key] = value
        for key in accepted:
            if key not in result:
                rejected[key] = "Rejected by sanitize"
        return result
