from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from optionskit.logger import logger

DEFAULT_OPTION_TYPE = "text"

# Fallback defaults for settings declared without one.
TYPE_DEFAULTS: Dict[str, Any] = {
    "checkbox": False,
    "toggle": False,
    "multiselect": [],
    "multicheck": [],
}

_LABEL_KEYS = ("title", "name", "label")
_DESCRIPTION_KEYS = ("desc", "description")
_DEFAULT_KEYS = ("default", "std")
_CHOICE_KEYS = ("choices", "options")
_RESERVED_KEYS = frozenset(
    ("id", "type", "section", "tab")
    + _LABEL_KEYS
    + _DESCRIPTION_KEYS
    + _DEFAULT_KEYS
    + _CHOICE_KEYS
)


@dataclass(frozen=True)
class Setting:
    key: str
    option_type: str
    label: str = ""
    default: Any = None
    description: str = ""
    choices: List[Dict[str, Any]] = field(default_factory=list)
    section: str = ""
    tab: str = ""
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Section:
    key: str
    label: str
    settings: List[Setting] = field(default_factory=list)


@dataclass(frozen=True)
class Tab:
    key: str
    label: str
    sections: List[Section] = field(default_factory=list)


@dataclass(frozen=True)
class Schema:
    """Resolved tabs (in declaration order) and the flat setting namespace of a panel."""

    panel_id: str
    tabs: Dict[str, Tab] = field(default_factory=dict)
    settings: Dict[str, Setting] = field(default_factory=dict)

    def sections_for(self, tab_id: Any) -> Optional[List[Section]]:
        if not isinstance(tab_id, str):
            return None
        tab = self.tabs.get(tab_id)
        return list(tab.sections) if tab is not None else None

    def defaults(self) -> Dict[str, Any]:
        return {key: setting.default for key, setting in self.settings.items()}

    def resolve_values(self, stored: Optional[Mapping]) -> Dict[str, Any]:
        """Current value of every known setting: stored value, else its default."""
        stored = stored if isinstance(stored, Mapping) else {}
        return {
            key: stored[key] if key in stored else setting.default
            for key, setting in self.settings.items()
        }


def _first(definition: Mapping, keys: tuple, default: Any = None) -> Any:
    for key in keys:
        if key in definition:
            return definition[key]
    return default


def normalise_choices(raw: Any) -> List[Dict[str, Any]]:
    """Accept ``{value: label}``, ``[{"value", "label"}]`` or a list of scalars."""
    if isinstance(raw, Mapping):
        return [{"value": value, "label": str(label)} for value, label in raw.items()]
    if not isinstance(raw, (list, tuple)):
        return []
    choices: List[Dict[str, Any]] = []
    for item in raw:
        if isinstance(item, Mapping):
            if item.get("value") is None:
                continue
            choices.append({"value": item["value"], "label": str(item.get("label", item["value"]))})
        else:
            choices.append({"value": item, "label": str(item)})
    return choices


def setting_from_definition(key: Any, definition: Any) -> Optional[Setting]:
    if not isinstance(definition, Mapping):
        logger.warn(f"OptionsKit: ignoring setting {key!r}; definition must be a mapping")
        return None
    option_type = str(definition.get("type") or DEFAULT_OPTION_TYPE)
    default = _first(definition, _DEFAULT_KEYS)
    if default is None:
        default = TYPE_DEFAULTS.get(option_type)
        if isinstance(default, list):
            default = list(default)
    return Setting(
        key=str(key),
        option_type=option_type,
        label=str(_first(definition, _LABEL_KEYS, "") or ""),
        default=default,
        description=str(_first(definition, _DESCRIPTION_KEYS, "") or ""),
        choices=normalise_choices(_first(definition, _CHOICE_KEYS)),
        section=str(definition.get("section") or ""),
        tab=str(definition.get("tab") or ""),
        metadata={k: v for k, v in definition.items() if k not in _RESERVED_KEYS},
    )


def label_of(definition: Any) -> str:
    if isinstance(definition, Mapping):
        return str(_first(definition, _LABEL_KEYS, "") or "")
    return str(definition or "")


def serialize_setting(setting: Setting, value: Any) -> Dict[str, Any]:
    return {
        "id": setting.key,
        "type": setting.option_type,
        "title": setting.label,
        "description": setting.description,
        "default": setting.default,
        "value": value,
        "choices": setting.choices,
        "section": setting.section,
        "tab": setting.tab,
        "metadata": {k: v for k, v in setting.metadata.items() if not callable(v)},
    }


def serialize_tabs(schema: Schema) -> List[Dict[str, Any]]:
    return [{"id": tab.key, "title": tab.label} for tab in schema.tabs.values()]


def serialize_sections(sections: List[Section]) -> List[Dict[str, Any]]:
    return [{"id": section.key, "title": section.label} for section in sections]


def get_settings_schema(schema: Schema, values: Mapping) -> Dict[str, Any]:
    """Return a serialisable representation of the resolved schema."""
    return {
        "tabs": serialize_tabs(schema),
        "sections": {
            tab.key: [
                {
                    "id": section.key,
                    "title": section.label,
                    "settings": [setting.key for setting in section.settings],
                }
                for section in tab.sections
            ]
            for tab in schema.tabs.values()
        },
        "settings": [
            serialize_setting(setting, values.get(key, setting.default))
            for key, setting in schema.settings.items()
        ],
    }
