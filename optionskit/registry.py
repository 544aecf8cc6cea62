"""Extension points through which collaborators contribute panel configuration.

A contribution is a plain transform ``accumulator -> accumulator`` registered
for an extension point of a given panel. Collection threads a default value
through every transform in registration order (lower priority first) and
returns the final accumulator. Nothing here ever raises: a missing or broken
contribution degrades to the value accumulated so far.
"""

from __future__ import annotations

import itertools
import threading
from collections.abc import Mapping
from typing import Any, Callable, Dict, List, Tuple

from optionskit.config import DEFAULT_PRIORITY
from optionskit.logger import logger
from optionskit.utils import func_slug

LABELS = "labels"
MENU = "menu"
SETTINGS_TABS = "settings_tabs"
SETTINGS_SECTIONS = "registered_settings_sections"
SETTINGS = "registered_settings"
SANITIZE_SETTINGS = "sanitize_settings"

EXTENSION_POINTS = (
    LABELS,
    MENU,
    SETTINGS_TABS,
    SETTINGS_SECTIONS,
    SETTINGS,
    SANITIZE_SETTINGS,
)

Transform = Callable[[Any], Any]
ChangeHook = Callable[[Any, Any], None]


def hook_name(point: str, panel_id: str) -> str:
    """Return the hook name for ``point`` on a panel, e.g. ``my_panel_settings_tabs``."""
    return f"{func_slug(panel_id)}_{point}"


def _describe(transform: Transform) -> str:
    return getattr(transform, "__qualname__", None) or repr(transform)


def _copy_containers(value: Any) -> Any:
    """Copy nested mappings and lists; leaf values (callables included) are shared."""
    if isinstance(value, Mapping):
        return {key: _copy_containers(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_copy_containers(item) for item in value]
    return value


def _overridden_keys(before: Any, after: Any, prefix: str = "") -> List[str]:
    if not isinstance(before, Mapping) or not isinstance(after, Mapping):
        return []
    keys: List[str] = []
    for key, old in before.items():
        if key not in after:
            continue
        new = after[key]
        if isinstance(old, Mapping) and isinstance(new, Mapping):
            keys.extend(_overridden_keys(old, new, f"{prefix}{key}."))
        elif old != new:
            keys.append(f"{prefix}{key}")
    return keys


class ExtensionRegistry:
    """Ordered transforms per hook, plus change hooks fired after saves."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._order = itertools.count()
        self._filters: Dict[str, List[Tuple[int, int, Transform]]] = {}
        self._change_hooks: Dict[Tuple[str, str], List[ChangeHook]] = {}

    def add(
        self,
        point: str,
        panel_id: str,
        transform: Transform,
        priority: int = DEFAULT_PRIORITY,
    ) -> None:
        name = hook_name(point, panel_id)
        with self._lock:
            self._filters.setdefault(name, []).append((priority, next(self._order), transform))
        logger.debug(f"OptionsKit: registered {_describe(transform)} on {name} (priority={priority})")

    def remove(self, point: str, panel_id: str, transform: Transform) -> bool:
        name = hook_name(point, panel_id)
        with self._lock:
            entries = self._filters.get(name, [])
            kept = [entry for entry in entries if entry[2] is not transform]
            if len(kept) == len(entries):
                return False
            self._filters[name] = kept
        return True

    def has(self, point: str, panel_id: str) -> bool:
        with self._lock:
            return bool(self._filters.get(hook_name(point, panel_id)))

    def collect(self, point: str, panel_id: str, default: Any) -> Any:
        name = hook_name(point, panel_id)
        with self._lock:
            entries = sorted(self._filters.get(name, []), key=lambda entry: entry[:2])

        value = default
        for _priority, _order, transform in entries:
            try:
                result = transform(_copy_containers(value))
            except Exception as exc:
                logger.warn(f"OptionsKit: {name} contribution {_describe(transform)} failed: {exc}")
                continue
            if result is None:
                logger.warn(
                    f"OptionsKit: {name} contribution {_describe(transform)} returned nothing; ignored"
                )
                continue
            overridden = _overridden_keys(value, result)
            if overridden:
                logger.warn(
                    f"OptionsKit: {name} contribution {_describe(transform)} overrides {overridden}"
                )
            value = result
        return value

    def register_change_hook(self, panel_id: str, setting_id: str, callback: ChangeHook) -> None:
        """Register a callback invoked when a particular setting changes."""
        with self._lock:
            hooks = self._change_hooks.setdefault((func_slug(panel_id), setting_id), [])
            hooks.append(callback)

    def notify_change(self, panel_id: str, setting_id: str, previous: Any, current: Any) -> None:
        with self._lock:
            hooks = list(self._change_hooks.get((func_slug(panel_id), setting_id), []))
        for callback in hooks:
            try:
                callback(previous, current)
            except Exception as exc:
                logger.warn(f"OptionsKit: change hook failed for {panel_id}.{setting_id}: {exc}")
