"""The options panel declared by a host application."""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional

from optionskit.config import BODY_CLASS, DEFAULT_LABELS, DEFAULT_MENU, PAGE_SLUG_SUFFIX
from optionskit.logger import logger
from optionskit.registry import LABELS, MENU, ExtensionRegistry
from optionskit.utils import func_slug


@dataclass(frozen=True)
class ActionButton:
    title: str = ""
    url: str = ""

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)


class OptionsKit:
    """A settings panel identified by its slug.

    Labels and menu placement are collected from the registry each time they
    are read, so collaborators registering late are still honoured.
    """

    def __init__(self, slug: str, registry: ExtensionRegistry, page_title: str = "") -> None:
        self.slug = str(slug or "")
        self.func = func_slug(self.slug)
        self.registry = registry
        self.page_title = page_title
        self.action_buttons: List[ActionButton] = []

    def set_page_title(self, page_title: str = "") -> None:
        self.page_title = page_title

    def add_action_button(self, args: Optional[Mapping] = None, **kwargs: Any) -> ActionButton:
        """Add a header button; missing ``title``/``url`` default to empty strings."""
        merged = {**dict(args or {}), **kwargs}
        button = ActionButton(
            title=str(merged.get("title") or ""),
            url=str(merged.get("url") or ""),
        )
        self.action_buttons.append(button)
        return button

    def _collect_with_defaults(self, point: str, defaults: Dict[str, Any]) -> Dict[str, Any]:
        value = self.registry.collect(point, self.slug, dict(defaults))
        if not isinstance(value, Mapping):
            logger.warn(f"OptionsKit: {self.slug} {point} must resolve to a mapping; using defaults")
            return dict(defaults)
        return {**defaults, **value}

    def get_labels(self) -> Dict[str, str]:
        return self._collect_with_defaults(LABELS, DEFAULT_LABELS)

    def get_menu(self) -> Dict[str, Any]:
        return self._collect_with_defaults(MENU, DEFAULT_MENU)

    @property
    def capability(self) -> str:
        return str(self.get_menu().get("capability") or DEFAULT_MENU["capability"])

    @property
    def page_slug(self) -> str:
        return f"{self.slug}{PAGE_SLUG_SUFFIX}"

    def is_options_page(self, screen_base: Optional[str]) -> bool:
        """Whether the admin screen ``screen_base`` is this panel's page."""
        return bool(re.search(re.escape(self.page_slug), str(screen_base or "")))

    def admin_body_class(self, classes: str, screen_base: Optional[str]) -> str:
        if not self.is_options_page(screen_base):
            return classes
        return f"{classes} {BODY_CLASS}".strip()

    def get_action_buttons(self) -> List[Dict[str, str]]:
        return [button.to_dict() for button in self.action_buttons]
