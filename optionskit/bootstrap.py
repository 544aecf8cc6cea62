"""Inline injection of the bootstrap payload into the first page load."""

from __future__ import annotations

import re
from typing import Any, Dict

from jinja2.utils import htmlsafe_json_dumps
from markupsafe import Markup

from optionskit.config import BOOTSTRAP_GLOBAL_NAME

_JS_IDENTIFIER = re.compile(r"^[A-Za-z_$][0-9A-Za-z_$]*$")


def build_client_settings(payload: Dict[str, Any], rest_url: str, nonce: str) -> Dict[str, Any]:
    """Add what the renderer needs to call back into the API."""
    return {**payload, "restUrl": rest_url, "nonce": nonce}


def render_bootstrap_script(settings: Dict[str, Any], global_name: str = BOOTSTRAP_GLOBAL_NAME) -> Markup:
    if not _JS_IDENTIFIER.match(global_name):
        raise ValueError(f"Invalid JavaScript identifier: {global_name!r}")
    return Markup(f"<script>var {global_name} = {htmlsafe_json_dumps(settings)};</script>")
