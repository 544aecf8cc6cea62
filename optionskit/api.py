"""HTTP gateway exposing panels to the browser-side renderer.

Routes (below ``API_NAMESPACE``)::

    GET  /<panel>/tabs
    GET  /<panel>/sections?tab=<id>
    GET  /<panel>/settings
    POST /<panel>/settings

Every route requires the host's capability check to pass for the panel's
capability. POST additionally requires the session's anti-forgery token in the
``X-OptionsKit-Nonce`` header. Failed checks answer 401 before any panel state
is read or written.
"""

from __future__ import annotations

import secrets
from collections.abc import Mapping
from typing import Any, Callable, Dict, Iterable, Optional

from flask import Blueprint, Flask, current_app, g, jsonify, request, session
from markupsafe import Markup

from optionskit.auth import create_nonce, verify_nonce
from optionskit.bootstrap import build_client_settings, render_bootstrap_script
from optionskit.config import API_NAMESPACE, DEFAULT_MENU, NONCE_HEADER, SESSION_ID_KEY
from optionskit.errors import NotFound, OptionsKitError, Unauthorized, ValidationFailed
from optionskit.logger import logger
from optionskit.panel import OptionsKit
from optionskit.registry import ExtensionRegistry
from optionskit.settings.manager import PanelService
from optionskit.settings.store import MemoryBackend, OptionStore, PublishedOptions

CapabilityCheck = Callable[[str, Optional[OptionsKit]], bool]


def deny_all(capability: str, panel: Optional[OptionsKit]) -> bool:
    logger.warn(f"OptionsKit: no capability check configured; denying '{capability}'")
    return False


def current_session_id() -> str:
    """Return the id of the current browser session, creating one if needed."""
    session_id = session.get(SESSION_ID_KEY)
    if not session_id:
        session_id = secrets.token_hex(16)
        session[SESSION_ID_KEY] = session_id
    return session_id


def current_nonce() -> str:
    return create_nonce(current_app.secret_key, current_session_id())


def _error_response(exc: OptionsKitError):
    if exc.status >= 500:
        logger.error(f"OptionsKit: {request.method} {request.path} failed: {exc.message}")
    else:
        logger.warn(f"OptionsKit: {request.method} {request.path} -> {exc.kind}: {exc.message}")
    return jsonify(exc.to_dict()), exc.status


def _extract_changes(payload: Any) -> Dict[str, Any]:
    if not isinstance(payload, Mapping):
        raise ValidationFailed("Invalid payload format")
    return dict(payload)


def create_blueprint(
    registry: ExtensionRegistry,
    backend: Any,
    panels: Mapping,
    capability_check: CapabilityCheck = deny_all,
    published: Optional[PublishedOptions] = None,
    name: str = "optionskit",
    url_prefix: str = API_NAMESPACE,
) -> Blueprint:
    bp = Blueprint(name, __name__, url_prefix=url_prefix)
    bp.register_error_handler(OptionsKitError, _error_response)

    service_attr = f"{name}_service"

    def service() -> PanelService:
        current = g.get(service_attr)
        if current is None:
            current = PanelService(registry, OptionStore(backend, published), panels)
            setattr(g, service_attr, current)
        return current

    def authorize(panel_id: str, mutating: bool = False) -> OptionsKit:
        panel = service().get_panel(panel_id)
        capability = panel.capability if panel is not None else DEFAULT_MENU["capability"]
        if not capability_check(capability, panel):
            raise Unauthorized(f"Missing capability '{capability}'")
        if panel is None:
            raise NotFound(f"Unknown panel '{panel_id}'")
        if mutating:
            token = request.headers.get(NONCE_HEADER, "")
            if not verify_nonce(current_app.secret_key, current_session_id(), token):
                raise Unauthorized("Invalid or missing anti-forgery token")
        return panel

    @bp.get("/<panel_id>/tabs")
    def get_tabs(panel_id: str):
        authorize(panel_id)
        return jsonify(service().get_tabs(panel_id))

    @bp.get("/<panel_id>/sections")
    def get_sections(panel_id: str):
        authorize(panel_id)
        return jsonify(service().get_tab_sections(panel_id, request.args.get("tab")))

    @bp.get("/<panel_id>/settings")
    def get_settings(panel_id: str):
        authorize(panel_id)
        payload = service().get_bootstrap_payload(panel_id, request.args.get("tab"))
        return jsonify(build_client_settings(payload, _rest_url(url_prefix), current_nonce()))

    @bp.post("/<panel_id>/settings")
    def post_settings(panel_id: str):
        authorize(panel_id, mutating=True)
        changes = _extract_changes(request.get_json(silent=True))
        logger.log(f"OptionsKit: {panel_id} apply request for {sorted(changes)}")
        return jsonify(service().apply_settings(panel_id, changes))

    @bp.app_context_processor
    def inject_bootstrap():
        def optionskit_bootstrap(panel_id: str, tab: Optional[str] = None) -> Markup:
            payload = service().get_bootstrap_payload(panel_id, tab or request.args.get("tab"))
            settings = build_client_settings(payload, _rest_url(url_prefix), current_nonce())
            return render_bootstrap_script(settings)

        return {"optionskit_bootstrap": optionskit_bootstrap}

    return bp


def _rest_url(url_prefix: str) -> str:
    return f"{request.url_root.rstrip('/')}{url_prefix}/"


def create_app(
    panels: Iterable[OptionsKit],
    registry: Optional[ExtensionRegistry] = None,
    backend: Any = None,
    capability_check: CapabilityCheck = deny_all,
    published: Optional[PublishedOptions] = None,
    config: Optional[Mapping] = None,
) -> Flask:
    """Build a Flask app serving ``panels``; config also reads ``OPTIONSKIT_*`` env vars."""
    panel_list = list(panels)
    if registry is None:
        registry = panel_list[0].registry if panel_list else ExtensionRegistry()
    if backend is None:
        backend = MemoryBackend()

    app = Flask(__name__)
    # Declaration order is display order; keep mapping keys unsorted.
    app.json.sort_keys = False
    app.config.from_prefixed_env("OPTIONSKIT")
    if config:
        app.config.update(dict(config))
    if not app.secret_key:
        logger.warn("OptionsKit: no SECRET_KEY configured; generated an ephemeral one")
        app.secret_key = secrets.token_hex(32)

    panel_map = {panel.slug: panel for panel in panel_list}
    app.register_blueprint(
        create_blueprint(registry, backend, panel_map, capability_check, published)
    )
    logger.log(f"OptionsKit: serving panels {sorted(panel_map)} under {API_NAMESPACE}")
    return app
