"""Shared HTTP client for talking to an OptionsKit API from Python tooling."""

from typing import Any, Dict, List, Optional

import httpx  # type: ignore

from optionskit.config import API_NAMESPACE, HTTP_TIMEOUT_SECONDS, NONCE_HEADER
from optionskit.errors import (
    NotFound,
    OptionsKitError,
    PersistenceFailed,
    Unauthorized,
    ValidationFailed,
)
from optionskit.logger import logger

_HTTP_CLIENT: Optional[httpx.Client] = None

ERROR_KINDS = {
    cls.kind: cls for cls in (NotFound, Unauthorized, ValidationFailed, PersistenceFailed)
}


def ensure_http_client(
    base_url: str = "",
    context: str = "",
    transport: Optional[httpx.BaseTransport] = None,
) -> httpx.Client:
    """Create the shared HTTP client if needed and return it."""
    global _HTTP_CLIENT
    if _HTTP_CLIENT is None:
        prefix = f"{context}: " if context else ""
        logger.log(f"{prefix}Initializing shared HTTPX client for {base_url or '<no base url>'}...")
        try:
            _HTTP_CLIENT = httpx.Client(
                base_url=base_url,
                timeout=HTTP_TIMEOUT_SECONDS,
                transport=transport,
                headers={"Accept": "application/json"},
            )
            logger.log(f"{prefix}HTTPX client initialized")
        except Exception as exc:
            logger.error(f"{prefix}Failed to initialize HTTPX client: {exc}")
            raise
    elif base_url and str(_HTTP_CLIENT.base_url).rstrip("/") != base_url.rstrip("/"):
        logger.warn(
            f"OptionsKit: shared HTTPX client is bound to {_HTTP_CLIENT.base_url}; "
            f"ignoring {base_url} (close the client first to switch)"
        )
    return _HTTP_CLIENT


def get_http_client() -> httpx.Client:
    """Return the shared HTTP client, creating it if necessary."""
    return ensure_http_client()


def close_http_client(context: str = "") -> None:
    """Close and dispose of the shared HTTP client."""
    global _HTTP_CLIENT
    if _HTTP_CLIENT is None:
        return

    try:
        _HTTP_CLIENT.close()
    except Exception as exc:
        logger.warn(f"OptionsKit: closing HTTPX client failed: {exc}")
    finally:
        _HTTP_CLIENT = None
        prefix = f"{context}: " if context else ""
        logger.log(f"{prefix}HTTPX client closed")


def _panel_url(panel_id: str, resource: str) -> str:
    return f"{API_NAMESPACE}/{panel_id}/{resource}"


def _decode(response: httpx.Response) -> Any:
    if response.is_error:
        try:
            error = response.json().get("error") or {}
        except ValueError:
            error = {}
        kind = error.get("kind") if isinstance(error, dict) else None
        message = error.get("message") if isinstance(error, dict) else None
        raise ERROR_KINDS.get(kind, OptionsKitError)(message or f"HTTP {response.status_code}")
    return response.json()


def fetch_tabs(panel_id: str, client: Optional[httpx.Client] = None) -> List[Dict[str, Any]]:
    client = client or get_http_client()
    return _decode(client.get(_panel_url(panel_id, "tabs")))


def fetch_sections(panel_id: str, tab: str, client: Optional[httpx.Client] = None) -> List[Dict[str, Any]]:
    client = client or get_http_client()
    return _decode(client.get(_panel_url(panel_id, "sections"), params={"tab": tab}))


def fetch_settings(panel_id: str, tab: Optional[str] = None, client: Optional[httpx.Client] = None) -> Dict[str, Any]:
    client = client or get_http_client()
    params = {"tab": tab} if tab else None
    return _decode(client.get(_panel_url(panel_id, "settings"), params=params))


def push_settings(
    panel_id: str,
    changes: Dict[str, Any],
    nonce: str,
    client: Optional[httpx.Client] = None,
) -> Dict[str, Any]:
    client = client or get_http_client()
    response = client.post(
        _panel_url(panel_id, "settings"),
        json=changes,
        headers={NONCE_HEADER: nonce},
    )
    return _decode(response)
