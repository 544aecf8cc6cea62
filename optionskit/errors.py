"""Error taxonomy shared by the service layer and the HTTP gateway."""

from __future__ import annotations

from typing import Any, Dict


class OptionsKitError(Exception):
    kind = "Error"
    status = 500

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.kind)
        self.message = message or self.kind

    def to_dict(self) -> Dict[str, Any]:
        return {"success": False, "error": {"kind": self.kind, "message": self.message}}


class NotFound(OptionsKitError):
    """Unknown panel or tab."""

    kind = "NotFound"
    status = 404


class Unauthorized(OptionsKitError):
    """Missing capability or anti-forgery token."""

    kind = "Unauthorized"
    status = 401


class ValidationFailed(OptionsKitError):
    """Malformed request payload. Per-setting failures are reported in ``rejected`` instead."""

    kind = "ValidationFailed"
    status = 400


class PersistenceFailed(OptionsKitError):
    """The option store refused the write; nothing was persisted."""

    kind = "PersistenceFailed"
    status = 500
