"""Per-session anti-forgery tokens.

A nonce is an HMAC over a time tick, an action name and the session id. Ticks
last half of ``NONCE_LIFETIME_SECONDS``; a nonce from the current or previous
tick is accepted, so a token stays valid for between half and one full
lifetime.
"""

from __future__ import annotations

import hashlib
import hmac
import math
import time
from typing import Optional, Union

from optionskit.config import NONCE_ACTION, NONCE_LIFETIME_SECONDS

Secret = Union[str, bytes]


def nonce_tick(now: Optional[float] = None, lifetime: int = NONCE_LIFETIME_SECONDS) -> int:
    current = time.time() if now is None else now
    return int(math.ceil(current / (lifetime / 2)))


def _digest(secret: Secret, tick: int, action: str, session_id: str) -> str:
    key = secret.encode("utf-8") if isinstance(secret, str) else secret
    message = f"{tick}|{action}|{session_id}".encode("utf-8")
    return hmac.new(key, message, hashlib.sha256).hexdigest()[-12:-2]


def create_nonce(
    secret: Secret,
    session_id: str,
    action: str = NONCE_ACTION,
    now: Optional[float] = None,
) -> str:
    return _digest(secret, nonce_tick(now), action, session_id)


def verify_nonce(
    secret: Secret,
    session_id: str,
    nonce: Optional[str],
    action: str = NONCE_ACTION,
    now: Optional[float] = None,
) -> int:
    """Return 1 for a current-tick nonce, 2 for a previous-tick one and 0 if invalid."""
    if not nonce or not session_id:
        return 0
    tick = nonce_tick(now)
    for age, candidate_tick in ((1, tick), (2, tick - 1)):
        expected = _digest(secret, candidate_tick, action, session_id)
        if hmac.compare_digest(expected, str(nonce)):
            return age
    return 0
