"""Per-type validation of incoming setting values.

A validator receives the resolved ``Setting`` and the raw value and returns
``(is_valid, normalised_value, error)``. Settings may also carry their own
callable under the ``validate`` key of their definition, which runs after the
type validator.
"""

from __future__ import annotations

import math
import re
import threading
from typing import Any, Callable, Dict, Optional, Tuple

from optionskit.logger import logger

from .options import Setting

ValidationResult = Tuple[bool, Any, Optional[str]]
Validator = Callable[[Setting, Any], ValidationResult]

_TRUE_STRINGS = {"true", "1", "yes", "y", "on"}
_FALSE_STRINGS = {"false", "0", "no", "n", "off", ""}
_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

_VALIDATORS_LOCK = threading.Lock()
_VALIDATORS: Dict[str, Validator] = {}


def _allowed_values(setting: Setting) -> Dict[str, Any]:
    return {str(choice["value"]): choice["value"] for choice in setting.choices}


def validate_boolean(setting: Setting, value: Any) -> ValidationResult:
    if isinstance(value, bool):
        return True, value, None
    if isinstance(value, int) and value in (0, 1):
        return True, bool(value), None
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_STRINGS:
            return True, True, None
        if lowered in _FALSE_STRINGS:
            return True, False, None
    return False, setting.default, "Value must be a boolean"


def validate_choice(setting: Setting, value: Any) -> ValidationResult:
    allowed = _allowed_values(setting)
    if str(value) in allowed:
        return True, allowed[str(value)], None
    logger.warn(
        f"OptionsKit: invalid choice {value!r} for {setting.key}; allowed {sorted(allowed)}"
    )
    return False, setting.default, "Value not in list of allowed options"


def validate_multi_choice(setting: Setting, value: Any) -> ValidationResult:
    if not isinstance(value, (list, tuple)):
        return False, setting.default, "Value must be a list"
    allowed = _allowed_values(setting)
    unknown = [item for item in value if str(item) not in allowed]
    if unknown:
        return False, setting.default, f"Values not in list of allowed options: {unknown}"
    return True, [allowed[str(item)] for item in value], None


def validate_number(setting: Setting, value: Any) -> ValidationResult:
    if isinstance(value, bool):
        return False, setting.default, "Value must be a number"
    number: Any = value
    if isinstance(value, str):
        text = value.strip()
        try:
            number = int(text)
        except ValueError:
            try:
                number = float(text)
            except ValueError:
                return False, setting.default, "Value must be a number"
    if not isinstance(number, (int, float)):
        return False, setting.default, "Value must be a number"
    # NaN and infinities are not representable in JSON.
    if isinstance(number, float) and not math.isfinite(number):
        return False, setting.default, "Value must be a number"

    minimum = setting.metadata.get("min")
    maximum = setting.metadata.get("max")
    if minimum is not None and number < minimum:
        return False, setting.default, f"Value must be at least {minimum}"
    if maximum is not None and number > maximum:
        return False, setting.default, f"Value must be at most {maximum}"
    return True, number, None


def validate_text(setting: Setting, value: Any) -> ValidationResult:
    if value is None:
        return True, "", None
    if isinstance(value, bool) or not isinstance(value, (str, int, float)):
        return False, setting.default, "Value must be a string"
    return True, str(value), None


def validate_email(setting: Setting, value: Any) -> ValidationResult:
    ok, text, error = validate_text(setting, value)
    if not ok:
        return ok, text, error
    text = text.strip()
    if text and not _EMAIL_RE.match(text):
        return False, setting.default, "Value must be an email address"
    return True, text, None


def validate_url(setting: Setting, value: Any) -> ValidationResult:
    ok, text, error = validate_text(setting, value)
    if not ok:
        return ok, text, error
    text = text.strip()
    if text and not (text.startswith("http://") or text.startswith("https://")):
        return False, setting.default, "Value must be an http(s) URL"
    return True, text, None


def register_validator(option_type: str, validator: Validator) -> None:
    """Add or replace the validator used for ``option_type`` settings."""
    with _VALIDATORS_LOCK:
        _VALIDATORS[option_type] = validator


def get_validator(option_type: str) -> Optional[Validator]:
    with _VALIDATORS_LOCK:
        return _VALIDATORS.get(option_type)


def validate_setting_value(setting: Setting, value: Any) -> ValidationResult:
    validator = get_validator(setting.option_type)
    # Fallback: accept any value
    result: ValidationResult = (True, value, None)
    if validator is not None:
        result = validator(setting, value)

    custom = setting.metadata.get("validate")
    if result[0] and callable(custom):
        try:
            result = custom(setting, result[1])
        except Exception as exc:
            logger.warn(f"OptionsKit: custom validator for {setting.key} failed: {exc}")
            return False, setting.default, "Validation error"
    return result


for _type, _validator in (
    ("checkbox", validate_boolean),
    ("toggle", validate_boolean),
    ("select", validate_choice),
    ("radio", validate_choice),
    ("multiselect", validate_multi_choice),
    ("multicheck", validate_multi_choice),
    ("number", validate_number),
    ("text", validate_text),
    ("textarea", validate_text),
    ("password", validate_text),
    ("hidden", validate_text),
    ("email", validate_email),
    ("url", validate_url),
):
    register_validator(_type, _validator)
