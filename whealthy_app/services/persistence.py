"""Scenario JSON import/export.

Persisted scenarios use camelCase keys. A payload may omit fields; they are
filled from the base scenario (nested records merged key by key, ``oneOffs``
replaced as a whole). Out-of-range values are rejected, never coerced.
"""

import json
from typing import Any, Dict, Optional

from pydantic import ValidationError

from whealthy_app.schemas import ScenarioParams


class ScenarioImportError(ValueError):
    """A scenario payload that cannot be used. ``field`` is the dotted camelCase path, if known."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(f"{field}: {message}" if field else message)
        self.message = message
        self.field = field


DEFAULT_SCENARIO = ScenarioParams()

# Replaced whole on merge, never merged element-wise
_REPLACED_KEYS = {"oneOffs", "taxResidences"}


def _merge(base: Dict[str, Any], patch: Dict[str, Any]) -> Dict[str, Any]:
    out = dict(base)
    for key, value in patch.items():
        if key not in _REPLACED_KEYS and isinstance(value, dict) and isinstance(out.get(key), dict):
            out[key] = _merge(out[key], value)
        else:
            out[key] = value
    return out


def _camel_keys(patch: Dict[str, Any]) -> Dict[str, Any]:
    """Rewrite snake_case top-level and nested keys to the camelCase wire names."""
    out = {}
    for key, value in patch.items():
        camel = _to_camel(key)
        out[camel] = _camel_keys(value) if isinstance(value, dict) else value
    return out


def _to_camel(key: str) -> str:
    head, *rest = key.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


def _first_error(exc: ValidationError) -> ScenarioImportError:
    err = exc.errors()[0]
    field = ".".join(str(p) for p in err.get("loc", ())) or None
    message = err.get("msg", "Invalid data")
    # pydantic prefixes messages raised from validators
    if message.startswith("Value error, "):
        message = message[len("Value error, "):]
    return ScenarioImportError(message, field)


def merge_scenario(base: ScenarioParams, patch: Dict[str, Any]) -> ScenarioParams:
    """Apply a partial update (camelCase or snake_case keys) on top of ``base``."""
    if not isinstance(patch, dict):
        raise ScenarioImportError("Scenario must be a JSON object")
    merged = _merge(base.model_dump(by_alias=True), _camel_keys(patch))
    try:
        return ScenarioParams.model_validate(merged)
    except ValidationError as exc:
        raise _first_error(exc) from exc


def import_scenario(payload: str, base: Optional[ScenarioParams] = None) -> ScenarioParams:
    try:
        data = json.loads(payload)
    except json.JSONDecodeError as exc:
        raise ScenarioImportError(f"Unable to parse JSON: {exc.msg}") from exc
    return merge_scenario(base if base is not None else DEFAULT_SCENARIO, data)


def export_scenario(params: ScenarioParams) -> str:
    return params.model_dump_json(by_alias=True, indent=2)
