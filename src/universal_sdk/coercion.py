"""Schema driven coercion of date-time and binary string fields."""

from __future__ import annotations

import base64
import binascii
import re
from datetime import datetime
from typing import Any, Dict, Optional, Set

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from .errors import DecodeError


_DATETIME_ADAPTER = TypeAdapter(datetime)
_SPECIAL_FORMATS = ("date-time", "binary")
# the lax datetime parser reads bare numbers as unix timestamps
_NUMERIC = re.compile(r"\s*[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?\s*")


def coerce_special_types(value: Any, schema: Optional[Dict[str, Any]]) -> Any:
    """Convert date-time strings to datetimes and binary strings to bytes.

    The value is mutated in place and returned. Values that are already
    converted pass through untouched, so applying this twice is a no-op.
    """
    if not isinstance(value, dict) or not isinstance(schema, dict):
        return value

    properties = schema.get("properties") or {}
    for key, definition in properties.items():
        if not definition or key not in value:
            continue
        item = value[key]
        schema_type = _schema_type(definition)

        if schema_type == "object" and definition.get("properties") and isinstance(item, dict):
            value[key] = coerce_special_types(item, definition)
        elif schema_type == "array" and definition.get("items") and isinstance(item, list):
            value[key] = [_coerce_item(element, definition["items"]) for element in item]
        elif schema_type == "string":
            value[key] = _coerce_string(item, _special_format(definition))
    return value


def _coerce_item(item: Any, definition: Dict[str, Any]) -> Any:
    item_type = _schema_type(definition)
    if item_type == "object" and definition.get("properties") and isinstance(item, dict):
        return coerce_special_types(item, definition)
    if item_type == "string":
        return _coerce_string(item, _special_format(definition))
    return item


def _coerce_string(value: Any, schema_format: Optional[str]) -> Any:
    if not isinstance(value, str):
        return value
    if schema_format == "date-time":
        if _NUMERIC.fullmatch(value):
            return value
        try:
            return _DATETIME_ADAPTER.validate_python(value)
        except PydanticValidationError:
            return value
    if schema_format == "binary":
        try:
            return base64.b64decode(value, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise DecodeError("Invalid base64 string") from exc
    return value


def _first_type(schema_type: Any) -> Optional[str]:
    if isinstance(schema_type, list):
        for candidate in schema_type:
            if candidate != "null":
                return candidate
        return schema_type[0] if schema_type else None
    return schema_type


def _schema_type(definition: Dict[str, Any]) -> Optional[str]:
    schema_type = _first_type(definition.get("type"))
    if schema_type:
        return schema_type
    for keyword in ("anyOf", "oneOf"):
        for sub in definition.get(keyword) or []:
            if isinstance(sub, dict):
                sub_type = _first_type(sub.get("type"))
                if sub_type and sub_type != "null":
                    return sub_type
    return None


def _formats(definition: Dict[str, Any]) -> Set[str]:
    formats: Set[str] = set()
    if definition.get("format"):
        formats.add(definition["format"])
    for keyword in ("anyOf", "oneOf"):
        for sub in definition.get(keyword) or []:
            if isinstance(sub, dict) and sub.get("format"):
                formats.add(sub["format"])
    return formats


def _special_format(definition: Dict[str, Any]) -> Optional[str]:
    formats = _formats(definition)
    for schema_format in _SPECIAL_FORMATS:
        if schema_format in formats:
            return schema_format
    return None
