"""JSON-Schema validation of response payloads against an OpenAPI document."""

from __future__ import annotations

import logging
import math
from typing import Any, Dict, Iterator, List
from urllib.parse import quote

from jsonschema import Draft202012Validator, validators
from referencing import Registry, Resource
from referencing.exceptions import Unresolvable
from referencing.jsonschema import DRAFT202012

from .errors import ValidationError


logger = logging.getLogger(__name__)

DOCUMENT_URI = "urn:universal-sdk:openapi"

_UNCOERCIBLE = object()
_BASE_PROPERTIES = Draft202012Validator.VALIDATORS["properties"]
_BASE_ITEMS = Draft202012Validator.VALIDATORS["items"]


def _coerce_scalar(value: Any, schema_type: str) -> Any:
    if isinstance(value, (dict, list)):
        return _UNCOERCIBLE

    if schema_type == "string":
        if value is None:
            return ""
        if isinstance(value, bool):
            return "true" if value else "false"
        if isinstance(value, (int, float)):
            return str(int(value)) if isinstance(value, float) and value.is_integer() else str(value)
        return _UNCOERCIBLE

    if schema_type in ("number", "integer"):
        if isinstance(value, bool):
            number: Any = int(value)
        elif value is None:
            number = 0
        elif isinstance(value, str) and value.strip():
            try:
                number = int(value)
            except ValueError:
                try:
                    number = float(value)
                except ValueError:
                    return _UNCOERCIBLE
            if not math.isfinite(number):
                return _UNCOERCIBLE
        else:
            return _UNCOERCIBLE
        if schema_type == "integer":
            if isinstance(number, float) and not number.is_integer():
                return _UNCOERCIBLE
            return int(number)
        return number

    if schema_type == "boolean":
        if value == "true" or (isinstance(value, int) and not isinstance(value, bool) and value == 1):
            return True
        if value == "false" or value is None or (isinstance(value, int) and not isinstance(value, bool) and value == 0):
            return False
        return _UNCOERCIBLE

    if schema_type == "null":
        if value == "" or value is False or (isinstance(value, (int, float)) and not isinstance(value, bool) and value == 0):
            return None
        return _UNCOERCIBLE

    return _UNCOERCIBLE


def _coerce_to_schema(validator: Any, value: Any, subschema: Any) -> Any:
    if not isinstance(subschema, dict) or "type" not in subschema:
        return value
    types = subschema["type"]
    types = [types] if isinstance(types, str) else list(types)
    if any(validator.is_type(value, schema_type) for schema_type in types):
        return value
    for schema_type in types:
        coerced = _coerce_scalar(value, schema_type)
        if coerced is not _UNCOERCIBLE:
            return coerced
    return value


def _coercing_properties(validator: Any, properties: Dict[str, Any], instance: Any, schema: Dict[str, Any]) -> Iterator[Any]:
    if validator.is_type(instance, "object"):
        for name, subschema in properties.items():
            if name in instance:
                instance[name] = _coerce_to_schema(validator, instance[name], subschema)
    yield from _BASE_PROPERTIES(validator, properties, instance, schema)


def _coercing_items(validator: Any, items: Any, instance: Any, schema: Dict[str, Any]) -> Iterator[Any]:
    if validator.is_type(instance, "array") and isinstance(items, dict):
        start = len(schema.get("prefixItems") or [])
        for index in range(start, len(instance)):
            instance[index] = _coerce_to_schema(validator, instance[index], items)
    yield from _BASE_ITEMS(validator, items, instance, schema)


CoercingValidator = validators.extend(
    Draft202012Validator,
    {"properties": _coercing_properties, "items": _coercing_items},
)


def document_uri(version: str) -> str:
    return f"{DOCUMENT_URI}:{version}"


def schema_pointer(*segments: Any) -> str:
    escaped = [str(segment).replace("~", "~0").replace("/", "~1") for segment in segments]
    return quote("/" + "/".join(escaped), safe="/~")


class ResponseValidator:
    """Validates payloads against schemas living inside an OpenAPI document.

    Each version of the document is registered as its own resource, so
    ``#/components/...`` references resolve inside that version. Scalars are
    coerced in place toward the declared types before validation, and unknown
    keywords are ignored.
    """

    def __init__(self, document: Dict[str, Any]) -> None:
        self.registry = Registry().with_resources(
            (document_uri(version), Resource.from_contents(spec, default_specification=DRAFT202012))
            for version, spec in document.items()
            if isinstance(spec, dict)
        )

    def validate(self, instance: Any, pointer: str, version: str = "latest") -> None:
        validator = CoercingValidator(
            {"$ref": f"{document_uri(version)}#{pointer}"},
            registry=self.registry,
            format_checker=Draft202012Validator.FORMAT_CHECKER,
        )
        try:
            messages: List[str] = [error.message for error in validator.iter_errors(instance)]
        except Unresolvable as exc:
            raise ValidationError("Response schema could not be resolved", [str(exc)]) from exc
        if messages:
            logger.warning("Response failed schema validation at %s: %s", pointer, messages)
            raise ValidationError("Response does not match OpenAPI spec", messages)

    def schema_at(self, pointer: str, version: str = "latest") -> Any:
        """Return the schema at ``pointer``, following a top level ``$ref``."""
        uri = document_uri(version)
        try:
            resolved = self.registry.resolver(base_uri=uri).lookup(f"{uri}#{pointer}")
            schema = resolved.contents
            seen = set()
            while isinstance(schema, dict) and isinstance(schema.get("$ref"), str) and schema["$ref"] not in seen:
                seen.add(schema["$ref"])
                resolved = resolved.resolver.lookup(schema["$ref"])
                schema = resolved.contents
        except Unresolvable as exc:
            raise ValidationError("Response schema could not be resolved", [str(exc)]) from exc
        return schema
