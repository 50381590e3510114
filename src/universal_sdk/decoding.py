"""Response decoding driven by the cached OpenAPI document."""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, Mapping, Optional, Tuple
from urllib.parse import unquote

import httpx

from .coercion import coerce_special_types
from .errors import ConfigurationError, DecodeError, SpecCoverageError, ValidationError
from .models import CONTENT_KIND_MIME_TYPES, NamedFile, ResponseEnvelope
from .openapi import version_key
from .paths import openapi_compliant_path
from .streaming import EventStream
from .validation import ResponseValidator, schema_pointer


logger = logging.getLogger(__name__)

_FILENAME = re.compile(r"filename\*?=(?:UTF-8''|\")?([^;\r\n\"]+)", re.IGNORECASE)


def map_content_kind(kind: str) -> str:
    try:
        return CONTENT_KIND_MIME_TYPES[kind]
    except KeyError:
        raise ConfigurationError(f"Unknown content kind: {kind}") from None


def resolve_content_type(
    headers: httpx.Headers, content_type_map: Optional[Mapping[str, str]] = None
) -> Tuple[Optional[str], str]:
    """Return the response MIME type and the MIME type used to pick a decoder."""
    raw = headers.get("content-type")
    content_type = raw.split(";")[0].strip() if raw else None
    if content_type is None:
        return None, "application/json"
    if content_type_map and content_type in content_type_map:
        return content_type, map_content_kind(content_type_map[content_type])
    return content_type, content_type


def parse_content_disposition(header: Optional[str]) -> Optional[str]:
    if not header:
        return None
    match = _FILENAME.search(header)
    if not match:
        return None
    return unquote(match.group(1).replace("'", "").replace('"', ""))


def find_response_spec(
    document: Optional[Dict[str, Dict[str, Any]]],
    path: str,
    method: str,
    status_code: int,
    version: Optional[str] = None,
) -> Optional[Dict[str, Any]]:
    spec = (document or {}).get(version_key(version)) or {}
    operation = ((spec.get("paths") or {}).get(openapi_compliant_path(path)) or {}).get(method.lower())
    if not isinstance(operation, dict):
        return None
    return (operation.get("responses") or {}).get(str(status_code))


async def decode_response(
    response: httpx.Response,
    *,
    path: str,
    method: str,
    document: Optional[Dict[str, Dict[str, Any]]],
    validator: Optional[ResponseValidator],
    version: Optional[str] = None,
    content_type_map: Optional[Mapping[str, str]] = None,
) -> ResponseEnvelope:
    response_spec = find_response_spec(document, path, method, response.status_code, version)
    if response_spec is None:
        logger.warning("No response spec for %s %s status=%s", method.upper(), path, response.status_code)
        await response.aclose()
        raise SpecCoverageError(path, method, response.status_code)

    document_version = version_key(version)
    content_type, mapped_content_type = resolve_content_type(response.headers, content_type_map)

    content = response_spec.get("content") or {}
    schema_key = next(
        (key for key in (content_type, mapped_content_type) if key and (content.get(key) or {}).get("schema") is not None),
        None,
    )
    pointer: Optional[str] = None
    schema: Optional[Dict[str, Any]] = None
    if schema_key is not None and validator is not None:
        pointer = schema_pointer(
            "paths",
            openapi_compliant_path(path),
            method.lower(),
            "responses",
            str(response.status_code),
            "content",
            schema_key,
            "schema",
        )
        try:
            schema = validator.schema_at(pointer, document_version)
        except ValidationError:
            await response.aclose()
            raise

    if mapped_content_type == "text/event-stream":
        body: Any = EventStream(
            response, validator=validator, pointer=pointer, schema=schema, version=document_version
        )
        return ResponseEnvelope(code=response.status_code, response=body, headers=response.headers)

    try:
        await response.aread()
    finally:
        await response.aclose()

    if mapped_content_type == "application/octet-stream":
        file_name = parse_content_disposition(response.headers.get("content-disposition"))
        if file_name is None:
            body = response.content
        else:
            body = NamedFile(name=file_name, content=response.content, content_type=content_type)
    elif mapped_content_type == "text/plain":
        body = response.text
    else:
        body = _decode_json(response)
        if body is not None and pointer is not None:
            validator.validate(body, pointer, document_version)
            body = coerce_special_types(body, schema)

    return ResponseEnvelope(code=response.status_code, response=body, headers=response.headers)


def _decode_json(response: httpx.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError as exc:
        raise DecodeError(f"Response body is not valid JSON ({response.status_code})") from exc
