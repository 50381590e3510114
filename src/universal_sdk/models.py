"""Internal models for registry state, requests and responses."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Literal, Optional, Union

import httpx

from .errors import ConfigurationError


ContentKind = Literal["json", "file", "text", "stream", "multipartForm"]

CONTENT_KIND_MIME_TYPES: Dict[str, str] = {
    "json": "application/json",
    "file": "application/octet-stream",
    "text": "text/plain",
    "stream": "text/event-stream",
    "multipartForm": "multipart/form-data",
}


@dataclass(frozen=True)
class RegistryOptions:
    """Where the OpenAPI registry lives: exactly one of path, url or raw."""

    path: Optional[str] = None
    url: Optional[str] = None
    raw: Optional[Dict[str, Any]] = None
    static: bool = False

    def __post_init__(self) -> None:
        provided = [name for name in ("path", "url", "raw") if getattr(self, name) is not None]
        if len(provided) != 1:
            raise ConfigurationError(
                f"Registry options need exactly one of path, url or raw (got {provided or 'none'})"
            )


@dataclass(frozen=True)
class SdkPathEntry:
    method: str
    path: str
    version: str


SdkPathMap = Dict[str, SdkPathEntry]


@dataclass(frozen=True)
class RegistrySnapshot:
    document: Optional[Dict[str, Dict[str, Any]]] = None
    hash: Optional[str] = None
    sdk_path_map: Optional[SdkPathMap] = None


@dataclass(frozen=True)
class RefreshResult:
    update_required: bool
    document: Optional[Dict[str, Dict[str, Any]]] = None
    hash: Optional[str] = None
    sdk_path_map: Optional[SdkPathMap] = None


@dataclass(frozen=True)
class NamedFile:
    name: str
    content: bytes
    content_type: Optional[str] = None

    @property
    def size(self) -> int:
        return len(self.content)


@dataclass(frozen=True)
class JsonBody:
    json: Any
    content_type: Optional[str] = None


@dataclass(frozen=True)
class SchemaBody:
    schema: Any
    content_type: Optional[str] = None


@dataclass(frozen=True)
class TextBody:
    text: str
    content_type: Optional[str] = None


@dataclass(frozen=True)
class FileBody:
    file: Union[bytes, NamedFile, str]
    content_type: Optional[str] = None


@dataclass(frozen=True)
class MultipartFormBody:
    multipart_form: Dict[str, Any]
    content_type: Optional[str] = None


@dataclass(frozen=True)
class UrlEncodedFormBody:
    url_encoded_form: Dict[str, Any]
    content_type: Optional[str] = None


RequestBody = Union[JsonBody, SchemaBody, TextBody, FileBody, MultipartFormBody, UrlEncodedFormBody]

_BODY_DISCRIMINANTS = {
    "schema": SchemaBody,
    "json": JsonBody,
    "text": TextBody,
    "file": FileBody,
    "multipartForm": MultipartFormBody,
    "multipart_form": MultipartFormBody,
    "urlEncodedForm": UrlEncodedFormBody,
    "url_encoded_form": UrlEncodedFormBody,
}


def parse_body(body: Any) -> Optional[RequestBody]:
    """Normalize a caller supplied body into one tagged variant.

    Accepts a variant instance, raw bytes or a NamedFile (implicit file body),
    a dict keyed by one discriminant, or any other dict (implicit JSON).
    """
    if body is None:
        return None
    if isinstance(body, (JsonBody, SchemaBody, TextBody, FileBody, MultipartFormBody, UrlEncodedFormBody)):
        return body
    if isinstance(body, (bytes, bytearray, NamedFile)):
        return FileBody(file=bytes(body) if isinstance(body, bytearray) else body)
    if not isinstance(body, dict):
        return JsonBody(json=body)

    content_type = body.get("contentType", body.get("content_type"))
    present = [key for key in _BODY_DISCRIMINANTS if body.get(key) is not None]
    if len(present) > 1:
        raise ConfigurationError(f"Request body sets more than one body kind: {present}")
    if not present:
        return JsonBody(json=body)

    key = present[0]
    variant = _BODY_DISCRIMINANTS[key]
    value = body[key]
    if variant is SchemaBody:
        return SchemaBody(schema=value, content_type=content_type)
    if variant is JsonBody:
        return JsonBody(json=value, content_type=content_type)
    if variant is TextBody:
        return TextBody(text=value, content_type=content_type)
    if variant is FileBody:
        return FileBody(file=value, content_type=content_type)
    if variant is MultipartFormBody:
        return MultipartFormBody(multipart_form=value, content_type=content_type)
    return UrlEncodedFormBody(url_encoded_form=value, content_type=content_type)


@dataclass
class RequestDescriptor:
    params: Dict[str, Any] = field(default_factory=dict)
    query: Dict[str, Any] = field(default_factory=dict)
    headers: Dict[str, str] = field(default_factory=dict)
    body: Optional[RequestBody] = None

    @classmethod
    def from_value(cls, value: Union["RequestDescriptor", Dict[str, Any], None]) -> "RequestDescriptor":
        if value is None:
            return cls()
        if isinstance(value, RequestDescriptor):
            return value
        return cls(
            params=dict(value.get("params") or {}),
            query=dict(value.get("query") or {}),
            headers=dict(value.get("headers") or {}),
            body=parse_body(value.get("body")),
        )


@dataclass(frozen=True)
class EncodedRequest:
    url: str
    method: str
    headers: Dict[str, str]
    content: Optional[Union[str, bytes]] = None
    files: Optional[list] = None


@dataclass
class ResponseEnvelope:
    code: int
    response: Any
    headers: httpx.Headers
