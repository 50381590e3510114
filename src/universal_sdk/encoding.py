"""Request encoding: path parameters, query strings and body variants."""

from __future__ import annotations

import base64
import json
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Tuple, Union
from urllib.parse import quote, urlencode

from .errors import ConfigurationError
from .models import (
    EncodedRequest,
    FileBody,
    JsonBody,
    MultipartFormBody,
    NamedFile,
    RequestBody,
    RequestDescriptor,
    SchemaBody,
    TextBody,
    UrlEncodedFormBody,
)


# Characters left alone by encodeURIComponent and encodeURI respectively.
_COMPONENT_SAFE = "-_.!~*'()"
_URI_SAFE = _COMPONENT_SAFE + ";,/?:@&=+$#%"

MULTIPART_FORM_DATA = "multipart/form-data"


def _json_default(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (bytes, bytearray)):
        return base64.b64encode(bytes(value)).decode("ascii")
    if isinstance(value, NamedFile):
        return base64.b64encode(value.content).decode("ascii")
    if isinstance(value, (set, frozenset, tuple)):
        return list(value)
    return str(value)


def to_json(value: Any) -> str:
    """JSON spelling used for bodies, query values and form fields.

    Strings keep their quotes, so ``"123"`` and ``123`` stay distinguishable
    on the wire.
    """
    return json.dumps(value, default=_json_default, ensure_ascii=False, separators=(",", ":"))


def to_plain_string(value: Any) -> str:
    """Stringify a path parameter: strings verbatim, everything else as JSON."""
    if isinstance(value, str):
        return value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return to_json(value)


def substitute_params(url: str, params: Dict[str, Any]) -> str:
    for key, value in params.items():
        url = url.replace(f":{key}", quote(to_plain_string(value), safe=_COMPONENT_SAFE), 1)
    return url


def serialize_query(query: Dict[str, Any]) -> str:
    return urlencode([(key, to_json(value)) for key, value in query.items()])


def _file_part(value: Union[bytes, NamedFile]) -> Tuple[str, bytes, str]:
    if isinstance(value, NamedFile):
        return value.name, value.content, value.content_type or "application/octet-stream"
    return "blob", bytes(value), "application/octet-stream"


def _multipart_parts(form: Dict[str, Any]) -> List[Tuple[str, Any]]:
    parts: List[Tuple[str, Any]] = []
    for key, value in form.items():
        values = value if isinstance(value, list) else [value]
        for item in values:
            if isinstance(item, (bytes, bytearray, NamedFile)):
                parts.append((key, _file_part(item)))
            else:
                parts.append((key, (None, to_json(item))))
    return parts


def _file_content(value: Union[bytes, NamedFile, str]) -> bytes:
    if isinstance(value, NamedFile):
        return value.content
    if isinstance(value, str):
        return value.encode("utf-8")
    return bytes(value)


def encode_body(
    body: Optional[RequestBody],
) -> Tuple[str, Optional[Union[str, bytes]], Optional[List[Tuple[str, Any]]]]:
    """Return the default content type, raw content and multipart parts."""
    if body is None:
        return "application/json", None, None
    if isinstance(body, SchemaBody):
        return "application/json", to_json(body.schema), None
    if isinstance(body, JsonBody):
        return "application/json", to_json(body.json), None
    if isinstance(body, TextBody):
        return "text/plain", body.text, None
    if isinstance(body, FileBody):
        return "application/octet-stream", _file_content(body.file), None
    if isinstance(body, MultipartFormBody):
        return MULTIPART_FORM_DATA, None, _multipart_parts(body.multipart_form)
    if isinstance(body, UrlEncodedFormBody):
        return "application/x-www-form-urlencoded", serialize_query(body.url_encoded_form), None
    raise ConfigurationError(f"Unsupported request body: {type(body).__name__}")


def merge_headers(default_content_type: Optional[str], headers: Dict[str, str]) -> Dict[str, str]:
    merged: Dict[str, str] = {}
    if default_content_type and not any(key.lower() == "content-type" for key in headers):
        merged["Content-Type"] = default_content_type
    merged.update(headers)
    return merged


def encode_request(host: str, path: str, method: str, request: RequestDescriptor) -> EncodedRequest:
    url = substitute_params(host + path, request.params)

    default_content_type, content, files = encode_body(request.body)
    if default_content_type == MULTIPART_FORM_DATA:
        # the transport writes its own boundary parameter
        headers = {key: value for key, value in request.headers.items() if key.lower() != "content-type"}
    else:
        content_type = getattr(request.body, "content_type", None) or default_content_type
        headers = merge_headers(content_type, request.headers)

    query_string = serialize_query(request.query)
    if query_string:
        url += f"?{query_string}"

    return EncodedRequest(
        url=quote(url, safe=_URI_SAFE),
        method=method.upper(),
        headers=headers,
        content=content,
        files=files,
    )
