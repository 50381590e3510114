"""Runtime HTTP client generated from a remote OpenAPI registry."""

from .client import UniversalSdk
from .coercion import coerce_special_types
from .errors import (
    ConfigurationError,
    DecodeError,
    NetworkError,
    SpecCoverageError,
    UniversalSdkError,
    ValidationError,
)
from .models import (
    FileBody,
    JsonBody,
    MultipartFormBody,
    NamedFile,
    RegistryOptions,
    RequestDescriptor,
    ResponseEnvelope,
    SchemaBody,
    TextBody,
    UrlEncodedFormBody,
)
from .openapi import RegistryCache, refresh_openapi
from .paths import get_sdk_path
from .streaming import EventStream

__all__ = [
    "ConfigurationError",
    "DecodeError",
    "EventStream",
    "FileBody",
    "JsonBody",
    "MultipartFormBody",
    "NamedFile",
    "NetworkError",
    "RegistryCache",
    "RegistryOptions",
    "RequestDescriptor",
    "ResponseEnvelope",
    "SchemaBody",
    "SpecCoverageError",
    "TextBody",
    "UniversalSdk",
    "UniversalSdkError",
    "UrlEncodedFormBody",
    "ValidationError",
    "coerce_special_types",
    "get_sdk_path",
    "refresh_openapi",
]

__version__ = "0.1.0"
