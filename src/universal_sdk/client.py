"""Spec driven HTTP client exposing the five HTTP verbs."""

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional, Union

import httpx

from .config import Settings, get_settings
from .decoding import decode_response
from .encoding import encode_request
from .errors import ConfigurationError, NetworkError
from .logging import redact_headers
from .models import CONTENT_KIND_MIME_TYPES, RegistryOptions, RegistrySnapshot, RequestDescriptor, ResponseEnvelope
from .openapi import RegistryCache
from .paths import RouteDescriptor, get_sdk_path
from .validation import ResponseValidator


logger = logging.getLogger(__name__)

RequestInput = Union[RequestDescriptor, Dict[str, Any], None]


class UniversalSdk:
    """
    HTTP client driven by a remote OpenAPI registry.

    Every call checks the registry hash first, encodes the request from the
    route and request descriptor, then decodes the response according to the
    schema the cached document declares for that route, method and status.

    Use ``UniversalSdk.create`` (or ``from_settings``) to build an instance;
    it performs the first registry refresh.
    """

    def __init__(
        self,
        host: str,
        registry_options: RegistryOptions,
        content_type_parser_map: Optional[Mapping[str, str]] = None,
        *,
        client: Optional[httpx.AsyncClient] = None,
        timeout_seconds: float = 30.0,
    ) -> None:
        if not host:
            raise ConfigurationError("Host must be provided")
        for content_type, kind in (content_type_parser_map or {}).items():
            if kind not in CONTENT_KIND_MIME_TYPES:
                raise ConfigurationError(f"Unknown content kind {kind!r} for {content_type}")

        self.host = host.rstrip("/")
        self.registry_options = registry_options
        self.content_type_parser_map = dict(content_type_parser_map or {})
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(timeout=timeout_seconds)
        self.registry = RegistryCache(self.client, self.host, registry_options)
        self._initialized = False
        self._validator: Optional[ResponseValidator] = None
        self._validator_document: Optional[Dict[str, Any]] = None

    @classmethod
    async def create(
        cls,
        host: str,
        registry_options: RegistryOptions,
        content_type_parser_map: Optional[Mapping[str, str]] = None,
        *,
        client: Optional[httpx.AsyncClient] = None,
        timeout_seconds: float = 30.0,
    ) -> "UniversalSdk":
        sdk = cls(
            host,
            registry_options,
            content_type_parser_map,
            client=client,
            timeout_seconds=timeout_seconds,
        )
        try:
            await sdk.refresh()
        except Exception:
            await sdk.aclose()
            raise
        return sdk

    @classmethod
    async def from_settings(
        cls,
        settings: Optional[Settings] = None,
        content_type_parser_map: Optional[Mapping[str, str]] = None,
        *,
        client: Optional[httpx.AsyncClient] = None,
    ) -> "UniversalSdk":
        settings = settings or get_settings()
        return await cls.create(
            settings.host,
            settings.registry_options(),
            content_type_parser_map,
            client=client,
            timeout_seconds=settings.timeout_seconds,
        )

    async def __aenter__(self) -> "UniversalSdk":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()

    @property
    def snapshot(self) -> RegistrySnapshot:
        return self.registry.snapshot

    async def refresh(self) -> RegistrySnapshot:
        snapshot = await self.registry.refresh()
        self._initialized = True
        return snapshot

    async def get(self, route: RouteDescriptor, request: RequestInput = None) -> ResponseEnvelope:
        return await self.execute_fetch_call(route, request, method="get")

    async def post(self, route: RouteDescriptor, request: RequestInput = None) -> ResponseEnvelope:
        return await self.execute_fetch_call(route, request, method="post")

    async def put(self, route: RouteDescriptor, request: RequestInput = None) -> ResponseEnvelope:
        return await self.execute_fetch_call(route, request, method="put")

    async def patch(self, route: RouteDescriptor, request: RequestInput = None) -> ResponseEnvelope:
        return await self.execute_fetch_call(route, request, method="patch")

    async def delete(self, route: RouteDescriptor, request: RequestInput = None) -> ResponseEnvelope:
        return await self.execute_fetch_call(route, request, method="delete")

    async def execute_fetch_call(
        self,
        route: RouteDescriptor,
        request: RequestInput = None,
        *,
        method: str = "get",
        version: Optional[str] = None,
    ) -> ResponseEnvelope:
        self._ensure_initialized()
        await self.refresh()
        return await self._execute(route, method, version, request)

    async def execute_sdk_call(self, sdk_path: str, request: RequestInput = None) -> ResponseEnvelope:
        """Call an operation by ``operationId``, optionally prefixed or versioned.

        Leading dotted segments are dropped until a known key remains, so
        ``billing.createPlan`` resolves to ``createPlan``.
        """
        self._ensure_initialized()
        snapshot = await self.refresh()
        if snapshot.sdk_path_map is None:
            raise ConfigurationError("Sdk path map not initialized, please run UniversalSdk.create(...) first")

        segments = sdk_path.split(".")
        while segments and ".".join(segments) not in snapshot.sdk_path_map:
            segments.pop(0)
        if not segments:
            raise ConfigurationError(f"Sdk path not found: {sdk_path}")

        entry = snapshot.sdk_path_map[".".join(segments)]
        return await self._execute(entry.path, entry.method, entry.version, request)

    def _ensure_initialized(self) -> None:
        if not self._initialized:
            raise ConfigurationError("SDK not initialized, please run UniversalSdk.create(...) first")

    def _response_validator(self, document: Optional[Dict[str, Any]]) -> Optional[ResponseValidator]:
        if document is None:
            return None
        if self._validator is None or self._validator_document is not document:
            self._validator = ResponseValidator(document)
            self._validator_document = document
        return self._validator

    async def _execute(
        self,
        route: RouteDescriptor,
        method: str,
        version: Optional[str],
        request: RequestInput,
    ) -> ResponseEnvelope:
        descriptor = RequestDescriptor.from_value(request)
        path = get_sdk_path(route)
        encoded = encode_request(self.host, path, method, descriptor)

        logger.debug(
            "Sending %s %s headers=%s", encoded.method, encoded.url, redact_headers(encoded.headers)
        )
        http_request = self.client.build_request(
            encoded.method,
            encoded.url,
            headers=encoded.headers,
            content=encoded.content,
            files=encoded.files,
        )
        try:
            response = await self.client.send(http_request, stream=True)
        except httpx.HTTPError as exc:
            raise NetworkError(f"{encoded.method} {encoded.url} failed: {exc}", url=encoded.url) from exc

        snapshot = self.registry.snapshot
        return await decode_response(
            response,
            path=path,
            method=method,
            document=snapshot.document,
            validator=self._response_validator(snapshot.document),
            version=version,
            content_type_map=self.content_type_parser_map,
        )
