"""OpenAPI registry loader with hash based cache invalidation."""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, Optional

import httpx

from .errors import NetworkError
from .models import RefreshResult, RegistryOptions, RegistrySnapshot, SdkPathEntry, SdkPathMap


logger = logging.getLogger(__name__)

STATIC_HASH = "static"
LATEST_VERSION = "latest"
HTTP_METHODS = {"get", "post", "put", "patch", "delete", "options", "head", "trace"}

_TEMPLATE_TOKEN = re.compile(r"\{([^}/]+)\}")


def registry_url(host: str, options: RegistryOptions) -> str:
    if options.url is not None:
        return options.url
    return f"{host.rstrip('/')}/{(options.path or '').lstrip('/')}"


def normalize_document(payload: Any) -> Dict[str, Dict[str, Any]]:
    """Key a document by version; a bare OpenAPI document becomes ``latest``."""
    if isinstance(payload, dict) and ("openapi" in payload or "paths" in payload):
        return {LATEST_VERSION: payload}
    if not isinstance(payload, dict):
        raise NetworkError("Registry returned a non-object OpenAPI document")
    return payload


def version_key(version: Optional[str]) -> str:
    if version is None or version == LATEST_VERSION:
        return LATEST_VERSION
    return version if version.startswith("v") else f"v{version}"


def build_sdk_path_map(document: Dict[str, Dict[str, Any]]) -> SdkPathMap:
    sdk_path_map: SdkPathMap = {}
    for key, spec in document.items():
        version = LATEST_VERSION if key == LATEST_VERSION else key[1:] if key.startswith("v") else key
        paths = (spec or {}).get("paths") or {}
        for path, methods in paths.items():
            for method, operation in (methods or {}).items():
                if method.lower() not in HTTP_METHODS or not isinstance(operation, dict):
                    continue
                operation_id = operation.get("operationId")
                if not operation_id:
                    continue
                sdk_key = operation_id if key == LATEST_VERSION else f"{operation_id}.{key}"
                sdk_path_map[sdk_key] = SdkPathEntry(
                    method=method.lower(),
                    path=_TEMPLATE_TOKEN.sub(r":\1", path),
                    version=version,
                )
    return sdk_path_map


async def _fetch(client: httpx.AsyncClient, url: str) -> httpx.Response:
    try:
        response = await client.get(url)
    except httpx.HTTPError as exc:
        raise NetworkError(f"Failed to fetch {url}: {exc}", url=url) from exc
    if not response.is_success:
        raise NetworkError(
            f"Failed to fetch {url}: {response.status_code}",
            status_code=response.status_code,
            url=url,
        )
    return response


async def refresh_openapi(
    client: httpx.AsyncClient,
    host: str,
    options: RegistryOptions,
    previous_hash: Optional[str] = None,
) -> RefreshResult:
    if previous_hash == STATIC_HASH:
        logger.debug("Registry is static; skipping refresh")
        return RefreshResult(update_required=False)

    if options.raw is not None:
        if previous_hash is not None:
            return RefreshResult(update_required=False)
        document = normalize_document(options.raw)
        return RefreshResult(
            update_required=True,
            document=document,
            hash=STATIC_HASH,
            sdk_path_map=build_sdk_path_map(document),
        )

    registry = registry_url(host, options)
    if options.static:
        if previous_hash is not None:
            return RefreshResult(update_required=False)
        current_hash = STATIC_HASH
    else:
        hash_response = await _fetch(client, f"{registry}-hash")
        current_hash = hash_response.text.strip()
        if previous_hash is not None and current_hash == previous_hash:
            return RefreshResult(update_required=False)

    document_response = await _fetch(client, registry)
    try:
        payload = document_response.json()
    except ValueError as exc:
        raise NetworkError(f"Registry at {registry} returned invalid JSON", url=registry) from exc

    document = normalize_document(payload)
    logger.info("Fetched OpenAPI registry %s (hash=%s)", registry, current_hash)
    return RefreshResult(
        update_required=True,
        document=document,
        hash=current_hash,
        sdk_path_map=build_sdk_path_map(document),
    )


class RegistryCache:
    """Owns the registry snapshot for one SDK instance.

    Each refresh replaces the whole snapshot; concurrent refreshes are not
    coalesced and the last one to finish wins.
    """

    def __init__(self, client: httpx.AsyncClient, host: str, options: RegistryOptions) -> None:
        self.client = client
        self.host = host
        self.options = options
        self.snapshot = RegistrySnapshot()

    @property
    def is_static(self) -> bool:
        return self.snapshot.hash == STATIC_HASH

    async def refresh(self) -> RegistrySnapshot:
        result = await refresh_openapi(self.client, self.host, self.options, self.snapshot.hash)
        if result.update_required:
            self.snapshot = RegistrySnapshot(
                document=result.document,
                hash=result.hash,
                sdk_path_map=result.sdk_path_map,
            )
        return self.snapshot
