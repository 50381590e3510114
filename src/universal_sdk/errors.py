"""Error taxonomy for the universal SDK."""

from __future__ import annotations

from typing import List, Optional


class UniversalSdkError(Exception):
    pass


class ConfigurationError(UniversalSdkError):
    pass


class NetworkError(UniversalSdkError):
    def __init__(self, message: str, status_code: int = 0, url: Optional[str] = None) -> None:
        self.status_code = status_code
        self.url = url
        super().__init__(message)


class SpecCoverageError(UniversalSdkError):
    def __init__(self, path: str, method: str, status_code: int) -> None:
        self.path = path
        self.method = method
        self.status_code = status_code
        super().__init__(
            f"Response {status_code} not found in OpenAPI spec for {path} with method {method}"
        )


class ValidationError(UniversalSdkError):
    def __init__(self, message: str, errors: Optional[List[str]] = None) -> None:
        self.errors = errors or []
        super().__init__(message)

    def __str__(self) -> str:
        base = super().__str__()
        if not self.errors:
            return base
        return f"{base}: {'; '.join(self.errors)}"


class DecodeError(UniversalSdkError):
    pass
