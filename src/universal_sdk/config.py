"""Configuration for the universal SDK."""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .models import RegistryOptions


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="UNIVERSAL_SDK_", case_sensitive=False)

    host: str = Field(default="http://localhost:8000")
    registry_path: Optional[str] = Field(default="api/v1/openapi")
    registry_url: Optional[str] = Field(default=None)
    registry_static: bool = Field(default=False)

    timeout_seconds: float = Field(default=30)
    log_level: str = Field(default="INFO")

    def registry_options(self) -> RegistryOptions:
        if self.registry_url:
            return RegistryOptions(url=self.registry_url, static=self.registry_static)
        return RegistryOptions(path=self.registry_path or "", static=self.registry_static)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
