"""Configuration for the API Hub MCP server."""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_GATEWAY_URL = "https://apis-hub.synergyshock.com/api"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="", case_sensitive=False, env_file=".env", extra="ignore"
    )

    service_name: str = Field(default="api-hub")

    api_gateway_url: str = Field(default=DEFAULT_GATEWAY_URL)
    api_hub_token: str = Field(default="")
    api_hub_api_id: Optional[str] = Field(default=None)
    api_hub_timeout_seconds: Optional[float] = Field(default=30)
    api_hub_verify_ssl: bool = Field(default=True)
    api_hub_authenticate_docs: bool = Field(default=False)
    api_hub_expose_input_schema: bool = Field(default=True)
    api_hub_max_concurrency: int = Field(default=20)

    api_hub_transport: str = Field(default="stdio")
    api_hub_host: str = Field(default="0.0.0.0")
    api_hub_port: int = Field(default=8000)

    api_hub_log_level: str = Field(default="INFO")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
