from __future__ import annotations
from pathlib import Path
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field

class AVSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="AV_", env_file=".env", extra="ignore")

    # unset: the bundled sample agreements
    data_path: Path | None = Field(default=None)

    cache_totals: bool = Field(default=True)

    otlp_endpoint: str | None = Field(default=None)
    service_name: str = Field(default="agreementview")

def get_settings() -> AVSettings:
    return AVSettings()
