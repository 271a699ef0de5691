from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_env: str = "dev"
    log_level: str = "INFO"

    storage_dir: str = "uploads/documents"
    temp_dir: str = "uploads/temp"
    max_file_size_bytes: int = 100 * 1024 * 1024
    allowed_extensions: list[str] = [".pdf", ".docx", ".doc", ".txt"]

    api_title: str = "Document Upload API"
    api_version: str = "v1"
    api_description: str = "A minimal API for document upload operations"

    service_name: str = "Document Upload API"
    service_version: str = "1.0.0"
    telemetry_enabled: bool = True
    enable_console_exporter: bool = False
    metrics_export_interval_ms: int = 60_000

    model_config = SettingsConfigDict(env_file=".env", env_prefix="DUS_")

    @field_validator("allowed_extensions")
    @classmethod
    def normalize_extensions(cls, value: list[str]) -> list[str]:
        normalized = []
        for ext in value:
            ext = ext.strip().lower()
            if not ext:
                continue
            if not ext.startswith("."):
                ext = f".{ext}"
            if ext not in normalized:
                normalized.append(ext)
        return normalized


@lru_cache
def get_settings() -> Settings:
    return Settings()
