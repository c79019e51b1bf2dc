from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Database
    database_url: str = "sqlite+aiosqlite:///./compasso.db"
    auto_create_schema: bool = True

    # App
    environment: str = "development"
    debug: bool = False
    app_name: str = "Compasso"
    app_version: str = "0.1.0"
    log_level: str = "INFO"

    # Uploads
    max_upload_bytes: int = 20 * 1024 * 1024

    # Category matching: seconds a loaded pattern set stays valid
    pattern_cache_ttl_seconds: float = 5.0

    # CORS: use a JSON array in .env, e.g. CORS_ORIGINS=["http://localhost:5180"]
    cors_origins: list[str] = ["http://localhost:5180", "http://127.0.0.1:5180"]

    @property
    def is_development(self) -> bool:
        return self.environment == "development"


@lru_cache
def get_settings() -> Settings:
    return Settings()
