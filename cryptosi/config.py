from functools import lru_cache
from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import AliasChoices, Field

DEFAULT_ALLOWED_ORIGINS = [
    "http://localhost",
    "http://127.0.0.1",
    "http://localhost:5173",
    "http://localhost:3000",
]

class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        extra="allow",
        env_file=".env",
        env_file_encoding="utf-8",
    )

    # --- Hyperbolic image API ---
    hyperbolic_api_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("HYPERBOLIC_API_KEY", "VITE_HYPERBOLIC_API_KEY"),
    )
    hyperbolic_api_endpoint: str = Field(
        default="https://api.hyperbolic.xyz/v1/image/generation",
        validation_alias=AliasChoices("HYPERBOLIC_API_ENDPOINT", "VITE_HYPERBOLIC_API_ENDPOINT"),
    )
    # Public CORS relay prepended to the endpoint; empty string disables it
    cors_proxy: str = Field(default="https://cors-anywhere.herokuapp.com/", validation_alias="CORS_PROXY")
    app_origin: str = Field(default="http://localhost:5173", validation_alias="APP_ORIGIN")

    # None means the generation call waits as long as the server takes
    request_timeout: Optional[float] = Field(default=None, validation_alias="REQUEST_TIMEOUT")

    # --- Uploads ---
    max_upload_bytes: int = Field(default=10 * 1024 * 1024, validation_alias="MAX_UPLOAD_BYTES")

    # --- Sessions ---
    # Least recently used form sessions are dropped beyond this count
    max_sessions: int = Field(default=1000, ge=1, validation_alias="MAX_SESSIONS")

    # --- CORS ---
    cors_allowed_origins: str = Field(default=",".join(DEFAULT_ALLOWED_ORIGINS), validation_alias="CORS_ALLOWED_ORIGINS")

    # --- Logging ---
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")

    @property
    def generation_url(self) -> str:
        return f"{self.cors_proxy}{self.hyperbolic_api_endpoint}"

@lru_cache
def get_settings() -> Settings:
    return Settings()
