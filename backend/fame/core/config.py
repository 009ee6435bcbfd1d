from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict
from pydantic import field_validator, model_validator
from typing import Annotated, Any, ClassVar
import json
from pathlib import Path
import os


class Settings(BaseSettings):
    model_config = SettingsConfigDict(extra="ignore", case_sensitive=True)

    API_PREFIX: str = "/api"

    # "development" keeps cookies non-secure and lets GCS failures fall back to disk
    APP_ENV: str = "development"

    # Document storage: "local", "gcs" or "auto" (gcs when credentials exist)
    STORAGE_BACKEND: str = "auto"
    BASE_DIR: ClassVar[Path] = Path(__file__).resolve().parents[2]
    LOCAL_DATA_DIR: str = str(BASE_DIR / "local-data")

    # Google Cloud Storage through its S3-compatible XML API (HMAC keys)
    GCS_BUCKET_NAME: str = "fame-data"
    GCS_PROJECT_ID: str = ""
    GCS_ENDPOINT_URL: str = "https://storage.googleapis.com"
    GCS_HMAC_ACCESS_KEY_ID: str = ""
    GCS_HMAC_SECRET: str = ""
    GCS_SIGNED_URL_TTL: int = 3600

    # Session cookie
    SECRET_KEY: str = "fame-dev-secret-change-me"
    SESSION_ALGORITHM: str = "HS256"
    SESSION_COOKIE_NAME: str = "fame-session"
    SESSION_MAX_AGE: int = 60 * 60 * 24
    SESSION_COOKIE_SECURE: bool | None = None
    COOKIE_DOMAIN: str = ""

    BCRYPT_ROUNDS: int = 12

    CORS_ORIGINS: Annotated[list[str], NoDecode] = ["http://localhost:3000"]
    CORS_ALLOW_ALL: bool = False

    # Redis fan-out for websocket rooms across workers
    REDIS_URL: str = "redis://localhost:6379/0"
    WS_BUS_ENABLED: bool = False

    LOG_LEVEL: str = "INFO"

    # Default super admin, created on startup when none exists
    DEFAULT_ADMIN_BOOTSTRAP: bool = True
    DEFAULT_ADMIN_EMAIL: str = "admin@fame.local"
    DEFAULT_ADMIN_PASSWORD: str = "changeme123"

    @field_validator("CORS_ORIGINS", mode="before")
    def split_origins(cls, v: Any) -> list[str]:
        """Parse comma-separated or JSON list of origins from environment."""
        if isinstance(v, str):
            try:
                parsed = json.loads(v)
                if isinstance(parsed, list):
                    return parsed
            except json.JSONDecodeError:
                pass
            return [s.strip() for s in v.split(",") if s.strip()]
        return v

    @field_validator("STORAGE_BACKEND", "APP_ENV", mode="before")
    def lower_choice(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @model_validator(mode="after")
    def allow_all_if_requested(self) -> "Settings":
        if self.CORS_ALLOW_ALL:
            self.CORS_ORIGINS = ["*"]
        return self

    @property
    def is_production(self) -> bool:
        return self.APP_ENV == "production"

    @property
    def cookie_secure(self) -> bool:
        if self.SESSION_COOKIE_SECURE is not None:
            return self.SESSION_COOKIE_SECURE
        return self.is_production

    @property
    def gcs_configured(self) -> bool:
        return bool(self.GCS_HMAC_ACCESS_KEY_ID and self.GCS_HMAC_SECRET)

    @property
    def resolved_storage_backend(self) -> str:
        if self.STORAGE_BACKEND in ("local", "gcs"):
            return self.STORAGE_BACKEND
        return "gcs" if self.gcs_configured else "local"


def load_settings() -> "Settings":
    return Settings(_env_file=os.getenv("ENV_FILE", str(Path(__file__).resolve().parents[3] / ".env")))


settings = load_settings()
