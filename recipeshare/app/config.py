from __future__ import annotations

from typing import Literal, Optional

from pydantic import AnyUrl, Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8-sig",
        case_sensitive=False,
        extra="ignore",
    )

    APP_ENV: str = "local"
    DATABASE_BACKEND: Literal["supabase", "memory"] = "supabase"

    SUPABASE_URL: Optional[AnyUrl] = None
    SUPABASE_SERVICE_ROLE_KEY: Optional[str] = None
    # Auth calls prefer the anon key so user sessions stay off the service client
    SUPABASE_ANON_KEY: Optional[str] = None
    OAUTH_REDIRECT_URL: Optional[str] = None

    GEMINI_API_KEY: SecretStr = SecretStr("")
    GEMINI_MODEL: str = "gemini-2.5-flash"

    R2_ACCOUNT_ID: Optional[str] = None
    R2_ACCESS_KEY_ID: Optional[str] = None
    R2_SECRET_ACCESS_KEY: Optional[str] = None
    R2_BUCKET_NAME: Optional[str] = None
    R2_PUBLIC_URL: Optional[str] = None

    PLACEHOLDER_IMAGE_URL: str = "https://placehold.co/1200x800.png"
    RECIPE_LIST_LIMIT: int = Field(default=20, ge=1, le=100)

    FRONTEND_REVALIDATE_URL: Optional[str] = None
    FRONTEND_REVALIDATE_SECRET: Optional[SecretStr] = None
    FRONTEND_CORS_ORIGINS: list[str] = Field(
        default_factory=lambda: ["http://localhost:3000", "http://localhost:9002"],
    )

    @property
    def storage_configured(self) -> bool:
        return all(
            [
                self.R2_ACCOUNT_ID,
                self.R2_ACCESS_KEY_ID,
                self.R2_SECRET_ACCESS_KEY,
                self.R2_BUCKET_NAME,
            ]
        )


settings = Settings()
