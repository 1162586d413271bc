from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings

# Used only when JWT_SECRET_KEY / SESSION_SECRET_KEY are not configured; refused in production.
DEV_JWT_SECRET_KEY = "school-os-jwt-secret-change-in-production"
DEV_SESSION_SECRET_KEY = "school-os-secret-change-in-production"


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    app_name: str = Field("School OS", alias="APP_NAME")
    app_version: str = Field("1.0.0", alias="APP_VERSION")
    environment: str = Field("development", alias="ENVIRONMENT")

    database_url: str = Field("sqlite+aiosqlite:///./school_os.db", alias="DATABASE_URL")

    jwt_secret_key: Optional[str] = Field(None, alias="JWT_SECRET_KEY")
    jwt_algorithm: str = Field("HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(24 * 60, alias="ACCESS_TOKEN_EXPIRE_MINUTES")
    # Lifetime of the token derived from a cookie session
    session_token_expire_minutes: int = Field(60, alias="SESSION_TOKEN_EXPIRE_MINUTES")

    session_secret_key: Optional[str] = Field(None, alias="SESSION_SECRET_KEY")
    session_cookie_name: str = Field("school_os_session", alias="SESSION_COOKIE_NAME")
    session_max_age_seconds: int = Field(24 * 60 * 60, alias="SESSION_MAX_AGE_SECONDS")

    bcrypt_rounds: int = Field(12, alias="BCRYPT_ROUNDS")

    cors_origins: List[str] = Field(
        default_factory=lambda: ["http://localhost:3000", "http://127.0.0.1:3000"],
        alias="CORS_ORIGINS",
    )

    default_admin_username: str = Field("admin", alias="DEFAULT_ADMIN_USERNAME")
    default_admin_password: str = Field("admin", alias="DEFAULT_ADMIN_PASSWORD")
    default_admin_email: str = Field("admin@school-os.local", alias="DEFAULT_ADMIN_EMAIL")
    default_admin_full_name: str = Field("System Administrator", alias="DEFAULT_ADMIN_FULL_NAME")
    seed_sample_data: bool = Field(True, alias="SEED_SAMPLE_DATA")

    log_level: str = Field("INFO", alias="LOG_LEVEL")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"
        populate_by_name = True

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    def resolved_jwt_secret(self) -> str:
        if self.jwt_secret_key:
            return self.jwt_secret_key
        if self.is_production:
            raise RuntimeError("JWT_SECRET_KEY must be set when ENVIRONMENT=production")
        return DEV_JWT_SECRET_KEY

    def resolved_session_secret(self) -> str:
        if self.session_secret_key:
            return self.session_secret_key
        if self.is_production:
            raise RuntimeError("SESSION_SECRET_KEY must be set when ENVIRONMENT=production")
        return DEV_SESSION_SECRET_KEY


settings = Settings()
