# app/config.py
from pydantic_settings import BaseSettings
from typing import List, Optional
from pydantic import Field

DEFAULT_FRONTEND_ORIGINS = [
    "http://localhost:5173",
    "http://localhost:5174",
    "http://localhost:5175",
]


class Settings(BaseSettings):
    SECRET_KEY: str = Field("change-me-in-production")
    ALGORITHM: str = Field("HS256")
    ACCESS_TOKEN_EXPIRE_DAYS: int = Field(7)
    RESET_OTP_EXPIRE_MINUTES: int = Field(10)

    DATABASE_URL: str = Field("sqlite+aiosqlite:///./ablespace.db")
    DB_ECHO: bool = Field(False)

    # Comma-separated origins. If empty or missing → local Vite dev servers.
    FRONTEND_URL: Optional[str] = None

    EMAIL_HOST: str = Field("smtp.gmail.com")
    EMAIL_PORT: int = Field(465)
    EMAIL_USE_SSL: bool = Field(True)
    EMAIL_HOST_USER: Optional[str] = None
    EMAIL_HOST_PASSWORD: Optional[str] = None

    LOG_LEVEL: str = Field("INFO")

    model_config = {
        "env_file": ".env",
        "extra": "allow",
    }

    @property
    def effective_database_url(self) -> str:
        url = self.DATABASE_URL
        # Ensure asyncpg is used
        if url.startswith("postgresql://"):
            url = url.replace("postgresql://", "postgresql+asyncpg://", 1)
        return url

    @property
    def allowed_origins(self) -> List[str]:
        if not self.FRONTEND_URL:
            return list(DEFAULT_FRONTEND_ORIGINS)
        origins = [o.strip() for o in self.FRONTEND_URL.split(",") if o.strip()]
        return origins or list(DEFAULT_FRONTEND_ORIGINS)

    @property
    def email_enabled(self) -> bool:
        return bool(self.EMAIL_HOST_USER and self.EMAIL_HOST_PASSWORD)


settings = Settings()
