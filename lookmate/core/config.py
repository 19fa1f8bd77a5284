from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")
    APP_NAME: str = "LookMate API"
    APP_ENV: str = "dev"
    API_PREFIX: str = "/api"
    SECRET_KEY: str = "change-me"
    DATABASE_URL: str = "sqlite+aiosqlite:///./lookmate.db"
    DB_AUTO_CREATE: bool = True
    DB_ECHO: bool = False
    CORS_ORIGINS: str = "*"
    # Uploads (multer-style limits)
    UPLOAD_DIR: str = "./uploads"
    UPLOAD_URL_PATH: str = "/uploads"
    UPLOAD_MAX_BYTES: int = 5 * 1024 * 1024
    # Public feed paging
    PUBLIC_FEED_DEFAULT_LIMIT: int = 20
    PUBLIC_FEED_MAX_LIMIT: int = 100
    # AI stubs
    AI_STUB_MODEL_VERSION: str = "stub-v1.0"

    @property
    def cors_origin_list(self) -> List[str]:
        val = self.CORS_ORIGINS
        if not val: return []
        if val == "*": return ["*"]
        return [v.strip() for v in val.split(",")]

    @property
    def is_sqlite(self) -> bool:
        return self.DATABASE_URL.startswith("sqlite")

settings = Settings()
