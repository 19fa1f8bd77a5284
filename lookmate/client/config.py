from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class ClientSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="LOOKMATE_", env_file=".env", extra="ignore")
    # Backend mode when set, local mode otherwise
    API_BASE_URL: Optional[str] = None
    DATA_DIR: str = "./.lookmate"
    REQUEST_TIMEOUT_S: float = 10.0
    # Snapshot rendering: display size (3:4) times RENDER_SCALE
    RENDER_SCALE: float = 2.0
    CANVAS_WIDTH: int = 300
    CANVAS_HEIGHT: int = 400
    LAYER_BASE_WIDTH_RATIO: float = 0.6

    @property
    def backend_enabled(self) -> bool:
        return bool(self.API_BASE_URL and self.API_BASE_URL.strip())
