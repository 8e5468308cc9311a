from functools import lru_cache
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # ---- App ----
    APP_NAME: str = "Lobby Coordinator"
    VERSION: str = "1.0"
    LOG_LEVEL: str = "INFO"

    # ---- Server ----
    HOST: str = "0.0.0.0"
    PORT: int = 8787

    # ---- CORS ----
    CORS_ORIGINS: List[str] = ["*"]


@lru_cache
def get_settings() -> Settings:
    return Settings()
