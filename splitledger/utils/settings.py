from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


ENV_PATH = Path(__file__).resolve().parents[2] / "configs/.env"
SECRETS_ENV_PATH = Path(__file__).resolve().parents[2] / "configs/secrets/.env"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=[str(SECRETS_ENV_PATH), str(ENV_PATH)],
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # App
    APP_ENV: str = "dev"
    APP_NAME: str = "splitledger"
    LOG_LEVEL: str = "INFO"

    # Database
    DB_HOST: str = "localhost"
    DB_PORT: int = 5432
    DB_NAME: str = "splitledger"
    DB_USER: str = "postgres"
    DB_PASSWORD: str = ""
    DB_POOL_SIZE: int = 10

    # Balances
    BALANCE_TOLERANCE: float = 0.01

    @computed_field
    @property
    def DATABASE_URL(self) -> str:  # noqa: N802 (FastAPI convention)
        return (
            f"postgresql+asyncpg://{self.DB_USER}:{self.DB_PASSWORD}"
            f"@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
