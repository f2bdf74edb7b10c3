import os

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    APP_NAME: str = "Activity Ledger"
    APP_VERSION: str = "1.0.0"
    ROOT_PATH: str = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

    SECRET_KEY: str = "dev-secret-key-change-me"
    SQLALCHEMY_DATABASE_URI: str = "sqlite:///ledger.db"
    SQLALCHEMY_ECHO: bool = False

    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 8
    AUTH_COOKIE_NAME: str = "access_token"
    AUTH_COOKIE_SECURE: bool = False

    # Object storage: signed download links for submission evidence
    STORAGE_BASE_URL: str = "http://localhost:8000/files"
    DOWNLOAD_URL_EXPIRE_SECONDS: int = 300

    LEADERBOARD_DEFAULT_LIMIT: int = 20
    LEADERBOARD_MAX_LIMIT: int = 200

    LOG_LEVEL: str = "INFO"


settings = Settings()
