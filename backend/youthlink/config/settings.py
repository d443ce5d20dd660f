"""backend/youthlink/config/settings.py

Application configuration using environment-driven settings.

This module centralizes:
- database connection URL
- Celery / Redis configuration
- CORS configuration
- JWT signing and password hashing parameters
- Document upload and pagination limits
- Logging level and the optional Statsig server secret
"""

from __future__ import annotations
import logging
from functools import lru_cache
from typing import List

from pydantic import AnyHttpUrl
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
  app_name: str = "youthlink-api"
  environment: str = "development"

  # Database
  database_url: str = "postgresql+psycopg2://postgres:postgres@db:5432/youthlink"

  # Celery / Redis
  celery_broker_url: str = "redis://redis:6379/1"
  celery_result_backend: str = "redis://redis:6379/2"

  # CORS
  allowed_origins: List[AnyHttpUrl] = [
      "http://localhost:3000",
      "http://127.0.0.1:3000",
  ]

  # Auth
  jwt_secret_key: str = "change-me-in-production"
  jwt_algorithm: str = "HS256"
  access_token_expire_minutes: int = 60 * 24 * 7
  bcrypt_rounds: int = 12

  # Documents are metadata only; files live behind file_url
  max_document_size: int = 5 * 1024 * 1024

  # Admin listings
  default_page_size: int = 20
  max_page_size: int = 1000

  log_level: str = "INFO"

  statsig_server_secret: str | None = None

  model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached Settings instance."""
    return Settings()


def configure_logging() -> None:
    """Apply the configured log level to the root logger."""
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
