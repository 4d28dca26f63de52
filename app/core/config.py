# app/core/config.py

from pydantic_settings import BaseSettings
from typing import List

class Settings(BaseSettings):
    # Database
    DATABASE_URL: str = "sqlite:///./birth_registry.db"

    # Certificate verification tokens
    SECRET_KEY: str = "change-this-secret-key"
    ALGORITHM: str = "HS256"
    CERTIFICATE_ORIGIN: str = "http://localhost:8000"

    # API
    API_V1_STR: str = "/api/v1"
    PROJECT_NAME: str = "Birth Registry API"
    BACKEND_CORS_ORIGINS: List[str] = ["*"]

    # Workflow
    DEFAULT_ADMIN_ID: str = "admin-001"
    ID_MAX_ATTEMPTS: int = 5
    ALLOW_HOSPITAL_ID_REUSE: bool = False
    MAX_UPLOAD_BYTES: int = 10 * 1024 * 1024

    # Logging
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"

settings = Settings()
