# app/core/config.py
# Application settings (database URL, JWT secret, token lifetime, ...)
from typing import List

from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    # Database
    DATABASE_URL: str
    DB_ECHO: bool = False  # echo SQL statements to the log
    # JWT
    JWT_SECRET_KEY: str
    JWT_ALGORITHM: str = "HS256"
    # Access token lifetime (minutes), 7 days by default
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7
    # bcrypt work factor
    BCRYPT_ROUNDS: int = 12

    CORS_ORIGINS: List[str] = ["*"]
    LOG_LEVEL: str = "INFO"

    # Environment file
    class Config:
        env_file = ".env"

# Settings instance
settings = Settings()
