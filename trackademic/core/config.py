# trackademic/core/config.py
from typing import List

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # "postgrest" — хостинговый бэкенд, "local" — SQLAlchemy (разработка, тесты)
    BACKEND: str = "postgrest"

    SUPABASE_URL: str = "http://localhost:54321"
    SUPABASE_ANON_KEY: str = ""
    SUPABASE_JWT_SECRET: str = "super-secret-jwt-token-with-at-least-32-characters"
    JWT_ALGORITHM: str = "HS256"
    JWT_AUDIENCE: str = "authenticated"

    DATABASE_URL: str = "sqlite:///./trackademic.db"

    HTTP_TIMEOUT: float = 10.0
    HTTP_READ_TIMEOUT: float = 15.0

    CORS_ORIGINS: List[str] = [
        "http://localhost",
        "http://127.0.0.1",
        "http://localhost:5173",
        "http://127.0.0.1:5173",
        "capacitor://localhost",
    ]

    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"

# Экземпляр создаётся ОДИН РАЗ
settings = Settings()
