# trackademic/core/security.py
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import jwt, JWTError
from trackademic.core.config import settings


def decode_access_token(token: str) -> dict:
    """Декодирует JWT-токен бэкенда и возвращает payload"""
    try:
        return jwt.decode(
            token,
            settings.SUPABASE_JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
            audience=settings.JWT_AUDIENCE,
        )
    except JWTError:
        raise JWTError("Could not validate credentials")


def create_access_token(user_id: str, role: str = "authenticated", expires_delta: Optional[timedelta] = None) -> str:
    # Выпуск токенов — дело бэкенда авторизации; здесь только для локального режима и тестов
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=15))
    to_encode = {"sub": user_id, "role": role, "aud": settings.JWT_AUDIENCE, "exp": expire}
    return jwt.encode(to_encode, settings.SUPABASE_JWT_SECRET, algorithm=settings.JWT_ALGORITHM)
