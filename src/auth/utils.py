from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from passlib.context import CryptContext

from src.config import settings

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

ACCESS_TOKEN = "access"
REFRESH_TOKEN = "refresh"

def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)

def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)

def _encode(claims: dict, token_type: str, lifetime: timedelta) -> str:
    to_encode = claims.copy()
    to_encode.update({"type": token_type, "exp": datetime.now(timezone.utc) + lifetime})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)

def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Short-lived bearer token carrying ``sub`` (user id) and ``is_admin``"""
    return _encode(data, ACCESS_TOKEN, expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))

def create_refresh_token(user_id: int) -> str:
    return _encode({"sub": str(user_id)}, REFRESH_TOKEN, timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS))

def decode_token(token: str, expected_type: str = ACCESS_TOKEN) -> Optional[dict]:
    """Claims of a valid token of the expected type, with ``user_id`` parsed; None otherwise"""
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except jwt.PyJWTError:
        return None

    if payload.get("type", ACCESS_TOKEN) != expected_type:
        return None
    try:
        payload["user_id"] = int(payload["sub"])
    except (KeyError, TypeError, ValueError):
        return None
    return payload

def decode_access_token(token: str) -> Optional[dict]:
    return decode_token(token, ACCESS_TOKEN)

def verify_token(token: str, credentials_exception: Exception) -> dict:
    payload = decode_access_token(token)
    if payload is None:
        raise credentials_exception
    return payload
