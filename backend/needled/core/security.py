from __future__ import annotations

import hashlib
import time
from datetime import datetime, timedelta, timezone
from typing import Any

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.ext.asyncio import AsyncSession

from needled.core.db import get_db_session
from needled.core.settings import Settings, get_settings
from needled.models.user import User

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login")

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

ALGORITHM = "HS256"


class TokenManager:
    def __init__(self, settings: Settings):
        self.settings = settings

    def _encode(self, claims: dict[str, Any]) -> str:
        return jwt.encode(claims, self.settings.security.jwt_secret, algorithm=ALGORITHM)

    def create_access_token(self, subject: str) -> str:
        expire = datetime.now(timezone.utc) + timedelta(minutes=self.settings.security.access_token_minutes)
        return self._encode({"sub": subject, "exp": expire, "iss": self.settings.security.jwt_issuer, "type": "access"})

    def create_refresh_token(self, subject: str) -> tuple[str, datetime]:
        expire = datetime.now(timezone.utc) + timedelta(days=self.settings.security.refresh_token_days)
        # jti keeps two refresh tokens minted in the same second distinct
        to_encode = {
            "sub": subject,
            "exp": expire,
            "iss": self.settings.security.jwt_issuer,
            "type": "refresh",
            "jti": f"{subject}:{time.time_ns()}",
        }
        return self._encode(to_encode), expire

    def create_unsubscribe_token(self, subject: str) -> str:
        # No expiry: links in old reminder emails must keep working
        return self._encode({"sub": subject, "iss": self.settings.security.jwt_issuer, "type": "unsubscribe"})

    def decode_token(self, token: str, expected_type: str = "access") -> dict[str, Any]:
        try:
            payload = jwt.decode(
                token,
                self.settings.security.jwt_secret,
                algorithms=[ALGORITHM],
                issuer=self.settings.security.jwt_issuer,
            )
        except JWTError:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
        if payload.get("type") != expected_type:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token type")
        return payload

    @staticmethod
    def hash_refresh_token(token: str) -> str:
        return hashlib.sha256(token.encode("utf-8")).hexdigest()


class RateLimiter:
    def __init__(self, max_attempts: int = 5, window_seconds: int = 60):
        self.max_attempts = max_attempts
        self.window_seconds = window_seconds
        self._attempts: dict[str, list[float]] = {}

    def _evict_expired(self, now: float) -> None:
        for key in list(self._attempts):
            live = [ts for ts in self._attempts[key] if now - ts <= self.window_seconds]
            if live:
                self._attempts[key] = live
            else:
                del self._attempts[key]

    def is_allowed(self, key: str) -> bool:
        now = time.time()
        self._evict_expired(now)
        attempts = self._attempts.setdefault(key, [])
        attempts.append(now)
        return len(attempts) <= self.max_attempts

    def guard(self, key: str):
        if not self.is_allowed(key):
            raise HTTPException(status_code=status.HTTP_429_TOO_MANY_REQUESTS, detail="Too many attempts, try later")

    def reset(self) -> None:
        self._attempts.clear()


rate_limiter = RateLimiter()


def get_token_manager(settings: Settings = Depends(get_settings)) -> TokenManager:
    return TokenManager(settings)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, password_hash: str) -> bool:
    if not password_hash:
        return False
    return pwd_context.verify(plain_password, password_hash)


def auth_required(token: str = Depends(oauth2_scheme), token_manager: TokenManager = Depends(get_token_manager)) -> str:
    payload = token_manager.decode_token(token, expected_type="access")
    return str(payload.get("sub"))


async def get_current_user(
    user_id: str = Depends(auth_required),
    db: AsyncSession = Depends(get_db_session),
) -> User:
    user = await db.get(User, user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    return user
