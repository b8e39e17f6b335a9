# fil: src/services/tokens.py

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt

from src.core.errors import ConfigError, Unauthorized

ADMIN_ROLE = "admin"
ALGORITHM = "HS256"
DEFAULT_TTL = timedelta(days=7)


@dataclass(frozen=True)
class AdminIdentity:
    email: str
    role: str
    expires_at: datetime


class TokenService:
    """
    Utfärdar och verifierar bearer-token (JWT, HS256) för administratören.
    Ingen refresh: efter utgång måste man logga in igen.
    """

    def __init__(self, secret: Optional[str], ttl: timedelta = DEFAULT_TTL) -> None:
        if not secret:
            # Hellre krascha direkt än signera med tom nyckel
            raise ConfigError("JWT_SECRET não configurado.")
        self._secret = secret
        self.ttl = ttl

    def issue(self, email: str, now: Optional[datetime] = None) -> str:
        now = now or datetime.now(timezone.utc)
        payload = {
            "email": email,
            "role": ADMIN_ROLE,
            "iat": now,
            "exp": now + self.ttl,
        }
        return jwt.encode(payload, self._secret, algorithm=ALGORITHM)

    def verify(self, token: str) -> AdminIdentity:
        try:
            claims = jwt.decode(
                token,
                self._secret,
                algorithms=[ALGORITHM],
                options={"require": ["exp", "email", "role"]},
            )
        except jwt.PyJWTError as exc:
            # signatur, format och utgång hanteras alla här
            raise Unauthorized() from exc

        if claims.get("role") != ADMIN_ROLE or not claims.get("email"):
            raise Unauthorized()

        return AdminIdentity(
            email=str(claims["email"]),
            role=str(claims["role"]),
            expires_at=datetime.fromtimestamp(int(claims["exp"]), tz=timezone.utc),
        )
