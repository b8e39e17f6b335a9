# fil: src/services/credentials.py

from __future__ import annotations

import base64
import hashlib
import hmac
import secrets
from dataclasses import dataclass
from typing import NamedTuple, Optional

HASH_SCHEME = "pbkdf2"
SALT_BYTES = 16

# Dummy-salt som används när e-posten inte stämmer,
# så att fel e-post och fel lösenord tar lika lång tid.
_DUMMY_SALT = b"\x00" * SALT_BYTES


class StoredHash(NamedTuple):
    algorithm: str
    iterations: int
    salt: bytes
    digest: bytes

    @classmethod
    def parse(cls, text: str) -> Optional["StoredHash"]:
        """None om strängen inte är en pbkdf2-hash i vårt format."""
        parts = (text or "").split("$")
        if len(parts) != 5 or parts[0] != HASH_SCHEME:
            return None
        _, algorithm, iterations, salt, digest = parts
        try:
            return cls(algorithm, int(iterations), _unb64(salt), _unb64(digest))
        except ValueError:
            return None

    def __str__(self) -> str:
        return "$".join(
            (HASH_SCHEME, self.algorithm, str(self.iterations), _b64(self.salt), _b64(self.digest))
        )


def _b64(raw: bytes) -> str:
    return base64.b64encode(raw).decode("ascii")


def _unb64(text: str) -> bytes:
    # binascii.Error ärver ValueError
    return base64.b64decode(text, validate=True)


@dataclass
class PasswordHasher:
    """
    PBKDF2-HMAC med salt. Lagringsformat:

        pbkdf2$<algoritm>$<iterationer>$<salt b64>$<hash b64>
    """

    iterations: int = 200_000
    algorithm: str = "sha256"

    def _derive(self, password: str, salt: bytes, algorithm: str, iterations: int) -> bytes:
        return hashlib.pbkdf2_hmac(algorithm, password.encode("utf-8"), salt, iterations)

    def hash(self, password: str) -> str:
        salt = secrets.token_bytes(SALT_BYTES)
        digest = self._derive(password, salt, self.algorithm, self.iterations)
        return str(StoredHash(self.algorithm, self.iterations, salt, digest))

    def verify(self, password: str, stored_hash: str) -> bool:
        stored = StoredHash.parse(stored_hash)
        if stored is None:
            return False
        try:
            derived = self._derive(password, stored.salt, stored.algorithm, stored.iterations)
        except (ValueError, OverflowError):
            # okänd algoritm eller orimligt antal iterationer
            return False
        return hmac.compare_digest(derived, stored.digest)

    def burn(self, password: str) -> None:
        """Gör samma arbete som verify() utan att jämföra något."""
        self._derive(password, _DUMMY_SALT, self.algorithm, self.iterations)


class AdminAuthenticator:
    """
    Den enda administratören: en e-post och en lösenordshash,
    båda injicerade från konfigurationen.
    """

    def __init__(self, email: str, password_hash: str, hasher: PasswordHasher | None = None) -> None:
        self.email = email
        self.password_hash = password_hash
        self.hasher = hasher or PasswordHasher()

    def verify(self, email: str, password: str) -> bool:
        email_ok = hmac.compare_digest(
            (email or "").encode("utf-8"), self.email.encode("utf-8")
        )
        if not email_ok:
            self.hasher.burn(password or "")
            return False
        return self.hasher.verify(password or "", self.password_hash)
