# vidhub/core/security.py
from __future__ import annotations

import hashlib
import hmac
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Protocol

from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext

from vidhub.core.config import Settings

pwd_context = CryptContext(schemes=["argon2"], deprecated="auto")


# -------------------------
# Password hashing
# -------------------------
def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str | None) -> bool:
    if not password_hash:
        return False
    return pwd_context.verify(password, password_hash)


# -------------------------
# Keyed digests (refresh tokens, one-time codes)
# -------------------------
def keyed_digest(secret: str, value: str) -> str:
    """
    HMAC-SHA256 of `value` keyed by `secret`.
    Used so a DB leak doesn't hand out live refresh tokens or codes.
    """
    key = (secret or "").encode("utf-8")
    if not key:
        raise RuntimeError("A signing secret must be set to digest tokens.")
    return hmac.new(key, value.encode("utf-8"), hashlib.sha256).hexdigest()


def digests_match(a: str | None, b: str | None) -> bool:
    if not a or not b:
        return False
    return hmac.compare_digest(a, b)


# -------------------------
# JWT token service
# -------------------------
class InvalidTokenError(Exception):
    """Bad signature, malformed payload, wrong token type or missing subject."""


class ExpiredTokenError(InvalidTokenError):
    """Signature was valid but the token is past its `exp`."""


class TokenSubject(Protocol):
    id: int
    email: str
    username: str


ACCESS = "access"
REFRESH = "refresh"


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


class TokenService:
    """
    Issues and validates access/refresh JWTs.

    Pure computation: it never touches storage. Callers that issue a refresh
    token are responsible for persisting it onto the account.
    """

    def __init__(self, settings: Settings) -> None:
        self._algorithm = settings.JWT_ALGORITHM
        self._access_secret = settings.JWT_ACCESS_SECRET
        self._refresh_secret = settings.JWT_REFRESH_SECRET
        self.access_ttl: timedelta = settings.access_token_ttl
        self.refresh_ttl: timedelta = settings.refresh_token_ttl

    def _encode(self, claims: dict[str, Any], *, secret: str, ttl: timedelta) -> str:
        if not secret or not secret.strip():
            raise RuntimeError("JWT signing secret must be set.")
        now = _now_utc()
        payload = {
            **claims,
            # Unique per token so two tokens minted in the same second still differ.
            "jti": uuid.uuid4().hex,
            "iat": int(now.timestamp()),
            "exp": int((now + ttl).timestamp()),
        }
        return jwt.encode(payload, secret, algorithm=self._algorithm)

    def _decode(self, token: str, *, secret: str, expected_type: str) -> dict[str, Any]:
        if not token:
            raise InvalidTokenError("Missing token")
        try:
            payload = jwt.decode(token, secret, algorithms=[self._algorithm])
        except ExpiredSignatureError as e:
            raise ExpiredTokenError("Token expired") from e
        except JWTError as e:
            raise InvalidTokenError("Invalid token") from e

        if payload.get("type") != expected_type:
            raise InvalidTokenError("Invalid token type")
        sub = str(payload.get("sub") or "").strip()
        if not sub.isdigit():
            raise InvalidTokenError("Token missing subject")
        return payload

    def issue_access_token(self, account: TokenSubject) -> str:
        claims = {
            "sub": str(account.id),
            "email": account.email,
            "username": account.username,
            "type": ACCESS,
        }
        return self._encode(claims, secret=self._access_secret, ttl=self.access_ttl)

    def issue_refresh_token(self, account: TokenSubject) -> str:
        claims = {"sub": str(account.id), "type": REFRESH}
        return self._encode(claims, secret=self._refresh_secret, ttl=self.refresh_ttl)

    def verify_access_token(self, token: str) -> dict[str, Any]:
        return self._decode(token, secret=self._access_secret, expected_type=ACCESS)

    def verify_refresh_token(self, token: str) -> dict[str, Any]:
        return self._decode(token, secret=self._refresh_secret, expected_type=REFRESH)

    def digest_refresh_token(self, token: str) -> str:
        return keyed_digest(self._refresh_secret, token)


def subject_id(claims: dict[str, Any]) -> int:
    return int(claims["sub"])
