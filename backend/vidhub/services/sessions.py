# vidhub/services/sessions.py
from __future__ import annotations

from fastapi import Request, Response
from sqlalchemy.orm import Session

from vidhub.core.config import Settings
from vidhub.core.security import TokenService, digests_match
from vidhub.models.user import User

ACCESS_COOKIE = "accessToken"
REFRESH_COOKIE = "refreshToken"
COOKIE_PATH = "/"


# -----------------------------
# Cookie helpers
# -----------------------------
def cookie_samesite(settings: Settings) -> str:
    """
    "lax" for same-site deployments.
    "none" ONLY if you truly need cross-site cookies (requires HTTPS + Secure=True)
    """
    v = str(settings.COOKIE_SAMESITE or "lax").lower().strip()
    if v not in {"lax", "strict", "none"}:
        return "lax"
    return v


def _set_cookie(resp: Response, settings: Settings, key: str, value: str, max_age: int) -> None:
    resp.set_cookie(
        key=key,
        value=value,
        httponly=True,
        # Prod => HTTPS => Secure cookies. Dev http://localhost => must be False.
        secure=settings.is_prod,
        samesite=cookie_samesite(settings),
        max_age=max_age,
        path=COOKIE_PATH,
        domain=settings.COOKIE_DOMAIN,
    )


def set_session_cookies(
    resp: Response,
    settings: Settings,
    tokens: TokenService,
    *,
    access_token: str,
    refresh_token: str,
) -> None:
    _set_cookie(resp, settings, ACCESS_COOKIE, access_token, int(tokens.access_ttl.total_seconds()))
    _set_cookie(resp, settings, REFRESH_COOKIE, refresh_token, int(tokens.refresh_ttl.total_seconds()))


def clear_session_cookies(resp: Response, settings: Settings) -> None:
    for key in (ACCESS_COOKIE, REFRESH_COOKIE):
        resp.delete_cookie(
            key=key,
            path=COOKIE_PATH,
            domain=settings.COOKIE_DOMAIN,
            secure=settings.is_prod,
            httponly=True,
            samesite=cookie_samesite(settings),
        )


def read_refresh_cookie(req: Request) -> str | None:
    val = req.cookies.get(REFRESH_COOKIE)
    if not val:
        return None
    val = val.strip()
    return val or None


# -----------------------------
# Session issue / rotate / revoke
# -----------------------------
def issue_session(db: Session, tokens: TokenService, user: User) -> tuple[str, str]:
    """
    Mints an access + refresh pair and stores the refresh digest on the account,
    replacing whatever refresh token was honoured before.
    Returns (access_token, refresh_token).
    """
    access_token = tokens.issue_access_token(user)
    refresh_token = tokens.issue_refresh_token(user)
    user.refresh_token_hash = tokens.digest_refresh_token(refresh_token)
    db.add(user)
    db.commit()
    return access_token, refresh_token


def refresh_token_matches(tokens: TokenService, user: User, raw_refresh_token: str) -> bool:
    return digests_match(tokens.digest_refresh_token(raw_refresh_token), user.refresh_token_hash)


def revoke_session(db: Session, user: User) -> None:
    if user.refresh_token_hash is None:
        return
    user.refresh_token_hash = None
    db.add(user)
    db.commit()
