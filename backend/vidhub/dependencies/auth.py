# vidhub/dependencies/auth.py
from __future__ import annotations

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from vidhub.auth.identity import AuthContext
from vidhub.core.config import Settings
from vidhub.core.database import get_db
from vidhub.core.security import ExpiredTokenError, InvalidTokenError, TokenService, subject_id
from vidhub.models.user import User
from vidhub.services.sessions import ACCESS_COOKIE

bearer_scheme = HTTPBearer(auto_error=False)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_token_service(request: Request) -> TokenService:
    return request.app.state.token_service


def _unauthorized(detail: str = "Unauthorized request", *, code: str = "UNAUTHORIZED") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={"error": code, "message": detail},
        headers={"WWW-Authenticate": "Bearer"},
    )


def extract_access_token(
    request: Request,
    creds: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> str | None:
    """
    Cookie first, then `Authorization: Bearer <token>`.
    """
    cookie = (request.cookies.get(ACCESS_COOKIE) or "").strip()
    if cookie:
        return cookie
    if creds and creds.scheme.lower() == "bearer" and creds.credentials.strip():
        return creds.credentials.strip()
    return None


def _resolve(db: Session, tokens: TokenService, token: str) -> User | None:
    """
    Raises InvalidTokenError / ExpiredTokenError for bad tokens.
    Returns None when the token is valid but its account is gone.
    """
    claims = tokens.verify_access_token(token)
    return db.query(User).filter(User.id == subject_id(claims)).first()


def authenticate(
    token: str | None = Depends(extract_access_token),
    db: Session = Depends(get_db),
    tokens: TokenService = Depends(get_token_service),
) -> AuthContext:
    """
    Mandatory session gate.

    Validates:
      - a token is present (cookie or bearer)
      - signature + exp + type
      - account still exists
    Returns:
      - AuthContext built from the account row
    """
    if not token:
        raise _unauthorized()

    try:
        user = _resolve(db, tokens, token)
    except ExpiredTokenError:
        raise _unauthorized("Access token expired", code="ACCESS_TOKEN_EXPIRED")
    except InvalidTokenError:
        raise _unauthorized("Invalid access token")

    if not user:
        raise _unauthorized("Invalid access token")

    return AuthContext.from_user(user)


def optional_identity(
    token: str | None = Depends(extract_access_token),
    db: Session = Depends(get_db),
    tokens: TokenService = Depends(get_token_service),
) -> AuthContext | None:
    if not token:
        return None
    try:
        user = _resolve(db, tokens, token)
    except InvalidTokenError:
        return None
    return AuthContext.from_user(user) if user else None


def is_guest(
    token: str | None = Depends(extract_access_token),
    tokens: TokenService = Depends(get_token_service),
) -> None:
    """
    Guest-only gate: any token that verifies blocks the request.
    Missing, invalid or expired tokens let it through.
    """
    if not token:
        return
    try:
        tokens.verify_access_token(token)
    except InvalidTokenError:
        return
    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="You are already logged in")


def get_current_account(
    identity: AuthContext = Depends(authenticate),
    db: Session = Depends(get_db),
) -> User:
    """
    Loads the full account row for handlers that mutate credentials or profile.
    """
    user = db.query(User).filter(User.id == identity.id).first()
    if not user:
        raise _unauthorized("Invalid access token")
    return user
