# vidhub/routes/auth.py
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response, status
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from vidhub.auth.identity import AuthContext
from vidhub.core.config import Settings
from vidhub.core.database import get_db
from vidhub.core.password_policy import ensure_strong_password
from vidhub.core.rate_limit import CODE_REQUEST_LIMIT, LOGIN_LIMIT, REGISTER_LIMIT, limiter
from vidhub.core.security import InvalidTokenError, TokenService, subject_id
from vidhub.dependencies.auth import (
    authenticate,
    bearer_scheme,
    get_current_account,
    get_settings,
    get_token_service,
    is_guest,
)
from vidhub.models.user import User
from vidhub.schemas.auth import (
    USERNAME_PATTERN,
    AccountOut,
    ChangePasswordIn,
    ForgotPasswordIn,
    LoginIn,
    RegisterIn,
    ResetPasswordIn,
    TokenOut,
    UsernameAvailabilityOut,
    VerifyAccountIn,
)
from vidhub.schemas.common import MessageOut
from vidhub.services import accounts
from vidhub.services.sessions import (
    clear_session_cookies,
    issue_session,
    read_refresh_cookie,
    refresh_token_matches,
    revoke_session,
    set_session_cookies,
)
from vidhub.services.verification import (
    check_code,
    clear_reset_code,
    clear_verification_code,
    issue_reset_code,
    issue_verification_code,
    send_reset_email,
    send_verification_email,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def _refresh_error(code: str, message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={"error": code, "message": message},
    )


def _open_session(
    response: Response,
    db: Session,
    settings: Settings,
    tokens: TokenService,
    user: User,
    *,
    message: str,
) -> dict:
    access_token, refresh_token = issue_session(db, tokens, user)
    set_session_cookies(response, settings, tokens, access_token=access_token, refresh_token=refresh_token)
    return {
        "message": message,
        "access_token": access_token,
        "token_type": "bearer",
        "user": AccountOut.model_validate(user),
    }


# -----------------------------
# Registration + verification
# -----------------------------
@router.get("/check-username", response_model=UsernameAvailabilityOut)
def check_username(
    username: str = Query(min_length=1, max_length=50, pattern=USERNAME_PATTERN),
    db: Session = Depends(get_db),
):
    username = accounts.normalize_identifier(username)
    taken = (
        db.query(User.id)
        .filter(User.username == username, User.is_verified.is_(True))
        .first()
    )
    return {"username": username, "available": taken is None}


@router.post(
    "/register",
    response_model=MessageOut,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(is_guest)],
)
@limiter.limit(REGISTER_LIMIT)
def register(
    request: Request,
    payload: RegisterIn,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    ensure_strong_password(payload.password, min_length=settings.PASSWORD_MIN_LENGTH)

    matches = accounts.find_by_email_or_username(db, email=payload.email, username=payload.username)
    by_email = next((u for u in matches if u.email == payload.email), None)
    by_username = next((u for u in matches if u.username == payload.username), None)

    if by_email and by_username and by_email.id != by_username.id:
        raise HTTPException(status_code=409, detail="Email and username belong to different accounts")
    if by_email and by_email.is_verified:
        raise HTTPException(status_code=409, detail="Email already exists")
    if by_username and by_username.is_verified:
        raise HTTPException(status_code=409, detail="Username already exists")

    try:
        # An unverified row holding this email or username is taken over by the new signup.
        user = by_email or by_username
        if user:
            user.name = payload.name
            user.email = payload.email
            user.username = payload.username
            user.profile_image = accounts.default_avatar_url(payload.name)
            accounts.save(db, user, password=payload.password, commit=False)
        else:
            user = accounts.create(
                db,
                name=payload.name,
                email=payload.email,
                username=payload.username,
                password=payload.password,
            )

        code = issue_verification_code(settings, user)
        send_verification_email(settings, email=user.email, name=user.name, code=code)
        db.commit()
    except IntegrityError:
        # Lost a race with a concurrent signup for the same email or username.
        db.rollback()
        if accounts.find_by_email(db, payload.email):
            raise HTTPException(status_code=409, detail="Email already exists")
        raise HTTPException(status_code=409, detail="Username already exists")
    except Exception:
        db.rollback()
        raise

    logger.info("Account registered: user_id=%s", user.id)
    return {"message": "User registered. Please verify your email"}


@router.post("/verify-account", response_model=MessageOut, dependencies=[Depends(is_guest)])
def verify_account(
    payload: VerifyAccountIn,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    user = accounts.find_by_email(db, payload.email)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    if user.is_verified:
        raise HTTPException(status_code=400, detail="User already verified")

    check_code(
        settings,
        stored_hash=user.verification_code_hash,
        expires_at=user.verification_expires_at,
        code=payload.code,
        expired_message="Verification code expired. Please sign up again",
        invalid_message="Invalid verification code",
    )

    user.is_verified = True
    clear_verification_code(user)
    accounts.save(db, user)

    return {"message": "Email verified successfully"}


# -----------------------------
# Sessions
# -----------------------------
@router.post("/login", response_model=TokenOut, dependencies=[Depends(is_guest)])
@limiter.limit(LOGIN_LIMIT)
def login(
    request: Request,
    payload: LoginIn,
    response: Response,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    tokens: TokenService = Depends(get_token_service),
):
    matches = accounts.find_by_email_or_username(db, email=payload.identifier, username=payload.identifier)
    user = matches[0] if matches else None

    # Same answer for unknown, unverified and wrong-password so accounts can't be probed.
    if not user or not user.is_verified:
        raise HTTPException(status_code=401, detail="Invalid credentials")
    if not accounts.compare_password(payload.password, user.password_hash):
        raise HTTPException(status_code=401, detail="Invalid credentials")

    logger.info("Login succeeded: user_id=%s", user.id)
    return _open_session(response, db, settings, tokens, user, message="User logged in successfully")


@router.post("/refresh-token", response_model=TokenOut)
def refresh_token(
    request: Request,
    response: Response,
    creds: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    tokens: TokenService = Depends(get_token_service),
):
    """
    Rotate the refresh token:
      - read it from the cookie (or bearer header)
      - verify signature + exp
      - compare with the one stored on the account
      - issue a new pair, overwriting the stored token
    """
    raw = read_refresh_cookie(request)
    if not raw and creds and creds.scheme.lower() == "bearer":
        raw = creds.credentials.strip() or None
    if not raw:
        raise _refresh_error("UNAUTHORIZED", "Unauthorized request")

    try:
        claims = tokens.verify_refresh_token(raw)
    except InvalidTokenError:
        raise _refresh_error("INVALID_REFRESH_TOKEN", "Invalid refresh token")

    user = accounts.find_by_id(db, subject_id(claims))
    if not user or not refresh_token_matches(tokens, user, raw):
        raise _refresh_error("INVALID_REFRESH_TOKEN", "Invalid refresh token")

    return _open_session(response, db, settings, tokens, user, message="Access token refreshed successfully")


@router.post("/logout", response_model=MessageOut)
def logout(
    response: Response,
    user: User = Depends(get_current_account),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    revoke_session(db, user)
    clear_session_cookies(response, settings)
    return {"message": "User logged out successfully"}


@router.get("/me", response_model=AccountOut)
def me(identity: AuthContext = Depends(authenticate)):
    return identity


# -----------------------------
# Passwords
# -----------------------------
@router.post("/change-password", response_model=MessageOut)
def change_password(
    payload: ChangePasswordIn,
    user: User = Depends(get_current_account),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    if not accounts.compare_password(payload.old_password, user.password_hash):
        raise HTTPException(status_code=401, detail="Old password is incorrect")

    ensure_strong_password(payload.new_password, min_length=settings.PASSWORD_MIN_LENGTH)

    # Other sessions stay valid until their refresh token is next rotated or revoked.
    accounts.save(db, user, password=payload.new_password)
    return {"message": "Password changed successfully"}


@router.post("/forgot-password", response_model=MessageOut)
@limiter.limit(CODE_REQUEST_LIMIT)
def forgot_password(
    request: Request,
    payload: ForgotPasswordIn,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    user = accounts.find_by_email(db, payload.email)
    if not user or not user.is_verified:
        raise HTTPException(status_code=400, detail="User not found")

    try:
        code = issue_reset_code(settings, user)
        send_reset_email(settings, email=user.email, name=user.name, code=code)
        db.commit()
    except Exception:
        db.rollback()
        raise

    return {"message": "Password reset code sent to your email"}


@router.post("/reset-password", response_model=MessageOut)
@limiter.limit(CODE_REQUEST_LIMIT)
def reset_password(
    request: Request,
    payload: ResetPasswordIn,
    response: Response,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    ensure_strong_password(payload.new_password, min_length=settings.PASSWORD_MIN_LENGTH)

    user = accounts.find_by_email(db, payload.email)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")

    check_code(
        settings,
        stored_hash=user.reset_code_hash,
        expires_at=user.reset_expires_at,
        code=payload.code,
        expired_message="Reset code expired. Please try again",
        invalid_message="Invalid reset code",
    )

    clear_reset_code(user)
    # Every outstanding refresh token dies with the old password.
    user.refresh_token_hash = None
    accounts.save(db, user, password=payload.new_password)

    clear_session_cookies(response, settings)
    logger.info("Password reset: user_id=%s", user.id)
    return {"message": "Password reset successful. Please login again"}
