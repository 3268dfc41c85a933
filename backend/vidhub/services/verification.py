from __future__ import annotations

import logging
import secrets
from datetime import datetime, timezone

from fastapi import HTTPException, status

from vidhub.core.config import Settings
from vidhub.core.security import digests_match, keyed_digest
from vidhub.models.user import User
from vidhub.services.email import EmailDeliveryError, EmailNotConfiguredError, send_email

logger = logging.getLogger(__name__)

CODE_MIN = 100000
CODE_MAX = 999999


def generate_code() -> str:
    return str(CODE_MIN + secrets.randbelow(CODE_MAX - CODE_MIN + 1))


def digest_code(settings: Settings, code: str) -> str:
    return keyed_digest(settings.JWT_ACCESS_SECRET, (code or "").strip())


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


def _as_aware(value: datetime) -> datetime:
    # SQLite round-trips tz-aware datetimes as naive. Compare consistently.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def issue_verification_code(settings: Settings, user: User) -> str:
    """
    Stores a fresh verification code digest + expiry on the account (no commit)
    and returns the raw code for delivery.
    """
    code = generate_code()
    user.verification_code_hash = digest_code(settings, code)
    user.verification_expires_at = _now_utc() + settings.verification_code_ttl
    return code


def issue_reset_code(settings: Settings, user: User) -> str:
    code = generate_code()
    user.reset_code_hash = digest_code(settings, code)
    user.reset_expires_at = _now_utc() + settings.verification_code_ttl
    return code


def check_code(
    settings: Settings,
    *,
    stored_hash: str | None,
    expires_at: datetime | None,
    code: str,
    expired_message: str,
    invalid_message: str,
) -> None:
    """
    Expiry first, then equality. Nothing is consumed here; the caller clears the
    code only after a successful check.
    """
    if expires_at is None or _as_aware(expires_at) <= _now_utc():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=expired_message)
    if not digests_match(digest_code(settings, code), stored_hash):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=invalid_message)


def clear_verification_code(user: User) -> None:
    user.verification_code_hash = None
    user.verification_expires_at = None


def clear_reset_code(user: User) -> None:
    user.reset_code_hash = None
    user.reset_expires_at = None


# -----------------------------
# Code email senders
# -----------------------------
def _deliver(settings: Settings, *, to_email: str, subject: str, body: str, failure_message: str) -> None:
    try:
        msg_id = send_email(settings, to_email=to_email, subject=subject, body=body)
    except (EmailNotConfiguredError, EmailDeliveryError):
        logger.exception("Code email failed: to=%s subject=%r", to_email, subject)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=failure_message)
    # Log delivery without leaking the code.
    logger.info("Code email queued: to=%s provider=%s msg_id=%s", to_email, settings.EMAIL_PROVIDER, msg_id)


def send_verification_email(settings: Settings, *, email: str, name: str, code: str) -> None:
    minutes = int(settings.verification_code_ttl.total_seconds() // 60)
    body = "\n".join(
        [
            f"Hi {name},",
            "",
            "Welcome to VidHub! Use the code below to verify your account:",
            "",
            f"    {code}",
            "",
            f"This code expires in {minutes} minutes.",
            "If you did not create this account, you can ignore this email.",
        ]
    )
    _deliver(
        settings,
        to_email=email,
        subject="Verify your VidHub account",
        body=body,
        failure_message="Failed to send verification email",
    )


def send_reset_email(settings: Settings, *, email: str, name: str, code: str) -> None:
    minutes = int(settings.verification_code_ttl.total_seconds() // 60)
    body = "\n".join(
        [
            f"Hi {name},",
            "",
            "We received a request to reset your VidHub password. Your reset code is:",
            "",
            f"    {code}",
            "",
            f"This code expires in {minutes} minutes.",
            "If you did not request a reset, you can ignore this email.",
        ]
    )
    _deliver(
        settings,
        to_email=email,
        subject="Reset your VidHub password",
        body=body,
        failure_message="Failed to send password reset email",
    )
