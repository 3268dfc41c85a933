from __future__ import annotations

import re
from typing import List

from fastapi import HTTPException, status

COMMON_WEAK_PASSWORDS = {
    "password",
    "password1",
    "password123",
    "123456",
    "123456789",
    "12345678",
    "qwerty",
    "qwerty1",
    "qwerty123",
    "abc123",
    "letmein",
    "iloveyou",
    "welcome1",
    "passw0rd",
    "trustno1",
    "zaq12wsx",
}

_UPPERCASE_RE = re.compile(r"[A-Z]")
_LOWERCASE_RE = re.compile(r"[a-z]")
_NUMBER_RE = re.compile(r"[0-9]")


def evaluate_password(password: str, *, min_length: int = 6) -> List[str]:
    """
    Returns a list of violation codes if the password does not meet policy.
    """
    pw = password or ""
    violations: list[str] = []

    if len(pw) < max(int(min_length or 0), 1):
        violations.append("min_length")
    if not _UPPERCASE_RE.search(pw):
        violations.append("uppercase")
    if not _LOWERCASE_RE.search(pw):
        violations.append("lowercase")
    if not _NUMBER_RE.search(pw):
        violations.append("number")
    if pw.lower() in COMMON_WEAK_PASSWORDS:
        violations.append("denylist_common")

    return violations


def ensure_strong_password(password: str, *, min_length: int = 6) -> None:
    violations = evaluate_password(password, min_length=min_length)
    if violations:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "message": "Password must be at least "
                f"{min_length} characters and contain uppercase, lowercase, and a number",
                "errors": [{"code": "WEAK_PASSWORD", "violations": violations}],
            },
        )
